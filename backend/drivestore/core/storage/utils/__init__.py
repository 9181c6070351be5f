"""
存储工具模块
提供存储相关的工具函数
"""

from drivestore.core.storage.utils.mime import DEFAULT_MIME_TYPE, get_mime_from_extension

__all__ = ['DEFAULT_MIME_TYPE', 'get_mime_from_extension']
