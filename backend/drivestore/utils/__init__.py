"""
通用工具模块包
提供项目通用的工具函数
"""

from .config_utils import (
    get_project_root,
    parse_json_object_config,
    strip_slashes,
)

__all__ = [
    'get_project_root',
    'parse_json_object_config',
    'strip_slashes',
]
