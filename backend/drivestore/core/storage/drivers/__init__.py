"""
存储驱动模块
提供各种对象存储服务的驱动实现
"""

from drivestore.core.storage.drivers.s3_storage import S3Storage

__all__ = ['S3Storage']
