"""
存储服务模块
提供统一的存储服务访问接口，支持按磁盘配置多种存储驱动
"""

from drivestore.core.storage.base_storage import FileContent, StorageDriver
from drivestore.core.storage.drivers.s3_storage import S3Storage
from drivestore.core.storage.exceptions import *
from drivestore.core.storage.factory import (
    DriverManager,
    get_driver_class,
    list_available_drivers,
    register_driver,
    resolve_driver,
)
from drivestore.core.storage.models import *
from drivestore.core.storage.service import (
    StorageService,
    configure_storage_service,
    get_storage_options,
    get_storage_service,
)
from drivestore.core.storage.signed_url_cache import SignedUrlCache
from drivestore.core.storage.stream import ObjectStream
from drivestore.core.storage.utils import get_mime_from_extension

# 自动注册S3驱动
register_driver(S3Storage.DRIVER_KIND, S3Storage)


__all__ = [
    # 门面
    'StorageService',
    'get_storage_service',
    'configure_storage_service',
    'get_storage_options',
    # 工厂函数
    'DriverManager',
    'register_driver',
    'get_driver_class',
    'resolve_driver',
    'list_available_drivers',
    # 抽象接口
    'StorageDriver',
    'FileContent',
    # 驱动类
    'S3Storage',
    # 辅助类型
    'SignedUrlCache',
    'ObjectStream',
    'get_mime_from_extension',
    # 数据模型
    'DriverKind',
    'Visibility',
    'DiskConfig',
    'StorageOptions',
    'FileOptions',
    'PutResult',
    'UploadedPart',
    'ObjectListing',
    'FileMetadata',
    # 异常
    'StorageError',
    'ConfigurationError',
    'UnknownDriverKind',
    'MissingRequiredConfig',
    'UploadError',
    'UploadInitError',
    'PartUploadError',
    'URLError',
    'CopyError',
    'StreamError',
]
