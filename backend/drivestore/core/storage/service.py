"""
存储服务门面
按名称管理多个磁盘，并把未指定磁盘的调用转发到默认磁盘
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from drivestore.core.config import Settings, settings
from drivestore.core.log_messages import log_messages
from drivestore.core.log_utils import get_logger
from drivestore.core.storage.base_storage import StorageDriver
from drivestore.core.storage.exceptions import ConfigurationError
from drivestore.core.storage.factory import DriverManager
from drivestore.core.storage.models import DiskConfig, StorageOptions

logger = get_logger(__name__)


def _default_disk_definition(app_settings: Settings) -> Dict[str, Any]:
    """根据 AWS_*/S3_*/STORAGE_* 环境变量构建默认磁盘定义"""
    return {
        'driver': app_settings.storage_driver,
        'region': app_settings.aws_region or None,
        'bucket': app_settings.s3_bucket or None,
        'endpoint': app_settings.aws_endpoint or None,
        'access_key_id': app_settings.aws_access_key or None,
        'access_secret_key': app_settings.aws_secret_key or None,
        'force_path_style': app_settings.s3_force_path_style,
        'visibility': app_settings.storage_visibility,
        'base_path': app_settings.storage_base_path or None,
        'base_url': app_settings.storage_base_url or None,
        'cdn_endpoint': app_settings.storage_cdn_endpoint or None,
    }


def get_storage_options(app_settings: Optional[Settings] = None) -> StorageOptions:
    """
    从应用配置构建存储配置

    默认磁盘来自环境变量，STORAGE_DISKS 中的同名定义会覆盖默认磁盘。

    Args:
        app_settings: 应用配置，默认使用全局配置

    Returns:
        StorageOptions: 存储配置

    Raises:
        ConfigurationError: 磁盘定义不合法时抛出
    """
    app_settings = app_settings or settings
    definitions: Dict[str, Any] = {
        app_settings.storage_default_disk: _default_disk_definition(app_settings)
    }
    definitions.update(app_settings.extra_disks)

    disks: Dict[str, DiskConfig] = {}
    for name, definition in definitions.items():
        if not isinstance(definition, dict):
            raise ConfigurationError(
                "磁盘 '{}' 的定义必须是对象".format(name),
                details={'disk': name}
            )
        try:
            disks[name] = DiskConfig.model_validate(definition)
        except ValidationError as e:
            raise ConfigurationError(
                "磁盘 '{}' 的配置不合法: {}".format(name, str(e)),
                details={'disk': name}
            ) from e

    return StorageOptions(default=app_settings.storage_default_disk, disks=disks)


class StorageService:
    """
    存储服务

    持有全部磁盘配置，驱动在首次访问磁盘时创建并缓存。
    直接调用驱动方法（如 service.put(...)）时使用默认磁盘。

    Example:
        >>> storage = get_storage_service()
        >>> await storage.put("avatars/1.png", data)
        >>> await storage.disk("archive").delete_path("2023/")
    """

    def __init__(self, options: StorageOptions, manager: Optional[DriverManager] = None) -> None:
        """
        初始化存储服务

        Args:
            options: 存储配置
            manager: 驱动管理器，不指定时新建

        Raises:
            ConfigurationError: 默认磁盘未定义时抛出
        """
        if options.default not in options.disks:
            raise ConfigurationError(
                "默认磁盘 '{}' 未定义".format(options.default),
                details={'disk': options.default}
            )
        self._options = options
        self._manager = manager or DriverManager()

    @property
    def options(self) -> StorageOptions:
        return self._options

    @property
    def disk_names(self) -> List[str]:
        """全部磁盘名称"""
        return list(self._options.disks.keys())

    def disk(self, name: Optional[str] = None) -> StorageDriver:
        """
        获取磁盘驱动

        Args:
            name: 磁盘名称，不指定时返回默认磁盘

        Returns:
            StorageDriver: 驱动实例

        Raises:
            ConfigurationError: 磁盘未定义或驱动创建失败时抛出
        """
        disk_name = name or self._options.default
        config = self._options.disks.get(disk_name)
        if config is None:
            available = ', '.join(self.disk_names)
            raise ConfigurationError(
                "磁盘 '{}' 未定义，可用磁盘: {}".format(disk_name, available),
                details={'disk': disk_name}
            )
        return self._manager.get_driver(disk_name, config)

    @property
    def default_disk(self) -> StorageDriver:
        """默认磁盘驱动"""
        return self.disk()

    def __getattr__(self, item: str) -> Any:
        if item.startswith('_'):
            raise AttributeError(item)
        return getattr(self.default_disk, item)

    def close(self) -> None:
        """关闭全部已创建的驱动"""
        self._manager.close()


# 全局存储服务实例
_storage_service: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """
    获取全局存储服务实例，首次调用时根据应用配置创建

    Returns:
        StorageService: 存储服务实例
    """
    global _storage_service
    if _storage_service is None:
        _storage_service = StorageService(get_storage_options())
        logger.info(log_messages.STORAGE_SERVICE_READY, disk=_storage_service.options.default)
    return _storage_service


def configure_storage_service(options: StorageOptions) -> StorageService:
    """
    使用指定配置替换全局存储服务

    Args:
        options: 存储配置

    Returns:
        StorageService: 新的存储服务实例
    """
    global _storage_service
    if _storage_service is not None:
        _storage_service.close()
    _storage_service = StorageService(options)
    return _storage_service


__all__ = [
    'get_storage_options',
    'StorageService',
    'get_storage_service',
    'configure_storage_service',
]
