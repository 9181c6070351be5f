"""
存储驱动工厂
提供驱动注册、创建以及按磁盘缓存驱动实例的功能
"""

from typing import Callable, Dict, List, Optional, Union

from drivestore.core.log_messages import log_messages
from drivestore.core.log_utils import get_logger
from drivestore.core.storage.base_storage import StorageDriver
from drivestore.core.storage.exceptions import ConfigurationError, UnknownDriverKind
from drivestore.core.storage.models import DiskConfig, DriverKind

logger = get_logger(__name__)

# 驱动构造函数：(磁盘名称, 磁盘配置) -> 驱动实例
DriverConstructor = Callable[[str, DiskConfig], StorageDriver]

# 驱动注册表
_driver_registry: Dict[DriverKind, DriverConstructor] = {}


def _to_kind(kind: Union[DriverKind, str]) -> DriverKind:
    """将配置中的驱动名称转换为 DriverKind"""
    if isinstance(kind, DriverKind):
        return kind
    try:
        return DriverKind(str(kind).strip().lower())
    except ValueError as e:
        available = ', '.join(item.value for item in DriverKind)
        raise UnknownDriverKind(
            "存储驱动 '{}' 不存在，可用驱动: {}".format(kind, available),
            details={'driver': str(kind)}
        ) from e


def register_driver(kind: Union[DriverKind, str], constructor: DriverConstructor) -> None:
    """
    注册存储驱动

    Args:
        kind: 驱动类型（如 DriverKind.S3）
        constructor: 驱动类或构造函数

    Example:
        >>> register_driver(DriverKind.S3, S3Storage)
    """
    driver_kind = _to_kind(kind)
    _driver_registry[driver_kind] = constructor
    logger.info(log_messages.DRIVER_REGISTERED, driver=driver_kind.value)


def get_driver_class(kind: Union[DriverKind, str]) -> DriverConstructor:
    """
    获取驱动构造函数

    Args:
        kind: 驱动类型

    Returns:
        DriverConstructor: 驱动类或构造函数

    Raises:
        UnknownDriverKind: 驱动类型不存在或未注册时抛出
    """
    driver_kind = _to_kind(kind)
    constructor = _driver_registry.get(driver_kind)
    if constructor is None:
        available = ', '.join(list_available_drivers()) or '无'
        raise UnknownDriverKind(
            "存储驱动 '{}' 未注册，已注册驱动: {}".format(driver_kind.value, available),
            details={'driver': driver_kind.value}
        )
    return constructor


def resolve_driver(disk: str, config: DiskConfig) -> StorageDriver:
    """
    根据磁盘配置创建驱动实例

    Args:
        disk: 磁盘名称
        config: 磁盘配置

    Returns:
        StorageDriver: 驱动实例

    Raises:
        ConfigurationError: 驱动类型未知、缺少必填配置或创建失败时抛出
    """
    try:
        constructor = get_driver_class(config.driver)
        driver = constructor(disk, config)
    except ConfigurationError as e:
        logger.error(log_messages.DRIVER_CREATE_FAILED, disk=disk, driver=config.driver, error=str(e))
        raise
    except Exception as e:
        logger.error(log_messages.DRIVER_CREATE_FAILED, disk=disk, driver=config.driver, error=str(e))
        raise ConfigurationError(
            "创建存储驱动 '{}' 失败: {}".format(config.driver, str(e)),
            details={'disk': disk, 'driver': config.driver}
        ) from e

    logger.info(log_messages.DRIVER_CREATED, disk=disk, driver=config.driver)
    return driver


def list_available_drivers() -> List[str]:
    """
    列出所有已注册的驱动

    Returns:
        List[str]: 驱动类型列表
    """
    return [kind.value for kind in _driver_registry]


class DriverManager:
    """
    驱动管理器

    按磁盘名称缓存驱动实例，同一磁盘多次获取返回同一个驱动。
    """

    def __init__(self, resolver: Optional[Callable[[str, DiskConfig], StorageDriver]] = None) -> None:
        self._resolver = resolver or resolve_driver
        self._drivers: Dict[str, StorageDriver] = {}

    def get_driver(self, disk: str, config: DiskConfig) -> StorageDriver:
        """
        获取磁盘对应的驱动，不存在时创建

        Args:
            disk: 磁盘名称
            config: 磁盘配置

        Returns:
            StorageDriver: 驱动实例
        """
        driver = self._drivers.get(disk)
        if driver is None:
            driver = self._resolver(disk, config)
            self._drivers[disk] = driver
        return driver

    @property
    def drivers(self) -> Dict[str, StorageDriver]:
        """已创建的驱动（磁盘名称 -> 驱动）"""
        return dict(self._drivers)

    def close(self) -> None:
        """关闭并移除所有已创建的驱动"""
        for driver in self._drivers.values():
            driver.close()
        self._drivers.clear()


__all__ = [
    'DriverConstructor',
    'register_driver',
    'get_driver_class',
    'resolve_driver',
    'list_available_drivers',
    'DriverManager',
]
