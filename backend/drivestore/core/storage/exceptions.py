"""
存储服务异常定义
定义存储模块中使用的所有异常类型
"""

from typing import Any, Dict, Optional


class StorageError(Exception):
    """
    存储操作基础异常

    所有存储相关异常的基类。

    Attributes:
        message: 错误消息
        code: 错误码
        details: 错误详情
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigurationError(StorageError):
    """存储配置错误"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: str = "CONFIG_ERROR"
    ) -> None:
        super().__init__(message, code=code, details=details)


class UnknownDriverKind(ConfigurationError):
    """驱动类型未注册"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details, code="UNKNOWN_DRIVER")


class MissingRequiredConfig(ConfigurationError):
    """驱动缺少必填配置（region、凭证等）"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details, code="MISSING_CONFIG")


class UploadError(StorageError):
    """文件上传错误"""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        code: str = "UPLOAD_ERROR"
    ) -> None:
        super().__init__(message, code=code, details=details)


class UploadInitError(UploadError):
    """分片上传创建失败，服务端未返回UploadId"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details, code="UPLOAD_INIT_ERROR")


class PartUploadError(UploadError):
    """分片上传失败，服务端未返回ETag或分片编号非法"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, details=details, code="PART_UPLOAD_ERROR")


class URLError(StorageError):
    """签名URL生成错误"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="URL_ERROR", details=details)


class CopyError(StorageError):
    """对象复制错误"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="COPY_ERROR", details=details)


class StreamError(StorageError):
    """流式读取错误，由后台读取任务传递给消费者"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, code="STREAM_ERROR", details=details)


__all__ = [
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
