"""
应用配置管理模块
统一管理所有配置信息，包括环境变量和文件配置
"""

from typing import Any, Dict, Optional

from pydantic import ConfigDict, field_validator
from pydantic_settings import BaseSettings

from drivestore.utils.config_utils import get_project_root, parse_json_object_config


class Settings(BaseSettings):
    """应用配置类 - 统一管理所有配置信息"""

    # ==================== 基础配置 ====================
    app_name: str = "drivestore"
    app_debug: bool = False

    # ==================== 日志配置 ====================
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # ==================== 存储磁盘配置 ====================
    storage_default_disk: str = "default"
    storage_driver: str = "s3"
    storage_visibility: str = "public"
    storage_base_path: str = ""
    storage_base_url: str = ""
    storage_cdn_endpoint: str = ""

    # 额外磁盘定义，JSON对象：{"archive": {"driver": "s3", "bucket": "...", ...}}
    storage_disks: str = ""

    # ==================== S3存储配置 ====================
    aws_region: str = ""
    aws_endpoint: str = ""
    aws_access_key: str = ""
    aws_secret_key: str = ""
    s3_bucket: str = ""
    s3_force_path_style: bool = True

    # ==================== 签名URL配置 ====================
    storage_signed_url_ttl_minutes: int = 20
    storage_signed_url_margin_seconds: int = 300
    storage_signed_url_cache_size: int = 1000

    # ==================== 流式读取配置 ====================
    storage_stream_chunk_size: int = 65536  # 64KB
    storage_stream_queue_size: int = 8

    # ==================== 验证器 ====================
    @field_validator("storage_visibility")
    @classmethod
    def normalize_visibility(cls, value: str) -> str:
        """规范化磁盘可见性配置"""
        normalized = (value or "public").strip().lower()
        if normalized not in ("public", "private"):
            raise ValueError("storage_visibility 只能是 public 或 private")
        return normalized

    @field_validator("storage_stream_chunk_size", "storage_stream_queue_size", "storage_signed_url_cache_size")
    @classmethod
    def ensure_positive(cls, value: int) -> int:
        """校验必须为正数的配置项"""
        if value <= 0:
            raise ValueError("配置值必须大于0")
        return value

    # ==================== 计算属性 ====================
    @property
    def extra_disks(self) -> Dict[str, Any]:
        """解析额外磁盘定义"""
        return parse_json_object_config(self.storage_disks)

    model_config = ConfigDict(
        env_file=str(get_project_root() / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


def get_settings() -> Settings:
    """获取应用配置实例"""
    return Settings()


# 全局配置实例
settings = get_settings()
