"""
存储服务数据模型
定义磁盘配置以及存储操作中使用的所有数据结构
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# 元数据查询失败时使用的零值时间
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DriverKind(str, Enum):
    """存储驱动类型"""
    S3 = "s3"


class Visibility(str, Enum):
    """磁盘可见性"""
    PUBLIC = "public"
    PRIVATE = "private"


class DiskConfig(BaseModel):
    """
    磁盘配置

    一个磁盘对应一个独立配置的存储目标（存储桶 + 凭证 + 访问策略）。
    加载后不可修改。同时接受原配置文件中的驼峰字段名（如 accessKeyId）。
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    driver: str = Field(description="驱动类型，如 s3")
    region: Optional[str] = Field(default=None, description="存储地域")
    bucket: Optional[str] = Field(default=None, description="存储桶名称")
    endpoint: Optional[str] = Field(default=None, description="自定义服务端点（S3兼容服务）")
    access_key_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("access_key_id", "accessKeyId"),
        description="访问密钥ID"
    )
    access_secret_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("access_secret_key", "accessSecretKey"),
        description="访问密钥"
    )
    force_path_style: bool = Field(
        default=False,
        validation_alias=AliasChoices("force_path_style", "forcePathStyle", "s3ForcePathStyle"),
        description="是否使用路径风格寻址（bucket放在路径中而非子域名）"
    )
    visibility: Visibility = Field(default=Visibility.PUBLIC, description="磁盘可见性")
    base_path: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("base_path", "basePath"),
        description="所有对象键的公共前缀"
    )
    base_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("base_url", "baseUrl"),
        description="公开访问的基础URL"
    )
    cdn_endpoint: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("cdn_endpoint", "cdnEndpoint"),
        description="CDN访问端点，优先于 base_url"
    )

    @property
    def is_private(self) -> bool:
        """磁盘是否为私有"""
        return self.visibility == Visibility.PRIVATE


class StorageOptions(BaseModel):
    """存储配置：默认磁盘名称 + 全部磁盘定义"""

    model_config = ConfigDict(frozen=True)

    default: str = "default"
    disks: Dict[str, DiskConfig] = Field(default_factory=dict)


@dataclass(frozen=True)
class FileOptions:
    """
    单次写入的覆盖选项

    Attributes:
        mime_type: 内容类型，未指定时根据扩展名推断
    """
    mime_type: Optional[str] = None


@dataclass(frozen=True)
class PutResult:
    """
    写入结果（put / 完成分片上传 / copy / move）

    Attributes:
        path: 存储路径
        url: 访问URL，私有磁盘为空字符串
    """
    path: str
    url: str


@dataclass(frozen=True)
class UploadedPart:
    """
    已上传的分片

    Attributes:
        etag: 服务端返回的内容标签
        part_number: 分片编号（从1开始，由调用方分配）
    """
    etag: str
    part_number: int

    def to_provider(self) -> Dict[str, Any]:
        """转换为完成分片上传请求中的分片结构"""
        return {"ETag": self.etag, "PartNumber": self.part_number}


@dataclass(frozen=True)
class ObjectListing:
    """
    列举结果中的一个对象

    Attributes:
        key: 对象键
        last_modified: 最后修改时间
        size: 大小（字节）
    """
    key: str
    last_modified: datetime
    size: int


@dataclass(frozen=True)
class FileMetadata:
    """
    文件元数据

    查询失败时返回零值记录（空类型、长度0、纪元时间），调用方应视为"不存在"。
    注意：零值记录与真实的零字节对象仅能通过 exists() 区分。

    Attributes:
        path: 存储路径
        content_type: 内容类型
        content_length: 内容长度
        last_modified: 最后修改时间
    """
    path: str
    content_type: str
    content_length: int
    last_modified: datetime

    @classmethod
    def empty(cls, path: str) -> "FileMetadata":
        """构建零值元数据记录"""
        return cls(path=path, content_type="", content_length=0, last_modified=EPOCH)

    @property
    def is_empty(self) -> bool:
        """是否为零值记录"""
        return (
            self.content_type == ""
            and self.content_length == 0
            and self.last_modified == EPOCH
        )


__all__ = [
    'EPOCH',
    'DriverKind',
    'Visibility',
    'DiskConfig',
    'StorageOptions',
    'FileOptions',
    'PutResult',
    'UploadedPart',
    'ObjectListing',
    'FileMetadata',
]
