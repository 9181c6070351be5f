"""
存储驱动抽象基类
定义统一的存储驱动接口，每种存储后端实现一个驱动
"""

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, List, Optional, Sequence, Union

from drivestore.core.storage.models import (
    DiskConfig,
    FileMetadata,
    FileOptions,
    ObjectListing,
    PutResult,
    UploadedPart,
)
from drivestore.core.storage.stream import ObjectStream

# 写入内容：字节或可读的二进制文件对象
FileContent = Union[bytes, bytearray, BinaryIO]


class StorageDriver(ABC):
    """
    存储驱动抽象基类

    查询与清理类操作（get、exists、meta、delete 系列、list_objects、
    abort_multipart_upload）失败时返回哨兵值而不抛异常；
    建立状态的操作（put、分片上传、copy、signed_url）失败时抛出 StorageError。
    """

    def __init__(self, disk: str, config: DiskConfig) -> None:
        self.disk = disk
        self._config = config

    @property
    def config(self) -> DiskConfig:
        """驱动实例的磁盘配置"""
        return self._config

    @property
    @abstractmethod
    def client(self) -> Any:
        """驱动使用的底层客户端"""

    # ==================== 写入 ====================

    @abstractmethod
    async def put(
        self,
        path: str,
        content: FileContent,
        options: Optional[FileOptions] = None
    ) -> PutResult:
        """
        写入文件，已存在时覆盖

        Args:
            path: 存储路径
            content: 文件内容
            options: 写入选项，可覆盖内容类型

        Returns:
            PutResult: 写入结果

        Raises:
            UploadError: 写入失败时抛出
        """

    # ==================== 分片上传 ====================

    @abstractmethod
    async def create_multipart_upload(
        self,
        path: str,
        options: Optional[FileOptions] = None
    ) -> str:
        """
        创建分片上传

        Returns:
            str: 上传ID，后续所有分片调用都需要携带

        Raises:
            UploadInitError: 服务端未返回上传ID时抛出
        """

    @abstractmethod
    async def upload_part(
        self,
        path: str,
        content: FileContent,
        upload_id: str,
        part_number: int
    ) -> UploadedPart:
        """
        上传一个分片

        Raises:
            PartUploadError: 服务端未返回ETag时抛出
        """

    @abstractmethod
    async def complete_multipart_upload(
        self,
        path: str,
        upload_id: str,
        parts: Sequence[UploadedPart]
    ) -> PutResult:
        """完成分片上传，分片按编号升序合并"""

    @abstractmethod
    async def abort_multipart_upload(self, path: str, upload_id: str) -> bool:
        """取消分片上传，失败时返回False"""

    # ==================== 读取 ====================

    @abstractmethod
    async def get(self, path: str) -> Optional[bytes]:
        """读取文件全部内容，不存在或读取失败时返回None"""

    @abstractmethod
    def get_stream(self, path: str) -> ObjectStream:
        """
        获取文件流

        立即返回流对象，由后台任务填充数据；读取错误在消费时抛出。
        """

    @abstractmethod
    async def list_objects(self, path: str) -> List[ObjectListing]:
        """列举前缀为 path 的全部对象，失败时返回空列表"""

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """文件是否存在"""

    @abstractmethod
    async def missing(self, path: str) -> bool:
        """文件是否不存在"""

    @abstractmethod
    async def meta(self, path: str) -> FileMetadata:
        """获取文件元数据，失败时返回零值记录"""

    # ==================== URL ====================

    @abstractmethod
    def url(self, path: str) -> str:
        """获取持久访问URL，私有磁盘返回空字符串"""

    @abstractmethod
    def signed_url(self, path: str, expire_in_minutes: Optional[int] = None) -> str:
        """
        获取限时签名URL

        Args:
            path: 存储路径
            expire_in_minutes: 有效期（分钟），不指定时使用默认值

        Raises:
            URLError: 签名失败时抛出
        """

    # ==================== 删除 ====================

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """删除单个文件"""

    @abstractmethod
    async def delete_in_batches(self, paths: Sequence[str]) -> bool:
        """分批删除多个文件"""

    @abstractmethod
    async def delete_path(self, path: str) -> bool:
        """删除路径下的全部文件"""

    # ==================== 复制移动 ====================

    @abstractmethod
    async def copy(self, path: str, new_path: str) -> PutResult:
        """在同一磁盘内复制文件"""

    @abstractmethod
    async def move(self, path: str, new_path: str) -> PutResult:
        """在同一磁盘内移动文件（先复制再删除，非原子操作）"""

    def close(self) -> None:
        """释放驱动持有的资源"""


__all__ = ['FileContent', 'StorageDriver']
