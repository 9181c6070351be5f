"""
S3存储驱动
基于 boto3 实现 StorageDriver 接口，支持 AWS S3 及 S3 兼容服务（MinIO、R2 等）
"""

import asyncio
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

import boto3
from botocore.config import Config

from drivestore.core.config import settings
from drivestore.core.log_messages import log_messages
from drivestore.core.log_utils import get_logger
from drivestore.core.storage.base_storage import FileContent, StorageDriver
from drivestore.core.storage.exceptions import (
    CopyError,
    MissingRequiredConfig,
    PartUploadError,
    URLError,
    UploadError,
    UploadInitError,
)
from drivestore.core.storage.models import (
    DiskConfig,
    DriverKind,
    FileMetadata,
    FileOptions,
    ObjectListing,
    PutResult,
    UploadedPart,
)
from drivestore.core.storage.signed_url_cache import SignedUrlCache
from drivestore.core.storage.stream import ObjectStream
from drivestore.core.storage.utils.mime import get_mime_from_extension
from drivestore.utils.config_utils import strip_slashes

logger = get_logger(__name__)

T = TypeVar('T')


class S3Storage(StorageDriver):
    """
    S3存储驱动

    每个驱动实例对应一个磁盘，持有一个 boto3 客户端（线程安全，
    在线程池中被所有并发操作共享）和一个签名URL缓存。
    """

    # 驱动类型，用于注册表
    DRIVER_KIND: DriverKind = DriverKind.S3

    # 单次批量删除的最大对象数（服务端限制）
    MAX_BATCH_DELETE: int = 1000

    # 分片编号上限（服务端限制）
    MAX_PART_NUMBER: int = 10000

    # 必填配置项
    REQUIRED_FIELDS = ("region", "access_key_id", "access_secret_key")

    def __init__(
        self,
        disk: str,
        config: DiskConfig,
        url_cache: Optional[SignedUrlCache] = None
    ) -> None:
        """
        初始化S3驱动

        Args:
            disk: 磁盘名称
            config: 磁盘配置
            url_cache: 签名URL缓存，不指定时按全局配置新建

        Raises:
            MissingRequiredConfig: 缺少 region 或凭证时抛出
        """
        super().__init__(disk, config)

        for field in self.REQUIRED_FIELDS:
            if not getattr(config, field):
                raise MissingRequiredConfig(
                    "磁盘 '{}' 缺少S3必填配置: {}".format(disk, field),
                    details={'disk': disk, 'field': field}
                )

        self._bucket = config.bucket or ""
        self._base_prefix = strip_slashes(config.base_path or "")
        self._client = self._create_client()
        # 空缓存 __len__ 为0，必须按 None 判断
        if url_cache is None:
            url_cache = SignedUrlCache(
                margin_seconds=settings.storage_signed_url_margin_seconds,
                max_entries=settings.storage_signed_url_cache_size
            )
        self._url_cache = url_cache
        self._chunk_size = settings.storage_stream_chunk_size
        self._queue_size = settings.storage_stream_queue_size

    def _create_client(self):
        """
        创建S3客户端

        Returns:
            S3.Client: boto3 S3客户端
        """
        addressing_style = "path" if self.config.force_path_style else "auto"
        return boto3.client(
            "s3",
            region_name=self.config.region,
            endpoint_url=self.config.endpoint or None,
            aws_access_key_id=self.config.access_key_id,
            aws_secret_access_key=self.config.access_secret_key,
            config=Config(
                signature_version="s3v4",
                s3={"addressing_style": addressing_style}
            ),
        )

    @property
    def client(self):
        """底层 boto3 客户端"""
        return self._client

    @property
    def url_cache(self) -> SignedUrlCache:
        """驱动持有的签名URL缓存"""
        return self._url_cache

    async def _run_in_executor(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        在线程池中运行同步函数

        Args:
            func: 同步函数
            *args: 函数位置参数
            **kwargs: 函数关键字参数

        Returns:
            函数执行结果
        """
        loop = asyncio.get_event_loop()
        bound_func = partial(func, *args, **kwargs)
        return await loop.run_in_executor(None, bound_func)

    def _key(self, path: str) -> str:
        """将调用方路径转换为对象键（附加 base_path 前缀）"""
        if not self._base_prefix:
            return path
        return "{}/{}".format(self._base_prefix, path.lstrip("/"))

    def _relative(self, key: str) -> str:
        """将对象键还原为调用方路径"""
        if not self._base_prefix:
            return key
        prefix = self._base_prefix + "/"
        return key[len(prefix):] if key.startswith(prefix) else key

    @staticmethod
    def _body(content: FileContent) -> Any:
        if isinstance(content, bytearray):
            return bytes(content)
        return content

    # ==================== 写入 ====================

    async def put(
        self,
        path: str,
        content: FileContent,
        options: Optional[FileOptions] = None
    ) -> PutResult:
        """
        写入文件到S3

        内容类型优先使用 options.mime_type，否则根据扩展名推断。不做重试。

        Args:
            path: 存储路径
            content: 文件内容
            options: 写入选项

        Returns:
            PutResult: 写入结果

        Raises:
            UploadError: 写入失败时抛出
        """
        key = self._key(path)
        mime_type = self._resolve_mime_type(path, options)

        try:
            await self._run_in_executor(
                self._client.put_object,
                Bucket=self._bucket,
                Key=key,
                Body=self._body(content),
                ContentType=mime_type
            )
        except Exception as e:
            logger.error(log_messages.FILE_PUT_FAILED, disk=self.disk, key=key, error=str(e))
            raise UploadError("写入文件失败: {}".format(str(e)), details={'key': key}) from e

        logger.info(log_messages.FILE_PUT_SUCCESS, disk=self.disk, key=key, mime_type=mime_type)
        return PutResult(path=path, url=self.url(path))

    @staticmethod
    def _resolve_mime_type(path: str, options: Optional[FileOptions]) -> str:
        if options is not None and options.mime_type:
            return options.mime_type
        return get_mime_from_extension(path)

    # ==================== 分片上传 ====================

    async def create_multipart_upload(
        self,
        path: str,
        options: Optional[FileOptions] = None
    ) -> str:
        """
        创建分片上传

        驱动不保存会话状态，返回的上传ID是调用方唯一的句柄。

        Args:
            path: 存储路径
            options: 写入选项

        Returns:
            str: 上传ID

        Raises:
            UploadInitError: 请求失败或服务端未返回上传ID时抛出
        """
        key = self._key(path)
        acl = "private" if self.config.is_private else "public-read"

        try:
            response = await self._run_in_executor(
                self._client.create_multipart_upload,
                Bucket=self._bucket,
                Key=key,
                ContentType=self._resolve_mime_type(path, options),
                ACL=acl
            )
        except Exception as e:
            logger.error(log_messages.MULTIPART_CREATE_FAILED, disk=self.disk, key=key, error=str(e))
            raise UploadInitError("创建分片上传失败: {}".format(str(e)), details={'key': key}) from e

        upload_id = (response or {}).get('UploadId')
        if not upload_id:
            logger.error(log_messages.MULTIPART_CREATE_FAILED, disk=self.disk, key=key, error="UploadId缺失")
            raise UploadInitError("创建分片上传失败: 未返回UploadId", details={'key': key})

        logger.info(log_messages.MULTIPART_CREATED, disk=self.disk, key=key, upload_id=upload_id)
        return upload_id

    async def upload_part(
        self,
        path: str,
        content: FileContent,
        upload_id: str,
        part_number: int
    ) -> UploadedPart:
        """
        上传一个分片

        分片编号由调用方分配，同一会话内唯一，不要求连续。

        Args:
            path: 存储路径
            content: 分片内容
            upload_id: 上传ID
            part_number: 分片编号（1-10000）

        Returns:
            UploadedPart: 分片ETag与编号

        Raises:
            PartUploadError: 编号非法、请求失败或服务端未返回ETag时抛出
        """
        key = self._key(path)
        if not 1 <= part_number <= self.MAX_PART_NUMBER:
            raise PartUploadError(
                "分片编号必须在1到{}之间: {}".format(self.MAX_PART_NUMBER, part_number),
                details={'key': key, 'part_number': part_number}
            )

        try:
            response = await self._run_in_executor(
                self._client.upload_part,
                Bucket=self._bucket,
                Key=key,
                UploadId=upload_id,
                PartNumber=part_number,
                Body=self._body(content)
            )
        except Exception as e:
            logger.error(
                log_messages.MULTIPART_PART_FAILED,
                disk=self.disk, key=key, upload_id=upload_id, part_number=part_number, error=str(e)
            )
            raise PartUploadError(
                "分片上传失败: {}".format(str(e)),
                details={'key': key, 'part_number': part_number}
            ) from e

        etag = (response or {}).get('ETag')
        if not etag:
            raise PartUploadError(
                "分片上传失败: 未返回ETag",
                details={'key': key, 'part_number': part_number}
            )

        logger.debug(
            log_messages.MULTIPART_PART_UPLOADED,
            disk=self.disk, key=key, upload_id=upload_id, part_number=part_number
        )
        return UploadedPart(etag=etag, part_number=part_number)

    async def complete_multipart_upload(
        self,
        path: str,
        upload_id: str,
        parts: Sequence[UploadedPart]
    ) -> PutResult:
        """
        完成分片上传

        并发上传时分片可能乱序完成，提交前按分片编号升序排序。

        Args:
            path: 存储路径
            upload_id: 上传ID
            parts: 全部已上传分片

        Returns:
            PutResult: 写入结果

        Raises:
            UploadError: 完成请求失败时抛出
        """
        key = self._key(path)
        ordered_parts = sorted(parts, key=lambda part: part.part_number)

        try:
            await self._run_in_executor(
                self._client.complete_multipart_upload,
                Bucket=self._bucket,
                Key=key,
                UploadId=upload_id,
                MultipartUpload={'Parts': [part.to_provider() for part in ordered_parts]}
            )
        except Exception as e:
            logger.error(
                log_messages.MULTIPART_COMPLETE_FAILED,
                disk=self.disk, key=key, upload_id=upload_id, error=str(e)
            )
            raise UploadError("完成分片上传失败: {}".format(str(e)), details={'key': key}) from e

        logger.info(
            log_messages.MULTIPART_COMPLETED,
            disk=self.disk, key=key, upload_id=upload_id, part_count=len(ordered_parts)
        )
        return PutResult(path=path, url=self.url(path))

    async def abort_multipart_upload(self, path: str, upload_id: str) -> bool:
        """
        取消分片上传

        通常在失败处理流程中调用，因此从不抛出异常。

        Returns:
            bool: 是否取消成功
        """
        key = self._key(path)
        try:
            await self._run_in_executor(
                self._client.abort_multipart_upload,
                Bucket=self._bucket,
                Key=key,
                UploadId=upload_id
            )
        except Exception as e:
            logger.warning(
                log_messages.MULTIPART_ABORT_FAILED,
                disk=self.disk, key=key, upload_id=upload_id, error=str(e)
            )
            return False

        logger.info(log_messages.MULTIPART_ABORTED, disk=self.disk, key=key, upload_id=upload_id)
        return True

    # ==================== 读取 ====================

    async def get(self, path: str) -> Optional[bytes]:
        """
        读取文件全部内容

        不区分对象不存在与读取失败，两者都返回None。
        """
        key = self._key(path)
        try:
            response = await self._run_in_executor(
                self._client.get_object,
                Bucket=self._bucket,
                Key=key
            )
            body = response.get('Body')
            if body is None:
                return None
            try:
                return await self._run_in_executor(body.read)
            finally:
                body.close()
        except Exception as e:
            logger.warning(log_messages.FILE_GET_FAILED, disk=self.disk, key=key, error=str(e))
            return None

    def get_stream(self, path: str) -> ObjectStream:
        """
        获取文件流

        必须在运行中的事件循环内调用。读取任务按块读取对象内容并写入有界队列，
        消费者停止读取时读取任务随之暂停。

        Args:
            path: 存储路径

        Returns:
            ObjectStream: 对象流
        """
        key = self._key(path)
        stream = ObjectStream(key, max_queue_size=self._queue_size)
        return stream.start(partial(self._populate_stream, key))

    async def _populate_stream(self, key: str, stream: ObjectStream) -> None:
        """读取对象内容并推送到流中"""
        try:
            response = await self._run_in_executor(
                self._client.get_object,
                Bucket=self._bucket,
                Key=key
            )
        except Exception as e:
            logger.warning(log_messages.FILE_STREAM_FAILED, disk=self.disk, key=key, error=str(e))
            raise

        body = response.get('Body')
        if body is None:
            return

        try:
            while True:
                chunk = await self._run_in_executor(body.read, self._chunk_size)
                if not chunk:
                    break
                await stream.feed(chunk)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(log_messages.FILE_STREAM_FAILED, disk=self.disk, key=key, error=str(e))
            raise
        finally:
            body.close()

    async def list_objects(self, path: str) -> List[ObjectListing]:
        """
        列举前缀为 path 的全部对象

        自动跟随分页。任一对象键不以请求前缀开头时丢弃整个结果并返回空列表；
        缺少键、修改时间或大小的条目会被过滤。

        Args:
            path: 路径前缀

        Returns:
            List[ObjectListing]: 对象列表，键为相对于 base_path 的路径
        """
        prefix = self._key(path)
        params: Dict[str, Any] = {'Bucket': self._bucket, 'Prefix': prefix}
        listings: List[ObjectListing] = []

        try:
            while True:
                response = await self._run_in_executor(self._client.list_objects_v2, **params)
                if not response:
                    return []

                contents = response.get('Contents') or []
                if not isinstance(contents, list):
                    return []

                for item in contents:
                    key = item.get('Key')
                    if key and not key.startswith(prefix):
                        logger.warning(
                            log_messages.FILE_LIST_OUTSIDE_PREFIX,
                            disk=self.disk, prefix=prefix, key=key
                        )
                        return []
                    last_modified = item.get('LastModified')
                    size = item.get('Size')
                    if not key or last_modified is None or size is None:
                        continue
                    listings.append(ObjectListing(
                        key=self._relative(key),
                        last_modified=last_modified,
                        size=size
                    ))

                token = response.get('NextContinuationToken')
                if not response.get('IsTruncated') or not token:
                    break
                params['ContinuationToken'] = token

        except Exception as e:
            logger.warning(log_messages.FILE_LIST_FAILED, disk=self.disk, prefix=prefix, error=str(e))
            return []

        return listings

    async def _head(self, key: str) -> Optional[Dict[str, Any]]:
        """查询对象头信息，失败时返回None"""
        try:
            return await self._run_in_executor(
                self._client.head_object,
                Bucket=self._bucket,
                Key=key
            )
        except Exception:
            return None

    async def exists(self, path: str) -> bool:
        """检查能否获取文件元数据"""
        return await self._head(self._key(path)) is not None

    async def missing(self, path: str) -> bool:
        """直接探测文件是否不存在"""
        return await self._head(self._key(path)) is None

    async def meta(self, path: str) -> FileMetadata:
        """
        获取文件元数据

        Returns:
            FileMetadata: 文件元数据，查询失败时为零值记录
        """
        key = self._key(path)
        response = await self._head(key)
        if response is None:
            logger.debug(log_messages.FILE_META_FAILED, disk=self.disk, key=key)
            return FileMetadata.empty(path)

        return FileMetadata(
            path=path,
            content_type=response.get('ContentType') or 'application/octet-stream',
            content_length=response.get('ContentLength') or 0,
            last_modified=response.get('LastModified') or datetime.now(timezone.utc)
        )

    # ==================== URL ====================

    def url(self, path: str) -> str:
        """
        获取持久访问URL

        私有磁盘返回空字符串；配置了 cdn_endpoint 或 base_url 时直接拼接，
        否则取签名URL去掉查询参数。
        """
        if self.config.is_private:
            return ""

        public_base = self.config.cdn_endpoint or self.config.base_url
        if public_base:
            return "{}/{}".format(public_base.rstrip("/"), self._key(path).lstrip("/"))

        return self.signed_url(path, settings.storage_signed_url_ttl_minutes).split("?")[0]

    def signed_url(self, path: str, expire_in_minutes: Optional[int] = None) -> str:
        """
        获取限时签名URL

        同一 (路径, 有效期) 的URL在剩余有效期大于安全余量时直接复用。

        Args:
            path: 存储路径
            expire_in_minutes: 有效期（分钟），默认取配置值

        Returns:
            str: 签名URL

        Raises:
            URLError: 有效期不大于0或签名失败时抛出
        """
        key = self._key(path)
        ttl = settings.storage_signed_url_ttl_minutes if expire_in_minutes is None else expire_in_minutes
        if ttl <= 0:
            raise URLError(
                "签名URL有效期必须大于0分钟: {}".format(ttl),
                details={'key': key, 'expire_in_minutes': ttl}
            )

        def _generate() -> str:
            url = self._client.generate_presigned_url(
                'get_object',
                Params={'Bucket': self._bucket, 'Key': key},
                ExpiresIn=ttl * 60
            )
            logger.debug(log_messages.SIGNED_URL_CREATED, disk=self.disk, key=key, ttl_minutes=ttl)
            return url

        try:
            return self._url_cache.get_or_create(key, ttl, _generate)
        except Exception as e:
            logger.error(log_messages.SIGNED_URL_FAILED, disk=self.disk, key=key, error=str(e))
            raise URLError("生成签名URL失败: {}".format(str(e)), details={'key': key}) from e

    # ==================== 删除 ====================

    async def delete(self, path: str) -> bool:
        """
        删除单个文件

        Returns:
            bool: 是否删除成功，请求失败时返回False
        """
        key = self._key(path)
        try:
            await self._run_in_executor(
                self._client.delete_object,
                Bucket=self._bucket,
                Key=key
            )
        except Exception as e:
            logger.warning(log_messages.FILE_DELETE_FAILED, disk=self.disk, key=key, error=str(e))
            return False

        logger.debug(log_messages.FILE_DELETE_SUCCESS, disk=self.disk, key=key)
        return True

    async def delete_in_batches(self, paths: Sequence[str]) -> bool:
        """
        分批删除多个文件

        每批最多 MAX_BATCH_DELETE 个对象，按顺序逐批提交；任一批失败立即返回False，
        后续批次不再执行，调用方无法区分部分失败与全部失败。

        Args:
            paths: 存储路径列表

        Returns:
            bool: 是否全部批次提交成功
        """
        keys = [self._key(path) for path in paths]

        for start in range(0, len(keys), self.MAX_BATCH_DELETE):
            batch = keys[start:start + self.MAX_BATCH_DELETE]
            try:
                response = await self._run_in_executor(
                    self._client.delete_objects,
                    Bucket=self._bucket,
                    Delete={
                        'Objects': [{'Key': key} for key in batch],
                        'Quiet': False
                    }
                )
            except Exception as e:
                logger.error(
                    log_messages.BATCH_DELETE_FAILED,
                    disk=self.disk, batch_start=start, batch_size=len(batch), error=str(e)
                )
                return False

            errors = (response or {}).get('Errors') or []
            if errors:
                logger.warning(
                    log_messages.BATCH_DELETE_PARTIAL,
                    disk=self.disk, batch_start=start, failed_count=len(errors)
                )

        return True

    async def delete_path(self, path: str) -> bool:
        """
        删除路径下的全部文件

        先列举再逐个删除，非原子操作：中途失败会留下部分已删除的目录。

        Returns:
            bool: 是否全部删除成功
        """
        contents = await self.list_objects(path)

        succeeded = True
        for item in contents:
            if not await self.delete(item.key):
                succeeded = False

        if not succeeded:
            logger.warning(log_messages.PATH_DELETE_FAILED, disk=self.disk, prefix=self._key(path))
        return succeeded

    # ==================== 复制移动 ====================

    async def copy(self, path: str, new_path: str) -> PutResult:
        """
        在同一磁盘内进行服务端复制

        Raises:
            CopyError: 复制失败时抛出
        """
        source_key = self._key(path)
        target_key = self._key(new_path)
        try:
            await self._run_in_executor(
                self._client.copy_object,
                Bucket=self._bucket,
                CopySource={'Bucket': self._bucket, 'Key': source_key},
                Key=target_key
            )
        except Exception as e:
            logger.error(
                log_messages.FILE_COPY_FAILED,
                disk=self.disk, key=source_key, new_key=target_key, error=str(e)
            )
            raise CopyError(
                "复制文件失败: {}".format(str(e)),
                details={'key': source_key, 'new_key': target_key}
            ) from e

        return PutResult(path=new_path, url=self.url(new_path))

    async def move(self, path: str, new_path: str) -> PutResult:
        """
        在同一磁盘内移动文件

        先复制再删除源文件，非原子操作：删除失败时源文件与目标文件同时存在，
        仅记录警告日志，不抛出异常。

        Raises:
            CopyError: 复制失败时抛出
        """
        result = await self.copy(path, new_path)
        if not await self.delete(path):
            logger.warning(
                log_messages.FILE_MOVE_SOURCE_LEFT,
                disk=self.disk, key=self._key(path), new_key=self._key(new_path)
            )
        return result

    def close(self) -> None:
        """清空签名URL缓存"""
        self._url_cache.clear()


__all__ = ['S3Storage']
