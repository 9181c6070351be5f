"""
测试专用的 mock 工具和辅助函数
提供内存版S3客户端和常用的 mock 对象，供所有测试使用
"""

import functools
import hashlib
import io
import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Set
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError


def make_client_error(code: str, operation_name: str, message: str = "") -> ClientError:
    """构建与 botocore 一致的 ClientError"""
    return ClientError(
        {'Error': {'Code': code, 'Message': message or code}},
        operation_name
    )


@dataclass
class StoredObject:
    """内存中保存的对象"""
    data: bytes
    content_type: str
    last_modified: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class FakeS3Client:
    """
    内存版S3客户端

    只实现驱动用到的接口，参数名与 boto3 保持一致，错误以 ClientError 抛出。
    额外记录调用信息，便于断言请求形态。
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.objects: Dict[str, Dict[str, StoredObject]] = {}
        self.uploads: Dict[str, Dict[str, Any]] = {}
        self.page_size = page_size

        # 注入故障
        self.fail_delete_keys: Set[str] = set()
        self.fail_batch_numbers: Set[int] = set()

        # 调用记录
        self.batch_delete_sizes: List[int] = []
        self.completed_part_numbers: List[List[int]] = []
        self.presign_count = 0

        self._upload_ids = itertools.count(1)

    def _bucket(self, name: str) -> Dict[str, StoredObject]:
        return self.objects.setdefault(name, {})

    @staticmethod
    def _read_body(body: Any) -> bytes:
        if hasattr(body, 'read'):
            return body.read()
        return bytes(body)

    # ==================== 对象读写 ====================

    def put_object(self, Bucket: str, Key: str, Body: Any, ContentType: str = "binary/octet-stream", **kwargs):
        data = self._read_body(Body)
        self._bucket(Bucket)[Key] = StoredObject(data=data, content_type=ContentType)
        return {'ETag': '"{}"'.format(hashlib.md5(data).hexdigest())}

    def get_object(self, Bucket: str, Key: str, **kwargs):
        stored = self._bucket(Bucket).get(Key)
        if stored is None:
            raise make_client_error('NoSuchKey', 'GetObject')
        return {
            'Body': io.BytesIO(stored.data),
            'ContentType': stored.content_type,
            'ContentLength': len(stored.data),
        }

    def head_object(self, Bucket: str, Key: str, **kwargs):
        stored = self._bucket(Bucket).get(Key)
        if stored is None:
            raise make_client_error('404', 'HeadObject', 'Not Found')
        return {
            'ContentType': stored.content_type,
            'ContentLength': len(stored.data),
            'LastModified': stored.last_modified,
        }

    def list_objects_v2(self, Bucket: str, Prefix: str = "", ContinuationToken: Optional[str] = None, **kwargs):
        keys = sorted(key for key in self._bucket(Bucket) if key.startswith(Prefix))
        start = int(ContinuationToken) if ContinuationToken else 0
        page = keys[start:start + self.page_size]
        response: Dict[str, Any] = {
            'KeyCount': len(page),
            'IsTruncated': start + self.page_size < len(keys),
        }
        if page:
            response['Contents'] = [
                {
                    'Key': key,
                    'LastModified': self._bucket(Bucket)[key].last_modified,
                    'Size': len(self._bucket(Bucket)[key].data),
                }
                for key in page
            ]
        if response['IsTruncated']:
            response['NextContinuationToken'] = str(start + self.page_size)
        return response

    def copy_object(self, Bucket: str, CopySource: Dict[str, str], Key: str, **kwargs):
        source = self._bucket(CopySource['Bucket']).get(CopySource['Key'])
        if source is None:
            raise make_client_error('NoSuchKey', 'CopyObject')
        self._bucket(Bucket)[Key] = StoredObject(data=source.data, content_type=source.content_type)
        return {'CopyObjectResult': {}}

    # ==================== 删除 ====================

    def delete_object(self, Bucket: str, Key: str, **kwargs):
        if Key in self.fail_delete_keys:
            raise make_client_error('AccessDenied', 'DeleteObject')
        self._bucket(Bucket).pop(Key, None)
        return {}

    def delete_objects(self, Bucket: str, Delete: Dict[str, Any], **kwargs):
        objects = Delete['Objects']
        self.batch_delete_sizes.append(len(objects))
        if len(self.batch_delete_sizes) in self.fail_batch_numbers:
            raise make_client_error('InternalError', 'DeleteObjects')
        if len(objects) > 1000:
            raise make_client_error('MalformedXML', 'DeleteObjects')

        deleted = []
        for item in objects:
            self._bucket(Bucket).pop(item['Key'], None)
            deleted.append({'Key': item['Key']})
        return {'Deleted': deleted}

    # ==================== 分片上传 ====================

    def create_multipart_upload(self, Bucket: str, Key: str, **kwargs):
        upload_id = "upload-{}".format(next(self._upload_ids))
        self.uploads[upload_id] = {
            'bucket': Bucket,
            'key': Key,
            'parts': {},
            'content_type': kwargs.get('ContentType', 'binary/octet-stream'),
            'acl': kwargs.get('ACL'),
        }
        return {'Bucket': Bucket, 'Key': Key, 'UploadId': upload_id}

    def upload_part(self, Bucket: str, Key: str, UploadId: str, PartNumber: int, Body: Any, **kwargs):
        upload = self.uploads.get(UploadId)
        if upload is None:
            raise make_client_error('NoSuchUpload', 'UploadPart')
        data = self._read_body(Body)
        etag = '"{}"'.format(hashlib.md5(data).hexdigest())
        upload['parts'][PartNumber] = (etag, data)
        return {'ETag': etag}

    def complete_multipart_upload(self, Bucket: str, Key: str, UploadId: str, MultipartUpload: Dict[str, Any], **kwargs):
        upload = self.uploads.get(UploadId)
        if upload is None:
            raise make_client_error('NoSuchUpload', 'CompleteMultipartUpload')

        numbers = [part['PartNumber'] for part in MultipartUpload['Parts']]
        self.completed_part_numbers.append(numbers)
        if numbers != sorted(numbers) or len(set(numbers)) != len(numbers):
            raise make_client_error('InvalidPartOrder', 'CompleteMultipartUpload')

        chunks = []
        for part in MultipartUpload['Parts']:
            stored = upload['parts'].get(part['PartNumber'])
            if stored is None or stored[0] != part['ETag']:
                raise make_client_error('InvalidPart', 'CompleteMultipartUpload')
            chunks.append(stored[1])

        self._bucket(Bucket)[Key] = StoredObject(data=b"".join(chunks), content_type=upload['content_type'])
        del self.uploads[UploadId]
        return {'Bucket': Bucket, 'Key': Key}

    def abort_multipart_upload(self, Bucket: str, Key: str, UploadId: str, **kwargs):
        if self.uploads.pop(UploadId, None) is None:
            raise make_client_error('NoSuchUpload', 'AbortMultipartUpload')
        return {}

    # ==================== 签名 ====================

    def generate_presigned_url(self, ClientMethod: str, Params: Dict[str, Any], ExpiresIn: int = 3600, **kwargs):
        self.presign_count += 1
        return "https://{}.s3.test.local/{}?X-Amz-Expires={}&X-Amz-Signature=sig{}".format(
            Params['Bucket'], Params['Key'], ExpiresIn, self.presign_count
        )


class MockBuilder:
    """Mock对象构建器 - 用于创建常用的mock对象"""

    @staticmethod
    def create_mock_s3_client():
        """创建S3客户端的mock对象"""
        mock = MagicMock()

        mock.put_object.return_value = {'ETag': '"test-etag"'}
        mock.create_multipart_upload.return_value = {'UploadId': 'test-upload-id'}
        mock.upload_part.return_value = {'ETag': '"test-part-etag"'}
        mock.complete_multipart_upload.return_value = {}
        mock.abort_multipart_upload.return_value = {}
        mock.delete_object.return_value = {}
        mock.delete_objects.return_value = {'Deleted': []}
        mock.copy_object.return_value = {}
        mock.list_objects_v2.return_value = {'Contents': [], 'IsTruncated': False}
        mock.generate_presigned_url.return_value = (
            "https://test-bucket.s3.test.local/test-key?X-Amz-Signature=test"
        )

        return mock

    @staticmethod
    def create_disk_definition(**overrides: Any) -> Dict[str, Any]:
        """创建S3磁盘定义"""
        definition = {
            'driver': 's3',
            'region': 'us-east-1',
            'bucket': 'test-bucket',
            'accessKeyId': 'test-access-key',
            'accessSecretKey': 'test-secret-key',
        }
        definition.update(overrides)
        return definition


def mock_config(test_config: Dict[str, Any]) -> Callable:
    """
    装饰器：mock配置
    用于临时修改 drivestore.core.config.settings 中的配置项

    Args:
        test_config: 测试配置字典

    Returns:
        Callable: 装饰器函数
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            from drivestore.core.config import settings
            with patch.multiple(settings, **test_config):
                return func(*args, **kwargs)
        return wrapper
    return decorator
