"""
测试配置和fixtures
为所有测试提供共享的配置和fixtures

测试环境变量必须在导入 drivestore 之前设置，全局配置在导入时即被加载
"""

import os

os.environ.setdefault("LOG_LEVEL", "ERROR")
os.environ.setdefault("AWS_REGION", "us-east-1")
os.environ.setdefault("AWS_ACCESS_KEY", "test-access-key")
os.environ.setdefault("AWS_SECRET_KEY", "test-secret-key")
os.environ.setdefault("S3_BUCKET", "test-bucket")

import pytest

from drivestore.core.storage import DiskConfig, S3Storage, SignedUrlCache
from tests.utils import FakeS3Client, MockBuilder


class FakeClock:
    """可手动推进的时钟，用于签名URL缓存测试"""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(scope="function")
def fake_clock():
    """测试时钟fixture"""
    return FakeClock()


@pytest.fixture(scope="function")
def fake_s3_client():
    """内存版S3客户端fixture"""
    return FakeS3Client()


@pytest.fixture(scope="function")
def disk_config():
    """默认S3磁盘配置fixture"""
    return DiskConfig.model_validate(MockBuilder.create_disk_definition())


@pytest.fixture(scope="function")
def make_storage(fake_s3_client, fake_clock):
    """
    S3驱动工厂fixture

    创建真实的 S3Storage 后替换底层客户端，可通过关键字参数覆盖磁盘配置
    """
    def _make(client=None, disk="default", **overrides):
        config = DiskConfig.model_validate(MockBuilder.create_disk_definition(**overrides))
        storage = S3Storage(disk, config, url_cache=SignedUrlCache(clock=fake_clock))
        storage._client = client if client is not None else fake_s3_client
        return storage
    return _make


@pytest.fixture(scope="function")
def s3_storage(make_storage):
    """使用内存客户端的S3驱动fixture"""
    return make_storage()
