"""
测试工具包
提供统一的测试工具和辅助函数
"""

from .mock_utils import FakeS3Client, MockBuilder, make_client_error, mock_config

__all__ = [
    'FakeS3Client',
    'MockBuilder',
    'make_client_error',
    'mock_config',
]
