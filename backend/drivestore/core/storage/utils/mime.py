"""
MIME类型工具
根据文件扩展名推断内容类型
"""

import mimetypes
from pathlib import PurePosixPath

# 无法识别扩展名时使用的内容类型
DEFAULT_MIME_TYPE = "*/*"

# 常用类型优先匹配，避免不同系统 mime.types 差异
_MIME_MAP = {
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.png': 'image/png',
    '.gif': 'image/gif',
    '.bmp': 'image/bmp',
    '.webp': 'image/webp',
    '.svg': 'image/svg+xml',
    '.pdf': 'application/pdf',
    '.txt': 'text/plain',
    '.csv': 'text/csv',
    '.html': 'text/html',
    '.json': 'application/json',
    '.xml': 'application/xml',
    '.zip': 'application/zip',
    '.mp4': 'video/mp4',
    '.mp3': 'audio/mpeg',
    # mimetypes 把以下扩展名当作编码而非类型
    '.gz': 'application/gzip',
    '.tgz': 'application/gzip',
    '.bz2': 'application/x-bzip2',
    '.xz': 'application/x-xz',
    '.7z': 'application/x-7z-compressed',
}

# text/* 之外默认按 UTF-8 传输的类型
_UTF8_TYPES = frozenset({
    'application/json',
    'application/javascript',
})


def _with_charset(mime_type: str) -> str:
    """文本类类型追加 charset"""
    if mime_type.startswith('text/') or mime_type in _UTF8_TYPES:
        return "{}; charset=utf-8".format(mime_type)
    return mime_type


def get_mime_from_extension(path: str) -> str:
    """
    根据路径扩展名获取内容类型

    文本类类型带 "; charset=utf-8" 后缀，可直接作为 Content-Type 使用。

    Args:
        path: 文件路径或对象键

    Returns:
        str: 内容类型，无法识别时返回 DEFAULT_MIME_TYPE

    Example:
        >>> get_mime_from_extension("avatars/1/photo.PNG")
        'image/png'
        >>> get_mime_from_extension("notes/readme.txt")
        'text/plain; charset=utf-8'
        >>> get_mime_from_extension("README")
        '*/*'
    """
    suffix = PurePosixPath(path or "").suffix.lower()
    if not suffix:
        return DEFAULT_MIME_TYPE

    guessed = _MIME_MAP.get(suffix)
    if guessed is None:
        guessed, _ = mimetypes.guess_type(f"file{suffix}", strict=False)
    if not guessed:
        return DEFAULT_MIME_TYPE
    return _with_charset(guessed)


__all__ = ['DEFAULT_MIME_TYPE', 'get_mime_from_extension']
