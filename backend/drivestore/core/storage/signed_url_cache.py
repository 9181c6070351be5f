"""
签名URL缓存模块
按 (路径, 有效期) 缓存已生成的签名URL，在到期前的安全余量内才允许复用
"""

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple


@dataclass
class SignedUrlCacheEntry:
    """签名URL缓存条目"""
    url: str
    expires_at: float  # 过期时间戳（秒）

    def is_reusable(self, now: float, margin: float) -> bool:
        """距离过期仍大于安全余量时可复用"""
        return now < self.expires_at - margin

    def is_expired(self, now: float) -> bool:
        """检查是否过期"""
        return now >= self.expires_at


class SignedUrlCache:
    """
    签名URL缓存

    功能特性：
    - 键为 (path, ttl_minutes)，同一路径不同有效期互不影响
    - 返回的URL至少还有 margin_seconds 的剩余有效期
    - 超过 max_entries 时按LRU淘汰
    - 线程安全，驱动实例独占一个缓存
    """

    DEFAULT_MARGIN_SECONDS = 300  # 安全余量（5分钟）
    DEFAULT_MAX_ENTRIES = 1000

    def __init__(
        self,
        margin_seconds: float = DEFAULT_MARGIN_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time
    ) -> None:
        """
        初始化签名URL缓存

        Args:
            margin_seconds: 复用安全余量（秒）
            max_entries: 最大缓存条目数
            clock: 时间函数，返回秒级时间戳
        """
        if max_entries <= 0:
            raise ValueError("max_entries 必须大于0")
        self.margin_seconds = margin_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Tuple[str, int], SignedUrlCacheEntry]" = OrderedDict()
        self._lock = threading.Lock()

        self.stats: Dict[str, int] = {
            'hits': 0,
            'misses': 0,
            'evicted': 0
        }

    def get(self, path: str, ttl_minutes: int) -> Optional[SignedUrlCacheEntry]:
        """
        获取可复用的缓存条目

        Args:
            path: 对象路径
            ttl_minutes: 请求的有效期（分钟）

        Returns:
            SignedUrlCacheEntry: 可复用的条目，不存在或已进入安全余量时返回None
        """
        key = (path, ttl_minutes)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_reusable(self._clock(), self.margin_seconds):
                return None
            self._entries.move_to_end(key)
            return entry

    def get_or_create(self, path: str, ttl_minutes: int, factory: Callable[[], str]) -> str:
        """
        获取缓存的签名URL，不可复用时调用 factory 重新生成并替换缓存

        Args:
            path: 对象路径
            ttl_minutes: 请求的有效期（分钟）
            factory: 生成新URL的函数

        Returns:
            str: 签名URL
        """
        key = (path, ttl_minutes)
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is not None and entry.is_reusable(now, self.margin_seconds):
                self._entries.move_to_end(key)
                self.stats['hits'] += 1
                return entry.url

            self.stats['misses'] += 1
            url = factory()
            self._entries[key] = SignedUrlCacheEntry(url=url, expires_at=now + ttl_minutes * 60)
            self._entries.move_to_end(key)
            self._evict()
            return url

    def _evict(self) -> None:
        """淘汰最久未使用的条目，调用方需持有锁"""
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
            self.stats['evicted'] += 1

    def purge_expired(self) -> int:
        """
        清理已过期的条目

        Returns:
            int: 清理的条目数
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def clear(self) -> None:
        """清空缓存"""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ['SignedUrlCacheEntry', 'SignedUrlCache']
