"""
对象流模块
后台读取任务通过有界队列向消费者推送数据块，消费者不读取时读取任务随之暂停
"""

import asyncio
from typing import AsyncIterator, Awaitable, Callable, Optional

from drivestore.core.storage.exceptions import StreamError

# 数据读取结束标记
_EOF = object()


class _Failure:
    """读取任务失败时放入队列的标记"""

    def __init__(self, error: BaseException) -> None:
        self.error = error


class ObjectStream:
    """
    对象字节流

    由 StorageDriver.get_stream() 同步返回，数据由独立的读取任务填充。
    读取任务中的错误不会在调用 get_stream() 时抛出，而是在消费时以
    StreamError 的形式抛出，原始异常可通过 error 属性获取。

    Example:
        >>> stream = storage.get_stream("videos/intro.mp4")
        >>> async with stream:
        ...     async for chunk in stream:
        ...         handle(chunk)
    """

    DEFAULT_QUEUE_SIZE = 8

    def __init__(self, key: str, max_queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        """
        初始化对象流

        Args:
            key: 对象键，用于错误信息
            max_queue_size: 队列中最多缓冲的数据块数
        """
        self.key = key
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)
        self._task: Optional[asyncio.Task] = None
        self._finished = False
        self.error: Optional[BaseException] = None

    def start(self, producer: Callable[["ObjectStream"], Awaitable[None]]) -> "ObjectStream":
        """
        启动读取任务，必须在运行中的事件循环内调用

        Args:
            producer: 读取协程函数，接收当前流并通过 feed/finish/fail 推送数据

        Returns:
            ObjectStream: 当前流
        """
        if self._task is not None:
            raise RuntimeError("读取任务已启动")
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run(producer))
        return self

    async def _run(self, producer: Callable[["ObjectStream"], Awaitable[None]]) -> None:
        try:
            await producer(self)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self.fail(e)
            return
        await self.finish()

    async def feed(self, chunk: bytes) -> None:
        """推送一个数据块，队列已满时等待消费者读取"""
        await self._queue.put(chunk)

    async def finish(self) -> None:
        """标记数据读取结束"""
        await self._queue.put(_EOF)

    async def fail(self, error: BaseException) -> None:
        """标记读取失败"""
        await self._queue.put(_Failure(error))

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self

    async def __anext__(self) -> bytes:
        if self._finished:
            raise StopAsyncIteration

        item = await self._queue.get()
        if item is _EOF:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Failure):
            self._finished = True
            self.error = item.error
            raise StreamError(
                "流式读取失败: {}".format(str(item.error)),
                details={'key': self.key}
            ) from item.error
        return item

    async def read(self) -> bytes:
        """读取全部剩余数据"""
        chunks = []
        async for chunk in self:
            chunks.append(chunk)
        return b"".join(chunks)

    @property
    def done(self) -> bool:
        """读取任务是否已结束"""
        return self._task is not None and self._task.done()

    async def aclose(self) -> None:
        """停止读取任务并释放资源"""
        self._finished = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def __aenter__(self) -> "ObjectStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


__all__ = ['ObjectStream']
