"""
对象流单元测试
测试 ObjectStream 的数据推送、错误传递和背压
"""

import asyncio

import pytest

from drivestore.core.storage.exceptions import StreamError
from drivestore.core.storage.stream import ObjectStream


@pytest.mark.unit
@pytest.mark.storage
class TestObjectStream:
    """ObjectStream 单元测试类"""

    @pytest.mark.asyncio
    async def test_read_all_chunks(self):
        """测试按顺序读取全部数据块"""
        async def producer(stream):
            for chunk in (b"ab", b"cd", b"ef"):
                await stream.feed(chunk)

        stream = ObjectStream("a.bin").start(producer)

        chunks = [chunk async for chunk in stream]

        assert chunks == [b"ab", b"cd", b"ef"]

    @pytest.mark.asyncio
    async def test_read_joins_chunks(self):
        """测试 read 返回拼接后的内容"""
        async def producer(stream):
            await stream.feed(b"hello ")
            await stream.feed(b"world")

        async with ObjectStream("a.txt").start(producer) as stream:
            assert await stream.read() == b"hello world"

    @pytest.mark.asyncio
    async def test_empty_object(self):
        """测试空对象直接结束"""
        async def producer(stream):
            return None

        stream = ObjectStream("empty").start(producer)

        assert await stream.read() == b""

    @pytest.mark.asyncio
    async def test_producer_error_raised_on_consume(self):
        """测试读取任务的错误在消费时以 StreamError 抛出"""
        cause = ConnectionError("connection reset")

        async def producer(stream):
            await stream.feed(b"partial")
            raise cause

        stream = ObjectStream("broken.bin").start(producer)

        assert await stream.__anext__() == b"partial"
        with pytest.raises(StreamError) as exc_info:
            await stream.__anext__()

        assert exc_info.value.code == "STREAM_ERROR"
        assert exc_info.value.details == {'key': 'broken.bin'}
        assert exc_info.value.__cause__ is cause
        assert stream.error is cause

        # 出错后迭代结束
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_backpressure(self):
        """测试消费者不读取时读取任务被阻塞"""
        fed = []

        async def producer(stream):
            for index in range(10):
                await stream.feed(bytes([index]))
                fed.append(index)

        stream = ObjectStream("slow.bin", max_queue_size=2).start(producer)
        await asyncio.sleep(0.05)

        # 队列容量为2，读取任务不能一次推送全部数据
        assert len(fed) == 2
        assert stream.done is False

        data = await stream.read()
        assert data == bytes(range(10))

    @pytest.mark.asyncio
    async def test_aclose_cancels_producer(self):
        """测试关闭流时取消读取任务"""
        async def producer(stream):
            while True:
                await stream.feed(b"x")

        stream = ObjectStream("endless.bin", max_queue_size=1).start(producer)
        await stream.__anext__()

        await stream.aclose()

        assert stream.done is True
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_start_twice(self):
        """测试重复启动抛出异常"""
        async def producer(stream):
            return None

        stream = ObjectStream("a").start(producer)

        with pytest.raises(RuntimeError):
            stream.start(producer)
        await stream.aclose()

    def test_start_without_running_loop(self):
        """测试没有运行中的事件循环时无法启动"""
        async def producer(stream):
            return None

        with pytest.raises(RuntimeError):
            ObjectStream("a").start(producer)
