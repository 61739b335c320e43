"""状态更新通道

多个检查任务（生产者）向唯一的消费者（报告器或告警分发器）发送状态更新。
发送永不阻塞；所有发送端关闭后通道关闭，消费者在取完剩余消息后结束。
"""

import asyncio
from typing import Optional

from ..models.check import CheckStatus, CheckUpdate
from ..utils.exceptions import ChannelClosedError, SchedulerError

_CLOSED = object()


class UpdateChannel:
    """无界的多生产者单消费者更新通道"""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._senders = 0
        self._closed = False
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def sender_count(self) -> int:
        return self._senders

    def sender(self, check_id: Optional[int] = None) -> 'UpdateSender':
        """
        创建新的发送端

        Args:
            check_id: 发送端绑定的检查ID

        Raises:
            ChannelClosedError: 通道已关闭
        """
        if self._closed:
            raise ChannelClosedError()
        self._senders += 1
        return UpdateSender(self, check_id)

    def _put(self, update: CheckUpdate) -> None:
        self._queue.put_nowait(update)

    def _release(self) -> None:
        self._senders -= 1
        if self._senders == 0:
            self._closed = True
            self._queue.put_nowait(_CLOSED)

    async def recv(self) -> Optional[CheckUpdate]:
        """
        接收下一条更新

        Returns:
            Optional[CheckUpdate]: 通道关闭且已取空时返回None
        """
        if self._drained:
            return None

        item = await self._queue.get()
        if item is _CLOSED:
            self._drained = True
            return None
        return item

    def __aiter__(self) -> 'UpdateChannel':
        return self

    async def __anext__(self) -> CheckUpdate:
        update = await self.recv()
        if update is None:
            raise StopAsyncIteration
        return update


class UpdateSender:
    """更新通道的发送端，每个发送端必须且只会关闭一次"""

    def __init__(self, channel: UpdateChannel, check_id: Optional[int] = None):
        self._channel = channel
        self.check_id = check_id
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def clone(self, check_id: Optional[int] = None) -> 'UpdateSender':
        """复制发送端，未指定check_id时沿用当前绑定"""
        if self._closed:
            raise ChannelClosedError()
        return self._channel.sender(self.check_id if check_id is None else check_id)

    def send(self, status: CheckStatus, message: Optional[str] = None) -> None:
        """
        发送状态更新，不会阻塞

        Raises:
            ChannelClosedError: 发送端已关闭
            SchedulerError: 发送端未绑定检查ID
        """
        if self._closed:
            raise ChannelClosedError("发送端已关闭")
        if self.check_id is None:
            raise SchedulerError("发送端未绑定检查ID")
        self._channel._put(CheckUpdate(self.check_id, status, message))

    def note(self, message: str) -> None:
        """发送探测过程中的进度说明"""
        self.send(CheckStatus.running(), message)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel._release()

    def __enter__(self) -> 'UpdateSender':
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
