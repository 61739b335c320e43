"""指数退避重试器"""

import asyncio
from typing import Optional

from ..models.check import BackoffPolicy


class Retrier:
    """按指数退避策略计算并等待重试间隔

    每个检查周期创建一个新的重试器，不加抖动也不设上限，
    重试次数只受 max_retries 限制。
    """

    def __init__(self, policy: BackoffPolicy):
        self.policy = policy
        self.attempts = 0
        self.last_wait: Optional[float] = None

    def next_wait(self) -> float:
        """计算下一次重试前的等待时长（秒）"""
        if self.last_wait is None:
            return self.policy.initial
        return self.last_wait * self.policy.multiplier

    @property
    def exhausted(self) -> bool:
        return self.attempts >= self.policy.max_retries

    async def retry(self) -> Optional[int]:
        """
        等待退避时长后返回本次重试的序号

        Returns:
            Optional[int]: 重试序号（从1开始），重试次数已用尽时立即返回None
        """
        if self.exhausted:
            return None

        wait = self.next_wait()
        await asyncio.sleep(wait)

        self.last_wait = wait
        self.attempts += 1
        return self.attempts
