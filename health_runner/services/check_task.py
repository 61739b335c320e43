"""检查任务

一个检查任务绑定一个检查定义和一个更新发送端。报告模式下执行一个
带指数退避的检查周期后结束；告警模式下持续运行，失败时按复查间隔
快速复查，成功后按检查间隔慢速复查。
"""

import asyncio
from typing import Optional

from .update_channel import UpdateSender
from ..models.check import CheckDefinition, CheckOutcome, CheckStatus
from ..utils.backoff import Retrier
from ..utils.exceptions import SchedulerError
from ..utils.log_manager import get_logger

MAX_RETRIES_REACHED = "Maximum retries reached"


class CheckTask:
    """单个检查的执行单元"""

    def __init__(self, definition: CheckDefinition, updates: UpdateSender):
        """
        Args:
            definition: 检查定义
            updates: 绑定到该检查ID的发送端，由任务负责关闭
        """
        self.definition = definition
        self.updates = updates
        self.logger = get_logger('check_task')

    @property
    def name(self) -> str:
        return self.definition.name

    async def _attempt(self) -> Optional[str]:
        """
        在超时限制内执行一次探测

        Returns:
            Optional[str]: 探测成功返回None，否则返回失败描述
        """
        checker = self.definition.checker
        try:
            result = await asyncio.wait_for(
                checker.check_health(self.updates),
                timeout=self.definition.timeout
            )
        except asyncio.TimeoutError:
            return f"检查超时（{self.definition.timeout}秒）"
        except Exception as e:
            self.logger.error(f"检查 {self.name} 执行异常: {e}", exc_info=True)
            return f"检查执行异常: {e}"

        self.logger.debug(
            f"{result.check_type} 检查 {result.check_name} 耗时 {result.response_time:.3f}秒, "
            f"健康: {result.is_healthy}, 附加信息: {result.metadata}"
        )
        if result.is_healthy:
            return None
        return result.error_message or "检查失败"

    async def run_once(self) -> CheckOutcome:
        """
        执行一个检查周期：失败时按退避策略重试，直到成功或重试次数用尽

        Returns:
            CheckOutcome: 本周期的最终结果
        """
        retrier = Retrier(self.definition.backoff_policy)

        while True:
            self.updates.send(CheckStatus.running())

            failure = await self._attempt()
            if failure is None:
                self.updates.send(CheckStatus.succeeded())
                return CheckOutcome.SUCCESS

            self.logger.debug(f"检查 {self.name} 失败: {failure}")
            self.updates.send(CheckStatus.retrying(), failure)

            attempt = await retrier.retry()
            if attempt is None:
                self.updates.send(CheckStatus.failed(), MAX_RETRIES_REACHED)
                return CheckOutcome.FAILURE

            self.logger.debug(f"检查 {self.name} 第 {attempt} 次重试")

    async def run_forever(self) -> None:
        """告警模式：持续检查，失败时不放弃"""
        policy = self.definition.alert_policy
        if policy is None:
            raise SchedulerError(f"检查 {self.name} 缺少告警策略", task_name=self.name)

        while True:
            while True:
                outcome = await self.run_once()
                if not outcome.is_failure:
                    break

                self.updates.send(CheckStatus.waiting(policy.recheck_interval, "recheck"))
                await asyncio.sleep(policy.recheck_interval)

            self.updates.send(CheckStatus.waiting(policy.check_interval, "next check"))
            await asyncio.sleep(policy.check_interval)

    async def run_report(self) -> CheckOutcome:
        """报告模式入口：执行一个周期后关闭发送端"""
        with self.updates:
            return await self.run_once()

    async def run_alerting(self) -> None:
        """告警模式入口：任务被取消时关闭发送端"""
        with self.updates:
            await self.run_forever()
