"""检查任务测试模块"""

import asyncio
from typing import List

import pytest
from unittest.mock import AsyncMock, Mock, patch

from health_runner.checkers.base import BaseHealthChecker
from health_runner.models.check import (
    AlertPolicy, BackoffPolicy, CheckDefinition, CheckOutcome, StatusKind
)
from health_runner.models.health_check import HealthCheckResult
from health_runner.services.check_task import CheckTask, MAX_RETRIES_REACHED
from health_runner.services.update_channel import UpdateChannel
from health_runner.utils.exceptions import SchedulerError


class MockHealthChecker(BaseHealthChecker):
    """模拟健康检查器，按顺序返回预设结果"""

    def __init__(self, name: str, config: dict):
        super().__init__(name, config)
        self.results: List[bool] = list(config.get('results', [True]))
        self.delay = config.get('delay', 0)
        self.error = config.get('error')
        self.calls = 0

    async def check_health(self, updates=None) -> HealthCheckResult:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        healthy = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        return self._result(healthy, 0.01, None if healthy else "service unavailable")

    def validate_config(self) -> bool:
        return True

    def display_name(self) -> str:
        return 'mock'


def make_definition(config: dict, **kwargs) -> CheckDefinition:
    kwargs.setdefault('backoff_policy', BackoffPolicy(max_retries=3, initial=0.001, multiplier=1.0))
    return CheckDefinition(id=0, name='mock', checker=MockHealthChecker('mock', config), **kwargs)


async def collect(channel: UpdateChannel) -> list:
    return [update async for update in channel]


class TestCheckTaskRunOnce:
    """单次检查周期测试"""

    @pytest.mark.asyncio
    async def test_success_first_try(self):
        """测试第一次就成功"""
        channel = UpdateChannel()
        task = CheckTask(make_definition({'results': [True]}), channel.sender(0))

        outcome = await task.run_report()
        updates = await collect(channel)

        assert outcome == CheckOutcome.SUCCESS
        assert [u.status.kind for u in updates] == [StatusKind.RUNNING, StatusKind.SUCCEEDED]

    @pytest.mark.asyncio
    async def test_success_after_retry(self):
        """测试失败一次后重试成功"""
        channel = UpdateChannel()
        task = CheckTask(make_definition({'results': [False, True]}), channel.sender(0))

        outcome = await task.run_report()
        updates = await collect(channel)

        assert outcome == CheckOutcome.SUCCESS
        assert [u.status.kind for u in updates] == [
            StatusKind.RUNNING, StatusKind.RETRYING, StatusKind.RUNNING, StatusKind.SUCCEEDED
        ]
        assert updates[1].message == "service unavailable"

    @pytest.mark.asyncio
    async def test_failure_after_max_retries(self):
        """测试重试次数用尽后失败"""
        channel = UpdateChannel()
        definition = make_definition({'results': [False]})
        task = CheckTask(definition, channel.sender(0))

        outcome = await task.run_report()
        updates = await collect(channel)

        assert outcome == CheckOutcome.FAILURE
        # 首次尝试加3次重试
        assert definition.checker.calls == 4
        assert updates[-1].status.kind == StatusKind.FAILED
        assert updates[-1].message == MAX_RETRIES_REACHED
        retrying = [u for u in updates if u.status.kind == StatusKind.RETRYING]
        assert len(retrying) == 4

    @pytest.mark.asyncio
    async def test_zero_retries(self):
        """测试 max_retries=0 时只尝试一次"""
        channel = UpdateChannel()
        definition = make_definition(
            {'results': [False]},
            backoff_policy=BackoffPolicy(max_retries=0)
        )
        task = CheckTask(definition, channel.sender(0))

        with patch('health_runner.utils.backoff.asyncio.sleep', new_callable=AsyncMock) as mock_sleep:
            outcome = await task.run_report()

        updates = await collect(channel)
        assert outcome == CheckOutcome.FAILURE
        assert definition.checker.calls == 1
        mock_sleep.assert_not_awaited()
        assert [u.status.kind for u in updates] == [
            StatusKind.RUNNING, StatusKind.RETRYING, StatusKind.FAILED
        ]

    @pytest.mark.asyncio
    async def test_timeout(self):
        """测试探测超时被当作失败"""
        channel = UpdateChannel()
        definition = make_definition(
            {'delay': 1.0},
            backoff_policy=BackoffPolicy(max_retries=0),
            timeout=0.01
        )
        task = CheckTask(definition, channel.sender(0))

        outcome = await task.run_report()
        updates = await collect(channel)

        assert outcome == CheckOutcome.FAILURE
        assert "检查超时" in updates[1].message
        assert updates[-1].message == MAX_RETRIES_REACHED

    @pytest.mark.asyncio
    async def test_checker_exception(self):
        """测试探测抛出异常被当作失败"""
        channel = UpdateChannel()
        definition = make_definition(
            {'error': RuntimeError("connection reset")},
            backoff_policy=BackoffPolicy(max_retries=0)
        )
        task = CheckTask(definition, channel.sender(0))

        outcome = await task.run_report()
        updates = await collect(channel)

        assert outcome == CheckOutcome.FAILURE
        assert "connection reset" in updates[1].message

    @pytest.mark.asyncio
    async def test_result_details_logged(self):
        channel = UpdateChannel()
        task = CheckTask(make_definition({'results': [True]}), channel.sender(0))
        task.logger = Mock()

        await task.run_report()

        messages = [call.args[0] for call in task.logger.debug.call_args_list]
        assert any("mock 检查 mock 耗时 0.010秒" in message for message in messages)

    @pytest.mark.asyncio
    async def test_sender_closed_after_report(self):
        channel = UpdateChannel()
        task = CheckTask(make_definition({}), channel.sender(0))

        await task.run_report()

        assert channel.closed


class TestCheckTaskRunForever:
    """告警模式持续检查测试"""

    @pytest.mark.asyncio
    async def test_requires_alert_policy(self):
        channel = UpdateChannel()
        task = CheckTask(make_definition({}), channel.sender(0))

        with pytest.raises(SchedulerError):
            await task.run_alerting()
        assert channel.closed

    @pytest.mark.asyncio
    async def test_keeps_checking_until_cancelled(self):
        """测试失败后复查、成功后按检查间隔继续"""
        channel = UpdateChannel()
        definition = make_definition(
            {'results': [False, True]},
            backoff_policy=BackoffPolicy(max_retries=0),
            alert_policy=AlertPolicy(check_interval=0.01, recheck_interval=0.005)
        )
        task = CheckTask(definition, channel.sender(0))

        running = asyncio.create_task(task.run_alerting())
        await asyncio.sleep(0.1)
        running.cancel()
        with pytest.raises(asyncio.CancelledError):
            await running

        updates = await collect(channel)
        kinds = [u.status.kind for u in updates]

        assert channel.closed
        assert kinds[:5] == [
            StatusKind.RUNNING, StatusKind.RETRYING, StatusKind.FAILED,
            StatusKind.WAITING, StatusKind.RUNNING
        ]
        assert updates[3].status.reason == "recheck"
        assert updates[3].status.duration == 0.005
        assert StatusKind.SUCCEEDED in kinds

        next_checks = [u for u in updates
                       if u.status.kind == StatusKind.WAITING and u.status.reason == "next check"]
        assert next_checks
        assert next_checks[0].status.duration == 0.01
        assert definition.checker.calls > 2
