"""检查调度器测试模块"""

import asyncio
import io

import pytest

from health_runner.alerts.base import BaseAlertSink
from health_runner.checkers.base import BaseHealthChecker
from health_runner.models.check import (
    AlertConfig, AlertPolicy, BackoffPolicy, CheckDefinition
)
from health_runner.models.health_check import HealthCheckResult
from health_runner.services.check_scheduler import CheckScheduler
from health_runner.utils.exceptions import ConfigError
from health_runner.utils.label_selector import LabelSelector


class MockHealthChecker(BaseHealthChecker):
    """模拟健康检查器"""

    async def check_health(self, updates=None) -> HealthCheckResult:
        await asyncio.sleep(self.config.get('delay', 0))
        healthy = self.config.get('healthy', True)
        return self._result(healthy, 0.0, None if healthy else "service unavailable")

    def validate_config(self) -> bool:
        return True

    def display_name(self) -> str:
        return 'mock'


class RecordingSink(BaseAlertSink):
    """记录每次推送内容的告警接收端"""

    def __init__(self):
        super().__init__('recording', {})
        self.payloads = []

    async def send_alerts(self, alerts) -> bool:
        self.payloads.append([alert.to_dict() for alert in alerts])
        return True

    def validate_config(self) -> bool:
        return True


def make_definition(check_id: int, name: str, healthy: bool = True, labels=None,
                    alert_policy=None, delay: float = 0) -> CheckDefinition:
    return CheckDefinition(
        id=check_id,
        name=name,
        checker=MockHealthChecker(name, {'healthy': healthy, 'delay': delay}),
        backoff_policy=BackoffPolicy(max_retries=0),
        timeout=1.0,
        labels=labels or {'alertname': name},
        alert_policy=alert_policy
    )


class TestCheckSchedulerReport:
    """报告模式测试"""

    @pytest.mark.asyncio
    async def test_report_counts_failures(self):
        """测试三个检查中一个失败"""
        definitions = [
            make_definition(0, 'web'),
            make_definition(1, 'db', healthy=False),
            make_definition(2, 'dns', delay=0.01),
        ]
        scheduler = CheckScheduler(definitions)
        stream = io.StringIO()

        failures = await scheduler.run_report(stream=stream)

        lines = stream.getvalue().splitlines()
        assert failures == 1
        assert lines.count("db: Failed") == 1
        assert "web: Succeeded" in lines
        assert "dns: Succeeded" in lines
        assert "    Maximum retries reached" in lines
        assert "    service unavailable" in lines

    @pytest.mark.asyncio
    async def test_report_with_no_checks(self):
        scheduler = CheckScheduler([])
        stream = io.StringIO()

        assert await scheduler.run_report(stream=stream) == 0
        assert stream.getvalue() == ""

    @pytest.mark.asyncio
    async def test_selector_filters_checks(self):
        definitions = [
            make_definition(0, 'web1', labels={'role': 'web'}),
            make_definition(1, 'db1', healthy=False, labels={'role': 'db'}),
        ]
        scheduler = CheckScheduler(definitions, LabelSelector.parse(['role:web']))
        stream = io.StringIO()

        assert [d.name for d in scheduler.definitions] == ['web1']
        assert list(scheduler.registry) == [0]
        assert await scheduler.run_report(stream=stream) == 0
        assert "db1" not in stream.getvalue()

    def test_registry(self):
        scheduler = CheckScheduler([make_definition(4, 'web', labels={'role': 'web'})])

        info = scheduler.registry[4]
        assert info.name == 'web'
        assert info.labels == {'role': 'web'}


class TestCheckSchedulerAlerts:
    """告警模式测试"""

    def setup_method(self):
        self.alert_config = AlertConfig(base_url='http://am:9093/api/v2', realert_interval=60)
        self.policy = AlertPolicy(check_interval=0.01, recheck_interval=0.01)

    def test_alert_mode_requires_policy(self):
        scheduler = CheckScheduler([make_definition(0, 'web')])

        with pytest.raises(ConfigError, match="alertPolicy"):
            scheduler.validate_alert_mode()

    @pytest.mark.asyncio
    async def test_run_alerts_until_stopped(self):
        """测试停止后分发器最后推送一次当前告警"""
        definitions = [
            make_definition(0, 'web', alert_policy=self.policy),
            make_definition(1, 'db', healthy=False, alert_policy=self.policy),
        ]
        scheduler = CheckScheduler(definitions)
        sink = RecordingSink()

        running = asyncio.create_task(scheduler.run_alerts(self.alert_config, sink))
        await asyncio.sleep(0.1)

        stats = scheduler.get_scheduler_stats()
        assert stats['running_tasks_count'] == 2
        assert stats['alert_stats']['active_alerts'] == 1

        scheduler.stop()
        await asyncio.wait_for(running, timeout=1)

        # 失败时推送一次，停止时最后推送一次
        assert len(sink.payloads) == 2
        assert [a['labels']['alertname'] for a in sink.payloads[-1]] == ['db']
        assert scheduler.get_scheduler_stats()['running_tasks_count'] == 0

    @pytest.mark.asyncio
    async def test_run_alerts_with_no_checks(self):
        """测试没有检查时分发器推送一次空列表后立即返回"""
        scheduler = CheckScheduler([])
        sink = RecordingSink()

        await asyncio.wait_for(scheduler.run_alerts(self.alert_config, sink), timeout=1)

        assert sink.payloads == [[]]
