"""报告器测试模块"""

import io

import pytest

from health_runner.models.check import CheckInfo, CheckStatus, CheckUpdate
from health_runner.services.reporter import Reporter, UNKNOWN_CHECK
from health_runner.services.update_channel import UpdateChannel


class TestReporter:
    """Reporter测试类"""

    def setup_method(self):
        self.registry = {
            0: CheckInfo(name='web', labels={'role': 'web'}),
            1: CheckInfo(name='dns'),
        }
        self.stream = io.StringIO()

    def test_format_simple_update(self):
        reporter = Reporter(self.registry, stream=self.stream)
        line = reporter.format_update(CheckUpdate(0, CheckStatus.succeeded()))
        assert line == "web: Succeeded"

    def test_format_multiline_message(self):
        """测试多行消息每行缩进四个空格"""
        reporter = Reporter(self.registry, stream=self.stream)
        update = CheckUpdate(1, CheckStatus.retrying(), "line one\nline two")

        assert reporter.format_update(update) == "dns: Retrying\n    line one\n    line two"

    def test_format_waiting(self):
        reporter = Reporter(self.registry, stream=self.stream)
        update = CheckUpdate(0, CheckStatus.waiting(2.5, "recheck"))

        assert reporter.format_update(update) == "web: Waiting 2.5s (recheck)"

    def test_unknown_check(self):
        reporter = Reporter(self.registry, stream=self.stream)
        line = reporter.format_update(CheckUpdate(42, CheckStatus.failed()))
        assert line == f"{UNKNOWN_CHECK}: Failed"

    def test_quiet_mode_skips_progress(self):
        """测试安静模式下跳过等待状态和进度说明"""
        reporter = Reporter(self.registry, quiet=True, stream=self.stream)

        reporter.report(CheckUpdate(0, CheckStatus.running()))
        reporter.report(CheckUpdate(0, CheckStatus.running(), "making request"))
        reporter.report(CheckUpdate(0, CheckStatus.waiting(1.0, "next check")))
        reporter.report(CheckUpdate(0, CheckStatus.succeeded()))

        assert self.stream.getvalue() == "web: Running\nweb: Succeeded\n"

    def test_default_prints_every_update(self):
        """测试默认输出每一条更新，包括等待状态和进度说明"""
        reporter = Reporter(self.registry, stream=self.stream)

        reporter.report(CheckUpdate(0, CheckStatus.running()))
        reporter.report(CheckUpdate(0, CheckStatus.running(), "making request"))
        reporter.report(CheckUpdate(0, CheckStatus.waiting(1.0, "next check")))
        reporter.report(CheckUpdate(0, CheckStatus.succeeded()))

        assert self.stream.getvalue() == (
            "web: Running\n"
            "web: Running\n    making request\n"
            "web: Waiting 1.0s (next check)\n"
            "web: Succeeded\n"
        )

    def test_default_stream_is_stdout(self, capsys):
        reporter = Reporter(self.registry)
        reporter.report(CheckUpdate(1, CheckStatus.failed(), "Maximum retries reached"))

        captured = capsys.readouterr()
        assert captured.out == "dns: Failed\n    Maximum retries reached\n"

    @pytest.mark.asyncio
    async def test_run_until_channel_closed(self):
        channel = UpdateChannel()
        with channel.sender() as owner:
            web = owner.clone(0)
            dns = owner.clone(1)

        web.send(CheckStatus.running())
        dns.send(CheckStatus.running())
        web.send(CheckStatus.succeeded())
        dns.send(CheckStatus.failed(), "Maximum retries reached")
        web.close()
        dns.close()

        reporter = Reporter(self.registry, stream=self.stream)
        await reporter.run(channel)

        assert self.stream.getvalue().splitlines() == [
            "web: Running",
            "dns: Running",
            "web: Succeeded",
            "dns: Failed",
            "    Maximum retries reached",
        ]
