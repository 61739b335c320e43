"""检查调度器模块

为每个检查定义创建一个检查任务并发运行，所有任务通过同一个更新通道
把状态更新交给唯一的消费者（报告器或告警分发器）。
"""

import asyncio
from typing import Dict, List, Optional, Iterable, TextIO

from .check_task import CheckTask
from .reporter import Reporter
from .update_channel import UpdateChannel
from ..alerts.alertmanager_sink import AlertManagerSink
from ..alerts.base import BaseAlertSink
from ..alerts.dispatcher import AlertDispatcher
from ..models.check import AlertConfig, CheckDefinition, CheckInfo
from ..utils.exceptions import ConfigError
from ..utils.label_selector import LabelSelector
from ..utils.log_manager import get_logger


class CheckScheduler:
    """检查调度器

    注册表在任何任务启动之前构建，之后只读。
    """

    def __init__(self, definitions: Iterable[CheckDefinition],
                 selector: Optional[LabelSelector] = None):
        """
        Args:
            definitions: 全部检查定义
            selector: 可选的标签选择器，只运行匹配的检查
        """
        self.logger = get_logger('scheduler')
        definitions = list(definitions)

        if selector:
            self.definitions = [d for d in definitions if selector.matches(d.labels)]
            self.logger.info(f"标签选择器匹配 {len(self.definitions)}/{len(definitions)} 个检查")
        else:
            self.definitions = definitions

        self.registry: Dict[int, CheckInfo] = {d.id: d.info() for d in self.definitions}
        self.dispatcher: Optional[AlertDispatcher] = None
        self._check_tasks: List[asyncio.Task] = []

    def _create_tasks(self, channel: UpdateChannel) -> List[CheckTask]:
        """为每个检查复制一个发送端，然后释放调度器自己持有的发送端"""
        with channel.sender() as owner:
            return [CheckTask(d, owner.clone(d.id)) for d in self.definitions]

    async def run_report(self, quiet: bool = False,
                         stream: Optional[TextIO] = None) -> int:
        """
        报告模式：每个检查执行一个周期，打印所有状态更新

        Args:
            quiet: 为True时不输出等待状态和检查进度说明
            stream: 输出流，默认为stdout

        Returns:
            int: 失败的检查数量
        """
        channel = UpdateChannel()
        tasks = self._create_tasks(channel)
        reporter = Reporter(self.registry, quiet=quiet, stream=stream)

        self.logger.info(f"开始执行 {len(tasks)} 个检查")
        consumer = asyncio.create_task(reporter.run(channel))

        outcomes = await asyncio.gather(*(task.run_report() for task in tasks))
        await consumer

        failures = sum(1 for outcome in outcomes if outcome.is_failure)
        self.logger.info(f"检查完成: {len(outcomes) - failures} 个成功, {failures} 个失败")
        return failures

    def validate_alert_mode(self) -> None:
        """
        告警模式要求每个检查都有告警策略

        Raises:
            ConfigError: 存在缺少 alertPolicy 的检查
        """
        missing = [d.name for d in self.definitions if d.alert_policy is None]
        if missing:
            raise ConfigError(f"以下检查缺少 alertPolicy，无法运行告警模式: {', '.join(missing)}")

    async def run_alerts(self, alert_config: AlertConfig,
                         sink: Optional[BaseAlertSink] = None) -> None:
        """
        告警模式：持续运行所有检查，直到调用 stop() 或任务被取消

        停止时取消所有检查任务，等待告警分发器最后推送一次后返回。

        Args:
            alert_config: 告警配置
            sink: 告警接收端，默认根据配置创建AlertManager接收端
        """
        self.validate_alert_mode()

        if sink is None:
            sink = AlertManagerSink.from_alert_config(alert_config)

        channel = UpdateChannel()
        tasks = self._create_tasks(channel)
        self.dispatcher = AlertDispatcher(alert_config, self.registry, sink)

        consumer = asyncio.create_task(self.dispatcher.run(channel))
        self._check_tasks = [asyncio.create_task(task.run_alerting()) for task in tasks]
        self.logger.info(f"告警模式已启动，共 {len(self._check_tasks)} 个检查")

        try:
            results = await asyncio.gather(*self._check_tasks, return_exceptions=True)
            for task, result in zip(tasks, results):
                if isinstance(result, Exception):
                    self.logger.error(f"检查 {task.name} 异常退出: {result}")
        finally:
            self.stop()
            await asyncio.gather(*self._check_tasks, return_exceptions=True)
            await consumer
            self._check_tasks = []
            self.logger.info("告警模式已停止")

    def stop(self) -> None:
        """取消所有检查任务，发送端随之关闭"""
        for task in self._check_tasks:
            if not task.done():
                task.cancel()

    def get_scheduler_stats(self) -> Dict[str, object]:
        """获取调度器统计信息"""
        stats: Dict[str, object] = {
            'total_checks': len(self.definitions),
            'running_tasks_count': sum(1 for task in self._check_tasks if not task.done()),
            'configured_checks': [d.name for d in self.definitions],
        }
        if self.dispatcher:
            stats['alert_stats'] = self.dispatcher.get_alert_stats()
        return stats
