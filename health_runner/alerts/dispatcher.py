"""告警分发器

维护每个检查的活动告警，并在状态变化、定时重发和关闭时把当前
全部活动告警推送到告警接收端：

- Failed: 无活动告警时创建告警（startsAt=当前时间）并推送；已有告警时忽略
- Succeeded: 有活动告警时设置 endsAt 并推送（包含已结束的告警），然后删除
- 定时器: 有活动告警时重新推送，错过的定时不补发
- 通道关闭: 最后推送一次当前状态后退出

推送失败只记录日志，由下一次状态变化或定时重发自然重试。
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .base import BaseAlertSink
from ..models.check import AlertConfig, CheckInfo, CheckUpdate, StatusKind
from ..models.health_check import ActiveAlert
from ..services.update_channel import UpdateChannel
from ..utils.exceptions import AlertError
from ..utils.log_manager import get_logger

OUTPUT_ANNOTATION = 'output'


class AlertDispatcher:
    """告警生命周期状态机，是活动告警状态的唯一持有者"""

    def __init__(self, alert_config: AlertConfig, registry: Dict[int, CheckInfo],
                 sink: BaseAlertSink):
        """
        Args:
            alert_config: 告警配置
            registry: 检查ID到检查信息的映射（只读）
            sink: 告警接收端
        """
        self.alert_config = alert_config
        self.registry = registry
        self.sink = sink
        self.active_alerts: Dict[int, ActiveAlert] = {}
        self.logger = get_logger('alert_dispatcher')

        # 统计信息
        self.sends_attempted = 0
        self.sends_failed = 0

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    def _create_alert(self, info: CheckInfo, message: Optional[str]) -> ActiveAlert:
        annotations = dict(info.annotations)
        if self.alert_config.allow_output_annotation and message is not None:
            annotations[OUTPUT_ANNOTATION] = message

        return ActiveAlert(
            labels=dict(info.labels),
            annotations=annotations,
            starts_at=self._now()
        )

    async def process_update(self, update: CheckUpdate) -> None:
        """处理一条状态更新"""
        kind = update.status.kind

        if kind == StatusKind.FAILED:
            if update.id in self.active_alerts:
                return

            info = self.registry.get(update.id)
            if info is None:
                self.logger.error(f"检查ID {update.id} 不在注册表中，跳过告警发送")
                return

            self.logger.info(f"检查失败 - {info.name}")
            self.active_alerts[update.id] = self._create_alert(info, update.message)
            await self.send_alerts()

        elif kind == StatusKind.SUCCEEDED:
            alert = self.active_alerts.get(update.id)
            if alert is None:
                return

            alert.ends_at = self._now()
            info = self.registry.get(update.id)
            self.logger.info(f"检查恢复正常 - {info.name if info else alert.labels}")

            await self.send_alerts()
            del self.active_alerts[update.id]

    async def tick(self) -> None:
        """定时重发：有活动告警时推送当前集合"""
        if self.active_alerts:
            self.logger.debug(f"重新发送 {len(self.active_alerts)} 条活动告警")
            await self.send_alerts()

    def current_alerts(self) -> List[ActiveAlert]:
        return list(self.active_alerts.values())

    async def send_alerts(self) -> bool:
        """
        推送当前全部活动告警，失败时只记录日志

        Returns:
            bool: 是否推送成功
        """
        self.sends_attempted += 1
        try:
            success = await self.sink.send_alerts(self.current_alerts())
        except AlertError as e:
            self.sends_failed += 1
            level = logging.WARNING if e.recoverable else logging.ERROR
            self.logger.log(level, f"发送告警失败: {e.format_error()}")
            return False
        except Exception as e:
            self.sends_failed += 1
            self.logger.error(f"发送告警失败: {e}")
            return False

        if not success:
            self.sends_failed += 1
            self.logger.error(f"告警接收端 {self.sink.name} 拒绝了告警")
        return success

    async def run(self, channel: UpdateChannel) -> None:
        """
        消费状态更新并按固定间隔重发，通道关闭后最后推送一次并退出

        Args:
            channel: 状态更新通道
        """
        loop = asyncio.get_running_loop()
        interval = self.alert_config.realert_interval
        next_tick = loop.time() + interval
        receiving: Optional[asyncio.Future] = None

        self.logger.info(f"告警分发器已启动，重发间隔: {interval}秒")

        try:
            while True:
                if receiving is None:
                    receiving = asyncio.ensure_future(channel.recv())

                timeout = max(0.0, next_tick - loop.time())
                done, _ = await asyncio.wait({receiving}, timeout=timeout)

                if receiving in done:
                    update = receiving.result()
                    receiving = None
                    if update is None:
                        break
                    await self.process_update(update)
                    continue

                await self.tick()

                # 错过的定时直接跳过，不排队补发
                now = loop.time()
                next_tick += interval
                if next_tick <= now:
                    missed = int((now - next_tick) // interval) + 1
                    next_tick += missed * interval
        finally:
            if receiving is not None and not receiving.done():
                receiving.cancel()

        self.logger.info(f"更新通道已关闭，最后发送 {len(self.active_alerts)} 条活动告警")
        await self.send_alerts()

    def get_alert_stats(self) -> Dict[str, int]:
        """获取告警统计信息"""
        return {
            'active_alerts': len(self.active_alerts),
            'sends_attempted': self.sends_attempted,
            'sends_failed': self.sends_failed,
        }
