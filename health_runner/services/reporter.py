"""检查结果报告器，打印通道中的每一条状态更新"""

import sys
from typing import Dict, TextIO, Optional

from .update_channel import UpdateChannel
from ..models.check import CheckInfo, CheckUpdate, StatusKind
from ..utils.log_manager import get_logger

UNKNOWN_CHECK = "unknown check"


class Reporter:
    """报告器：消费状态更新并输出到终端"""

    def __init__(self, registry: Dict[int, CheckInfo], quiet: bool = False,
                 stream: Optional[TextIO] = None):
        """
        Args:
            registry: 检查ID到检查信息的映射
            quiet: 为True时不输出等待状态和检查进度说明
            stream: 输出流，默认为stdout
        """
        self.registry = registry
        self.quiet = quiet
        self.stream = stream
        self.logger = get_logger('reporter')

    def _should_print(self, update: CheckUpdate) -> bool:
        if not self.quiet:
            return True
        if update.status.kind == StatusKind.WAITING:
            return False
        # 带消息的 Running 更新是检查进度说明
        if update.status.kind == StatusKind.RUNNING and update.message:
            return False
        return True

    def format_update(self, update: CheckUpdate) -> str:
        info = self.registry.get(update.id)
        if info is None:
            self.logger.error(f"收到未注册检查ID {update.id} 的更新")
            name = UNKNOWN_CHECK
        else:
            name = info.name

        lines = [f"{name}: {update.status}"]
        if update.message:
            lines.extend(f"    {line}" for line in update.message.splitlines())
        return "\n".join(lines)

    def report(self, update: CheckUpdate) -> None:
        if not self._should_print(update):
            return
        stream = self.stream or sys.stdout
        print(self.format_update(update), file=stream, flush=True)

    async def run(self, channel: UpdateChannel) -> None:
        """消费更新直到通道关闭"""
        async for update in channel:
            self.report(update)
