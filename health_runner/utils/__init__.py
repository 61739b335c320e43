"""工具模块"""

from .exceptions import (
    HealthRunnerError, ConfigError, SelectorError, CheckerError, AlertError,
    AlertSendError, SchedulerError, ChannelClosedError
)
from .log_manager import LogManager, get_logger, log_manager

__all__ = [
    'HealthRunnerError', 'ConfigError', 'SelectorError', 'CheckerError', 'AlertError',
    'AlertSendError', 'SchedulerError', 'ChannelClosedError',
    'LogManager', 'get_logger', 'log_manager'
]
