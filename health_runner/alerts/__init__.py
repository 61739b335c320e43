"""告警模块"""

from .base import BaseAlertSink
from .alertmanager_sink import AlertManagerSink
from .dispatcher import AlertDispatcher

__all__ = [
    'BaseAlertSink',
    'AlertManagerSink',
    'AlertDispatcher'
]
