"""数据模型模块"""

from .check import (
    StatusKind, CheckStatus, CheckUpdate, CheckOutcome, BackoffPolicy,
    AlertPolicy, AlertConfig, CheckInfo, CheckDefinition
)
from .health_check import HealthCheckResult, ActiveAlert, format_rfc3339

__all__ = [
    'StatusKind', 'CheckStatus', 'CheckUpdate', 'CheckOutcome', 'BackoffPolicy',
    'AlertPolicy', 'AlertConfig', 'CheckInfo', 'CheckDefinition',
    'HealthCheckResult', 'ActiveAlert', 'format_rfc3339'
]
