"""探测结果与告警相关的数据模型"""

from dataclasses import dataclass, field
from typing import Dict, Any, Optional
from datetime import datetime, timezone


@dataclass
class HealthCheckResult:
    """单次探测结果数据模型"""
    check_name: str
    check_type: str
    is_healthy: bool
    response_time: float
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


def format_rfc3339(value: datetime) -> str:
    """将时间格式化为RFC3339字符串（UTC）"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


@dataclass
class ActiveAlert:
    """当前处于活动状态的告警"""
    labels: Dict[str, str]
    annotations: Dict[str, str]
    starts_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ends_at: Optional[datetime] = None
    generator_url: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.ends_at is not None

    def to_dict(self) -> Dict[str, Any]:
        """转换为告警接收端（AlertManager）格式，未设置的字段不输出"""
        payload: Dict[str, Any] = {
            'startsAt': format_rfc3339(self.starts_at),
            'labels': dict(self.labels),
            'annotations': dict(self.annotations),
        }
        if self.is_resolved:
            payload['endsAt'] = format_rfc3339(self.ends_at)
        if self.generator_url is not None:
            payload['generatorURL'] = self.generator_url
        return payload
