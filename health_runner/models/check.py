"""检查执行相关的数据模型"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, Optional


class StatusKind(Enum):
    """检查状态种类"""
    RUNNING = "Running"
    RETRYING = "Retrying"
    WAITING = "Waiting"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


@dataclass(frozen=True)
class CheckStatus:
    """检查状态，WAITING 状态携带等待时长和原因"""
    kind: StatusKind
    duration: Optional[float] = None
    reason: Optional[str] = None

    @classmethod
    def running(cls) -> 'CheckStatus':
        return cls(StatusKind.RUNNING)

    @classmethod
    def retrying(cls) -> 'CheckStatus':
        return cls(StatusKind.RETRYING)

    @classmethod
    def waiting(cls, duration: float, reason: str) -> 'CheckStatus':
        return cls(StatusKind.WAITING, duration, reason)

    @classmethod
    def succeeded(cls) -> 'CheckStatus':
        return cls(StatusKind.SUCCEEDED)

    @classmethod
    def failed(cls) -> 'CheckStatus':
        return cls(StatusKind.FAILED)

    def __str__(self) -> str:
        if self.kind == StatusKind.WAITING:
            return f"Waiting {self.duration:.1f}s ({self.reason})"
        return self.kind.value


@dataclass(frozen=True)
class CheckUpdate:
    """检查任务发出的状态更新消息"""
    id: int
    status: CheckStatus
    message: Optional[str] = None


class CheckOutcome(Enum):
    """一次检查周期的最终结果"""
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_failure(self) -> bool:
        return self is CheckOutcome.FAILURE


@dataclass(frozen=True)
class BackoffPolicy:
    """指数退避重试策略"""
    max_retries: int = 3
    initial: float = 1.0  # 秒
    multiplier: float = 1.1

    def __post_init__(self):
        if not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise ValueError("max_retries 必须是非负整数")
        if self.initial <= 0:
            raise ValueError("initial 必须大于0")
        if self.multiplier <= 0:
            raise ValueError("multiplier 必须大于0")


@dataclass(frozen=True)
class AlertPolicy:
    """告警模式下的检查节奏"""
    check_interval: float  # 检查通过后的下次检查间隔（秒）
    recheck_interval: float  # 检查失败后的复查间隔（秒）

    def __post_init__(self):
        if self.check_interval <= 0 or self.recheck_interval <= 0:
            raise ValueError("checkInterval 和 recheckInterval 必须大于0")


@dataclass(frozen=True)
class AlertConfig:
    """告警接收端配置"""
    base_url: str
    realert_interval: float
    allow_output_annotation: bool = False
    timeout: float = 10.0

    @property
    def alerts_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/alerts"


@dataclass(frozen=True)
class CheckInfo:
    """注册表中的检查信息"""
    name: str
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CheckDefinition:
    """启动时根据配置生成的检查定义"""
    id: int
    name: str
    checker: Any
    backoff_policy: BackoffPolicy = field(default_factory=BackoffPolicy)
    timeout: float = 10.0
    labels: Dict[str, str] = field(default_factory=dict)
    annotations: Dict[str, str] = field(default_factory=dict)
    alert_policy: Optional[AlertPolicy] = None

    def info(self) -> CheckInfo:
        return CheckInfo(
            name=self.name,
            labels=dict(self.labels),
            annotations=dict(self.annotations)
        )
