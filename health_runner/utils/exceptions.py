"""异常层次与错误代码"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(Enum):
    """错误代码，按所属模块分段"""
    UNKNOWN_ERROR = 1000

    # 配置
    CONFIG_FILE_NOT_FOUND = 2000
    CONFIG_PARSE_ERROR = 2001
    CONFIG_VALIDATION_ERROR = 2002
    SELECTOR_PARSE_ERROR = 2003

    # 检查器
    CHECKER_INITIALIZATION_ERROR = 3000

    # 告警
    ALERT_CONFIG_ERROR = 4000
    ALERT_SEND_ERROR = 4001

    # 调度
    SCHEDULER_ERROR = 5000
    CHANNEL_CLOSED = 5001


class HealthRunnerError(Exception):
    """
    健康检查运行器异常基类

    Attributes:
        error_code: 错误代码
        details: 附加上下文，format_error() 时输出
        cause: 引发本异常的底层异常
        recoverable: 为 False 时表示重试无意义（配置错误等）
    """

    default_code = ErrorCode.UNKNOWN_ERROR
    default_recoverable = True

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None,
                 recoverable: Optional[bool] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details or {})
        self.cause = cause
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def _add_detail(self, key: str, value: Any) -> None:
        if value is not None:
            self.details[key] = value

    def format_error(self) -> str:
        """格式化为 "[代码] 消息 (详情: ...) (原因: ...)" 形式，用于日志和命令行输出"""
        text = f"[{self.error_code.name}] {self.message}"
        if self.details:
            text += " (详情: " + ", ".join(f"{k}={v}" for k, v in self.details.items()) + ")"
        if self.cause is not None:
            text += f" (原因: {self.cause})"
        return text


class ConfigError(HealthRunnerError):
    """配置错误，启动阶段致命"""

    default_code = ErrorCode.CONFIG_VALIDATION_ERROR
    default_recoverable = False

    def __init__(self, message: str, error_code: Optional[ErrorCode] = None,
                 config_path: Optional[str] = None, **kwargs):
        super().__init__(message, error_code, **kwargs)
        self._add_detail('config_path', config_path)


class SelectorError(ConfigError):
    """标签选择器语法错误"""

    def __init__(self, message: str, term: Optional[str] = None, **kwargs):
        super().__init__(message, ErrorCode.SELECTOR_PARSE_ERROR, **kwargs)
        self._add_detail('term', term)


class CheckerError(HealthRunnerError):
    """检查器创建或配置错误"""

    default_code = ErrorCode.CHECKER_INITIALIZATION_ERROR

    def __init__(self, message: str, check_name: Optional[str] = None,
                 check_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_detail('check_name', check_name)
        self._add_detail('check_type', check_type)


class AlertError(HealthRunnerError):
    """告警接收端错误"""

    default_code = ErrorCode.ALERT_SEND_ERROR

    def __init__(self, message: str, sink_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_detail('sink_name', sink_name)


class AlertConfigError(AlertError):
    default_code = ErrorCode.ALERT_CONFIG_ERROR
    default_recoverable = False


class AlertSendError(AlertError):
    """推送失败，下次重发时自动重试"""


class SchedulerError(HealthRunnerError):
    """调度错误"""

    default_code = ErrorCode.SCHEDULER_ERROR

    def __init__(self, message: str, task_name: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_detail('task_name', task_name)


class ChannelClosedError(SchedulerError):
    """向已关闭的更新通道发送消息"""

    default_code = ErrorCode.CHANNEL_CLOSED
    default_recoverable = False

    def __init__(self, message: str = "更新通道已关闭", **kwargs):
        super().__init__(message, **kwargs)
