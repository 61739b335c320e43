"""健康检查器基类"""

from abc import ABC, abstractmethod
from typing import Dict, Any, Optional

from ..models.health_check import HealthCheckResult
from ..utils.log_manager import get_logger


class BaseHealthChecker(ABC):
    """健康检查器抽象基类

    每个检查器只执行一次探测并返回结果，超时和重试由检查任务负责。
    """

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化健康检查器

        Args:
            name: 检查名称，为空时使用 display_name
            config: 合并默认值后的探测参数
        """
        self.config = config
        self.check_type = self.__class__.__name__.replace('HealthChecker', '').lower()
        self.name = name or self.display_name()
        self.logger = get_logger(f'checker.{self.check_type}.{self.name}')

    @abstractmethod
    async def check_health(self, updates: Optional[Any] = None) -> HealthCheckResult:
        """
        执行一次探测并返回结果

        Args:
            updates: 可选的更新发送端，用于发送探测进度说明

        Returns:
            HealthCheckResult: 健康检查结果
        """
        pass

    @abstractmethod
    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        pass

    @abstractmethod
    def display_name(self) -> str:
        """根据探测参数生成默认的检查名称"""
        pass

    def _note(self, updates: Optional[Any], message: str) -> None:
        """发送进度说明（没有发送端时只记录日志）"""
        self.logger.debug(message)
        if updates is not None:
            updates.note(message)

    def _result(self, is_healthy: bool, response_time: float,
                error_message: Optional[str] = None, **metadata) -> HealthCheckResult:
        return HealthCheckResult(
            check_name=self.name,
            check_type=self.check_type,
            is_healthy=is_healthy,
            response_time=response_time,
            error_message=error_message,
            metadata=metadata
        )
