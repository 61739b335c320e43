"""告警接收端基类"""

from abc import ABC, abstractmethod
from typing import Dict, Any, List

from ..models.health_check import ActiveAlert


class BaseAlertSink(ABC):
    """告警接收端抽象基类"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化告警接收端

        Args:
            name: 接收端名称
            config: 接收端配置参数
        """
        self.name = name
        self.config = config
        self.sink_type = self.__class__.__name__.replace('Sink', '').lower()

    @abstractmethod
    async def send_alerts(self, alerts: List[ActiveAlert]) -> bool:
        """
        发送当前全部活动告警

        Args:
            alerts: 活动告警列表（可能为空）

        Returns:
            bool: 接收端是否接受

        Raises:
            AlertSendError: 网络或传输失败
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

    def get_timeout(self) -> float:
        """
        获取超时时间配置

        Returns:
            float: 超时时间（秒）
        """
        return self.config.get('timeout', 10)
