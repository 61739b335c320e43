"""AlertManager 告警接收端实现"""

import asyncio
from typing import Dict, Any, List
from urllib.parse import urlparse

import aiohttp

from .base import BaseAlertSink
from ..models.check import AlertConfig
from ..models.health_check import ActiveAlert
from ..utils.exceptions import AlertConfigError, AlertSendError
from ..utils.log_manager import get_logger


class AlertManagerSink(BaseAlertSink):
    """以JSON数组形式 POST 活动告警到 ``{baseURL}/alerts``，失败不自动重试"""

    def __init__(self, name: str, config: Dict[str, Any]):
        """
        初始化AlertManager接收端

        Args:
            name: 接收端名称
            config: 接收端配置，包含 url、可选的 headers、timeout、ssl_verify
        """
        super().__init__(name, config)
        self.logger = get_logger(f'alerter.alertmanager.{self.name}')

        self.url = config.get('url', '')
        self.headers = config.get('headers', {})

        if not self.validate_config():
            raise AlertConfigError(f"AlertManager接收端配置无效: {name}", sink_name=name)

    @classmethod
    def from_alert_config(cls, alert_config: AlertConfig,
                          name: str = 'alertmanager') -> 'AlertManagerSink':
        return cls(name, {'url': alert_config.alerts_url, 'timeout': alert_config.timeout})

    def validate_config(self) -> bool:
        """
        验证配置参数是否有效

        Returns:
            bool: 配置是否有效
        """
        if not self.url:
            self.logger.error(f"AlertManager接收端 {self.name} 缺少URL配置")
            return False

        parsed_url = urlparse(self.url)
        if parsed_url.scheme not in ('http', 'https') or not parsed_url.netloc:
            self.logger.error(f"AlertManager接收端 {self.name} URL格式无效: {self.url}")
            return False

        if not isinstance(self.headers, dict):
            self.logger.error(f"AlertManager接收端 {self.name} headers 必须是字典")
            return False

        return True

    def build_payload(self, alerts: List[ActiveAlert]) -> List[Dict[str, Any]]:
        return [alert.to_dict() for alert in alerts]

    async def send_alerts(self, alerts: List[ActiveAlert]) -> bool:
        """
        发送活动告警集合

        Args:
            alerts: 活动告警列表

        Returns:
            bool: 接收端是否返回2xx

        Raises:
            AlertSendError: 网络请求失败或超时
        """
        payload = self.build_payload(alerts)
        self.logger.debug(f"发送 {len(payload)} 条告警到 {self.url}")

        timeout = aiohttp.ClientTimeout(total=self.get_timeout())
        connector = None
        if not self.config.get('ssl_verify', True):
            self.logger.warning(f"AlertManager接收端 {self.name} 已禁用SSL验证")
            connector = aiohttp.TCPConnector(ssl=False)

        try:
            async with aiohttp.ClientSession(timeout=timeout, connector=connector) as session:
                async with session.post(self.url, json=payload, headers=self.headers) as response:
                    if 200 <= response.status < 300:
                        self.logger.debug(
                            f"AlertManager接收端 {self.name} 发送成功 (状态码: {response.status})")
                        return True

                    response_text = await response.text()
                    self.logger.warning(
                        f"AlertManager接收端 {self.name} 收到错误响应 "
                        f"(状态码: {response.status}, 响应: {response_text[:200]})"
                    )
                    return False

        except aiohttp.ClientError as e:
            raise AlertSendError(f"HTTP请求失败: {e}", sink_name=self.name, cause=e)
        except asyncio.TimeoutError as e:
            raise AlertSendError("HTTP请求超时", sink_name=self.name, cause=e)
