"""HTTP接口健康检查器"""

import asyncio
import time
from typing import Optional, Any

import aiohttp

from .base import BaseHealthChecker
from .factory import register_checker
from ..models.health_check import HealthCheckResult

MAX_BODY_IN_ERROR = 2000


@register_checker('http')
class HttpHealthChecker(BaseHealthChecker):
    """对指定URL发起GET请求，2xx状态码视为健康"""

    def validate_config(self) -> bool:
        """
        验证HTTP配置

        Returns:
            bool: 配置是否有效
        """
        url = self.config.get('url')
        if not isinstance(url, str) or not url.startswith(('http://', 'https://')):
            return False

        headers = self.config.get('headers', {})
        if not isinstance(headers, dict):
            return False

        return True

    def display_name(self) -> str:
        return f"http {self.config.get('url')}"

    async def check_health(self, updates: Optional[Any] = None) -> HealthCheckResult:
        """
        执行HTTP健康检查

        Returns:
            HealthCheckResult: 健康检查结果
        """
        start_time = time.time()
        url = self.config['url']
        headers = self.config.get('headers', {})

        try:
            self._note(updates, "making request")

            async with aiohttp.ClientSession() as session:
                async with session.get(url, headers=headers) as response:
                    status = response.status
                    self._note(updates, f"response status: {status}")

                    if 200 <= status < 300:
                        return self._result(True, time.time() - start_time, status_code=status)

                    body = await response.text()
                    if len(body) > MAX_BODY_IN_ERROR:
                        body = body[:MAX_BODY_IN_ERROR] + '...'
                    error_message = f"HTTP状态码不符合期望: {status}"
                    if body:
                        error_message += f"\n{body}"
                    return self._result(False, time.time() - start_time, error_message,
                                        status_code=status)

        except aiohttp.ClientError as e:
            error_message = f"HTTP请求失败: {e}"
        except asyncio.TimeoutError:
            error_message = "HTTP请求超时"

        return self._result(False, time.time() - start_time, error_message)
