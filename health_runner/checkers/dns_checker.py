"""DNS解析健康检查器"""

import time
from typing import Optional, Any, List

import dns.asyncresolver
import dns.exception
import dns.resolver

from .base import BaseHealthChecker
from .factory import register_checker
from ..models.health_check import HealthCheckResult

SUPPORTED_RECORD_TYPES = ('A', 'AAAA')


@register_checker('dns')
class DnsHealthChecker(BaseHealthChecker):
    """解析域名的地址记录，至少得到一个地址视为健康"""

    def __init__(self, name: str, config):
        super().__init__(name, config)
        self._resolver: Optional[dns.asyncresolver.Resolver] = None

    def validate_config(self) -> bool:
        domain = self.config.get('domain')
        if not isinstance(domain, str) or not domain.strip():
            return False

        record_types = self.config.get('record_types', list(SUPPORTED_RECORD_TYPES))
        if not isinstance(record_types, list) or not record_types:
            return False
        if any(record_type not in SUPPORTED_RECORD_TYPES for record_type in record_types):
            return False

        nameservers = self.config.get('nameservers')
        if nameservers is not None:
            if not isinstance(nameservers, list) or not nameservers:
                return False
            # 指定了解析服务器时在加载配置阶段创建解析器，地址无效即配置错误
            try:
                self._resolver = self._build_resolver(nameservers)
            except (ValueError, dns.exception.DNSException) as e:
                self.logger.error(f"DNS解析服务器配置无效: {e}")
                return False

        return True

    def display_name(self) -> str:
        return f"dns '{self.config.get('domain')}'"

    @staticmethod
    def _build_resolver(nameservers: List[str]) -> dns.asyncresolver.Resolver:
        """
        使用指定的解析服务器创建解析器

        Raises:
            ValueError: 解析服务器地址无效
        """
        resolver = dns.asyncresolver.Resolver(configure=False)
        resolver.nameservers = list(nameservers)
        return resolver

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        """未指定解析服务器时，首次探测才读取系统解析配置"""
        if self._resolver is None:
            self._resolver = dns.asyncresolver.Resolver(configure=True)
        return self._resolver

    async def _resolve(self, domain: str, record_type: str) -> List[str]:
        try:
            answer = await self._get_resolver().resolve(domain, record_type)
        except dns.resolver.NoAnswer:
            return []
        return [str(record) for record in answer]

    async def check_health(self, updates: Optional[Any] = None) -> HealthCheckResult:
        """
        执行DNS健康检查

        Returns:
            HealthCheckResult: 健康检查结果
        """
        start_time = time.time()
        domain = self.config['domain']
        record_types = self.config.get('record_types', list(SUPPORTED_RECORD_TYPES))

        addresses: List[str] = []
        try:
            for record_type in record_types:
                addresses.extend(await self._resolve(domain, record_type))
        except dns.exception.DNSException as e:
            return self._result(False, time.time() - start_time, f"DNS解析失败: {e}")

        response_time = time.time() - start_time
        if not addresses:
            return self._result(False, response_time, f"域名 {domain} 没有解析到任何地址")

        self._note(updates, f"resolved: {', '.join(addresses)}")
        return self._result(True, response_time, addresses=addresses)
