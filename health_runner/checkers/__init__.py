"""健康检查器模块"""

from .base import BaseHealthChecker
from .factory import HealthCheckerFactory, health_checker_factory, register_checker
from .dns_checker import DnsHealthChecker
from .http_checker import HttpHealthChecker
from .ssh_checker import SshHealthChecker

__all__ = ['BaseHealthChecker', 'HealthCheckerFactory', 'health_checker_factory',
           'register_checker', 'HttpHealthChecker', 'DnsHealthChecker', 'SshHealthChecker']
