"""健康检查器工厂"""

from typing import Dict, Type, Any, Optional

from .base import BaseHealthChecker
from ..utils.exceptions import CheckerError


class HealthCheckerFactory:
    """健康检查器工厂类，按配置中的 type 字段创建对应的检查器"""

    def __init__(self):
        """初始化工厂"""
        self._checkers: Dict[str, Type[BaseHealthChecker]] = {}

    def register_checker(self, check_type: str, checker_class: Type[BaseHealthChecker]):
        """
        注册健康检查器类

        Args:
            check_type: 检查类型名称
            checker_class: 健康检查器类

        Raises:
            CheckerError: 注册失败
        """
        if not isinstance(checker_class, type) or not issubclass(checker_class, BaseHealthChecker):
            raise CheckerError(f"检查器类 {getattr(checker_class, '__name__', checker_class)} "
                               f"必须继承自 BaseHealthChecker")

        if check_type in self._checkers:
            raise CheckerError(f"检查类型 '{check_type}' 已经注册了检查器")

        self._checkers[check_type] = checker_class

    def create_checker(self, check_type: str, params: Dict[str, Any],
                       name: Optional[str] = None) -> BaseHealthChecker:
        """
        创建健康检查器实例

        Args:
            check_type: 检查类型
            params: 合并默认值后的探测参数
            name: 检查名称，为空时由检查器生成

        Returns:
            BaseHealthChecker: 健康检查器实例

        Raises:
            CheckerError: 创建失败
        """
        checker_class = self.get_checker_class(check_type)

        try:
            checker = checker_class(name, params)
        except CheckerError:
            raise
        except Exception as e:
            raise CheckerError(f"创建 {check_type} 检查器失败: {e}",
                               check_name=name, check_type=check_type, cause=e)

        if not checker.validate_config():
            raise CheckerError(f"检查 '{checker.name}' 的配置验证失败",
                               check_name=checker.name, check_type=check_type)

        return checker

    def get_supported_types(self) -> list:
        """
        获取支持的检查类型列表

        Returns:
            list: 支持的检查类型列表
        """
        return list(self._checkers.keys())

    def get_checker_class(self, check_type: str) -> Type[BaseHealthChecker]:
        """
        获取指定检查类型的检查器类

        Raises:
            CheckerError: 检查类型不支持
        """
        if check_type not in self._checkers:
            raise CheckerError(f"不支持的检查类型: '{check_type}'", check_type=check_type)

        return self._checkers[check_type]


# 全局工厂实例
health_checker_factory = HealthCheckerFactory()


def register_checker(check_type: str):
    """
    装饰器：注册健康检查器类

    Args:
        check_type: 检查类型名称

    Returns:
        装饰器函数
    """
    def decorator(checker_class: Type[BaseHealthChecker]):
        health_checker_factory.register_checker(check_type, checker_class)
        return checker_class

    return decorator
