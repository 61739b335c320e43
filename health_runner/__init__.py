"""健康检查运行器与告警分发器"""

__version__ = "1.0.0"
