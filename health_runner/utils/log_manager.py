"""
日志管理器模块

所有模块通过 get_logger() 获取日志记录器。控制台日志写入stderr，
stdout 只输出检查报告；配置 log_file 后同时写入轮转的日志文件。
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Dict, Any, List

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class LogManager:
    """日志管理器（单例），配置变化时重建所有已创建记录器的处理器"""

    _instance: Optional['LogManager'] = None

    def __new__(cls) -> 'LogManager':
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._setup_defaults()
            cls._instance = instance
        return cls._instance

    def _setup_defaults(self) -> None:
        self._loggers: Dict[str, logging.Logger] = {}
        self.level = logging.INFO
        self.log_file: Optional[str] = None
        self.max_file_size = 10 * 1024 * 1024  # 10MB
        self.backup_count = 5
        self.console = True

        self._console_formatter = logging.Formatter(
            '%(asctime)s - %(levelname)s - %(name)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self._file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    def configure(self, config: Dict[str, Any]) -> None:
        """
        应用日志配置

        Args:
            config: 配置文件 logging 段或命令行覆盖项，可包含 log_level、
                log_file、max_file_size、backup_count、enable_console

        Raises:
            ValueError: 日志级别无效
        """
        if 'log_level' in config:
            level_name = str(config['log_level']).upper()
            if level_name not in LOG_LEVELS:
                raise ValueError(f"无效的日志级别: {level_name}")
            self.level = getattr(logging, level_name)

        if config.get('log_file'):
            self.log_file = config['log_file']
        self.max_file_size = config.get('max_file_size', self.max_file_size)
        self.backup_count = config.get('backup_count', self.backup_count)
        self.console = config.get('enable_console', self.console)

        for logger in self._loggers.values():
            self._attach_handlers(logger)

    def get_logger(self, name: str) -> logging.Logger:
        """获取（必要时创建）指定名称的日志记录器"""
        logger = self._loggers.get(name)
        if logger is None:
            logger = logging.getLogger(name)
            logger.propagate = False
            self._attach_handlers(logger)
            self._loggers[name] = logger
        return logger

    def _build_handlers(self) -> List[logging.Handler]:
        handlers: List[logging.Handler] = []

        if self.console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(self._console_formatter)
            handlers.append(console_handler)

        if self.log_file:
            Path(self.log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                self.log_file,
                maxBytes=self.max_file_size,
                backupCount=self.backup_count,
                encoding='utf-8'
            )
            file_handler.setFormatter(self._file_formatter)
            handlers.append(file_handler)

        return handlers

    def _attach_handlers(self, logger: logging.Logger) -> None:
        self._close_handlers(logger)
        logger.setLevel(self.level)
        for handler in self._build_handlers():
            handler.setLevel(self.level)
            logger.addHandler(handler)

    @staticmethod
    def _close_handlers(logger: logging.Logger) -> None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def cleanup(self) -> None:
        """关闭所有处理器（程序退出前调用）"""
        for logger in self._loggers.values():
            self._close_handlers(logger)
        self._loggers.clear()


log_manager = LogManager()


def get_logger(name: str) -> logging.Logger:
    """获取日志记录器的便捷函数"""
    return log_manager.get_logger(name)
