#!/usr/bin/env python3
"""
健康检查运行器主程序入口

报告模式下每个检查执行一次（失败时按退避策略重试）并以退出码汇报结果；
告警模式下持续检查并把活动告警推送到 AlertManager，直到收到停止信号。
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional, Dict, Any, List

from health_runner import __version__
from health_runner.models.check import CheckDefinition
from health_runner.services.check_scheduler import CheckScheduler
from health_runner.services.config_manager import ConfigManager
from health_runner.utils.exceptions import HealthRunnerError, ConfigError
from health_runner.utils.label_selector import LabelSelector
from health_runner.utils.log_manager import log_manager, get_logger


class HealthRunnerApp:
    """健康检查运行器应用程序类"""

    def __init__(self, config_path: str, selectors: Optional[List[str]] = None,
                 log_overrides: Optional[Dict[str, Any]] = None):
        """初始化应用程序

        Args:
            config_path: 配置文件路径，``-`` 表示标准输入
            selectors: 标签选择条件列表
            log_overrides: 命令行指定的日志配置，覆盖配置文件
        """
        self.config_path = config_path
        self.selectors = selectors or []
        self.log_overrides = log_overrides or {}
        self.logger: Optional[logging.Logger] = None

        self.config_manager: Optional[ConfigManager] = None
        self.scheduler: Optional[CheckScheduler] = None
        self.definitions: List[CheckDefinition] = []

    def initialize(self) -> None:
        """加载配置并创建调度器，任何错误都在调度检查之前抛出

        Raises:
            ConfigError: 配置或选择条件无效
        """
        # 先应用命令行日志配置，加载配置文件时的日志才能生效
        if self.log_overrides:
            log_manager.configure(self.log_overrides)

        self.config_manager = ConfigManager(self.config_path)
        self.config_manager.load_config()

        self._configure_logging(self.config_manager.get_logging_config())
        self.logger = get_logger('main')

        selector = LabelSelector.parse(self.selectors)
        self.definitions = self.config_manager.build_check_definitions()
        self.scheduler = CheckScheduler(self.definitions, selector)

        self.logger.info(f"初始化完成，共 {len(self.scheduler.definitions)} 个检查")

    def _configure_logging(self, logging_config: Dict[str, Any]) -> None:
        """配置日志系统，命令行参数优先"""
        log_config = dict(logging_config)
        log_config.update(self.log_overrides)
        if log_config:
            log_manager.configure(log_config)

    async def run_report(self, quiet: bool = False) -> int:
        """执行报告模式

        Returns:
            int: 失败的检查数量
        """
        return await self.scheduler.run_report(quiet=quiet)

    async def run_alerts(self) -> None:
        """执行告警模式，直到 shutdown() 被调用

        Raises:
            ConfigError: 缺少 alertConfig 或 alertPolicy
        """
        alert_config = self.config_manager.get_alert_config()
        if alert_config is None:
            raise ConfigError("告警模式需要配置 alertConfig")

        self.scheduler.validate_alert_mode()

        loop = asyncio.get_running_loop()
        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, self.shutdown, signum)
            except NotImplementedError:
                # Windows 事件循环不支持，依赖 KeyboardInterrupt
                pass

        self.logger.info(f"告警接收端: {alert_config.alerts_url}")
        await self.scheduler.run_alerts(alert_config)
        self.logger.info(f"告警模式已停止: {self.get_status()}")

    def shutdown(self, signum: Optional[int] = None) -> None:
        """触发停止：取消所有检查任务，告警分发器随后最后推送一次"""
        if self.logger:
            if signum is not None:
                self.logger.info(f"收到信号 {signal.Signals(signum).name}，正在停止")
            else:
                self.logger.info("正在停止")
        if self.scheduler:
            self.scheduler.stop()

    def get_status(self) -> Dict[str, Any]:
        """获取应用程序状态"""
        status: Dict[str, Any] = {
            'config_path': self.config_path,
            'selectors': self.selectors,
        }
        if self.scheduler:
            status['scheduler_stats'] = self.scheduler.get_scheduler_stats()
        return status


def create_argument_parser() -> argparse.ArgumentParser:
    """创建命令行参数解析器"""
    parser = argparse.ArgumentParser(
        prog='health-runner',
        description='健康检查运行器 - 执行HTTP/DNS/ssh检查，输出报告或向AlertManager发送告警',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例用法:
  %(prog)s checks.yaml                         # 执行一次所有检查并输出报告
  %(prog)s --on hostname:web1,web2 checks.yaml # 只执行匹配标签的检查
  %(prog)s --on 'rack:/^rack203-.*/' checks.yaml
  %(prog)s --alert checks.yaml                 # 持续检查并发送告警
  %(prog)s --validate checks.yaml              # 验证配置文件格式
  cat checks.json | %(prog)s -                 # 从标准输入读取配置

支持的检查类型:
  - http  (GET请求，2xx视为成功)
  - dns   (域名地址解析)
  - ssh   (远程命令，退出码0视为成功)
        """
    )

    parser.add_argument(
        'config_file',
        nargs='?',
        help='YAML/JSON配置文件路径，- 表示标准输入'
    )

    parser.add_argument(
        '--version', '-v',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--on',
        dest='selectors',
        action='append',
        default=[],
        metavar='TERM',
        help='标签选择条件 name:value1,value2 或 name:/regex/，可重复，全部匹配才执行'
    )

    parser.add_argument(
        '--alert',
        action='store_true',
        help='告警模式：持续检查并向告警接收端发送告警'
    )

    parser.add_argument(
        '--validate',
        action='store_true',
        help='验证配置文件格式并退出'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='报告模式下不输出等待状态和检查进度说明'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='设置日志级别（覆盖配置文件设置）'
    )

    parser.add_argument(
        '--log-file',
        help='日志文件路径（覆盖配置文件设置）'
    )

    return parser


def validate_config_file(config_path: str, selectors: Optional[List[str]] = None) -> bool:
    """验证配置文件

    Args:
        config_path: 配置文件路径
        selectors: 标签选择条件

    Returns:
        验证是否成功
    """
    try:
        print(f"正在验证配置文件: {config_path}")

        app = HealthRunnerApp(config_path, selectors)
        app.initialize()

        definitions = app.scheduler.definitions
        print("✅ 配置文件验证成功!")
        print(f"   - 检查数量: {len(definitions)}")
        for definition in definitions:
            labels = ", ".join(f"{k}={v}" for k, v in definition.labels.items())
            print(f"     * [{definition.id}] {definition.name}" + (f" ({labels})" if labels else ""))

        alert_config = app.config_manager.get_alert_config()
        if alert_config:
            print(f"   - 告警接收端: {alert_config.alerts_url}")

        return True

    except HealthRunnerError as e:
        print(f"❌ 配置文件验证失败: {e.format_error()}")
        return False


def build_log_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    if args.log_level:
        overrides['log_level'] = args.log_level
    if args.log_file:
        overrides['log_file'] = args.log_file
    return overrides


async def main(argv: Optional[List[str]] = None) -> int:
    """主函数

    Returns:
        int: 进程退出码
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.config_file:
        parser.print_help()
        return 1

    if args.validate:
        return 0 if validate_config_file(args.config_file, args.selectors) else 1

    app = HealthRunnerApp(args.config_file, args.selectors, build_log_overrides(args))

    try:
        app.initialize()

        if args.alert:
            await app.run_alerts()
            return 0

        failures = await app.run_report(quiet=args.quiet)
        if failures > 0:
            print(f"{failures} 个检查失败", file=sys.stderr)
            return 1
        return 0

    except ConfigError as e:
        print(f"配置错误: {e.format_error()}", file=sys.stderr)
        return 1
    except HealthRunnerError as e:
        print(f"健康检查运行器错误: {e.format_error()}", file=sys.stderr)
        return 1
    finally:
        log_manager.cleanup()


def run() -> None:
    """命令行入口"""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\n用户中断程序", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
