"""配置管理器

负责加载YAML/JSON配置文件（``-`` 表示从标准输入读取）、验证配置，并把
内置默认值、``defaults`` 配置段和每个检查自身的字段逐层合并，生成
检查定义列表。
"""

import os
import sys
from typing import Dict, Any, Optional, List

import yaml

from ..checkers.factory import health_checker_factory
from ..models.check import AlertConfig, AlertPolicy, BackoffPolicy, CheckDefinition
from ..utils.config_validator import ConfigValidator
from ..utils.exceptions import CheckerError, ConfigError, ErrorCode
from ..utils.log_manager import get_logger

DEFAULT_CHECK_TIMEOUT = 10.0

BUILTIN_DEFAULTS: Dict[str, Any] = {
    'checkTimeout': DEFAULT_CHECK_TIMEOUT,
    'retryPolicy': {'maxRetries': 3, 'initial': 1.0, 'multiplier': 1.1},
    'alertPolicy': {},
    'http': {},
    'dns': {},
    'ssh': {'user': 'root'},
}


def merge_layer(base: Optional[Dict[str, Any]],
                override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    两层合并：override 中值不为None的字段覆盖 base

    Args:
        base: 低优先级配置
        override: 高优先级配置

    Returns:
        Dict[str, Any]: 合并后的新字典
    """
    merged = dict(base or {})
    for key, value in (override or {}).items():
        if value is not None:
            merged[key] = value
    return merged


def resolve_section(key: str, defaults: Dict[str, Any],
                    check: Dict[str, Any]) -> Dict[str, Any]:
    """按 内置默认值 < defaults < 检查自身 的顺序合并一个配置段"""
    merged = merge_layer(BUILTIN_DEFAULTS.get(key), defaults.get(key))
    return merge_layer(merged, check)


class ConfigManager:
    """配置管理器，负责配置文件的加载、验证和检查定义的生成"""

    def __init__(self, config_path: str):
        """
        初始化配置管理器

        Args:
            config_path: 配置文件路径，``-`` 表示标准输入
        """
        self.config_path = config_path
        self.config: Dict[str, Any] = {}
        self.logger = get_logger('config_manager')

    def _read_source(self) -> str:
        if self.config_path == '-':
            self.logger.debug("从标准输入读取配置")
            return sys.stdin.read()

        if not os.path.exists(self.config_path):
            raise ConfigError(f"配置文件不存在: {self.config_path}",
                              ErrorCode.CONFIG_FILE_NOT_FOUND, config_path=self.config_path)

        with open(self.config_path, 'r', encoding='utf-8') as file:
            return file.read()

    def load_config(self) -> Dict[str, Any]:
        """
        加载并验证配置

        Returns:
            Dict[str, Any]: 配置字典

        Raises:
            ConfigError: 配置加载或验证失败
        """
        self.logger.info(f"开始加载配置文件: {self.config_path}")

        try:
            config = yaml.safe_load(self._read_source())
        except yaml.YAMLError as e:
            raise ConfigError(f"配置格式错误: {e}", ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path, cause=e)
        except OSError as e:
            raise ConfigError(f"无法读取配置文件 {self.config_path}: {e}",
                              config_path=self.config_path, cause=e)
        except UnicodeDecodeError as e:
            raise ConfigError(f"配置文件编码错误: {e}", ErrorCode.CONFIG_PARSE_ERROR,
                              config_path=self.config_path, cause=e)

        if config is None:
            raise ConfigError("配置文件为空", config_path=self.config_path)

        ConfigValidator.validate_root(config)

        self.config = config
        self.logger.info(f"配置验证成功，包含 {len(config['checks'])} 个检查")
        return self.config

    def get_defaults(self) -> Dict[str, Any]:
        return self.config.get('defaults') or {}

    def get_logging_config(self) -> Dict[str, Any]:
        return self.config.get('logging') or {}

    def get_alert_config(self) -> Optional[AlertConfig]:
        """
        获取告警接收端配置

        Returns:
            Optional[AlertConfig]: 未配置 alertConfig 时返回None
        """
        raw = self.config.get('alertConfig')
        if raw is None:
            return None

        return AlertConfig(
            base_url=raw['baseURL'],
            realert_interval=float(raw['realertInterval']),
            allow_output_annotation=raw.get('allowOutputAnnotation', False),
            timeout=float(raw.get('timeout', 10.0))
        )

    def build_check_definitions(self) -> List[CheckDefinition]:
        """
        根据配置生成检查定义，检查ID为其在配置文件中的位置

        Returns:
            List[CheckDefinition]: 检查定义列表

        Raises:
            ConfigError: 合并后的配置无效或检查器创建失败
        """
        defaults = self.get_defaults()
        definitions = []

        for check_id, check in enumerate(self.config.get('checks', [])):
            definitions.append(self._build_definition(check_id, check, defaults))

        return definitions

    def _build_definition(self, check_id: int, check: Dict[str, Any],
                          defaults: Dict[str, Any]) -> CheckDefinition:
        where = f"checks[{check_id}]"
        check_type = check['type']

        params = resolve_section(check_type, defaults, check.get('params'))
        try:
            checker = health_checker_factory.create_checker(check_type, params, check.get('name'))
        except CheckerError as e:
            raise ConfigError(f"{where} 配置无效: {e.message}", cause=e)

        retry = resolve_section('retryPolicy', defaults, check.get('retryPolicy'))
        try:
            backoff_policy = BackoffPolicy(
                max_retries=retry['maxRetries'],
                initial=float(retry['initial']),
                multiplier=float(retry['multiplier'])
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ConfigError(f"{where}.retryPolicy 无效: {e}", cause=e)

        alert_policy = None
        alert = resolve_section('alertPolicy', defaults, check.get('alertPolicy'))
        if alert:
            missing = [key for key in ('checkInterval', 'recheckInterval') if key not in alert]
            if missing:
                raise ConfigError(f"{where}.alertPolicy 缺少必需的配置项: {', '.join(missing)}")
            alert_policy = AlertPolicy(
                check_interval=float(alert['checkInterval']),
                recheck_interval=float(alert['recheckInterval'])
            )

        timeout = check.get('checkTimeout')
        if timeout is None:
            timeout = defaults.get('checkTimeout', BUILTIN_DEFAULTS['checkTimeout'])

        definition = CheckDefinition(
            id=check_id,
            name=checker.name,
            checker=checker,
            backoff_policy=backoff_policy,
            timeout=float(timeout),
            labels=dict(check.get('labels') or {}),
            annotations=dict(check.get('annotations') or {}),
            alert_policy=alert_policy
        )
        self.logger.debug(f"配置检查 {check_id}: 类型={check_type}, 名称={definition.name}")
        return definition
