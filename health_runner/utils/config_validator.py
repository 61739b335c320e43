"""配置验证工具"""

from typing import Dict, Any, Optional

from .exceptions import ConfigError
from .log_manager import LOG_LEVELS
from ..checkers import health_checker_factory


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """配置验证器，检查原始配置的结构和字段类型"""

    @staticmethod
    def validate_root(config: Any) -> None:
        """
        验证配置根节点

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(config, dict):
            raise ConfigError("配置文件根节点必须是字典类型")

        if 'checks' not in config:
            raise ConfigError("配置文件缺少必需的配置项: checks")

        if not isinstance(config['checks'], list):
            raise ConfigError("checks配置必须是列表类型")

        defaults = config.get('defaults')
        if defaults is not None:
            ConfigValidator.validate_defaults(defaults)

        alert_config = config.get('alertConfig')
        if alert_config is not None:
            ConfigValidator.validate_alert_config(alert_config)

        logging_config = config.get('logging')
        if logging_config is not None:
            ConfigValidator.validate_logging_config(logging_config)

        for index, check in enumerate(config['checks']):
            ConfigValidator.validate_check_config(index, check)

    @staticmethod
    def validate_defaults(defaults: Any) -> None:
        """验证 defaults 配置段"""
        if not isinstance(defaults, dict):
            raise ConfigError("defaults配置必须是字典类型")

        for check_type in health_checker_factory.get_supported_types():
            params = defaults.get(check_type)
            if params is not None and not isinstance(params, dict):
                raise ConfigError(f"defaults.{check_type} 必须是字典类型")

        ConfigValidator.validate_retry_policy('defaults', defaults.get('retryPolicy'))
        ConfigValidator.validate_alert_policy('defaults', defaults.get('alertPolicy'))
        ConfigValidator.validate_timeout('defaults', defaults.get('checkTimeout'))

    @staticmethod
    def validate_check_config(index: int, config: Any) -> None:
        """
        验证单个检查配置

        Args:
            index: 检查在配置文件中的位置
            config: 检查配置

        Raises:
            ConfigError: 配置验证失败
        """
        where = f"checks[{index}]"
        if not isinstance(config, dict):
            raise ConfigError(f"{where} 的配置必须是字典类型")

        check_type = config.get('type')
        if check_type is None:
            raise ConfigError(f"{where} 缺少必需的配置项: type")
        supported = health_checker_factory.get_supported_types()
        if check_type not in supported:
            raise ConfigError(f"{where} 的类型 '{check_type}' 不受支持。支持的类型: {supported}")

        params = config.get('params')
        if params is not None and not isinstance(params, dict):
            raise ConfigError(f"{where}.params 必须是字典类型")

        name = config.get('name')
        if name is not None and not isinstance(name, str):
            raise ConfigError(f"{where}.name 必须是字符串")

        for key in ('labels', 'annotations'):
            ConfigValidator.validate_string_map(f"{where}.{key}", config.get(key))

        ConfigValidator.validate_retry_policy(where, config.get('retryPolicy'))
        ConfigValidator.validate_alert_policy(where, config.get('alertPolicy'))
        ConfigValidator.validate_timeout(where, config.get('checkTimeout'))

    @staticmethod
    def validate_string_map(where: str, value: Any) -> None:
        """标签和注解必须是字符串到字符串的映射"""
        if value is None:
            return
        if not isinstance(value, dict):
            raise ConfigError(f"{where} 必须是字典类型")
        for key, item in value.items():
            if not isinstance(key, str) or not isinstance(item, str):
                raise ConfigError(f"{where} 的键和值必须是字符串: {key!r}")

    @staticmethod
    def validate_retry_policy(where: str, policy: Optional[Any]) -> None:
        """验证 retryPolicy（允许部分字段缺省）"""
        if policy is None:
            return
        if not isinstance(policy, dict):
            raise ConfigError(f"{where}.retryPolicy 必须是字典类型")

        max_retries = policy.get('maxRetries')
        if max_retries is not None:
            if not isinstance(max_retries, int) or isinstance(max_retries, bool) or max_retries < 0:
                raise ConfigError(f"{where}.retryPolicy.maxRetries 必须是非负整数")

        for key in ('initial', 'multiplier'):
            value = policy.get(key)
            if value is not None and (not _is_number(value) or value <= 0):
                raise ConfigError(f"{where}.retryPolicy.{key} 必须是正数")

    @staticmethod
    def validate_alert_policy(where: str, policy: Optional[Any]) -> None:
        """验证 alertPolicy（允许部分字段缺省）"""
        if policy is None:
            return
        if not isinstance(policy, dict):
            raise ConfigError(f"{where}.alertPolicy 必须是字典类型")

        for key in ('checkInterval', 'recheckInterval'):
            value = policy.get(key)
            if value is not None and (not _is_number(value) or value <= 0):
                raise ConfigError(f"{where}.alertPolicy.{key} 必须是正数")

    @staticmethod
    def validate_timeout(where: str, timeout: Optional[Any]) -> None:
        """验证 checkTimeout"""
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            raise ConfigError(f"{where}.checkTimeout 必须是正数")

    @staticmethod
    def validate_alert_config(alert_config: Any) -> None:
        """
        验证告警接收端配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(alert_config, dict):
            raise ConfigError("alertConfig配置必须是字典类型")

        base_url = alert_config.get('baseURL')
        if not isinstance(base_url, str) or not base_url.startswith(('http://', 'https://')):
            raise ConfigError("alertConfig.baseURL 必须是有效的HTTP地址")

        realert_interval = alert_config.get('realertInterval')
        if not _is_number(realert_interval) or realert_interval <= 0:
            raise ConfigError("alertConfig.realertInterval 必须是正数")

        allow_output = alert_config.get('allowOutputAnnotation', False)
        if not isinstance(allow_output, bool):
            raise ConfigError("alertConfig.allowOutputAnnotation 必须是布尔值")

        timeout = alert_config.get('timeout')
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            raise ConfigError("alertConfig.timeout 必须是正数")

    @staticmethod
    def validate_logging_config(logging_config: Any) -> None:
        """
        验证日志配置

        Raises:
            ConfigError: 配置验证失败
        """
        if not isinstance(logging_config, dict):
            raise ConfigError("logging配置必须是字典类型")

        log_level = logging_config.get('log_level')
        if log_level is not None:
            if log_level not in LOG_LEVELS:
                raise ConfigError(f"log_level 必须是以下值之一: {list(LOG_LEVELS)}")
