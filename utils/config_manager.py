"""
统一的配置管理模块
整合底层配置操作和应用层类型安全访问
"""

import json
import logging
import os
from typing import Any, Optional, Dict, List, TypeVar, Union
from dataclasses import dataclass, field
from pathlib import Path

from .exceptions import ConfigurationError, ErrorCodes
from .path_utils import CONFIG_DIR, resolve_path

# 获取配置专用日志器
config_logger = logging.getLogger("Config")

# 为泛型类型定义一个TypeVar
T = TypeVar('T')

DEFAULT_LOG_FORMAT = "[%(levelname)s][%(asctime)s][%(filename)s:%(lineno)d] - %(message)s"

# ============================================================================
# 配置数据类型定义
# ============================================================================

@dataclass
class LoggingModuleConfig:
    """模块日志配置"""
    level: str = "INFO"
    enabled: bool = True

@dataclass
class FileLoggingConfig:
    """文件日志配置"""
    enabled: bool = True
    directory: str = "log"
    filename: str = "sys.log"
    rotation: Optional[Dict[str, Any]] = None

@dataclass
class ConsoleLoggingConfig:
    """控制台日志配置"""
    enabled: bool = True

@dataclass
class LoggingConfig:
    """完整日志配置"""
    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_config: FileLoggingConfig = field(default_factory=FileLoggingConfig)
    console_config: ConsoleLoggingConfig = field(default_factory=ConsoleLoggingConfig)
    modules: Dict[str, LoggingModuleConfig] = field(default_factory=dict)

@dataclass
class ApiConfig:
    """API配置"""
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    static_dir: Optional[str] = None  # 前端构建目录，存在时挂载到 /

@dataclass
class ProviderConfig:
    """外部名言数据源配置"""
    enabled: bool = True
    base_url: str = "https://api.quotable.io"
    timeout: float = 2.0
    verify_ssl: bool = True
    user_agent: str = "quote-browser/1.0"

@dataclass
class StorageConfig:
    """快照存储配置"""
    data_dir: str = "data"
    quote_cache_file: str = "quoteCache.json"
    users_file: str = "users.json"

    @property
    def data_path(self) -> Path:
        return resolve_path(self.data_dir)

    @property
    def quote_cache_path(self) -> Path:
        return self.data_path / self.quote_cache_file

    @property
    def users_path(self) -> Path:
        return self.data_path / self.users_file

@dataclass
class AuthConfig:
    """认证配置"""
    jwt_secret: str = "your-secret-key"
    jwt_algorithm: str = "HS256"
    token_ttl_days: int = 7
    bcrypt_rounds: int = 10

@dataclass
class SchedulerConfig:
    """调度器配置"""
    enabled: bool = True
    timezone: str = "UTC"
    max_instances: int = 1
    misfire_grace_time: int = 300
    coalesce: bool = True
    jobs: Dict[str, Dict[str, Any]] = field(default_factory=dict)


# ============================================================================
# 统一配置管理器
# ============================================================================

class UnifiedConfigManager:
    """统一配置管理器 - 整合底层操作和应用层抽象"""

    def __init__(self, config_dir: Union[str, Path] = CONFIG_DIR):
        self._config_dir = Path(config_dir)
        self._config_data: Dict[str, Any] = {}

        # 类型化配置缓存
        self._typed_cache: Dict[str, Any] = {}

        # 初始化配置
        self._load_config()

    @property
    def config_dir(self) -> Path:
        return self._config_dir

    def _load_config(self) -> None:
        """加载配置目录下的所有 JSON 文件并按文件名顺序合并"""
        config_logger.info(f"Loading configuration from directory: {self._config_dir}")

        if not self._config_dir.is_dir():
            raise ConfigurationError(
                f"Configuration path is not a directory: {self._config_dir}",
                ErrorCodes.CONFIG_NOT_FOUND
            )

        config_files = sorted(self._config_dir.glob('*.json'))
        if not config_files:
            raise ConfigurationError(
                f"No configuration files (.json) found in: {self._config_dir}",
                ErrorCodes.CONFIG_NOT_FOUND
            )

        merged_config = {}
        for config_file in config_files:
            # 跳过合并后导出的文件
            if config_file.name == "config.merged.json":
                continue
            try:
                with open(config_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(
                    f"Invalid JSON in configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                ) from e
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to read configuration file {config_file.name}: {e}",
                    ErrorCodes.CONFIG_NOT_FOUND
                ) from e
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Configuration file {config_file.name} must contain a JSON object",
                    ErrorCodes.CONFIG_INVALID_FORMAT
                )
            merged_config.update(data)
            config_logger.debug(f"Loaded and merged: {config_file.name}")

        self._config_data = merged_config
        config_logger.info(f"Configuration loaded and merged from {len(config_files)} files.")
        self._typed_cache.clear()

    def reload_config(self) -> None:
        """重新加载配置"""
        config_logger.info("Reloading configuration...")
        self._load_config()

    # ========================================================================
    # 底层访问方法
    # ========================================================================

    def get(self, key: str, default: Optional[T] = None) -> Optional[T]:
        """获取配置值"""
        return self._config_data.get(key, default)

    def get_nested(self, path: str, default: Optional[T] = None) -> Optional[T]:
        """获取嵌套配置值，支持点分隔路径"""
        current = self._config_data

        for key in path.split('.'):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default

        return current

    def set(self, key: str, value: Any) -> None:
        """设置配置值"""
        self._config_data[key] = value
        self._typed_cache.clear()

    def set_nested(self, path: str, value: Any) -> None:
        """设置嵌套配置值"""
        keys = path.split('.')
        current = self._config_data

        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]

        current[keys[-1]] = value
        self._typed_cache.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._config_data

    def __getitem__(self, key: str) -> Any:
        return self._config_data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    # ========================================================================
    # 类型安全访问方法
    # ========================================================================

    def get_logging_config(self) -> LoggingConfig:
        """获取日志配置（类型安全）"""
        if 'logging_config' not in self._typed_cache:
            try:
                logging_data = self.get_nested('logging_config', {})

                file_data = logging_data.get('file_config', {})
                file_config = FileLoggingConfig(
                    enabled=file_data.get('enabled', True),
                    directory=file_data.get('directory', 'log'),
                    filename=file_data.get('filename', 'sys.log'),
                    rotation=file_data.get('rotation')
                )

                console_data = logging_data.get('console_config', {})
                console_config = ConsoleLoggingConfig(
                    enabled=console_data.get('enabled', True)
                )

                modules = {}
                for module_name, module_data in logging_data.get('modules', {}).items():
                    modules[module_name] = LoggingModuleConfig(
                        level=module_data.get('level', 'INFO'),
                        enabled=module_data.get('enabled', True)
                    )

                self._typed_cache['logging_config'] = LoggingConfig(
                    level=logging_data.get('level', 'INFO'),
                    format=logging_data.get('format', DEFAULT_LOG_FORMAT),
                    date_format=logging_data.get('date_format', '%Y-%m-%d %H:%M:%S'),
                    file_config=file_config,
                    console_config=console_config,
                    modules=modules
                )
            except Exception as e:
                config_logger.error(f"Failed to parse logging config: {e}")
                self._typed_cache['logging_config'] = LoggingConfig()

        return self._typed_cache['logging_config']

    def get_api_config(self) -> ApiConfig:
        """获取API配置（类型安全）"""
        if 'api_config' not in self._typed_cache:
            try:
                api_data = self.get_nested('api_config', {})
                self._typed_cache['api_config'] = ApiConfig(
                    host=api_data.get('host', '0.0.0.0'),
                    port=int(os.getenv('PORT') or api_data.get('port', 5000)),
                    cors_origins=api_data.get('cors_origins', ['*']),
                    static_dir=api_data.get('static_dir')
                )
            except Exception as e:
                config_logger.error(f"Failed to parse api config: {e}")
                self._typed_cache['api_config'] = ApiConfig()

        return self._typed_cache['api_config']

    def get_provider_config(self) -> ProviderConfig:
        """获取外部名言数据源配置（类型安全）"""
        if 'provider_config' not in self._typed_cache:
            try:
                provider_data = self.get_nested('provider_config', {})
                self._typed_cache['provider_config'] = ProviderConfig(
                    enabled=provider_data.get('enabled', True),
                    base_url=provider_data.get('base_url', 'https://api.quotable.io').rstrip('/'),
                    timeout=float(provider_data.get('timeout', 2.0)),
                    verify_ssl=provider_data.get('verify_ssl', True),
                    user_agent=provider_data.get('user_agent', 'quote-browser/1.0')
                )
            except Exception as e:
                config_logger.error(f"Failed to parse provider config: {e}")
                self._typed_cache['provider_config'] = ProviderConfig()

        return self._typed_cache['provider_config']

    def get_storage_config(self) -> StorageConfig:
        """获取快照存储配置（类型安全）"""
        if 'storage_config' not in self._typed_cache:
            try:
                storage_data = self.get_nested('storage_config', {})
                self._typed_cache['storage_config'] = StorageConfig(
                    data_dir=storage_data.get('data_dir', 'data'),
                    quote_cache_file=storage_data.get('quote_cache_file', 'quoteCache.json'),
                    users_file=storage_data.get('users_file', 'users.json')
                )
            except Exception as e:
                config_logger.error(f"Failed to parse storage config: {e}")
                self._typed_cache['storage_config'] = StorageConfig()

        return self._typed_cache['storage_config']

    def get_auth_config(self) -> AuthConfig:
        """获取认证配置（类型安全），环境变量 JWT_SECRET 优先"""
        if 'auth_config' not in self._typed_cache:
            try:
                auth_data = self.get_nested('auth_config', {})
                jwt_secret = os.getenv('JWT_SECRET') or auth_data.get('jwt_secret', 'your-secret-key')

                # 记录时遮蔽敏感信息
                config_logger.debug(f"Loading auth config - JWT secret: {'*' * len(jwt_secret) if jwt_secret else 'None'}")

                self._typed_cache['auth_config'] = AuthConfig(
                    jwt_secret=jwt_secret,
                    jwt_algorithm=auth_data.get('jwt_algorithm', 'HS256'),
                    token_ttl_days=int(auth_data.get('token_ttl_days', 7)),
                    bcrypt_rounds=int(auth_data.get('bcrypt_rounds', 10))
                )
            except Exception as e:
                config_logger.error(f"Failed to parse auth config: {e}")
                self._typed_cache['auth_config'] = AuthConfig()

        return self._typed_cache['auth_config']

    def get_scheduler_config(self) -> SchedulerConfig:
        """获取调度器配置（类型安全）"""
        if 'scheduler_config' not in self._typed_cache:
            try:
                scheduler_data = self.get_nested('scheduler_config', {})
                self._typed_cache['scheduler_config'] = SchedulerConfig(
                    enabled=scheduler_data.get('enabled', True),
                    timezone=scheduler_data.get('timezone', 'UTC'),
                    max_instances=scheduler_data.get('max_instances', 1),
                    misfire_grace_time=scheduler_data.get('misfire_grace_time', 300),
                    coalesce=scheduler_data.get('coalesce', True),
                    jobs=scheduler_data.get('jobs', {})
                )
            except Exception as e:
                config_logger.error(f"Failed to parse scheduler config: {e}")
                self._typed_cache['scheduler_config'] = SchedulerConfig()

        return self._typed_cache['scheduler_config']

    # ========================================================================
    # 便捷方法
    # ========================================================================

    def is_enabled(self, feature_path: str) -> bool:
        """检查功能是否启用"""
        return bool(self.get_nested(f"{feature_path}.enabled", False))

    def save_config(self, file_path: Optional[str] = None) -> None:
        """保存合并后的配置到文件"""
        save_path = Path(file_path) if file_path else self._config_dir / "config.merged.json"

        try:
            save_path.parent.mkdir(parents=True, exist_ok=True)
            with open(save_path, 'w', encoding='utf-8') as f:
                json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
            config_logger.info(f"Current merged configuration saved to: {save_path}")
        except OSError as e:
            raise ConfigurationError(
                f"Failed to save configuration: {e}",
                ErrorCodes.CONFIG_INVALID_FORMAT
            ) from e

    def to_dict(self) -> Dict[str, Any]:
        """返回配置数据的字典副本"""
        return self._config_data.copy()

    def update_from_dict(self, config_dict: Dict[str, Any]) -> None:
        """从字典更新配置"""
        self._config_data.update(config_dict)
        self._typed_cache.clear()
        config_logger.info("Configuration updated from dict")

    def clear_cache(self) -> None:
        """清除类型化配置缓存"""
        self._typed_cache.clear()
        config_logger.debug("Configuration cache cleared")


# ============================================================================
# 全局实例
# ============================================================================

config_manager = UnifiedConfigManager()
