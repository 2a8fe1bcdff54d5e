"""
工具模块包
提供项目所需的通用工具和功能
"""

# 导出核心工具
from .config_manager import (
    config_manager,
    UnifiedConfigManager,
    LoggingConfig,
    ApiConfig,
    ProviderConfig,
    StorageConfig,
    AuthConfig,
    SchedulerConfig
)
from .exceptions import (
    QuoteSystemError,
    ConfigurationError,
    ValidationError,
    NotFoundError,
    AlreadyExistsError,
    InvalidCredentialsError,
    AuthenticationError,
    DataSourceError,
    UpstreamUnavailableError,
    PersistenceError,
    ErrorCodes,
    create_error_response
)
from .logging_manager import (
    LogContext,
    log_execution,
    MetricsLogger,
    logging_manager,
    provider_metrics,
    initialize_logging,
    ModuleLoggers,
    qm_logger,
    quote_store_logger,
    account_store_logger,
    ds_logger,
    persistence_logger,
    api_logger,
    auth_logger,
    scheduler_logger,
    config_logger
)
from .path_utils import BASE_DIR, CONFIG_DIR, LOG_DIR, DATA_DIR, resolve_path
from .security_utils import PasswordHasher, TokenManager, TokenClaims

# 版本信息
__version__ = "1.0.0"

__all__ = [
    # 配置管理
    "config_manager",
    "UnifiedConfigManager",
    "LoggingConfig",
    "ApiConfig",
    "ProviderConfig",
    "StorageConfig",
    "AuthConfig",
    "SchedulerConfig",

    # 异常处理
    "QuoteSystemError",
    "ConfigurationError",
    "ValidationError",
    "NotFoundError",
    "AlreadyExistsError",
    "InvalidCredentialsError",
    "AuthenticationError",
    "DataSourceError",
    "UpstreamUnavailableError",
    "PersistenceError",
    "ErrorCodes",
    "create_error_response",

    # 日志工具
    "LogContext",
    "log_execution",
    "MetricsLogger",
    "logging_manager",
    "provider_metrics",
    "initialize_logging",
    "ModuleLoggers",
    "qm_logger",
    "quote_store_logger",
    "account_store_logger",
    "ds_logger",
    "persistence_logger",
    "api_logger",
    "auth_logger",
    "scheduler_logger",
    "config_logger",

    # 路径工具
    "BASE_DIR",
    "CONFIG_DIR",
    "LOG_DIR",
    "DATA_DIR",
    "resolve_path",

    # 安全工具
    "PasswordHasher",
    "TokenManager",
    "TokenClaims",
]
