"""
统一的日志管理模块
整合基础日志配置、操作上下文日志和简单指标计数
"""

import asyncio
import functools
import logging
import sys
import threading
import time
import traceback
from collections import defaultdict
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Optional, Dict, Any, Callable

from .config_manager import config_manager, DEFAULT_LOG_FORMAT
from .exceptions import QuoteSystemError, ErrorCodes
from .path_utils import LOG_DIR, resolve_path

# 获取 logging_manager 模块的专用日志器
logger = logging.getLogger("LoggingManager")


@dataclass
class LogConfig:
    """日志配置"""
    level: str = "INFO"
    format: str = DEFAULT_LOG_FORMAT
    date_format: str = "%Y-%m-%d %H:%M:%S"
    file_max_bytes: int = 10 * 1024 * 1024  # 10MB
    file_backup_count: int = 5
    enable_console: bool = True
    enable_file: bool = True
    log_directory: Optional[str] = None
    log_filename: str = "sys.log"
    rotation_type: str = "size"  # "size" or "time"


class LoggingManager:
    """统一的日志管理器"""

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, '_initialized'):
            return

        self._initialized = True
        self._loggers: Dict[str, logging.Logger] = {}
        self._config = LogConfig()
        self._metrics = defaultdict(int)

    def configure(self, config: LogConfig = None):
        """配置日志系统"""
        if config:
            self._config = config

        if self._config.log_directory is None:
            self._config.log_directory = str(LOG_DIR)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, self._config.level.upper(), logging.INFO))

        self._clear_handlers(root_logger)

        if self._config.enable_console:
            self._add_console_handler(root_logger)

        if self._config.enable_file:
            Path(self._config.log_directory).mkdir(parents=True, exist_ok=True)
            self._add_file_handler(root_logger)

    def configure_from_config_file(self):
        """从配置文件加载日志配置"""
        try:
            logging_config = config_manager.get_logging_config()
            rotation_config = logging_config.file_config.rotation or {}

            config = LogConfig(
                level=logging_config.level,
                format=logging_config.format,
                date_format=logging_config.date_format,
                file_max_bytes=rotation_config.get('max_bytes_mb', 10) * 1024 * 1024,
                file_backup_count=rotation_config.get('backup_count', 5),
                enable_console=logging_config.console_config.enabled,
                enable_file=logging_config.file_config.enabled,
                log_directory=str(resolve_path(logging_config.file_config.directory)),
                log_filename=logging_config.file_config.filename,
                rotation_type=rotation_config.get('type', 'size')
            )

            self.configure(config)
            self._configure_module_loggers(logging_config.modules)

            return logging_config

        except Exception as e:
            raise QuoteSystemError(
                f"Failed to configure logging from config file: {str(e)}",
                ErrorCodes.CONFIG_INVALID_FORMAT
            ) from e

    def _configure_module_loggers(self, modules_config: Dict[str, Any]):
        """配置模块特定的日志器，禁用的模块设为 CRITICAL"""
        for module_name, module_config in modules_config.items():
            module_logger = self.get_logger(module_name)
            if module_config.enabled:
                module_logger.setLevel(getattr(logging, module_config.level.upper(), logging.INFO))
            else:
                module_logger.setLevel(logging.CRITICAL)

    def _clear_handlers(self, target: logging.Logger):
        """清除现有处理器"""
        for handler in target.handlers[:]:
            handler.close()
            target.removeHandler(handler)

    def _formatter(self) -> logging.Formatter:
        return logging.Formatter(self._config.format, datefmt=self._config.date_format)

    def _add_console_handler(self, target: logging.Logger):
        """添加控制台处理器"""
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(self._formatter())
        target.addHandler(console_handler)

    def _add_file_handler(self, target: logging.Logger):
        """添加文件处理器"""
        log_file_path = Path(self._config.log_directory) / self._config.log_filename

        if self._config.rotation_type == "size":
            file_handler = RotatingFileHandler(
                filename=log_file_path,
                maxBytes=self._config.file_max_bytes,
                backupCount=self._config.file_backup_count,
                encoding="utf-8"
            )
        else:  # time rotation
            file_handler = TimedRotatingFileHandler(
                filename=log_file_path,
                when="midnight",
                interval=1,
                backupCount=self._config.file_backup_count,
                encoding="utf-8"
            )

        file_handler.setFormatter(self._formatter())
        target.addHandler(file_handler)

    def get_logger(self, name: str = None) -> logging.Logger:
        """获取日志记录器"""
        if name is None:
            name = "quotebrowser"

        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)

        return self._loggers[name]

    def get_metrics(self) -> Dict[str, int]:
        """获取日志统计指标"""
        return dict(self._metrics)

    def reset_metrics(self):
        """重置统计指标"""
        self._metrics.clear()


class LogContext:
    """日志上下文管理器，记录操作开始、完成与失败耗时"""

    def __init__(self, module: str, operation: str = None, **context):
        self.module = module
        self.operation = operation
        self.extra_context = {k: v for k, v in context.items() if v is not None}
        self.start_time = None
        self.logger = logging_manager.get_logger(module)

    def __enter__(self):
        self.start_time = time.time()
        self.logger.info(f"[{self._get_context_str()}] Starting operation")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.time() - self.start_time
        context = self._get_context_str()
        if exc_type is not None:
            self.logger.error(f"[{context}] Operation failed in {duration:.2f}s: {exc_val}")
            self.logger.debug(f"[{context}] Traceback: {''.join(traceback.format_tb(exc_tb))}")
            logging_manager._metrics[f"{context}_failed"] += 1
        else:
            self.logger.info(f"[{context}] Operation completed in {duration:.2f}s")
            logging_manager._metrics[f"{context}_completed"] += 1

    def _get_context_str(self) -> str:
        parts = [self.module]
        if self.operation:
            parts.append(self.operation)
        for key, value in self.extra_context.items():
            parts.append(f"{key}:{value}")
        return ".".join(parts)


def log_execution(module: str, operation: str = None):
    """日志装饰器，同时支持同步函数与协程函数"""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            with LogContext(module, operation or func.__name__):
                return func(*args, **kwargs)

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            with LogContext(module, operation or func.__name__):
                return await func(*args, **kwargs)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


class MetricsLogger:
    """指标记录器"""

    def __init__(self, module: str):
        self.module = module
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, metric_name: str, value: int = 1):
        """增加计数器"""
        self.counters[metric_name] += value
        logging_manager.get_logger(self.module).debug(
            f"[Metrics] {self.module}.{metric_name}: {self.counters[metric_name]}"
        )

    def get_metrics(self) -> Dict[str, int]:
        """获取所有指标"""
        return dict(self.counters)

    def reset(self):
        """重置指标"""
        self.counters.clear()


# 全局日志管理器实例
logging_manager = LoggingManager()

# 预定义的指标记录器实例
provider_metrics = MetricsLogger("DataSource")


class ModuleLoggers:
    """模块专用日志器集合"""

    QuoteManager = logging_manager.get_logger("QuoteManager")
    QuoteStore = logging_manager.get_logger("QuoteStore")
    AccountStore = logging_manager.get_logger("AccountStore")
    DataSource = logging_manager.get_logger("DataSource")
    Persistence = logging_manager.get_logger("Persistence")
    API = logging_manager.get_logger("API")
    Auth = logging_manager.get_logger("Auth")
    Scheduler = logging_manager.get_logger("Scheduler")
    Config = logging_manager.get_logger("Config")

    @classmethod
    def get_logger(cls, module_name: str):
        """获取指定模块的日志器"""
        return logging_manager.get_logger(module_name)


# 便捷的模块日志器别名
qm_logger = ModuleLoggers.QuoteManager
quote_store_logger = ModuleLoggers.QuoteStore
account_store_logger = ModuleLoggers.AccountStore
ds_logger = ModuleLoggers.DataSource
persistence_logger = ModuleLoggers.Persistence
api_logger = ModuleLoggers.API
auth_logger = ModuleLoggers.Auth
scheduler_logger = ModuleLoggers.Scheduler
config_logger = ModuleLoggers.Config


def initialize_logging(use_config_file: bool = True) -> bool:
    """初始化日志系统，配置文件无效时退回默认配置"""
    try:
        if use_config_file:
            logging_config = logging_manager.configure_from_config_file()
            logging_manager.get_logger().info(
                f"Logging system initialized from config file (level={logging_config.level})"
            )
        else:
            logging_manager.configure()
            logging_manager.get_logger().info("Logging system initialized with default config")
        return True

    except Exception as e:
        print(f"Failed to initialize logging: {e}")
        if use_config_file:
            print("Falling back to default configuration...")
            try:
                logging_manager.configure(LogConfig(enable_file=False))
                logging_manager.get_logger().info("Logging system initialized with fallback config")
                return True
            except Exception as fallback_e:
                print(f"Fallback initialization also failed: {fallback_e}")

        raise QuoteSystemError(
            f"Failed to initialize logging: {str(e)}",
            ErrorCodes.CONFIG_INVALID_FORMAT
        ) from e
