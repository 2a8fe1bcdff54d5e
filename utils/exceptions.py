"""
统一异常定义模块
提供名言服务特定的异常类和错误处理机制
"""

from typing import Optional, Dict, Any


class QuoteSystemError(Exception):
    """名言服务基础异常类"""

    def __init__(self, message: str, error_code: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ConfigurationError(QuoteSystemError):
    """配置相关错误"""
    pass


class ValidationError(QuoteSystemError):
    """数据验证错误（缺少必填字段）"""
    pass


class NotFoundError(QuoteSystemError):
    """用户或分类不存在"""
    pass


class AlreadyExistsError(QuoteSystemError):
    """重复注册或重复收藏"""
    pass


class InvalidCredentialsError(QuoteSystemError):
    """登录失败（不区分邮箱不存在和密码错误）"""
    pass


class AuthenticationError(QuoteSystemError):
    """令牌缺失、无效或已过期"""
    pass


class DataSourceError(QuoteSystemError):
    """数据源相关错误"""
    pass


class UpstreamUnavailableError(DataSourceError):
    """外部名言数据源不可用（超时、网络错误、非2xx、响应格式错误）"""
    pass


class PersistenceError(QuoteSystemError):
    """快照文件读写错误"""
    pass


# 错误代码常量
class ErrorCodes:
    """错误代码常量"""

    # 配置错误
    CONFIG_NOT_FOUND = "CONFIG_001"
    CONFIG_INVALID_FORMAT = "CONFIG_002"
    CONFIG_MISSING_KEY = "CONFIG_003"

    # 验证错误
    VALIDATION_ERROR = "VALIDATION_ERROR"
    VALIDATION_MISSING_REQUIRED_FIELD = "VAL_004"

    # 资源错误
    USER_NOT_FOUND = "USER_NOT_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    FAVORITE_ALREADY_EXISTS = "FAVORITE_ALREADY_EXISTS"

    # 认证错误
    AUTH_INVALID_CREDENTIALS = "AUTH_INVALID_CREDENTIALS"
    AUTH_MISSING_TOKEN = "AUTH_MISSING_TOKEN"
    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"

    # 数据源错误
    DATASOURCE_CONNECTION_FAILED = "DS_001"
    DATASOURCE_INVALID_RESPONSE = "DS_003"
    NETWORK_TIMEOUT = "NET_001"

    # 持久化错误
    PERSISTENCE_READ_FAILED = "PERSIST_001"
    PERSISTENCE_WRITE_FAILED = "PERSIST_002"


def create_error_response(error: QuoteSystemError,
                         include_context: bool = False) -> Dict[str, Any]:
    """创建标准化的错误响应"""
    response = {
        "error": error.message,
        "error_code": error.error_code,
    }

    if include_context and error.context:
        response["context"] = error.context

    return response
