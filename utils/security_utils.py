"""
安全工具模块
提供密码摘要与 JWT 令牌的签发、校验
"""

import time
from dataclasses import dataclass
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext

from .exceptions import AuthenticationError, ErrorCodes
from .logging_manager import auth_logger


@dataclass(frozen=True)
class TokenClaims:
    """令牌中携带的用户身份"""
    user_id: int
    username: str


class PasswordHasher:
    """基于 passlib bcrypt 的密码摘要"""

    def __init__(self, rounds: int = 10):
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, digest: str) -> bool:
        """校验密码；摘要格式无法识别时视为不匹配"""
        if not digest:
            return False
        try:
            return self._context.verify(password, digest)
        except (ValueError, TypeError) as e:
            auth_logger.warning(f"[Auth] Unusable password digest: {e}")
            return False

    def dummy_verify(self) -> bool:
        """对固定的占位摘要做一次校验，耗时与真实校验一致，结果恒为 False"""
        self._context.dummy_verify()
        return False


class TokenManager:
    """JWT 令牌管理器"""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_days: int = 7):
        self.secret = secret
        self.algorithm = algorithm
        self.ttl_seconds = ttl_days * 24 * 60 * 60

    def issue(self, user_id: int, username: str) -> str:
        """签发令牌"""
        now = int(time.time())
        payload = {
            "id": user_id,
            "username": username,
            "iat": now,
            "exp": now + self.ttl_seconds,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """校验令牌签名与有效期"""
        try:
            payload: Dict[str, Any] = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as e:
            auth_logger.info(f"[Auth] Token rejected: {e}")
            raise AuthenticationError("Invalid token", ErrorCodes.AUTH_INVALID_TOKEN) from e

        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, int) or not username:
            raise AuthenticationError("Invalid token", ErrorCodes.AUTH_INVALID_TOKEN)

        return TokenClaims(user_id=user_id, username=username)
