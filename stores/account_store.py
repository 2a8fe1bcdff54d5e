"""
Account store for the quote browser.
Registers users, verifies credentials and keeps each user's favorite quotes.
State lives in memory and is snapshotted to a JSON list of user objects.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from utils import account_store_logger
from utils.exceptions import (
    ValidationError, NotFoundError, AlreadyExistsError,
    InvalidCredentialsError, ErrorCodes
)
from utils.security_utils import PasswordHasher

from .models import QuoteRecord, UserRecord
from .snapshot import SnapshotFile


def _require(**fields: Any) -> None:
    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            ErrorCodes.VALIDATION_MISSING_REQUIRED_FIELD,
            {"fields": missing}
        )


class AccountStore:
    """用户账户与收藏"""

    def __init__(self, snapshot_file: Optional[SnapshotFile] = None,
                 password_hasher: Optional[PasswordHasher] = None):
        self._snapshot_file = snapshot_file
        self._hasher = password_hasher or PasswordHasher()
        self._users: List[UserRecord] = []
        # 已分配过的最大 id，删除/恢复都不会让它回退
        self._last_id = 0
        self._lock = asyncio.Lock()

    @property
    def size(self) -> int:
        return len(self._users)

    @property
    def users(self) -> List[UserRecord]:
        return list(self._users)

    # ========================================================================
    # 注册与认证
    # ========================================================================

    async def register(self, username: str, email: str, password: str) -> UserRecord:
        """注册新用户

        Raises:
            ValidationError: 缺少必填字段
            AlreadyExistsError: 邮箱或用户名已被占用
        """
        _require(username=username, email=email, password=password)

        async with self._lock:
            if self.find_by_email(email) is not None or self.find_by_username(username) is not None:
                raise AlreadyExistsError("User already exists", ErrorCodes.USER_ALREADY_EXISTS)

            # bcrypt 计算较慢，放到线程池避免阻塞事件循环
            loop = asyncio.get_running_loop()
            digest = await loop.run_in_executor(None, self._hasher.hash, password)

            self._last_id += 1
            user = UserRecord(
                id=self._last_id,
                username=username,
                email=email,
                password_hash=digest,
                favorites=[],
                created_at=datetime.now(timezone.utc),
            )
            self._users.append(user)
            account_store_logger.info(f"[AccountStore] Registered user {user.id} ({username})")
            await self._persist_locked()

        return user

    async def authenticate(self, email: str, password: str) -> UserRecord:
        """校验邮箱与密码；未知邮箱与错误密码返回同一错误"""
        _require(email=email, password=password)

        user = self.find_by_email(email)
        loop = asyncio.get_running_loop()
        if user is None:
            # 未知邮箱同样走一次 bcrypt，响应耗时不暴露邮箱是否已注册
            await loop.run_in_executor(None, self._hasher.dummy_verify)
            raise InvalidCredentialsError("Invalid credentials", ErrorCodes.AUTH_INVALID_CREDENTIALS)

        valid = await loop.run_in_executor(None, self._hasher.verify, password, user.password_hash)
        if not valid:
            account_store_logger.info(f"[AccountStore] Failed login for user {user.id}")
            raise InvalidCredentialsError("Invalid credentials", ErrorCodes.AUTH_INVALID_CREDENTIALS)

        return user

    # ========================================================================
    # 查询
    # ========================================================================

    def get_user(self, user_id: int) -> UserRecord:
        for user in self._users:
            if user.id == user_id:
                return user
        raise NotFoundError("User not found", ErrorCodes.USER_NOT_FOUND, {"user_id": user_id})

    def find_by_email(self, email: str) -> Optional[UserRecord]:
        return next((user for user in self._users if user.email == email), None)

    def find_by_username(self, username: str) -> Optional[UserRecord]:
        return next((user for user in self._users if user.username == username), None)

    # ========================================================================
    # 收藏
    # ========================================================================

    def get_favorites(self, user_id: int) -> List[QuoteRecord]:
        return list(self.get_user(user_id).favorites)

    async def add_favorite(self, user_id: int, quote: QuoteRecord) -> List[QuoteRecord]:
        """收藏名言，按 (content, author) 判重"""
        _require(content=quote.content, author=quote.author)

        async with self._lock:
            user = self.get_user(user_id)
            if user.find_favorite(quote.content, quote.author) is not None:
                raise AlreadyExistsError("Quote already in favorites", ErrorCodes.FAVORITE_ALREADY_EXISTS)

            user.favorites.append(
                QuoteRecord(quote.content, quote.author, list(quote.categories), quote.added_by)
            )
            account_store_logger.info(f"[AccountStore] User {user_id} favorited a quote by {quote.author}")
            await self._persist_locked()
            return list(user.favorites)

    async def remove_favorite(self, user_id: int, content: str, author: str) -> List[QuoteRecord]:
        """取消收藏；不存在的收藏视为无操作"""
        _require(content=content, author=author)

        async with self._lock:
            user = self.get_user(user_id)
            remaining = [f for f in user.favorites if not (f.content == content and f.author == author)]
            if len(remaining) != len(user.favorites):
                user.favorites = remaining
                account_store_logger.info(f"[AccountStore] User {user_id} removed a favorite by {author}")
            await self._persist_locked()
            return list(user.favorites)

    # ========================================================================
    # 快照
    # ========================================================================

    def snapshot(self) -> List[Dict[str, Any]]:
        return [user.to_dict() for user in self._users]

    def restore(self, state: List[Dict[str, Any]]) -> None:
        if not isinstance(state, list):
            raise ValidationError("User snapshot must be a list", ErrorCodes.VALIDATION_ERROR)

        users: List[UserRecord] = []
        for item in state:
            try:
                users.append(UserRecord.from_dict(item))
            except (ValidationError, KeyError, TypeError, ValueError) as e:
                account_store_logger.warning(f"[AccountStore] Skipping invalid user entry: {e}")

        self._users = users
        self._last_id = max([self._last_id] + [user.id for user in users])
        account_store_logger.info(f"[AccountStore] Restored {len(users)} users")

    async def load(self) -> bool:
        if self._snapshot_file is None:
            return False

        state = await self._snapshot_file.load()
        if state is None:
            return False

        async with self._lock:
            try:
                self.restore(state)
            except ValidationError as e:
                account_store_logger.error(f"[AccountStore] Ignoring unusable users file: {e}")
                return False
        return True

    async def persist(self) -> bool:
        async with self._lock:
            return await self._persist_locked()

    async def _persist_locked(self) -> bool:
        if self._snapshot_file is None:
            return False
        return await self._snapshot_file.save(self.snapshot())
