"""
Quote Manager for the quote browser.
Owns the quote and account stores and the provider client, applies the
three-tier fallback (provider, cached store, seed) to quote reads, and
flushes both stores to their snapshot files.
"""

import os
import random
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from utils import qm_logger, config_manager, log_execution, provider_metrics, MetricsLogger
from utils.config_manager import UnifiedConfigManager
from utils.security_utils import PasswordHasher, TokenManager, TokenClaims
from stores import (
    QuoteRecord, UserRecord, QuoteStore, AccountStore, SnapshotFile,
    seed_quotes, filter_seed, SEED_FALLBACK_COUNT
)
from data_sources import BaseQuoteSource, QuotableSource


fallback_metrics = MetricsLogger("QuoteManager")


class QuoteManager:
    """名言服务管理器"""

    def __init__(self, config: Optional[UnifiedConfigManager] = None,
                 quote_store: Optional[QuoteStore] = None,
                 account_store: Optional[AccountStore] = None,
                 source: Optional[BaseQuoteSource] = None,
                 password_hasher: Optional[PasswordHasher] = None,
                 token_manager: Optional[TokenManager] = None):
        self.config = config or config_manager
        self.storage_config = self.config.get_storage_config()
        self.provider_config = self.config.get_provider_config()
        auth_config = self.config.get_auth_config()

        self.password_hasher = password_hasher or PasswordHasher(auth_config.bcrypt_rounds)
        self.token_manager = token_manager or TokenManager(
            auth_config.jwt_secret,
            auth_config.jwt_algorithm,
            auth_config.token_ttl_days
        )

        self.quote_store = quote_store or QuoteStore(
            SnapshotFile(self.storage_config.quote_cache_path, "quote cache")
        )
        self.account_store = account_store or AccountStore(
            SnapshotFile(self.storage_config.users_path, "users"),
            self.password_hasher
        )

        if source is not None:
            self.source: Optional[BaseQuoteSource] = source
        elif self.provider_config.enabled:
            self.source = QuotableSource(
                base_url=self.provider_config.base_url,
                timeout=self.provider_config.timeout,
                verify_ssl=self.provider_config.verify_ssl,
                user_agent=self.provider_config.user_agent
            )
        else:
            self.source = None

        self.is_initialized = False

    # ========================================================================
    # 生命周期
    # ========================================================================

    @log_execution("QuoteManager", "initialize")
    async def initialize(self) -> None:
        """加载快照并初始化数据源"""
        if self.is_initialized:
            return

        qm_logger.info("Initializing QuoteManager components...")

        try:
            os.makedirs(self.storage_config.data_path, exist_ok=True)
        except OSError as e:
            # 持久化为尽力而为，目录不可用时仅记录
            qm_logger.error(f"[QuoteManager] Cannot create data directory {self.storage_config.data_path}: {e}")

        await self.quote_store.load()
        await self.account_store.load()

        if self.source is not None:
            await self.source.initialize()

        self.is_initialized = True
        qm_logger.info(
            f"QuoteManager initialized: {self.quote_store.size} quotes, "
            f"{self.account_store.size} users, provider {'on' if self.source else 'off'}"
        )

    @log_execution("QuoteManager", "close")
    async def close(self) -> None:
        """落盘并关闭数据源"""
        await self.persist_all()
        if self.source is not None:
            await self.source.close()
        self.is_initialized = False

    # ========================================================================
    # 名言读取（三级降级）
    # ========================================================================

    async def get_random_quote(self) -> QuoteRecord:
        """随机名言：实时数据源 -> 缓存 -> 种子，不抛出异常"""
        try:
            if self.source is not None:
                quote = await self.source.get_random_quote()
                if quote is not None:
                    self.quote_store.merge([quote])
                    return quote
            fallback_metrics.increment("random_from_store")
            return self.quote_store.get_random()
        except Exception as e:
            qm_logger.error(f"[QuoteManager] Random quote failed, serving seed: {e}")
            fallback_metrics.increment("random_from_seed")
            return random.choice(seed_quotes())

    async def get_quotes_by_category(self, label: str) -> List[QuoteRecord]:
        """分类名言：实时数据源 -> 缓存分类 -> 种子过滤 -> 种子前五条，结果总是非空"""
        label = (label or "").strip().lower()
        try:
            if self.source is not None and label:
                live = await self.source.get_quotes_by_tag(label)
                if live:
                    self.quote_store.merge(live, label=label)
                    for quote in live:
                        quote.add_categories([label])
                    return live

            cached = self.quote_store.get_by_category(label)
            if cached:
                fallback_metrics.increment("category_from_store")
                return cached
        except Exception as e:
            qm_logger.error(f"[QuoteManager] Category lookup for '{label}' failed: {e}")

        fallback_metrics.increment("category_from_seed")
        return filter_seed(label) or seed_quotes()[:SEED_FALLBACK_COUNT]

    async def get_categories(self) -> List[str]:
        """分类列表：缓存分类并上数据源标签"""
        categories = set(self.quote_store.list_categories())
        if self.source is not None:
            try:
                tags = await self.source.get_tags()
            except Exception as e:
                qm_logger.error(f"[QuoteManager] Tag lookup failed: {e}")
                tags = None
            if tags:
                categories.update(tags)
        return sorted(categories)

    async def add_quote(self, content: str, author: str,
                        categories: Optional[Iterable[str]] = None,
                        added_by: Optional[str] = None) -> QuoteRecord:
        return await self.quote_store.add_user_quote(content, author, categories, added_by)

    # ========================================================================
    # 账户
    # ========================================================================

    async def register(self, username: str, email: str, password: str) -> Tuple[UserRecord, str]:
        user = await self.account_store.register(username, email, password)
        return user, self.token_manager.issue(user.id, user.username)

    async def login(self, email: str, password: str) -> Tuple[UserRecord, str]:
        user = await self.account_store.authenticate(email, password)
        qm_logger.info(f"[QuoteManager] User {user.id} logged in")
        return user, self.token_manager.issue(user.id, user.username)

    def verify_token(self, token: str) -> TokenClaims:
        return self.token_manager.verify(token)

    def get_favorites(self, user_id: int) -> List[QuoteRecord]:
        return self.account_store.get_favorites(user_id)

    async def add_favorite(self, user_id: int, quote: QuoteRecord) -> List[QuoteRecord]:
        return await self.account_store.add_favorite(user_id, quote)

    async def remove_favorite(self, user_id: int, content: str, author: str) -> List[QuoteRecord]:
        return await self.account_store.remove_favorite(user_id, content, author)

    # ========================================================================
    # 持久化与状态
    # ========================================================================

    async def persist_quotes(self) -> bool:
        return await self.quote_store.persist()

    async def persist_users(self) -> bool:
        return await self.account_store.persist()

    async def persist_all(self) -> Dict[str, bool]:
        return {
            "quotes": await self.persist_quotes(),
            "users": await self.persist_users(),
        }

    def get_system_status(self) -> Dict[str, Any]:
        """获取系统状态"""
        return {
            "quote_manager": {"is_initialized": self.is_initialized},
            "quote_store": {
                "quotes": self.quote_store.size,
                "categories": len(self.quote_store.list_categories()),
                "buckets": self.quote_store.bucket_sizes(),
                "snapshot": str(self.storage_config.quote_cache_path),
            },
            "account_store": {
                "users": self.account_store.size,
                "snapshot": str(self.storage_config.users_path),
            },
            "provider": self.source.get_status() if self.source else {"enabled": False},
            "metrics": {
                "provider": provider_metrics.get_metrics(),
                "fallback": fallback_metrics.get_metrics(),
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
