"""
Base quote source for the quote browser.
Common lifecycle for external quote providers. Concrete sources report an
unavailable provider by returning None instead of raising.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from utils import ds_logger
from stores.models import QuoteRecord


class BaseQuoteSource(ABC):
    """名言数据源基类"""

    def __init__(self, name: str):
        self.name = name
        self.session = None
        self.is_initialized = False

    async def initialize(self):
        """初始化数据源"""
        if not self.is_initialized:
            ds_logger.info(f"[{self.name}] Initializing quote source...")
            await self._initialize_impl()
            self.is_initialized = True
            ds_logger.info(f"[{self.name}] Quote source initialized successfully")

    @abstractmethod
    async def _initialize_impl(self):
        """初始化实现"""
        pass

    async def close(self):
        """关闭数据源连接"""
        if self.session:
            await self.session.close()
            self.session = None
        self.is_initialized = False
        ds_logger.info(f"[{self.name}] Quote source closed")

    @abstractmethod
    async def get_random_quote(self) -> Optional[QuoteRecord]:
        """随机名言；数据源不可用时返回 None"""
        pass

    @abstractmethod
    async def get_quotes_by_tag(self, tag: str) -> Optional[List[QuoteRecord]]:
        """按标签查询；数据源不可用时返回 None"""
        pass

    @abstractmethod
    async def get_tags(self) -> Optional[List[str]]:
        """标签列表；数据源不可用时返回 None"""
        pass

    def get_status(self) -> dict:
        return {"name": self.name, "initialized": self.is_initialized}
