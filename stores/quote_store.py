"""
Quote store for the quote browser.
Holds the full quote collection and a derived category index, merges quotes
observed from the provider or submitted by users, and snapshots its state to
a JSON file. In-memory state is authoritative while the process is alive.
"""

import asyncio
import random
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from utils import quote_store_logger
from utils.exceptions import ValidationError, ErrorCodes

from .models import QuoteRecord, normalize_categories
from .seed import seed_quotes
from .snapshot import SnapshotFile


def _contains(bucket: List[QuoteRecord], record: QuoteRecord) -> bool:
    return any(existing is record for existing in bucket)


class QuoteStore:
    """名言缓存：全集 + 分类索引"""

    def __init__(self, snapshot_file: Optional[SnapshotFile] = None,
                 seed: Optional[Sequence[QuoteRecord]] = None):
        self._snapshot_file = snapshot_file
        self._seed: List[QuoteRecord] = list(seed) if seed is not None else seed_quotes()
        if not self._seed:
            raise ValueError("Quote store requires a non-empty seed set")

        self._all: List[QuoteRecord] = []
        self._by_category: Dict[str, List[QuoteRecord]] = {}
        # (content, author) -> 第一条匹配记录
        self._key_index: Dict[Tuple[str, str], QuoteRecord] = {}
        self._lock = asyncio.Lock()

        self.merge(self._copy(self._seed))

    # ========================================================================
    # 读取
    # ========================================================================

    @property
    def seed(self) -> List[QuoteRecord]:
        return self._copy(self._seed)

    @property
    def all_quotes(self) -> List[QuoteRecord]:
        return list(self._all)

    @property
    def size(self) -> int:
        return len(self._all)

    def get_random(self) -> QuoteRecord:
        """从全集中等概率随机取一条"""
        return random.choice(self._all)

    def get_by_category(self, label: str) -> List[QuoteRecord]:
        """按分类查询，未知分类返回空列表"""
        return list(self._by_category.get(label.strip().lower(), []))

    def list_categories(self) -> List[str]:
        return sorted(self._by_category.keys())

    def bucket_sizes(self) -> Dict[str, int]:
        return {label: len(bucket) for label, bucket in self._by_category.items()}

    # ========================================================================
    # 写入
    # ========================================================================

    def merge(self, records: Iterable[QuoteRecord], label: Optional[str] = None) -> int:
        """合并外部观察到的名言，按 (content, author) 去重；幂等

        已存在的记录不会重复加入全集，但会并入新的分类标签，
        使分类索引与记录自身的 categories 保持一致。

        Returns:
            新加入全集的记录数
        """
        extra_labels = normalize_categories([label]) if label else []
        added = 0

        for record in records:
            target = self._key_index.get(record.key())
            if target is None:
                target = QuoteRecord(record.content, record.author,
                                     list(record.categories), record.added_by)
                self._all.append(target)
                self._key_index[target.key()] = target
                added += 1
            else:
                target.add_categories(record.categories)

            if extra_labels:
                target.add_categories(extra_labels)
            self._index(target)

        if added:
            quote_store_logger.info(
                f"[QuoteStore] Merged {added} new quotes"
                + (f" under '{extra_labels[0]}'" if extra_labels else "")
                + f" (total {len(self._all)})"
            )
        return added

    async def add_user_quote(self, content: str, author: str,
                             categories: Optional[Iterable[str]] = None,
                             added_by: Optional[str] = None) -> QuoteRecord:
        """添加用户提交的名言并立即持久化

        用户提交的记录不走 (content, author) 去重，直接追加，以保留提交者信息。
        """
        if not content or not author:
            raise ValidationError(
                "Content and author are required",
                ErrorCodes.VALIDATION_MISSING_REQUIRED_FIELD
            )

        record = QuoteRecord(content, author, list(categories or []), added_by)

        async with self._lock:
            self._all.append(record)
            self._key_index.setdefault(record.key(), record)
            for label in record.categories:
                self._by_category.setdefault(label, []).append(record)
            quote_store_logger.info(f"[QuoteStore] Quote added by {added_by or 'anonymous'}: {author}")
            await self._persist_locked()

        return record

    def _index(self, record: QuoteRecord) -> None:
        """把记录加入其每个分类的桶，桶内同样按 (content, author) 去重"""
        for label in record.categories:
            bucket = self._by_category.setdefault(label, [])
            if not any(existing.matches(record) for existing in bucket):
                bucket.append(record)

    @staticmethod
    def _copy(records: Iterable[QuoteRecord]) -> List[QuoteRecord]:
        return [QuoteRecord.from_dict(record.to_dict()) for record in records]

    # ========================================================================
    # 快照
    # ========================================================================

    def snapshot(self) -> Dict[str, Any]:
        return {
            "all": [record.to_dict() for record in self._all],
            "byCategory": {
                label: [record.to_dict() for record in bucket]
                for label, bucket in self._by_category.items()
            },
        }

    def restore(self, state: Dict[str, Any]) -> None:
        """用快照替换当前状态

        分类桶中的条目解析为全集中的同一记录对象；桶中存在而全集中缺失的条目
        会补入全集，缺失的分类标签会补到记录上，保证索引一致。
        """
        if not isinstance(state, dict):
            raise ValidationError("Quote snapshot must be an object", ErrorCodes.VALIDATION_ERROR)

        self._all = []
        self._by_category = {}
        self._key_index = {}
        by_key: Dict[Tuple[str, str], List[QuoteRecord]] = {}

        for item in state.get("all") or []:
            try:
                record = QuoteRecord.from_dict(item)
            except ValidationError as e:
                quote_store_logger.warning(f"[QuoteStore] Skipping invalid snapshot entry: {e}")
                continue
            self._all.append(record)
            self._key_index.setdefault(record.key(), record)
            by_key.setdefault(record.key(), []).append(record)

        for raw_label, items in (state.get("byCategory") or {}).items():
            labels = normalize_categories([raw_label])
            if not labels:
                continue
            label = labels[0]
            bucket = self._by_category.setdefault(label, [])
            for item in items or []:
                try:
                    incoming = QuoteRecord.from_dict(item)
                except ValidationError:
                    continue
                target = self._resolve_bucket_entry(incoming, bucket, by_key)
                if target is None:
                    continue
                target.add_categories([label])
                bucket.append(target)

        for record in self._all:
            self._index(record)

        quote_store_logger.info(
            f"[QuoteStore] Restored {len(self._all)} quotes in {len(self._by_category)} categories"
        )

    def _resolve_bucket_entry(self, incoming: QuoteRecord, bucket: List[QuoteRecord],
                              by_key: Dict[Tuple[str, str], List[QuoteRecord]]) -> Optional[QuoteRecord]:
        candidates = by_key.get(incoming.key(), [])
        for record in candidates:
            if record.added_by == incoming.added_by and not _contains(bucket, record):
                return record
        for record in candidates:
            if not _contains(bucket, record):
                return record
        if candidates:
            # 桶内重复条目
            return None

        self._all.append(incoming)
        self._key_index.setdefault(incoming.key(), incoming)
        by_key.setdefault(incoming.key(), []).append(incoming)
        return incoming

    async def load(self) -> bool:
        """从快照文件恢复；无快照时保持种子数据。种子总会被合并回来，保证全集非空"""
        if self._snapshot_file is None:
            return False

        state = await self._snapshot_file.load()
        if state is None:
            quote_store_logger.info("[QuoteStore] No existing quote cache found, using seed quotes")
            return False

        async with self._lock:
            try:
                self.restore(state)
            except ValidationError as e:
                quote_store_logger.error(f"[QuoteStore] Ignoring unusable quote cache: {e}")
            self.merge(self._copy(self._seed))
        return True

    async def persist(self) -> bool:
        async with self._lock:
            return await self._persist_locked()

    async def _persist_locked(self) -> bool:
        if self._snapshot_file is None:
            return False
        return await self._snapshot_file.save(self.snapshot())
