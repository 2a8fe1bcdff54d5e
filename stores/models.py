"""
Store models for the quote browser.
Plain dataclasses for quote records and user accounts, with the JSON
shapes used by the snapshot files and the API.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from utils.exceptions import ValidationError, ErrorCodes


def normalize_categories(categories: Optional[Iterable[str]]) -> List[str]:
    """分类标签统一小写、去空白、去重（保持原有顺序）"""
    result: List[str] = []
    for label in categories or []:
        if not isinstance(label, str):
            continue
        normalized = label.strip().lower()
        if normalized and normalized not in result:
            result.append(normalized)
    return result


def _require_text(data: Dict[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValidationError(
            f"Field '{key}' is required",
            ErrorCodes.VALIDATION_MISSING_REQUIRED_FIELD,
            {"field": key}
        )
    return value


@dataclass
class QuoteRecord:
    """名言记录，去重身份为 (content, author)"""
    content: str
    author: str
    categories: List[str] = field(default_factory=list)
    added_by: Optional[str] = None

    def __post_init__(self):
        self.categories = normalize_categories(self.categories)

    def key(self) -> Tuple[str, str]:
        return (self.content, self.author)

    def matches(self, other: "QuoteRecord") -> bool:
        """按 (content, author) 精确比较，区分大小写"""
        return self.content == other.content and self.author == other.author

    def has_category(self, label: str) -> bool:
        return label in self.categories

    def add_categories(self, labels: Iterable[str]) -> bool:
        """合并分类标签，返回是否有新增"""
        merged = normalize_categories(list(self.categories) + list(labels))
        changed = merged != self.categories
        self.categories = merged
        return changed

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "content": self.content,
            "author": self.author,
            "categories": list(self.categories),
        }
        if self.added_by:
            data["addedBy"] = self.added_by
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "QuoteRecord":
        """从快照或外部数据构造；content/author 缺失时抛出 ValidationError"""
        if not isinstance(data, dict):
            raise ValidationError("Quote must be an object", ErrorCodes.VALIDATION_ERROR)
        categories = data.get("categories")
        if categories is None:
            categories = data.get("tags")
        return cls(
            content=_require_text(data, "content"),
            author=_require_text(data, "author"),
            categories=categories or [],
            added_by=data.get("addedBy") or data.get("added_by"),
        )


@dataclass
class UserRecord:
    """用户账户记录"""
    id: int
    username: str
    email: str
    password_hash: str
    favorites: List[QuoteRecord] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def find_favorite(self, content: str, author: str) -> Optional[QuoteRecord]:
        for favorite in self.favorites:
            if favorite.content == content and favorite.author == author:
                return favorite
        return None

    def to_public_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "username": self.username, "email": self.email}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "password_hash": self.password_hash,
            "favorites": [favorite.to_dict() for favorite in self.favorites],
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        if not isinstance(data, dict):
            raise ValidationError("User must be an object", ErrorCodes.VALIDATION_ERROR)

        # 兼容早期快照中的 password / createdAt 字段
        created_raw = data.get("created_at") or data.get("createdAt")
        created_at = datetime.now(timezone.utc)
        if isinstance(created_raw, str):
            created_at = datetime.fromisoformat(created_raw.replace("Z", "+00:00"))

        favorites = []
        for item in data.get("favorites") or []:
            try:
                favorites.append(QuoteRecord.from_dict(item))
            except ValidationError:
                continue

        return cls(
            id=int(data["id"]),
            username=_require_text(data, "username"),
            email=_require_text(data, "email"),
            password_hash=data.get("password_hash") or data.get("password") or "",
            favorites=favorites,
            created_at=created_at,
        )
