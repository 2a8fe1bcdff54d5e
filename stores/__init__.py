"""
Stores module for the quote browser.
In-memory quote and account stores with JSON snapshot persistence.
"""

from .models import QuoteRecord, UserRecord, normalize_categories
from .seed import SEED_QUOTES, SEED_FALLBACK_COUNT, seed_quotes, seed_categories, filter_seed
from .snapshot import SnapshotFile
from .quote_store import QuoteStore
from .account_store import AccountStore

__all__ = [
    'QuoteRecord', 'UserRecord', 'normalize_categories',
    'SEED_QUOTES', 'SEED_FALLBACK_COUNT', 'seed_quotes', 'seed_categories', 'filter_seed',
    'SnapshotFile', 'QuoteStore', 'AccountStore',
]
