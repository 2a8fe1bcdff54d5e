"""
Data sources module for the quote browser.
Provides the external quote provider client.
"""

from .base_source import BaseQuoteSource
from .quotable_source import QuotableSource

__all__ = ['BaseQuoteSource', 'QuotableSource']
