"""
Built-in seed quotes.
Used as the initial quote store state and as the last fallback tier when
neither the provider nor the cached store can answer.
"""

from typing import List

from .models import QuoteRecord


SEED_QUOTES = (
    QuoteRecord("Be yourself; everyone else is already taken.", "Oscar Wilde", ["wisdom", "inspiration"]),
    QuoteRecord("The only way to do great work is to love what you do.", "Steve Jobs", ["success", "motivation"]),
    QuoteRecord("Life is what happens when you're busy making other plans.", "John Lennon", ["life", "wisdom"]),
    QuoteRecord("In three words I can sum up everything I've learned about life: it goes on.", "Robert Frost", ["life", "wisdom"]),
    QuoteRecord("The future belongs to those who believe in the beauty of their dreams.", "Eleanor Roosevelt", ["inspiration", "success"]),
    QuoteRecord("Be the change that you wish to see in the world.", "Mahatma Gandhi", ["inspiration", "wisdom"]),
    QuoteRecord("Everything you can imagine is real.", "Pablo Picasso", ["creativity", "inspiration"]),
    QuoteRecord("The best way to predict the future is to create it.", "Abraham Lincoln", ["success", "motivation"]),
    QuoteRecord("If you tell the truth, you don't have to remember anything.", "Mark Twain", ["wisdom", "humor"]),
    QuoteRecord("A room without books is like a body without a soul.", "Cicero", ["wisdom", "life"]),
    QuoteRecord("You miss 100% of the shots you don't take.", "Wayne Gretzky", ["success", "motivation"]),
    QuoteRecord("Love all, trust a few, do wrong to none.", "William Shakespeare", ["love", "wisdom"]),
    QuoteRecord("The way to get started is to quit talking and begin doing.", "Walt Disney", ["success", "motivation"]),
    QuoteRecord("The only impossible journey is the one you never begin.", "Tony Robbins", ["inspiration", "motivation"]),
    QuoteRecord("The purpose of our lives is to be happy.", "Dalai Lama", ["happiness", "life"]),
)

# 分类兜底时无匹配则返回的前 N 条
SEED_FALLBACK_COUNT = 5


def seed_quotes() -> List[QuoteRecord]:
    """返回种子名言的独立副本，调用方可以自由修改"""
    return [QuoteRecord.from_dict(quote.to_dict()) for quote in SEED_QUOTES]


def seed_categories() -> List[str]:
    categories: List[str] = []
    for quote in SEED_QUOTES:
        for label in quote.categories:
            if label not in categories:
                categories.append(label)
    return categories


def filter_seed(label: str) -> List[QuoteRecord]:
    label = label.lower()
    return [quote for quote in seed_quotes() if quote.has_category(label)]
