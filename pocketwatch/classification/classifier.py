"""Keyword-based category suggestion.

Runs once, when a transaction is created without an explicit category.
Rule-based on purpose: no external calls, and the same title always maps
to the same category.
"""

from pocketwatch.models.transaction import Category


# Ordering matters: earlier categories win when several keywords match.
CATEGORY_KEYWORDS: dict[Category, tuple[str, ...]] = {
    Category.FOOD: (
        "starbucks", "mcdonalds", "subway", "chipotle", "pizza", "burger",
        "restaurant", "cafe", "coffee", "lunch", "dinner", "breakfast",
        "groceries", "walmart", "costco", "trader", "whole foods",
        "doordash", "ubereats", "grubhub",
    ),
    Category.UTILITIES: (
        "shell", "gas", "electric", "water", "internet", "phone", "verizon",
        "att", "t-mobile", "comcast", "xfinity", "pg&e", "utility", "bill",
    ),
    Category.TRANSPORT: (
        "uber", "lyft", "taxi", "bus", "metro", "train", "gas station",
        "chevron", "exxon", "mobil", "parking", "toll",
    ),
    Category.ENTERTAINMENT: (
        "netflix", "spotify", "hulu", "disney", "hbo", "amazon prime",
        "movie", "concert", "game", "steam", "playstation", "xbox",
        "nintendo",
    ),
    Category.SHOPPING: (
        "amazon", "target", "best buy", "apple", "nike", "adidas", "zara",
        "h&m", "clothes", "shoes", "electronics",
    ),
    Category.HEALTH: (
        "pharmacy", "cvs", "walgreens", "doctor", "hospital", "gym",
        "fitness", "medicine", "dental", "vision",
    ),
    Category.SUBSCRIPTIONS: (
        "subscription", "membership", "monthly", "annual", "premium",
    ),
    Category.INCOME: (
        "salary", "paycheck", "bonus", "freelance", "income",
        "payment received", "deposit",
    ),
    Category.OTHER: (),
}


def suggest_category(title: str) -> Category:
    """Return the first category whose keywords appear in the title.

    Matching is a plain case-insensitive substring test, so "Shell Gas"
    lands in Utilities before Transport ever sees "gas station".
    """
    lowered = (title or "").lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.OTHER


def get_categories() -> list[Category]:
    return list(CATEGORY_KEYWORDS)
