"""Category classification package."""

from pocketwatch.classification.classifier import (
    CATEGORY_KEYWORDS,
    get_categories,
    suggest_category,
)

__all__ = ["CATEGORY_KEYWORDS", "get_categories", "suggest_category"]
