"""Tests for keyword-based category suggestion."""

import pytest

from pocketwatch.classification import CATEGORY_KEYWORDS, get_categories, suggest_category
from pocketwatch.models import Category


class TestSuggestCategory:
    @pytest.mark.parametrize("title, expected", [
        ("Starbucks Coffee", Category.FOOD),
        ("Uber ride", Category.TRANSPORT),
        ("Amazon Prime", Category.ENTERTAINMENT),
        ("Netflix", Category.ENTERTAINMENT),
        ("CVS Pharmacy", Category.HEALTH),
        ("Salary deposit", Category.INCOME),
        ("xyz123", Category.OTHER),
    ])
    def test_known_titles(self, title, expected):
        """Test the category chosen for typical titles."""
        assert suggest_category(title) == expected

    def test_matching_is_case_insensitive(self):
        """Test that case does not change the result."""
        assert suggest_category("STARBUCKS") == suggest_category("starbucks")

    def test_first_category_in_order_wins(self):
        """Test that an earlier category beats a later one on a double match."""
        # "gas" is a Utilities keyword and Utilities precedes Transport
        assert suggest_category("Shell gas station") == Category.UTILITIES

    def test_empty_title_is_other(self):
        """Test that an empty title falls back to Other."""
        assert suggest_category("") == Category.OTHER

    def test_substring_matching(self):
        """Test that keywords match inside longer words."""
        assert suggest_category("Lunchbox refill") == Category.FOOD


class TestCategories:
    def test_every_category_has_rules(self):
        """Test that the rule table covers the whole category set."""
        assert set(CATEGORY_KEYWORDS) == set(Category)

    def test_get_categories_order(self):
        """Test that categories are listed in rule order, Other last."""
        categories = get_categories()
        assert categories[0] == Category.FOOD
        assert categories[-1] == Category.OTHER
