"""Input validation package."""

from pocketwatch.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
