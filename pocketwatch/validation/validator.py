"""
Two-Stage Input Validation

DESIGN DECISION: Validation runs at the coordinator entry point, before any
store is touched. Invalid input aborts the operation with no partial state
change.

STAGE 1 - SCHEMA VALIDATION:
- Required fields present (title, amount, type)
- Title non-empty after trimming
- Amount non-negative, categories and types from the fixed sets
- Failures here are errors: the operation is aborted

STAGE 2 - SEMANTIC VALIDATION:
- Dates far in the future
- Zero or implausibly large amounts
- Income filed under a spending category and vice versa
- Findings here are warnings only: they are reported, never "fixed"
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional, Union

from pydantic import BaseModel, ValidationError

from pocketwatch.config import get_settings
from pocketwatch.config.settings import AppSettings
from pocketwatch.models.transaction import (
    Category,
    SettingsPatch,
    TransactionCreate,
    TransactionPatch,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


_ISSUE_TYPES = {
    "missing": "missing",
    "string_too_short": "empty",
    "enum": "invalid_choice",
}


def _schema_issues(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "input"
        issues.append(ValidationIssue(
            field=field,
            issue_type=_ISSUE_TYPES.get(err["type"], "invalid_value"),
            message=f"{field}: {err['msg']}",
            severity="error",
        ))
    return issues


class TransactionValidator:
    """
    Validates transaction and settings input through a two-stage pipeline.

    Stage 2 only runs when stage 1 passed.
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _parse(self, model: type[BaseModel], data: Union[BaseModel, dict]):
        if isinstance(data, model):
            return data, []
        payload = data.model_dump(by_alias=True, exclude_unset=True) if isinstance(data, BaseModel) else data
        try:
            return model.model_validate(payload), []
        except ValidationError as e:
            return None, _schema_issues(e)

    def _check_date(self, tx_date: Optional[date]) -> list[ValidationIssue]:
        if tx_date is None:
            return []
        limit = date.today() + timedelta(days=self._settings.future_date_tolerance_days)
        if tx_date > limit:
            return [ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({tx_date}) is in the future",
                severity="warning",
            )]
        return []

    def _check_amount(self, amount: Optional[Decimal]) -> list[ValidationIssue]:
        issues = []
        if amount is None:
            return issues
        if amount == 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message="Amount is zero",
                severity="warning",
            ))
        elif amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,.2f}) seems unusually high",
                severity="warning",
            ))
        return issues

    def _check_category(
        self,
        tx_type: Optional[TransactionType],
        category: Optional[Category],
    ) -> list[ValidationIssue]:
        if tx_type is None or category is None:
            return []
        if tx_type == TransactionType.EXPENSE and category == Category.INCOME:
            return [ValidationIssue(
                field="category",
                issue_type="inconsistent",
                message="Expense is filed under the Income category",
                severity="warning",
            )]
        return []

    def _result(self, issues: list[ValidationIssue], schema_valid: bool) -> ValidationResult:
        semantic_valid = schema_valid and not any(
            issue.severity == "error" for issue in issues
        )
        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
        )

    def validate_create(
        self,
        data: Union[TransactionCreate, dict],
    ) -> tuple[Optional[TransactionCreate], ValidationResult]:
        """
        Validate input for a new transaction.

        Returns:
            (parsed_input, result). parsed_input is None when stage 1 failed.
        """
        parsed, issues = self._parse(TransactionCreate, data)
        if parsed is None:
            return None, self._result(issues, schema_valid=False)

        issues = (
            self._check_date(parsed.tx_date)
            + self._check_amount(parsed.amount)
            + self._check_category(parsed.type, parsed.category)
        )
        return parsed, self._result(issues, schema_valid=True)

    def validate_patch(
        self,
        patch: Union[TransactionPatch, dict],
    ) -> tuple[Optional[TransactionPatch], ValidationResult]:
        parsed, issues = self._parse(TransactionPatch, patch)
        if parsed is None:
            return None, self._result(issues, schema_valid=False)

        # Explicit nulls on required fields would wipe them out
        for field in ("title", "amount", "type", "category"):
            if field in parsed.model_fields_set and getattr(parsed, field) is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{field} cannot be cleared",
                    severity="error",
                ))
        if issues:
            return None, self._result(issues, schema_valid=False)

        issues = (
            self._check_date(parsed.tx_date)
            + self._check_amount(parsed.amount)
            + self._check_category(parsed.type, parsed.category)
        )
        return parsed, self._result(issues, schema_valid=True)

    def validate_settings(
        self,
        patch: Union[SettingsPatch, dict],
    ) -> tuple[Optional[SettingsPatch], ValidationResult]:
        parsed, issues = self._parse(SettingsPatch, patch)
        if parsed is None:
            return None, self._result(issues, schema_valid=False)
        return parsed, self._result([], schema_valid=True)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Short text for the presentation layer."""
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []
        if result.has_errors:
            lines.append("Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
