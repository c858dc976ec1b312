"""
Boundary Input Validation

Forms hand the store text; the store only accepts typed records.
This module is the bridge: it turns user-entered text into Decimals and
reports every problem in a form at once.

The persisted models accept whatever existing data files hold, so the
range and length rules for new input are enforced here and nowhere else.

IMPORTANT: Validation NEVER silently fixes input.
Anything that is not a clean non-negative number is reported.
"""

from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from asset_ledger.models.asset import ValidationIssue, ValidationResult
from asset_ledger.services.storage.interface import ValidationError


MAX_NAME_LENGTH = 200
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000


def check_amount(amount: Decimal, field: str = "value") -> Decimal:
    """
    Check an amount that is already a Decimal.

    Raises:
        ValidationError: If the amount is not finite or is negative
    """
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} cannot be negative")
    return amount


def check_title(title: str, field: str = "title") -> str:
    """
    Check a reminder title and return it stripped.

    Raises:
        ValidationError: If the title is blank or too long
    """
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise ValidationError(f"{field} is longer than {MAX_TITLE_LENGTH} characters")
    return cleaned


def parse_amount(text: str, field: str = "value") -> Decimal:
    """
    Parse a user-entered amount.

    Raises:
        ValidationError: If the text is empty, not a finite number, or negative
    """
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationError(f"{field} is required")

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        raise ValidationError(f"{field} is not a number: {text!r}")

    return check_amount(amount, field)


def parse_optional_amount(text: Optional[str], field: str = "purchase_price") -> Optional[Decimal]:
    """Like parse_amount, but blank input means "not given"."""
    if text is None or not text.strip():
        return None
    return parse_amount(text, field)


class ItemInputValidator:
    """
    Validates the fields of an add/edit item form.

    Errors block saving; warnings are shown but allowed.
    """

    def validate(
        self,
        name: str,
        value_text: str,
        purchase_price_text: Optional[str] = None,
        purchase_date: Optional[datetime] = None,
        now: Optional[datetime] = None,
        description: Optional[str] = None,
    ) -> ValidationResult:
        issues = []

        cleaned_name = (name or "").strip()
        if not cleaned_name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
            ))
        elif len(cleaned_name) > MAX_NAME_LENGTH:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message=f"Name is longer than {MAX_NAME_LENGTH} characters",
                severity="error",
            ))

        if description and len(description.strip()) > MAX_DESCRIPTION_LENGTH:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=f"Description is longer than {MAX_DESCRIPTION_LENGTH} characters",
                severity="error",
            ))

        try:
            parse_amount(value_text, "value")
        except ValidationError as e:
            issues.append(ValidationIssue(
                field="value",
                issue_type="invalid_amount",
                message=str(e),
                severity="error",
            ))

        try:
            parse_optional_amount(purchase_price_text, "purchase_price")
        except ValidationError as e:
            issues.append(ValidationIssue(
                field="purchase_price",
                issue_type="invalid_amount",
                message=str(e),
                severity="error",
            ))

        if purchase_date is not None:
            current = now or datetime.now(timezone.utc)
            if purchase_date.tzinfo is None:
                purchase_date = purchase_date.replace(tzinfo=timezone.utc)
            if purchase_date > current:
                issues.append(ValidationIssue(
                    field="purchase_date",
                    issue_type="future_date",
                    message=f"Purchase date ({purchase_date.date()}) is in the future",
                    severity="warning",
                ))

        return ValidationResult(issues=issues)
