"""Boundary input validation package."""

from asset_ledger.validation.validator import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NAME_LENGTH,
    MAX_TITLE_LENGTH,
    ItemInputValidator,
    check_amount,
    check_title,
    parse_amount,
    parse_optional_amount,
)

__all__ = [
    "MAX_DESCRIPTION_LENGTH",
    "MAX_NAME_LENGTH",
    "MAX_TITLE_LENGTH",
    "ItemInputValidator",
    "check_amount",
    "check_title",
    "parse_amount",
    "parse_optional_amount",
]
