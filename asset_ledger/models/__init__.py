"""
Data Models Package

This package contains all Pydantic models used by Asset Ledger.
Everything the store owns or persists conforms to these schemas.
"""

from asset_ledger.models.asset import (
    DEFAULT_IMAGE_NAME,
    Category,
    Item,
    Reminder,
    ReminderType,
    ValidationIssue,
    ValidationResult,
    ValueRecord,
    parse_hex_color,
    rgb_to_hex,
)
from asset_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Asset models
    "DEFAULT_IMAGE_NAME",
    "Category",
    "Item",
    "Reminder",
    "ReminderType",
    "ValidationIssue",
    "ValidationResult",
    "ValueRecord",
    "parse_hex_color",
    "rgb_to_hex",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
