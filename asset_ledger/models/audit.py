"""
Audit Models for Asset Ledger

Every mutation of the store, and every persistence or image failure,
is described by an AuditEvent. Events go to the structured log, which
is the operator channel for failures that are never raised to callers.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Store lifecycle
    STORE_LOADED = "store_loaded"
    STORE_LOAD_FAILED = "store_load_failed"
    STORE_SEEDED = "store_seeded"

    # Items
    ITEM_ADDED = "item_added"
    ITEM_UPDATED = "item_updated"
    ITEM_DELETED = "item_deleted"
    VALUE_RECORDED = "value_recorded"

    # Categories
    CATEGORY_ADDED = "category_added"
    CATEGORY_UPDATED = "category_updated"
    CATEGORY_DELETED = "category_deleted"

    # Persistence
    PERSIST_FAILED = "persist_failed"

    # Images
    IMAGE_SAVED = "image_saved"
    IMAGE_SAVE_FAILED = "image_save_failed"
    IMAGE_DELETE_FAILED = "image_delete_failed"

    # System events
    OBSERVER_FAILED = "observer_failed"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of the audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'item', 'category', 'image')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Event details
    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.item_added(item_id, name, value)
        event = AuditEventBuilder.persist_failed(error_message, "add_item")
    """

    @staticmethod
    def store_loaded(item_count: int, category_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOADED,
            entity_type="store",
            description=f"Loaded {item_count} items and {category_count} categories",
            details={
                "item_count": item_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def store_load_failed(error_message: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description="Persisted data could not be loaded, falling back to defaults",
            error_message=error_message,
        )

    @staticmethod
    def store_seeded(reason: str, item_count: int, category_count: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORE_SEEDED,
            entity_type="store",
            description=f"Store seeded with defaults ({reason})",
            details={
                "reason": reason,
                "item_count": item_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def item_added(item_id: UUID, name: str, value: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_ADDED,
            entity_type="item",
            entity_id=item_id,
            description=f"Item added: {name}",
            details={
                "name": name,
                "value": value,
            },
        )

    @staticmethod
    def item_updated(item_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_UPDATED,
            entity_type="item",
            entity_id=item_id,
            description=f"Item updated: {name}",
        )

    @staticmethod
    def item_deleted(item_id: UUID, name: str, image_removed: Optional[bool]) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ITEM_DELETED,
            entity_type="item",
            entity_id=item_id,
            description=f"Item deleted: {name}",
            details={
                "image_removed": image_removed,
            },
        )

    @staticmethod
    def value_recorded(item_id: UUID, record_id: UUID, value: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALUE_RECORDED,
            entity_type="item",
            entity_id=item_id,
            description=f"Value recorded: {value}",
            details={
                "record_id": str(record_id),
                "value": value,
            },
        )

    @staticmethod
    def category_added(category_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category added: {name}",
        )

    @staticmethod
    def category_updated(category_id: UUID, name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_UPDATED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category updated: {name}",
        )

    @staticmethod
    def category_deleted(category_id: UUID, name: str, affected_items: int) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_DELETED,
            entity_type="category",
            entity_id=category_id,
            description=f"Category deleted: {name} (removed from {affected_items} items)",
            details={
                "affected_items": affected_items,
            },
        )

    @staticmethod
    def persist_failed(error_message: str, operation: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERSIST_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="store",
            description=f"Persisting collections failed after {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def image_saved(item_id: UUID, image_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_SAVED,
            entity_type="image",
            entity_id=item_id,
            description=f"Image saved: {image_name}",
            details={
                "image_name": image_name,
            },
        )

    @staticmethod
    def image_save_failed(item_id: UUID, image_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="image",
            entity_id=item_id,
            description=f"Image could not be saved: {image_name}",
            details={
                "image_name": image_name,
            },
        )

    @staticmethod
    def image_delete_failed(item_id: UUID, image_name: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.IMAGE_DELETE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="image",
            entity_id=item_id,
            description=f"Image could not be deleted, blob may be orphaned: {image_name}",
            details={
                "image_name": image_name,
            },
        )

    @staticmethod
    def observer_failed(error_message: str, change: str) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OBSERVER_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Store observer raised while handling {change}",
            error_message=error_message,
            details={
                "change": change,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
        )
