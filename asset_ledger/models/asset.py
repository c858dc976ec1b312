"""
Core Data Models for Asset Ledger

These models define the schemas for everything the store owns:
categories, items, and the value records and reminders nested in items.

They are designed to:
1. Enforce type safety at runtime
2. Serialize to the camelCase JSON layout of the persisted files
3. Read back older files (timestamps as reference-epoch seconds)

DESIGN DECISION: Items reference categories by id only.
Category names, icons and colors are resolved from the live category
collection on read, so editing a category never leaves stale copies
behind inside items.

IMPORTANT: The models accept anything an existing data file may hold
(negative amounts, empty or very long strings). Rejecting such a record
would make the whole file unreadable. Range and length rules for user
input live in asset_ledger.validation.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Any, Optional
from uuid import UUID, uuid4

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel


# Seconds-based timestamps in older files count from this instant.
REFERENCE_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

DEFAULT_IMAGE_NAME = "defaultAsset"
GRAY_HEX = "#8E8E93"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _coerce_timestamp(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return REFERENCE_EPOCH + timedelta(seconds=value)
    return value


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _float_to_decimal(value: Any) -> Any:
    # 1234.56 must become Decimal("1234.56"), not its binary expansion
    if isinstance(value, float):
        return Decimal(repr(value))
    return value


Timestamp = Annotated[
    datetime,
    BeforeValidator(_coerce_timestamp),
    AfterValidator(_ensure_utc),
]

# Amounts are Decimals in memory and plain JSON numbers (binary doubles) on
# disk, so only about 15 significant digits survive a save. Any sign is
# accepted here; form input is range-checked in asset_ledger.validation.
Money = Annotated[
    Decimal,
    BeforeValidator(_float_to_decimal),
    PlainSerializer(float, return_type=float, when_used="json"),
]


# =============================================================================
# COLORS
# =============================================================================

def parse_hex_color(value: str) -> Optional[tuple[int, int, int]]:
    """Parse ``#RRGGBB`` (leading ``#`` optional) into an RGB triple."""
    text = value.strip().lstrip("#")
    if len(text) != 6:
        return None
    try:
        return (int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        return None


def rgb_to_hex(red: int, green: int, blue: int) -> str:
    for channel in (red, green, blue):
        if not 0 <= channel <= 255:
            raise ValueError(f"Color channel out of range: {channel}")
    return f"#{red:02X}{green:02X}{blue:02X}"


# =============================================================================
# ENUMS
# =============================================================================

class ReminderType(str, Enum):
    """Kinds of reminders an item can carry."""
    WARRANTY = "warranty"
    MAINTENANCE = "maintenance"
    INSURANCE = "insurance"
    CUSTOM = "custom"


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    A named, colored, iconified tag used to group items.

    CRITICAL: ``item_count`` and ``total_value`` are snapshot fields kept
    for seed/sample data only. Live counts are always recomputed from the
    item collection; nothing in the store reads these fields.

    Two categories are equal when their ids are equal.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(
        default_factory=uuid4,
        description="Stable category identity"
    )
    name: str = Field(
        ...,
        description="Display name"
    )
    icon_name: str = Field(
        default="archivebox",
        description="Symbol name of the category icon"
    )
    color_hex: str = Field(
        default=GRAY_HEX,
        description="Display color as #RRGGBB"
    )
    item_count: int = Field(
        default=0,
        description="Snapshot item count (seed data only)"
    )
    total_value: Money = Field(
        default=Decimal("0"),
        description="Snapshot total value (seed data only)"
    )

    @field_validator("color_hex")
    @classmethod
    def normalize_color_hex(cls, v: str) -> str:
        """Store valid colors as upper-case ``#RRGGBB``; keep anything else as-is."""
        rgb = parse_hex_color(v)
        if rgb is None:
            return v
        return rgb_to_hex(*rgb)

    @property
    def color(self) -> tuple[int, int, int]:
        """RGB color, gray when the stored hex cannot be parsed."""
        return parse_hex_color(self.color_hex) or parse_hex_color(GRAY_HEX)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Category):
            return self.id == other.id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.id)


# =============================================================================
# ITEM SUB-RECORDS
# =============================================================================

class ValueRecord(BaseModel):
    """
    A timestamped value observation in an item's ledger.

    Records are immutable once created; they can only be removed by id.
    """
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(default_factory=uuid4)
    date: Timestamp = Field(default_factory=utcnow)
    value: Money


class Reminder(BaseModel):
    """A dated, completable to-do attached to an item."""
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(
        ...,
        description="What needs to be done"
    )
    date: Timestamp = Field(
        ...,
        description="When the reminder is due"
    )
    is_completed: bool = False


# =============================================================================
# ITEM
# =============================================================================

class Item(BaseModel):
    """
    An owned asset.

    ``value`` is the current value. ``value_history`` is an append-only
    ledger kept in insertion order; adding a record through the store also
    overwrites ``value``.

    When ``is_custom_image`` is true, ``image_name`` names a blob in the
    image store. Otherwise it names a bundled image.
    """
    model_config = ConfigDict(
        str_strip_whitespace=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique item ID"
    )

    name: str = Field(
        ...,
        description="Item name"
    )
    value: Money = Field(
        ...,
        description="Current value"
    )

    # Purchase info
    purchase_price: Optional[Money] = None
    purchase_date: Optional[Timestamp] = None

    image_name: str = Field(
        default=DEFAULT_IMAGE_NAME,
        description="Blob name (custom image) or bundled image name"
    )
    category_ids: set[UUID] = Field(
        default_factory=set,
        description="Ids of the categories this item belongs to"
    )
    description: Optional[str] = None
    created_date: Timestamp = Field(
        default_factory=utcnow,
        description="When the item was added"
    )
    value_history: list[ValueRecord] = Field(default_factory=list)
    reminders: list[Reminder] = Field(default_factory=list)
    is_custom_image: bool = False

    @field_validator("description")
    @classmethod
    def blank_description_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @model_validator(mode="after")
    def validate_sub_record_ids(self) -> "Item":
        """Ids of nested records must be unique within the item."""
        record_ids = [record.id for record in self.value_history]
        if len(record_ids) != len(set(record_ids)):
            raise ValueError("Duplicate value record id")

        reminder_ids = [reminder.id for reminder in self.reminders]
        if len(reminder_ids) != len(set(reminder_ids)):
            raise ValueError("Duplicate reminder id")

        return self


# =============================================================================
# INPUT VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single problem found in user input."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'not_a_number', 'future_date')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a form's worth of input.

    Carries every issue at once so a form can show all of them.
    """

    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Valid when no error-level issues were found."""
        return not self.has_errors

    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
