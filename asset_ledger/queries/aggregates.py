"""
Derived Aggregates

DESIGN DECISION: Every aggregate is a pure function of the collections
passed in. Nothing is cached, so nothing can go stale: totals and counts
are recomputed on every call.

Category snapshot fields (item_count, total_value) are never read here.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Iterable, NamedTuple, Optional
from uuid import UUID

from asset_ledger.models.asset import Category, Item, Reminder, ValueRecord


SECONDS_PER_YEAR = 365 * 24 * 60 * 60


class ItemReminder(NamedTuple):
    """A reminder together with the item that owns it."""
    item: Item
    reminder: Reminder


def _now(now: Optional[datetime]) -> datetime:
    return now or datetime.now(timezone.utc)


# =============================================================================
# PER-ITEM
# =============================================================================

def value_change(item: Item) -> Optional[Decimal]:
    """Appreciation (or depreciation) since purchase. None without a purchase price."""
    if item.purchase_price is None:
        return None
    return item.value - item.purchase_price


def annualized_return(item: Item, now: Optional[datetime] = None) -> Optional[float]:
    """
    Compound annual return since purchase.

    ``(value / purchase_price) ** (1 / years) - 1`` with 365-day years.
    None unless the item has a purchase date, a positive purchase price,
    and the purchase date lies strictly in the past. Also None for a
    negative current value, which has no real-valued root.

    The result is not clamped: a value of zero gives -1.0, and a gain over
    a very short holding period that exceeds float range gives ``inf``.
    """
    if item.purchase_date is None or item.purchase_price is None:
        return None
    if item.purchase_price <= 0:
        return None

    years = (_now(now) - item.purchase_date).total_seconds() / SECONDS_PER_YEAR
    if years <= 0:
        return None

    ratio = float(item.value) / float(item.purchase_price)
    if ratio < 0:
        return None

    try:
        return math.pow(ratio, 1 / years) - 1
    except OverflowError:
        return math.inf


def holding_days(item: Item, now: Optional[datetime] = None) -> int:
    """Whole days since purchase, 0 when the purchase date is unknown."""
    if item.purchase_date is None:
        return 0
    return max((_now(now) - item.purchase_date).days, 0)


def value_history_newest_first(item: Item) -> list[ValueRecord]:
    return sorted(item.value_history, key=lambda record: record.date, reverse=True)


# =============================================================================
# COLLECTION-WIDE
# =============================================================================

def total_value(items: Iterable[Item]) -> Decimal:
    """Sum of current item values."""
    return sum((item.value for item in items), Decimal("0"))


def average_value(items: Iterable[Item]) -> Decimal:
    """Mean current value, 0 for an empty collection."""
    values = [item.value for item in items]
    if not values:
        return Decimal("0")
    return sum(values, Decimal("0")) / len(values)


def recent_items(items: Iterable[Item], n: int) -> list[Item]:
    """The ``n`` most recently created items, newest first."""
    if n <= 0:
        return []
    return sorted(items, key=lambda item: item.created_date, reverse=True)[:n]


def items_in_category(items: Iterable[Item], category_id: UUID) -> list[Item]:
    """Items tagged with the category, most valuable first."""
    members = [item for item in items if category_id in item.category_ids]
    return sorted(members, key=lambda item: item.value, reverse=True)


def category_summaries(
    categories: Iterable[Category],
    items: Iterable[Item],
) -> list[Category]:
    """
    Copies of each category with live ``item_count``/``total_value``.

    Counts come from filtering the item collection by category id.
    """
    items = list(items)
    summaries = []
    for category in categories:
        members = [item for item in items if category.id in item.category_ids]
        summaries.append(
            category.model_copy(
                update={
                    "item_count": len(members),
                    "total_value": total_value(members),
                }
            )
        )
    return summaries


def holding_order(items: Iterable[Item]) -> list[Item]:
    """Items ordered by purchase date (created date when unknown), newest first."""
    return sorted(
        items,
        key=lambda item: item.purchase_date or item.created_date,
        reverse=True,
    )


# =============================================================================
# REMINDERS
# =============================================================================

def _all_reminders(items: Iterable[Item]) -> list[ItemReminder]:
    pairs = [
        ItemReminder(item, reminder)
        for item in items
        for reminder in item.reminders
    ]
    return sorted(pairs, key=lambda pair: pair.reminder.date)


def pending_reminders(items: Iterable[Item]) -> list[ItemReminder]:
    """Open reminders across all items, earliest due first."""
    return [pair for pair in _all_reminders(items) if not pair.reminder.is_completed]


def completed_reminders(items: Iterable[Item]) -> list[ItemReminder]:
    """Completed reminders across all items, earliest due first."""
    return [pair for pair in _all_reminders(items) if pair.reminder.is_completed]
