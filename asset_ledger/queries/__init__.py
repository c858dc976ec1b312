"""Derived aggregates and search over the item collection."""

from asset_ledger.queries.aggregates import (
    ItemReminder,
    annualized_return,
    average_value,
    category_summaries,
    completed_reminders,
    holding_days,
    holding_order,
    items_in_category,
    pending_reminders,
    recent_items,
    total_value,
    value_change,
    value_history_newest_first,
)
from asset_ledger.queries.search import search_items

__all__ = [
    "ItemReminder",
    "annualized_return",
    "average_value",
    "category_summaries",
    "completed_reminders",
    "holding_days",
    "holding_order",
    "items_in_category",
    "pending_reminders",
    "recent_items",
    "search_items",
    "total_value",
    "value_change",
    "value_history_newest_first",
]
