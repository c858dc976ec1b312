"""
Item Search

Filters the item collection the same way the search screen does:
free text, any-of categories, and an inclusive value range. Every
filter is optional and filters combine with AND.
"""

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from asset_ledger.models.asset import Item


def _matches_text(item: Item, needle: str) -> bool:
    if needle in item.name.casefold():
        return True
    return item.description is not None and needle in item.description.casefold()


def search_items(
    items: Iterable[Item],
    text: Optional[str] = None,
    category_ids: Optional[Iterable[UUID]] = None,
    min_value: Optional[Decimal] = None,
    max_value: Optional[Decimal] = None,
) -> list[Item]:
    """
    Filter items.

    Args:
        items: Items to search
        text: Case-insensitive substring of the name or description
        category_ids: Keep items tagged with at least one of these
        min_value: Keep items whose value is at least this
        max_value: Keep items whose value is at most this

    Returns:
        Matching items in their original order
    """
    results = list(items)

    needle = (text or "").strip().casefold()
    if needle:
        results = [item for item in results if _matches_text(item, needle)]

    wanted = set(category_ids or ())
    if wanted:
        results = [item for item in results if not wanted.isdisjoint(item.category_ids)]

    if min_value is not None:
        results = [item for item in results if item.value >= min_value]
    if max_value is not None:
        results = [item for item in results if item.value <= max_value]

    return results
