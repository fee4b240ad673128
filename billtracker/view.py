"""Derived views over the bill collection: filter, sort and per-status totals.

Everything here is pure. Inputs are never mutated or reordered; callers get
new lists back.
"""

import unicodedata
from enum import Enum
from typing import Dict, Iterable, List, NamedTuple, Optional, Union

from .models import Bill, BillStatus, parse_status

ALL = "All"


class SortKey(str, Enum):
    DEFAULT = "default"
    AMOUNT_DESC = "amount-desc"
    AMOUNT_ASC = "amount-asc"
    NAME_ASC = "name-asc"


# selector values used by the older page versions
LEGACY_SORT_KEYS = {
    "amount-high-low": SortKey.AMOUNT_DESC,
    "amount-low-high": SortKey.AMOUNT_ASC,
    "name-az": SortKey.NAME_ASC,
}


class BillListView(NamedTuple):
    items: List[Bill]
    totals: Dict[BillStatus, float]


def parse_sort_key(raw: Union[str, SortKey, None]) -> SortKey:
    """Unknown or missing keys fall back to the default (insertion) order."""
    if isinstance(raw, SortKey):
        return raw
    if raw in LEGACY_SORT_KEYS:
        return LEGACY_SORT_KEYS[raw]
    try:
        return SortKey(raw)
    except ValueError:
        return SortKey.DEFAULT


def parse_filter(raw: Union[str, BillStatus, None]) -> Optional[BillStatus]:
    """Return the status to keep, or None for "All"."""
    if raw is None or (isinstance(raw, str) and raw.strip().lower() == ALL.lower()):
        return None
    return parse_status(raw)


def collation_key(text: str):
    folded = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    # lowercase ahead of uppercase when strings differ only by case
    return (folded, text.swapcase())


def select_and_order(
    bills: Iterable[Bill],
    filter_status: Union[str, BillStatus, None] = ALL,
    sort_key: Union[str, SortKey, None] = SortKey.DEFAULT,
) -> List[Bill]:
    wanted = parse_filter(filter_status)
    if wanted is None:
        selected = list(bills)
    else:
        selected = [b for b in bills if b.status == wanted]

    key = parse_sort_key(sort_key)
    # sorted() is stable, including with reverse=True
    if key is SortKey.AMOUNT_DESC:
        return sorted(selected, key=lambda b: b.amount.value, reverse=True)
    if key is SortKey.AMOUNT_ASC:
        return sorted(selected, key=lambda b: b.amount.value)
    if key is SortKey.NAME_ASC:
        return sorted(selected, key=lambda b: collation_key(b.name or b.type))
    return selected


def aggregate_totals(bills: Iterable[Bill]) -> Dict[BillStatus, float]:
    """Sum amount values per status. Currencies are added as-is, never converted."""
    totals = {status: 0.0 for status in BillStatus}
    for bill in bills:
        if bill.status in totals:
            totals[bill.status] += bill.amount.value
    return totals


def derive_view(
    bills: Iterable[Bill],
    filter_status: Union[str, BillStatus, None] = ALL,
    sort_key: Union[str, SortKey, None] = SortKey.DEFAULT,
) -> BillListView:
    snapshot = list(bills)
    return BillListView(
        items=select_and_order(snapshot, filter_status, sort_key),
        totals=aggregate_totals(snapshot),
    )
