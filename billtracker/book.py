"""BillBook: the one owner of the bill collection.

Presentation code never touches the list directly. Every change goes
through a method here, which writes the whole collection back to the
storage slot.
"""

import json
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from . import db
from .config import STORAGE_KEY
from .models import Bill, BillIn, BillStatus, parse_amount, parse_status
from .view import ALL, BillListView, SortKey, aggregate_totals, derive_view

logger = logging.getLogger("billtracker.book")


def decode_bills(raw: Optional[str]) -> List[Bill]:
    """Parse the stored JSON array. Anything unusable yields no bills."""
    if not raw:
        return []
    try:
        records = json.loads(raw)
    except ValueError as e:
        logger.warning("Stored bills are not valid JSON, starting empty: %s", e)
        return []
    if not isinstance(records, list):
        logger.warning("Stored bills are not a JSON array, starting empty")
        return []

    bills: List[Bill] = []
    seen = set()
    for record in records:
        try:
            bill = Bill.model_validate(record)
        except ValidationError as e:
            logger.warning("Dropping unreadable bill record %r: %s", record, e)
            continue
        if bill.id in seen:
            logger.warning("Dropping bill with duplicate id %s", bill.id)
            continue
        seen.add(bill.id)
        bills.append(bill)
    return bills


def encode_bills(bills: List[Bill]) -> str:
    return json.dumps([b.model_dump(mode="json", by_alias=True) for b in bills])


class BillBook:
    def __init__(self, storage_key: str = STORAGE_KEY):
        self.storage_key = storage_key
        self._bills: List[Bill] = []

    @property
    def bills(self) -> List[Bill]:
        return list(self._bills)

    def load(self) -> "BillBook":
        self._bills = decode_bills(db.read_slot(self.storage_key))
        logger.info("Loaded %d bills from slot %s", len(self._bills), self.storage_key)
        return self

    def save(self):
        db.write_slot(self.storage_key, encode_bills(self._bills))

    def find(self, bill_id: str) -> Optional[Bill]:
        for bill in self._bills:
            if bill.id == bill_id:
                return bill
        return None

    def add(self, bill_in: BillIn) -> Bill:
        bill = bill_in.to_bill()
        self._bills.append(bill)
        self.save()
        logger.info("New bill added: %s (%s)", bill.id, bill.display_name)
        return bill

    def remove(self, bill_id: str) -> bool:
        kept = [b for b in self._bills if b.id != bill_id]
        if len(kept) == len(self._bills):
            logger.debug("Delete ignored, unknown bill %s", bill_id)
            return False
        self._bills = kept
        self.save()
        logger.info("Bill deleted: %s", bill_id)
        return True

    def update(self, bill_id: str, value, status) -> Optional[Bill]:
        """Replace a bill's amount value and status. Currency and the rest stay."""
        bill = self.find(bill_id)
        if bill is None:
            logger.debug("Edit ignored, unknown bill %s", bill_id)
            return None
        updated = bill.model_copy(update={
            "amount": bill.amount.model_copy(update={"value": parse_amount(value)}),
            "status": parse_status(status),
        })
        self._bills = [updated if b.id == bill_id else b for b in self._bills]
        self.save()
        logger.info("Bill updated: %s -> %.2f %s", bill_id, updated.amount.value, updated.status.value)
        return updated

    def mark_paid(self, bill_id: str) -> Optional[Bill]:
        bill = self.find(bill_id)
        if bill is None:
            return None
        return self.update(bill_id, bill.amount.value, BillStatus.PAID)

    def toggle_status(self, bill_id: str) -> Optional[Bill]:
        """Flip Paid <-> Unpaid. A Pending bill becomes Paid."""
        bill = self.find(bill_id)
        if bill is None:
            return None
        new_status = BillStatus.UNPAID if bill.status == BillStatus.PAID else BillStatus.PAID
        return self.update(bill_id, bill.amount.value, new_status)

    def view(self, filter_status=ALL, sort_key=SortKey.DEFAULT) -> BillListView:
        return derive_view(self._bills, filter_status, sort_key)

    def totals(self) -> Dict[BillStatus, float]:
        return aggregate_totals(self._bills)
