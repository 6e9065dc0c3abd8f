"""Mini README: Trucking (ledger) invoices and owner statements.

Structure:
    * LEDGER_FIELDS / NUMERIC_FIELDS - the stored invoice layout.
    * LedgerInvoiceService - validation, live preview, submission, grouping
      by owner and per-owner totals.

``amount`` and ``balance`` are derived: whatever the client sends for them is
discarded and recomputed with the calculator before storage.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from typing import Any, Dict, List, Mapping

from ..calculator import format_money, recompute_ledger_invoice, sum_field
from ..errors import NotFoundError, ValidationError
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import LEDGER_INVOICES

LOGGER = get_logger(__name__)

DATE_PATTERN = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$")
NUMBER_PATTERN = re.compile(r"^\d*\.?\d*$")

LEDGER_FIELDS = (
    "date",
    "owner",
    "deport",
    "truckNo",
    "pms",
    "ago",
    "at20",
    "price",
    "amount",
    "expenses",
    "payments",
    "paymentDate",
    "transport",
    "balance",
)
NUMERIC_FIELDS = ("pms", "ago", "at20", "price", "amount", "expenses", "payments", "transport", "balance")
UNKNOWN_OWNER = "unknown"


def _text(form: Mapping[str, Any], field: str) -> str:
    value = form.get(field)
    return "" if value is None else str(value).strip()


class LedgerInvoiceService:
    """Record trucking invoices and summarise them per owner."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    def validate(self, form: Mapping[str, Any]) -> None:
        """Raise ``ValidationError`` for the first invalid field."""

        date = _text(form, "date")
        if not date or not DATE_PATTERN.match(date):
            raise ValidationError("Please enter a valid date in the format dd/mm/yyyy.")
        if not _text(form, "owner"):
            raise ValidationError("Please enter the owner.")
        if not _text(form, "deport"):
            raise ValidationError("Please enter the deport.")
        if not _text(form, "truckNo"):
            raise ValidationError("Please enter the truck number.")
        at20 = _text(form, "at20")
        if not at20 or not NUMBER_PATTERN.match(at20):
            raise ValidationError("Please enter a valid number for AT 20.")
        price = _text(form, "price")
        if not price or not NUMBER_PATTERN.match(price):
            raise ValidationError("Please enter a valid number for price.")
        for field, label in (("pms", "PMS"), ("ago", "AGO"), ("expenses", "expenses"), ("payments", "payments")):
            value = _text(form, field)
            if value and not NUMBER_PATTERN.match(value):
                raise ValidationError(f"Please enter a valid number for {label}.")
        payment_date = _text(form, "paymentDate")
        if payment_date and not DATE_PATTERN.match(payment_date):
            raise ValidationError("Please enter a valid payment date in the format dd/mm/yyyy.")
        transport = _text(form, "transport")
        if transport and not NUMBER_PATTERN.match(transport):
            raise ValidationError("Please enter a valid number for transport.")

    def preview(self, form: Mapping[str, Any]) -> Dict[str, Any]:
        """Recompute the derived fields without validating or storing."""

        cleaned = {field: _text(form, field) for field in LEDGER_FIELDS}
        return recompute_ledger_invoice(cleaned)

    async def submit(self, form: Mapping[str, Any]) -> str:
        self.validate(form)
        record = self.preview(form)
        invoice_id = await self.store.create(LEDGER_INVOICES, record)
        LOGGER.info("Ledger invoice %s saved for %s", invoice_id, record["owner"])
        return invoice_id

    async def list_invoices(self) -> List[Dict[str, Any]]:
        return await self.store.list_children(LEDGER_INVOICES)

    async def grouped_by_owner(self) -> Dict[str, List[Dict[str, Any]]]:
        """Group invoices by lower-cased owner, keeping first-seen order."""

        grouped: Dict[str, List[Dict[str, Any]]] = OrderedDict()
        for invoice in await self.list_invoices():
            owner = (str(invoice.get("owner") or "") or UNKNOWN_OWNER).lower()
            grouped.setdefault(owner, []).append(invoice)
        return grouped

    async def owner_statement(self, owner: str) -> Dict[str, Any]:
        """Return one owner's invoices with each numeric column totalled."""

        key = owner.strip().lower()
        invoices = (await self.grouped_by_owner()).get(key)
        if not invoices:
            raise NotFoundError(f"No invoices for owner '{owner}'.")
        totals = {field: format_money(sum_field(invoices, field)) for field in NUMERIC_FIELDS}
        return {"owner": key, "invoices": invoices, "totals": totals}
