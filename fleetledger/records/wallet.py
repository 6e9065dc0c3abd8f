"""Mini README: Wallet (customer) invoices with sequential numbering.

Structure:
    * WalletInvoice - dataclass for a generated invoice.
    * render_invoice_summary - default artifact generator (plain text).
    * WalletService - numbering, artifact generation, storage and search.

Invoice numbers come from the shared ``invoiceNumber`` counter. The counter
is read, the next number is formatted, the artifact is generated and uploaded,
and only then is the counter advanced with a compare-and-set against the value
that was read. A failed artifact leaves the counter untouched; a lost
compare-and-set means another submission took the number first.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..blobs import BlobStorage
from ..calculator import line_amount, to_number
from ..errors import (
    FleetLedgerError,
    NotFoundError,
    RemoteOperationError,
    ValidationError,
    WriteConflictError,
)
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import INVOICE_COUNTER, INVOICES

LOGGER = get_logger(__name__)

DEFAULT_HS_CODE = "0001.13.01"

ArtifactGenerator = Callable[[Mapping[str, Any]], bytes]


@dataclass(slots=True)
class WalletInvoice:
    """Customer invoice issued from the wallet screen."""

    invoice_number: str
    bill_to: str
    ship_to: str
    invoice_date: str
    customer_id: str
    description: str
    hs_code: str
    quantity: float
    unit_price: float
    amount: float
    artifact_url: Optional[str] = None

    def as_record(self) -> Dict[str, Any]:
        record = {
            "invoiceNumber": self.invoice_number,
            "billTo": self.bill_to,
            "shipTo": self.ship_to,
            "invoiceDate": self.invoice_date,
            "customerId": self.customer_id,
            "description": self.description,
            "hsCode": self.hs_code,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "amount": f"{self.amount:.2f}",
        }
        if self.artifact_url:
            record["artifactUrl"] = self.artifact_url
        return record


def render_invoice_summary(invoice: Mapping[str, Any]) -> bytes:
    """Render the invoice fields as an upper-cased text document."""

    lines = [f"{key}: {str(value).upper()}" for key, value in invoice.items()]
    lines.append(f"TOTAL: {invoice.get('amount', '0.00')}")
    return ("\n".join(lines) + "\n").encode("utf-8")


def _required_text(form: Mapping[str, Any], field: str, label: str) -> str:
    value = form.get(field)
    if value is None or not str(value).strip():
        raise ValidationError(f"Please enter the {label}.")
    return str(value)


def _required_number(form: Mapping[str, Any], field: str, label: str) -> float:
    raw = form.get(field)
    if raw is None or not str(raw).strip():
        raise ValidationError(f"Please enter the {label}.")
    try:
        float(str(raw).strip())
    except ValueError as error:
        raise ValidationError(f"Please enter a valid number for {label}.") from error
    return to_number(raw)


class WalletService:
    """Issue and look up wallet invoices."""

    def __init__(
        self,
        store: RecordStore,
        *,
        blobs: Optional[BlobStorage] = None,
        prefix: str = "MOK-PFI-",
        counter_seed: int = 599,
        generator: ArtifactGenerator = render_invoice_summary,
    ) -> None:
        self.store = store
        self.blobs = blobs
        self.prefix = prefix
        self.counter_seed = counter_seed
        self.generator = generator

    def format_number(self, counter: int) -> str:
        return f"{self.prefix}{counter:03d}"

    def _counter_value(self, stored: Any) -> int:
        return int(stored) if stored else self.counter_seed

    async def next_invoice_number(self) -> str:
        """Preview the number the next successful submission will receive."""

        stored = await self.store.read(INVOICE_COUNTER)
        return self.format_number(self._counter_value(stored) + 1)

    async def _generate_artifact(self, invoice: WalletInvoice) -> Optional[str]:
        try:
            artifact = self.generator(invoice.as_record())
            if self.blobs is None:
                return None
            return await self.blobs.upload(f"invoices/{invoice.invoice_number}.txt", artifact)
        except Exception as error:
            LOGGER.error("Error generating invoice %s: %s", invoice.invoice_number, error)
            raise RemoteOperationError(
                "An error occurred while generating the invoice. Please try again."
            ) from error

    async def _discard_artifact(self, url: Optional[str]) -> None:
        if url is None or self.blobs is None:
            return
        try:
            await self.blobs.delete(url)
        except FleetLedgerError as error:
            LOGGER.warning("Could not discard artifact %s: %s", url, error)

    async def create_invoice(self, form: Mapping[str, Any]) -> WalletInvoice:
        """Number, render and store a new invoice."""

        bill_to = _required_text(form, "billTo", "bill-to customer")
        ship_to = _required_text(form, "shipTo", "ship-to destination")
        quantity = _required_number(form, "quantity", "quantity")
        unit_price = _required_number(form, "unitPrice", "unit price")

        stored_counter = await self.store.read(INVOICE_COUNTER)
        next_counter = self._counter_value(stored_counter) + 1
        invoice = WalletInvoice(
            invoice_number=self.format_number(next_counter),
            bill_to=bill_to,
            ship_to=ship_to,
            invoice_date=str(form.get("invoiceDate") or ""),
            customer_id=str(form.get("customerId") or ""),
            description=str(form.get("description") or ""),
            hs_code=str(form.get("hsCode") or DEFAULT_HS_CODE),
            quantity=quantity,
            unit_price=unit_price,
            amount=line_amount(quantity, unit_price),
        )

        invoice.artifact_url = await self._generate_artifact(invoice)

        advanced = await self.store.compare_and_set(INVOICE_COUNTER, stored_counter, next_counter)
        if not advanced:
            await self._discard_artifact(invoice.artifact_url)
            LOGGER.warning("Invoice number %s was claimed concurrently", invoice.invoice_number)
            raise WriteConflictError(
                f"Invoice number {invoice.invoice_number} was just issued elsewhere. Please try again."
            )

        try:
            await self.store.set(f"{INVOICES}/{invoice.invoice_number}", invoice.as_record())
        except RemoteOperationError:
            LOGGER.error("Invoice %s numbered but not stored", invoice.invoice_number)
            raise
        LOGGER.info("Issued invoice %s to %s", invoice.invoice_number, bill_to)
        return invoice

    async def search(self, query: str) -> List[Dict[str, Any]]:
        """Find invoices by invoice number or exact bill-to name."""

        query = (query or "").strip()
        if not query:
            raise ValidationError("Please enter an invoice number or customer.")
        if query.startswith(self.prefix):
            record = await self.store.read(f"{INVOICES}/{query}")
            results = [record] if record else []
        else:
            results = await self.store.query_by_field(INVOICES, "billTo", query)
            for result in results:
                result.pop("id", None)
        if not results:
            raise NotFoundError("Invoice not found.")
        return results
