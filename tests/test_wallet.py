"""Mini README: Tests for wallet invoice numbering and search.

Structure:
    * Sequential numbering from the shared counter (seeded at 599).
    * Artifact failures and lost counter races leave the counter consistent.
    * Lookup by invoice number or bill-to customer.
"""

from __future__ import annotations

import pytest

from fleetledger.blobs import InMemoryBlobStorage
from fleetledger.errors import (
    NotFoundError,
    RemoteOperationError,
    ValidationError,
    WriteConflictError,
)
from fleetledger.records import WalletService
from fleetledger.store import InMemoryRecordStore

FORM = {
    "billTo": "Rift Valley Oil",
    "shipTo": "Eldoret depot",
    "invoiceDate": "2024-03-01",
    "customerId": "RVO-7",
    "description": "AGO delivery",
    "quantity": "1000",
    "unitPrice": "1.505",
}


@pytest.mark.anyio
async def test_first_invoice_uses_seeded_counter(store: InMemoryRecordStore, blobs) -> None:
    service = WalletService(store, blobs=blobs)
    assert await service.next_invoice_number() == "MOK-PFI-600"

    invoice = await service.create_invoice(FORM)

    assert invoice.invoice_number == "MOK-PFI-600"
    assert await store.read("invoiceNumber") == 600
    stored = await store.read("invoices/MOK-PFI-600")
    assert stored["amount"] == "1505.00"
    assert stored["hsCode"] == "0001.13.01"
    assert stored["artifactUrl"] == "memory://invoices/MOK-PFI-600.txt"
    assert b"RIFT VALLEY OIL" in blobs.objects["invoices/MOK-PFI-600.txt"]


@pytest.mark.anyio
async def test_number_is_zero_padded_counter_plus_one() -> None:
    store = InMemoryRecordStore({"invoiceNumber": 41})
    service = WalletService(store)

    first = await service.create_invoice(FORM)
    second = await service.create_invoice(FORM)

    assert (first.invoice_number, second.invoice_number) == ("MOK-PFI-042", "MOK-PFI-043")
    assert await store.read("invoiceNumber") == 43


@pytest.mark.anyio
async def test_artifact_failure_leaves_counter_untouched() -> None:
    store = InMemoryRecordStore({"invoiceNumber": 41})

    def broken_generator(invoice):
        raise RuntimeError("renderer crashed")

    service = WalletService(store, generator=broken_generator)

    with pytest.raises(RemoteOperationError, match="error occurred while generating"):
        await service.create_invoice(FORM)

    assert await store.read("invoiceNumber") == 41
    assert await store.read("invoices") is None


@pytest.mark.anyio
async def test_lost_counter_race_discards_artifact() -> None:
    """If another submission advances the counter first, nothing is stored."""

    store = InMemoryRecordStore({"invoiceNumber": 41})

    class RacingBlobs(InMemoryBlobStorage):
        async def upload(self, path: str, data: bytes) -> str:
            url = await super().upload(path, data)
            await store.set("invoiceNumber", 42)
            return url

    blobs = RacingBlobs()
    service = WalletService(store, blobs=blobs)

    with pytest.raises(WriteConflictError):
        await service.create_invoice(FORM)

    assert await store.read("invoiceNumber") == 42
    assert await store.read("invoices") is None
    assert blobs.objects == {}


@pytest.mark.anyio
@pytest.mark.parametrize("field", ["billTo", "shipTo", "quantity", "unitPrice"])
async def test_required_fields(store: InMemoryRecordStore, field: str) -> None:
    service = WalletService(store)
    form = dict(FORM, **{field: ""})

    with pytest.raises(ValidationError):
        await service.create_invoice(form)
    assert await store.read("invoiceNumber") is None


@pytest.mark.anyio
async def test_search_by_number_and_customer(store: InMemoryRecordStore) -> None:
    service = WalletService(store)
    await service.create_invoice(FORM)
    await service.create_invoice(dict(FORM, billTo="Lake Fuels"))

    by_number = await service.search("MOK-PFI-601")
    assert [row["billTo"] for row in by_number] == ["Lake Fuels"]

    by_customer = await service.search(" Rift Valley Oil ")
    assert [row["invoiceNumber"] for row in by_customer] == ["MOK-PFI-600"]

    with pytest.raises(NotFoundError, match="Invoice not found."):
        await service.search("MOK-PFI-999")
    with pytest.raises(NotFoundError):
        await service.search("Nobody")
    with pytest.raises(ValidationError):
        await service.search("   ")
