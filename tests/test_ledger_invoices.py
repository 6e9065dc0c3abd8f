"""Mini README: Tests for trucking (ledger) invoices and owner statements.

Structure:
    * Form validation messages.
    * Submission recomputes derived fields before storing.
    * Grouping by owner and per-owner totals.
"""

from __future__ import annotations

import pytest

from fleetledger.errors import NotFoundError, ValidationError
from fleetledger.records import LedgerInvoiceService

VALID = {
    "date": "1/3/2024",
    "owner": "Acme",
    "deport": "Kisumu",
    "truckNo": "KBX 123A",
    "pms": "",
    "ago": "36000",
    "at20": "1000",
    "price": "1.5",
    "expenses": "100.25",
    "payments": "2000",
    "paymentDate": "",
    "transport": "50",
}


@pytest.fixture
def service(store) -> LedgerInvoiceService:
    return LedgerInvoiceService(store)


@pytest.mark.parametrize(
    "changes, message",
    [
        ({"date": "2024-03-01"}, "valid date"),
        ({"owner": "  "}, "owner"),
        ({"deport": ""}, "deport"),
        ({"truckNo": ""}, "truck number"),
        ({"at20": "1,000"}, "AT 20"),
        ({"price": ""}, "price"),
        ({"payments": "-5"}, "payments"),
        ({"paymentDate": "3/2024"}, "payment date"),
        ({"transport": "abc"}, "transport"),
    ],
)
def test_validation_messages(service: LedgerInvoiceService, changes, message) -> None:
    with pytest.raises(ValidationError, match=message):
        service.validate(dict(VALID, **changes))


def test_valid_form_passes(service: LedgerInvoiceService) -> None:
    service.validate(VALID)
    service.validate(dict(VALID, paymentDate="15/03/2024", pms=".5"))


def test_preview_recomputes_without_storing(service: LedgerInvoiceService, store) -> None:
    preview = service.preview(dict(VALID, amount="1", balance="1"))

    assert preview["amount"] == 1500.0
    assert preview["balance"] == 349.75
    assert store.snapshot() == {}


@pytest.mark.anyio
async def test_submit_stores_recomputed_values(service: LedgerInvoiceService, store) -> None:
    invoice_id = await service.submit(dict(VALID, amount="99999", balance="-1"))

    stored = await store.read(f"data/{invoice_id}")
    assert stored["amount"] == 1500.0
    assert stored["balance"] == 349.75
    assert stored["owner"] == "Acme"


@pytest.mark.anyio
async def test_invalid_submission_is_not_stored(service: LedgerInvoiceService, store) -> None:
    with pytest.raises(ValidationError):
        await service.submit(dict(VALID, date=""))
    assert store.snapshot() == {}


@pytest.mark.anyio
async def test_grouping_and_owner_statement(service: LedgerInvoiceService) -> None:
    await service.submit(VALID)
    await service.submit(dict(VALID, owner="ACME", at20="10", price="2", payments="", expenses="", transport=""))
    await service.submit(dict(VALID, owner="Lake Fuels"))

    grouped = await service.grouped_by_owner()
    assert sorted(grouped) == ["acme", "lake fuels"]
    assert len(grouped["acme"]) == 2

    statement = await service.owner_statement(" Acme ")
    assert statement["owner"] == "acme"
    assert statement["totals"]["amount"] == "1520.00"
    assert statement["totals"]["balance"] == "329.75"
    assert statement["totals"]["pms"] == "0.00"

    with pytest.raises(NotFoundError):
        await service.owner_statement("nobody")
