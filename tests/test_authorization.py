"""Mini README: Tests for the work-ID gate on edits and deletions.

Structure:
    * WorkIdPolicy decisions (exact match, gated actions, missing values).
    * Gated truck, creditor and tracker mutations leave records untouched on
      a mismatch and proceed on a match.
"""

from __future__ import annotations

import pytest

from fleetledger.authorization import Action, WorkIdPolicy
from fleetledger.errors import AuthorizationError
from fleetledger.records import Attachment, CreditorService, TrackerService, TruckService

WORK_ID = "IA0012"


@pytest.fixture
def policy(gated_store) -> WorkIdPolicy:
    return WorkIdPolicy(gated_store)


@pytest.mark.anyio
async def test_exact_work_id_is_accepted(policy: WorkIdPolicy, principal) -> None:
    for action in (Action.UPDATE, Action.DELETE):
        for collection in ("trucks", "creditors", "expenses"):
            await policy.authorize(principal, action, collection, WORK_ID)


@pytest.mark.anyio
@pytest.mark.parametrize("supplied", ["ia0012", " IA0012", "IA0012 ", "IA0013", "IA001"])
async def test_any_mismatch_is_refused(policy: WorkIdPolicy, principal, supplied: str) -> None:
    with pytest.raises(AuthorizationError, match="Invalid work ID"):
        await policy.authorize(principal, Action.DELETE, "trucks", supplied)


@pytest.mark.anyio
async def test_blank_work_id_asks_for_input(policy: WorkIdPolicy, principal) -> None:
    for supplied in (None, ""):
        with pytest.raises(AuthorizationError, match="Please enter your work ID."):
            await policy.authorize(principal, Action.UPDATE, "creditors", supplied)


@pytest.mark.anyio
async def test_creation_and_ungated_collections_pass(policy: WorkIdPolicy, principal) -> None:
    await policy.authorize(principal, Action.CREATE, "trucks", None)
    await policy.authorize(principal, Action.DELETE, "data", None)
    assert policy.requires_work_id(Action.UPDATE, "trucks")
    assert not policy.requires_work_id(Action.CREATE, "trucks")


@pytest.mark.anyio
async def test_missing_stored_work_id_refuses(store, principal) -> None:
    with pytest.raises(AuthorizationError):
        await WorkIdPolicy(store).authorize(principal, Action.DELETE, "trucks", WORK_ID)


@pytest.mark.anyio
async def test_changed_work_id_applies_immediately(gated_store, policy, principal) -> None:
    await gated_store.update(f"users/{principal.uid}", {"workId": "IA0077"})

    with pytest.raises(AuthorizationError):
        await policy.authorize(principal, Action.DELETE, "trucks", WORK_ID)
    await policy.authorize(principal, Action.DELETE, "trucks", "IA0077")


@pytest.mark.anyio
async def test_truck_edit_and_delete_are_gated(gated_store, policy, principal) -> None:
    trucks = TruckService(gated_store, policy)
    truck_id = await trucks.add_truck(
        {"truck_no": "KBX 123A", "owner": "Acme", "transporter": "Rift", "driver": "Ann"},
        ["1000", "2000", "3000"],
        ["500", "500", "500"],
    )
    before = await gated_store.read(f"trucks/{truck_id}")

    with pytest.raises(AuthorizationError):
        await trucks.update_truck(principal, truck_id, {"driver": "Bob"}, "wrong")
    with pytest.raises(AuthorizationError):
        await trucks.delete_truck(principal, truck_id, "ia0012")
    assert await gated_store.read(f"trucks/{truck_id}") == before

    updated = await trucks.update_truck(principal, truck_id, {"driver": "Bob"}, WORK_ID)
    assert updated["driver"] == "Bob"
    await trucks.delete_truck(principal, truck_id, WORK_ID)
    assert await gated_store.read(f"trucks/{truck_id}") is None


@pytest.mark.anyio
async def test_creditor_mutations_are_gated(gated_store, policy, principal) -> None:
    creditors = CreditorService(gated_store, policy)
    creditor_id = await creditors.add_creditor("Shell")
    expense_id = await creditors.add_expense(creditor_id, "Diesel", "250", "2024-02-01")
    before = await gated_store.read(f"creditors/{creditor_id}")

    with pytest.raises(AuthorizationError):
        await creditors.rename_creditor(principal, creditor_id, "Total", None)
    with pytest.raises(AuthorizationError):
        await creditors.delete_expense(principal, creditor_id, expense_id, "IA0011")
    with pytest.raises(AuthorizationError):
        await creditors.delete_creditor(principal, creditor_id, "IA0011")
    assert await gated_store.read(f"creditors/{creditor_id}") == before

    await creditors.rename_creditor(principal, creditor_id, "Total", WORK_ID)
    await creditors.delete_expense(principal, creditor_id, expense_id, WORK_ID)
    assert await gated_store.read(f"creditors/{creditor_id}") == {"name": "Total"}


@pytest.mark.anyio
async def test_tracker_delete_is_gated_and_removes_statements(gated_store, policy, principal, blobs) -> None:
    tracker = TrackerService(gated_store, blobs, policy)
    expense_id = await tracker.add_expense(
        "Tyres",
        "1200",
        "2024-04-02",
        Attachment("bank-april.pdf", b"%PDF bank"),
        Attachment("mpesa-april.pdf", b"%PDF mpesa"),
    )
    assert set(blobs.objects) == {
        f"statements/{expense_id}/bank-april.pdf",
        f"statements/{expense_id}/mpesa-april.pdf",
    }

    with pytest.raises(AuthorizationError):
        await tracker.delete_expense(principal, expense_id, "IA0099")
    assert len(await tracker.list_expenses()) == 1
    assert len(blobs.objects) == 2

    await tracker.delete_expense(principal, expense_id, WORK_ID)
    assert await tracker.list_expenses() == []
    assert blobs.objects == {}


@pytest.mark.anyio
async def test_same_statement_names_stay_separate(gated_store, policy, principal, blobs) -> None:
    """Deleting one expense keeps another expense's identically named statements."""

    tracker = TrackerService(gated_store, blobs, policy)
    statements = (Attachment("statement.pdf", b"one"), Attachment("mpesa.pdf", b"one"))
    first = await tracker.add_expense("Tyres", "1200", "2024-04-02", *statements)
    second = await tracker.add_expense(
        "Fuel", "800", "2024-04-03", Attachment("statement.pdf", b"two"), Attachment("mpesa.pdf", b"two")
    )

    await tracker.delete_expense(principal, first, WORK_ID)

    assert set(blobs.objects) == {f"statements/{second}/statement.pdf", f"statements/{second}/mpesa.pdf"}
    assert blobs.objects[f"statements/{second}/statement.pdf"] == b"two"
    remaining = await tracker.list_expenses()
    assert [expense["id"] for expense in remaining] == [second]
