"""Mini README: Tests for TR800 entry creation and SSD allocations.

Structure:
    * Validation and normalisation of entry input.
    * Duplicate numbers rejected before and during the write.
    * SSD entries mirrored to exactly one allocation.
"""

from __future__ import annotations

import asyncio

import pytest

from fleetledger.errors import DuplicateError, ValidationError
from fleetledger.records import EntryService
from fleetledger.store import InMemoryRecordStore


@pytest.fixture
def service(store: InMemoryRecordStore) -> EntryService:
    return EntryService(store, clock=lambda: 1_700_000_000.0)


@pytest.mark.anyio
async def test_create_entry_normalises_and_stores(service: EntryService, store) -> None:
    entry = await service.create_entry("TR-1001", "33000", "AGO", "Kisumu")

    assert entry.product == "ago"
    assert entry.destination == "kisumu"
    assert entry.product_destination == "ago_kisumu"
    assert entry.timestamp == 1_700_000_000_000
    stored = await store.read(f"tr800/{entry.entry_id}")
    assert stored["initialQuantity"] == stored["remainingQuantity"] == 33000.0
    assert await service.list_allocations() == []


@pytest.mark.anyio
async def test_ssd_entry_creates_exactly_one_matching_allocation(service: EntryService, store) -> None:
    entry = await service.create_entry("TR-2002", "12000", "PMS", "SSD")

    allocations = await service.list_allocations()
    assert len(allocations) == 1
    allocation = allocations[0]
    for field in ("number", "initial_quantity", "remaining_quantity", "product", "destination"):
        assert getattr(allocation, field) == getattr(entry, field)
    assert allocation.entry_id == entry.entry_id


@pytest.mark.anyio
async def test_duplicate_number_is_rejected_without_writing(service: EntryService, store) -> None:
    await service.create_entry("TR-3003", "100", "ago", "ssd")
    before = store.snapshot()

    with pytest.raises(DuplicateError, match="TR800 number already exists."):
        await service.create_entry("TR-3003", "999", "pms", "ssd")

    assert store.snapshot() == before


@pytest.mark.anyio
async def test_duplicate_detected_by_keyed_write_after_stale_check(service: EntryService, store) -> None:
    """A submission that passed a stale uniqueness query still cannot overwrite."""

    await service.create_entry("TR-4004", "100", "ago", "ssd")
    before = store.snapshot()

    async def stale_check(number: str) -> bool:
        return False

    service.number_exists = stale_check
    with pytest.raises(DuplicateError):
        await service.create_entry("TR-4004", "5", "pms", "ssd")
    with pytest.raises(DuplicateError):
        await service.create_entry("TR-4004", "5", "pms", "nairobi")

    assert store.snapshot() == before


@pytest.mark.anyio
async def test_concurrent_duplicates_leave_one_entry(service: EntryService) -> None:
    results = await asyncio.gather(
        service.create_entry("TR-5005", "10", "ago", "ssd"),
        service.create_entry("TR-5005", "20", "ago", "ssd"),
        return_exceptions=True,
    )

    failures = [result for result in results if isinstance(result, Exception)]
    assert len(failures) == 1
    assert isinstance(failures[0], DuplicateError)
    assert len(await service.list_entries()) == 1
    assert len(await service.list_allocations()) == 1


@pytest.mark.anyio
@pytest.mark.parametrize(
    "number, quantity, product, destination, message",
    [
        ("", "10", "ago", "ssd", "TR800 number is required."),
        ("TR-1", "ten", "ago", "ssd", "must be a number"),
        ("TR-1", "-4", "ago", "ssd", "non-negative"),
        ("TR-1", "10", "", "ssd", "Product is required."),
        ("TR-1", "10", "ago", " ", "Destination is required."),
    ],
)
async def test_invalid_entries_are_rejected(
    service: EntryService, store, number, quantity, product, destination, message
) -> None:
    with pytest.raises(ValidationError, match=message):
        await service.create_entry(number, quantity, product, destination)
    assert store.snapshot() == {}


@pytest.mark.anyio
async def test_entry_numbers_with_reserved_characters_get_distinct_keys(service: EntryService) -> None:
    first = await service.create_entry("TR/1.0", "1", "ago", "eldoret")
    second = await service.create_entry("TR/1,0", "1", "ago", "eldoret")

    assert first.entry_id != second.entry_id
    assert "/" not in first.entry_id


@pytest.mark.anyio
async def test_list_entries_is_newest_first(store) -> None:
    ticks = iter([1.0, 3.0, 2.0])
    service = EntryService(store, clock=lambda: next(ticks))
    for number in ("A", "B", "C"):
        await service.create_entry(number, "1", "ago", "eldoret")

    assert [entry.number for entry in await service.list_entries()] == ["B", "C", "A"]
