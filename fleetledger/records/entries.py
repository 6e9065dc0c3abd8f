"""Mini README: TR800 mother entries and their SSD allocations.

Structure:
    * SSD_DESTINATION - destination whose entries are mirrored as allocations.
    * Entry - dataclass for a stored entry with record (de)serialisation.
    * EntryService - validation, uniqueness and persistence of entries.

Entry numbers are unique. ``create_entry`` first queries for an existing
entry with the same number so the user gets an immediate duplicate error,
then writes the entry under a key derived from the number. The keyed write is
create-if-absent, so a concurrent submission that slipped past the query
still fails. For SSD entries the entry and its allocation go out in a single
atomic multi-path write keyed by the entry id.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping

from ..errors import DuplicateError, ValidationError, WriteConflictError
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import ALLOCATIONS, ENTRIES, encode_key

LOGGER = get_logger(__name__)

SSD_DESTINATION = "ssd"


@dataclass(slots=True)
class Entry:
    """A TR800 fuel entry with its initial and remaining quantity."""

    entry_id: str
    number: str
    initial_quantity: float
    remaining_quantity: float
    product: str
    destination: str
    timestamp: int

    @property
    def product_destination(self) -> str:
        return f"{self.product}_{self.destination}"

    @property
    def is_allocated(self) -> bool:
        return self.destination == SSD_DESTINATION

    def as_record(self) -> Dict[str, Any]:
        """Export the entry using the stored field names."""

        return {
            "number": self.number,
            "initialQuantity": self.initial_quantity,
            "remainingQuantity": self.remaining_quantity,
            "product": self.product,
            "destination": self.destination,
            "product_destination": self.product_destination,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_record(cls, entry_id: str, record: Mapping[str, Any]) -> "Entry":
        return cls(
            entry_id=entry_id,
            number=str(record.get("number", "")),
            initial_quantity=float(record.get("initialQuantity", 0.0)),
            remaining_quantity=float(record.get("remainingQuantity", 0.0)),
            product=str(record.get("product", "")),
            destination=str(record.get("destination", "")),
            timestamp=int(record.get("timestamp", 0)),
        )


def _parse_quantity(value: Any) -> float:
    try:
        quantity = float(str(value).strip())
    except (TypeError, ValueError) as error:
        raise ValidationError("TR800 quantity must be a number.") from error
    if quantity != quantity or quantity < 0:
        raise ValidationError("TR800 quantity must be a non-negative number.")
    return quantity


class EntryService:
    """Create and list TR800 entries."""

    def __init__(self, store: RecordStore, *, clock: Callable[[], float] = time.time) -> None:
        self.store = store
        self._clock = clock

    async def number_exists(self, number: str) -> bool:
        matches = await self.store.query_by_field(ENTRIES, "number", number)
        return bool(matches)

    async def create_entry(
        self, number: str, quantity: Any, product: str, destination: str
    ) -> Entry:
        """Validate and store a new entry, mirroring SSD entries as allocations."""

        number = "" if number is None else str(number)
        if not number.strip():
            raise ValidationError("TR800 number is required.")
        if not product or not str(product).strip():
            raise ValidationError("Product is required.")
        if not destination or not str(destination).strip():
            raise ValidationError("Destination is required.")
        initial_quantity = _parse_quantity(quantity)

        if await self.number_exists(number):
            LOGGER.info("Rejected duplicate TR800 number %s", number)
            raise DuplicateError("TR800 number already exists.")

        entry = Entry(
            entry_id=encode_key(number),
            number=number,
            initial_quantity=initial_quantity,
            remaining_quantity=initial_quantity,
            product=str(product).lower(),
            destination=str(destination).lower(),
            timestamp=int(self._clock() * 1000),
        )
        entry_path = f"{ENTRIES}/{entry.entry_id}"
        record = entry.as_record()
        try:
            if entry.is_allocated:
                await self.store.update_many(
                    {entry_path: record, f"{ALLOCATIONS}/{entry.entry_id}": record},
                    require_absent=[entry_path],
                )
            else:
                await self.store.create_at(entry_path, record)
        except WriteConflictError as error:
            LOGGER.warning("TR800 number %s was written concurrently", number)
            raise DuplicateError("TR800 number already exists.") from error

        LOGGER.info(
            "Added TR800 %s (%s %s, allocated=%s)",
            number,
            entry.product,
            entry.destination,
            entry.is_allocated,
        )
        return entry

    async def list_entries(self) -> List[Entry]:
        records = await self.store.list_children(ENTRIES)
        entries = [Entry.from_record(record.pop("id"), record) for record in records]
        return sorted(entries, key=lambda entry: entry.timestamp, reverse=True)

    async def list_allocations(self) -> List[Entry]:
        records = await self.store.list_children(ALLOCATIONS)
        return [Entry.from_record(record.pop("id"), record) for record in records]
