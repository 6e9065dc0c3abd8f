"""Mini README: Truck register with per-compartment volumes.

Structure:
    * TRUCK_TEXT_FIELDS / compartment helpers - the flat field layout.
    * TruckService - add, list/search, update and delete trucks.

Compartment volumes are stored as scalar fields ``ago_comp_1..6`` and
``pms_1..6``. Three compartments per fuel are required; the second set of
three is written only when supplied. Updates and deletions consult the
authorization policy first.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..auth import Principal
from ..authorization import Action, AuthorizationPolicy
from ..calculator import compartment_total
from ..errors import NotFoundError, ValidationError
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import TRUCKS

LOGGER = get_logger(__name__)

TRUCK_TEXT_FIELDS = ("truck_no", "owner", "transporter", "driver")
BASE_COMPARTMENTS = 3
MAX_COMPARTMENTS = 6


def ago_field(index: int) -> str:
    return f"ago_comp_{index}"


def pms_field(index: int) -> str:
    return f"pms_{index}"


COMPARTMENT_FIELDS = tuple(
    name
    for index in range(1, MAX_COMPARTMENTS + 1)
    for name in (ago_field(index), pms_field(index))
)


def _is_number(value: Any) -> bool:
    try:
        float(str(value).strip())
    except (TypeError, ValueError):
        return False
    return str(value).strip() != ""


def _compartments(values: Sequence[Any], label: str) -> List[str]:
    if len(values) not in (BASE_COMPARTMENTS, MAX_COMPARTMENTS):
        raise ValidationError(
            f"{label} needs {BASE_COMPARTMENTS} or {MAX_COMPARTMENTS} compartments."
        )
    if not all(_is_number(value) for value in values):
        raise ValidationError("Please fill in all fields with valid data.")
    return [str(value).strip() for value in values]


def summarise_truck(truck_id: str, record: Mapping[str, Any]) -> Dict[str, Any]:
    """Attach the id and per-fuel compartment totals to a truck record."""

    ago = [record.get(ago_field(index)) for index in range(1, MAX_COMPARTMENTS + 1)]
    pms = [record.get(pms_field(index)) for index in range(1, MAX_COMPARTMENTS + 1)]
    return {
        "id": truck_id,
        **record,
        "ago_total": compartment_total(ago),
        "pms_total": compartment_total(pms),
    }


class TruckService:
    """Manage the truck register."""

    def __init__(self, store: RecordStore, policy: AuthorizationPolicy) -> None:
        self.store = store
        self.policy = policy

    async def add_truck(
        self,
        details: Mapping[str, Any],
        ago_compartments: Sequence[Any],
        pms_compartments: Sequence[Any],
    ) -> str:
        """Validate and store a truck; return its id."""

        for field in TRUCK_TEXT_FIELDS:
            if not str(details.get(field) or "").strip():
                raise ValidationError("Please fill in all fields with valid data.")
        ago = _compartments(ago_compartments, "AGO")
        pms = _compartments(pms_compartments, "PMS")
        if len(ago) != len(pms):
            raise ValidationError("AGO and PMS must list the same number of compartments.")

        record: Dict[str, Any] = {field: str(details[field]).strip() for field in TRUCK_TEXT_FIELDS}
        for index, (ago_value, pms_value) in enumerate(zip(ago, pms), start=1):
            record[ago_field(index)] = ago_value
            record[pms_field(index)] = pms_value
        truck_id = await self.store.create(TRUCKS, record)
        LOGGER.info("Truck %s added as %s", record["truck_no"], truck_id)
        return truck_id

    async def get_truck(self, truck_id: str) -> Dict[str, Any]:
        record = await self.store.read(f"{TRUCKS}/{truck_id}")
        if not isinstance(record, dict):
            raise NotFoundError(f"Truck {truck_id} not found")
        return summarise_truck(truck_id, record)

    async def list_trucks(self, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """List trucks, optionally filtered by a case-insensitive truck number fragment."""

        records = await self.store.list_children(TRUCKS)
        trucks = [summarise_truck(record.pop("id"), record) for record in records]
        if search:
            needle = search.strip().lower()
            trucks = [truck for truck in trucks if needle in str(truck.get("truck_no", "")).lower()]
        return trucks

    async def update_truck(
        self,
        principal: Principal,
        truck_id: str,
        changes: Mapping[str, Any],
        work_id: Optional[str],
    ) -> Dict[str, Any]:
        await self.policy.authorize(principal, Action.UPDATE, TRUCKS, work_id)
        await self.get_truck(truck_id)

        partial: Dict[str, Any] = {}
        for field, value in changes.items():
            if field in TRUCK_TEXT_FIELDS:
                if not str(value or "").strip():
                    raise ValidationError(f"{field} cannot be empty.")
                partial[field] = str(value).strip()
            elif field in COMPARTMENT_FIELDS:
                if not _is_number(value):
                    raise ValidationError(f"{field} must be a number.")
                partial[field] = str(value).strip()
            else:
                raise ValidationError(f"Field '{field}' cannot be edited.")
        if not partial:
            raise ValidationError("Nothing to update.")

        await self.store.update(f"{TRUCKS}/{truck_id}", partial)
        LOGGER.info("Truck %s updated (%s)", truck_id, ", ".join(sorted(partial)))
        return await self.get_truck(truck_id)

    async def delete_truck(
        self, principal: Principal, truck_id: str, work_id: Optional[str]
    ) -> None:
        await self.policy.authorize(principal, Action.DELETE, TRUCKS, work_id)
        await self.get_truck(truck_id)
        await self.store.delete(f"{TRUCKS}/{truck_id}")
        LOGGER.info("Truck %s deleted", truck_id)
