"""Mini README: Creditors and the expenses recorded against them.

Structure:
    * CreditorService - creditor CRUD, nested expense CRUD, totals.

Each creditor lives at ``creditors/{id}`` and owns ``expenses/{id}``
children. Renaming or deleting a creditor and deleting one of its expenses
are gated by the authorization policy; adding is not.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional

from ..auth import Principal
from ..authorization import Action, AuthorizationPolicy
from ..calculator import sum_field
from ..errors import NotFoundError, ValidationError
from ..logging_utils import get_logger
from ..store import RecordStore, with_id
from ..store.paths import CREDITORS, creditor_expenses_path

LOGGER = get_logger(__name__)


def _parse_date(value: Any) -> date:
    """Parse an ISO formatted date string from the expense form."""

    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as error:
        raise ValidationError("Please enter the expense date as YYYY-MM-DD.") from error


def _required_name(name: Optional[str], label: str) -> str:
    if not name or not name.strip():
        raise ValidationError(f"Please enter the {label} name.")
    return name.strip()


class CreditorService:
    """Creditor register with per-creditor expense ledgers."""

    def __init__(self, store: RecordStore, policy: AuthorizationPolicy) -> None:
        self.store = store
        self.policy = policy

    async def _require_creditor(self, creditor_id: str) -> Dict[str, Any]:
        record = await self.store.read(f"{CREDITORS}/{creditor_id}")
        if not isinstance(record, dict):
            raise NotFoundError(f"Creditor {creditor_id} not found")
        return record

    async def add_creditor(self, name: str) -> str:
        creditor_id = await self.store.create(CREDITORS, {"name": _required_name(name, "creditor")})
        LOGGER.info("Creditor %s added", creditor_id)
        return creditor_id

    async def rename_creditor(
        self, principal: Principal, creditor_id: str, name: str, work_id: Optional[str]
    ) -> None:
        await self.policy.authorize(principal, Action.UPDATE, CREDITORS, work_id)
        await self._require_creditor(creditor_id)
        await self.store.update(f"{CREDITORS}/{creditor_id}", {"name": _required_name(name, "creditor")})
        LOGGER.info("Creditor %s renamed", creditor_id)

    async def delete_creditor(
        self, principal: Principal, creditor_id: str, work_id: Optional[str]
    ) -> None:
        """Remove a creditor together with all of its expenses."""

        await self.policy.authorize(principal, Action.DELETE, CREDITORS, work_id)
        await self._require_creditor(creditor_id)
        await self.store.delete(f"{CREDITORS}/{creditor_id}")
        LOGGER.info("Creditor %s deleted", creditor_id)

    async def list_creditors(self) -> List[Dict[str, Any]]:
        """Return creditors with the running total of their expenses."""

        creditors = []
        for creditor in await self.store.list_children(CREDITORS):
            expenses = creditor.pop("expenses", None) or {}
            creditors.append(
                {
                    "id": creditor["id"],
                    "name": creditor.get("name", ""),
                    "total": sum_field(expenses.values(), "amount"),
                }
            )
        return creditors

    async def add_expense(self, creditor_id: str, name: str, amount: Any, when: Any) -> str:
        await self._require_creditor(creditor_id)
        amount_text = "" if amount is None else str(amount).strip()
        if not amount_text:
            raise ValidationError("Please enter the expense amount.")
        try:
            float(amount_text)
        except ValueError as error:
            raise ValidationError("Please enter a valid number for the amount.") from error
        record = {
            "name": _required_name(name, "expense"),
            "amount": amount_text,
            "date": _parse_date(when).isoformat(),
        }
        expense_id = await self.store.create(creditor_expenses_path(creditor_id), record)
        LOGGER.info("Expense %s added to creditor %s", expense_id, creditor_id)
        return expense_id

    async def list_expenses(self, creditor_id: str) -> List[Dict[str, Any]]:
        """Return a creditor's expenses ordered by date, oldest first."""

        record = await self._require_creditor(creditor_id)
        expenses = record.get("expenses") or {}
        rows = [with_id(key, value) for key, value in expenses.items()]
        return sorted(rows, key=lambda row: (str(row.get("date", "")), row["id"]))

    async def expense_total(self, creditor_id: str) -> float:
        return sum_field(await self.list_expenses(creditor_id), "amount")

    async def delete_expense(
        self,
        principal: Principal,
        creditor_id: str,
        expense_id: str,
        work_id: Optional[str],
    ) -> None:
        await self.policy.authorize(principal, Action.DELETE, CREDITORS, work_id)
        path = f"{creditor_expenses_path(creditor_id)}/{expense_id}"
        if await self.store.read(path) is None:
            raise NotFoundError(f"Expense {expense_id} not found")
        await self.store.delete(path)
        LOGGER.info("Expense %s deleted from creditor %s", expense_id, creditor_id)
