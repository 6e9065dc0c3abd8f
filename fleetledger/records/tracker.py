"""Mini README: Standalone expense tracker with statement attachments.

Structure:
    * Attachment - uploaded file name and content.
    * TrackerService - add, list and delete tracker expenses.

Every tracker expense carries two statements (bank and M-Pesa) uploaded to
blob storage under ``statements/{expense_id}/``, so equal file names on
different expenses never share a blob; the record keeps their URLs. Deleting an
expense is gated and removes the record before its blobs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..auth import Principal
from ..authorization import Action, AuthorizationPolicy
from ..blobs import BlobStorage
from ..errors import NotFoundError, ValidationError
from ..logging_utils import get_logger
from ..store import RecordStore
from ..store.paths import TRACKER_EXPENSES

LOGGER = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class Attachment:
    filename: str
    content: bytes


def statement_path(expense_id: str, filename: str) -> str:
    return f"statements/{expense_id}/{filename}"


class TrackerService:
    def __init__(
        self, store: RecordStore, blobs: BlobStorage, policy: AuthorizationPolicy
    ) -> None:
        self.store = store
        self.blobs = blobs
        self.policy = policy

    async def add_expense(
        self,
        name: str,
        amount: Any,
        when: str,
        statement: Optional[Attachment],
        mpesa_statement: Optional[Attachment],
    ) -> str:
        """Upload both statements and store the expense; return its id."""

        if not name or amount in (None, "") or not when or not statement or not mpesa_statement:
            raise ValidationError("Please fill in all the fields")

        expense_id = self.store.new_key()
        statement_url = await self.blobs.upload(
            statement_path(expense_id, statement.filename), statement.content
        )
        mpesa_url = await self.blobs.upload(
            statement_path(expense_id, mpesa_statement.filename), mpesa_statement.content
        )
        await self.store.set(
            f"{TRACKER_EXPENSES}/{expense_id}",
            {
                "name": name,
                "amount": str(amount),
                "date": when,
                "statement": statement_url,
                "mpesaStatement": mpesa_url,
            },
        )
        LOGGER.info("Tracker expense %s recorded", expense_id)
        return expense_id

    async def list_expenses(self) -> List[Dict[str, Any]]:
        return await self.store.list_children(TRACKER_EXPENSES)

    async def delete_expense(
        self, principal: Principal, expense_id: str, work_id: Optional[str]
    ) -> None:
        await self.policy.authorize(principal, Action.DELETE, TRACKER_EXPENSES, work_id)
        path = f"{TRACKER_EXPENSES}/{expense_id}"
        record = await self.store.read(path)
        if not isinstance(record, dict):
            raise NotFoundError(f"Expense {expense_id} not found")
        await self.store.delete(path)
        for field in ("statement", "mpesaStatement"):
            url = record.get(field)
            if not url:
                continue
            try:
                await self.blobs.delete(url)
            except NotFoundError:
                LOGGER.warning("Statement %s for expense %s was already gone", url, expense_id)
        LOGGER.info("Tracker expense %s deleted", expense_id)
