"""Mini README: Names of the collections and records in the store tree.

Keeping the layout in one module lets services and tests agree on where each
entity lives without repeating string literals.
"""

from __future__ import annotations

USERS = "users"
ENTRIES = "tr800"
ALLOCATIONS = "allocations"
TRUCKS = "trucks"
INVOICE_COUNTER = "invoiceNumber"
INVOICES = "invoices"
CREDITORS = "creditors"
CREDITOR_EXPENSES = "expenses"
LEDGER_INVOICES = "data"
TRACKER_EXPENSES = "expenses"

# Characters the remote database forbids inside a key, plus the escape marker.
_RESERVED_KEY_CHARS = set(".$#[]/%")


def user_path(uid: str) -> str:
    return f"{USERS}/{uid}"


def creditor_expenses_path(creditor_id: str) -> str:
    return f"{CREDITORS}/{creditor_id}/{CREDITOR_EXPENSES}"


def encode_key(value: str) -> str:
    """Escape characters that cannot appear in a store key.

    The encoding is reversible, so two different values never share a key.
    """

    return "".join(
        f"%{ord(char):02X}" if char in _RESERVED_KEY_CHARS or ord(char) < 0x20 else char
        for char in value
    )
