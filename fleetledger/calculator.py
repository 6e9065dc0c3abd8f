"""Mini README: Derived field calculations for invoices, trucks and expenses.

Structure:
    * to_number / round2 / format_money - coercion and half-up rounding.
    * line_amount / ledger_balance - the two derived invoice figures.
    * recompute_ledger_invoice - refresh ``amount`` and ``balance`` on a form.
    * compartment_total / sum_field - totals shown next to listings.

All functions are pure. Missing or non-numeric inputs count as zero and
derived values are always recomputed from the inputs; callers never trust a
client-supplied ``amount`` or ``balance``.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, Mapping

_CENT = Decimal("0.01")


def to_number(value: Any) -> float:
    """Coerce form input to a float, treating blanks and junk as zero."""

    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value) if isinstance(value, (int, float)) else float(str(value).strip())
    except ValueError:
        return 0.0
    return number if math.isfinite(number) else 0.0


def round2(value: Any) -> float:
    """Round half-up to two decimal places."""

    try:
        quantised = Decimal(str(to_number(value))).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return 0.0
    return float(quantised)


def format_money(value: Any) -> str:
    return f"{round2(value):.2f}"


def line_amount(quantity: Any, price: Any) -> float:
    """``quantity * price`` rounded to cents."""

    return round2(Decimal(str(to_number(quantity))) * Decimal(str(to_number(price))))


def ledger_balance(payments: Any, amount: Any, expenses: Any, transport: Any) -> float:
    """``payments - amount - expenses - transport`` rounded to cents."""

    total = (
        Decimal(str(to_number(payments)))
        - Decimal(str(to_number(amount)))
        - Decimal(str(to_number(expenses)))
        - Decimal(str(to_number(transport)))
    )
    return round2(total)


def recompute_ledger_invoice(form: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``form`` with ``amount`` and ``balance`` recomputed."""

    updated = dict(form)
    updated["amount"] = line_amount(form.get("at20"), form.get("price"))
    updated["balance"] = ledger_balance(
        form.get("payments"), updated["amount"], form.get("expenses"), form.get("transport")
    )
    return updated


def compartment_total(values: Iterable[Any]) -> float:
    return round2(sum(Decimal(str(to_number(value))) for value in values))


def sum_field(records: Iterable[Mapping[str, Any]], field: str) -> float:
    """Sum one numeric field across records, rounded to cents."""

    return round2(sum(Decimal(str(to_number(record.get(field)))) for record in records))
