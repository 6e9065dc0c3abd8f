"""Mini README: Tests for the derived field calculator.

Ledger invoice ``amount`` and ``balance`` must always be recomputed from
their inputs with half-up rounding, and blank inputs count as zero.
"""

from __future__ import annotations

import pytest

from fleetledger.calculator import (
    compartment_total,
    format_money,
    ledger_balance,
    line_amount,
    recompute_ledger_invoice,
    round2,
    sum_field,
    to_number,
)


@pytest.mark.parametrize(
    "raw, expected",
    [(None, 0.0), ("", 0.0), ("  12.5 ", 12.5), ("abc", 0.0), ("nan", 0.0), (True, 0.0), (7, 7.0)],
)
def test_to_number_treats_junk_as_zero(raw, expected) -> None:
    assert to_number(raw) == expected


def test_round2_rounds_half_up() -> None:
    """Binary float artefacts must not turn a half cent downwards."""

    assert round2(2.675) == 2.68
    assert round2("1.005") == 1.01
    assert round2(-1.005) == -1.01
    assert format_money(3) == "3.00"


def test_line_amount_and_balance() -> None:
    assert line_amount("10", "2.345") == 23.45
    assert line_amount("", "5") == 0.0
    assert ledger_balance("2000", 1500, "100.25", "50") == 349.75


def test_recompute_overwrites_client_supplied_values() -> None:
    form = {"at20": "1000", "price": "1.5", "payments": "2000", "expenses": "100.25",
            "transport": "50", "amount": "999", "balance": "1"}

    recomputed = recompute_ledger_invoice(form)

    assert recomputed["amount"] == 1500.0
    assert recomputed["balance"] == 349.75
    assert form["amount"] == "999"


def test_recompute_with_all_inputs_empty() -> None:
    recomputed = recompute_ledger_invoice({"at20": "", "price": "", "payments": ""})

    assert recomputed["amount"] == 0.0
    assert recomputed["balance"] == 0.0


def test_recompute_follows_every_input_change() -> None:
    form = {"at20": "10", "price": "2", "payments": "100", "expenses": "", "transport": ""}
    assert recompute_ledger_invoice(form)["balance"] == 80.0

    form["transport"] = "30"
    assert recompute_ledger_invoice(form)["balance"] == 50.0

    form["at20"] = "20"
    assert recompute_ledger_invoice(form)["balance"] == 30.0


def test_totals_ignore_missing_values() -> None:
    assert compartment_total(["1000", "2000.5", None, ""]) == 3000.5
    assert sum_field([{"amount": "10.10"}, {"amount": "0.2"}, {}], "amount") == 10.3
