from decimal import Decimal

import pytest

from fintrack.domain.ledger import (
    UNCATEGORIZED_TYPE,
    AccountType,
    CategoryType,
    LedgerEntry,
    credit_utilization,
    fold_balance,
    reconciliation_deltas,
    signed_delta,
    to_money,
)


def test_signed_delta_income_adds_expense_subtracts() -> None:
    assert signed_delta(Decimal("25.00"), CategoryType.INCOME) == Decimal("25.00")
    assert signed_delta(Decimal("25.00"), CategoryType.EXPENSE) == Decimal("-25.00")


def test_uncategorized_is_treated_as_expense() -> None:
    assert UNCATEGORIZED_TYPE is CategoryType.EXPENSE
    assert signed_delta(Decimal("12.50"), None) == Decimal("-12.50")


def test_signed_delta_rejects_unknown_type() -> None:
    with pytest.raises(ValueError):
        signed_delta(Decimal("1.00"), "transfer")  # type: ignore[arg-type]


def test_deltas_amount_change_on_same_account() -> None:
    before = LedgerEntry(account_id=1, amount=Decimal("200.00"), category_type=CategoryType.EXPENSE)
    after = LedgerEntry(account_id=1, amount=Decimal("300.00"), category_type=CategoryType.EXPENSE)

    assert reconciliation_deltas(before, after) == {1: Decimal("-100.00")}


def test_deltas_category_flip_moves_twice_the_amount() -> None:
    before = LedgerEntry(account_id=1, amount=Decimal("50.00"), category_type=CategoryType.EXPENSE)
    after = LedgerEntry(account_id=1, amount=Decimal("50.00"), category_type=CategoryType.INCOME)

    assert reconciliation_deltas(before, after) == {1: Decimal("100.00")}
    assert reconciliation_deltas(after, before) == {1: Decimal("-100.00")}


def test_deltas_unchanged_entry_is_empty() -> None:
    entry = LedgerEntry(account_id=7, amount=Decimal("9.99"), category_type=None)

    assert reconciliation_deltas(entry, entry) == {}


def test_deltas_account_reassignment_touches_both_accounts() -> None:
    before = LedgerEntry(account_id=1, amount=Decimal("40.00"), category_type=CategoryType.EXPENSE)
    after = LedgerEntry(account_id=2, amount=Decimal("45.00"), category_type=CategoryType.EXPENSE)

    assert reconciliation_deltas(before, after) == {
        1: Decimal("40.00"),
        2: Decimal("-45.00"),
    }


def test_fold_balance_matches_example_scenario() -> None:
    entries = [
        LedgerEntry(account_id=1, amount=Decimal("300.00"), category_type=CategoryType.EXPENSE),
        LedgerEntry(account_id=1, amount=Decimal("500.00"), category_type=CategoryType.INCOME),
    ]

    assert fold_balance(Decimal("1000.00"), entries) == Decimal("1200.00")
    assert fold_balance(Decimal("1000.00"), []) == Decimal("1000.00")


def test_to_money_rounds_to_cents() -> None:
    assert to_money("10") == Decimal("10.00")
    assert str(to_money(Decimal("3.1"))) == "3.10"


def test_credit_utilization() -> None:
    assert credit_utilization(AccountType.CREDIT_CARD, Decimal("-250.00"), Decimal("1000.00")) == Decimal("25.00")
    assert credit_utilization(AccountType.CREDIT_CARD, Decimal("-1500.00"), Decimal("1000.00")) == Decimal("100.00")
    assert credit_utilization(AccountType.CREDIT_CARD, Decimal("-10.00"), None) is None
    assert credit_utilization(AccountType.CHECKING, Decimal("-10.00"), Decimal("100.00")) is None
