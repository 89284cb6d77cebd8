from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

CENT = Decimal("0.01")


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class AccountType(str, Enum):
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT_CARD = "credit_card"
    INVESTMENT = "investment"


# Transactions without a category reduce the balance, same as an expense.
UNCATEGORIZED_TYPE = CategoryType.EXPENSE


@dataclass(frozen=True)
class LedgerEntry:
    """The part of a transaction that decides its effect on a balance."""
    account_id: int
    amount: Decimal
    category_type: CategoryType | None


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENT)


def effective_type(category_type: CategoryType | None) -> CategoryType:
    return UNCATEGORIZED_TYPE if category_type is None else category_type


def signed_delta(amount: Decimal, category_type: CategoryType | None) -> Decimal:
    resolved = effective_type(category_type)
    if resolved is CategoryType.INCOME:
        return amount
    if resolved is CategoryType.EXPENSE:
        return -amount
    raise ValueError(f"Unhandled category type: {resolved!r}")


def entry_delta(entry: LedgerEntry) -> Decimal:
    return signed_delta(entry.amount, entry.category_type)


def reconciliation_deltas(before: LedgerEntry, after: LedgerEntry) -> dict[int, Decimal]:
    """
    Balance adjustments needed to move from ``before`` to ``after``.

    Both sides come from one pre-image snapshot, so the result can be applied
    as increments without re-reading either account.
    """
    deltas: dict[int, Decimal] = defaultdict(Decimal)
    deltas[before.account_id] -= entry_delta(before)
    deltas[after.account_id] += entry_delta(after)
    return {account_id: delta for account_id, delta in deltas.items() if delta != 0}


def fold_balance(opening_balance: Decimal, entries: list[LedgerEntry]) -> Decimal:
    return opening_balance + sum((entry_delta(entry) for entry in entries), Decimal("0"))


def credit_utilization(
    account_type: AccountType,
    balance: Decimal,
    limit: Decimal | None,
) -> Decimal | None:
    if account_type is not AccountType.CREDIT_CARD or not limit:
        return None
    ratio = abs(balance) / limit * 100
    return min(Decimal("100"), ratio).quantize(CENT)
