from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from fintrack.domain.ledger import (
    CategoryType,
    LedgerEntry,
    effective_type,
    fold_balance,
    to_money,
)
from fintrack.domain.periods import month_window, window_bounds
from fintrack.errors import ValidationError
from fintrack.logger import get_logger
from fintrack.models import Account, AccountCreate, AccountUpdate, BalanceAudit, FinancialSummary
from fintrack.services.lookups import get_owned_account
from fintrack.storage.database import AccountRow, CategoryRow, TransactionRow, utcnow
from fintrack.storage.unit_of_work import UnitOfWork

logger = get_logger(__name__)

_NON_NULLABLE_FIELDS = ("name", "type", "institution", "account_number", "current_balance")


def _ledger_entries(session: Session, stmt: Any) -> list[LedgerEntry]:
    rows = session.execute(stmt).all()
    return [
        LedgerEntry(account_id=account_id, amount=amount, category_type=category_type)
        for account_id, amount, category_type in rows
    ]


def _entries_query() -> Any:
    return (
        select(TransactionRow.account_id, TransactionRow.amount, CategoryRow.type)
        .outerjoin(CategoryRow, TransactionRow.category_id == CategoryRow.id)
    )


class AccountService:
    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    def list_accounts(self, user_id: int) -> list[Account]:
        def work(session: Session) -> list[Account]:
            rows = session.scalars(
                select(AccountRow).where(AccountRow.user_id == user_id).order_by(AccountRow.id)
            )
            return [Account.model_validate(row) for row in rows]

        return self.unit_of_work.read(work)

    def get_account(self, user_id: int, account_id: int) -> Account:
        return self.unit_of_work.read(
            lambda session: Account.model_validate(get_owned_account(session, user_id, account_id))
        )

    def create_account(self, user_id: int, data: AccountCreate) -> Account:
        def work(session: Session) -> Account:
            balance = to_money(data.current_balance)
            row = AccountRow(
                user_id=user_id,
                name=data.name.strip(),
                type=data.type,
                institution=data.institution,
                account_number=data.account_number,
                current_balance=balance,
                opening_balance=balance,
                available_balance=data.available_balance,
                limit=data.limit,
                interest_rate=data.interest_rate,
                last_updated=utcnow(),
            )
            session.add(row)
            session.flush()
            logger.info("[ACCOUNTS] Created account %s for user %s", row.id, user_id)
            return Account.model_validate(row)

        return self.unit_of_work.run("create account", work)

    def update_account(self, user_id: int, account_id: int, patch: AccountUpdate) -> Account:
        changes: dict[str, Any] = patch.model_dump(exclude_unset=True)
        for field in _NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        new_balance = changes.pop("current_balance", None)

        def work(session: Session) -> Account:
            row = get_owned_account(session, user_id, account_id)
            for field, value in changes.items():
                setattr(row, field, value)
            row.last_updated = utcnow()
            session.flush()

            if new_balance is not None:
                # A direct edit re-bases the opening balance so the ledger still adds up.
                # opening_balance is assigned first so it sees the old current_balance.
                target = to_money(new_balance)
                session.execute(
                    update(AccountRow)
                    .where(AccountRow.id == account_id)
                    .ordered_values(
                        (
                            AccountRow.opening_balance,
                            AccountRow.opening_balance + (target - AccountRow.current_balance),
                        ),
                        (AccountRow.current_balance, target),
                    )
                    .execution_options(synchronize_session=False)
                )
                logger.info("[ACCOUNTS] Balance of account %s reset to %s", account_id, target)

            refreshed = session.get(AccountRow, account_id, populate_existing=True)
            return Account.model_validate(refreshed)

        return self.unit_of_work.run("update account", work)

    def audit(self, user_id: int, account_id: int) -> BalanceAudit:
        """Compare the stored balance against a full recomputation from the ledger."""
        def work(session: Session) -> BalanceAudit:
            account = get_owned_account(session, user_id, account_id)
            entries = _ledger_entries(
                session,
                _entries_query().where(TransactionRow.account_id == account_id),
            )
            ledger_balance = to_money(fold_balance(account.opening_balance, entries))
            drift = account.current_balance - ledger_balance
            if drift:
                logger.warning(
                    "[ACCOUNTS] Account %s drifted: stored %s, ledger %s",
                    account_id,
                    account.current_balance,
                    ledger_balance,
                )
            return BalanceAudit(
                account_id=account_id,
                stored_balance=account.current_balance,
                ledger_balance=ledger_balance,
                drift=drift,
                transaction_count=len(entries),
            )

        return self.unit_of_work.read(work)

    def summary(self, user_id: int, as_of: date) -> FinancialSummary:
        def work(session: Session) -> FinancialSummary:
            balances = session.scalars(
                select(AccountRow.current_balance).where(AccountRow.user_id == user_id)
            ).all()
            start, end = window_bounds(month_window(as_of))
            entries = _ledger_entries(
                session,
                _entries_query().where(
                    TransactionRow.user_id == user_id,
                    TransactionRow.date >= start,
                    TransactionRow.date < end,
                ),
            )
            income = Decimal("0")
            spending = Decimal("0")
            for entry in entries:
                if effective_type(entry.category_type) is CategoryType.INCOME:
                    income += entry.amount
                else:
                    spending += entry.amount
            return FinancialSummary(
                as_of=as_of,
                net_worth=to_money(sum(balances, Decimal("0"))),
                month_income=to_money(income),
                month_spending=to_money(spending),
                account_count=len(balances),
            )

        return self.unit_of_work.read(work)
