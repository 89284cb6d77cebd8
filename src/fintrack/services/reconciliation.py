from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from fintrack.domain.ledger import (
    LedgerEntry,
    reconciliation_deltas,
    signed_delta,
    to_money,
)
from fintrack.errors import ConsistencyError, NotFoundError, ValidationError
from fintrack.logger import get_logger
from fintrack.models import Account, Transaction, TransactionCreate, TransactionPatch
from fintrack.services.lookups import (
    category_type_of,
    get_owned_account,
    get_owned_transaction,
)
from fintrack.storage.database import AccountRow, TransactionRow, utcnow
from fintrack.storage.unit_of_work import UnitOfWork

logger = get_logger(__name__)

_NON_NULLABLE_PATCH_FIELDS = ("account_id", "date", "merchant", "amount", "is_recurring")


def _validate_amount(amount: Decimal) -> None:
    if amount is None or amount <= 0:
        raise ValidationError("amount must be a positive number")


def _validate_merchant(merchant: str) -> None:
    if merchant is None or not merchant.strip():
        raise ValidationError("merchant is required")


class BalanceReconciler:
    """
    Keeps ``Account.current_balance`` equal to the opening balance plus the
    signed sum of the account's transactions.

    Every operation runs as a single unit of work: the transaction write and
    the balance adjustment commit together or not at all. Balances are moved
    with an in-database increment so concurrent writers to the same account
    cannot lose each other's updates.
    """

    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    def _apply_delta(self, session: Session, account_id: int, delta: Decimal) -> None:
        stmt = (
            update(AccountRow)
            .where(AccountRow.id == account_id)
            .values(
                current_balance=AccountRow.current_balance + delta,
                last_updated=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = session.execute(stmt)
        if result.rowcount != 1:
            raise ConsistencyError(f"Account {account_id} vanished during balance update")

    def _load_accounts(self, session: Session, account_ids: list[int]) -> list[Account]:
        accounts = []
        for account_id in account_ids:
            row = session.get(AccountRow, account_id, populate_existing=True)
            if row is not None:
                accounts.append(Account.model_validate(row))
        return accounts

    def list_transactions(
        self,
        user_id: int,
        *,
        account_id: int | None = None,
        category_id: int | None = None,
    ) -> list[Transaction]:
        """The user's transactions, newest first."""
        def work(session: Session) -> list[Transaction]:
            stmt = select(TransactionRow).where(TransactionRow.user_id == user_id)
            if account_id is not None:
                stmt = stmt.where(TransactionRow.account_id == account_id)
            if category_id is not None:
                stmt = stmt.where(TransactionRow.category_id == category_id)
            rows = session.scalars(stmt.order_by(TransactionRow.date.desc(), TransactionRow.id.desc()))
            return [Transaction.model_validate(row) for row in rows]

        return self.unit_of_work.read(work)

    def get_transaction(self, user_id: int, transaction_id: int) -> Transaction:
        return self.unit_of_work.read(
            lambda session: Transaction.model_validate(
                get_owned_transaction(session, user_id, transaction_id)
            )
        )

    def create_transaction(self, user_id: int, data: TransactionCreate) -> tuple[Transaction, Account]:
        _validate_amount(data.amount)
        _validate_merchant(data.merchant)

        def work(session: Session) -> tuple[Transaction, Account]:
            account = get_owned_account(session, user_id, data.account_id)
            category_type = category_type_of(session, data.category_id)

            row = TransactionRow(
                user_id=user_id,
                account_id=account.id,
                category_id=data.category_id,
                date=data.date,
                merchant=data.merchant.strip(),
                amount=to_money(data.amount),
                description=data.description,
                notes=data.notes,
                is_recurring=data.is_recurring,
            )
            session.add(row)
            session.flush()

            delta = signed_delta(row.amount, category_type)
            self._apply_delta(session, account.id, delta)
            logger.info(
                "[LEDGER] Created transaction %s on account %s (delta %s)",
                row.id,
                account.id,
                delta,
            )
            return Transaction.model_validate(row), self._load_accounts(session, [account.id])[0]

        return self.unit_of_work.run("create transaction", work)

    def update_transaction(
        self,
        user_id: int,
        transaction_id: int,
        patch: TransactionPatch,
    ) -> tuple[Transaction, list[Account]]:
        changes: dict[str, Any] = patch.model_dump(exclude_unset=True)
        for field in _NON_NULLABLE_PATCH_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if "amount" in changes:
            _validate_amount(changes["amount"])
            changes["amount"] = to_money(changes["amount"])
        if "merchant" in changes:
            _validate_merchant(changes["merchant"])
            changes["merchant"] = changes["merchant"].strip()

        def work(session: Session) -> tuple[Transaction, list[Account]]:
            row = get_owned_transaction(session, user_id, transaction_id, for_update=True)

            # One pre-image drives both sides of the adjustment
            before = LedgerEntry(
                account_id=row.account_id,
                amount=row.amount,
                category_type=category_type_of(session, row.category_id),
            )
            target_account_id = changes.get("account_id", row.account_id)
            if target_account_id != row.account_id:
                get_owned_account(session, user_id, target_account_id)
            after = LedgerEntry(
                account_id=target_account_id,
                amount=changes.get("amount", row.amount),
                category_type=category_type_of(session, changes.get("category_id", row.category_id)),
            )

            for field, value in changes.items():
                setattr(row, field, value)
            session.flush()

            deltas = reconciliation_deltas(before, after)
            for account_id, delta in deltas.items():
                self._apply_delta(session, account_id, delta)

            if deltas:
                logger.info(
                    "[LEDGER] Updated transaction %s, balance deltas %s",
                    row.id,
                    {account_id: str(delta) for account_id, delta in deltas.items()},
                )
            else:
                logger.debug("[LEDGER] Updated transaction %s, balances unchanged", row.id)

            affected = list(dict.fromkeys([before.account_id, after.account_id]))
            return Transaction.model_validate(row), self._load_accounts(session, affected)

        return self.unit_of_work.run("update transaction", work)

    def delete_transaction(self, user_id: int, transaction_id: int) -> Account:
        def work(session: Session) -> Account:
            row = get_owned_transaction(session, user_id, transaction_id, for_update=True)
            account_id = row.account_id
            delta = signed_delta(row.amount, category_type_of(session, row.category_id))

            result = session.execute(delete(TransactionRow).where(TransactionRow.id == transaction_id))
            if result.rowcount != 1:
                raise NotFoundError("Transaction", transaction_id)
            self._apply_delta(session, account_id, -delta)
            logger.info(
                "[LEDGER] Deleted transaction %s from account %s (delta %s)",
                transaction_id,
                account_id,
                -delta,
            )
            return self._load_accounts(session, [account_id])[0]

        return self.unit_of_work.run("delete transaction", work)

    def delete_account(self, user_id: int, account_id: int) -> int:
        """Remove the account and all of its transactions. Returns the number of transactions removed."""
        def work(session: Session) -> int:
            account = get_owned_account(session, user_id, account_id)
            result = session.execute(
                delete(TransactionRow)
                .where(TransactionRow.account_id == account.id)
                .execution_options(synchronize_session=False)
            )
            session.delete(account)
            session.flush()
            removed = result.rowcount or 0
            logger.info("[LEDGER] Deleted account %s with %d transaction(s)", account_id, removed)
            return removed

        return self.unit_of_work.run("delete account", work)
