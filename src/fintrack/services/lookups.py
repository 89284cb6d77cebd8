from sqlalchemy.orm import Session

from fintrack.domain.ledger import CategoryType
from fintrack.errors import AuthorizationError, NotFoundError
from fintrack.storage.database import AccountRow, BudgetRow, CategoryRow, TransactionRow


def get_owned_account(session: Session, user_id: int, account_id: int) -> AccountRow:
    account = session.get(AccountRow, account_id)
    if account is None:
        raise NotFoundError("Account", account_id)
    if account.user_id != user_id:
        raise AuthorizationError(f"Account {account_id} belongs to another user")
    return account


def get_owned_transaction(
    session: Session, user_id: int, transaction_id: int, for_update: bool = False
) -> TransactionRow:
    transaction = session.get(TransactionRow, transaction_id, with_for_update=for_update)
    if transaction is None:
        raise NotFoundError("Transaction", transaction_id)
    if transaction.user_id != user_id:
        raise AuthorizationError(f"Transaction {transaction_id} belongs to another user")
    return transaction


def get_owned_budget(session: Session, user_id: int, budget_id: int) -> BudgetRow:
    budget = session.get(BudgetRow, budget_id)
    if budget is None:
        raise NotFoundError("Budget", budget_id)
    if budget.user_id != user_id:
        raise AuthorizationError(f"Budget {budget_id} belongs to another user")
    return budget


def get_category(session: Session, category_id: int) -> CategoryRow:
    category = session.get(CategoryRow, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def category_type_of(session: Session, category_id: int | None) -> CategoryType | None:
    if category_id is None:
        return None
    return get_category(session, category_id).type
