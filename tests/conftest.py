from collections.abc import Generator
from datetime import datetime
from decimal import Decimal

import pytest

from fintrack.domain.ledger import AccountType
from fintrack.models import Account, AccountCreate, Category, TransactionCreate
from fintrack.services.accounts import AccountService
from fintrack.services.budgets import BudgetService
from fintrack.services.categories import CategoryService
from fintrack.services.reconciliation import BalanceReconciler
from fintrack.storage.database import build_engine, build_session_factory, init_db
from fintrack.storage.unit_of_work import RetryPolicy, UnitOfWork

OWNER = 1
OTHER_USER = 2


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'fintrack-test.db'}"


@pytest.fixture
def unit_of_work(database_url: str) -> Generator[UnitOfWork, None, None]:
    engine = build_engine(database_url)
    init_db(engine)
    uow = UnitOfWork(
        build_session_factory(engine),
        RetryPolicy(attempts=3, wait=0.0, max_wait=0.0),
    )
    CategoryService(uow).seed_defaults()
    yield uow
    engine.dispose()


@pytest.fixture
def reconciler(unit_of_work: UnitOfWork) -> BalanceReconciler:
    return BalanceReconciler(unit_of_work)


@pytest.fixture
def account_service(unit_of_work: UnitOfWork) -> AccountService:
    return AccountService(unit_of_work)


@pytest.fixture
def budget_service(unit_of_work: UnitOfWork) -> BudgetService:
    return BudgetService(unit_of_work)


@pytest.fixture
def categories(unit_of_work: UnitOfWork) -> dict[str, Category]:
    return {category.name: category for category in CategoryService(unit_of_work).list_categories()}


@pytest.fixture
def food(categories: dict[str, Category]) -> Category:
    return categories["Food"]


@pytest.fixture
def salary(categories: dict[str, Category]) -> Category:
    return categories["Income"]


@pytest.fixture
def make_account(account_service: AccountService):
    def _make(balance: str = "1000.00", user_id: int = OWNER, **kwargs) -> Account:
        data = AccountCreate(
            name=kwargs.pop("name", "Everyday Checking"),
            type=kwargs.pop("type", AccountType.CHECKING),
            institution="First Bank",
            account_number="000123456789",
            current_balance=Decimal(balance),
            **kwargs,
        )
        return account_service.create_account(user_id, data)

    return _make


def tx_data(
    account_id: int,
    amount: str,
    category_id: int | None,
    merchant: str = "Corner Shop",
    date: datetime | None = None,
) -> TransactionCreate:
    return TransactionCreate(
        account_id=account_id,
        category_id=category_id,
        amount=Decimal(amount),
        merchant=merchant,
        date=date or datetime(2024, 3, 5, 10, 0),
    )
