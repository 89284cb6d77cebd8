from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    Connection,
    Date,
    DateTime,
    Engine,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    create_engine,
    event,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from fintrack.domain.ledger import AccountType, CategoryType
from fintrack.domain.periods import BudgetPeriod
from fintrack.logger import get_logger

logger = get_logger(__name__)

Money = Numeric(14, 2, asdecimal=True)

# SQLite has no decimal storage: Money columns hold REAL, and the balance
# increment and SUM() run in binary floating point. Values are quantized back
# to cents on read, which stays exact while totals remain well below 2**53 cents.
SQLITE_BUSY_TIMEOUT_SECONDS = 30

# Connection execution option; sessions carrying it open a plain deferred
# transaction on SQLite instead of taking the write lock up front.
READ_ONLY_OPTION = "fintrack_read_only"


def utcnow() -> datetime:
    # Naive UTC; SQLite DATETIME columns do not keep an offset
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _values(enum_cls: type) -> list[str]:
    return [member.value for member in enum_cls]


class Base(DeclarativeBase):
    pass


class AccountRow(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        Index("idx_accounts_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, values_callable=_values, native_enum=False, length=32),
        nullable=False,
    )
    institution: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    account_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    # Denormalized: opening_balance plus the signed sum of the account's transactions
    current_balance: Mapped[Decimal] = mapped_column(Money, nullable=False)
    opening_balance: Mapped[Decimal] = mapped_column(Money, nullable=False)
    available_balance: Mapped[Decimal | None] = mapped_column(Money)
    limit: Mapped[Decimal | None] = mapped_column("credit_limit", Money)
    interest_rate: Mapped[Decimal | None] = mapped_column(Numeric(7, 4, asdecimal=True))
    last_updated: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)


class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    type: Mapped[CategoryType] = mapped_column(
        SAEnum(CategoryType, values_callable=_values, native_enum=False, length=16),
        nullable=False,
    )
    icon: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    color: Mapped[str] = mapped_column(String(16), nullable=False, default="")


class TransactionRow(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        Index("idx_transactions_user", "user_id"),
        Index("idx_transactions_account", "account_id"),
        Index("idx_transactions_category_date", "category_id", "date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(nullable=False)
    account_id: Mapped[int] = mapped_column(ForeignKey("accounts.id"), nullable=False)
    category_id: Mapped[int | None] = mapped_column(ForeignKey("categories.id"))
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    merchant: Mapped[str] = mapped_column(String(255), nullable=False)
    # Always a positive magnitude; the sign comes from the category type
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    notes: Mapped[str | None] = mapped_column(Text)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class BudgetRow(Base):
    __tablename__ = "budgets"

    __table_args__ = (
        Index("idx_budgets_user", "user_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    period: Mapped[BudgetPeriod] = mapped_column(
        SAEnum(BudgetPeriod, values_callable=_values, native_enum=False, length=16),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date)


def _configure_sqlite(dbapi_connection: Any, connection_record: Any) -> None:
    # pysqlite otherwise emits BEGIN lazily, only before the first write
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn: Connection) -> None:
    """
    Writers take SQLite's reserved lock before their first read, so a row
    read-then-modified inside one unit of work cannot change underneath it.
    """
    if conn.get_execution_options().get(READ_ONLY_OPTION):
        conn.exec_driver_sql("BEGIN")
    else:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def build_engine(database_url: str) -> Engine:
    connect_args: dict[str, Any] = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        # Sessions are used from worker threads
        connect_args = {"check_same_thread": False, "timeout": SQLITE_BUSY_TIMEOUT_SECONDS}

    engine = create_engine(database_url, connect_args=connect_args)
    if is_sqlite:
        event.listen(engine, "connect", _configure_sqlite)
        event.listen(engine, "begin", _begin_sqlite_transaction)
    return engine


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    Base.metadata.create_all(engine)
    logger.info("[DB] Schema ready on %s", engine.url.render_as_string(hide_password=True))
