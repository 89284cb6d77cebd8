from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from fintrack.domain.ledger import AccountType, CategoryType, credit_utilization
from fintrack.domain.periods import BudgetPeriod


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Category(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    type: CategoryType
    icon: str = ""
    color: str = ""


class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    type: CategoryType
    icon: str = ""
    color: str = ""


class Account(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    name: str
    type: AccountType
    institution: str
    account_number: str
    current_balance: Decimal
    opening_balance: Decimal
    available_balance: Decimal | None = None
    limit: Decimal | None = None
    interest_rate: Decimal | None = None
    last_updated: datetime

    @computed_field  # type: ignore[prop-decorator]
    @property
    def credit_utilization(self) -> Decimal | None:
        return credit_utilization(self.type, self.current_balance, self.limit)


class AccountCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    type: AccountType
    institution: str = ""
    account_number: str = ""
    current_balance: Decimal = Field(default=Decimal("0"), max_digits=14, decimal_places=2)
    available_balance: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    limit: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    interest_rate: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=4)


class AccountUpdate(BaseModel):
    """Partial edit. Setting ``current_balance`` resets the opening balance."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    type: AccountType | None = None
    institution: str | None = None
    account_number: str | None = None
    current_balance: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    available_balance: Decimal | None = Field(default=None, max_digits=14, decimal_places=2)
    limit: Decimal | None = Field(default=None, ge=0, max_digits=14, decimal_places=2)
    interest_rate: Decimal | None = Field(default=None, ge=0, max_digits=7, decimal_places=4)


class Transaction(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    account_id: int
    category_id: int | None = None
    date: datetime
    merchant: str
    amount: Decimal
    description: str | None = None
    notes: str | None = None
    is_recurring: bool = False


class TransactionCreate(BaseModel):
    account_id: int
    category_id: int | None = None
    date: datetime
    merchant: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    description: str | None = None
    notes: str | None = None
    is_recurring: bool = False

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime) -> datetime:
        return _naive_utc(value)


class TransactionPatch(BaseModel):
    """
    Partial update. Only fields present in the request are applied, so
    ``{"category_id": null}`` clears the category while an absent key leaves it.
    """
    account_id: int | None = None
    category_id: int | None = None
    date: datetime | None = None
    merchant: str | None = Field(default=None, min_length=1, max_length=255)
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    description: str | None = None
    notes: str | None = None
    is_recurring: bool | None = None

    @field_validator("date")
    @classmethod
    def normalize_date(cls, value: datetime | None) -> datetime | None:
        return None if value is None else _naive_utc(value)


class Budget(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    category_id: int
    amount: Decimal
    period: BudgetPeriod
    start_date: date
    end_date: date | None = None


class BudgetCreate(BaseModel):
    category_id: int
    amount: Decimal = Field(gt=0, max_digits=14, decimal_places=2)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: date
    end_date: date | None = None


class BudgetUpdate(BaseModel):
    category_id: int | None = None
    amount: Decimal | None = Field(default=None, gt=0, max_digits=14, decimal_places=2)
    period: BudgetPeriod | None = None
    start_date: date | None = None
    end_date: date | None = None


class BudgetProgress(BaseModel):
    budget: Budget
    category: Category
    window_start: date | None
    window_end: date | None
    spent: Decimal
    remaining: Decimal
    percentage: Decimal
    status: Literal["ok", "warning", "over"]


class BalanceAudit(BaseModel):
    account_id: int
    stored_balance: Decimal
    ledger_balance: Decimal
    drift: Decimal
    transaction_count: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def consistent(self) -> bool:
        return self.drift == 0


class FinancialSummary(BaseModel):
    as_of: date
    net_worth: Decimal
    month_income: Decimal
    month_spending: Decimal
    account_count: int
