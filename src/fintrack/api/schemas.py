from pydantic import BaseModel

from fintrack.domain.ledger import CategoryType
from fintrack.models import Account, Transaction


class TransactionResult(BaseModel):
    transaction: Transaction
    accounts: list[Account]


class SignPolicy(BaseModel):
    income_sign: int = 1
    expense_sign: int = -1
    uncategorized_type: CategoryType
