from datetime import date
from decimal import Decimal
from typing import Any, Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fintrack.domain.ledger import CENT, to_money
from fintrack.domain.periods import clip_window, period_window, window_bounds
from fintrack.errors import ValidationError
from fintrack.logger import get_logger
from fintrack.models import Budget, BudgetCreate, BudgetProgress, BudgetUpdate, Category
from fintrack.services.lookups import get_category, get_owned_budget
from fintrack.storage.database import BudgetRow, CategoryRow, TransactionRow
from fintrack.storage.unit_of_work import UnitOfWork

logger = get_logger(__name__)

WARNING_PERCENTAGE = Decimal("85")
OVER_PERCENTAGE = Decimal("100")

_NON_NULLABLE_FIELDS = ("category_id", "amount", "period", "start_date")


def progress_status(percentage: Decimal) -> Literal["ok", "warning", "over"]:
    if percentage >= OVER_PERCENTAGE:
        return "over"
    if percentage >= WARNING_PERCENTAGE:
        return "warning"
    return "ok"


def _check_dates(start_date: date, end_date: date | None) -> None:
    if end_date is not None and end_date < start_date:
        raise ValidationError("end_date must not be before start_date")


class BudgetService:
    """
    Spending ceilings per category. Budgets only read the transaction stream;
    they never change account balances.
    """

    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    def list_budgets(self, user_id: int) -> list[Budget]:
        def work(session: Session) -> list[Budget]:
            rows = session.scalars(
                select(BudgetRow).where(BudgetRow.user_id == user_id).order_by(BudgetRow.id)
            )
            return [Budget.model_validate(row) for row in rows]

        return self.unit_of_work.read(work)

    def get_budget(self, user_id: int, budget_id: int) -> Budget:
        return self.unit_of_work.read(
            lambda session: Budget.model_validate(get_owned_budget(session, user_id, budget_id))
        )

    def create_budget(self, user_id: int, data: BudgetCreate) -> Budget:
        _check_dates(data.start_date, data.end_date)

        def work(session: Session) -> Budget:
            get_category(session, data.category_id)
            row = BudgetRow(
                user_id=user_id,
                category_id=data.category_id,
                amount=to_money(data.amount),
                period=data.period,
                start_date=data.start_date,
                end_date=data.end_date,
            )
            session.add(row)
            session.flush()
            logger.info(
                "[BUDGET] Created %s budget %s for category %s",
                row.period.value,
                row.id,
                row.category_id,
            )
            return Budget.model_validate(row)

        return self.unit_of_work.run("create budget", work)

    def update_budget(self, user_id: int, budget_id: int, patch: BudgetUpdate) -> Budget:
        changes: dict[str, Any] = patch.model_dump(exclude_unset=True)
        for field in _NON_NULLABLE_FIELDS:
            if field in changes and changes[field] is None:
                raise ValidationError(f"{field} cannot be null")
        if "amount" in changes:
            changes["amount"] = to_money(changes["amount"])

        def work(session: Session) -> Budget:
            row = get_owned_budget(session, user_id, budget_id)
            if "category_id" in changes:
                get_category(session, changes["category_id"])
            _check_dates(
                changes.get("start_date", row.start_date),
                changes.get("end_date", row.end_date),
            )
            for field, value in changes.items():
                setattr(row, field, value)
            session.flush()
            return Budget.model_validate(row)

        return self.unit_of_work.run("update budget", work)

    def delete_budget(self, user_id: int, budget_id: int) -> None:
        def work(session: Session) -> None:
            row = get_owned_budget(session, user_id, budget_id)
            session.delete(row)

        self.unit_of_work.run("delete budget", work)

    def _spent(self, session: Session, user_id: int, category_id: int, window: tuple[date, date]) -> Decimal:
        start, end = window_bounds(window)
        total = session.scalar(
            select(func.coalesce(func.sum(TransactionRow.amount), 0)).where(
                TransactionRow.user_id == user_id,
                TransactionRow.category_id == category_id,
                TransactionRow.date >= start,
                TransactionRow.date < end,
            )
        )
        return to_money(Decimal(str(total or 0)))

    def progress(self, user_id: int, as_of: date) -> list[BudgetProgress]:
        """Spending against each budget for the period that contains ``as_of``, fullest first."""
        def work(session: Session) -> list[BudgetProgress]:
            rows = session.execute(
                select(BudgetRow, CategoryRow)
                .join(CategoryRow, BudgetRow.category_id == CategoryRow.id)
                .where(BudgetRow.user_id == user_id)
            ).all()

            results: list[BudgetProgress] = []
            for budget, category in rows:
                window = clip_window(
                    period_window(budget.period, as_of),
                    budget.start_date,
                    budget.end_date,
                )
                spent = Decimal("0.00")
                if window is not None:
                    spent = self._spent(session, user_id, budget.category_id, window)
                percentage = (spent / budget.amount * 100).quantize(CENT)
                results.append(BudgetProgress(
                    budget=Budget.model_validate(budget),
                    category=Category.model_validate(category),
                    window_start=window[0] if window else None,
                    window_end=window[1] if window else None,
                    spent=spent,
                    remaining=budget.amount - spent,
                    percentage=percentage,
                    status=progress_status(percentage),
                ))

            results.sort(key=lambda item: item.percentage, reverse=True)
            return results

        return self.unit_of_work.read(work)
