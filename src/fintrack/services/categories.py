from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fintrack.domain.ledger import CategoryType
from fintrack.errors import ValidationError
from fintrack.logger import get_logger
from fintrack.models import Category, CategoryCreate
from fintrack.services.lookups import get_category
from fintrack.storage.database import CategoryRow
from fintrack.storage.unit_of_work import UnitOfWork

logger = get_logger(__name__)

DEFAULT_CATEGORIES: tuple[CategoryCreate, ...] = (
    CategoryCreate(name="Housing", type=CategoryType.EXPENSE, icon="home", color="#60A5FA"),
    CategoryCreate(name="Food", type=CategoryType.EXPENSE, icon="utensils", color="#34D399"),
    CategoryCreate(name="Transportation", type=CategoryType.EXPENSE, icon="car", color="#FBBF24"),
    CategoryCreate(name="Entertainment", type=CategoryType.EXPENSE, icon="film", color="#F87171"),
    CategoryCreate(name="Shopping", type=CategoryType.EXPENSE, icon="shopping-bag", color="#A78BFA"),
    CategoryCreate(name="Utilities", type=CategoryType.EXPENSE, icon="bolt", color="#FDBA74"),
    CategoryCreate(name="Healthcare", type=CategoryType.EXPENSE, icon="heartbeat", color="#F472B6"),
    CategoryCreate(name="Personal", type=CategoryType.EXPENSE, icon="user", color="#6EE7B7"),
    CategoryCreate(name="Debt", type=CategoryType.EXPENSE, icon="credit-card", color="#94A3B8"),
    CategoryCreate(name="Income", type=CategoryType.INCOME, icon="dollar-sign", color="#10B981"),
    CategoryCreate(name="Investments", type=CategoryType.INCOME, icon="chart-line", color="#3B82F6"),
    CategoryCreate(name="Other", type=CategoryType.EXPENSE, icon="ellipsis-h", color="#9CA3AF"),
)


class CategoryService:
    """Global category directory. A category's type never changes once created."""

    def __init__(self, unit_of_work: UnitOfWork):
        self.unit_of_work = unit_of_work

    def list_categories(self) -> list[Category]:
        def work(session: Session) -> list[Category]:
            rows = session.scalars(select(CategoryRow).order_by(CategoryRow.id))
            return [Category.model_validate(row) for row in rows]

        return self.unit_of_work.read(work)

    def get_category(self, category_id: int) -> Category:
        return self.unit_of_work.read(
            lambda session: Category.model_validate(get_category(session, category_id))
        )

    def create_category(self, data: CategoryCreate) -> Category:
        def work(session: Session) -> Category:
            name = data.name.strip()
            existing = session.scalar(select(CategoryRow.id).where(CategoryRow.name == name))
            if existing is not None:
                raise ValidationError(f"Category '{name}' already exists")
            row = CategoryRow(name=name, type=data.type, icon=data.icon, color=data.color)
            session.add(row)
            session.flush()
            return Category.model_validate(row)

        return self.unit_of_work.run("create category", work)

    def seed_defaults(self) -> int:
        """Insert the default categories into an empty directory. Returns how many were added."""
        def work(session: Session) -> int:
            count = session.scalar(select(func.count()).select_from(CategoryRow)) or 0
            if count:
                return 0
            session.add_all(
                CategoryRow(name=item.name, type=item.type, icon=item.icon, color=item.color)
                for item in DEFAULT_CATEGORIES
            )
            return len(DEFAULT_CATEGORIES)

        added = self.unit_of_work.run("seed categories", work)
        if added:
            logger.info("[CATEGORIES] Seeded %d default categories", added)
        return added
