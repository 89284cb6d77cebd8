from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fintrack.api.errors import register_error_handlers
from fintrack.api.routes import accounts, budgets, categories, transactions
from fintrack.core import settings
from fintrack.logger import get_logger, setup_logging
from fintrack.services.accounts import AccountService
from fintrack.services.budgets import BudgetService
from fintrack.services.categories import CategoryService
from fintrack.services.reconciliation import BalanceReconciler
from fintrack.storage.database import build_engine, build_session_factory, init_db
from fintrack.storage.unit_of_work import RetryPolicy, UnitOfWork

logger = get_logger(__name__)


def create_app(
    database_url: str | None = None,
    retry_policy: RetryPolicy | None = None,
    seed_categories: bool | None = None,
) -> FastAPI:
    """
    Build the API. Arguments override the environment; tests use them to
    point at a scratch database and a fast retry policy.
    """
    setup_logging(db_echo=settings.get_env_bool("DB_ECHO"))
    if seed_categories is None:
        seed_categories = settings.get_env_bool("SEED_CATEGORIES", True)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        settings.log_environment()

        engine = build_engine(database_url or settings.get_database_url())
        init_db(engine)
        unit_of_work = UnitOfWork(build_session_factory(engine), retry_policy)

        app.state.categories = CategoryService(unit_of_work)
        if seed_categories:
            app.state.categories.seed_defaults()
        app.state.reconciler = BalanceReconciler(unit_of_work)
        app.state.accounts = AccountService(unit_of_work)
        app.state.budgets = BudgetService(unit_of_work)
        logger.info(
            "[DB] Ready (retry attempts=%d, wait=%.2fs, max wait=%.2fs)",
            unit_of_work.retry_policy.attempts,
            unit_of_work.retry_policy.wait,
            unit_of_work.retry_policy.max_wait,
        )

        yield

        logger.info("Shutting down, releasing database connections.")
        engine.dispose()

    app = FastAPI(title="fintrack", lifespan=lifespan)
    register_error_handlers(app)
    for module in (accounts, categories, transactions, budgets):
        app.include_router(module.router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app
