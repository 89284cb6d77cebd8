from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from fintrack.services.accounts import AccountService
from fintrack.services.budgets import BudgetService
from fintrack.services.categories import CategoryService
from fintrack.services.reconciliation import BalanceReconciler


def get_reconciler(request: Request) -> BalanceReconciler:
    reconciler = getattr(request.app.state, "reconciler", None)
    if not reconciler:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return reconciler


def get_account_service(request: Request) -> AccountService:
    service = getattr(request.app.state, "accounts", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_category_service(request: Request) -> CategoryService:
    service = getattr(request.app.state, "categories", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_budget_service(request: Request) -> BudgetService:
    service = getattr(request.app.state, "budgets", None)
    if not service:
        raise HTTPException(status_code=500, detail="Service not initialized")
    return service


def get_current_user_id(
    x_user_id: Annotated[str | None, Header()] = None,
) -> int:
    """Identity resolved by the upstream auth layer, forwarded as ``X-User-Id``."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Unauthorized")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Unauthorized") from None
    if user_id <= 0:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_id


CurrentUser = Annotated[int, Depends(get_current_user_id)]
