import asyncio
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from fintrack.api.dependencies import CurrentUser, get_budget_service
from fintrack.models import Budget, BudgetCreate, BudgetProgress, BudgetUpdate
from fintrack.services.budgets import BudgetService

router = APIRouter(prefix="/api")


@router.get("/budgets", response_model=list[Budget])
async def list_budgets(
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
) -> list[Budget]:
    return await asyncio.to_thread(service.list_budgets, user_id)


@router.post("/budgets", response_model=Budget, status_code=201)
async def create_budget(
    payload: BudgetCreate,
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
) -> Budget:
    return await asyncio.to_thread(service.create_budget, user_id, payload)


# Registered before /budgets/{budget_id} so "progress" is not parsed as an id
@router.get("/budgets/progress", response_model=list[BudgetProgress])
async def budget_progress(
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
    as_of: date | None = None,
) -> list[BudgetProgress]:
    return await asyncio.to_thread(service.progress, user_id, as_of or date.today())


@router.get("/budgets/{budget_id}", response_model=Budget)
async def get_budget(
    budget_id: int,
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
) -> Budget:
    return await asyncio.to_thread(service.get_budget, user_id, budget_id)


@router.put("/budgets/{budget_id}", response_model=Budget)
async def update_budget(
    budget_id: int,
    payload: BudgetUpdate,
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
) -> Budget:
    return await asyncio.to_thread(service.update_budget, user_id, budget_id, payload)


@router.delete("/budgets/{budget_id}", status_code=204)
async def delete_budget(
    budget_id: int,
    user_id: CurrentUser,
    service: Annotated[BudgetService, Depends(get_budget_service)],
) -> Response:
    await asyncio.to_thread(service.delete_budget, user_id, budget_id)
    return Response(status_code=204)
