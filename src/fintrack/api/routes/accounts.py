import asyncio
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from fintrack.api.dependencies import CurrentUser, get_account_service, get_reconciler
from fintrack.models import Account, AccountCreate, AccountUpdate, BalanceAudit, FinancialSummary
from fintrack.services.accounts import AccountService
from fintrack.services.reconciliation import BalanceReconciler

router = APIRouter(prefix="/api")


@router.get("/accounts", response_model=list[Account])
async def list_accounts(
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> list[Account]:
    return await asyncio.to_thread(service.list_accounts, user_id)


@router.post("/accounts", response_model=Account, status_code=201)
async def create_account(
    payload: AccountCreate,
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> Account:
    return await asyncio.to_thread(service.create_account, user_id, payload)


@router.get("/accounts/{account_id}", response_model=Account)
async def get_account(
    account_id: int,
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> Account:
    return await asyncio.to_thread(service.get_account, user_id, account_id)


@router.put("/accounts/{account_id}", response_model=Account)
async def update_account(
    account_id: int,
    payload: AccountUpdate,
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> Account:
    return await asyncio.to_thread(service.update_account, user_id, account_id, payload)


@router.delete("/accounts/{account_id}", status_code=204)
async def delete_account(
    account_id: int,
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
) -> Response:
    await asyncio.to_thread(reconciler.delete_account, user_id, account_id)
    return Response(status_code=204)


@router.get("/accounts/{account_id}/audit", response_model=BalanceAudit)
async def audit_account(
    account_id: int,
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
) -> BalanceAudit:
    return await asyncio.to_thread(service.audit, user_id, account_id)


@router.get("/summary", response_model=FinancialSummary)
async def get_summary(
    user_id: CurrentUser,
    service: Annotated[AccountService, Depends(get_account_service)],
    as_of: date | None = None,
) -> FinancialSummary:
    return await asyncio.to_thread(service.summary, user_id, as_of or date.today())
