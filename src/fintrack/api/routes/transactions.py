import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends, Response

from fintrack.api.dependencies import CurrentUser, get_reconciler
from fintrack.api.schemas import TransactionResult
from fintrack.models import Transaction, TransactionCreate, TransactionPatch
from fintrack.services.reconciliation import BalanceReconciler

router = APIRouter(prefix="/api")


@router.get("/transactions", response_model=list[Transaction])
async def list_transactions(
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
    account_id: int | None = None,
    category_id: int | None = None,
) -> list[Transaction]:
    return await asyncio.to_thread(
        reconciler.list_transactions,
        user_id,
        account_id=account_id,
        category_id=category_id,
    )


@router.post("/transactions", response_model=TransactionResult, status_code=201)
async def create_transaction(
    payload: TransactionCreate,
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
) -> TransactionResult:
    transaction, account = await asyncio.to_thread(reconciler.create_transaction, user_id, payload)
    return TransactionResult(transaction=transaction, accounts=[account])


@router.get("/transactions/{transaction_id}", response_model=Transaction)
async def get_transaction(
    transaction_id: int,
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
) -> Transaction:
    return await asyncio.to_thread(reconciler.get_transaction, user_id, transaction_id)


@router.put("/transactions/{transaction_id}", response_model=TransactionResult)
async def update_transaction(
    transaction_id: int,
    payload: TransactionPatch,
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
) -> TransactionResult:
    transaction, accounts = await asyncio.to_thread(
        reconciler.update_transaction,
        user_id,
        transaction_id,
        payload,
    )
    return TransactionResult(transaction=transaction, accounts=accounts)


@router.delete("/transactions/{transaction_id}", status_code=204)
async def delete_transaction(
    transaction_id: int,
    user_id: CurrentUser,
    reconciler: Annotated[BalanceReconciler, Depends(get_reconciler)],
) -> Response:
    await asyncio.to_thread(reconciler.delete_transaction, user_id, transaction_id)
    return Response(status_code=204)
