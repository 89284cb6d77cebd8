import asyncio
from typing import Annotated

from fastapi import APIRouter, Depends

from fintrack.api.dependencies import get_category_service
from fintrack.api.schemas import SignPolicy
from fintrack.domain.ledger import UNCATEGORIZED_TYPE
from fintrack.models import Category, CategoryCreate
from fintrack.services.categories import CategoryService

router = APIRouter(prefix="/api")


@router.get("/categories", response_model=list[Category])
async def list_categories(
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> list[Category]:
    return await asyncio.to_thread(service.list_categories)


@router.get("/categories/policy", response_model=SignPolicy)
async def get_sign_policy() -> SignPolicy:
    return SignPolicy(uncategorized_type=UNCATEGORIZED_TYPE)


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    payload: CategoryCreate,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> Category:
    return await asyncio.to_thread(service.create_category, payload)


@router.get("/categories/{category_id}", response_model=Category)
async def get_category(
    category_id: int,
    service: Annotated[CategoryService, Depends(get_category_service)],
) -> Category:
    return await asyncio.to_thread(service.get_category, category_id)
