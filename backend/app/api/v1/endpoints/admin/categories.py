"""
Admin Category endpoints.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.modules.auth.dependencies import CurrentUser, require_admin
from app.schemas.auth import MessageResponse
from app.schemas.category import CategoryCreate, CategoryResponse
from app.services.category_service import category_service

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    return await category_service.list_categories(db)


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    return await category_service.create_category(db, data.name, data.description)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """Fails with 409 while any complaint uses the category"""
    await category_service.delete_category(db, category_id)
    return MessageResponse(message="Category deleted")
