from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.dependencies import CurrentUser, get_current_user
from app.schemas.category import CategoryResponse
from app.services.category_service import category_service

router = APIRouter()


@router.get("", response_model=List[CategoryResponse])
async def list_categories(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Categories a complaint can be filed under"""
    return await category_service.list_categories(db)
