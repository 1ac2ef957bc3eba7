"""
Admin Staff endpoints - staff directory with assignment load.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.enums import AccountRole
from app.modules.auth.dependencies import CurrentUser, require_admin
from app.schemas.admin import StaffListResponse, StaffMemberResponse
from app.services.account_service import account_service

router = APIRouter()


@router.get("", response_model=StaffListResponse)
async def list_staff(
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """Staff accounts (any approval status) with how many complaints each holds"""
    members = await account_service.list_staff(db)
    items = []
    for member in members:
        item = StaffMemberResponse.from_account(member.account, AccountRole.STAFF)
        item.assigned_count = member.assigned_count
        items.append(item)
    return StaffListResponse(items=items, total=len(items))
