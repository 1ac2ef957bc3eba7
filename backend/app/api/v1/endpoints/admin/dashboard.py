"""
Admin Dashboard endpoints - counts for the landing screen.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.dependencies import CurrentUser, require_admin
from app.schemas.admin import DashboardStats
from app.services.account_service import account_service

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """Total users, total complaints and complaints per status"""
    counts = await account_service.dashboard_counts(db)
    return DashboardStats(
        total_users=counts.total_users,
        total_complaints=counts.total_complaints,
        pending_complaints=counts.pending_complaints,
        in_progress_complaints=counts.in_progress_complaints,
        resolved_complaints=counts.resolved_complaints,
    )
