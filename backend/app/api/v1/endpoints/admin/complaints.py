"""
Admin Complaint endpoints - global list and staff assignment.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from app.core.database import get_db
from app.modules.auth.dependencies import CurrentUser, require_admin
from app.schemas.complaint import AssignmentRequest, ComplaintResponse
from app.services.complaint_service import complaint_service

router = APIRouter()


@router.get("", response_model=List[ComplaintResponse])
async def list_complaints(
    newest_first: bool = Query(True),
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """All complaints with student and assignee names"""
    views = await complaint_service.list_all(db, newest_first=newest_first)
    return [ComplaintResponse.from_view(view) for view in views]


@router.put("/{complaint_id}/assignment", response_model=ComplaintResponse)
async def assign_complaint(
    complaint_id: str,
    data: AssignmentRequest,
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """Assign a complaint to an approved staff member"""
    view = await complaint_service.assign(db, complaint_id, data.staff_id, current_admin)
    return ComplaintResponse.from_view(view)
