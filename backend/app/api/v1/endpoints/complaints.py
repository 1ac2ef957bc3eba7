from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.enums import AccountRole
from app.modules.auth.dependencies import CurrentUser, get_current_user, require_roles, require_student, require_staff
from app.schemas.complaint import ComplaintCreate, ComplaintResponse, ComplaintStatusUpdate, StatusCounts
from app.services.complaint_service import complaint_service, ComplaintView

router = APIRouter()


@router.post("", response_model=ComplaintResponse, status_code=status.HTTP_201_CREATED)
async def submit_complaint(
    data: ComplaintCreate,
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """Submit a complaint (students)"""
    complaint = await complaint_service.submit(
        db, current_user, data.title, data.description, data.category, data.priority
    )
    return ComplaintResponse.from_view(
        ComplaintView(complaint=complaint, student_name=current_user.account.full_name)
    )


@router.get("/mine", response_model=List[ComplaintResponse])
async def my_complaints(
    current_user: CurrentUser = Depends(require_student),
    db: AsyncSession = Depends(get_db)
):
    """The caller's own complaints, newest first"""
    views = await complaint_service.list_for_student(db, current_user.user_id)
    return [ComplaintResponse.from_view(view) for view in views]


@router.get("/assigned", response_model=List[ComplaintResponse])
async def assigned_complaints(
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
):
    """Complaints assigned to the calling staff member, newest first"""
    views = await complaint_service.list_for_assignee(db, current_user.user_id)
    return [ComplaintResponse.from_view(view) for view in views]


@router.get("/assigned/stats", response_model=StatusCounts)
async def assigned_stats(
    current_user: CurrentUser = Depends(require_staff),
    db: AsyncSession = Depends(get_db)
):
    return StatusCounts(**await complaint_service.status_counts(db, assigned_to=current_user.user_id))


@router.get("/{complaint_id}", response_model=ComplaintResponse)
async def get_complaint(
    complaint_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Owner, assigned staff or admin"""
    view = await complaint_service.get_visible(db, complaint_id, current_user)
    return ComplaintResponse.from_view(view)


@router.patch("/{complaint_id}/status", response_model=ComplaintResponse)
async def update_status(
    complaint_id: str,
    data: ComplaintStatusUpdate,
    current_user: CurrentUser = Depends(require_roles(AccountRole.STAFF, AccountRole.ADMIN)),
    db: AsyncSession = Depends(get_db)
):
    """Move a complaint forward (assigned staff or admin)"""
    view = await complaint_service.advance_status(db, complaint_id, current_user, data.status)
    return ComplaintResponse.from_view(view)
