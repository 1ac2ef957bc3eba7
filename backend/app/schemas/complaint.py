from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.core.enums import ComplaintPriority, ComplaintStatus


class ComplaintCreate(BaseModel):
    """Fields are optional here; blank or missing values are a 400 from the service"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    priority: Optional[str] = None


class ComplaintStatusUpdate(BaseModel):
    status: str


class AssignmentRequest(BaseModel):
    staff_id: str


class ComplaintResponse(BaseModel):
    id: str
    student_id: str
    title: str
    description: str
    category: str
    priority: ComplaintPriority
    status: ComplaintStatus
    assigned_to: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None

    # Joined display names
    student_name: Optional[str] = None
    assignee_name: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_view(cls, view) -> "ComplaintResponse":
        """Build from a ComplaintView (complaint row plus joined names)"""
        response = cls.model_validate(view.complaint)
        response.student_name = view.student_name
        response.assignee_name = view.assignee_name
        return response


class StatusCounts(BaseModel):
    total: int = 0
    pending: int = 0
    in_progress: int = 0
    resolved: int = 0
