from pydantic import BaseModel
from typing import List

from app.schemas.auth import AccountResponse


# ==================== Dashboard Schemas ====================

class DashboardStats(BaseModel):
    """Counts shown on the admin dashboard"""
    total_users: int
    total_complaints: int
    pending_complaints: int
    in_progress_complaints: int
    resolved_complaints: int


# ==================== User Management Schemas ====================

class AccountListResponse(BaseModel):
    items: List[AccountResponse]
    total: int


class ApprovalDecisionResponse(BaseModel):
    """Result of approve/reject; changed is False when the account was not pending"""
    account: AccountResponse
    changed: bool
    message: str


# ==================== Staff Schemas ====================

class StaffMemberResponse(AccountResponse):
    assigned_count: int = 0


class StaffListResponse(BaseModel):
    items: List[StaffMemberResponse]
    total: int
