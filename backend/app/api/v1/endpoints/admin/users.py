"""
Admin User Management endpoints - listing and approval decisions.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.core.enums import AccountRole, ApprovalStatus
from app.modules.auth.approval import approval_service
from app.modules.auth.dependencies import CurrentUser, require_admin
from app.schemas.admin import AccountListResponse, ApprovalDecisionResponse
from app.schemas.auth import AccountResponse
from app.services.account_service import account_service

router = APIRouter()


@router.get("", response_model=AccountListResponse)
async def list_users(
    status: Optional[ApprovalStatus] = Query(None, description="Filter by approval status"),
    role: Optional[AccountRole] = Query(None, description="Filter by role"),
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    """List accounts with their roles, newest first"""
    rows = await account_service.list_accounts(db, status=status, role=role)
    items = [AccountResponse.from_account(account, account_role) for account, account_role in rows]
    return AccountListResponse(items=items, total=len(items))


async def _decide(db: AsyncSession, admin: CurrentUser, user_id: str, outcome: ApprovalStatus):
    decision = await approval_service.decide_approval(db, admin, user_id, outcome)
    if decision.changed:
        message = f"Account {outcome.value}"
    else:
        message = f"Account was already {decision.account.approval_status.value}; nothing changed"
    return ApprovalDecisionResponse(
        account=AccountResponse.from_account(decision.account, decision.role),
        changed=decision.changed,
        message=message,
    )


@router.post("/{user_id}/approve", response_model=ApprovalDecisionResponse)
async def approve_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    return await _decide(db, current_admin, user_id, ApprovalStatus.APPROVED)


@router.post("/{user_id}/reject", response_model=ApprovalDecisionResponse)
async def reject_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_admin: CurrentUser = Depends(require_admin)
):
    return await _decide(db, current_admin, user_id, ApprovalStatus.REJECTED)
