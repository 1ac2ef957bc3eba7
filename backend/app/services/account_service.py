"""
Account Service - admin directory and dashboard statistics

Role is stored in ``user_roles``; every listing here joins it in so callers
get (account, role) pairs.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.core.database import store_operation
from app.core.enums import AccountRole, ApprovalStatus, ComplaintStatus
from app.core.exceptions import AccountNotFoundError
from app.models.account import Account, UserRoleAssignment
from app.models.complaint import Complaint


@dataclass
class StaffMember:
    account: Account
    assigned_count: int


@dataclass
class DashboardCounts:
    total_users: int
    total_complaints: int
    pending_complaints: int
    in_progress_complaints: int
    resolved_complaints: int


class AccountService:
    """Read-side queries over accounts and their roles"""

    async def get_role(self, db: AsyncSession, account_id: str) -> Optional[AccountRole]:
        async with store_operation(db, "select", "user_roles"):
            result = await db.execute(
                select(UserRoleAssignment.role).where(UserRoleAssignment.user_id == account_id)
            )
            return result.scalar_one_or_none()

    async def get_account(self, db: AsyncSession, account_id: str) -> Account:
        async with store_operation(db, "select", "accounts"):
            account = await db.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def list_accounts(
        self,
        db: AsyncSession,
        status: Optional[ApprovalStatus] = None,
        role: Optional[AccountRole] = None,
    ) -> List[Tuple[Account, Optional[AccountRole]]]:
        """Accounts (newest first) with their role, optionally filtered"""
        query = (
            select(Account, UserRoleAssignment.role)
            .outerjoin(UserRoleAssignment, UserRoleAssignment.user_id == Account.id)
            .order_by(Account.created_at.desc())
        )
        if status is not None:
            query = query.where(Account.approval_status == status)
        if role is not None:
            query = query.where(UserRoleAssignment.role == role)

        async with store_operation(db, "select", "accounts"):
            result = await db.execute(query)
            return [(account, account_role) for account, account_role in result.all()]

    async def list_staff(self, db: AsyncSession) -> List[StaffMember]:
        """Staff accounts with the number of complaints assigned to each"""
        assigned = (
            select(Complaint.assigned_to, func.count(Complaint.id).label("assigned_count"))
            .where(Complaint.assigned_to.is_not(None))
            .group_by(Complaint.assigned_to)
            .subquery()
        )
        query = (
            select(Account, func.coalesce(assigned.c.assigned_count, 0))
            .join(UserRoleAssignment, UserRoleAssignment.user_id == Account.id)
            .outerjoin(assigned, assigned.c.assigned_to == Account.id)
            .where(UserRoleAssignment.role == AccountRole.STAFF)
            .order_by(Account.created_at.desc())
        )
        async with store_operation(db, "select", "accounts"):
            result = await db.execute(query)
            return [StaffMember(account=account, assigned_count=count) for account, count in result.all()]

    async def dashboard_counts(self, db: AsyncSession) -> DashboardCounts:
        async with store_operation(db, "select", "accounts"):
            total_users = (await db.execute(select(func.count(Account.id)))).scalar() or 0

        async with store_operation(db, "select", "complaints"):
            result = await db.execute(
                select(Complaint.status, func.count(Complaint.id)).group_by(Complaint.status)
            )
            by_status = {status: count for status, count in result.all()}

        return DashboardCounts(
            total_users=total_users,
            total_complaints=sum(by_status.values()),
            pending_complaints=by_status.get(ComplaintStatus.PENDING, 0),
            in_progress_complaints=by_status.get(ComplaintStatus.IN_PROGRESS, 0),
            resolved_complaints=by_status.get(ComplaintStatus.RESOLVED, 0),
        )


# Singleton instance
account_service = AccountService()
