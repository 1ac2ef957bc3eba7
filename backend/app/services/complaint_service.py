"""
Complaint Service - lifecycle of a complaint

Handles:
- Submission by students
- Assignment to approved staff by admins
- Forward-only status progression (pending -> in_progress -> resolved)
- Role-scoped listings joined with student / assignee display names

``actor`` / ``viewer`` arguments are any object with ``user_id`` and
``role`` (see app.modules.auth.dependencies.CurrentUser).
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import aliased

from app.core.database import store_operation
from app.core.enums import (
    AccountRole,
    ApprovalStatus,
    ComplaintPriority,
    ComplaintStatus,
    COMPLAINT_STATUS_ORDER,
    NotificationType,
)
from app.core.exceptions import (
    AuthorizationError,
    ComplaintNotFoundError,
    InvalidTransitionError,
    StoreError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.account import Account
from app.models.complaint import Complaint
from app.services.account_service import account_service
from app.services.category_service import category_service
from app.services.notification_service import notification_service


@dataclass
class ComplaintView:
    """A complaint plus the display names the screens show next to it"""
    complaint: Complaint
    student_name: Optional[str] = None
    assignee_name: Optional[str] = None


Student = aliased(Account, name="student")
Assignee = aliased(Account, name="assignee")


def _require_text(value: Optional[str], field: str, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{label} is required", field=field)
    return value


class ComplaintService:
    """Service for the complaint lifecycle"""

    def _base_query(self):
        return (
            select(Complaint, Student.full_name, Assignee.full_name)
            .outerjoin(Student, Student.id == Complaint.student_id)
            .outerjoin(Assignee, Assignee.id == Complaint.assigned_to)
        )

    async def _fetch_views(self, db: AsyncSession, query) -> List[ComplaintView]:
        async with store_operation(db, "select", "complaints"):
            result = await db.execute(query)
            return [
                ComplaintView(complaint=complaint, student_name=student_name, assignee_name=assignee_name)
                for complaint, student_name, assignee_name in result.all()
            ]

    async def _get_complaint(self, db: AsyncSession, complaint_id: str) -> Complaint:
        async with store_operation(db, "select", "complaints"):
            complaint = await db.get(Complaint, complaint_id)
        if complaint is None:
            raise ComplaintNotFoundError(complaint_id)
        return complaint

    async def _get_view(self, db: AsyncSession, complaint_id: str) -> ComplaintView:
        views = await self._fetch_views(db, self._base_query().where(Complaint.id == complaint_id))
        if not views:
            raise ComplaintNotFoundError(complaint_id)
        return views[0]

    async def _notify_quietly(self, coro, context: str) -> None:
        """Notifications never undo the write that triggered them"""
        try:
            await coro
        except StoreError as e:
            logger.log_error_with_context(e, context=context)

    # ==================== Writes ====================

    async def submit(
        self,
        db: AsyncSession,
        actor,
        title: Optional[str],
        description: Optional[str],
        category: Optional[str],
        priority: Optional[str],
    ) -> Complaint:
        """
        File a new complaint for the calling student.

        Title and description are stored trimmed; the complaint starts
        ``pending`` and unassigned.
        """
        if actor is None or actor.role != AccountRole.STUDENT:
            raise AuthorizationError("Only students can submit complaints")

        title = _require_text(title, "title", "Title")
        description = _require_text(description, "description", "Description")
        category = _require_text(category, "category", "Category")
        priority = _require_text(priority, "priority", "Priority")

        try:
            priority_value = ComplaintPriority(priority.lower())
        except ValueError:
            raise ValidationError(f"Invalid priority '{priority}'", field="priority")

        if await category_service.get_by_name(db, category) is None:
            raise ValidationError(f"Unknown category '{category}'", field="category")

        complaint = Complaint(
            student_id=actor.user_id,
            title=title,
            description=description,
            category=category,
            priority=priority_value,
            status=ComplaintStatus.PENDING,
            assigned_to=None,
        )
        async with store_operation(db, "insert", "complaints"):
            db.add(complaint)
            await db.commit()

        logger.info(f"Complaint {complaint.id} submitted by {actor.user_id}")
        return complaint

    async def assign(self, db: AsyncSession, complaint_id: str, staff_id: str, actor) -> ComplaintView:
        """Point a complaint at an approved staff member (admin only)"""
        if actor is None or actor.role != AccountRole.ADMIN:
            raise AuthorizationError("Admin access required")

        complaint = await self._get_complaint(db, complaint_id)

        # Re-checked at write time; the staff member may have changed since the list was loaded
        async with store_operation(db, "select", "accounts"):
            staff = await db.get(Account, staff_id)
        staff_role = await account_service.get_role(db, staff_id) if staff else None
        if (
            staff is None
            or staff_role != AccountRole.STAFF
            or staff.approval_status != ApprovalStatus.APPROVED
        ):
            raise ValidationError("Complaints can only be assigned to approved staff", field="staff_id")

        async with store_operation(db, "update", "complaints"):
            complaint.assigned_to = staff.id
            await db.commit()

        # Plain values; a failed notification rolls back and expires loaded rows
        complaint_id, title = complaint.id, complaint.title
        staff_id, staff_name = staff.id, staff.full_name
        logger.info(f"Complaint {complaint_id} assigned to {staff_id} by {actor.user_id}")

        await self._notify_quietly(
            notification_service.notify(
                db,
                staff_id,
                "New Complaint Assigned",
                f"Complaint \"{title}\" has been assigned to you.",
                NotificationType.ASSIGNMENT,
            ),
            context="assign.notify_staff",
        )
        await self._notify_quietly(
            notification_service.notify_admins(
                db,
                "Complaint Assigned",
                f"Complaint \"{title}\" was assigned to {staff_name}.",
                NotificationType.ASSIGNMENT,
            ),
            context="assign.notify_admins",
        )

        return await self._get_view(db, complaint_id)

    async def advance_status(self, db: AsyncSession, complaint_id: str, actor, new_status: str) -> ComplaintView:
        """
        Move a complaint forward (skipping steps is allowed, going back is not).

        Only the assigned staff member or an admin may do this. The owning
        student is notified.
        """
        try:
            target = ComplaintStatus(new_status)
        except ValueError:
            raise ValidationError(f"Invalid status '{new_status}'", field="status")

        complaint = await self._get_complaint(db, complaint_id)

        is_admin = actor is not None and actor.role == AccountRole.ADMIN
        is_assignee = (
            actor is not None
            and actor.role == AccountRole.STAFF
            and complaint.assigned_to is not None
            and str(complaint.assigned_to) == str(actor.user_id)
        )
        if not (is_admin or is_assignee):
            raise AuthorizationError("Only the assigned staff member or an admin can update this complaint")

        current = complaint.status
        if COMPLAINT_STATUS_ORDER.index(target) <= COMPLAINT_STATUS_ORDER.index(current):
            raise InvalidTransitionError(current.value, target.value)

        async with store_operation(db, "update", "complaints"):
            complaint.status = target
            if target == ComplaintStatus.RESOLVED:
                complaint.resolved_at = utcnow()
            await db.commit()

        complaint_id, title, student_id = complaint.id, complaint.title, complaint.student_id
        logger.info(f"Complaint {complaint_id}: {current.value} -> {target.value} by {actor.user_id}")

        await self._notify_quietly(
            notification_service.notify(
                db,
                student_id,
                "Complaint Status Updated",
                f"Your complaint \"{title}\" is now {target.value.replace('_', ' ')}.",
                NotificationType.STATUS_CHANGE,
            ),
            context="advance_status.notify_student",
        )

        return await self._get_view(db, complaint_id)

    # ==================== Reads ====================

    async def list_for_assignee(self, db: AsyncSession, staff_id: str) -> List[ComplaintView]:
        """Complaints assigned to ``staff_id``, newest first"""
        query = (
            self._base_query()
            .where(Complaint.assigned_to == staff_id)
            .order_by(Complaint.created_at.desc())
        )
        return await self._fetch_views(db, query)

    async def list_all(self, db: AsyncSession, newest_first: bool = True) -> List[ComplaintView]:
        order = Complaint.created_at.desc() if newest_first else Complaint.created_at.asc()
        return await self._fetch_views(db, self._base_query().order_by(order))

    async def list_for_student(self, db: AsyncSession, student_id: str) -> List[ComplaintView]:
        query = (
            self._base_query()
            .where(Complaint.student_id == student_id)
            .order_by(Complaint.created_at.desc())
        )
        return await self._fetch_views(db, query)

    async def get_visible(self, db: AsyncSession, complaint_id: str, viewer) -> ComplaintView:
        """Owner, assignee and admins may view a complaint"""
        view = await self._get_view(db, complaint_id)
        complaint = view.complaint
        viewer_id = str(viewer.user_id) if viewer is not None else None

        if viewer is None or not (
            viewer.role == AccountRole.ADMIN
            or str(complaint.student_id) == viewer_id
            or (complaint.assigned_to is not None and str(complaint.assigned_to) == viewer_id)
        ):
            raise AuthorizationError("You do not have access to this complaint")
        return view

    async def status_counts(self, db: AsyncSession, assigned_to: Optional[str] = None) -> Dict[str, int]:
        """Count per status, optionally restricted to one assignee"""
        query = select(Complaint.status, func.count(Complaint.id)).group_by(Complaint.status)
        if assigned_to is not None:
            query = query.where(Complaint.assigned_to == assigned_to)

        async with store_operation(db, "select", "complaints"):
            result = await db.execute(query)
            by_status = {status: count for status, count in result.all()}

        counts = {status.value: by_status.get(status, 0) for status in COMPLAINT_STATUS_ORDER}
        counts["total"] = sum(counts.values())
        return counts


# Singleton instance
complaint_service = ComplaintService()
