"""
Notification Service - write-once messages to accounts

Admins are notified of registrations and assignments; accounts are notified
of approval decisions; students are notified of status changes.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import List

from app.core.database import store_operation
from app.core.enums import AccountRole, NotificationType
from app.models.account import UserRoleAssignment
from app.models.notification import Notification


class NotificationService:
    """Service for creating and listing notifications"""

    async def notify(
        self,
        db: AsyncSession,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType,
    ) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, type=type)
        async with store_operation(db, "insert", "notifications"):
            db.add(notification)
            await db.commit()
        return notification

    async def notify_admins(
        self,
        db: AsyncSession,
        title: str,
        message: str,
        type: NotificationType,
    ) -> int:
        """Send the same notification to every admin; returns how many were written"""
        async with store_operation(db, "select", "user_roles"):
            result = await db.execute(
                select(UserRoleAssignment.user_id).where(UserRoleAssignment.role == AccountRole.ADMIN)
            )
            admin_ids = [row[0] for row in result.all()]

        if not admin_ids:
            return 0

        async with store_operation(db, "insert", "notifications"):
            db.add_all([
                Notification(user_id=admin_id, title=title, message=message, type=type)
                for admin_id in admin_ids
            ])
            await db.commit()
        return len(admin_ids)

    async def list_for_user(self, db: AsyncSession, user_id: str, limit: int = 50) -> List[Notification]:
        """Newest first"""
        async with store_operation(db, "select", "notifications"):
            result = await db.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())


# Singleton instance
notification_service = NotificationService()
