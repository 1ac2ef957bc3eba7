from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum as SQLEnum

from app.core.database import Base
from app.core.enums import NotificationType
from app.core.types import GUID, generate_uuid, utcnow


class Notification(Base):
    """Write-once message delivered to one account"""
    __tablename__ = "notifications"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Notification {self.type.value} -> {self.user_id}>"
