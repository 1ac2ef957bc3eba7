from sqlalchemy import Column, String, DateTime, ForeignKey, Text, Enum as SQLEnum, Index

from app.core.database import Base
from app.core.enums import ComplaintStatus, ComplaintPriority
from app.core.types import GUID, generate_uuid, utcnow


class Complaint(Base):
    """Ticket filed by a student and worked by an assigned staff member"""
    __tablename__ = "complaints"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    student_id = Column(GUID, ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)  # categories.name
    priority = Column(SQLEnum(ComplaintPriority), nullable=False)
    status = Column(SQLEnum(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False)

    assigned_to = Column(GUID, ForeignKey("accounts.id", ondelete="SET NULL"), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ix_complaints_status_created", "status", "created_at"),
    )

    def __repr__(self):
        return f"<Complaint {self.id} {self.status.value}>"


class Category(Base):
    """Admin-managed complaint category"""
    __tablename__ = "categories"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<Category {self.name}>"
