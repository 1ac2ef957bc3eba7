from sqlalchemy import Column, String, DateTime, ForeignKey, Enum as SQLEnum

from app.core.database import Base
from app.core.enums import AccountRole, ApprovalStatus, BatchType
from app.core.types import GUID, generate_uuid, utcnow


class Account(Base):
    """
    Profile and approval state for one identity.

    ``id`` is the identity provider's user id. Role lives in ``user_roles``.
    """
    __tablename__ = "accounts"

    id = Column(GUID, ForeignKey("credentials.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone_number = Column(String(20), nullable=False)

    approval_status = Column(
        SQLEnum(ApprovalStatus),
        default=ApprovalStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Student attributes
    batch_type = Column(SQLEnum(BatchType), nullable=True)
    batch_number = Column(String(50), nullable=True)
    course = Column(String(255), nullable=True)
    student_number = Column(String(100), nullable=True)

    # Staff attributes
    category = Column(String(100), nullable=True)
    specialization = Column(String(255), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    last_login = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Account {self.email} ({self.approval_status.value})>"


class UserRoleAssignment(Base):
    """Exactly one role per account, written once at registration"""
    __tablename__ = "user_roles"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("accounts.id", ondelete="CASCADE"), unique=True, nullable=False)
    role = Column(SQLEnum(AccountRole), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self):
        return f"<UserRoleAssignment {self.user_id}={self.role.value}>"
