from sqlalchemy import Column, String, DateTime, ForeignKey, Text
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid, utcnow


class Credential(Base):
    """Email/password identity owned by the local identity provider"""
    __tablename__ = "credentials"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    last_sign_in_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f"<Credential {self.email}>"


class AuthSession(Base):
    """
    Server-side record of an issued session.

    Tokens carry the session id; a session with ``revoked_at`` set or past
    ``expires_at`` no longer authenticates anything.
    """
    __tablename__ = "auth_sessions"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("credentials.id", ondelete="CASCADE"), nullable=False, index=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    # Device/browser info
    client_ip = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    def is_active(self, now: datetime = None) -> bool:
        """True while the session is neither revoked nor expired"""
        now = now or utcnow()
        return self.revoked_at is None and now < self.expires_at

    def __repr__(self):
        return f"<AuthSession {self.id} user={self.user_id}>"
