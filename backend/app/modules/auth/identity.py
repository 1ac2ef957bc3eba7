"""
Local Identity Provider
=======================

Password credentials (bcrypt) and JWT sessions backed by the
``credentials`` / ``auth_sessions`` tables.

Every issued token carries its session id (``sid``). Signing out revokes
the session row, so tokens from that session stop working immediately
even before they expire.

Session changes are published on ``session_events`` so that subscribers
(logging, session contexts) can react to sign in / sign out / refresh.
"""

from datetime import timedelta
from typing import Callable, Optional, Tuple

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import store_operation
from app.core.exceptions import AuthError, DuplicateAccountError, InvalidTokenError, StoreError
from app.core.logging_config import logger
from app.core.security import (
    verify_password,
    get_password_hash,
    create_access_token,
    create_refresh_token,
    decode_token,
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
)
from app.core.types import utcnow
from app.models.credential import Credential, AuthSession
from app.modules.auth.session_context import (
    IdentitySession,
    SessionEvent,
    SessionEventBus,
    SessionListener,
    session_events,
)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class LocalIdentityProvider:
    """Identity capability bound to one database session"""

    def __init__(self, db: AsyncSession, events: SessionEventBus = session_events):
        self.db = db
        self.events = events

    # ==================== Sessions ====================

    def _issue_tokens(self, credential: Credential, auth_session: AuthSession) -> IdentitySession:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        claims = {
            "sub": str(credential.id),
            "sid": str(auth_session.id),
            "email": credential.email,
        }
        return IdentitySession(
            user_id=str(credential.id),
            email=credential.email,
            access_token=create_access_token(claims, expires_delta),
            refresh_token=create_refresh_token(claims),
            session_id=str(auth_session.id),
            expires_at=utcnow() + expires_delta,
        )

    async def _open_session(
        self,
        credential: Credential,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> IdentitySession:
        auth_session = AuthSession(
            user_id=credential.id,
            expires_at=utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            client_ip=client_ip,
            user_agent=user_agent,
        )
        async with store_operation(self.db, "insert", "auth_sessions"):
            self.db.add(auth_session)
            await self.db.commit()

        return self._issue_tokens(credential, auth_session)

    async def _get_active_session(self, session_id: str) -> AuthSession:
        async with store_operation(self.db, "select", "auth_sessions"):
            auth_session = await self.db.get(AuthSession, session_id)

        if auth_session is None or not auth_session.is_active():
            raise InvalidTokenError("Session has expired or was signed out")
        return auth_session

    # ==================== Public API ====================

    async def sign_up(
        self,
        email: str,
        password: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> IdentitySession:
        """Create a credential and open a session for it"""
        email = normalize_email(email)

        async with store_operation(self.db, "select", "credentials"):
            result = await self.db.execute(select(Credential).where(Credential.email == email))
            existing = result.scalar_one_or_none()
        if existing:
            logger.log_auth_event("sign_up", success=False, user_email=email, reason="email exists")
            raise DuplicateAccountError(email)

        credential = Credential(email=email, hashed_password=get_password_hash(password))
        async with store_operation(self.db, "insert", "credentials"):
            self.db.add(credential)
            await self.db.commit()
        credential_id = str(credential.id)

        try:
            session = await self._open_session(credential, client_ip, user_agent)
        except StoreError:
            # The caller never sees this credential, so remove it here
            await self.delete_user(credential_id)
            raise
        logger.log_auth_event("sign_up", success=True, user_email=email)
        self.events.publish(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_in(
        self,
        email: str,
        password: str,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> IdentitySession:
        """Verify credentials and open a session; AuthError on any mismatch"""
        email = normalize_email(email)

        async with store_operation(self.db, "select", "credentials"):
            result = await self.db.execute(select(Credential).where(Credential.email == email))
            credential = result.scalar_one_or_none()

        if not credential or not verify_password(password or "", credential.hashed_password):
            logger.log_auth_event("sign_in", success=False, user_email=email, reason="invalid credentials")
            raise AuthError()

        async with store_operation(self.db, "update", "credentials"):
            credential.last_sign_in_at = utcnow()
            await self.db.commit()

        session = await self._open_session(credential, client_ip, user_agent)
        logger.log_auth_event("sign_in", success=True, user_email=email)
        self.events.publish(SessionEvent.SIGNED_IN, session)
        return session

    async def sign_out(self, session_id: str) -> None:
        """Revoke a session. Unknown or already revoked sessions are ignored."""
        async with store_operation(self.db, "update", "auth_sessions"):
            auth_session = await self.db.get(AuthSession, session_id)
            if auth_session is None or auth_session.revoked_at is not None:
                return
            auth_session.revoked_at = utcnow()
            await self.db.commit()

        logger.log_auth_event("sign_out", success=True, session_id=session_id)
        self.events.publish(SessionEvent.SIGNED_OUT, None)

    async def refresh(self, refresh_token: str) -> IdentitySession:
        """Exchange a refresh token of a live session for new tokens"""
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        auth_session = await self._get_active_session(payload["sid"])

        async with store_operation(self.db, "select", "credentials"):
            credential = await self.db.get(Credential, payload["sub"])
        if credential is None or str(auth_session.user_id) != str(credential.id):
            raise InvalidTokenError()

        session = self._issue_tokens(credential, auth_session)
        self.events.publish(SessionEvent.TOKEN_REFRESHED, session)
        return session

    async def verify_access_token(self, access_token: str) -> Tuple[str, str]:
        """Return (user_id, session_id) for an access token of a live session"""
        payload = decode_token(access_token, expected_type=ACCESS_TOKEN_TYPE)
        auth_session = await self._get_active_session(payload["sid"])
        if str(auth_session.user_id) != payload["sub"]:
            raise InvalidTokenError()
        return payload["sub"], payload["sid"]

    def on_session_change(self, listener: SessionListener) -> Callable[[], None]:
        """Subscribe to session changes; returns an unsubscribe function"""
        return self.events.subscribe(listener)

    async def delete_user(self, user_id: str) -> None:
        """Remove a credential and its sessions (registration compensation only)"""
        async with store_operation(self.db, "delete", "credentials"):
            await self.db.execute(delete(AuthSession).where(AuthSession.user_id == user_id))
            await self.db.execute(delete(Credential).where(Credential.id == user_id))
            await self.db.commit()
        logger.warning(f"Identity {user_id} deleted")
