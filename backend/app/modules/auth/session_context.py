"""
Session Context
===============

Explicit holder of "who is signed in and what role do they have".

The identity provider publishes session changes on a SessionEventBus.
A SessionContext subscribes to those changes (its only writer), marks
itself loading, resolves the role through an injected resolver and then
publishes a new immutable SessionSnapshot to whoever is watching.

Usage:
    context = SessionContext(role_resolver=lambda s: client.fetch_role(s))
    context.bind(client.on_session_change, initial=client.session)

    unwatch = context.watch(lambda snapshot: render(snapshot))

Only depends on app.core.enums so it can be used by the CLI without
loading server settings.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

from app.core.enums import AccountRole

logger = logging.getLogger(__name__)


class SessionEvent(str, enum.Enum):
    INITIAL_SESSION = "initial_session"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"
    TOKEN_REFRESHED = "token_refreshed"


@dataclass(frozen=True)
class IdentitySession:
    """Tokens and identity handed out by the identity provider"""
    user_id: str
    email: str
    access_token: str
    refresh_token: str
    session_id: str
    expires_at: datetime


SessionListener = Callable[[SessionEvent, Optional[IdentitySession]], None]
RoleResolver = Callable[[IdentitySession], Optional[AccountRole]]


class SessionEventBus:
    """Fan-out of session changes to subscribed listeners"""

    def __init__(self):
        self._listeners: List[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: SessionEvent, session: Optional[IdentitySession]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                # One broken listener must not stop the others
                logger.exception(f"Session listener failed for {event.value}")

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


@dataclass(frozen=True)
class SessionSnapshot:
    """What the view layer reads: the session, its role, and whether that is settled"""
    session: Optional[IdentitySession] = None
    role: Optional[AccountRole] = None
    loading: bool = True

    @property
    def user_id(self) -> Optional[str]:
        return self.session.user_id if self.session else None

    @property
    def authenticated(self) -> bool:
        return self.session is not None


SnapshotWatcher = Callable[[SessionSnapshot], None]


class SessionContext:
    """
    Session/role state with a single writer.

    The writer is the handler registered through ``bind``; views call
    ``snapshot`` or ``watch`` and never mutate anything.
    """

    def __init__(self, role_resolver: RoleResolver):
        self._role_resolver = role_resolver
        self._snapshot = SessionSnapshot()
        self._watchers: List[SnapshotWatcher] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    def bind(
        self,
        subscribe: Callable[[SessionListener], Callable[[], None]],
        initial: Optional[IdentitySession] = None,
    ) -> None:
        """Subscribe to session changes and settle the initial session"""
        self.close()
        self._unsubscribe = subscribe(self._handle_session_change)
        self._handle_session_change(SessionEvent.INITIAL_SESSION, initial)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def watch(self, watcher: SnapshotWatcher) -> Callable[[], None]:
        """Call ``watcher`` with every new snapshot; returns an unwatch function"""
        self._watchers.append(watcher)

        def unwatch() -> None:
            if watcher in self._watchers:
                self._watchers.remove(watcher)

        return unwatch

    def _handle_session_change(self, event: SessionEvent, session: Optional[IdentitySession]) -> None:
        logger.debug(f"Session change: {event.value}")
        self._publish(SessionSnapshot(session=session, role=None, loading=True))

        role = None
        if session is not None:
            try:
                role = self._role_resolver(session)
            except Exception as e:
                logger.warning(f"Role lookup failed for {session.user_id}: {e}")

        self._publish(SessionSnapshot(session=session, role=role, loading=False))

    def _publish(self, snapshot: SessionSnapshot) -> None:
        self._snapshot = snapshot
        for watcher in list(self._watchers):
            watcher(snapshot)


# Process-wide bus the local identity provider publishes on
session_events = SessionEventBus()
