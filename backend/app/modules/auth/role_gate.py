"""
Role gate: may this subject see a view that requires one of these roles?

``role_gate`` is a pure decision. ``RoleGateEvaluator`` applies it at a
view boundary on top of a SessionContext, redirecting at most once per
distinct session state.

The gate is advisory for the view layer; the API enforces the same rule
server-side through ``require_roles``.
"""

import enum
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from app.core.enums import AccountRole
from app.modules.auth.session_context import SessionContext, SessionSnapshot

ENTRY_ROUTE = "/auth"
LANDING_ROUTE = "/"


class DenyReason(str, enum.Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    WRONG_ROLE = "wrong_role"


@dataclass(frozen=True)
class GateDecision:
    allowed: bool
    reason: Optional[DenyReason] = None
    redirect_to: Optional[str] = None


ALLOW = GateDecision(allowed=True)


def role_gate(subject, required_roles: Iterable[AccountRole] = ()) -> GateDecision:
    """
    Decide access for ``subject`` (anything with ``user_id`` and ``role``).

    Not being signed in is checked before the role, so an anonymous caller
    is always sent to the entry screen rather than the landing page.
    """
    if subject is None or not getattr(subject, "user_id", None):
        return GateDecision(False, DenyReason.NOT_AUTHENTICATED, ENTRY_ROUTE)

    required = set(required_roles)
    if required and subject.role not in required:
        return GateDecision(False, DenyReason.WRONG_ROLE, LANDING_ROUTE)

    return ALLOW


class GateState(str, enum.Enum):
    LOADING = "loading"
    RENDER = "render"
    BLOCKED = "blocked"


class RoleGateEvaluator:
    """
    View-boundary wrapper around ``role_gate``.

    Re-evaluates only when the watched context's (user id, role, loading)
    actually changes, and calls ``navigate`` at most once per resolution
    that ends up blocked.
    """

    def __init__(
        self,
        context: SessionContext,
        allowed_roles: Iterable[AccountRole] = (),
        navigate: Optional[Callable[[str], None]] = None,
    ):
        self._context = context
        self._allowed_roles = tuple(allowed_roles)
        self._navigate = navigate or (lambda target: None)
        self._navigated_for: Optional[Tuple] = None
        self._last_seen: Optional[Tuple] = None
        self.state: Optional[GateState] = None
        self.decision: Optional[GateDecision] = None

        self._unwatch = context.watch(self._on_snapshot)
        self._on_snapshot(context.snapshot)

    @staticmethod
    def _key(snapshot: SessionSnapshot) -> Tuple:
        return (snapshot.user_id, snapshot.role, snapshot.loading)

    def evaluate(self) -> GateState:
        snapshot = self._context.snapshot
        if snapshot.loading:
            # A new resolution is under way; it may redirect once more
            self.decision = None
            self._navigated_for = None
            return GateState.LOADING

        self.decision = role_gate(snapshot, self._allowed_roles)
        if self.decision.allowed:
            return GateState.RENDER

        key = self._key(snapshot)
        if key != self._navigated_for:
            self._navigated_for = key
            self._navigate(self.decision.redirect_to)
        return GateState.BLOCKED

    def _on_snapshot(self, snapshot: SessionSnapshot) -> None:
        key = self._key(snapshot)
        if key == self._last_seen:
            return
        self._last_seen = key
        self.state = self.evaluate()

    def close(self) -> None:
        self._unwatch()
