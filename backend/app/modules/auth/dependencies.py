from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db, store_operation
from app.core.enums import AccountRole, ApprovalStatus
from app.core.exceptions import AuthorizationError, InvalidTokenError
from app.core.logging_config import set_user_id
from app.models.account import Account
from app.modules.auth.identity import LocalIdentityProvider
from app.modules.auth.role_gate import DenyReason, role_gate
from app.services.account_service import account_service

security = HTTPBearer(auto_error=False)


@dataclass
class CurrentUser:
    """Authenticated caller: account row, its role and the session in use"""
    account: Account
    role: Optional[AccountRole]
    session_id: str

    @property
    def user_id(self) -> str:
        return str(self.account.id)

    @property
    def email(self) -> str:
        return self.account.email


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[CurrentUser]:
    """Resolve the bearer token if one was sent; None for anonymous callers"""
    if not credentials:
        return None

    identity = LocalIdentityProvider(db)
    user_id, session_id = await identity.verify_access_token(credentials.credentials)

    async with store_operation(db, "select", "accounts"):
        account = await db.get(Account, user_id)
    if account is None:
        raise InvalidTokenError("User not found")

    if account.approval_status != ApprovalStatus.APPROVED:
        raise InvalidTokenError("Account is not approved")

    role = await account_service.get_role(db, user_id)

    set_user_id(user_id)
    request.state.user_id = user_id

    return CurrentUser(account=account, role=role, session_id=session_id)


async def get_current_user(
    current_user: Optional[CurrentUser] = Depends(get_optional_user)
) -> CurrentUser:
    """Get current authenticated user"""
    if current_user is None:
        raise InvalidTokenError("Not authenticated")
    return current_user


def require_roles(*roles: AccountRole):
    """
    Dependency factory enforcing the role gate server-side.

    Usage:
        @router.get("/stats")
        async def stats(admin: CurrentUser = Depends(require_roles(AccountRole.ADMIN))):
            ...
    """
    async def dependency(
        current_user: Optional[CurrentUser] = Depends(get_optional_user)
    ) -> CurrentUser:
        decision = role_gate(current_user, roles)
        if not decision.allowed:
            if decision.reason == DenyReason.NOT_AUTHENTICATED:
                raise InvalidTokenError("Not authenticated")
            raise AuthorizationError(
                f"{' or '.join(role.value.capitalize() for role in roles)} access required"
            )
        return current_user

    return dependency


require_admin = require_roles(AccountRole.ADMIN)
require_student = require_roles(AccountRole.STUDENT)
require_staff = require_roles(AccountRole.STAFF)
