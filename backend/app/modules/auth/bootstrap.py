"""
Out-of-band provisioning of an administrator.

Admins cannot register themselves; this is the only path that creates the
``admin`` role. Run it through ``backend/create_admin.py``.
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import store_operation
from app.core.enums import AccountRole, ApprovalStatus
from app.core.exceptions import ValidationError
from app.core.logging_config import logger
from app.models.account import Account, UserRoleAssignment
from app.modules.auth.approval import validate_email, validate_password
from app.modules.auth.identity import LocalIdentityProvider


async def bootstrap_admin(
    db: AsyncSession,
    email: str,
    password: str,
    full_name: str = "Admin User",
    phone_number: str = "1234567890",
    identity: Optional[LocalIdentityProvider] = None,
) -> Account:
    """
    Create a pre-approved admin account.

    Raises DuplicateAccountError if the email is already registered.
    """
    email = validate_email(email)
    validate_password(password)
    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("Full name is required", field="full_name")

    identity = identity or LocalIdentityProvider(db)
    session = await identity.sign_up(email, password)

    account = Account(
        id=session.user_id,
        full_name=full_name,
        email=email,
        phone_number=phone_number,
        approval_status=ApprovalStatus.APPROVED,
    )
    async with store_operation(db, "insert", "accounts"):
        db.add(account)
        db.add(UserRoleAssignment(user_id=session.user_id, role=AccountRole.ADMIN))
        await db.commit()

    await identity.sign_out(session.session_id)

    logger.info(f"Admin account created: {email}", extra={"event_type": "bootstrap", "account_id": account.id})
    return account
