"""
Approval State Machine
======================

Accounts start ``pending`` and an admin moves them once, to ``approved`` or
``rejected``. Only approved accounts keep a session after signing in.

Registration is a saga over separate writes:

    identity sign_up -> accounts insert -> user_roles insert
        -> notify admins -> sign_out

If the account insert fails the identity is deleted; if the role insert
fails the account and identity are deleted. The original error is then
re-raised. A failed admin notification is only logged.
"""

import re
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import store_operation
from app.core.enums import (
    AccountRole,
    ApprovalStatus,
    BatchType,
    NotificationType,
    SELF_SERVICE_ROLES,
)
from app.core.exceptions import (
    AccountNotFoundError,
    AuthorizationError,
    PendingApprovalError,
    RejectedError,
    StoreError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import utcnow
from app.models.account import Account, UserRoleAssignment
from app.modules.auth.identity import LocalIdentityProvider, normalize_email
from app.modules.auth.session_context import IdentitySession
from app.services.account_service import account_service
from app.services.notification_service import notification_service

# Same rule as the registration form: anything@anything.tld
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_PATTERN = re.compile(r"^\d{10}$")


@dataclass
class RegistrationProfile:
    email: str
    password: str
    full_name: str
    phone_number: str

    # Student attributes
    batch_type: Optional[BatchType] = None
    batch_number: Optional[str] = None
    course: Optional[str] = None
    student_number: Optional[str] = None

    # Staff attributes
    category: Optional[str] = None
    specialization: Optional[str] = None


@dataclass
class LoginResult:
    session: IdentitySession
    account: Account
    role: Optional[AccountRole]


@dataclass
class ApprovalDecision:
    account: Account
    role: Optional[AccountRole]
    changed: bool


def validate_email(email: str) -> str:
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Please enter a valid email address", field="email")
    return email


def validate_password(password: str) -> str:
    if len(password or "") < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(
            f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters",
            field="password",
        )
    return password


def validate_phone(phone: str) -> str:
    phone = (phone or "").strip()
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Phone number must be exactly 10 digits", field="phone_number")
    return phone


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class ApprovalService:
    """Registration, approval-gated login and admin approval decisions"""

    def _validate(self, role, profile: RegistrationProfile) -> AccountRole:
        profile.email = validate_email(profile.email)
        profile.phone_number = validate_phone(profile.phone_number)
        validate_password(profile.password)

        profile.full_name = (profile.full_name or "").strip()
        if not profile.full_name:
            raise ValidationError("Full name is required", field="full_name")

        try:
            account_role = AccountRole(role)
        except ValueError:
            account_role = None
        if account_role not in SELF_SERVICE_ROLES:
            raise ValidationError("Role must be student or staff", field="role")

        if account_role == AccountRole.STUDENT:
            if not profile.batch_type:
                raise ValidationError("Batch type is required", field="batch_type")
            if not _optional(profile.batch_number):
                raise ValidationError("Batch number is required", field="batch_number")
            if not _optional(profile.course):
                raise ValidationError("Course is required", field="course")
        elif not _optional(profile.category):
            raise ValidationError("Category is required", field="category")

        return account_role

    async def _insert_account(self, db: AsyncSession, user_id: str, profile: RegistrationProfile) -> Account:
        account = Account(
            id=user_id,
            full_name=profile.full_name,
            email=profile.email,
            phone_number=profile.phone_number,
            approval_status=ApprovalStatus.PENDING,
            batch_type=profile.batch_type,
            batch_number=_optional(profile.batch_number),
            course=_optional(profile.course),
            student_number=_optional(profile.student_number),
            category=_optional(profile.category),
            specialization=_optional(profile.specialization),
        )
        async with store_operation(db, "insert", "accounts"):
            db.add(account)
            await db.commit()
        return account

    async def _insert_role(self, db: AsyncSession, user_id: str, role: AccountRole) -> UserRoleAssignment:
        assignment = UserRoleAssignment(user_id=user_id, role=role)
        async with store_operation(db, "insert", "user_roles"):
            db.add(assignment)
            await db.commit()
        return assignment

    async def _delete_account(self, db: AsyncSession, user_id: str) -> None:
        async with store_operation(db, "delete", "accounts"):
            await db.execute(delete(UserRoleAssignment).where(UserRoleAssignment.user_id == user_id))
            await db.execute(delete(Account).where(Account.id == user_id))
            await db.commit()

    async def _compensate(self, db: AsyncSession, identity: LocalIdentityProvider,
                          user_id: str, delete_account: bool) -> None:
        """Undo a partial registration; errors here are logged so the original one propagates"""
        try:
            if delete_account:
                await self._delete_account(db, user_id)
            await identity.delete_user(user_id)
        except StoreError as e:
            logger.log_error_with_context(e, context="register.compensate", user_id=user_id)

    async def register(
        self,
        db: AsyncSession,
        role,
        profile: RegistrationProfile,
        identity: Optional[LocalIdentityProvider] = None,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Account:
        """
        Create a pending student or staff account.

        Raises:
            ValidationError: bad input (nothing was written)
            DuplicateAccountError: email already registered
            StoreError: a write failed (partial writes were compensated)
        """
        account_role = self._validate(role, profile)
        identity = identity or LocalIdentityProvider(db)

        session = await identity.sign_up(profile.email, profile.password, client_ip, user_agent)
        user_id = session.user_id

        try:
            account = await self._insert_account(db, user_id, profile)
        except StoreError:
            await self._compensate(db, identity, user_id, delete_account=False)
            raise

        try:
            await self._insert_role(db, user_id, account_role)
        except StoreError:
            await self._compensate(db, identity, user_id, delete_account=True)
            raise

        try:
            await notification_service.notify_admins(
                db,
                "New User Registration",
                f"New {account_role.value} registration: {profile.full_name} ({profile.email}) - Pending approval",
                NotificationType.SIGNUP,
            )
        except StoreError as e:
            logger.log_error_with_context(e, context="register.notify_admins", user_id=user_id)
            account = await account_service.get_account(db, user_id)

        # Registration never leaves a usable session behind
        await identity.sign_out(session.session_id)

        logger.info(
            f"Registered {account_role.value} account {user_id} (pending approval)",
            extra={"event_type": "registration", "account_id": user_id, "role": account_role.value},
        )
        return account

    async def authenticate(
        self,
        db: AsyncSession,
        email: str,
        password: str,
        identity: Optional[LocalIdentityProvider] = None,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        """
        Sign in and keep the session only for approved accounts.

        Bad credentials raise AuthError whatever the approval status. Pending
        and rejected accounts are signed straight back out.
        """
        identity = identity or LocalIdentityProvider(db)
        session = await identity.sign_in(email, password, client_ip, user_agent)

        async with store_operation(db, "select", "accounts"):
            account = await db.get(Account, session.user_id)

        if account is None:
            await identity.sign_out(session.session_id)
            logger.log_auth_event("login", success=False, user_email=session.email, reason="no account record")
            raise AccountNotFoundError(session.user_id)

        if account.approval_status == ApprovalStatus.PENDING:
            await identity.sign_out(session.session_id)
            logger.log_auth_event("login", success=False, user_email=session.email, reason="pending approval")
            raise PendingApprovalError()

        if account.approval_status == ApprovalStatus.REJECTED:
            await identity.sign_out(session.session_id)
            logger.log_auth_event("login", success=False, user_email=session.email, reason="rejected")
            raise RejectedError()

        async with store_operation(db, "update", "accounts"):
            account.last_login = utcnow()
            await db.commit()

        role = await account_service.get_role(db, account.id)
        logger.log_auth_event("login", success=True, user_email=session.email)
        return LoginResult(session=session, account=account, role=role)

    async def decide_approval(self, db: AsyncSession, actor, account_id: str, outcome) -> ApprovalDecision:
        """
        Approve or reject a pending account (admin only).

        A target that is no longer pending is left as is: nothing is written,
        nobody is notified and ``changed`` is False.
        """
        if actor is None or actor.role != AccountRole.ADMIN:
            raise AuthorizationError("Admin access required")

        try:
            outcome = ApprovalStatus(outcome)
        except ValueError:
            outcome = None
        if outcome not in (ApprovalStatus.APPROVED, ApprovalStatus.REJECTED):
            raise ValidationError("Outcome must be approved or rejected", field="outcome")

        account = await account_service.get_account(db, account_id)
        role = await account_service.get_role(db, account_id)

        if account.approval_status != ApprovalStatus.PENDING:
            logger.log_approval_event(account_id, outcome.value, actor.user_id, changed=False)
            return ApprovalDecision(account=account, role=role, changed=False)

        async with store_operation(db, "update", "accounts"):
            account.approval_status = outcome
            await db.commit()

        logger.log_approval_event(account_id, outcome.value, actor.user_id, changed=True)

        title, message, notification_type = self._decision_notice(outcome, role)
        try:
            await notification_service.notify(db, account_id, title, message, notification_type)
        except StoreError as e:
            logger.log_error_with_context(e, context="decide_approval.notify", account_id=account_id)
            account = await account_service.get_account(db, account_id)

        return ApprovalDecision(account=account, role=role, changed=True)

    @staticmethod
    def _decision_notice(outcome: ApprovalStatus, role: Optional[AccountRole]):
        subject = "staff account" if role == AccountRole.STAFF else "account"
        if outcome == ApprovalStatus.APPROVED:
            return (
                "Account Approved",
                f"Your {subject} has been approved by admin. You can now login.",
                NotificationType.APPROVAL,
            )
        return (
            "Account Rejected",
            f"Your {subject} registration has been rejected by admin.",
            NotificationType.REJECTION,
        )


# Singleton instance
approval_service = ApprovalService()
