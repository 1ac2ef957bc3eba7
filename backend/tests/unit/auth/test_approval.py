"""
Unit Tests for registration, approval-gated login and approval decisions
"""
import pytest
from faker import Faker
from sqlalchemy import select, func

from app.core.enums import AccountRole, ApprovalStatus, BatchType, NotificationType
from app.core.exceptions import (
    AccountNotFoundError,
    AuthError,
    AuthorizationError,
    DuplicateAccountError,
    PendingApprovalError,
    RejectedError,
    StoreError,
    ValidationError,
)
from app.models import Account, AuthSession, Credential, UserRoleAssignment
from app.modules.auth.approval import (
    RegistrationProfile,
    approval_service,
    validate_email,
    validate_phone,
)
from app.modules.auth.identity import LocalIdentityProvider
from app.modules.auth.session_context import SessionEvent, SessionEventBus
from app.services.account_service import account_service
from app.services.notification_service import notification_service

fake = Faker()


def make_profile(**overrides) -> RegistrationProfile:
    data = {
        "email": fake.unique.email(),
        "password": "secret123",
        "full_name": fake.name(),
        "phone_number": "9876543210",
        "batch_type": BatchType.OFFLINE,
        "batch_number": "B3",
        "course": "BCA",
        "category": "academic",
    }
    data.update(overrides)
    return RegistrationProfile(**data)


async def count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar()


class TestFieldValidation:

    def test_validate_email_normalizes(self):
        assert validate_email("  Student@College.EDU ") == "student@college.edu"

    @pytest.mark.parametrize("email", ["", "plain", "no-at.example.com", "a@b", "a b@c.com"])
    def test_validate_email_rejects(self, email):
        with pytest.raises(ValidationError):
            validate_email(email)

    @pytest.mark.parametrize("phone", ["12345", "12345678901", "98765x3210", ""])
    def test_validate_phone_rejects(self, phone):
        with pytest.raises(ValidationError) as exc_info:
            validate_phone(phone)
        assert exc_info.value.details == {"field": "phone_number"}

    def test_validate_phone_trims(self):
        assert validate_phone(" 9876543210 ") == "9876543210"


class TestRegister:

    async def test_register_student_pending(self, db_session):
        profile = make_profile(batch_type=BatchType.REMOTE, batch_number="B12", course="B.Tech", student_number="S-1")

        account = await approval_service.register(db_session, "student", profile)

        assert account.approval_status == ApprovalStatus.PENDING
        assert account.course == "B.Tech"
        assert account.batch_type == BatchType.REMOTE
        assert await account_service.get_role(db_session, account.id) == AccountRole.STUDENT

    async def test_register_leaves_no_live_session(self, db_session):
        bus = SessionEventBus()
        seen = []
        bus.subscribe(lambda event, session: seen.append(event))

        account = await approval_service.register(
            db_session, "staff", make_profile(category="technical"),
            identity=LocalIdentityProvider(db_session, events=bus),
        )

        sessions = (await db_session.execute(
            select(AuthSession).where(AuthSession.user_id == account.id)
        )).scalars().all()
        assert len(sessions) == 1
        assert sessions[0].revoked_at is not None
        assert seen == [SessionEvent.SIGNED_IN, SessionEvent.SIGNED_OUT]

    async def test_register_notifies_each_admin(self, db_session, admin_account, make_account):
        second_admin = await make_account(AccountRole.ADMIN)
        profile = make_profile(full_name="Nina New")

        await approval_service.register(db_session, "student", profile)

        for admin in (admin_account, second_admin):
            notifications = await notification_service.list_for_user(db_session, admin.id)
            assert len(notifications) == 1
            assert notifications[0].title == "New User Registration"
            assert notifications[0].message == (
                f"New student registration: Nina New ({profile.email}) - Pending approval"
            )
            assert notifications[0].type == NotificationType.SIGNUP

    @pytest.mark.parametrize("role", ["admin", "teacher", ""])
    async def test_register_rejects_role(self, db_session, role):
        with pytest.raises(ValidationError, match="Role must be student or staff"):
            await approval_service.register(db_session, role, make_profile())
        assert await count(db_session, Credential) == 0

    async def test_register_validates_before_writing(self, db_session):
        with pytest.raises(ValidationError, match="at least 6"):
            await approval_service.register(db_session, "student", make_profile(password="123"))
        with pytest.raises(ValidationError, match="Full name"):
            await approval_service.register(db_session, "student", make_profile(full_name="   "))

        assert await count(db_session, Credential) == 0
        assert await count(db_session, Account) == 0

    @pytest.mark.parametrize("role, overrides, field", [
        ("student", {"batch_type": None}, "batch_type"),
        ("student", {"batch_number": "  "}, "batch_number"),
        ("student", {"course": None}, "course"),
        ("staff", {"category": ""}, "category"),
    ])
    async def test_register_requires_role_fields(self, db_session, role, overrides, field):
        with pytest.raises(ValidationError) as exc_info:
            await approval_service.register(db_session, role, make_profile(**overrides))

        assert exc_info.value.details == {"field": field}
        assert await count(db_session, Credential) == 0

    async def test_staff_needs_no_student_fields(self, db_session):
        profile = make_profile(batch_type=None, batch_number=None, course=None, category="technical")

        account = await approval_service.register(db_session, "staff", profile)

        assert account.category == "technical"
        assert account.course is None

    async def test_register_duplicate_email(self, db_session, student_account):
        with pytest.raises(DuplicateAccountError):
            await approval_service.register(
                db_session, "student", make_profile(email=student_account.email.upper())
            )


class TestRegisterCompensation:

    async def test_role_insert_failure_removes_account_and_identity(self, db_session, monkeypatch):
        async def failing_insert_role(db, user_id, role):
            raise StoreError("permission denied for table user_roles", operation="insert", table="user_roles")

        monkeypatch.setattr(approval_service, "_insert_role", failing_insert_role)

        with pytest.raises(StoreError, match="permission denied"):
            await approval_service.register(db_session, "student", make_profile())

        assert await count(db_session, Account) == 0
        assert await count(db_session, UserRoleAssignment) == 0
        assert await count(db_session, Credential) == 0

    async def test_account_insert_failure_removes_identity(self, db_session, monkeypatch):
        async def failing_insert_account(db, user_id, profile):
            raise StoreError("disk I/O error", operation="insert", table="accounts")

        monkeypatch.setattr(approval_service, "_insert_account", failing_insert_account)

        with pytest.raises(StoreError, match="disk I/O error"):
            await approval_service.register(db_session, "staff", make_profile())

        assert await count(db_session, Credential) == 0

    async def test_session_failure_leaves_email_reusable(self, db_session, monkeypatch):
        identity = LocalIdentityProvider(db_session)
        profile = make_profile()

        async def failing_open_session(credential, client_ip=None, user_agent=None):
            raise StoreError("database is locked", operation="insert", table="auth_sessions")

        monkeypatch.setattr(identity, "_open_session", failing_open_session)

        with pytest.raises(StoreError, match="database is locked"):
            await approval_service.register(db_session, "student", profile, identity=identity)
        assert await count(db_session, Credential) == 0
        assert await count(db_session, Account) == 0

        account = await approval_service.register(db_session, "student", make_profile(email=profile.email))
        assert account.email == profile.email.lower()

    async def test_notification_failure_keeps_registration(self, db_session, admin_account, monkeypatch):
        async def failing_notify_admins(db, title, message, type):
            raise StoreError("notifications unavailable")

        monkeypatch.setattr(notification_service, "notify_admins", failing_notify_admins)

        account = await approval_service.register(db_session, "student", make_profile())

        assert account.approval_status == ApprovalStatus.PENDING
        assert await account_service.get_role(db_session, account.id) == AccountRole.STUDENT


class TestAuthenticate:

    async def test_approved_account_signs_in(self, db_session, student_account):
        result = await approval_service.authenticate(db_session, student_account.email, "password123")

        assert result.account.id == student_account.id
        assert result.role == AccountRole.STUDENT
        assert result.account.last_login is not None
        user_id, _ = await LocalIdentityProvider(db_session).verify_access_token(result.session.access_token)
        assert user_id == student_account.id

    @pytest.mark.parametrize("status, error", [
        (ApprovalStatus.PENDING, PendingApprovalError),
        (ApprovalStatus.REJECTED, RejectedError),
    ])
    async def test_unapproved_account_is_signed_back_out(self, db_session, make_account, status, error):
        account = await make_account(AccountRole.STUDENT, status=status)

        with pytest.raises(error):
            await approval_service.authenticate(db_session, account.email, "password123")

        sessions = (await db_session.execute(select(AuthSession))).scalars().all()
        assert len(sessions) == 1
        assert sessions[0].revoked_at is not None
        assert account.last_login is None

    async def test_wrong_password_on_pending_account_is_auth_error(self, db_session, make_account):
        account = await make_account(AccountRole.STAFF, status=ApprovalStatus.PENDING)

        with pytest.raises(AuthError):
            await approval_service.authenticate(db_session, account.email, "wrong-password")

    async def test_identity_without_account_record(self, db_session):
        await LocalIdentityProvider(db_session).sign_up("orphan@example.com", "secret123")

        with pytest.raises(AccountNotFoundError):
            await approval_service.authenticate(db_session, "orphan@example.com", "secret123")


class TestDecideApproval:

    async def test_approve_pending_student(self, db_session, admin_actor, make_account):
        account = await make_account(AccountRole.STUDENT, status=ApprovalStatus.PENDING)

        decision = await approval_service.decide_approval(db_session, admin_actor, account.id, "approved")

        assert decision.changed is True
        assert decision.account.approval_status == ApprovalStatus.APPROVED
        notifications = await notification_service.list_for_user(db_session, account.id)
        assert [n.title for n in notifications] == ["Account Approved"]
        assert notifications[0].message == "Your account has been approved by admin. You can now login."
        assert notifications[0].type == NotificationType.APPROVAL

    async def test_reject_pending_staff_wording(self, db_session, admin_actor, make_account):
        account = await make_account(AccountRole.STAFF, status=ApprovalStatus.PENDING)

        decision = await approval_service.decide_approval(
            db_session, admin_actor, account.id, ApprovalStatus.REJECTED
        )

        assert decision.account.approval_status == ApprovalStatus.REJECTED
        notifications = await notification_service.list_for_user(db_session, account.id)
        assert notifications[0].title == "Account Rejected"
        assert notifications[0].message == "Your staff account registration has been rejected by admin."

    async def test_decision_is_final(self, db_session, admin_actor, make_account):
        account = await make_account(AccountRole.STUDENT, status=ApprovalStatus.REJECTED)

        decision = await approval_service.decide_approval(db_session, admin_actor, account.id, "approved")

        assert decision.changed is False
        assert decision.account.approval_status == ApprovalStatus.REJECTED
        assert await notification_service.list_for_user(db_session, account.id) == []

    async def test_non_admin_cannot_decide(self, db_session, staff_actor, make_account):
        account = await make_account(AccountRole.STUDENT, status=ApprovalStatus.PENDING)

        with pytest.raises(AuthorizationError):
            await approval_service.decide_approval(db_session, staff_actor, account.id, "approved")
        assert account.approval_status == ApprovalStatus.PENDING

    async def test_invalid_outcome(self, db_session, admin_actor, make_account):
        account = await make_account(AccountRole.STUDENT, status=ApprovalStatus.PENDING)

        with pytest.raises(ValidationError):
            await approval_service.decide_approval(db_session, admin_actor, account.id, "pending")

    async def test_unknown_account(self, db_session, admin_actor):
        with pytest.raises(AccountNotFoundError):
            await approval_service.decide_approval(db_session, admin_actor, "missing-id", "approved")
