"""
BroDesk - Test Configuration and Fixtures
"""
import os
from typing import AsyncGenerator
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool
from faker import Faker

# Set testing environment
os.environ['TESTING'] = 'true'
os.environ['ENVIRONMENT'] = 'testing'
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///./test.db'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['BCRYPT_ROUNDS'] = '4'
os.environ['RATE_LIMIT_ENABLED'] = 'false'
os.environ['LOG_FILE'] = ''

from app.main import app
from app.core.config import settings
from app.core.database import Base, get_db
from app.core.enums import AccountRole, ApprovalStatus
from app.core.security import get_password_hash
from app.models import Account, Credential, UserRoleAssignment
from app.modules.auth.dependencies import CurrentUser
from app.modules.auth.identity import LocalIdentityProvider
from app.services.category_service import category_service

fake = Faker()

DEFAULT_PASSWORD = 'password123'

# Test database setup
TEST_DATABASE_URL = 'sqlite+aiosqlite:///./test.db'
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False
)


@pytest.fixture(scope='function')
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database override"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_account(db_session: AsyncSession):
    """Factory: credential + account + role, written straight to the store"""
    async def _make(
        role: AccountRole = AccountRole.STUDENT,
        status: ApprovalStatus = ApprovalStatus.APPROVED,
        password: str = DEFAULT_PASSWORD,
        **fields
    ) -> Account:
        email = (fields.pop('email', None) or fake.unique.email()).lower()
        credential = Credential(email=email, hashed_password=get_password_hash(password))
        db_session.add(credential)
        await db_session.flush()

        account = Account(
            id=credential.id,
            email=email,
            full_name=fields.pop('full_name', None) or fake.name(),
            phone_number=fields.pop('phone_number', None) or '9876543210',
            approval_status=status,
            **fields
        )
        db_session.add(account)
        await db_session.flush()

        db_session.add(UserRoleAssignment(user_id=account.id, role=role))
        await db_session.commit()
        return account

    return _make


@pytest.fixture
def headers_for(db_session: AsyncSession):
    """Sign an account in through the identity provider and return bearer headers"""
    async def _headers(account: Account, password: str = DEFAULT_PASSWORD) -> dict:
        session = await LocalIdentityProvider(db_session).sign_in(account.email, password)
        return {'Authorization': f'Bearer {session.access_token}'}

    return _headers


def as_actor(account: Account, role: AccountRole) -> CurrentUser:
    """Service-level caller for an account"""
    return CurrentUser(account=account, role=role, session_id='test-session')


@pytest.fixture
def actor_for():
    return as_actor


@pytest.fixture
async def admin_account(make_account) -> Account:
    return await make_account(AccountRole.ADMIN, full_name='Ada Admin')


@pytest.fixture
async def student_account(make_account) -> Account:
    return await make_account(AccountRole.STUDENT, full_name='Sam Student', course='B.Tech')


@pytest.fixture
async def staff_account(make_account) -> Account:
    return await make_account(AccountRole.STAFF, full_name='Stella Staff', category='infrastructure')


@pytest.fixture
def admin_actor(admin_account) -> CurrentUser:
    return as_actor(admin_account, AccountRole.ADMIN)


@pytest.fixture
def student_actor(student_account) -> CurrentUser:
    return as_actor(student_account, AccountRole.STUDENT)


@pytest.fixture
def staff_actor(staff_account) -> CurrentUser:
    return as_actor(staff_account, AccountRole.STAFF)


@pytest.fixture
async def admin_headers(admin_account, headers_for) -> dict:
    return await headers_for(admin_account)


@pytest.fixture
async def student_headers(student_account, headers_for) -> dict:
    return await headers_for(student_account)


@pytest.fixture
async def staff_headers(staff_account, headers_for) -> dict:
    return await headers_for(staff_account)


@pytest.fixture
async def categories(db_session: AsyncSession):
    """Default categories seeded as on startup"""
    await category_service.ensure_defaults(db_session, settings.DEFAULT_CATEGORIES)
    return await category_service.list_categories(db_session)
