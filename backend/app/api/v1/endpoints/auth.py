from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.enums import AccountRole
from app.core.rate_limiter import auth_rate_limit, register_rate_limit
from app.modules.auth.approval import approval_service, RegistrationProfile
from app.modules.auth.dependencies import CurrentUser, get_current_user
from app.modules.auth.identity import LocalIdentityProvider
from app.schemas.auth import (
    AccountRegister,
    AccountLogin,
    RefreshRequest,
    AccountResponse,
    RegisterResponse,
    Token,
    LoginResponse,
    MessageResponse,
)

router = APIRouter()


def _client_info(request: Request):
    client_ip = request.client.host if request.client else "unknown"
    return client_ip, request.headers.get("user-agent")


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
@register_rate_limit()
async def register(
    request: Request,
    data: AccountRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a student or staff account; it stays pending until an admin approves it"""
    client_ip, user_agent = _client_info(request)
    profile = RegistrationProfile(
        email=data.email,
        password=data.password,
        full_name=data.full_name,
        phone_number=data.phone_number,
        batch_type=data.batch_type,
        batch_number=data.batch_number,
        course=data.course,
        student_number=data.student_number,
        category=data.category,
        specialization=data.specialization,
    )
    account = await approval_service.register(
        db, data.role, profile, client_ip=client_ip, user_agent=user_agent
    )
    return RegisterResponse(account=AccountResponse.from_account(account, role=AccountRole(data.role)))


@router.post("/login", response_model=LoginResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: AccountLogin,
    db: AsyncSession = Depends(get_db)
):
    """Sign in; only approved accounts get tokens back"""
    client_ip, user_agent = _client_info(request)
    result = await approval_service.authenticate(
        db, credentials.email, credentials.password, client_ip=client_ip, user_agent=user_agent
    )
    return LoginResponse(
        access_token=result.session.access_token,
        refresh_token=result.session.refresh_token,
        session_id=result.session.session_id,
        expires_at=result.session.expires_at,
        user=AccountResponse.from_account(result.account, result.role),
    )


@router.post("/refresh", response_model=Token)
async def refresh_token(
    data: RefreshRequest,
    db: AsyncSession = Depends(get_db)
):
    """Exchange a refresh token for a new token pair"""
    session = await LocalIdentityProvider(db).refresh(data.refresh_token)
    return Token(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        session_id=session.session_id,
        expires_at=session.expires_at,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Revoke the session the caller is using"""
    await LocalIdentityProvider(db).sign_out(current_user.session_id)
    return MessageResponse(message="Signed out")


@router.get("/me", response_model=AccountResponse)
async def get_me(current_user: CurrentUser = Depends(get_current_user)):
    """Get current account with its role"""
    return AccountResponse.from_account(current_user.account, current_user.role)
