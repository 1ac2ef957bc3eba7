from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.core.enums import AccountRole, ApprovalStatus, BatchType


class AccountRegister(BaseModel):
    """
    Self-service registration payload.

    Field rules (email/phone format, password length, role) are checked by
    the approval service so that every caller gets the same ValidationError.
    """
    email: str = ""
    password: str = ""
    full_name: str = ""
    phone_number: str = ""
    role: str = AccountRole.STUDENT.value

    # Student attributes
    batch_type: Optional[BatchType] = None
    batch_number: Optional[str] = None
    course: Optional[str] = None
    student_number: Optional[str] = None

    # Staff attributes
    category: Optional[str] = None
    specialization: Optional[str] = None


class AccountLogin(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class AccountResponse(BaseModel):
    id: str
    email: str
    full_name: str
    phone_number: str
    role: Optional[AccountRole] = None
    approval_status: ApprovalStatus

    batch_type: Optional[BatchType] = None
    batch_number: Optional[str] = None
    course: Optional[str] = None
    student_number: Optional[str] = None

    category: Optional[str] = None
    specialization: Optional[str] = None

    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_account(cls, account, role: Optional[AccountRole] = None) -> "AccountResponse":
        """Build from an Account row plus its role from user_roles"""
        response = cls.model_validate(account)
        response.role = role
        return response


class RegisterResponse(BaseModel):
    message: str = "Registration submitted. Please wait for admin approval."
    account: AccountResponse


class Token(BaseModel):
    access_token: str
    refresh_token: str
    session_id: str
    token_type: str = "bearer"
    expires_at: datetime


class LoginResponse(Token):
    user: AccountResponse


class MessageResponse(BaseModel):
    message: str
    success: bool = Field(default=True)
