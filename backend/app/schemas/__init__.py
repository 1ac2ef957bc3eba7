# Pydantic schemas
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
from app.schemas.complaint import (
    ComplaintCreate,
    ComplaintStatusUpdate,
    AssignmentRequest,
    ComplaintResponse,
    StatusCounts,
)
from app.schemas.category import CategoryCreate, CategoryResponse
from app.schemas.notification import NotificationResponse
from app.schemas.admin import (
    DashboardStats,
    AccountListResponse,
    ApprovalDecisionResponse,
    StaffMemberResponse,
    StaffListResponse,
)
