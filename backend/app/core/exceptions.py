"""
Custom Exceptions for BroDesk
=============================

Services raise these; the API layer turns them into JSON error responses
using each class's ``http_status``.

Usage:
    from app.core.exceptions import ComplaintNotFoundError, ValidationError

    if not title.strip():
        raise ValidationError("Title is required", field="title")

    complaint = await db.get(Complaint, complaint_id)
    if not complaint:
        raise ComplaintNotFoundError(complaint_id)
"""

from typing import Optional, Any, Dict


class BroDeskError(Exception):
    """Base exception for all BroDesk errors"""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(BroDeskError):
    """Malformed input, rejected before touching the record store"""

    http_status = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthError(BroDeskError):
    """Credentials were not accepted by the identity provider"""

    http_status = 401

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthError):
    """Access/refresh token is malformed, expired or its session was revoked"""

    def __init__(self, message: str = "Could not validate credentials"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class PendingApprovalError(BroDeskError):
    """Credentials are valid but an admin has not approved the account yet"""

    http_status = 403

    def __init__(self, message: str = "Your account is pending approval by admin. Please wait for approval."):
        super().__init__(message, code="ACCOUNT_PENDING")


class RejectedError(BroDeskError):
    """Credentials are valid but an admin rejected the account"""

    http_status = 403

    def __init__(self, message: str = "Your account has been rejected by admin."):
        super().__init__(message, code="ACCOUNT_REJECTED")


class AuthorizationError(BroDeskError):
    """Caller's role is not permitted to perform this action"""

    http_status = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message, code="NOT_AUTHORIZED")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(BroDeskError):
    """Base class for not found errors"""

    http_status = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with ID '{resource_id}' not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": resource_id}
        )


class AccountNotFoundError(ResourceNotFoundError):
    def __init__(self, account_id: str):
        super().__init__("Account", account_id)


class ComplaintNotFoundError(ResourceNotFoundError):
    def __init__(self, complaint_id: str):
        super().__init__("Complaint", complaint_id)


class CategoryNotFoundError(ResourceNotFoundError):
    def __init__(self, category_id: str):
        super().__init__("Category", category_id)


# ============================================
# Conflict Errors (409-type)
# ============================================

class ConflictError(BroDeskError):
    """Request conflicts with the current state of a record"""

    http_status = 409

    def __init__(self, message: str, code: str = "CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class DuplicateAccountError(ConflictError):
    """An identity with this email already exists"""

    def __init__(self, email: str):
        super().__init__(
            "Email already registered",
            code="ACCOUNT_EXISTS",
            details={"email": email}
        )


class InvalidTransitionError(ConflictError):
    """Status change that the lifecycle does not allow"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move complaint from '{current}' to '{requested}'",
            code="INVALID_TRANSITION",
            details={"current": current, "requested": requested}
        )


# ============================================
# Storage Errors
# ============================================

class StoreError(BroDeskError):
    """Record-store call failed; message is the driver's, passed through"""

    http_status = 500

    def __init__(self, message: str, operation: Optional[str] = None, table: Optional[str] = None):
        details = {}
        if operation:
            details["operation"] = operation
        if table:
            details["table"] = table
        super().__init__(message, code="STORE_ERROR", details=details)


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: BroDeskError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "error": error.to_dict()
    }
