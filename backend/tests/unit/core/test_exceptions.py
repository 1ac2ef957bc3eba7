"""
Unit Tests for the error hierarchy and its HTTP mapping
"""
from app.core.exceptions import (
    AccountNotFoundError,
    AuthError,
    AuthorizationError,
    BroDeskError,
    ConflictError,
    DuplicateAccountError,
    InvalidTokenError,
    InvalidTransitionError,
    PendingApprovalError,
    RejectedError,
    StoreError,
    ValidationError,
    error_response,
)


class TestHttpStatus:

    def test_status_per_error_kind(self):
        assert ValidationError("bad").http_status == 400
        assert AuthError().http_status == 401
        assert InvalidTokenError().http_status == 401
        assert PendingApprovalError().http_status == 403
        assert RejectedError().http_status == 403
        assert AuthorizationError().http_status == 403
        assert AccountNotFoundError("x").http_status == 404
        assert ConflictError("taken").http_status == 409
        assert StoreError("disk I/O error").http_status == 500

    def test_conflict_subclasses(self):
        assert isinstance(DuplicateAccountError("a@b.co"), ConflictError)
        assert isinstance(InvalidTransitionError("resolved", "pending"), ConflictError)


class TestErrorDetails:

    def test_validation_error_carries_field(self):
        error = ValidationError("Title is required", field="title")
        assert error.code == "VALIDATION_ERROR"
        assert error.details == {"field": "title"}

    def test_invalid_token_keeps_auth_status_with_own_code(self):
        error = InvalidTokenError()
        assert isinstance(error, AuthError)
        assert error.code == "INVALID_TOKEN"

    def test_not_found_code_is_derived_from_resource(self):
        error = AccountNotFoundError("abc")
        assert error.code == "ACCOUNT_NOT_FOUND"
        assert "abc" in error.message

    def test_store_error_passes_driver_message_through(self):
        error = StoreError("UNIQUE constraint failed: accounts.email", operation="insert", table="accounts")
        assert error.message == "UNIQUE constraint failed: accounts.email"
        assert error.details == {"operation": "insert", "table": "accounts"}

    def test_pending_and_rejected_messages(self):
        assert "pending approval" in PendingApprovalError().message
        assert "rejected" in RejectedError().message


def test_error_response_shape():
    body = error_response(BroDeskError("boom"))
    assert body == {
        "success": False,
        "error": {"code": "INTERNAL_ERROR", "message": "boom", "details": {}},
    }
