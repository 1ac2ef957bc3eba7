# Re-export all models for convenient imports
from app.models.credential import Credential, AuthSession
from app.models.account import Account, UserRoleAssignment
from app.models.complaint import Complaint, Category
from app.models.notification import Notification

__all__ = [
    # Identity
    "Credential",
    "AuthSession",
    # Accounts
    "Account",
    "UserRoleAssignment",
    # Complaints
    "Complaint",
    "Category",
    # Notifications
    "Notification",
]
