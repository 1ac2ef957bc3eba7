"""
Enumerations shared by models, schemas, services and the CLI.

Kept free of database and settings imports so the CLI can use them
without loading the server configuration.
"""
import enum


class AccountRole(str, enum.Enum):
    """Role assigned once at registration"""
    STUDENT = "student"
    STAFF = "staff"
    ADMIN = "admin"


class ApprovalStatus(str, enum.Enum):
    """Gate on whether an account's credentials may produce a usable session"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ComplaintStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"


# Forward-only progression of a complaint
COMPLAINT_STATUS_ORDER = [
    ComplaintStatus.PENDING,
    ComplaintStatus.IN_PROGRESS,
    ComplaintStatus.RESOLVED,
]


class ComplaintPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BatchType(str, enum.Enum):
    REMOTE = "Remote"
    OFFLINE = "Offline"


class NotificationType(str, enum.Enum):
    SIGNUP = "signup"
    APPROVAL = "approval"
    REJECTION = "rejection"
    ASSIGNMENT = "assignment"
    STATUS_CHANGE = "status_change"


# Roles that may register themselves; admin only comes from the bootstrap
SELF_SERVICE_ROLES = {AccountRole.STUDENT, AccountRole.STAFF}
