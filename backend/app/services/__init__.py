from app.services.notification_service import NotificationService, notification_service
from app.services.account_service import AccountService, account_service
from app.services.category_service import CategoryService, category_service
from app.services.complaint_service import ComplaintService, ComplaintView, complaint_service

__all__ = [
    "NotificationService",
    "notification_service",
    "AccountService",
    "account_service",
    "CategoryService",
    "category_service",
    "ComplaintService",
    "ComplaintView",
    "complaint_service",
]
