"""
Admin API endpoints for the BroDesk admin screens.
All endpoints require the admin role.
"""
from fastapi import APIRouter

from app.api.v1.endpoints.admin import dashboard, users, staff, complaints, categories

admin_router = APIRouter(prefix="/admin", tags=["Admin"])

# Include all admin sub-routers
admin_router.include_router(dashboard.router, prefix="/dashboard", tags=["Admin Dashboard"])
admin_router.include_router(users.router, prefix="/users", tags=["Admin Users"])
admin_router.include_router(staff.router, prefix="/staff", tags=["Admin Staff"])
admin_router.include_router(complaints.router, prefix="/complaints", tags=["Admin Complaints"])
admin_router.include_router(categories.router, prefix="/categories", tags=["Admin Categories"])
