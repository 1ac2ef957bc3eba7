from fastapi import APIRouter
from app.api.v1.endpoints import auth, complaints, categories, notifications, health
from app.api.v1.endpoints.admin import admin_router

api_router = APIRouter()

# Deep health checks (/health/live, /health/ready)
api_router.include_router(health.router)


@api_router.get("/health", tags=["Health"])
async def health_check():
    """Simple health check endpoint for load balancer"""
    return {"status": "healthy", "service": "brodesk-backend"}


# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
api_router.include_router(complaints.router, prefix="/complaints", tags=["Complaints"])
api_router.include_router(categories.router, prefix="/categories", tags=["Categories"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# Admin endpoints
api_router.include_router(admin_router)
