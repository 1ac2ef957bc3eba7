# API endpoints
from . import auth, complaints, categories, notifications, health

__all__ = ["auth", "complaints", "categories", "notifications", "health"]
