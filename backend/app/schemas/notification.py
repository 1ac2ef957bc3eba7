from pydantic import BaseModel
from datetime import datetime

from app.core.enums import NotificationType


class NotificationResponse(BaseModel):
    id: str
    title: str
    message: str
    type: NotificationType
    created_at: datetime

    class Config:
        from_attributes = True
