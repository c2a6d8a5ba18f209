from datetime import datetime

from pydantic import BaseModel, ConfigDict

from schemas.enums import NotificationType


class Notification(BaseModel):
    id: int
    target_user_id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool = False
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
