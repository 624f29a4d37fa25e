from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from app.models.activity_log import ActivityEntity, ActivityAction

class ActivityLogOut(BaseModel):
    id: int
    entity_type: ActivityEntity
    entity_id: int
    action: ActivityAction
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    performed_by: int
    performed_at: datetime

    model_config = {
        "from_attributes": True
    }
