# app/schemas/comment.py
from pydantic import BaseModel
from datetime import datetime
from .user import UserBasic

class CommentCreate(BaseModel):
    # Trimmed and length-checked by the comment service
    content: str

class CommentOut(BaseModel):
    id: int
    task_id: int
    user_id: int
    content: str
    created_at: datetime
    user: UserBasic

    model_config = {
        "from_attributes": True
    }
