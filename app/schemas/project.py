from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from app.models.project import ProjectStatus
from app.utils.timeutils import to_naive_utc
from .user import UserBasic

class ProjectCreate(BaseModel):
    name: str = Field(min_length=3)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator('start_date', 'end_date')
    def normalize_to_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode='after')
    def end_date_after_start_date(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError('End date must be after start date')
        return self

class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[ProjectStatus] = None

    @field_validator('start_date', 'end_date')
    def normalize_to_utc(cls, v):
        return to_naive_utc(v)

    @model_validator(mode='after')
    def end_date_after_start_date(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError('End date must be after start date')
        return self

class ProjectMemberAdd(BaseModel):
    member_id: int

class ProjectStatusHistoryOut(BaseModel):
    id: int
    old_status: ProjectStatus
    new_status: ProjectStatus
    changed_by: int
    changed_at: datetime

    model_config = {
        "from_attributes": True
    }

class ProjectOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    created_by: int
    status: ProjectStatus
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    creator: UserBasic
    members: List[UserBasic] = []

    model_config = {
        "from_attributes": True
    }
