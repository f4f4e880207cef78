"""
Group Pydantic schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ratings_api.models.group import Role


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None


class GroupJoin(BaseModel):
    group_id: str


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    """A membership together with the group it belongs to."""
    id: int
    group_id: str
    user_id: str
    role: Role
    created_at: Optional[datetime] = None
    group: GroupResponse

    model_config = ConfigDict(from_attributes=True)
