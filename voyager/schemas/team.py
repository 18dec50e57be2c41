"""Schemas for administrator-driven team management."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr

Role = Literal["admin", "member"]


class TeamMember(BaseModel):
    id: int
    email: EmailStr
    full_name: str
    role: Role
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeamMemberCreate(BaseModel):
    """Payload for adding a member; a temporary password is generated server-side."""

    email: EmailStr
    role: Role = "member"
    full_name: str = ""


class TeamMemberCreated(BaseModel):
    success: bool = True
    member: TeamMember
    password: str


class TeamRoleUpdate(BaseModel):
    id: int
    role: Role


class TeamMemberDelete(BaseModel):
    id: int
