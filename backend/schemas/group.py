# backend/schemas/group.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    """Schema for creating a new group"""
    name: str = Field(..., max_length=128, description="Unique group name")


class GroupResponse(BaseModel):
    """Schema for group response"""
    id: int
    name: str
    disabled: bool
    created_at: Optional[datetime]

    class Config:
        from_attributes = True
