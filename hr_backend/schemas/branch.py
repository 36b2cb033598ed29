"""
Pydantic schemas for branches.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from ..models.branch import BranchKind


class BranchOut(BaseModel):
    id: int
    name: str
    location: str
    kind: BranchKind
    username: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BranchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1, max_length=255)
    kind: BranchKind = BranchKind.SCHOOL
    username: str = Field(min_length=3, max_length=128)
    password: str = Field(min_length=6)


class BranchUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    kind: Optional[BranchKind] = None
    username: Optional[str] = Field(default=None, min_length=3, max_length=128)
    password: Optional[str] = Field(default=None, min_length=6)
    is_active: Optional[bool] = None
