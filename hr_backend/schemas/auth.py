"""
Pydantic schemas for login and the current principal.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class PrincipalOut(BaseModel):
    id: int
    username: str
    role: str
    branch_id: Optional[int] = None
    source: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: PrincipalOut
