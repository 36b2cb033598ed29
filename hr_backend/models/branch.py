"""
ORM model for branches (schools and healthcare centers).

A branch doubles as a login principal: its credentials authenticate a
branch manager scoped to the branch itself.
"""

from __future__ import annotations

from datetime import datetime
import enum

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from . import Base


class BranchKind(str, enum.Enum):
    SCHOOL = "school"
    HEALTHCARE_CENTER = "healthcare_center"


class Branch(Base):
    __tablename__ = "branches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255))
    location: Mapped[str] = mapped_column(String(255))
    kind: Mapped[str] = mapped_column(String(32), default=BranchKind.SCHOOL.value)
    username: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
