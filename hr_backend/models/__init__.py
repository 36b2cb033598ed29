"""
SQLAlchemy model base class for the HR records backend.

This package defines ORM models for branches, users, employees and their
documents. All models should inherit from the declarative `Base` defined here.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


from .branch import Branch  # noqa: E402,F401
from .user import User  # noqa: E402,F401
from .employee import Employee  # noqa: E402,F401
from .document import BranchDocument, EmployeeDocument  # noqa: E402,F401

__all__ = [
    "Base",
    "Branch",
    "User",
    "Employee",
    "EmployeeDocument",
    "BranchDocument",
]
