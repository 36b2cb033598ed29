"""
ORM models for employee and branch documents.

Both tables share the same columns and differ only in the owner foreign key.
Rows are never removed; deleting a document clears `is_active`.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from . import Base


class DocumentColumns:
    """Columns common to every document table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_type: Mapped[str] = mapped_column(String(64), index=True)
    file_name: Mapped[str] = mapped_column(String(255))
    storage_path: Mapped[str] = mapped_column(String(512), unique=True)
    mime_type: Mapped[str] = mapped_column(String(128))
    file_size: Mapped[int] = mapped_column(Integer)
    file_extension: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    expiry_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @declared_attr
    def verified_by(cls) -> Mapped[Optional[int]]:
        return mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    @declared_attr
    def uploaded_by(cls) -> Mapped[Optional[int]]:
        return mapped_column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)


class EmployeeDocument(DocumentColumns, Base):
    __tablename__ = "employee_documents"
    __table_args__ = (Index("ix_employee_documents_owner_type", "employee_id", "document_type", "is_active"),)

    employee_id: Mapped[int] = mapped_column(Integer, ForeignKey("employees.id", ondelete="CASCADE"), index=True)

    @property
    def owner_id(self) -> int:
        return self.employee_id


class BranchDocument(DocumentColumns, Base):
    __tablename__ = "branch_documents"
    __table_args__ = (Index("ix_branch_documents_owner_type", "branch_id", "document_type", "is_active"),)

    branch_id: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id", ondelete="CASCADE"), index=True)

    @property
    def owner_id(self) -> int:
        return self.branch_id
