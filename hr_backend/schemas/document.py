"""
Pydantic schemas for employee and branch documents.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class DocumentOut(BaseModel):
    id: int
    owner_id: int
    document_type: str
    file_name: str
    mime_type: str
    file_size: int
    file_extension: Optional[str] = None
    description: Optional[str] = None
    expiry_date: Optional[date] = None
    is_verified: bool
    verified_by: Optional[int] = None
    verified_at: Optional[datetime] = None
    uploaded_by: Optional[int] = None
    is_active: bool
    uploaded_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeDocumentOut(DocumentOut):
    employee_id: int


class BranchDocumentOut(DocumentOut):
    branch_id: int


class DocumentMetadata(BaseModel):
    """Editable metadata; unset fields are left untouched."""

    description: Optional[str] = None
    expiry_date: Optional[date] = None


class DocumentPreview(BaseModel):
    id: int
    file_name: str
    mime_type: str
    file_size: int
    document_type: str
    download_url: str
