"""
Pydantic schemas for employees.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EmployeeBase(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    second_name: str = Field(min_length=1, max_length=100)
    third_name: str = Field(min_length=1, max_length=100)
    fourth_name: str = Field(min_length=1, max_length=100)
    occupation: str = Field(min_length=1, max_length=128)
    nationality: str = Field(min_length=1, max_length=64)
    id_or_residency_number: str = Field(min_length=1, max_length=64)
    id_type: str = Field(min_length=1, max_length=32)
    gender: str = Field(min_length=1, max_length=16)
    date_of_birth: Optional[date] = None
    id_expiry_date: Optional[date] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    educational_qualification: Optional[str] = None
    specialization: Optional[str] = None
    bank_iban: Optional[str] = None
    bank_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    contract_type: Optional[str] = None
    salary: Optional[Decimal] = None


class EmployeeCreate(EmployeeBase):
    employee_id_number: str = Field(min_length=1, max_length=64)
    branch_id: Optional[int] = None


class EmployeeUpdate(BaseModel):
    # branch_id is accepted only so a mismatching value can be rejected.
    branch_id: Optional[int] = None
    employee_id_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    second_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    third_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    fourth_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    occupation: Optional[str] = Field(default=None, min_length=1, max_length=128)
    nationality: Optional[str] = Field(default=None, min_length=1, max_length=64)
    id_or_residency_number: Optional[str] = Field(default=None, min_length=1, max_length=64)
    id_type: Optional[str] = Field(default=None, min_length=1, max_length=32)
    gender: Optional[str] = Field(default=None, min_length=1, max_length=16)
    date_of_birth: Optional[date] = None
    id_expiry_date: Optional[date] = None
    religion: Optional[str] = None
    marital_status: Optional[str] = None
    educational_qualification: Optional[str] = None
    specialization: Optional[str] = None
    bank_iban: Optional[str] = None
    bank_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    contract_type: Optional[str] = None
    salary: Optional[Decimal] = None
    is_active: Optional[bool] = None


class EmployeeOut(EmployeeBase):
    id: int
    employee_id_number: str
    branch_id: int
    is_active: bool
    created_by: Optional[int] = None
    updated_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
