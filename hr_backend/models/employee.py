"""
ORM model for employees.

`created_by` and `updated_by` reference the branch that owned the employee at
the time of the action, not the acting user.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from . import Base
from .branch import Branch


class Employee(Base):
    __tablename__ = "employees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    employee_id_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    branch_id: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id"), index=True)

    first_name: Mapped[str] = mapped_column(String(100))
    second_name: Mapped[str] = mapped_column(String(100))
    third_name: Mapped[str] = mapped_column(String(100))
    fourth_name: Mapped[str] = mapped_column(String(100))
    occupation: Mapped[str] = mapped_column(String(128))
    nationality: Mapped[str] = mapped_column(String(64))
    id_or_residency_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    id_type: Mapped[str] = mapped_column(String(32))
    gender: Mapped[str] = mapped_column(String(16))
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    id_expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    religion: Mapped[str | None] = mapped_column(String(64), nullable=True)
    marital_status: Mapped[str | None] = mapped_column(String(32), nullable=True)
    educational_qualification: Mapped[str | None] = mapped_column(String(128), nullable=True)
    specialization: Mapped[str | None] = mapped_column(String(128), nullable=True)
    bank_iban: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    contract_type: Mapped[str | None] = mapped_column(String(64), nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id"))
    updated_by: Mapped[int] = mapped_column(Integer, ForeignKey("branches.id"))
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    branch: Mapped[Branch] = relationship("Branch", foreign_keys=[branch_id])
