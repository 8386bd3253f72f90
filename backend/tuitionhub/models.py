"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
"""

from typing import List, Optional
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Guardian(SQLModel, table=True):
    """A guardian who posts tuition requests.

    Guardians are keyed by phone `number`; creating a tuition for an
    existing number reuses (and refreshes) the stored guardian.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    number: str = Field(index=True, nullable=False, unique=True)
    address: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)
    tuitions: List['Tuition'] = Relationship(back_populates='guardian')


class Tuition(SQLModel, table=True):
    """A guardian-posted request for a tutor.

    Fields:
    - `code`: human-facing identifier (`ST<n>`), unique across the table
    - `status`: open, available, demo running, booked or booked by other
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(index=True, nullable=False, unique=True)
    guardian_name: str
    guardian_number: str
    guardian_address: Optional[str] = None
    student_class: str
    version: str = "English Medium"
    subjects: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    weekly_days: Optional[str] = None
    daily_hours: Optional[str] = None
    salary: Optional[str] = None
    location: Optional[str] = None
    start_month: Optional[str] = None
    tutor_gender: str = "Not specified"
    special_remarks: Optional[str] = None
    urgent: bool = False
    tutor_requirement: Optional[str] = None
    specific_location: Optional[str] = None
    description: Optional[str] = None
    status: str = "open"
    guardian_id: Optional[int] = Field(default=None, foreign_key='guardian.id')
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    guardian: Optional[Guardian] = Relationship(back_populates='tuitions')
