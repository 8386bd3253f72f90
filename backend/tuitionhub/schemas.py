"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests.
"""

from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class TuitionIn(BaseModel):
    """Payload for posting a new tuition.

    `code` is optional; when omitted or blank a code is allocated.
    """
    code: Optional[str] = None
    guardian_name: str = Field(min_length=1)
    guardian_number: str = Field(min_length=1)
    guardian_address: Optional[str] = None
    student_class: str = Field(min_length=1)
    version: Literal["Bangla Medium", "English Medium", "English Version", "Others"] = "English Medium"
    subjects: List[str] = Field(default_factory=list)
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


class PublicTuitionOut(BaseModel):
    """Public view of a tuition (no guardian contact details)."""
    id: int
    code: str
    student_class: str
    version: str
    subjects: List[str]
    weekly_days: Optional[str] = None
    daily_hours: Optional[str] = None
    salary: Optional[str] = None
    location: Optional[str] = None
    start_month: Optional[str] = None
    tutor_gender: str
    special_remarks: Optional[str] = None
    urgent: bool
    status: str
    tutor_requirement: Optional[str] = None
    specific_location: Optional[str] = None
    description: Optional[str] = None
    created_at: datetime


class CodeCheckOut(BaseModel):
    """Availability answer for a normalized tuition code."""
    code: str
    available: bool
