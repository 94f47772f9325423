"""
Job application data models
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class JobStatus(str, Enum):
    DRAFTED = "Drafted"
    SUBMITTED = "Submitted"
    INTERVIEWING = "Interviewing"
    OFFER = "Offer"
    REJECTED = "Rejected"


class Job(BaseModel):
    """Tracked job application"""
    id: Optional[str] = None
    user_id: str
    company: str
    title: str
    description: Optional[str] = None
    status: JobStatus = JobStatus.DRAFTED
    resume_url: Optional[str] = None
    cover_letter_url: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
