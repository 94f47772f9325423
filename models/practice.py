"""
Practice session data models
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from models.job import Job
from models.profile import Profile


class QuestionCategory(str, Enum):
    MOTIVATIONAL = "Motivational"
    BEHAVIORAL = "Behavioral"
    TECHNICAL = "Technical"
    PERSONALITY = "Personality"

    @classmethod
    def coerce(cls, value, default: "QuestionCategory" = None) -> "QuestionCategory":
        """Map free-form model output onto the closed category set"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for category in cls:
                if category.value.lower() == value.strip().lower():
                    return category
        return default or cls.BEHAVIORAL


def new_question_id() -> str:
    return f"q-{uuid.uuid4().hex[:12]}"


class Question(BaseModel):
    """Interview question; created by generation and never edited afterwards"""
    id: str = Field(default_factory=new_question_id)
    text: str
    category: QuestionCategory
    job_specific: bool = False
    job_id: Optional[str] = None


class PracticeSession(BaseModel):
    """Stored practice session"""
    id: str
    user_id: str
    job_id: Optional[str] = None
    categories: List[QuestionCategory]
    questions: List[Question] = Field(default_factory=list)
    current_question_index: int = 0
    generation_token: Optional[str] = None
    generation_claimed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SessionState(str, Enum):
    CREATED = "Created"          # no questions yet
    GENERATING = "Generating"    # generation call in flight
    ACTIVE = "Active"            # current index points into the question list
    COMPLETED = "Completed"      # ran past the last question


class SessionProgress(BaseModel):
    """In-memory view of a session being practiced"""
    session: PracticeSession
    profile: Profile
    job: Optional[Job] = None
    state: SessionState = SessionState.CREATED
    current_index: int = 0
    answer_text: str = ""
    feedback: str = ""
    suggested_tags: List[str] = Field(default_factory=list)
    selected_tags: List[str] = Field(default_factory=list)
    answer_saved: bool = False

    @property
    def question_count(self) -> int:
        return len(self.session.questions)

    def reset_answer_state(self):
        self.answer_text = ""
        self.feedback = ""
        self.suggested_tags = []
        self.selected_tags = []
        self.answer_saved = False
