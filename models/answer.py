"""
Saved answer data models
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from models.practice import QuestionCategory


DEFAULT_ANSWER_TAG = "interview"


class Answer(BaseModel):
    """Answer saved to the library; question text and category are copies"""
    id: Optional[str] = None
    user_id: str
    question_id: str
    question_text: str
    answer_text: str
    category: QuestionCategory
    feedback: str = ""
    tags: List[str] = Field(default_factory=lambda: [DEFAULT_ANSWER_TAG])
    job_id: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
