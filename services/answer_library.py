"""
Answer library filtering
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from models.answer import Answer
from models.practice import QuestionCategory


class AnswerFilter(BaseModel):
    """Current filter settings of the answer library"""
    favorites_only: bool = False
    job_id: Optional[str] = None
    categories: List[QuestionCategory] = Field(default_factory=list)
    include_tags: List[str] = Field(default_factory=list)  # answer must carry all of them
    exclude_tags: List[str] = Field(default_factory=list)  # answer must carry none of them
    search_query: str = ""


def collect_tags(answers: List[Answer]) -> List[str]:
    """All tags in use, sorted"""
    return sorted({tag for answer in answers for tag in answer.tags})


def filter_answers(answers: List[Answer], answer_filter: AnswerFilter) -> List[Answer]:
    """
    Apply library filters

    Args:
        answers: Saved answers
        answer_filter: Filter settings

    Returns:
        Answers matching every active filter, in their original order
    """
    query = answer_filter.search_query.strip().lower()
    result = []
    for answer in answers:
        if answer_filter.favorites_only and not answer.is_favorite:
            continue
        if answer_filter.job_id and answer.job_id != answer_filter.job_id:
            continue
        if answer_filter.categories and answer.category not in answer_filter.categories:
            continue
        if not all(tag in answer.tags for tag in answer_filter.include_tags):
            continue
        if any(tag in answer.tags for tag in answer_filter.exclude_tags):
            continue
        if query and query not in answer.question_text.lower() and query not in answer.answer_text.lower():
            continue
        result.append(answer)
    return result


def cycle_tag(answer_filter: AnswerFilter, tag: str) -> AnswerFilter:
    """Move a tag through none -> include -> exclude -> none"""
    include = [t for t in answer_filter.include_tags if t != tag]
    exclude = [t for t in answer_filter.exclude_tags if t != tag]
    if tag in answer_filter.include_tags:
        exclude.append(tag)
    elif tag not in answer_filter.exclude_tags:
        include.append(tag)
    return answer_filter.model_copy(update={"include_tags": include, "exclude_tags": exclude})
