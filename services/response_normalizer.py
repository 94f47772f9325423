"""
Response normalization - turns model output into typed values with safe defaults

Nothing in this module raises on bad model output; every decoder has a fallback.
"""

import json
import re
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from models.practice import QuestionCategory


class QuestionShape(str, Enum):
    ARRAY = "array"          # [{"text": ..., "category": ...}, ...]
    WRAPPED = "wrapped"      # {"questions": [...]}
    FALLBACK = "fallback"    # placeholders, one per requested category


class TagShape(str, Enum):
    ARRAY = "array"          # ["tag", ...]
    WRAPPED = "wrapped"      # {"tags": [...]}
    FLATTENED = "flattened"  # any other object: string values, one level deep
    EMPTY = "empty"


class DecodedQuestions(BaseModel):
    shape: QuestionShape
    items: List[Dict[str, Any]] = Field(default_factory=list)


def _strip_code_fence(text: str) -> str:
    """Look for JSON code blocks"""
    if "```json" in text:
        start = text.find("```json") + 7
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    if "```" in text:
        start = text.find("```") + 3
        end = text.find("```", start)
        return text[start:end if end != -1 else None].strip()
    return text.strip()


def parse_json(text: Optional[str]) -> Any:
    """
    Parse JSON from model output

    Args:
        text: Raw response text

    Returns:
        Parsed value, or None when nothing parseable was found
    """
    if not text or not text.strip():
        return None

    candidate = _strip_code_fence(text)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError:
        pass

    # If JSON parsing fails, try to extract a JSON object or array from text
    for pattern in (r'\{.*\}', r'\[.*\]'):
        match = re.search(pattern, text, re.DOTALL)
        if match:
            try:
                return json.loads(match.group())
            except json.JSONDecodeError:
                continue

    print(f"⚠️ Could not parse JSON from response: {text[:200]}")
    return None


def decode_object(text: Optional[str]) -> Dict[str, Any]:
    """Parse a JSON object, defaulting to {}"""
    parsed = parse_json(text)
    return parsed if isinstance(parsed, dict) else {}


def placeholder_questions(categories: Sequence[Any]) -> List[Dict[str, Any]]:
    """One placeholder question per requested category"""
    items = []
    for index, category in enumerate(categories):
        label = category.value if isinstance(category, QuestionCategory) else str(category)
        items.append({
            "text": f"Interview question {index + 1} for {label} category",
            "category": label
        })
    return items


def _questions_from_array(parsed: Any) -> Optional[List[Any]]:
    return parsed if isinstance(parsed, list) else None


def _questions_from_wrapper(parsed: Any) -> Optional[List[Any]]:
    if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
        return parsed["questions"]
    return None


QUESTION_SHAPES: List[Tuple[QuestionShape, Callable[[Any], Optional[List[Any]]]]] = [
    (QuestionShape.ARRAY, _questions_from_array),
    (QuestionShape.WRAPPED, _questions_from_wrapper),
]


def decode_questions(text: Optional[str], categories: Sequence[Any]) -> DecodedQuestions:
    """
    Decode generated questions, trying each accepted shape in priority order

    Args:
        text: Raw JSON-mode response
        categories: Categories requested, used for the fallback

    Returns:
        DecodedQuestions with the matched shape and raw question dicts
    """
    parsed = parse_json(text)
    if parsed is not None:
        for shape, extract in QUESTION_SHAPES:
            items = extract(parsed)
            if items is not None:
                return DecodedQuestions(
                    shape=shape,
                    items=[_as_question_dict(item) for item in items]
                )
        print(f"⚠️ Unexpected question response format: {str(parsed)[:200]}")

    return DecodedQuestions(shape=QuestionShape.FALLBACK, items=placeholder_questions(categories))


def _as_question_dict(item: Any) -> Dict[str, Any]:
    if isinstance(item, dict):
        return item
    if isinstance(item, str):
        return {"text": item}
    return {}


def _flatten_strings(parsed: Dict[str, Any]) -> List[str]:
    values: List[Any] = []
    for value in parsed.values():
        if isinstance(value, list):
            values.extend(value)
        else:
            values.append(value)
    return [value for value in values if isinstance(value, str)]


def decode_tags_with_shape(text: Optional[str]) -> Tuple[TagShape, List[str]]:
    parsed = parse_json(text)
    if isinstance(parsed, list):
        return TagShape.ARRAY, [tag for tag in parsed if isinstance(tag, str)]
    if isinstance(parsed, dict):
        if isinstance(parsed.get("tags"), list):
            return TagShape.WRAPPED, [tag for tag in parsed["tags"] if isinstance(tag, str)]
        return TagShape.FLATTENED, _flatten_strings(parsed)
    return TagShape.EMPTY, []


def decode_tags(text: Optional[str]) -> List[str]:
    """Decode suggested tags; [] when nothing usable came back"""
    return decode_tags_with_shape(text)[1]
