"""
Profile data models
"""

import uuid
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def new_entry_id() -> str:
    return uuid.uuid4().hex[:12]


def _as_text_list(value: Any) -> Any:
    """Accept a single string (one item per line) where a list of strings is expected"""
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip(" -•\t") for line in value.splitlines() if line.strip(" -•\t")]
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return value


class ProfileEntry(BaseModel):
    """Base for profile collection elements; tolerant of camelCase model output"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    id: str = Field(default_factory=new_entry_id)


class Education(ProfileEntry):
    institution: Optional[str] = None
    degree: Optional[str] = None
    field: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    gpa: Optional[str] = None


class WorkExperience(ProfileEntry):
    company: Optional[str] = None
    position: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    description: List[str] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _accept_title(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("position"):
            for key in ("title", "role", "jobTitle", "job_title"):
                if data.get(key):
                    data = {**data, "position": data[key]}
                    break
        return data

    @field_validator("description", mode="before")
    @classmethod
    def split_description(cls, value: Any) -> Any:
        return _as_text_list(value)


class Project(ProfileEntry):
    name: Optional[str] = None
    description: List[str] = Field(default_factory=list)
    technologies: List[str] = Field(default_factory=list)
    link: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def split_description(cls, value: Any) -> Any:
        return _as_text_list(value)

    @field_validator("technologies", mode="before")
    @classmethod
    def _split_technologies(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return _as_text_list(value)


class Skill(ProfileEntry):
    name: str
    level: Optional[str] = None  # Beginner, Intermediate, Advanced, Expert

    @model_validator(mode="before")
    @classmethod
    def _accept_plain_name(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if isinstance(data, dict) and not data.get("name"):
            for key in ("skill", "title"):
                if data.get(key):
                    return {**data, "name": data[key]}
        return data


class Extracurricular(ProfileEntry):
    name: Optional[str] = None
    role: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


def _flatten_skill_groups(value: Any) -> Any:
    """{"technical": [...], "soft": [...]} -> [...]"""
    if isinstance(value, dict):
        flattened = []
        for group in value.values():
            flattened.extend(group if isinstance(group, list) else [group])
        return flattened
    return value


class Profile(BaseModel):
    """User profile, keyed by the owner's user id"""
    model_config = ConfigDict(coerce_numbers_to_str=True)

    uid: str
    name: str = ""
    email: str = ""
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    education: List[Education] = Field(default_factory=list)
    work_experience: List[WorkExperience] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    skills: List[Skill] = Field(default_factory=list)
    extracurriculars: List[Extracurricular] = Field(default_factory=list)
    additional_info: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("skills", mode="before")
    @classmethod
    def flatten_skills(cls, value: Any) -> Any:
        return _flatten_skill_groups(value)

    def to_prompt_dict(self) -> dict:
        """Profile fields relevant to the model, without ids or timestamps"""
        return self.model_dump(
            mode="json",
            exclude={"uid", "created_at", "updated_at"},
            exclude_none=True,
        )


class ExtractedCandidate(BaseModel):
    """
    Partial profile extracted from resume text.

    Every field is optional; a field left as None was not found in the resume.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    summary: Optional[str] = None
    education: Optional[List[Education]] = None
    work_experience: Optional[List[WorkExperience]] = None
    projects: Optional[List[Project]] = None
    skills: Optional[List[Skill]] = None
    extracurriculars: Optional[List[Extracurricular]] = None
    additional_info: Optional[str] = None

    @field_validator("skills", mode="before")
    @classmethod
    def flatten_skills(cls, value: Any) -> Any:
        return _flatten_skill_groups(value)

    @model_validator(mode="before")
    @classmethod
    def _accept_alternate_keys(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        aliases = {
            "workExperience": ("experience", "work_history", "workHistory", "employment"),
            "extracurriculars": ("activities", "extracurricular"),
        }
        data = dict(data)
        for target, alternates in aliases.items():
            if data.get(target) is None and data.get(_to_snake(target)) is None:
                for key in alternates:
                    if data.get(key) is not None:
                        data[target] = data[key]
                        break
        return data


def _to_snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)
