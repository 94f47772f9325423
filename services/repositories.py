"""
Persistence operations for profiles, jobs, answers and practice sessions
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from models.answer import DEFAULT_ANSWER_TAG, Answer
from models.job import Job, JobStatus
from models.practice import PracticeSession, Question, QuestionCategory, new_question_id
from models.profile import Profile
from utils.document_store import DocumentStore


USERS = "users"
PROFILES = "profiles"
JOBS = "jobs"
ANSWERS = "answers"
PRACTICE_SESSIONS = "practice_sessions"

TIMESTAMP_FIELDS = {"id", "created_at", "updated_at"}


def _require(field_name: str, value: Any) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f"{field_name} is required")


class ProfileRepository:
    """Profiles are keyed by the owner's user id"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def ensure_user(self, uid: str, email: str = "") -> Dict[str, Any]:
        """Create the user record on first sign-in and return it"""
        user = self.store.get(USERS, uid)
        if user is None:
            self.store.set(USERS, uid, {"uid": uid, "email": email, "is_profile_complete": False})
            user = self.store.get(USERS, uid)
        return user

    def is_profile_complete(self, uid: str) -> bool:
        user = self.store.get(USERS, uid)
        return bool(user and user.get("is_profile_complete"))

    def create_profile(self, profile: Profile) -> None:
        """Store a new profile and flag the user as onboarded"""
        self.store.set(PROFILES, profile.uid, profile.model_dump(mode="json", exclude=TIMESTAMP_FIELDS))
        self.store.set(USERS, profile.uid, {"is_profile_complete": True}, merge=True)

    def get_profile(self, uid: str) -> Optional[Profile]:
        document = self.store.get(PROFILES, uid)
        if document is None:
            return None
        document.pop("id", None)
        return Profile.model_validate(document)

    def update_profile(self, profile: Profile) -> None:
        self.store.update(PROFILES, profile.uid, profile.model_dump(mode="json", exclude=TIMESTAMP_FIELDS))


class JobRepository:
    """Tracked job applications"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create_job(self, job: Job) -> str:
        return self.store.add(JOBS, job.model_dump(mode="json", exclude=TIMESTAMP_FIELDS))

    def get_jobs(self, user_id: str, status: Optional[JobStatus] = None) -> List[Job]:
        """Jobs for a user, most recently updated first"""
        filters: Dict[str, Any] = {"user_id": user_id}
        if status is not None:
            filters["status"] = JobStatus(status).value
        return [Job.model_validate(document) for document in self.store.query(JOBS, filters)]

    def get_job(self, job_id: str) -> Optional[Job]:
        document = self.store.get(JOBS, job_id)
        return Job.model_validate(document) if document else None

    def update_job(self, job: Job) -> None:
        if not job.id:
            raise ValueError("Job id is required")
        self.store.update(JOBS, job.id, job.model_dump(mode="json", exclude=TIMESTAMP_FIELDS))

    def delete_job(self, job_id: str) -> None:
        self.store.delete(JOBS, job_id)


class AnswerRepository:
    """Saved answers"""

    REQUIRED_FIELDS = ("user_id", "question_id", "question_text", "answer_text", "category")

    def __init__(self, store: DocumentStore, default_tag: str = DEFAULT_ANSWER_TAG):
        self.store = store
        self.default_tag = default_tag

    def save_answer(self, answer: Answer) -> str:
        """
        Validate and store an answer

        Args:
            answer: Answer to save

        Returns:
            Id of the stored answer

        Raises:
            ValueError: If a required field is empty
        """
        for field_name in self.REQUIRED_FIELDS:
            _require(field_name, getattr(answer, field_name))

        data = answer.model_dump(mode="json", exclude=TIMESTAMP_FIELDS)
        data["feedback"] = answer.feedback or ""
        data["tags"] = list(answer.tags) if answer.tags else [self.default_tag]
        if not answer.job_id:
            data.pop("job_id", None)
        return self.store.add(ANSWERS, data)

    def get_answers(self, user_id: str) -> List[Answer]:
        return [Answer.model_validate(document) for document in self.store.query(ANSWERS, {"user_id": user_id})]

    def get_answers_by_job(self, user_id: str, job_id: str) -> List[Answer]:
        documents = self.store.query(ANSWERS, {"user_id": user_id, "job_id": job_id})
        return [Answer.model_validate(document) for document in documents]

    def update_answer(self, answer_id: str, **changes: Any) -> None:
        """
        Update answer fields in place; tags can never become empty

        Raises:
            ValueError: If a required field is changed to an empty value
        """
        changes = {key: value for key, value in changes.items() if key not in TIMESTAMP_FIELDS}
        for field_name in self.REQUIRED_FIELDS:
            if field_name in changes:
                _require(field_name, changes[field_name])
        if "tags" in changes and not changes["tags"]:
            changes["tags"] = [self.default_tag]
        if "category" in changes:
            changes["category"] = QuestionCategory.coerce(changes["category"]).value
        self.store.update(ANSWERS, answer_id, changes)

    def toggle_favorite(self, answer: Answer) -> bool:
        """Flip the favorite flag and return the new value"""
        is_favorite = not answer.is_favorite
        self.update_answer(answer.id, is_favorite=is_favorite)
        return is_favorite

    def delete_answer(self, answer_id: str) -> None:
        self.store.delete(ANSWERS, answer_id)


def _clean_question(raw: Any) -> Dict[str, Any]:
    """Fill in whatever a stored question is missing"""
    raw = raw if isinstance(raw, dict) else {}
    question = {
        "id": raw.get("id") or new_question_id(),
        "text": raw.get("text") or "Interview question",
        "category": QuestionCategory.coerce(raw.get("category")).value,
        "job_specific": bool(raw.get("job_specific", False)),
    }
    if raw.get("job_id"):
        question["job_id"] = raw["job_id"]
    return question


class PracticeSessionRepository:
    """Practice sessions, including the once-only question generation guard"""

    def __init__(self, store: DocumentStore):
        self.store = store

    def create_session(self, user_id: str, categories: Sequence[QuestionCategory],
                       job_id: Optional[str] = None) -> str:
        """
        Create an empty practice session

        Raises:
            ValueError: Without a user id or at least one category
        """
        if not user_id:
            raise ValueError("User ID is required")
        if not categories:
            raise ValueError("At least one question category is required")

        return self.store.add(PRACTICE_SESSIONS, {
            "user_id": user_id,
            "job_id": job_id or None,
            "categories": [QuestionCategory.coerce(category).value for category in categories],
            "questions": [],
            "current_question_index": 0,
        })

    def get_session(self, session_id: str) -> Optional[PracticeSession]:
        """Read a session, repairing malformed questions or index"""
        if not session_id:
            print("❌ Session ID is required")
            return None

        document = self.store.get(PRACTICE_SESSIONS, session_id)
        if document is None:
            return None

        questions = document.get("questions")
        questions = questions if isinstance(questions, list) else []
        document["questions"] = [_clean_question(raw) for raw in questions]

        index = document.get("current_question_index")
        document["current_question_index"] = index if isinstance(index, int) and not isinstance(index, bool) else 0
        document["categories"] = [QuestionCategory.coerce(c).value for c in document.get("categories") or []]
        return PracticeSession.model_validate(document)

    def claim_generation(self, session_id: str, token: str, stale_token: Optional[str] = None) -> bool:
        """
        Claim the right to generate questions for an empty session

        Args:
            session_id: Session id
            token: Claim token for this generation
            stale_token: Token of an expired claim to take over, if any

        Returns:
            True if this caller now holds the claim
        """
        return self.store.update_if(
            PRACTICE_SESSIONS,
            session_id,
            {
                "generation_token": token,
                "generation_claimed_at": datetime.now(timezone.utc).isoformat(),
            },
            expected={"questions": None, "generation_token": stale_token}
        )

    def store_generated_questions(self, session_id: str, questions: List[Question], token: str) -> bool:
        """
        Persist generated questions and reset the index in one conditional write

        Returns:
            False if the session already has questions or the claim was lost
        """
        return self.store.update_if(
            PRACTICE_SESSIONS,
            session_id,
            {
                "questions": [question.model_dump(mode="json", exclude_none=True) for question in questions],
                "current_question_index": 0,
                "generation_token": None,
                "generation_claimed_at": None,
            },
            expected={"questions": None, "generation_token": token}
        )

    def release_generation(self, session_id: str, token: str) -> bool:
        return self.store.update_if(
            PRACTICE_SESSIONS,
            session_id,
            {"generation_token": None, "generation_claimed_at": None},
            expected={"generation_token": token}
        )

    def update_question_index(self, session_id: str, index: int) -> None:
        if not isinstance(index, int) or index < 0:
            raise ValueError("Question index must be a non-negative integer")
        self.store.update(PRACTICE_SESSIONS, session_id, {"current_question_index": index})
