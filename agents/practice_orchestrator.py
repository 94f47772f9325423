"""
Practice Session Orchestrator - drives a session from empty to completed

    Created --load--> Generating --stored--> Active --next...--> Completed
       ^                  |
       +----failure-------+
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

from config import Config
from models.answer import Answer
from models.practice import (
    PracticeSession,
    Question,
    QuestionCategory,
    SessionProgress,
    SessionState,
)
from services.interview_coach import InterviewCoach
from services.repositories import (
    AnswerRepository,
    JobRepository,
    PracticeSessionRepository,
    ProfileRepository,
)
from utils.tag_normalizer import TagNormalizer


class SessionNotFoundError(Exception):
    """Raised when a practice session does not exist"""


class SessionAccessError(Exception):
    """Raised when a user loads a session owned by someone else"""


class ProfileRequiredError(Exception):
    """Raised when the session owner has no profile to generate questions from"""


class QuestionGenerationError(Exception):
    """Raised when questions could not be generated or stored"""


class InvalidSessionStateError(Exception):
    """Raised when an action is not allowed in the current session state"""


class PracticeSessionOrchestrator:
    """Coordinates question generation, feedback, saving answers and advancing"""

    def __init__(self, sessions: PracticeSessionRepository, profiles: ProfileRepository,
                 jobs: JobRepository, answers: AnswerRepository, coach: InterviewCoach,
                 config: Config):
        """
        Initialize orchestrator

        Args:
            sessions: Practice session repository
            profiles: Profile repository
            jobs: Job repository
            answers: Answer repository
            coach: Interview coach for model calls
            config: Configuration instance
        """
        self.sessions = sessions
        self.profiles = profiles
        self.jobs = jobs
        self.answers = answers
        self.coach = coach
        self.config = config

    def start_session(self, user_id: str, categories: Sequence[QuestionCategory],
                      job_id: Optional[str] = None) -> str:
        """Create an empty session; questions are generated on first load"""
        session_id = self.sessions.create_session(user_id, categories, job_id)
        print(f"✅ Created practice session {session_id} for {user_id}")
        return session_id

    def load(self, session_id: str, user_id: str) -> SessionProgress:
        """
        Load a session for its owner, generating questions if it has none

        Args:
            session_id: Session id
            user_id: Id of the user opening the session

        Returns:
            SessionProgress in Active state, or Generating if another
            loader is already generating this session's questions
        """
        session = self.sessions.get_session(session_id)
        if session is None:
            raise SessionNotFoundError("Practice session not found")
        if session.user_id != user_id:
            raise SessionAccessError("You do not have access to this session")

        profile = self.profiles.get_profile(user_id)
        if profile is None:
            raise ProfileRequiredError("User profile not found")

        job = self.jobs.get_job(session.job_id) if session.job_id else None
        progress = SessionProgress(session=session, profile=profile, job=job)

        if session.questions:
            return self._activate(progress, session.questions, session.current_question_index)

        if self._claim_is_live(session):
            print(f"🔍 DEBUG: Questions for session {session_id} are already being generated")
            progress.state = SessionState.GENERATING
            return progress

        return self.generate_questions(progress)

    def generate_questions(self, progress: SessionProgress) -> SessionProgress:
        """
        Generate and persist questions for an empty session (Created -> Active)

        Raises:
            QuestionGenerationError: Generation or storage failed; the session
                is back in Created and a reload retries
        """
        if progress.session.questions:
            raise InvalidSessionStateError("Questions have already been generated for this session")

        session = progress.session
        token = uuid.uuid4().hex
        stale_token = session.generation_token if session.generation_token and not self._claim_is_live(session) else None

        if not self.sessions.claim_generation(session.id, token, stale_token):
            return self._adopt_stored_questions(progress)

        progress.state = SessionState.GENERATING
        try:
            questions = self.coach.generate_questions(
                progress.profile,
                session.categories,
                self.config.questions_per_session,
                progress.job
            )
            if not questions:
                raise QuestionGenerationError("Failed to generate questions. Please try again.")

            if not self.sessions.store_generated_questions(session.id, questions, token):
                print(f"⚠️ Lost generation claim for session {session.id}")
                return self._adopt_stored_questions(progress)
        except Exception as e:
            self._release(session.id, token)
            progress.state = SessionState.CREATED
            if isinstance(e, QuestionGenerationError):
                raise
            raise QuestionGenerationError(f"Failed to save questions: {str(e)}") from e

        print(f"✅ Generated {len(questions)} questions for session {session.id}")
        return self._activate(progress, questions, 0)

    def current_question(self, progress: SessionProgress) -> Optional[Question]:
        if progress.state != SessionState.ACTIVE:
            return None
        return progress.session.questions[progress.current_index]

    def request_feedback(self, progress: SessionProgress, answer_text: str) -> SessionProgress:
        """
        Get feedback and suggested tags for the current answer

        Raises:
            ValueError: If the answer is blank
        """
        question = self._require_active(progress)
        if not answer_text or not answer_text.strip():
            raise ValueError("Please write an answer before requesting feedback")

        progress.answer_text = answer_text
        progress.feedback = self.coach.get_answer_feedback(
            question.text, answer_text, progress.profile, progress.job
        ) or "No feedback available."

        tags = self.coach.suggest_tags(question.text, answer_text, progress.job)
        if not tags:
            tags = [self.config.default_answer_tag, question.category.value.lower()]
        progress.suggested_tags = list(tags)
        progress.selected_tags = list(tags)
        return progress

    def save_answer(self, progress: SessionProgress, answer_text: Optional[str] = None,
                    tags: Optional[List[str]] = None) -> str:
        """
        Save the current answer to the library; the question index is unchanged

        Returns:
            Id of the saved answer

        Raises:
            ValueError: If the answer is blank
        """
        question = self._require_active(progress)
        text = answer_text if answer_text is not None else progress.answer_text
        if not text or not text.strip():
            raise ValueError("Please write an answer before saving")

        selected = TagNormalizer.normalize_tag_list(tags if tags is not None else progress.selected_tags)
        answer = Answer(
            user_id=progress.session.user_id,
            question_id=question.id,
            question_text=question.text,
            answer_text=text,
            category=question.category,
            feedback=progress.feedback or "",
            tags=selected or [self.config.default_answer_tag],
            job_id=progress.job.id if progress.job else None,
        )
        answer_id = self.answers.save_answer(answer)

        progress.answer_text = text
        progress.selected_tags = answer.tags
        progress.answer_saved = True
        return answer_id

    def next_question(self, progress: SessionProgress) -> SessionProgress:
        """
        Advance to the next question, or complete the session after the last one

        The new index is persisted before local state changes; completing the
        session writes nothing.
        """
        self._require_active(progress)
        next_index = progress.current_index + 1

        if next_index >= progress.question_count:
            progress.state = SessionState.COMPLETED
            print(f"✅ Session {progress.session.id} completed")
            return progress

        self.sessions.update_question_index(progress.session.id, next_index)
        progress.session.current_question_index = next_index
        progress.current_index = next_index
        progress.reset_answer_state()
        return progress

    @staticmethod
    def toggle_tag(progress: SessionProgress, tag: str) -> List[str]:
        if tag in progress.selected_tags:
            progress.selected_tags = [t for t in progress.selected_tags if t != tag]
        else:
            progress.selected_tags = progress.selected_tags + [tag]
        return progress.selected_tags

    @staticmethod
    def add_custom_tag(progress: SessionProgress, tag: str) -> List[str]:
        normalized = TagNormalizer.normalize_tag(tag)
        if normalized and not any(TagNormalizer.tags_match(normalized, t) for t in progress.selected_tags):
            progress.selected_tags = progress.selected_tags + [normalized]
            if normalized not in progress.suggested_tags:
                progress.suggested_tags = progress.suggested_tags + [normalized]
        return progress.selected_tags

    def _activate(self, progress: SessionProgress, questions: List[Question], index: int) -> SessionProgress:
        if not 0 <= index < len(questions):
            print(f"⚠️ Question index {index} out of range for {len(questions)} questions, restarting at 0")
            index = 0
        progress.session.questions = list(questions)
        progress.session.current_question_index = index
        progress.current_index = index
        progress.state = SessionState.ACTIVE
        return progress

    def _adopt_stored_questions(self, progress: SessionProgress) -> SessionProgress:
        """Another loader won the generation claim; use its result if it is there"""
        stored = self.sessions.get_session(progress.session.id)
        if stored is not None and stored.questions:
            return self._activate(progress, stored.questions, stored.current_question_index)
        if stored is not None:
            progress.session = stored
        progress.state = SessionState.GENERATING
        return progress

    def _claim_is_live(self, session: PracticeSession) -> bool:
        if not session.generation_token:
            return False
        if session.generation_claimed_at is None:
            return True
        claimed_at = session.generation_claimed_at
        if claimed_at.tzinfo is None:
            claimed_at = claimed_at.replace(tzinfo=timezone.utc)
        age = datetime.now(timezone.utc) - claimed_at
        return age < timedelta(seconds=self.config.generation_claim_ttl_seconds)

    def _release(self, session_id: str, token: str):
        try:
            self.sessions.release_generation(session_id, token)
        except Exception as e:
            print(f"⚠️ Could not release generation claim for session {session_id}: {str(e)}")

    @staticmethod
    def _require_active(progress: SessionProgress) -> Question:
        if progress.state != SessionState.ACTIVE:
            raise InvalidSessionStateError(
                f"Session is {progress.state.value}; questions must be ready before answering"
            )
        return progress.session.questions[progress.current_index]
