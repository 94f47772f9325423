import pytest

from models.answer import Answer
from models.job import Job, JobStatus
from models.practice import Question, QuestionCategory
from services.repositories import (
    ANSWERS,
    PRACTICE_SESSIONS,
    USERS,
    AnswerRepository,
    JobRepository,
    PracticeSessionRepository,
    ProfileRepository,
)
from utils.document_store import DocumentNotFoundError


def _answer(**overrides):
    data = dict(
        user_id="user-1",
        question_id="q-1",
        question_text="Why this role?",
        answer_text="Because I like building APIs.",
        category=QuestionCategory.MOTIVATIONAL,
    )
    data.update(overrides)
    return Answer(**data)


@pytest.mark.unit
class TestProfileRepository:
    def test_ensure_user_creates_once(self, store):
        repo = ProfileRepository(store)
        user = repo.ensure_user("user-1", "ada@example.com")
        assert user["is_profile_complete"] is False
        repo.ensure_user("user-1", "changed@example.com")
        assert store.get(USERS, "user-1")["email"] == "ada@example.com"

    def test_create_profile_marks_user_complete(self, store, filled_profile):
        repo = ProfileRepository(store)
        repo.ensure_user("user-1", "ada@example.com")
        assert not repo.is_profile_complete("user-1")

        repo.create_profile(filled_profile)
        assert repo.is_profile_complete("user-1")
        assert store.get(USERS, "user-1")["email"] == "ada@example.com"

        loaded = repo.get_profile("user-1")
        assert loaded.name == "Ada Lovelace"
        assert loaded.work_experience[0].description == ["Built APIs"]
        assert loaded.created_at is not None

    def test_update_profile(self, store, filled_profile):
        repo = ProfileRepository(store)
        repo.create_profile(filled_profile)
        repo.update_profile(filled_profile.model_copy(update={"location": "London"}))
        assert repo.get_profile("user-1").location == "London"

    def test_update_missing_profile_raises(self, store, filled_profile):
        with pytest.raises(DocumentNotFoundError):
            ProfileRepository(store).update_profile(filled_profile)

    def test_missing_profile_is_none(self, store):
        assert ProfileRepository(store).get_profile("nobody") is None


@pytest.mark.unit
class TestJobRepository:
    def test_crud_and_status_filter(self, store):
        repo = JobRepository(store)
        first = repo.create_job(Job(user_id="user-1", company="Acme", title="Engineer"))
        second = repo.create_job(Job(user_id="user-1", company="Globex", title="SRE", status=JobStatus.INTERVIEWING))
        repo.create_job(Job(user_id="user-2", company="Initech", title="Analyst"))

        assert [job.id for job in repo.get_jobs("user-1")] == [second, first]
        assert [job.company for job in repo.get_jobs("user-1", JobStatus.INTERVIEWING)] == ["Globex"]

        job = repo.get_job(first)
        repo.update_job(job.model_copy(update={"status": JobStatus.OFFER, "notes": "Negotiate"}))
        updated = repo.get_job(first)
        assert updated.status == JobStatus.OFFER
        assert updated.notes == "Negotiate"

        repo.delete_job(first)
        assert repo.get_job(first) is None

    def test_update_requires_id(self, store):
        with pytest.raises(ValueError):
            JobRepository(store).update_job(Job(user_id="user-1", company="Acme", title="Engineer"))

    def test_invalid_status_is_rejected(self):
        with pytest.raises(ValueError):
            Job(user_id="user-1", company="Acme", title="Engineer", status="Ghosted")


@pytest.mark.unit
class TestAnswerRepository:
    def test_empty_tags_persist_the_default_tag(self, store):
        repo = AnswerRepository(store)
        answer_id = repo.save_answer(_answer(tags=[]))
        assert store.get(ANSWERS, answer_id)["tags"] == ["interview"]

    def test_feedback_defaults_and_job_dropped(self, store):
        answer_id = AnswerRepository(store).save_answer(_answer(feedback=""))
        stored = store.get(ANSWERS, answer_id)
        assert stored["feedback"] == ""
        assert "job_id" not in stored
        assert stored["category"] == "Motivational"

    @pytest.mark.parametrize("field", ["question_id", "question_text", "answer_text"])
    def test_required_fields_are_validated_before_writing(self, store, field):
        with pytest.raises(ValueError):
            AnswerRepository(store).save_answer(_answer(**{field: "   "}))
        assert store.writes == []

    @pytest.mark.parametrize("field,value", [
        ("answer_text", "   "),
        ("question_text", ""),
        ("category", None),
    ])
    def test_edits_cannot_blank_required_fields(self, store, field, value):
        repo = AnswerRepository(store)
        answer_id = repo.save_answer(_answer())
        writes_before = len(store.writes)

        with pytest.raises(ValueError):
            repo.update_answer(answer_id, **{field: value}, tags=["python"])

        assert len(store.writes) == writes_before
        stored = store.get(ANSWERS, answer_id)
        assert stored["answer_text"] == "Because I like building APIs."
        assert stored["tags"] == ["interview"]

    def test_answers_for_a_job_are_scoped_to_job_and_user(self, store):
        repo = AnswerRepository(store)
        mine = repo.save_answer(_answer(job_id="job-1"))
        repo.save_answer(_answer(job_id="job-2"))
        repo.save_answer(_answer(user_id="user-2", job_id="job-1"))
        repo.save_answer(_answer())

        assert [answer.id for answer in repo.get_answers_by_job("user-1", "job-1")] == [mine]
        assert repo.get_answers_by_job("user-1", "job-3") == []

    def test_queries_and_updates(self, store):
        repo = AnswerRepository(store, default_tag="prep")
        general = repo.save_answer(_answer())
        for_job = repo.save_answer(_answer(job_id="job-1", tags=["python"]))

        assert {answer.id for answer in repo.get_answers("user-1")} == {general, for_job}
        assert [answer.id for answer in repo.get_answers_by_job("user-1", "job-1")] == [for_job]

        repo.update_answer(for_job, answer_text="Better answer", tags=[])
        updated = store.get(ANSWERS, for_job)
        assert updated["answer_text"] == "Better answer"
        assert updated["tags"] == ["prep"]

        answer = repo.get_answers_by_job("user-1", "job-1")[0]
        assert repo.toggle_favorite(answer) is True
        assert store.get(ANSWERS, for_job)["is_favorite"] is True

        repo.delete_answer(general)
        assert [answer.id for answer in repo.get_answers("user-1")] == [for_job]


@pytest.mark.unit
class TestPracticeSessionRepository:
    def test_create_session_validates(self, store):
        repo = PracticeSessionRepository(store)
        with pytest.raises(ValueError):
            repo.create_session("", [QuestionCategory.TECHNICAL])
        with pytest.raises(ValueError):
            repo.create_session("user-1", [])

    def test_new_session_is_empty(self, store):
        repo = PracticeSessionRepository(store)
        session = repo.get_session(repo.create_session("user-1", ["technical"], "job-1"))
        assert session.questions == []
        assert session.current_question_index == 0
        assert session.categories == [QuestionCategory.TECHNICAL]
        assert session.job_id == "job-1"

    def test_malformed_session_is_repaired(self, store):
        store.set(PRACTICE_SESSIONS, "s-1", {
            "user_id": "user-1",
            "categories": ["Behavioral"],
            "questions": [{"text": "Tell me about a failure"}, "junk"],
            "current_question_index": "2",
        })
        session = PracticeSessionRepository(store).get_session("s-1")
        assert session.current_question_index == 0
        assert session.questions[0].text == "Tell me about a failure"
        assert session.questions[0].category == QuestionCategory.BEHAVIORAL
        assert session.questions[1].text == "Interview question"
        assert session.questions[0].id != session.questions[1].id

    def test_non_list_questions_become_empty(self, store):
        store.set(PRACTICE_SESSIONS, "s-1", {"user_id": "user-1", "categories": [], "questions": "oops"})
        assert PracticeSessionRepository(store).get_session("s-1").questions == []

    def test_claim_and_store_are_exclusive(self, store):
        repo = PracticeSessionRepository(store)
        session_id = repo.create_session("user-1", [QuestionCategory.TECHNICAL])

        assert repo.claim_generation(session_id, "mine") is True
        assert repo.claim_generation(session_id, "theirs") is False

        questions = [Question(text="Explain indexes", category=QuestionCategory.TECHNICAL)]
        assert repo.store_generated_questions(session_id, questions, "theirs") is False
        assert repo.store_generated_questions(session_id, questions, "mine") is True
        assert repo.store_generated_questions(session_id, questions, "mine") is False

        session = repo.get_session(session_id)
        assert [q.text for q in session.questions] == ["Explain indexes"]
        assert session.generation_token is None
        assert repo.claim_generation(session_id, "late") is False

    def test_stale_claim_can_be_taken_over(self, store):
        repo = PracticeSessionRepository(store)
        session_id = repo.create_session("user-1", [QuestionCategory.TECHNICAL])
        repo.claim_generation(session_id, "old")
        assert repo.claim_generation(session_id, "new", stale_token="old") is True
        assert repo.get_session(session_id).generation_token == "new"

    def test_release_only_own_claim(self, store):
        repo = PracticeSessionRepository(store)
        session_id = repo.create_session("user-1", [QuestionCategory.TECHNICAL])
        repo.claim_generation(session_id, "mine")
        assert repo.release_generation(session_id, "other") is False
        assert repo.release_generation(session_id, "mine") is True
        assert repo.get_session(session_id).generation_token is None

    def test_update_question_index(self, store):
        repo = PracticeSessionRepository(store)
        session_id = repo.create_session("user-1", [QuestionCategory.TECHNICAL])
        repo.update_question_index(session_id, 3)
        assert store.get(PRACTICE_SESSIONS, session_id)["current_question_index"] == 3
        with pytest.raises(ValueError):
            repo.update_question_index(session_id, -1)
