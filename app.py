"""
Interview Prep Coach - Streamlit Application
"""

import streamlit as st
import pandas as pd
from typing import Any, Dict, List, Optional

from config import Config
from utils.database import DatabaseManager
from utils.document_store import DocumentStore
from utils.bedrock_client import BedrockClient
from utils.storage import S3Storage, StorageError
from agents.practice_orchestrator import (
    PracticeSessionOrchestrator,
    SessionNotFoundError,
    SessionAccessError,
    ProfileRequiredError,
    QuestionGenerationError,
    InvalidSessionStateError,
)
from services.interview_coach import InterviewCoach
from services.resume_processor import ResumeProcessor
from services.repositories import (
    AnswerRepository,
    JobRepository,
    PracticeSessionRepository,
    ProfileRepository,
)
from services.answer_library import AnswerFilter, collect_tags, cycle_tag, filter_answers
from services.dashboard import summarize_dashboard
from models.job import Job, JobStatus
from models.practice import QuestionCategory, SessionState
from models.profile import (
    Education,
    Extracurricular,
    Profile,
    Project,
    Skill,
    WorkExperience,
)

# Page configuration
st.set_page_config(
    page_title="Interview Prep Coach",
    page_icon="🎯",
    layout="wide",
    initial_sidebar_state="expanded"
)

st.markdown("""
<style>
    .stButton>button {
        background-color: #4F46E5;
        color: white;
        border-radius: 5px;
        border: none;
        font-weight: 500;
    }
    .stButton>button:hover {
        background-color: #4338CA;
        color: white;
    }
    .category-badge {
        background-color: #EEF2FF;
        color: #4F46E5;
        padding: 0.25rem 0.75rem;
        border-radius: 15px;
        font-weight: bold;
        font-size: 0.85rem;
    }
    .tag {
        background-color: #E0E7FF;
        color: #3730A3;
        padding: 0.2rem 0.5rem;
        border-radius: 10px;
        font-size: 0.8rem;
        display: inline-block;
        margin: 0.2rem;
    }
</style>
""", unsafe_allow_html=True)

# Initialize session state
if 'user_id' not in st.session_state:
    st.session_state.user_id = None
if 'user_email' not in st.session_state:
    st.session_state.user_email = ""
if 'profile_draft' not in st.session_state:
    st.session_state.profile_draft = None
if 'active_session_id' not in st.session_state:
    st.session_state.active_session_id = None
if 'progress' not in st.session_state:
    st.session_state.progress = None
if 'answer_filter' not in st.session_state:
    st.session_state.answer_filter = AnswerFilter()
if 'flash' not in st.session_state:
    st.session_state.flash = None


# Editable columns per profile collection
COLLECTION_EDITORS = {
    "education": (Education, ["institution", "degree", "field", "start_date", "end_date", "gpa"]),
    "work_experience": (WorkExperience, ["company", "position", "start_date", "end_date", "description"]),
    "projects": (Project, ["name", "description", "technologies", "link"]),
    "skills": (Skill, ["name", "level"]),
    "extracurriculars": (Extracurricular, ["name", "role", "description", "start_date", "end_date"]),
}


@st.cache_resource
def initialize_services() -> Dict[str, Any]:
    """Initialize services (cached)"""
    try:
        config = Config()

        if not config.is_configured:
            st.error("❌ Missing required configuration. Please set environment variables.")
            st.stop()

        db_manager = DatabaseManager(config.db_connection_string)
        db_manager.ensure_schema()
        store = DocumentStore(db_manager)

        bedrock_client = BedrockClient(
            region_name=config.aws_region,
            model_id=config.bedrock_model_id,
            max_tokens=config.bedrock_max_tokens
        )
        storage = S3Storage(
            config.s3_bucket_name,
            region_name=config.aws_region,
            url_expiry_seconds=config.s3_url_expiry_seconds
        )

        profiles = ProfileRepository(store)
        jobs = JobRepository(store)
        answers = AnswerRepository(store, default_tag=config.default_answer_tag)
        sessions = PracticeSessionRepository(store)
        coach = InterviewCoach(bedrock_client)

        return {
            "config": config,
            "profiles": profiles,
            "jobs": jobs,
            "answers": answers,
            "storage": storage,
            "resume_processor": ResumeProcessor(bedrock_client, config, storage),
            "orchestrator": PracticeSessionOrchestrator(sessions, profiles, jobs, answers, coach, config),
        }
    except Exception as e:
        st.error(f"❌ Error initializing services: {str(e)}")
        st.stop()


def render_sign_in(services: Dict[str, Any]):
    """Sidebar sign-in; the user id is treated as an opaque identity"""
    with st.sidebar:
        st.markdown("### 👤 Account")
        if st.session_state.user_id:
            st.caption(f"Signed in as **{st.session_state.user_id}**")
            if st.button("Sign out", use_container_width=True):
                for key in ("user_id", "profile_draft", "active_session_id", "progress"):
                    st.session_state[key] = None
                st.session_state.answer_filter = AnswerFilter()
                st.rerun()
            return

        user_id = st.text_input("User ID")
        email = st.text_input("Email")
        if st.button("Sign in", type="primary", use_container_width=True):
            if not user_id.strip():
                st.warning("⚠️ Please enter a user id.")
                return
            try:
                services["profiles"].ensure_user(user_id.strip(), email.strip())
                st.session_state.user_id = user_id.strip()
                st.session_state.user_email = email.strip()
                st.rerun()
            except Exception as e:
                st.error(f"❌ Sign in failed: {str(e)}")


def render_dashboard(services: Dict[str, Any], user_id: str):
    st.title("Dashboard")
    try:
        jobs = services["jobs"].get_jobs(user_id)
        answers = services["answers"].get_answers(user_id)
    except Exception as e:
        st.error(f"❌ Failed to load your data: {str(e)}")
        return

    summary = summarize_dashboard(jobs, answers)
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Applications", summary["total_jobs"])
    col2.metric("Interviewing", summary["interviewing"])
    col3.metric("Offers", summary["offers"])
    col4.metric("Saved answers", summary["total_answers"], f"{summary['favorite_answers']} favorites")

    if not services["profiles"].is_profile_complete(user_id):
        st.info("👋 Complete your profile to get personalized interview questions.")

    col_jobs, col_answers = st.columns(2)
    with col_jobs:
        st.subheader("Recent applications")
        for job in summary["recent_jobs"]:
            st.markdown(f"**{job.title}** at {job.company} · {job.status.value}")
        if not summary["recent_jobs"]:
            st.caption("No applications yet.")
    with col_answers:
        st.subheader("Recent answers")
        for answer in summary["recent_answers"]:
            st.markdown(f"**{answer.question_text}**")
            st.caption(answer.answer_text[:150] + ("..." if len(answer.answer_text) > 150 else ""))
        if not summary["recent_answers"]:
            st.caption("No saved answers yet.")


def _collection_editor(profile: Profile, field_name: str) -> List[Any]:
    """Edit one profile collection as a table and rebuild its entries"""
    model, columns = COLLECTION_EDITORS[field_name]
    rows = []
    for entry in getattr(profile, field_name):
        row = entry.model_dump()
        for column in columns:
            if isinstance(row.get(column), list):
                row[column] = "\n".join(row[column]) if column == "description" else ", ".join(row[column])
        rows.append(row)

    frame = pd.DataFrame(rows, columns=["id"] + columns)
    edited = st.data_editor(
        frame,
        column_order=columns,
        num_rows="dynamic",
        use_container_width=True,
        key=f"editor_{field_name}"
    )

    entries = []
    for record in edited.to_dict(orient="records"):
        values = {key: value for key, value in record.items() if isinstance(value, str) and value.strip()}
        if not any(key in values for key in columns):
            continue
        try:
            entries.append(model.model_validate(values))
        except ValueError as e:
            st.warning(f"⚠️ Skipping an invalid {field_name.replace('_', ' ')} row: {str(e)}")
    return entries


def render_profile(services: Dict[str, Any], user_id: str):
    st.title("Your Profile")
    profiles = services["profiles"]
    resume_processor = services["resume_processor"]

    # Messages set before a rerun are shown once on the next run
    if st.session_state.flash:
        kind, message = st.session_state.flash
        st.session_state.flash = None
        if kind == "success":
            st.success(message)
        else:
            st.info(message)

    stored = profiles.get_profile(user_id)
    if st.session_state.profile_draft is None:
        st.session_state.profile_draft = stored or Profile(uid=user_id, email=st.session_state.user_email or "")
    draft: Profile = st.session_state.profile_draft

    with st.expander("📄 Import from resume", expanded=stored is None):
        uploaded = st.file_uploader("Upload your resume (PDF)", type=["pdf"])
        if uploaded is not None and st.button("Fill empty fields from resume"):
            pdf_bytes = uploaded.getvalue()
            with st.spinner("Reading your resume..."):
                result = resume_processor.process_resume(pdf_bytes, draft)
            if result.error:
                st.warning(f"⚠️ {result.error}")
            else:
                try:
                    resume_processor.upload_resume(user_id, uploaded.name, pdf_bytes)
                except (StorageError, ValueError) as e:
                    st.warning(f"⚠️ Resume could not be stored: {str(e)}")
                st.session_state.profile_draft = result.profile
                if result.filled_fields:
                    st.session_state.flash = ("success", f"✅ Resume processed! Filled: {', '.join(result.filled_fields)}")
                else:
                    st.session_state.flash = ("info", "Resume processed. Your existing entries were kept as they are.")
                st.rerun()

    if st.button("✨ Enhance with AI", disabled=stored is None):
        with st.spinner("Enhancing your profile content..."):
            enhancement = resume_processor.enhance_profile(draft)
        if enhancement.changed_fields:
            st.session_state.profile_draft = enhancement.profile
            st.success(
                f"✅ Profile enhanced! Improvements made to your {', '.join(enhancement.changed_fields)}. "
                "Review and save the changes."
            )
            draft = enhancement.profile
        else:
            st.info("Profile looks great already! No significant improvements needed.")

    col1, col2 = st.columns(2)
    with col1:
        name = st.text_input("Name", value=draft.name)
        email = st.text_input("Email", value=draft.email)
        phone = st.text_input("Phone", value=draft.phone or "")
    with col2:
        location = st.text_input("Location", value=draft.location or "")
        summary = st.text_area("Summary", value=draft.summary or "", height=120)
    additional_info = st.text_area("Additional information", value=draft.additional_info or "")

    collections = {}
    for field_name in COLLECTION_EDITORS:
        st.subheader(field_name.replace("_", " ").title())
        collections[field_name] = _collection_editor(draft, field_name)

    if st.button("Save profile", type="primary"):
        if not name.strip():
            st.warning("⚠️ Please enter your name.")
            return
        updated = draft.model_copy(update={
            "name": name.strip(),
            "email": email.strip(),
            "phone": phone.strip() or None,
            "location": location.strip() or None,
            "summary": summary.strip() or None,
            "additional_info": additional_info.strip() or None,
            **collections,
        })
        try:
            if stored is None:
                profiles.create_profile(updated)
            else:
                profiles.update_profile(updated)
            st.session_state.profile_draft = None
            st.success("✅ Profile saved!")
        except Exception as e:
            st.error(f"❌ Failed to save profile: {str(e)}")


def render_session_setup(services: Dict[str, Any], user_id: str):
    st.title("Start a Practice Session")
    try:
        jobs = services["jobs"].get_jobs(user_id)
    except Exception as e:
        st.error(f"❌ Failed to load your jobs: {str(e)}")
        jobs = []

    session_type = st.radio("Session type", ["General Prep", "Job-Specific Prep"], horizontal=True)
    job_id = None
    if session_type == "Job-Specific Prep":
        if not jobs:
            st.info("Add a job in the Jobs page to practice for it.")
        else:
            job = st.selectbox("Job", jobs, format_func=lambda j: f"{j.title} at {j.company}")
            job_id = job.id if job else None
            if job and job.description:
                st.caption(job.description[:500])

    categories = st.multiselect(
        "Question categories",
        list(QuestionCategory),
        format_func=lambda c: c.value
    )

    if st.button("Start session", type="primary"):
        if not categories:
            st.error("❌ Please select at least one question category")
            return
        try:
            session_id = services["orchestrator"].start_session(user_id, categories, job_id)
            st.session_state.active_session_id = session_id
            st.session_state.progress = None
            st.rerun()
        except Exception as e:
            st.error(f"❌ Failed to start practice session: {str(e)}")


def _leave_session():
    st.session_state.active_session_id = None
    st.session_state.progress = None
    st.rerun()


def _load_progress(services: Dict[str, Any], user_id: str):
    orchestrator = services["orchestrator"]
    session_id = st.session_state.active_session_id
    with st.spinner("Generating personalized interview questions..."):
        try:
            st.session_state.progress = orchestrator.load(session_id, user_id)
        except (SessionNotFoundError, SessionAccessError) as e:
            st.error(f"❌ {str(e)}")
            st.session_state.active_session_id = None
        except ProfileRequiredError:
            st.error("❌ Please complete your profile before practicing.")
            st.session_state.active_session_id = None
        except QuestionGenerationError as e:
            st.error(f"❌ {str(e)}")
        except Exception as e:
            st.error(f"❌ Failed to load session data: {str(e)}")


def render_practice_session(services: Dict[str, Any], user_id: str):
    orchestrator = services["orchestrator"]
    progress = st.session_state.progress
    if progress is None or progress.session.id != st.session_state.active_session_id:
        _load_progress(services, user_id)
        progress = st.session_state.progress

    if progress is None:
        if st.button("Retry"):
            st.rerun()
        if st.button("Back to setup"):
            _leave_session()
        return

    if progress.state == SessionState.GENERATING:
        st.info("⏳ Your questions are being generated. Check back in a moment.")
        if st.button("Check again"):
            st.session_state.progress = None
            st.rerun()
        return

    if progress.state == SessionState.COMPLETED:
        st.success("🎉 You have completed all questions!")
        if st.button("Start a new session", type="primary"):
            _leave_session()
        return

    question = orchestrator.current_question(progress)
    st.caption(f"Question {progress.current_index + 1} of {progress.question_count}")
    st.markdown(f'<span class="category-badge">{question.category.value}</span>', unsafe_allow_html=True)
    st.markdown(f"### {question.text}")

    answer_text = st.text_area("Your answer", value=progress.answer_text, height=200, key=f"answer_{question.id}")

    col_feedback, col_save, col_next = st.columns(3)
    with col_feedback:
        if st.button("Get AI feedback", use_container_width=True, disabled=not answer_text.strip()):
            with st.spinner("Getting AI feedback on your answer..."):
                try:
                    orchestrator.request_feedback(progress, answer_text)
                except (ValueError, InvalidSessionStateError) as e:
                    st.warning(f"⚠️ {str(e)}")
    with col_save:
        if st.button("Save answer", use_container_width=True, disabled=progress.answer_saved):
            try:
                orchestrator.save_answer(progress, answer_text)
                st.success("✅ Answer saved successfully!")
            except (ValueError, InvalidSessionStateError) as e:
                st.warning(f"⚠️ {str(e)}")
            except Exception as e:
                st.error(f"❌ Failed to save answer: {str(e)}")
    with col_next:
        if st.button("Next question", type="primary", use_container_width=True):
            try:
                orchestrator.next_question(progress)
                st.rerun()
            except Exception as e:
                st.error(f"❌ Failed to move to next question: {str(e)}")

    if progress.feedback:
        st.subheader("Feedback")
        st.markdown(progress.feedback)

    if progress.suggested_tags:
        st.subheader("Tags")
        tag_columns = st.columns(min(len(progress.suggested_tags), 6))
        for index, tag in enumerate(progress.suggested_tags):
            with tag_columns[index % len(tag_columns)]:
                checked = st.checkbox(tag, value=tag in progress.selected_tags, key=f"tag_{question.id}_{tag}")
                if checked != (tag in progress.selected_tags):
                    orchestrator.toggle_tag(progress, tag)
        custom_tag = st.text_input("Add a tag", key=f"custom_tag_{question.id}")
        if st.button("Add tag") and custom_tag:
            orchestrator.add_custom_tag(progress, custom_tag)
            st.rerun()

    if st.button("End session"):
        _leave_session()


def render_answer_library(services: Dict[str, Any], user_id: str):
    st.title("Answer Library")
    answers_repo = services["answers"]
    try:
        answers = answers_repo.get_answers(user_id)
        jobs = {job.id: job for job in services["jobs"].get_jobs(user_id)}
    except Exception as e:
        st.error(f"❌ Failed to load your answers: {str(e)}")
        return

    answer_filter: AnswerFilter = st.session_state.answer_filter
    col1, col2, col3 = st.columns(3)
    with col1:
        favorites_only = st.checkbox("Favorites only", value=answer_filter.favorites_only)
        search_query = st.text_input("Search", value=answer_filter.search_query)
    with col2:
        job_options = [None] + list(jobs)
        job_id = st.selectbox(
            "Job",
            job_options,
            index=job_options.index(answer_filter.job_id) if answer_filter.job_id in job_options else 0,
            format_func=lambda j: "All jobs" if j is None else f"{jobs[j].title} at {jobs[j].company}"
        )
    with col3:
        categories = st.multiselect(
            "Categories",
            list(QuestionCategory),
            default=answer_filter.categories,
            format_func=lambda c: c.value
        )
    answer_filter = answer_filter.model_copy(update={
        "favorites_only": favorites_only,
        "search_query": search_query,
        "job_id": job_id,
        "categories": categories,
    })

    all_tags = collect_tags(answers)
    if all_tags:
        st.caption("Tags: click to include (✓), click again to exclude (✕), click again to remove filter")
        tag_columns = st.columns(min(len(all_tags), 8))
        for index, tag in enumerate(all_tags):
            label = f"✓ {tag}" if tag in answer_filter.include_tags else f"✕ {tag}" if tag in answer_filter.exclude_tags else tag
            with tag_columns[index % len(tag_columns)]:
                if st.button(label, key=f"filter_tag_{tag}"):
                    answer_filter = cycle_tag(answer_filter, tag)
                    st.session_state.answer_filter = answer_filter
                    st.rerun()
    if st.button("Reset filters"):
        st.session_state.answer_filter = AnswerFilter()
        st.rerun()
    st.session_state.answer_filter = answer_filter

    filtered = filter_answers(answers, answer_filter)
    if not filtered:
        st.info("No answers match your current filters.")
        return

    for answer in filtered:
        star = "⭐ " if answer.is_favorite else ""
        with st.expander(f"{star}{answer.question_text}"):
            st.markdown(f'<span class="category-badge">{answer.category.value}</span>', unsafe_allow_html=True)
            st.markdown(" ".join(f'<span class="tag">{tag}</span>' for tag in answer.tags), unsafe_allow_html=True)
            edited_text = st.text_area("Answer", value=answer.answer_text, key=f"edit_{answer.id}")
            if answer.feedback:
                st.markdown("**Feedback**")
                st.markdown(answer.feedback)
            tags_text = st.text_input("Tags (comma separated)", value=", ".join(answer.tags), key=f"tags_{answer.id}")

            col_save, col_fav, col_delete = st.columns(3)
            try:
                if col_save.button("Save changes", key=f"save_{answer.id}"):
                    answers_repo.update_answer(
                        answer.id,
                        answer_text=edited_text,
                        tags=[tag.strip() for tag in tags_text.split(",") if tag.strip()]
                    )
                    st.rerun()
                if col_fav.button("Unfavorite" if answer.is_favorite else "Favorite", key=f"fav_{answer.id}"):
                    answers_repo.toggle_favorite(answer)
                    st.rerun()
                if col_delete.button("Delete", key=f"delete_{answer.id}"):
                    answers_repo.delete_answer(answer.id)
                    st.rerun()
            except Exception as e:
                st.error(f"❌ Failed to update answer: {str(e)}")


def render_jobs(services: Dict[str, Any], user_id: str):
    st.title("Job Tracker")
    jobs_repo = services["jobs"]
    answers_repo = services["answers"]

    with st.expander("➕ Add a job"):
        with st.form(key="new_job_form", clear_on_submit=True):
            company = st.text_input("Company")
            title = st.text_input("Title")
            description = st.text_area("Job description")
            status = st.selectbox("Status", list(JobStatus), format_func=lambda s: s.value)
            submitted = st.form_submit_button("Add job", type="primary")
        if submitted:
            if not company.strip() or not title.strip():
                st.error("❌ Company and title are required.")
            else:
                try:
                    jobs_repo.create_job(Job(
                        user_id=user_id,
                        company=company.strip(),
                        title=title.strip(),
                        description=description.strip() or None,
                        status=status
                    ))
                    st.success("✅ Job added!")
                except Exception as e:
                    st.error(f"❌ Failed to add job: {str(e)}")

    status_filter = st.radio("Status", ["All"] + [s.value for s in JobStatus], horizontal=True)
    try:
        jobs = jobs_repo.get_jobs(user_id, None if status_filter == "All" else JobStatus(status_filter))
    except Exception as e:
        st.error(f"❌ Failed to load jobs: {str(e)}")
        return

    if not jobs:
        st.info("No jobs match your current filter.")
        return

    for job in jobs:
        with st.expander(f"{job.title} at {job.company} · {job.status.value}"):
            statuses = list(JobStatus)
            new_status = st.selectbox(
                "Status", statuses, index=statuses.index(job.status),
                format_func=lambda s: s.value, key=f"status_{job.id}"
            )
            notes = st.text_area("Notes", value=job.notes or "", key=f"notes_{job.id}")
            description = st.text_area("Description", value=job.description or "", key=f"desc_{job.id}")
            cover_letter = st.file_uploader("Cover letter", key=f"cover_{job.id}")
            if job.cover_letter_url:
                st.markdown(f"[Current cover letter]({job.cover_letter_url})")

            st.markdown("**Saved answers**")
            try:
                job_answers = answers_repo.get_answers_by_job(user_id, job.id)
            except Exception as e:
                st.error(f"❌ Failed to load answers for this job: {str(e)}")
                job_answers = []
            else:
                if not job_answers:
                    st.caption("You haven't saved any answers for this job yet.")
            for answer in job_answers:
                star = "⭐ " if answer.is_favorite else ""
                st.markdown(f"{star}**{answer.question_text}**")
                st.markdown(f'<span class="category-badge">{answer.category.value}</span>', unsafe_allow_html=True)
                st.write(answer.answer_text)
                if answer.tags:
                    st.markdown(" ".join(f'<span class="tag">{tag}</span>' for tag in answer.tags), unsafe_allow_html=True)

            col_update, col_practice, col_delete = st.columns(3)
            if col_update.button("Update", key=f"update_{job.id}"):
                updated = job.model_copy(update={
                    "status": new_status,
                    "notes": notes.strip() or None,
                    "description": description.strip() or None,
                })
                try:
                    if cover_letter is not None:
                        updated.cover_letter_url = services["storage"].upload_cover_letter(
                            user_id, job.id, cover_letter.name, cover_letter.getvalue()
                        )
                    jobs_repo.update_job(updated)
                    st.success("✅ Job updated!")
                    st.rerun()
                except Exception as e:
                    st.error(f"❌ Failed to update job: {str(e)}")
            if col_practice.button("Practice for this job", key=f"practice_{job.id}"):
                try:
                    session_id = services["orchestrator"].start_session(user_id, list(QuestionCategory), job.id)
                    st.session_state.active_session_id = session_id
                    st.session_state.progress = None
                    st.session_state.nav_target = "Practice"
                    st.rerun()
                except Exception as e:
                    st.error(f"❌ Failed to start practice session: {str(e)}")
            if col_delete.button("Delete", key=f"delete_job_{job.id}"):
                try:
                    jobs_repo.delete_job(job.id)
                    st.rerun()
                except Exception as e:
                    st.error(f"❌ Failed to delete job: {str(e)}")


PAGES = ["Dashboard", "Profile", "Practice", "Answer Library", "Jobs"]


def main():
    services = initialize_services()
    render_sign_in(services)

    user_id: Optional[str] = st.session_state.user_id
    if not user_id:
        st.title("🎯 Interview Prep Coach")
        st.info("Sign in from the sidebar to get started.")
        return

    if st.session_state.get("nav_target"):
        st.session_state.page = st.session_state.nav_target
        st.session_state.nav_target = None
    page = st.sidebar.radio("Navigate", PAGES, key="page")
    with st.sidebar.expander("⚙️ Configuration"):
        st.json(services["config"].get_config_status())
    if page == "Dashboard":
        render_dashboard(services, user_id)
    elif page == "Profile":
        render_profile(services, user_id)
    elif page == "Practice":
        if st.session_state.active_session_id:
            render_practice_session(services, user_id)
        else:
            render_session_setup(services, user_id)
    elif page == "Answer Library":
        render_answer_library(services, user_id)
    elif page == "Jobs":
        render_jobs(services, user_id)


if __name__ == "__main__":
    main()
