import pytest

from models.profile import Education, ExtractedCandidate, Profile, Skill, WorkExperience
from services.profile_merger import ProfileMerger


@pytest.fixture
def candidate():
    return ExtractedCandidate.model_validate({
        "name": "Ada L.",
        "email": "other@example.com",
        "phone": "555-0100",
        "summary": "Resume summary",
        "education": [{"institution": "University of London", "degree": "BSc", "gpa": 3.9}],
        "workExperience": [{"company": "Analytical Engines", "title": "Programmer", "description": "Wrote notes\nDebugged"}],
        "skills": ["Mathematics", "Python"],
    })


@pytest.mark.unit
class TestProfileMerger:
    def test_merge_is_idempotent(self, filled_profile, candidate):
        once = ProfileMerger.merge(filled_profile, candidate)
        twice = ProfileMerger.merge(once, candidate)
        assert twice.model_dump() == once.model_dump()

    def test_merge_is_idempotent_from_empty(self, empty_profile, candidate):
        once = ProfileMerger.merge(empty_profile, candidate)
        assert ProfileMerger.merge(once, candidate).model_dump() == once.model_dump()

    def test_filled_fields_are_never_overwritten(self, filled_profile, candidate):
        merged = ProfileMerger.merge(filled_profile, candidate)
        assert merged.name == "Ada Lovelace"
        assert merged.email == "ada@example.com"
        assert merged.summary == "Engineer who likes clean APIs."
        assert merged.work_experience == filled_profile.work_experience
        assert merged.skills == filled_profile.skills

    def test_empty_fields_are_filled(self, filled_profile, candidate):
        merged = ProfileMerger.merge(filled_profile, candidate)
        assert merged.phone == "555-0100"
        assert merged.education == candidate.education
        assert merged.education[0].gpa == "3.9"

    def test_blank_string_counts_as_empty(self, candidate):
        current = Profile(uid="user-1", name="   ")
        assert ProfileMerger.merge(current, candidate).name == "Ada L."

    def test_collections_replaced_wholesale_when_empty(self, empty_profile, candidate):
        merged = ProfileMerger.merge(empty_profile, candidate)
        assert [skill.name for skill in merged.skills] == ["Mathematics", "Python"]
        assert merged.work_experience[0].position == "Programmer"
        assert merged.work_experience[0].description == ["Wrote notes", "Debugged"]

    def test_missing_candidate_fields_leave_profile_alone(self, filled_profile):
        merged = ProfileMerger.merge(filled_profile, ExtractedCandidate())
        assert merged.model_dump() == filled_profile.model_dump()

    def test_input_profile_is_not_mutated(self, empty_profile, candidate):
        ProfileMerger.merge(empty_profile, candidate)
        assert empty_profile.education == []
        assert empty_profile.name == ""

    def test_fillable_fields(self, filled_profile, candidate):
        assert ProfileMerger.fillable_fields(filled_profile, candidate) == ["phone", "education"]

    def test_identity_is_kept(self, candidate):
        current = Profile(uid="user-9", education=[Education(institution="MIT")])
        merged = ProfileMerger.merge(current, candidate)
        assert merged.uid == "user-9"
        assert merged.education[0].institution == "MIT"
        assert isinstance(merged.work_experience[0], WorkExperience)
        assert isinstance(merged.skills[0], Skill)
