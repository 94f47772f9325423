"""
Resume processing service - turns an uploaded resume into profile data
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationError

from config import Config
from ingestion.pdf_extractor import PDFExtractor
from models.profile import ExtractedCandidate, Profile
from services.profile_merger import ProfileMerger
from services.response_normalizer import decode_object
from utils.bedrock_client import BedrockClient, BedrockError
from utils.storage import S3Storage


EXTRACTION_SYSTEM_PROMPT = """You are an AI assistant that extracts structured information from resumes.
Extract the following details from the provided resume text:
- name, email, phone, location
- summary (create a compelling professional summary even if one isn't explicitly present in the resume)
- education: list of {institution, degree, field, startDate, endDate, gpa}
- workExperience: list of {company, position, startDate, endDate, description (list of bullet strings)}
- projects: list of {name, description (list of strings), technologies (list of strings), link}
- skills: list of {name, level} where level is one of Beginner, Intermediate, Advanced, Expert
- extracurriculars: list of {name, role, description, startDate, endDate}

For the summary, if not explicitly provided, generate a concise, well-written professional summary that
highlights the candidate's key qualifications, experience, and career focus based on the resume content.
Leave out any field that does not appear in the resume."""

ENHANCE_SYSTEM_PROMPT = """You are an expert resume writer and career coach that transforms ordinary job profiles into powerful, impactful career documents.

ENHANCEMENT GUIDELINES:
1. USE POWER VERBS: Replace weak verbs with strong action verbs
2. HIGHLIGHT OUTCOMES: Focus on results and impact, not just responsibilities
3. ADD SPECIFICITY: Include technologies, methodologies, and industry-specific terminology where appropriate
4. IMPROVE STRUCTURE: Ensure consistent formatting and presentation
5. ENHANCE SUMMARY: Create a compelling professional summary that highlights key strengths

Only enhance factual content - do NOT invent new information or metrics.
Return ONLY the enhanced version as JSON matching the original structure, keeping every "id" value unchanged.
Focus especially on work experience descriptions, project descriptions, and the professional summary."""

# Fields the model may rewrite during enhancement
ENHANCEABLE_FIELDS = ("summary", "work_experience", "projects", "education", "skills",
                      "extracurriculars", "additional_info")


class ResumeImport(BaseModel):
    """Outcome of importing a resume into a profile"""
    profile: Profile
    extracted: ExtractedCandidate = Field(default_factory=ExtractedCandidate)
    filled_fields: List[str] = Field(default_factory=list)
    text_preview: str = ""
    error: Optional[str] = None


class ProfileEnhancement(BaseModel):
    """Enhanced profile plus the fields that actually changed"""
    profile: Profile
    changed_fields: List[str] = Field(default_factory=list)


class ResumeProcessor:
    """Process resumes and enhance profiles"""

    def __init__(self, bedrock_client: BedrockClient, config: Config,
                 storage: Optional[S3Storage] = None):
        """
        Initialize resume processor

        Args:
            bedrock_client: Bedrock client instance
            config: Configuration instance
            storage: Optional storage for uploaded resumes
        """
        self.bedrock_client = bedrock_client
        self.config = config
        self.storage = storage

    @staticmethod
    def _validate_leniently(data: Dict[str, Any]) -> ExtractedCandidate:
        """Validate extracted data, dropping only the fields that do not fit"""
        try:
            return ExtractedCandidate.model_validate(data)
        except ValidationError as e:
            print(f"⚠️ Extracted resume data partially invalid: {e.error_count()} error(s)")

        valid: Dict[str, Any] = {}
        for key, value in data.items():
            try:
                single = ExtractedCandidate.model_validate({key: value})
            except ValidationError:
                print(f"⚠️ Dropping extracted field '{key}'")
                continue
            valid.update(single.model_dump(exclude_none=True))
        return ExtractedCandidate.model_validate(valid)

    def extract_resume_info(self, resume_text: str) -> ExtractedCandidate:
        """
        Extract structured profile data from resume text

        Args:
            resume_text: Raw resume text

        Returns:
            ExtractedCandidate; empty if the model call or parsing fails
        """
        try:
            response_text = self.bedrock_client.invoke_model_json(
                resume_text[:self.config.resume_text_limit],
                system=EXTRACTION_SYSTEM_PROMPT
            )
        except BedrockError as e:
            print(f"⚠️ Error extracting resume info: {str(e)}")
            return ExtractedCandidate()

        data = decode_object(response_text)
        if not data:
            return ExtractedCandidate()
        return self._validate_leniently(data)

    def process_resume(self, pdf_bytes: bytes, current: Profile) -> ResumeImport:
        """
        Read a PDF resume and fill the empty fields of a profile

        Args:
            pdf_bytes: Resume PDF
            current: Profile being edited

        Returns:
            ResumeImport with the merged profile
        """
        resume_text = PDFExtractor.extract_text(pdf_bytes)
        if PDFExtractor.is_extraction_error(resume_text):
            return ResumeImport(profile=current, error=resume_text)

        extracted = self.extract_resume_info(resume_text)
        filled_fields = ProfileMerger.fillable_fields(current, extracted)
        merged = ProfileMerger.merge(current, extracted)
        print(f"✅ Resume processed, filled fields: {filled_fields}")

        return ResumeImport(
            profile=merged,
            extracted=extracted,
            filled_fields=filled_fields,
            text_preview=resume_text[:500]
        )

    def enhance_profile(self, profile: Profile) -> ProfileEnhancement:
        """
        Rewrite profile content to read stronger, without inventing facts

        Args:
            profile: Profile to enhance

        Returns:
            ProfileEnhancement; unchanged profile if the model call fails
        """
        try:
            response_text = self.bedrock_client.invoke_model_json(
                json.dumps(profile.to_prompt_dict()),
                system=ENHANCE_SYSTEM_PROMPT
            )
        except BedrockError as e:
            print(f"⚠️ Error enhancing profile: {str(e)}")
            return ProfileEnhancement(profile=profile)

        data = decode_object(response_text)
        if not data:
            return ProfileEnhancement(profile=profile)
        enhanced = self._validate_leniently(data)

        updates = {}
        for field_name in ENHANCEABLE_FIELDS:
            value = getattr(enhanced, field_name)
            if value is None or value == "" or value == []:
                continue
            if _dump(value) != _dump(getattr(profile, field_name)):
                updates[field_name] = value

        return ProfileEnhancement(
            profile=profile.model_copy(update=updates, deep=True),
            changed_fields=list(updates)
        )

    def upload_resume(self, uid: str, filename: str, data: bytes) -> str:
        """Store the resume file and return its download URL"""
        if self.storage is None:
            raise ValueError("Resume storage is not configured")
        return self.storage.upload_resume(uid, filename, data)


def _dump(value: Any) -> str:
    if isinstance(value, list):
        value = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in value]
    return json.dumps(value, sort_keys=True, default=str)
