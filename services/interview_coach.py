"""
Interview coaching service - question generation, answer feedback and tag suggestions
"""

import json
from typing import List, Optional, Sequence

from models.job import Job
from models.practice import Question, QuestionCategory
from models.profile import Profile
from services.response_normalizer import QuestionShape, decode_questions, decode_tags, placeholder_questions
from utils.bedrock_client import BedrockClient, BedrockError
from utils.tag_normalizer import TagNormalizer


FEEDBACK_UNAVAILABLE = (
    "Unfortunately, I couldn't generate feedback at this time. Your answer appears complete, "
    "but I recommend reviewing it for clarity, relevance, and impact before proceeding."
)

QUESTION_SYSTEM_PROMPT = """You are an AI assistant that generates relevant interview questions for job candidates.
Generate questions that are specific to the candidate's profile and, if provided, the job description.
Create challenging but fair questions that would be asked in real interviews.
For technical questions, ensure they're appropriate for the candidate's skills and the job requirements.
Return the questions as a JSON object with a 'questions' array of objects with 'text' and 'category' properties.
Example format:
{
  "questions": [
    {"text": "Tell me about a time you faced a challenge in your previous role?", "category": "Behavioral"},
    {"text": "Why do you want to work at our company?", "category": "Motivational"}
  ]
}
The 'category' must be one of: Motivational, Behavioral, Technical, Personality."""

FEEDBACK_SYSTEM_PROMPT = """You are an AI interview coach that provides helpful feedback on interview answers.
Analyze the answer for clarity, relevance, structure, and impact.
Suggest specific improvements and highlight strengths.
Consider the candidate's background and the job they're applying for.
Provide actionable feedback that helps the candidate improve their answer."""

TAGS_SYSTEM_PROMPT = """You are an AI assistant that suggests relevant tags for interview answers.
Analyze the question and answer to identify key themes, skills, and qualities demonstrated.
Suggest 3-5 concise tags that accurately categorize the content.
Examples include technical skills (e.g., "Python", "data analysis"), soft skills (e.g., "leadership", "communication"),
and specific experiences (e.g., "project management", "customer service").
Example format: {"tags": ["leadership", "conflict resolution", "team management"]}"""


class InterviewCoach:
    """Calls the model for practice sessions and maps every failure to a usable default"""

    def __init__(self, bedrock_client: BedrockClient):
        """
        Initialize interview coach

        Args:
            bedrock_client: Bedrock client instance
        """
        self.bedrock_client = bedrock_client

    def generate_questions(self, profile: Profile, categories: Sequence[QuestionCategory],
                           count: int = 5, job: Optional[Job] = None) -> List[Question]:
        """
        Generate interview questions for a profile

        Args:
            profile: Candidate profile
            categories: Categories to focus on
            count: Number of questions to ask for
            job: Optional job the questions should target

        Returns:
            Questions; one placeholder per category if the model call fails
        """
        categories = [QuestionCategory.coerce(category) for category in categories]

        prompt = f"Generate {count} unique interview questions based on the candidate's profile"
        if job:
            prompt += f" and the job they are applying for ({job.title} at {job.company})"
            if job.description:
                prompt += f". Here's the job description: {job.description}"
        prompt += f". Focus on the following categories: {', '.join(c.value for c in categories)}."
        prompt += f"\n\nCandidate Profile: {json.dumps(profile.to_prompt_dict())}"

        try:
            response_text = self.bedrock_client.invoke_model_json(prompt, system=QUESTION_SYSTEM_PROMPT)
            decoded = decode_questions(response_text, categories)
            items = decoded.items
            if decoded.shape == QuestionShape.FALLBACK:
                print("⚠️ Falling back to placeholder questions")
        except BedrockError as e:
            print(f"⚠️ Error generating questions: {str(e)}")
            items = placeholder_questions(categories)

        questions = []
        for index, item in enumerate(items):
            text = item.get("text") or item.get("question")
            questions.append(Question(
                text=text.strip() if isinstance(text, str) and text.strip() else f"Question {index + 1}",
                category=QuestionCategory.coerce(item.get("category")),
                job_specific=job is not None,
                job_id=job.id if job else None
            ))
        return questions

    def get_answer_feedback(self, question: str, answer: str, profile: Profile,
                            job: Optional[Job] = None) -> str:
        """
        Get coaching feedback on an answer

        Returns:
            Feedback text, or FEEDBACK_UNAVAILABLE if the model call fails
        """
        prompt = "Provide constructive feedback on this interview answer."
        if job:
            prompt += f" The candidate is applying for {job.title} at {job.company}."
        prompt += (
            f"\n\nQuestion: {question}\nAnswer: {answer}"
            f"\nCandidate Profile: {json.dumps(profile.to_prompt_dict())}"
        )

        try:
            feedback = self.bedrock_client.invoke_model(prompt, system=FEEDBACK_SYSTEM_PROMPT)
            return feedback.strip() or FEEDBACK_UNAVAILABLE
        except BedrockError as e:
            print(f"⚠️ Error getting answer feedback: {str(e)}")
            return FEEDBACK_UNAVAILABLE

    def suggest_tags(self, question: str, answer: str, job: Optional[Job] = None) -> List[str]:
        """
        Suggest tags for a question/answer pair

        Returns:
            Normalized tags, [] if the model call fails
        """
        prompt = "Suggest relevant tags for the following interview Q&A."
        if job:
            prompt += f" The context is an application for {job.title} at {job.company}."
        prompt += f"\n\nQuestion: {question}\nAnswer: {answer}"

        try:
            response_text = self.bedrock_client.invoke_model_json(prompt, system=TAGS_SYSTEM_PROMPT)
        except BedrockError as e:
            print(f"⚠️ Error suggesting tags: {str(e)}")
            return []
        return TagNormalizer.normalize_tag_list(decode_tags(response_text))
