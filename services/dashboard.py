"""
Dashboard summary of jobs and saved answers
"""

from typing import Any, Dict, List

from models.answer import Answer
from models.job import Job, JobStatus


def summarize_dashboard(jobs: List[Job], answers: List[Answer], recent: int = 3) -> Dict[str, Any]:
    """
    Build the dashboard numbers

    Args:
        jobs: User's jobs, most recently updated first
        answers: User's answers, most recently updated first
        recent: How many recent items to include

    Returns:
        Dict with job counts per status, answer totals and recent items
    """
    status_counts = {status.value: 0 for status in JobStatus}
    for job in jobs:
        status_counts[job.status.value] += 1

    return {
        "total_jobs": len(jobs),
        "job_status_counts": status_counts,
        "interviewing": status_counts[JobStatus.INTERVIEWING.value],
        "offers": status_counts[JobStatus.OFFER.value],
        "total_answers": len(answers),
        "favorite_answers": sum(1 for answer in answers if answer.is_favorite),
        "recent_jobs": jobs[:recent],
        "recent_answers": answers[:recent],
    }
