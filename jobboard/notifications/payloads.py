"""Per-recipient template data for the two alert emails."""

from typing import Dict, List, Sequence

from jobboard.config.models import AppConfig
from jobboard.domain.models import JobCategory, Posting, Profile, SavedSearch
from jobboard.utils.timestamps import format_date

from .models import BatchRecipient


def deadline_reminder_subject(job_title: str) -> str:
    return f"Reminder: Application Deadline Approaching for {job_title}"


def job_alert_subject(job_count: int, search_name: str) -> str:
    plural = "s" if job_count != 1 else ""
    return f'New Job Alert: {job_count} new job{plural} matching "{search_name}"'


def _common(config: AppConfig) -> Dict:
    return {
        "board_name": config.board_name,
        "site_url": config.site_url,
        "preferences_url": config.preferences_url,
    }


def build_deadline_reminder_recipient(
    student: Profile, posting: Posting, days_remaining: int, config: AppConfig
) -> BatchRecipient:
    """Recipient entry for one student in a posting's reminder cohort."""
    return BatchRecipient(
        address=student.email,
        user_id=student.id,
        data={
            **_common(config),
            "student_name": student.display_name,
            "job_title": posting.title,
            "department": posting.department,
            "application_deadline": format_date(posting.application_deadline),
            "days_remaining": days_remaining,
            "job_url": config.posting_url(posting.id),
        },
    )


def build_job_summary(posting: Posting, config: AppConfig) -> Dict:
    return {
        "id": posting.id,
        "title": posting.title,
        "department": posting.department,
        "category": JobCategory.parse(posting.category).value,
        "compensation": posting.compensation,
        "application_deadline": format_date(posting.application_deadline),
        "url": config.posting_url(posting.id),
    }


def build_job_alert_recipient(
    owner: Profile,
    saved_search: SavedSearch,
    postings: Sequence[Posting],
    config: AppConfig,
) -> BatchRecipient:
    """Recipient entry for a saved search owner listing the new postings."""
    jobs: List[Dict] = [build_job_summary(posting, config) for posting in postings]
    return BatchRecipient(
        address=owner.email,
        user_id=owner.id,
        data={
            **_common(config),
            "user_name": owner.display_name,
            "search_name": saved_search.name,
            "job_count": len(jobs),
            "jobs": jobs,
            "unsubscribe_url": config.preferences_url,
        },
    )
