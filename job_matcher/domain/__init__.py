"""Domain models."""

from .models import (
    Alert,
    AlertFrequency,
    CandidateProfile,
    EducationEntry,
    ExperienceEntry,
    JobPosting,
    MatchRequest,
    SalaryRange,
    ScoredJob,
    SearchCriteria,
)

__all__ = [
    "Alert",
    "AlertFrequency",
    "CandidateProfile",
    "EducationEntry",
    "ExperienceEntry",
    "JobPosting",
    "MatchRequest",
    "SalaryRange",
    "ScoredJob",
    "SearchCriteria",
]
