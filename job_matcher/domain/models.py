"""Core domain models for candidates, postings and alerts.

This module defines the data structures used throughout the application:
- CandidateProfile: skills, experience and education of one candidate
- JobPosting: normalized job listing from the search provider
- Alert: saved recurring search-and-notify criterion
- ScoredJob: persisted result of scoring one posting for one candidate
- MatchRequest / SearchCriteria: input of an interactive matching run

String fields never hold None. Provider and user input is coerced to ``""``
here so that substring search in the scoring engine is total.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from job_matcher.utils.text import clean_skills, coerce_text
from job_matcher.utils.timestamps import ensure_utc


def _coerce_str(v: Any) -> str:
    return coerce_text(v)


def _coerce_list(v: Any) -> list:
    if v is None:
        return []
    if isinstance(v, (str, bytes)):
        return [v]
    return list(v)


class AlertFrequency(str, Enum):
    """How often an alert is evaluated."""

    DAILY = "daily"
    WEEKLY = "weekly"


class ExperienceEntry(BaseModel):
    """One position held by the candidate."""

    title: str = ""
    company: str = ""
    start: str = ""
    end: str = ""
    description: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text_fields(cls, v: Any) -> str:
        """Coerce every field to a string."""
        return _coerce_str(v)


class EducationEntry(BaseModel):
    """One education record of the candidate."""

    school: str = ""
    degree: str = ""
    field: str = ""
    start_year: str = ""
    end_year: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_text_fields(cls, v: Any) -> str:
        """Coerce every field to a string."""
        return _coerce_str(v)


class CandidateProfile(BaseModel):
    """Immutable snapshot of a candidate used for one scoring call.

    Skills may contain duplicates or blanks; the scoring engine trims them.
    """

    skills: List[str] = Field(default_factory=list, description="Skill names as entered")
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> List[str]:
        """Coerce every skill to a string; None entries become ``""``."""
        return [coerce_text(item) for item in _coerce_list(v)]

    @field_validator("experience", "education", mode="before")
    @classmethod
    def coerce_entries(cls, v: Any) -> list:
        """Accept None for empty sequences."""
        return _coerce_list(v)


class SalaryRange(BaseModel):
    """Compensation bounds reported by the provider.

    A SalaryRange with both bounds None means the provider exposes salary
    fields for the posting but left them empty; it renders as "Competitive".
    """

    minimum: Optional[float] = Field(None, ge=0, description="Lower bound")
    maximum: Optional[float] = Field(None, ge=0, description="Upper bound")
    is_predicted: bool = Field(False, description="Provider estimated the salary")

    model_config = {"frozen": True}

    @field_validator("minimum", "maximum", mode="before")
    @classmethod
    def coerce_amount(cls, v: Any) -> Optional[float]:
        """Treat blanks, zero and unparseable amounts as unknown."""
        if v is None or isinstance(v, bool):
            return None
        try:
            amount = float(v)
        except (TypeError, ValueError):
            return None
        return amount if amount > 0 else None

    @field_validator("is_predicted", mode="before")
    @classmethod
    def coerce_flag(cls, v: Any) -> bool:
        """Adzuna reports the flag as the string "1" or "0"."""
        if isinstance(v, str):
            return v.strip().lower() in ("1", "true", "yes")
        return bool(v)


class JobPosting(BaseModel):
    """One job listing as returned by the job-search provider.

    Read-only external data; never mutated after normalization.
    """

    external_id: str = Field("", description="Provider-assigned id")
    title: str = Field("", description="Job title")
    company: str = Field("", description="Company name")
    location: str = Field("", description="Location display name")
    description: str = Field("", description="Plain-text description")
    category: str = Field("", description="Category label")
    contract_type: str = Field("", description="Contract type (permanent, contract, ...)")
    url: str = Field("", description="Canonical apply URL")
    posted_at: Optional[datetime] = Field(None, description="When the job was posted (UTC)")
    salary: Optional[SalaryRange] = Field(None, description="Compensation, if the provider has it")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "external_id": "4123456789",
                "title": "Senior React Developer",
                "company": "Example Ltd",
                "location": "London",
                "description": "We are looking for a React developer...",
                "category": "IT Jobs",
                "contract_type": "permanent",
                "url": "https://www.adzuna.co.uk/jobs/details/4123456789",
                "posted_at": "2025-11-01T12:00:00Z",
                "salary": {"minimum": 50000, "maximum": 65000, "is_predicted": False},
            }
        },
    }

    @field_validator(
        "external_id", "title", "company", "location", "description", "category",
        "contract_type", "url",
        mode="before",
    )
    @classmethod
    def coerce_text_fields(cls, v: Any) -> str:
        """Coerce provider values to stripped strings."""
        return _coerce_str(v).strip()

    @field_validator("posted_at")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)


class Alert(BaseModel):
    """A saved, recurring search-and-notify criterion owned by a user.

    The scheduler only reads alerts and writes back ``last_dispatched_at``.
    """

    id: str = Field(..., min_length=1, description="Alert id")
    user_id: str = Field(..., min_length=1, description="Owning user id")
    name: str = Field(..., description="Human label shown in notifications")
    job_title: str = Field("", description="Target job title")
    location: Optional[str] = Field(None, description="Optional location filter")
    is_remote: bool = Field(False, description="Remote-only flag")
    skills: List[str] = Field(default_factory=list, description="Skills to search and score with")
    frequency: AlertFrequency = Field(AlertFrequency.DAILY, description="daily or weekly")
    telegram_target: Optional[str] = Field(
        None, description="Telegram chat id or @username"
    )
    is_active: bool = Field(True, description="Paused alerts are never selected")
    last_dispatched_at: Optional[datetime] = Field(
        None, description="When a notification was last delivered (UTC)"
    )
    created_at: Optional[datetime] = Field(None, description="Creation time (UTC)")
    updated_at: Optional[datetime] = Field(None, description="Last update time (UTC)")

    @field_validator("id", "user_id", "name", "job_title", mode="before")
    @classmethod
    def coerce_required_text(cls, v: Any) -> str:
        """Coerce identifiers and labels to stripped strings."""
        return _coerce_str(v).strip()

    @field_validator("location", "telegram_target", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        """Empty optional strings are treated as unset."""
        text = _coerce_str(v).strip()
        return text or None

    @field_validator("skills", mode="before")
    @classmethod
    def coerce_skills(cls, v: Any) -> List[str]:
        """Trim skills and drop blanks."""
        return clean_skills(_coerce_list(v))

    @field_validator("last_dispatched_at", "created_at", "updated_at")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)

    @property
    def has_target(self) -> bool:
        """True when a notification target is configured."""
        return bool(self.telegram_target)


class ScoredJob(BaseModel):
    """A posting scored for one candidate, as stored for skill gap analysis."""

    user_id: str = Field(..., description="Candidate the score belongs to")
    job_id: str = Field(..., description="Provider id of the posting")
    title: str = Field("", description="Job title at scoring time")
    company: str = Field("", description="Company at scoring time")
    score: int = Field(0, ge=0, le=100, description="Final match score")
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    breakdown: Dict[str, int] = Field(default_factory=dict, description="Score components")
    created_at: Optional[datetime] = Field(None, description="When the score was computed (UTC)")

    @field_validator("user_id", "job_id", "title", "company", mode="before")
    @classmethod
    def coerce_text_fields(cls, v: Any) -> str:
        """Coerce to strings."""
        return _coerce_str(v)

    @field_validator("matched_skills", "missing_skills", mode="before")
    @classmethod
    def coerce_skill_lists(cls, v: Any) -> List[str]:
        """Coerce skill entries to strings."""
        return [coerce_text(item) for item in _coerce_list(v)]

    @field_validator("created_at")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Ensure datetime is timezone-aware and in UTC."""
        return ensure_utc(v)


class SearchCriteria(BaseModel):
    """What a candidate searched for in an interactive match."""

    job_title: str = Field("", description="Target job title (may be empty)")
    location: Optional[str] = Field(None, description="Optional location filter")
    is_remote: bool = Field(False, description="Remote-only flag")

    model_config = {"frozen": True}

    @field_validator("job_title", mode="before")
    @classmethod
    def coerce_title(cls, v: Any) -> str:
        return _coerce_str(v).strip()

    @field_validator("location", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        text = _coerce_str(v).strip()
        return text or None


class MatchRequest(BaseModel):
    """One interactive matching run: whose profile, and what they searched for."""

    user_id: str = Field(..., min_length=1, description="Candidate the results are stored for")
    profile: CandidateProfile = Field(default_factory=CandidateProfile)
    criteria: SearchCriteria = Field(default_factory=SearchCriteria)

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_user_id(cls, v: Any) -> str:
        return _coerce_str(v).strip()
