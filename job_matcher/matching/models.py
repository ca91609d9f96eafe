"""Data models for the match scoring engine."""

from dataclasses import asdict, dataclass, field
from typing import Dict, List

from job_matcher.domain.models import JobPosting

MAX_SCORE = 100


@dataclass(frozen=True)
class ScoreBreakdown:
    """Five non-negative components whose sum, clamped to 100, is the final score.

    Attributes:
        skills: 0-50, share of candidate skills found in the posting
        experience: 0-30, share of experience entries related to the posting
        education: 0 or 10, posting mentions a degree-related keyword
        seniority: constant 5
        bonus: title relevance (0/10/15) plus 3 per common technology keyword
    """

    skills: int = 0
    experience: int = 0
    education: int = 0
    seniority: int = 0
    bonus: int = 0

    @property
    def total(self) -> int:
        """Unclamped sum of all components."""
        return self.skills + self.experience + self.education + self.seniority + self.bonus

    @property
    def final(self) -> int:
        """Sum clamped to the 0-100 range."""
        return min(self.total, MAX_SCORE)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


@dataclass
class MatchScore:
    """Outcome of scoring one (profile, posting) pair.

    Skill lists keep the candidate's trimmed spelling in input order.
    """

    final_score: int
    breakdown: ScoreBreakdown
    matched_skills: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    matched_experience_titles: List[str] = field(default_factory=list)
    education_match: bool = False

    @property
    def tier(self) -> str:
        """Match band used in reports and notifications."""
        if self.final_score >= 80:
            return "excellent"
        if self.final_score >= 60:
            return "good"
        if self.final_score >= 40:
            return "fair"
        return "low"


@dataclass
class RankedPosting:
    """A posting together with its score, as produced by ranking."""

    posting: JobPosting
    score: MatchScore

    @property
    def final_score(self) -> int:
        return self.score.final_score
