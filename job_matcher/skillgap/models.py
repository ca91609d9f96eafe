"""Data models for skill gap reports."""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List


@dataclass
class MissingSkill:
    """One ranked missing skill.

    Attributes:
        skill: Display name (first character capitalised)
        occurrence_count: Jobs listing the skill as missing
        frequency_percent: occurrence_count / total_jobs * 100
        impact_score: frequency weighted by market demand, one decimal, not clamped
    """

    skill: str
    occurrence_count: int
    frequency_percent: float
    impact_score: float


@dataclass
class SkillOccurrence:
    """How often a skill was missing or matched across the job set."""

    missing: int = 0
    matched: int = 0


@dataclass
class MatchDistribution:
    """Histogram of match scores over four bands."""

    excellent: int = 0  # >= 80
    good: int = 0  # 60-79
    fair: int = 0  # 40-59
    low: int = 0  # < 40

    @property
    def total(self) -> int:
        return self.excellent + self.good + self.fair + self.low


@dataclass
class SkillGapStatistics:
    """Aggregate counters over all jobs."""

    total_missing_skills: int = 0
    total_matched_skills: int = 0
    average_missing_per_job: float = 0.0
    average_matched_per_job: float = 0.0
    overall_match_rate: float = 0.0


@dataclass
class ImprovementSuggestion:
    """An actionable recommendation derived from the missing skills."""

    skill: str
    impact_score: float
    priority: int
    action: str
    estimated_improvement: float
    resources: List[str] = field(default_factory=list)


@dataclass
class SkillGapReport:
    """Skill gap analysis over one candidate's scored jobs.

    Derived on request from persisted scored jobs; never stored itself.
    """

    total_jobs: int = 0
    top_missing_skills: List[MissingSkill] = field(default_factory=list)
    skill_frequency: Dict[str, SkillOccurrence] = field(default_factory=dict)
    match_distribution: MatchDistribution = field(default_factory=MatchDistribution)
    statistics: SkillGapStatistics = field(default_factory=SkillGapStatistics)
    improvement_suggestions: List[ImprovementSuggestion] = field(default_factory=list)
    overall_missing_skills: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.total_jobs == 0

    def to_dict(self) -> Dict[str, Any]:
        """Plain-dict form suitable for JSON output."""
        return asdict(self)
