"""Skill gap analysis over persisted scored jobs."""

from .aggregator import SkillGapAggregator, demand_multiplier, match_band
from .models import (
    ImprovementSuggestion,
    MatchDistribution,
    MissingSkill,
    SkillGapReport,
    SkillGapStatistics,
    SkillOccurrence,
)

__all__ = [
    "SkillGapAggregator",
    "SkillGapReport",
    "MissingSkill",
    "SkillOccurrence",
    "MatchDistribution",
    "SkillGapStatistics",
    "ImprovementSuggestion",
    "demand_multiplier",
    "match_band",
]
