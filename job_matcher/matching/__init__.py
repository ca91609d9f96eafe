"""Match scoring engine.

This module provides:
- MatchScorer: scores a candidate profile against a job posting
- ScoreBreakdown / MatchScore: auditable scoring results
- rank_postings: stable best-first ranking of scored postings
- to_scored_jobs: ranked postings as records for the recommendation store
"""

from .engine import MatchScorer, has_criteria, rank_postings, to_scored_jobs
from .models import MatchScore, RankedPosting, ScoreBreakdown

__all__ = [
    "MatchScorer",
    "MatchScore",
    "RankedPosting",
    "ScoreBreakdown",
    "has_criteria",
    "rank_postings",
    "to_scored_jobs",
]
