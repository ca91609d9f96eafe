"""Per-alert processing, batch runs and interactive matching."""

from .models import AlertOutcome, AlertRunResult, BatchRunResult, FailureCategory
from .recommendations import RecommendationService, build_profile_query
from .runner import AlertPipeline

__all__ = [
    "AlertPipeline",
    "AlertOutcome",
    "AlertRunResult",
    "BatchRunResult",
    "FailureCategory",
    "RecommendationService",
    "build_profile_query",
]
