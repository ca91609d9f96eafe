"""Interactive matching: search for a profile, rank, store recommendations."""

from datetime import datetime
from typing import Callable, List, Optional, Sequence

from job_matcher.adapters.adzuna import QUERY_SKILL_COUNT, AdzunaAdapter
from job_matcher.domain.models import MatchRequest, SearchCriteria
from job_matcher.logging import get_logger
from job_matcher.matching.engine import MatchScorer, rank_postings, to_scored_jobs
from job_matcher.matching.models import RankedPosting
from job_matcher.persistence.database import get_session
from job_matcher.persistence.repositories import RecommendationRepository
from job_matcher.utils.text import clean_skills
from job_matcher.utils.timestamps import utc_now

logger = get_logger(__name__, component="recommendations")

RECOMMENDATION_LIMIT = 10


def build_profile_query(criteria: SearchCriteria, skills: Sequence[str]) -> str:
    """Search text for an interactive match.

    The target title followed by the first three skills. Without a title the
    first three skills are joined with OR. Empty when there is neither.
    """
    top_skills = clean_skills(skills)[:QUERY_SKILL_COUNT]
    if criteria.job_title:
        return " ".join([criteria.job_title, *top_skills])
    return " OR ".join(top_skills)


def _unique_by_job_id(ranked: Sequence[RankedPosting]) -> List[RankedPosting]:
    seen = set()
    unique = []
    for item in ranked:
        job_id = item.posting.external_id
        if not job_id or job_id in seen:
            continue
        seen.add(job_id)
        unique.append(item)
    return unique


class RecommendationService:
    """
    Runs the interactive matching flow.

    One search per request, every posting scored against the full candidate
    profile, and the best results stored as the user's recommendations. The
    stored set is what the skill gap report reads.
    """

    def __init__(
        self,
        fetcher: AdzunaAdapter,
        scorer: Optional[MatchScorer] = None,
        limit: int = RECOMMENDATION_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.fetcher = fetcher
        self.scorer = scorer or MatchScorer()
        self.limit = limit
        self.clock = clock

    def recommend(self, request: MatchRequest) -> List[RankedPosting]:
        """
        Search, rank and store recommendations for one candidate.

        A search that finds nothing (including a failed provider call) keeps
        the previously stored recommendations.

        Args:
            request: Candidate id, profile and search criteria

        Returns:
            Ranked postings that were stored, best first

        Raises:
            PersistenceError: If the recommendations cannot be stored
        """
        criteria = request.criteria
        query = build_profile_query(criteria, request.profile.skills)
        if not query:
            logger.info(
                "No job title or skills, nothing to search for",
                extra={"event": "recommendations.skipped", "user_id": request.user_id},
            )
            return []

        postings = self.fetcher.search(query, criteria.location, criteria.is_remote)
        ranked = rank_postings(
            self.scorer, request.profile, postings, target_title=criteria.job_title
        )
        ranked = _unique_by_job_id(ranked)[: self.limit]

        if not ranked:
            logger.info(
                "No postings found, keeping stored recommendations",
                extra={"event": "recommendations.empty", "user_id": request.user_id, "query": query},
            )
            return []

        scored_jobs = to_scored_jobs(request.user_id, ranked, scored_at=self.clock())
        with get_session() as session:
            RecommendationRepository(session).replace_for_user(request.user_id, scored_jobs)

        logger.info(
            f"Stored {len(scored_jobs)} recommendations",
            extra={
                "event": "recommendations.stored",
                "user_id": request.user_id,
                "query": query,
                "count": len(scored_jobs),
                "top_score": ranked[0].final_score,
            },
        )
        return ranked
