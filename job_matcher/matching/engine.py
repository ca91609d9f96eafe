"""Heuristic match scoring of candidate profiles against job postings.

The score is a transparent sum of five components:

1. skills (0-50): share of candidate skills found in the posting text
2. experience (0-30): share of experience entries whose title/company words
   appear in the posting text
3. education (0/10): posting mentions a degree-related keyword
4. seniority (5): constant, there is no discriminating signal in the data
5. bonus: title relevance (15 in the title, 10 elsewhere) plus 3 per common
   technology keyword in the posting text

The final score is the sum clamped to 100. Scoring is a pure function of its
inputs and never raises for well-typed models.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence, Tuple

from job_matcher.domain.models import (
    Alert,
    CandidateProfile,
    ExperienceEntry,
    JobPosting,
    ScoredJob,
)
from job_matcher.utils.rounding import round_half_up
from job_matcher.utils.text import build_searchable_text, clean_skills, normalize_text, tokenize
from job_matcher.utils.timestamps import utc_now

from .models import MatchScore, RankedPosting, ScoreBreakdown

logger = logging.getLogger(__name__)

SKILLS_WEIGHT = 50
EXPERIENCE_WEIGHT = 30
EDUCATION_POINTS = 10
SENIORITY_POINTS = 5
TITLE_IN_TITLE_BONUS = 15
TITLE_IN_TEXT_BONUS = 10
TECH_KEYWORD_BONUS = 3

# Skill tokens must be longer than this to count on their own ("c", "go" do not).
SKILL_TOKEN_MIN_LENGTH = 2
# Experience tokens must be longer than this ("ltd", "inc" do not count).
EXPERIENCE_TOKEN_MIN_LENGTH = 3

EDUCATION_KEYWORDS = (
    "bachelor",
    "master",
    "phd",
    "degree",
    "diploma",
    "university",
    "college",
)

TECH_KEYWORDS = (
    "javascript",
    "python",
    "java",
    "react",
    "node",
    "sql",
    "html",
    "css",
    "typescript",
)


def has_criteria(skills: Iterable[str], target_title: str = "") -> bool:
    """Return True when there is anything to score against.

    Callers skip scoring entirely (and return no results) when both the
    skill list and the target title are empty.
    """
    return bool(clean_skills(skills)) or bool(normalize_text(target_title))


class MatchScorer:
    """Scores (profile, posting) pairs.

    Stateless; one instance may be shared across threads.
    """

    def score(
        self,
        profile: CandidateProfile,
        posting: JobPosting,
        target_title: str = "",
    ) -> MatchScore:
        """Score one posting for one candidate.

        Args:
            profile: Candidate skills, experience and education
            posting: Normalized job posting
            target_title: Job title the candidate searched for (may be empty)

        Returns:
            MatchScore with final score, breakdown and matched/missing skills
        """
        text = build_searchable_text(
            posting.title, posting.description, posting.category, posting.company
        )

        skills_score, matched, missing = self._score_skills(profile.skills, text)
        experience_score, matched_titles = self._score_experience(profile.experience, text)

        education_match = bool(profile.education) and any(
            keyword in text for keyword in EDUCATION_KEYWORDS
        )

        breakdown = ScoreBreakdown(
            skills=skills_score,
            experience=experience_score,
            education=EDUCATION_POINTS if education_match else 0,
            seniority=SENIORITY_POINTS,
            bonus=self._score_bonus(posting, text, target_title),
        )

        return MatchScore(
            final_score=breakdown.final,
            breakdown=breakdown,
            matched_skills=matched,
            missing_skills=missing,
            matched_experience_titles=matched_titles,
            education_match=education_match,
        )

    def score_for_alert(self, alert: Alert, posting: JobPosting) -> MatchScore:
        """Score a posting against an alert's own skills and job title."""
        return self.score(
            CandidateProfile(skills=alert.skills), posting, target_title=alert.job_title
        )

    def _score_skills(
        self, skills: Sequence[str], text: str
    ) -> Tuple[int, List[str], List[str]]:
        matched: List[str] = []
        missing: List[str] = []
        seen = set()

        for skill in clean_skills(skills):
            key = skill.lower()
            # Duplicates differing only in case or whitespace count once.
            if key in seen:
                continue
            seen.add(key)

            if key in text or any(
                token in text for token in tokenize(key, SKILL_TOKEN_MIN_LENGTH)
            ):
                matched.append(skill)
            else:
                missing.append(skill)

        total = len(matched) + len(missing)
        if total == 0:
            return 0, matched, missing
        return round_half_up(len(matched) / total * SKILLS_WEIGHT), matched, missing

    def _score_experience(
        self, entries: Sequence[ExperienceEntry], text: str
    ) -> Tuple[int, List[str]]:
        if not entries:
            return 0, []

        matched_titles = []
        for entry in entries:
            tokens = tokenize(f"{entry.title} {entry.company}", EXPERIENCE_TOKEN_MIN_LENGTH)
            if any(token in text for token in tokens):
                matched_titles.append(entry.title)

        ratio = len(matched_titles) / max(len(entries), 1)
        return round_half_up(min(ratio * EXPERIENCE_WEIGHT, EXPERIENCE_WEIGHT)), matched_titles

    def _score_bonus(self, posting: JobPosting, text: str, target_title: str) -> int:
        bonus = 0

        target = normalize_text(target_title)
        if target:
            if target in posting.title.lower():
                bonus += TITLE_IN_TITLE_BONUS
            elif target in text:
                bonus += TITLE_IN_TEXT_BONUS

        bonus += TECH_KEYWORD_BONUS * sum(1 for keyword in TECH_KEYWORDS if keyword in text)
        return bonus


def rank_postings(
    scorer: MatchScorer,
    profile: CandidateProfile,
    postings: Iterable[JobPosting],
    target_title: str = "",
    limit: Optional[int] = None,
) -> List[RankedPosting]:
    """Score postings and order them by final score, best first.

    Postings with equal scores keep their input order. Returns an empty list
    without scoring when the profile has no skills and no target title.

    Args:
        scorer: Scoring engine
        profile: Candidate profile
        postings: Postings to score
        target_title: Job title the candidate searched for
        limit: Keep at most this many results

    Returns:
        Ranked postings
    """
    if not has_criteria(profile.skills, target_title):
        logger.debug(
            "No skills or target title, skipping scoring",
            extra={"event": "matching.skipped", "component": "matching"},
        )
        return []

    ranked = [
        RankedPosting(posting=posting, score=scorer.score(profile, posting, target_title))
        for posting in postings
    ]
    # sorted() is stable, so ties keep input order.
    ranked = sorted(ranked, key=lambda item: item.final_score, reverse=True)

    if limit is not None:
        ranked = ranked[:limit]
    return ranked


def to_scored_jobs(
    user_id: str, ranked: Sequence[RankedPosting], scored_at: Optional[datetime] = None
) -> List[ScoredJob]:
    """Convert ranked postings into the records stored for skill gap analysis."""
    scored_at = scored_at or utc_now()
    return [
        ScoredJob(
            user_id=user_id,
            job_id=item.posting.external_id,
            title=item.posting.title,
            company=item.posting.company,
            score=item.final_score,
            matched_skills=item.score.matched_skills,
            missing_skills=item.score.missing_skills,
            breakdown=item.score.breakdown.to_dict(),
            created_at=scored_at,
        )
        for item in ranked
    ]
