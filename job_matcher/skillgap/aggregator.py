"""Aggregation of scored jobs into a skill gap report.

Missing skills are ranked by an impact score: how often the skill was
missing (as a percentage of all jobs) weighted by a market demand
multiplier. The top five ranked skills each get a tailored improvement
suggestion; two generic suggestions are always appended.
"""

from collections import Counter
from dataclasses import replace
from typing import Iterable, List, Sequence, Tuple

from job_matcher.domain.models import ScoredJob
from job_matcher.logging import get_logger
from job_matcher.utils.rounding import round_to_tenth
from job_matcher.utils.text import display_skill

from .models import (
    ImprovementSuggestion,
    MatchDistribution,
    MissingSkill,
    SkillGapReport,
    SkillGapStatistics,
    SkillOccurrence,
)

logger = get_logger(__name__, component="skillgap")

DEFAULT_LIMIT = 50
SUGGESTED_SKILLS = 5

HIGH_DEMAND_SKILLS = (
    "react",
    "javascript",
    "typescript",
    "python",
    "java",
    "aws",
    "docker",
    "kubernetes",
    "node.js",
    "sql",
    "machine learning",
    "data analysis",
    "cloud",
    "devops",
)

TRENDING_SKILLS = (
    "ai",
    "artificial intelligence",
    "generative ai",
    "llm",
    "rust",
    "go",
    "next.js",
    "react native",
    "graphql",
)

HIGH_DEMAND_MULTIPLIER = 1.5
TRENDING_MULTIPLIER = 1.8

# (keywords, action template, improvement factor, improvement cap, resources);
# the first row whose keyword occurs in the skill wins, the last row is the default.
SUGGESTION_RULES: Sequence[Tuple[Tuple[str, ...], str, float, float, List[str]]] = (
    (
        ("react",),
        "Learn {skill} to improve your frontend development opportunities",
        1.5,
        30,
        [
            "React Official Documentation",
            "FreeCodeCamp React Course",
            "YouTube: React Tutorial for Beginners",
        ],
    ),
    (
        ("python",),
        "Master {skill} for data science and backend development roles",
        1.3,
        25,
        ["Python.org Official Tutorial", "Coursera: Python for Everybody", "Real Python Tutorials"],
    ),
    (
        ("aws", "cloud"),
        "Get certified in {skill} for cloud engineering positions",
        1.8,
        35,
        ["AWS Free Tier & Training", "AWS Certified Solutions Architect", "A Cloud Guru Courses"],
    ),
    (
        ("sql",),
        "Improve your {skill} skills for database-related roles",
        1.2,
        20,
        ["SQLZoo Interactive Tutorial", "Mode Analytics SQL Tutorial", "LeetCode SQL Problems"],
    ),
    (
        (),
        "Develop {skill} skills to increase your job match rate",
        1.1,
        15,
        ["Udemy Courses", "LinkedIn Learning", "Official Documentation"],
    ),
)

GENERIC_SUGGESTIONS = (
    ImprovementSuggestion(
        skill="Multiple Skills",
        impact_score=25,
        priority=6,
        action="Focus on building 2-3 key skills from the missing skills list",
        estimated_improvement=15,
        resources=["Create personal projects", "Contribute to open source", "Build a portfolio"],
    ),
    ImprovementSuggestion(
        skill="Soft Skills",
        impact_score=15,
        priority=7,
        action="Improve communication and teamwork skills",
        estimated_improvement=10,
        resources=[
            "Toastmasters International",
            "Coursera: Communication Skills",
            "Team collaboration tools",
        ],
    ),
)


def demand_multiplier(skill: str) -> float:
    """Market demand weight of a skill.

    A skill matches a vocabulary entry when either contains the other.
    Trending skills take precedence over high-demand ones.
    """
    lowered = skill.lower()

    def _matches(vocabulary: Iterable[str]) -> bool:
        return any(term in lowered or lowered in term for term in vocabulary)

    if _matches(TRENDING_SKILLS):
        return TRENDING_MULTIPLIER
    if _matches(HIGH_DEMAND_SKILLS):
        return HIGH_DEMAND_MULTIPLIER
    return 1.0


def match_band(score: float) -> str:
    """Name of the histogram band a score falls in."""
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "fair"
    return "low"


def _count_skills(skill_lists: Iterable[Sequence[str]]) -> Tuple[Counter, int]:
    counts: Counter = Counter()
    total = 0
    for skills in skill_lists:
        for skill in skills:
            cleaned = skill.strip().lower()
            if cleaned:
                counts[cleaned] += 1
                total += 1
    return counts, total


class SkillGapAggregator:
    """Builds SkillGapReports from a candidate's scored jobs."""

    def aggregate(self, scored_jobs: Sequence[ScoredJob], limit: int = DEFAULT_LIMIT) -> SkillGapReport:
        """Aggregate scored jobs into a skill gap report.

        Args:
            scored_jobs: Scored jobs of one candidate
            limit: Maximum number of ranked missing skills

        Returns:
            SkillGapReport; all-zero when scored_jobs is empty
        """
        total_jobs = len(scored_jobs)
        if total_jobs == 0:
            logger.info(
                "No scored jobs to analyse",
                extra={"event": "skillgap.empty"},
            )
            return SkillGapReport()

        distribution = MatchDistribution()
        for job in scored_jobs:
            band = match_band(job.score or 0)
            setattr(distribution, band, getattr(distribution, band) + 1)

        missing_counts, total_missing = _count_skills(job.missing_skills for job in scored_jobs)
        matched_counts, total_matched = _count_skills(job.matched_skills for job in scored_jobs)

        top_missing = self._rank_missing(missing_counts, total_jobs)[: max(limit, 0)]

        skill_frequency = {}
        for skill in {**missing_counts, **matched_counts}:
            skill_frequency[display_skill(skill)] = SkillOccurrence(
                missing=missing_counts.get(skill, 0),
                matched=matched_counts.get(skill, 0),
            )

        denominator = total_matched + total_missing
        statistics = SkillGapStatistics(
            total_missing_skills=total_missing,
            total_matched_skills=total_matched,
            average_missing_per_job=total_missing / total_jobs,
            average_matched_per_job=total_matched / total_jobs,
            overall_match_rate=(total_matched / denominator * 100) if denominator else 0.0,
        )

        report = SkillGapReport(
            total_jobs=total_jobs,
            top_missing_skills=top_missing,
            skill_frequency=skill_frequency,
            match_distribution=distribution,
            statistics=statistics,
            improvement_suggestions=self._suggest(top_missing),
            overall_missing_skills=sorted({display_skill(s) for s in missing_counts}),
        )

        logger.info(
            "Skill gap analysis completed",
            extra={
                "event": "skillgap.completed",
                "total_jobs": total_jobs,
                "distinct_missing": len(missing_counts),
                "overall_match_rate": round(statistics.overall_match_rate, 1),
            },
        )
        return report

    def _rank_missing(self, missing_counts: Counter, total_jobs: int) -> List[MissingSkill]:
        entries = []
        for skill, count in missing_counts.items():
            frequency = count * 100 / total_jobs
            entries.append(
                MissingSkill(
                    skill=display_skill(skill),
                    occurrence_count=count,
                    frequency_percent=frequency,
                    impact_score=round_to_tenth(frequency * demand_multiplier(skill)),
                )
            )

        # Stable sort: full ties keep first-seen order.
        return sorted(
            entries,
            key=lambda e: (e.impact_score, e.frequency_percent, e.occurrence_count),
            reverse=True,
        )

    def _suggest(self, top_missing: Sequence[MissingSkill]) -> List[ImprovementSuggestion]:
        suggestions = []
        for priority, entry in enumerate(top_missing[:SUGGESTED_SKILLS], start=1):
            lowered = entry.skill.lower()
            for keywords, action, factor, cap, resources in SUGGESTION_RULES:
                if not keywords or any(keyword in lowered for keyword in keywords):
                    break
            suggestions.append(
                ImprovementSuggestion(
                    skill=entry.skill,
                    impact_score=entry.impact_score,
                    priority=priority,
                    action=action.format(skill=entry.skill),
                    estimated_improvement=round_to_tenth(min(entry.impact_score * factor, cap)),
                    resources=list(resources),
                )
            )

        suggestions.extend(
            replace(generic, resources=list(generic.resources))
            for generic in GENERIC_SUGGESTIONS
        )
        return sorted(suggestions, key=lambda s: s.impact_score, reverse=True)
