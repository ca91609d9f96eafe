"""Unit tests for the match scoring engine."""

from datetime import datetime, timezone

import pytest

from job_matcher.domain.models import CandidateProfile, EducationEntry, ExperienceEntry
from job_matcher.matching import (
    MatchScorer,
    ScoreBreakdown,
    has_criteria,
    rank_postings,
    to_scored_jobs,
)


@pytest.fixture
def scorer():
    return MatchScorer()


def bare_posting(posting_factory, **overrides):
    """Posting whose only text is what the test provides."""
    fields = {"title": "", "company": "", "category": "", "description": ""}
    fields.update(overrides)
    return posting_factory(**fields)


class TestScoreBreakdown:
    """Tests for ScoreBreakdown arithmetic."""

    def test_final_is_clamped_sum(self):
        breakdown = ScoreBreakdown(skills=50, experience=30, education=10, seniority=5, bonus=27)
        assert breakdown.total == 122
        assert breakdown.final == 100

    def test_final_equals_sum_below_cap(self):
        breakdown = ScoreBreakdown(skills=25, experience=0, education=10, seniority=5, bonus=3)
        assert breakdown.total == 43
        assert breakdown.final == 43

    def test_to_dict(self):
        breakdown = ScoreBreakdown(skills=1, experience=2, education=3, seniority=4, bonus=5)
        assert breakdown.to_dict() == {
            "skills": 1,
            "experience": 2,
            "education": 3,
            "seniority": 4,
            "bonus": 5,
        }


class TestSkillMatching:
    """Tests for the skills component."""

    def test_react_and_node_both_matched(self, scorer, posting_factory):
        """Both skills appear verbatim, so the full 50 points are awarded."""
        profile = CandidateProfile(skills=["React", "Node.js"])
        posting = bare_posting(
            posting_factory, description="react developer needed, node.js required"
        )

        result = scorer.score(profile, posting)

        assert result.matched_skills == ["React", "Node.js"]
        assert result.missing_skills == []
        assert result.breakdown.skills == 50

    def test_case_and_whitespace_symmetry(self, scorer, posting_factory):
        """' React ' and 'react' are classified identically."""
        posting = bare_posting(posting_factory, description="Looking for a React engineer")

        padded = scorer.score(CandidateProfile(skills=[" React ", "Vue"]), posting)
        plain = scorer.score(CandidateProfile(skills=["react", "vue"]), posting)

        assert [s.lower() for s in padded.matched_skills] == [s.lower() for s in plain.matched_skills]
        assert [s.lower() for s in padded.missing_skills] == [s.lower() for s in plain.missing_skills]
        assert padded.breakdown.skills == plain.breakdown.skills == 25

    def test_token_match_counts(self, scorer, posting_factory):
        """A multi-word skill matches when one of its longer tokens appears."""
        posting = bare_posting(posting_factory, description="deep learning research team")

        result = scorer.score(CandidateProfile(skills=["Machine-Learning"]), posting)

        assert result.matched_skills == ["Machine-Learning"]

    def test_short_tokens_ignored(self, scorer, posting_factory):
        """Tokens of two characters or fewer do not match on their own."""
        posting = bare_posting(posting_factory, description="we write go every day")

        result = scorer.score(CandidateProfile(skills=["go rust"]), posting)

        assert result.missing_skills == ["go rust"]
        assert result.breakdown.skills == 0

    def test_score_rounds_half_up(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, description="python only")

        one_of_three = scorer.score(CandidateProfile(skills=["Python", "Scala", "Haskell"]), posting)
        one_of_four = scorer.score(
            CandidateProfile(skills=["Python", "Scala", "Haskell", "Erlang"]), posting
        )

        assert one_of_three.breakdown.skills == 17  # 16.67
        assert one_of_four.breakdown.skills == 13  # 12.5

    def test_duplicate_skills_count_once(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, description="react")

        result = scorer.score(CandidateProfile(skills=["React", "react", " REACT ", ""]), posting)

        assert result.matched_skills == ["React"]
        assert result.breakdown.skills == 50

    def test_no_skills_scores_zero(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, description="python")

        result = scorer.score(CandidateProfile(skills=[]), posting)

        assert result.breakdown.skills == 0
        assert result.matched_skills == []


class TestOtherComponents:
    """Tests for experience, education, seniority and bonus components."""

    def test_unrelated_posting_scores_only_seniority_and_bonus(self, scorer, posting_factory):
        profile = CandidateProfile(
            skills=["Python"],
            experience=[ExperienceEntry(title="Accountant", company="Numbers")],
            education=[EducationEntry(degree="BA", school="Somewhere")],
        )
        posting = bare_posting(
            posting_factory,
            title="Chef",
            company="Bistro",
            category="Hospitality",
            description="cooking in a busy kitchen",
        )

        result = scorer.score(profile, posting)

        assert result.breakdown.skills == 0
        assert result.breakdown.experience == 0
        assert result.breakdown.education == 0
        assert result.final_score == result.breakdown.seniority + result.breakdown.bonus
        assert result.final_score == 5

    def test_experience_share(self, scorer, posting_factory):
        profile = CandidateProfile(
            experience=[
                ExperienceEntry(title="Backend Developer", company="Acme"),
                ExperienceEntry(title="Barista", company="Cafe"),
            ]
        )
        posting = bare_posting(posting_factory, description="backend role")

        result = scorer.score(profile, posting)

        assert result.breakdown.experience == 15
        assert result.matched_experience_titles == ["Backend Developer"]

    def test_experience_share_rounds_to_whole_points(self, scorer, posting_factory):
        profile = CandidateProfile(
            experience=[ExperienceEntry(title="Backend Developer", company="Acme")]
            + [ExperienceEntry(title="Barista", company="Cafe") for _ in range(6)]
        )
        posting = bare_posting(posting_factory, description="backend role")

        result = scorer.score(profile, posting)

        # 1 of 7 entries is 4.29 points
        assert result.breakdown.experience == 4

    def test_education_requires_keyword_and_entries(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, description="a university degree is preferred")

        with_education = scorer.score(
            CandidateProfile(education=[EducationEntry(degree="BSc")]), posting
        )
        without_education = scorer.score(CandidateProfile(), posting)

        assert with_education.education_match is True
        assert with_education.breakdown.education == 10
        assert without_education.breakdown.education == 0

    def test_title_bonus_in_title(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, title="Senior Data Engineer")

        result = scorer.score(CandidateProfile(), posting, target_title="Data Engineer")

        assert result.breakdown.bonus == 15

    def test_title_bonus_in_text(self, scorer, posting_factory):
        posting = bare_posting(
            posting_factory, title="Engineer", description="join us as a data engineer"
        )

        result = scorer.score(CandidateProfile(), posting, target_title="data engineer")

        assert result.breakdown.bonus == 10

    def test_tech_keywords_add_three_each(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, description="html and css")

        result = scorer.score(CandidateProfile(), posting)

        assert result.breakdown.bonus == 6

    def test_score_is_clamped_to_100(self, scorer, posting_factory):
        profile = CandidateProfile(
            skills=["Python", "Java", "SQL", "React", "Node"],
            experience=[ExperienceEntry(title="Python Developer", company="Acme")],
            education=[EducationEntry(degree="BSc")],
        )
        posting = bare_posting(
            posting_factory,
            title="Senior Python Developer",
            description="javascript python java react node sql html css typescript, degree required",
        )

        result = scorer.score(profile, posting, target_title="python developer")

        assert result.breakdown.total == 137
        assert result.final_score == 100
        assert result.tier == "excellent"

    def test_empty_posting_still_scores(self, scorer, posting_factory):
        posting = bare_posting(posting_factory, title=None, description=None)

        result = scorer.score(CandidateProfile(skills=["Python"]), posting)

        assert 0 <= result.final_score <= 100
        assert result.final_score == 5


class TestRanking:
    """Tests for rank_postings and helpers."""

    def test_has_criteria(self):
        assert has_criteria(["Python"]) is True
        assert has_criteria([], "engineer") is True
        assert has_criteria([" ", ""], "  ") is False

    def test_no_criteria_returns_empty(self, scorer, posting_factory):
        postings = [bare_posting(posting_factory, description="python")]

        assert rank_postings(scorer, CandidateProfile(skills=[]), postings) == []

    def test_best_first_and_stable(self, scorer, posting_factory):
        first = bare_posting(posting_factory, external_id="a", description="python")
        second = bare_posting(posting_factory, external_id="b", description="python")
        best = bare_posting(posting_factory, external_id="c", description="python sql")

        ranked = rank_postings(scorer, CandidateProfile(skills=["Python"]), [first, second, best])

        assert [item.posting.external_id for item in ranked] == ["c", "a", "b"]
        assert [item.final_score for item in ranked] == [61, 58, 58]

    def test_limit(self, scorer, posting_factory):
        postings = [
            bare_posting(posting_factory, external_id=str(i), description="python")
            for i in range(8)
        ]

        ranked = rank_postings(scorer, CandidateProfile(skills=["Python"]), postings, limit=5)

        assert [item.posting.external_id for item in ranked] == ["0", "1", "2", "3", "4"]

    def test_score_for_alert_uses_alert_criteria(self, scorer, posting_factory, alert_factory):
        alert = alert_factory(job_title="python developer", skills=["Python", "Django"])
        posting = bare_posting(
            posting_factory, title="Python Developer", description="django and python"
        )

        result = scorer.score_for_alert(alert, posting)

        assert result.matched_skills == ["Python", "Django"]
        assert result.breakdown.skills == 50
        assert result.breakdown.bonus == 15 + 3  # title + "python" keyword

    def test_to_scored_jobs(self, scorer, posting_factory):
        posting = bare_posting(
            posting_factory, external_id="42", title="Dev", company="Acme", description="python"
        )
        ranked = rank_postings(scorer, CandidateProfile(skills=["Python", "Rust"]), [posting])
        scored_at = datetime(2025, 11, 1, tzinfo=timezone.utc)

        [scored] = to_scored_jobs("user-9", ranked, scored_at=scored_at)

        assert scored.user_id == "user-9"
        assert scored.job_id == "42"
        assert scored.company == "Acme"
        assert scored.score == ranked[0].final_score
        assert scored.matched_skills == ["Python"]
        assert scored.missing_skills == ["Rust"]
        assert scored.breakdown["skills"] == 25
        assert scored.created_at == scored_at
