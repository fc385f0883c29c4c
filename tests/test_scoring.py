"""
Tests for the distribution analyzer and its cache
"""

import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from models import Assignment, Gender, Patient, Scholar, lookup_procedure, make_procedure
from scheduler.scoring import (
    AnalysisCache,
    DistributionScorer,
    analyze_distribution,
    suggest_improvements,
)

F = Gender.FEMALE


def patient(pid, name, *codes):
    return Patient(
        id=pid, name=name, gender=F,
        procedures=[make_procedure(lookup_procedure(c), f"{pid}-p{i}") for i, c in enumerate(codes)],
    )


def assignment(sid, *patients, target=0.0, posted=True):
    a = Assignment(
        scholar=Scholar(id=sid, name=f"Dr. {sid}", year=1, gender=F, is_posted=posted),
        target_points=target,
    )
    for p in patients:
        a.add_patient(p)
    return a


class TestBalance:

    def test_equal_loads_score_100(self):
        metrics = analyze_distribution([
            assignment("A", patient("p1", "P1", "nasya")),
            assignment("B", patient("p2", "P2", "shirodhara")),
        ])
        assert metrics.balance_score == pytest.approx(100.0)

    def test_spread_lowers_score(self):
        # Totals 10 and 0: std deviation 5, score 100 - 5 * 5
        heavy = patient("p1", "P1", "pizhichil", "shiro-basti", "sarvanga-dhara", "sthanika-abhyanga-swedana")
        metrics = analyze_distribution([assignment("A", heavy), assignment("B")])
        assert metrics.balance_score == pytest.approx(75.0)

    def test_off_duty_scholars_ignored(self):
        codes = ["nasya", "shirodhara", "takradhara"]
        on_duty = [assignment(f"On{i}", patient(f"p{i}", f"P{i}", code)) for i, code in enumerate(codes)]
        off_duty = [assignment(f"Off{i}", posted=False) for i in range(3)]

        metrics = analyze_distribution(on_duty + off_duty)

        assert metrics.balance_score == pytest.approx(100.0)
        assert [r for r in metrics.recommendations if r.type == "optimization"] == []
        assert suggest_improvements(metrics)[-1] == "Excellent distribution achieved!"

    def test_nobody_posted_uses_everyone(self):
        heavy = patient("p1", "P1", "pizhichil", "shiro-basti", "sarvanga-dhara", "sthanika-abhyanga-swedana")
        metrics = analyze_distribution([assignment("A", heavy, posted=False), assignment("B", posted=False)])
        assert metrics.balance_score == pytest.approx(75.0)

    def test_floored_at_zero(self):
        codes = ["pizhichil", "shiro-basti", "sarvanga-dhara", "sarvanga-udwartana", "sarvanga-parisheka",
                 "basti-karma", "shastik-shali-pinda-swedana", "sarvanga-abhyanga-potali-swedana"]
        patients = [patient(f"p{i}", f"P{i}", *codes) for i in range(2)]
        metrics = analyze_distribution([assignment("A", *patients), assignment("B")])
        assert metrics.balance_score == 0.0


class TestSpecialization:

    def test_one_handler_per_type(self):
        metrics = analyze_distribution([
            assignment("A", patient("p1", "P1", "nasya")),
            assignment("B", patient("p2", "P2", "pichu")),
        ])
        assert metrics.specialization_score == pytest.approx(80.0)

    def test_shared_type(self):
        metrics = analyze_distribution([
            assignment("A", patient("p1", "P1", "nasya")),
            assignment("B", patient("p2", "P2", "nasya")),
        ])
        assert metrics.specialization_score == pytest.approx(60.0)

    def test_no_procedures(self):
        assert analyze_distribution([assignment("A")]).specialization_score == 100.0


class TestContinuityScore:

    def test_omitted_without_returning_patients(self):
        metrics = analyze_distribution([assignment("A", patient("p1", "P1", "nasya"))])
        assert metrics.continuity_score is None
        expected = (metrics.balance_score * 0.4 + metrics.specialization_score * 0.3) / 0.7
        assert metrics.overall_score == pytest.approx(expected)

    def test_fraction_of_returning_procedures_kept(self):
        assignments = [
            assignment("A", patient("p1", "Asha", "nasya", "pichu")),
            assignment("B", patient("p2", "Babita", "nasya")),
        ]
        continuity = {"Asha": "Dr. A", "Babita": "Dr. A"}
        metrics = analyze_distribution(assignments, continuity)
        assert metrics.continuity_score == pytest.approx(200 / 3)


class TestRecommendations:

    def test_imbalance_and_overload(self):
        heavy = patient("p1", "P1", "pizhichil", "shiro-basti", "sarvanga-dhara", "sarvanga-udwartana",
                        "sarvanga-parisheka", "basti-karma", "janu-basti")
        metrics = analyze_distribution([assignment("A", heavy), assignment("B")])
        types = [r.type for r in metrics.recommendations]
        assert "balance" in types
        overload = next(r for r in metrics.recommendations if r.type == "optimization")
        assert "Dr. A" in overload.description

    def test_balanced_day_has_no_recommendations(self):
        metrics = analyze_distribution([
            assignment("A", patient("p1", "P1", "nasya")),
            assignment("B", patient("p2", "P2", "pichu", "lepa")),
        ])
        assert metrics.recommendations == []

    def test_suggestions(self):
        metrics = analyze_distribution([
            assignment("A", patient("p1", "P1", "nasya")),
            assignment("B", patient("p2", "P2", "pichu", "lepa")),
        ])
        assert suggest_improvements(metrics)[-1] == "Excellent distribution achieved!"

    def test_utilization(self):
        a = assignment("A", patient("p1", "P1", "nasya"), target=4.0)
        metrics = analyze_distribution([a, assignment("B")])
        assert metrics.utilization == {"Dr. A": 0.5, "Dr. B": 0.0}


class TestAnalysisCache:

    @pytest.fixture
    def assignments(self):
        return [assignment("A", patient("p1", "P1", "nasya")), assignment("B")]

    def test_idempotent(self, assignments):
        scorer = DistributionScorer()
        assert scorer.analyze(assignments) == scorer.analyze(assignments)

    def test_hit_and_invalidate(self, assignments):
        cache = AnalysisCache()
        first = cache.get_or_compute(assignments)
        second = cache.get_or_compute(assignments)
        assert first is second
        assert len(cache) == 1

        cache.invalidate()
        assert len(cache) == 0

    def test_changed_allocation_changes_key(self, assignments):
        before = AnalysisCache.key(assignments)
        assignments[1].add_patient(patient("p2", "P2", "pichu"))
        assert AnalysisCache.key(assignments) != before

    def test_posting_change_changes_key(self, assignments):
        before = AnalysisCache.key(assignments)
        assignments[1].scholar = assignments[1].scholar.model_copy(update={"is_posted": False})
        assert AnalysisCache.key(assignments) != before

    def test_continuity_map_part_of_key(self, assignments):
        assert AnalysisCache.key(assignments) != AnalysisCache.key(assignments, {"P1": "Dr. A"})
