"""
Distribution Scoring Engine for the Panchakarma Workload Allocator.

This module determines the 'Quality' of a finished allocation.
It never changes an allocation; it grades it (0.0 - 100.0) on three axes
and turns weak grades into recommendations:
1. Balance        - spread of per-scholar points.
2. Continuity     - returning patients kept with yesterday's scholar.
3. Specialization - how few scholars share each procedure type.
"""

import hashlib
import json
import math
from collections import defaultdict
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, Field

from models import Assignment


class Recommendation(BaseModel):
    type: str = Field(description="balance | specialization | optimization")
    priority: str = Field(description="high | medium | low")
    title: str
    description: str
    action: str
    impact: int = Field(ge=1, le=5)


class DistributionMetrics(BaseModel):
    balance_score: float = Field(ge=0.0, le=100.0)
    continuity_score: Optional[float] = Field(
        default=None,
        description="None when no continuity map applies to this allocation"
    )
    specialization_score: float = Field(ge=0.0, le=100.0)
    overall_score: float
    utilization: Dict[str, float] = Field(default_factory=dict, description="Scholar name -> total / target")
    procedure_counts: Dict[str, int] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)


class DistributionScorer:
    """
    Evaluates a completed allocation. Pure: same input, same metrics.
    """

    BALANCE_SPREAD_FACTOR = 5.0    # score points lost per point of std deviation
    SPECIALIZATION_STEP = 20.0     # score points lost per extra scholar on a procedure type
    OVERLOAD_RATIO = 1.3

    WEIGHTS = {"balance": 0.4, "continuity": 0.3, "specialization": 0.3}

    def analyze(self, assignments: List[Assignment], continuity_map: Optional[Dict[str, str]] = None) -> DistributionMetrics:
        """
        Master scoring function.
        """
        balance = self._score_balance(assignments)
        continuity = self._score_continuity(assignments, continuity_map or {})
        specialization = self._score_specialization(assignments)

        if continuity is None:
            w = self.WEIGHTS["balance"] + self.WEIGHTS["specialization"]
            overall = (balance * self.WEIGHTS["balance"] + specialization * self.WEIGHTS["specialization"]) / w
        else:
            overall = (
                balance * self.WEIGHTS["balance"]
                + continuity * self.WEIGHTS["continuity"]
                + specialization * self.WEIGHTS["specialization"]
            )

        procedure_counts: Dict[str, int] = defaultdict(int)
        for a in assignments:
            for item in a.procedures:
                procedure_counts[item.procedure.name] += 1

        return DistributionMetrics(
            balance_score=balance,
            continuity_score=continuity,
            specialization_score=specialization,
            overall_score=overall,
            utilization={
                a.scholar.name: (a.total_points / a.target_points if a.target_points > 0 else 0.0)
                for a in assignments
            },
            procedure_counts=dict(procedure_counts),
            recommendations=self._recommend(assignments, balance, specialization),
        )

    @staticmethod
    def _on_duty(assignments: List[Assignment]) -> List[Assignment]:
        """Posted scholars' workloads, or everyone's when nobody is posted."""
        return [a for a in assignments if a.scholar.is_posted] or list(assignments)

    def _score_balance(self, assignments: List[Assignment]) -> float:
        """
        100 minus a scaled population standard deviation of posted scholars' points.
        """
        on_duty = self._on_duty(assignments)
        if not on_duty:
            return 100.0
        totals = [a.total_points for a in on_duty]
        mean = sum(totals) / len(totals)
        variance = sum((t - mean) ** 2 for t in totals) / len(totals)
        return max(0.0, 100.0 - math.sqrt(variance) * self.BALANCE_SPREAD_FACTOR)

    def _score_continuity(self, assignments: List[Assignment], continuity_map: Dict[str, str]) -> Optional[float]:
        """
        Percentage of returning patients' procedures that sit with the
        scholar named in the continuity map. None if nobody is returning.
        """
        returning = 0
        kept = 0
        for a in assignments:
            for item in a.procedures:
                expected = continuity_map.get(item.patient_name)
                if expected is None:
                    continue
                returning += 1
                if expected == a.scholar.name:
                    kept += 1
        if returning == 0:
            return None
        return kept / returning * 100.0

    def _score_specialization(self, assignments: List[Assignment]) -> float:
        """
        Fewer scholars per procedure type = more specialized.
        """
        handlers: Dict[str, Set[str]] = defaultdict(set)
        for a in assignments:
            for item in a.procedures:
                handlers[item.procedure.name].add(a.scholar.id)
        if not handlers:
            return 100.0
        scores = [max(0.0, 100.0 - len(ids) * self.SPECIALIZATION_STEP) for ids in handlers.values()]
        return sum(scores) / len(scores)

    def _recommend(self, assignments: List[Assignment], balance: float, specialization: float) -> List[Recommendation]:
        recommendations = []

        if balance < 70:
            recommendations.append(Recommendation(
                type="balance",
                priority="high",
                title="Improve Workload Balance",
                description="Significant workload imbalance detected among scholars",
                action="Redistribute high-complexity procedures to less loaded scholars",
                impact=4,
            ))

        if specialization < 60:
            recommendations.append(Recommendation(
                type="specialization",
                priority="medium",
                title="Enhance Specialization",
                description="Scholars are not specialized in specific procedure types",
                action="Assign specific procedure types to dedicated scholars",
                impact=3,
            ))

        on_duty = self._on_duty(assignments)
        if on_duty:
            mean = sum(a.total_points for a in on_duty) / len(on_duty)
            overloaded = [a.scholar.name for a in on_duty if mean > 0 and a.total_points > mean * self.OVERLOAD_RATIO]
            if overloaded:
                recommendations.append(Recommendation(
                    type="optimization",
                    priority="high",
                    title="Scholar Overload Alert",
                    description=f"{', '.join(overloaded)} may be overloaded",
                    action="Reduce assignments for overloaded scholars",
                    impact=5,
                ))

        return recommendations


def analyze_distribution(assignments: List[Assignment], continuity_map: Optional[Dict[str, str]] = None) -> DistributionMetrics:
    return DistributionScorer().analyze(assignments, continuity_map)


def suggest_improvements(metrics: DistributionMetrics) -> List[str]:
    """Short text suggestions for the summary screen."""
    improvements = []
    if metrics.balance_score < 80:
        improvements.append("Consider rotating complex procedures among scholars")
    if metrics.specialization_score < 70:
        improvements.append("Implement procedure specialization for better expertise")

    if metrics.overall_score > 90:
        improvements.append("Excellent distribution achieved!")
    elif metrics.overall_score > 75:
        improvements.append("Good distribution with room for minor improvements")
    else:
        improvements.append("Distribution needs optimization for better balance")
    return improvements


class AnalysisCache:
    """
    Memoizes analyzer results for a long-lived caller.
    Keyed by a content hash of the allocation and continuity map, so any
    change to postings, patients or continuity produces a new key. Call
    invalidate() to drop everything explicitly.
    """

    def __init__(self, scorer: Optional[DistributionScorer] = None):
        self.scorer = scorer or DistributionScorer()
        self._entries: Dict[str, DistributionMetrics] = {}

    @staticmethod
    def key(assignments: List[Assignment], continuity_map: Optional[Dict[str, str]] = None) -> str:
        payload = {
            "scholars": sorted(
                [a.scholar.id, a.scholar.is_posted, a.total_points, a.target_points,
                 sorted(p.procedure.id for p in a.procedures)]
                for a in assignments
            ),
            "continuity": sorted((continuity_map or {}).items()),
        }
        return hashlib.sha256(json.dumps(payload, sort_keys=True).encode("utf-8")).hexdigest()

    def get_or_compute(self, assignments: List[Assignment], continuity_map: Optional[Dict[str, str]] = None) -> DistributionMetrics:
        k = self.key(assignments, continuity_map)
        if k not in self._entries:
            self._entries[k] = self.scorer.analyze(assignments, continuity_map)
        return self._entries[k]

    def invalidate(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
