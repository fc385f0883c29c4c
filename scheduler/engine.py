"""
The Workload Allocation Engine.

This module implements the core "Solver" logic.
It places every non-attendant patient with exactly one scholar, in steps
of strictly decreasing priority (no backtracking across steps):
1. Continuity - returning patients go back to yesterday's scholar.
2. Gender Gate - a restricted procedure limits the whole patient to same-gender scholars.
3. Fairness - heaviest patients first, to the tier furthest below its point target,
   then the same-gender, least-loaded scholar in that tier.
4. Capacity - the patient quota table, advisory by default or enforced in two phases.
"""

import logging
from typing import Dict, List, Optional

from models import Patient, Scholar
from .capacity import capacity_for
from .config import AllocationConfig, QuotaMode
from .constraints import AllocationIssue, ConstraintChecker, IssueKind
from .continuity import ContinuityMap, resolve_continuity
from .state import AllocationState

logger = logging.getLogger(__name__)


class WorkloadAllocator:
    """
    Main allocation engine.
    Ingests Demand (Patients) and Supply (Scholars), outputs one Assignment per scholar.
    A fresh instance is built per run; nothing is shared between runs.
    """

    def __init__(
        self,
        patients: List[Patient],
        scholars: List[Scholar],
        continuity_map: Optional[ContinuityMap] = None,
        config: Optional[AllocationConfig] = None
    ):
        self.config = config or AllocationConfig()
        self.patients = [p for p in patients if p.is_allocatable]
        self.scholars = list(scholars)
        self.continuity_map = dict(continuity_map or {})

        # Initialize Helpers
        self.checker = ConstraintChecker(self.scholars, self.config)
        self.state = AllocationState(self.scholars)

        # Points that the fairness pass distributes (set once continuity is done)
        self.fairness_pool = 0

    def run(self) -> AllocationState:
        """
        Execute the allocation pipeline.
        """
        logger.info(
            f"Allocating {len(self.patients)} patients across {len(self.scholars)} scholars "
            f"(quota mode: {self.config.quota_mode.value})"
        )

        if not self.scholars:
            for patient in self.patients:
                self._skip(self.checker.no_candidate_issue(patient))
            return self.state

        # 1. Continuity is absolute: it runs before any load comparison
        remaining = self._continuity_pass()

        # 2. Heaviest workload first; sort is stable so ties keep input order
        remaining.sort(key=lambda p: p.total_points, reverse=True)
        self.fairness_pool = sum(p.total_points for p in remaining)

        # 3. Fairness placement
        if self.config.quota_mode == QuotaMode.HARD:
            self._two_phase_pass(remaining)
        else:
            for patient in remaining:
                if not self._place(patient):
                    self._skip(self.checker.no_candidate_issue(patient))

        self._set_targets()

        stats = self.state.get_statistics()
        logger.info(
            f"Allocation done: {stats['assigned_patients']} placed "
            f"({stats['continuity_patients']} by continuity), {stats['skipped_patients']} skipped"
        )
        return self.state

    def _continuity_pass(self) -> List[Patient]:
        """
        Pin returning patients to yesterday's scholar.
        Returns the patients still needing fairness placement, in input order.
        """
        resolved = resolve_continuity(self.continuity_map, self.patients)
        remaining = []

        for patient in self.patients:
            scholar_name = resolved[patient.id]
            if scholar_name is None:
                remaining.append(patient)
                continue

            issue = self.checker.check_continuity(patient, scholar_name)
            if issue:
                logger.info(f"Continuity dropped for {patient.name}: {issue.reason}")
                self.state.record_issue(issue)
                remaining.append(patient)
                continue

            scholar = self.checker.scholars_by_name[scholar_name]
            self.state.add_booking(patient, scholar, via_continuity=True)
            logger.debug(f"Continuity: {patient.name} -> {scholar.name}")

        return remaining

    def _two_phase_pass(self, patients: List[Patient]) -> None:
        """
        Enforced capacity: fill to base quota first, then to max quota.
        Posted scholars go through both phases before non-posted ones are tried.
        Patients that fit nowhere after that are skipped.
        """
        pending = []
        for patient in patients:
            if self.checker.candidate_pools(patient):
                pending.append(patient)
            else:
                self._skip(self.checker.no_candidate_issue(patient))

        for posted in (True, False):
            for phase in (1, 2):
                if not pending:
                    break
                if phase == 2 or not posted:
                    logger.info(
                        f"Phase {phase} ({'posted' if posted else 'non-posted'}): "
                        f"{len(pending)} patients still unplaced"
                    )
                pending = [p for p in pending if not self._place(p, phase=phase, posted=posted)]

        for patient in pending:
            self._skip(AllocationIssue(
                IssueKind.QUOTA_EXHAUSTED,
                "Every eligible scholar is at max quota",
                patient.id, patient.name
            ))

    def _place(self, patient: Patient, phase: Optional[int] = None, posted: Optional[bool] = None) -> bool:
        """
        Try each candidate pool in order (posted, then non-posted).
        `posted` limits the attempt to one of the two pools.
        Returns True if the patient was booked.
        """
        for pool in self.checker.candidate_pools(patient):
            if posted is not None and pool[0].is_posted != posted:
                continue
            if phase is not None:
                pool = [
                    s for s in pool
                    if self.checker.within_quota(s, self.state.patient_count_for(s), phase)
                ]
            scholar = self._select_scholar(patient, pool)
            if scholar is None:
                continue

            self.state.add_booking(patient, scholar)
            logger.debug(f"Fairness: {patient.name} ({patient.total_points} pts) -> {scholar.name}")
            if phase is None:
                self._check_advisory_quota(patient, scholar)
            return True
        return False

    def _select_scholar(self, patient: Patient, pool: List[Scholar]) -> Optional[Scholar]:
        """
        Pick the neediest tier, then the best scholar inside it.
        Only tiers represented in the pool compete; the rest are never chosen.
        """
        if not pool:
            return None

        tiers = sorted({int(s.year) for s in pool})
        # max() keeps the first of equal deficits, so junior tiers win ties
        best_tier = max(tiers, key=self._tier_deficit)

        in_tier = [s for s in pool if int(s.year) == best_tier]
        same_gender = [s for s in in_tier if s.gender == patient.gender]
        bucket = same_gender or in_tier

        # min() keeps the first of equal loads, i.e. input order
        return min(bucket, key=self.state.points_for)

    def _tier_deficit(self, tier: int) -> float:
        target = self.fairness_pool * self.config.weight_for(tier)
        return target - self.state.tier_points[tier]

    def _check_advisory_quota(self, patient: Patient, scholar: Scholar) -> None:
        count = self.state.patient_count_for(scholar)
        max_quota = capacity_for(scholar.year).max_quota
        if count > max_quota:
            logger.warning(f"{scholar.name} now has {count} patients (max quota {max_quota})")
            self.state.record_issue(AllocationIssue(
                IssueKind.QUOTA_EXCEEDED,
                f"{scholar.name} holds {count} patients, above max quota {max_quota}",
                patient.id, patient.name, scholar.name
            ))

    def _skip(self, issue: AllocationIssue) -> None:
        logger.warning(f"Unassigned patient {issue.patient_name}: {issue.reason}")
        self.state.record_issue(issue)

    def _set_targets(self) -> None:
        """
        Each posted scholar's fair share of the whole day's point pool.
        Tier weights are renormalised over tiers that have posted scholars.
        """
        basis = [s for s in self.scholars if s.is_posted] or self.scholars
        by_tier: Dict[int, int] = {}
        for s in basis:
            by_tier[int(s.year)] = by_tier.get(int(s.year), 0) + 1

        weight_sum = sum(self.config.weight_for(t) for t in by_tier)
        if weight_sum <= 0:
            return

        day_points = sum(p.total_points for p in self.patients)
        basis_ids = {s.id for s in basis}
        for assignment in self.state.get_assignments():
            scholar = assignment.scholar
            if scholar.id not in basis_ids:
                continue
            tier = int(scholar.year)
            share = day_points * self.config.weight_for(tier) / weight_sum
            assignment.target_points = share / by_tier[tier]


def distribute_workload(
    patients: List[Patient],
    scholars: List[Scholar],
    continuity_map: Optional[ContinuityMap] = None,
    config: Optional[AllocationConfig] = None
) -> AllocationState:
    """Run one allocation and return its state (assignments, issues, statistics)."""
    return WorkloadAllocator(patients, scholars, continuity_map, config).run()
