"""
Allocator State Management.

This module acts as the 'Memory' of a single allocation run.
It tracks:
1. One Assignment per scholar (created empty up front).
2. Tier point totals from the fairness pass (drives the deficit).
3. Continuity placements and every issue raised on the way.
"""

from typing import Any, Dict, List
from collections import defaultdict

from models import Assignment, Patient, Scholar
from .constraints import AllocationIssue


class AllocationState:
    """
    Maintains the mutable state of the engine during one run.
    Never shared across runs.
    """

    def __init__(self, scholars: List[Scholar]):
        ids = [s.id for s in scholars]
        if len(ids) != len(set(ids)):
            raise ValueError("Scholar ids must be unique within a run")

        # The Master Result: insertion order == scholar input order
        self.assignments: Dict[str, Assignment] = {
            s.id: Assignment(scholar=s) for s in scholars
        }

        # Fairness-pass points per tier (continuity placements excluded)
        self.tier_points: Dict[int, int] = defaultdict(int)

        self.continuity_placements: List[str] = []
        self.fairness_placements: List[str] = []
        self.issues: List[AllocationIssue] = []
        self.skipped_patients: Dict[str, AllocationIssue] = {}

    def add_booking(self, patient: Patient, scholar: Scholar, via_continuity: bool = False) -> None:
        """Commit a whole patient to a scholar."""
        points = self.assignments[scholar.id].add_patient(patient)
        if via_continuity:
            self.continuity_placements.append(patient.id)
        else:
            self.tier_points[int(scholar.year)] += points
            self.fairness_placements.append(patient.id)

    def record_issue(self, issue: AllocationIssue) -> None:
        self.issues.append(issue)
        if issue.kind.is_terminal:
            self.skipped_patients[issue.patient_id] = issue

    # --- Query Methods (Used by the engine) ---

    def points_for(self, scholar: Scholar) -> int:
        return self.assignments[scholar.id].total_points

    def patient_count_for(self, scholar: Scholar) -> int:
        return self.assignments[scholar.id].patient_count

    def get_assignments(self) -> List[Assignment]:
        """One Assignment per scholar, in scholar input order."""
        return list(self.assignments.values())

    # --- Reporting Methods ---

    def get_statistics(self) -> Dict[str, Any]:
        assignments = self.get_assignments()
        total_points = sum(a.total_points for a in assignments)
        kind_counts: Dict[str, int] = defaultdict(int)
        for issue in self.issues:
            kind_counts[issue.kind.value] += 1

        return {
            "scholars": len(assignments),
            "assigned_patients": len(self.continuity_placements) + len(self.fairness_placements),
            "continuity_patients": len(self.continuity_placements),
            "fairness_patients": len(self.fairness_placements),
            "skipped_patients": len(self.skipped_patients),
            "total_procedures": sum(len(a.procedures) for a in assignments),
            "total_points": total_points,
            "points_by_scholar": {a.scholar.name: a.total_points for a in assignments},
            "tier_points": dict(sorted(self.tier_points.items())),
            "issue_counts": dict(kind_counts),
        }

    def get_failure_report(self) -> List[Dict[str, Any]]:
        """
        Human-readable list of every skipped patient and why.
        Advisory issues are listed after terminal ones.
        """
        report = []
        for issue in self.issues:
            report.append({
                "patient_id": issue.patient_id,
                "patient_name": issue.patient_name,
                "kind": issue.kind.value,
                "terminal": issue.kind.is_terminal,
                "scholar_name": issue.scholar_name,
                "reason": issue.reason,
            })
        report.sort(key=lambda r: not r["terminal"])
        return report
