"""
Hard Constraint Validation Logic.

This module answers the binary question: "May Scholar X take Patient Y?"
It enforces the same-gender rule for restricted procedures, builds the
posted / non-posted candidate pools, and gates patient quotas.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from models import Patient, Scholar
from .capacity import quota_for_phase
from .config import AllocationConfig


class IssueKind(str, Enum):
    """What went wrong (or was bent) while placing a patient."""
    NO_STAFF = "NoStaff"
    NO_GENDER_MATCH = "NoGenderMatch"
    QUOTA_EXHAUSTED = "QuotaExhausted"
    CONTINUITY_DROPPED = "ContinuityDropped"
    CONTINUITY_GENDER_CONFLICT = "ContinuityGenderConflict"
    QUOTA_EXCEEDED = "QuotaExceeded"

    @property
    def is_terminal(self) -> bool:
        """Terminal issues mean the patient's procedures were not assigned."""
        return self in (IssueKind.NO_STAFF, IssueKind.NO_GENDER_MATCH, IssueKind.QUOTA_EXHAUSTED)


@dataclass
class AllocationIssue:
    """Detailed reason attached to a patient."""
    kind: IssueKind
    reason: str
    patient_id: str
    patient_name: str
    scholar_name: Optional[str] = None


class ConstraintChecker:
    """
    Validates hard constraints for patient placement.
    """

    def __init__(self, scholars: List[Scholar], config: AllocationConfig):
        self.config = config
        self.scholars = scholars
        # Index by name for continuity lookups; first wins on duplicate names
        self.scholars_by_name = {}
        for s in scholars:
            self.scholars_by_name.setdefault(s.name, s)

    def requires_same_gender(self, patient: Patient) -> bool:
        """One restricted procedure binds the entire patient."""
        return any(self.config.is_restricted(p.code) for p in patient.procedures)

    def candidate_pools(self, patient: Patient) -> List[List[Scholar]]:
        """
        Ordered pools to try: posted scholars first, then non-posted.
        For restricted patients both pools keep same-gender scholars only.
        Empty pools are dropped; input order is preserved inside a pool.
        """
        restricted = self.requires_same_gender(patient)
        pools = []
        for posted in (True, False):
            pool = [
                s for s in self.scholars
                if s.is_posted == posted and (not restricted or s.gender == patient.gender)
            ]
            if pool:
                pools.append(pool)
        return pools

    def check_continuity(self, patient: Patient, scholar_name: Optional[str]) -> Optional[AllocationIssue]:
        """
        Returns None if the patient may stay with yesterday's scholar,
        otherwise the reason continuity is dropped.
        """
        if scholar_name is None:
            return None

        scholar = self.scholars_by_name.get(scholar_name)
        if scholar is None:
            return AllocationIssue(
                IssueKind.CONTINUITY_DROPPED,
                f"{scholar_name} is not in today's scholar list",
                patient.id, patient.name, scholar_name
            )

        if self.config.continuity_requires_posted and not scholar.is_posted:
            return AllocationIssue(
                IssueKind.CONTINUITY_DROPPED,
                f"{scholar_name} is not posted today",
                patient.id, patient.name, scholar_name
            )

        if self.requires_same_gender(patient) and scholar.gender != patient.gender:
            return AllocationIssue(
                IssueKind.CONTINUITY_GENDER_CONFLICT,
                f"{scholar_name} cannot take a gender-restricted procedure for {patient.name}",
                patient.id, patient.name, scholar_name
            )
        return None

    def within_quota(self, scholar: Scholar, patient_count: int, phase: int) -> bool:
        """True if the scholar can take one more patient in this phase."""
        return patient_count < quota_for_phase(scholar.year, phase)

    def no_candidate_issue(self, patient: Patient) -> AllocationIssue:
        """Explain why a patient has no candidate pool at all."""
        if not self.scholars:
            return AllocationIssue(
                IssueKind.NO_STAFF, "No scholars available", patient.id, patient.name
            )
        return AllocationIssue(
            IssueKind.NO_GENDER_MATCH,
            f"Gender-restricted procedure and no {patient.gender.value} scholar on the roster",
            patient.id, patient.name
        )
