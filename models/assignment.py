"""
Assignment data models for the Panchakarma Workload Allocator.

This module defines the 'Output' of the allocation engine:
one Assignment per scholar for the day, plus the per-day record
that the surrounding application persists keyed by date.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict
from datetime import date as date_type

from .patient import Gender, Patient, Procedure
from .scholar import Scholar


class AssignedProcedure(BaseModel):
    """One procedure handed to a scholar, tagged with the patient it belongs to."""
    patient_name: str = Field(min_length=1)
    patient_gender: Gender
    procedure: Procedure


class Assignment(BaseModel):
    """
    A scholar's workload for the day.
    Exists for every scholar in the run, even when empty.
    """
    scholar: Scholar = Field(description="The scholar owning this workload")
    procedures: List[AssignedProcedure] = Field(
        default_factory=list,
        description="Ordered (patient, procedure) pairs"
    )
    total_points: int = Field(default=0, ge=0, description="Running sum of procedure points")
    target_points: float = Field(default=0.0, ge=0.0, description="Fair share of the day's point pool")

    def add_patient(self, patient: Patient) -> int:
        """
        Append all of a patient's procedures to this workload.
        Returns the number of points added.
        """
        added = 0
        for procedure in patient.procedures:
            self.procedures.append(AssignedProcedure(
                patient_name=patient.name,
                patient_gender=patient.gender,
                procedure=procedure,
            ))
            added += procedure.points
        self.total_points += added
        return added

    @property
    def patient_names(self) -> List[str]:
        """Distinct patient names in first-seen order."""
        seen: List[str] = []
        for item in self.procedures:
            if item.patient_name not in seen:
                seen.append(item.patient_name)
        return seen

    @property
    def patient_count(self) -> int:
        return len(self.patient_names)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "scholar": {"id": "s3", "name": "Dr. Kamini", "year": 1, "gender": "F", "is_posted": True},
            "procedures": [
                {
                    "patient_name": "Rajkumari",
                    "patient_gender": "F",
                    "procedure": {"id": "pt_006-p0", "name": "Basti Karma (Karma Kal)",
                                  "code": "basti-karma", "grade": 1, "points": 3}
                }
            ],
            "total_points": 3,
            "target_points": 4.2
        }
    })


class DayRecord(BaseModel):
    """
    Everything the surrounding application stores for one calendar day.
    Past records are only read to derive the next day's continuity map.
    """
    date: date_type = Field(description="Calendar date of the record")
    assignments: List[Assignment] = Field(default_factory=list)
    patients: Optional[List[Patient]] = Field(default=None)
    scholars: Optional[List[Scholar]] = Field(default=None)

    @property
    def has_assignments(self) -> bool:
        return any(a.procedures for a in self.assignments)
