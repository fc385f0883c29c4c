"""
Patient and Procedure data models for the Panchakarma Workload Allocator.

This module defines the 'Demand' side of the allocator:
the patients admitted for the day and the graded procedures they need.
"""

from enum import Enum
from typing import List
from pydantic import BaseModel, Field, model_validator, ConfigDict


class Gender(str, Enum):
    """Gender of a patient or scholar. Drives same-gender matching."""
    MALE = "M"
    FEMALE = "F"


class Procedure(BaseModel):
    """
    A single graded procedure instance for a patient.
    Points are denormalized from the catalog so downstream code never re-looks them up.
    """
    id: str = Field(description="Unique identifier of this procedure instance")
    name: str = Field(min_length=1, description="Canonical display name from the catalog")
    code: str = Field(min_length=1, description="Stable catalog code (slug of the canonical name)")
    grade: int = Field(ge=1, le=3, description="1=High intensity, 3=Low intensity")
    points: int = Field(ge=1, description="Workload points carried by this procedure")

    model_config = ConfigDict(frozen=True, json_schema_extra={
        "example": {
            "id": "pt_001-p0",
            "name": "Basti Karma (Karma Kal)",
            "code": "basti-karma",
            "grade": 1,
            "points": 3
        }
    })


class Patient(BaseModel):
    """
    A patient entered for the day.
    Attendants accompany a patient and consume no procedures.
    """
    id: str = Field(description="Unique identifier")
    name: str = Field(min_length=1, description="Patient name (continuity is keyed on this)")
    gender: Gender = Field(description="Patient gender")
    procedures: List[Procedure] = Field(
        default_factory=list,
        description="Ordered procedures for the day"
    )
    is_attendant: bool = Field(default=False, description="Attendants are excluded from allocation")

    @model_validator(mode='after')
    def validate_attendant(self):
        if self.is_attendant and self.procedures:
            raise ValueError("Attendants cannot carry procedures")
        return self

    @property
    def total_points(self) -> int:
        return sum(p.points for p in self.procedures)

    @property
    def is_allocatable(self) -> bool:
        """True if the engine should place this patient at all."""
        return not self.is_attendant and bool(self.procedures)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "pt_004",
            "name": "Champa",
            "gender": "F",
            "procedures": [
                {"id": "pt_004-p0", "name": "Sthanika Abhyanga + Potali Swedana",
                 "code": "sthanika-abhyanga-potali-swedana", "grade": 2, "points": 2},
                {"id": "pt_004-p1", "name": "Basti Karma (Karma Kal)",
                 "code": "basti-karma", "grade": 1, "points": 3}
            ],
            "is_attendant": False
        }
    })
