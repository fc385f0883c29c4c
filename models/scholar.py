"""
Scholar (trainee staff) data models for the Panchakarma Workload Allocator.

This module defines the 'Supply' side of the allocator:
post-graduate scholars grouped by year of training.
"""

from enum import IntEnum
from pydantic import BaseModel, Field, ConfigDict

from .patient import Gender


class SeniorityTier(IntEnum):
    """Year of training. Junior years carry the larger share of the workload."""
    FIRST_YEAR = 1
    SECOND_YEAR = 2
    THIRD_YEAR = 3


class Scholar(BaseModel):
    """
    A trainee who can be assigned procedures.
    Long-lived across days; only 'is_posted' changes from day to day.
    """
    id: str = Field(description="Unique identifier")
    name: str = Field(min_length=1, description="Display name, e.g. 'Dr. Kamini'")
    year: SeniorityTier = Field(description="Seniority tier (1, 2 or 3)")
    gender: Gender = Field(description="Scholar gender")
    is_posted: bool = Field(default=True, description="On duty and eligible for assignment today")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "id": "s3",
            "name": "Dr. Kamini",
            "year": 1,
            "gender": "F",
            "is_posted": True
        }
    })
