"""
Allocation Engine configuration.

Defaults reproduce the ward's published rules: per-year weights of
21 / 15 / 7 points, Basti Karma restricted to same-gender scholars,
and the capacity table treated as advisory.
"""

import json
import os
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .capacity import validate_tier

# Per-year weights as published on the rules screen
YEAR_WEIGHTS: Dict[int, int] = {1: 21, 2: 15, 3: 7}


def _default_tier_weights() -> Dict[int, float]:
    total = sum(YEAR_WEIGHTS.values())
    return {tier: weight / total for tier, weight in YEAR_WEIGHTS.items()}


class QuotaMode(str, Enum):
    """How the capacity table participates in placement."""
    ADVISORY = "advisory"  # Point deficit decides; overruns are only reported
    HARD = "hard"          # Two phases (base, then max); patients that fit nowhere are skipped


class AllocationConfig(BaseModel):
    tier_weights: Dict[int, float] = Field(
        default_factory=_default_tier_weights,
        description="Fraction of the fairness point pool each tier should carry"
    )
    gender_restricted_codes: List[str] = Field(
        default_factory=lambda: ["basti-karma"],
        description="Procedure codes that require a same-gender scholar for the whole patient"
    )
    quota_mode: QuotaMode = Field(default=QuotaMode.ADVISORY)
    continuity_requires_posted: bool = Field(
        default=False,
        description="If True, continuity only sticks when yesterday's scholar is posted today"
    )

    @field_validator('tier_weights')
    @classmethod
    def validate_weights(cls, v):
        for tier, weight in v.items():
            validate_tier(tier)
            if weight < 0:
                raise ValueError(f"Tier weight for tier {tier} cannot be negative")
        if sum(v.values()) <= 0:
            raise ValueError("At least one tier weight must be positive")
        return v

    def weight_for(self, tier: int) -> float:
        return self.tier_weights.get(int(tier), 0.0)

    def is_restricted(self, code: str) -> bool:
        return code in self.gender_restricted_codes

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "AllocationConfig":
        with open(path, 'r') as f:
            return cls.model_validate(json.load(f))

    @classmethod
    def from_env(cls, base: Optional["AllocationConfig"] = None) -> "AllocationConfig":
        """
        Overlay environment overrides on a base config:
        ALLOCATOR_QUOTA_MODE=advisory|hard
        ALLOCATOR_RESTRICTED_CODES=basti-karma,matra-basti
        """
        data = (base or cls()).model_dump()
        mode = os.environ.get("ALLOCATOR_QUOTA_MODE")
        if mode:
            data["quota_mode"] = mode.strip().lower()
        codes = os.environ.get("ALLOCATOR_RESTRICTED_CODES")
        if codes is not None:
            data["gender_restricted_codes"] = [c.strip() for c in codes.split(",") if c.strip()]
        return cls.model_validate(data)
