"""
Capacity Policy.

Two-phase patient quotas per seniority tier. Phase 1 fills every scholar up to
its base quota; Phase 2 lets them grow to the max quota. Quotas count patients,
not points.
"""

from typing import Dict, NamedTuple

from models import SeniorityTier


class InvalidTierError(ValueError):
    """Raised for a tier outside {1, 2, 3}. Always a programming error."""


class TierCapacity(NamedTuple):
    base_quota: int
    max_quota: int


CAPACITY_TABLE: Dict[SeniorityTier, TierCapacity] = {
    SeniorityTier.FIRST_YEAR: TierCapacity(base_quota=3, max_quota=4),
    SeniorityTier.SECOND_YEAR: TierCapacity(base_quota=2, max_quota=3),
    SeniorityTier.THIRD_YEAR: TierCapacity(base_quota=1, max_quota=2),
}


def validate_tier(tier: int) -> SeniorityTier:
    try:
        return SeniorityTier(tier)
    except ValueError:
        raise InvalidTierError(f"Unknown seniority tier: {tier!r}") from None


def capacity_for(tier: int) -> TierCapacity:
    """Return (base_quota, max_quota) for a tier."""
    return CAPACITY_TABLE[validate_tier(tier)]


def quota_for_phase(tier: int, phase: int) -> int:
    """Patient limit for a tier in allocation phase 1 (base) or 2 (max)."""
    capacity = capacity_for(tier)
    if phase == 1:
        return capacity.base_quota
    if phase == 2:
        return capacity.max_quota
    raise ValueError(f"Unknown allocation phase: {phase!r}")
