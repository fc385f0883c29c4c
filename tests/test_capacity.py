"""
Tests for the capacity policy and engine configuration
"""

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from scheduler.capacity import InvalidTierError, TierCapacity, capacity_for, quota_for_phase
from scheduler.config import AllocationConfig, QuotaMode, YEAR_WEIGHTS


class TestCapacityTable:

    @pytest.mark.parametrize("tier,base,maximum", [(1, 3, 4), (2, 2, 3), (3, 1, 2)])
    def test_table(self, tier, base, maximum):
        assert capacity_for(tier) == TierCapacity(base_quota=base, max_quota=maximum)

    def test_phases(self):
        assert quota_for_phase(1, 1) == 3
        assert quota_for_phase(1, 2) == 4

    def test_unknown_tier_is_fatal(self):
        with pytest.raises(InvalidTierError):
            capacity_for(4)

    def test_unknown_phase(self):
        with pytest.raises(ValueError):
            quota_for_phase(1, 3)


class TestAllocationConfig:

    def test_default_weights_are_fractions(self):
        config = AllocationConfig()
        assert sum(config.tier_weights.values()) == pytest.approx(1.0)
        assert config.weight_for(1) == pytest.approx(YEAR_WEIGHTS[1] / 43)
        assert config.weight_for(1) > config.weight_for(2) > config.weight_for(3)

    def test_defaults(self):
        config = AllocationConfig()
        assert config.quota_mode == QuotaMode.ADVISORY
        assert config.is_restricted("basti-karma")
        assert not config.is_restricted("nasya")
        assert config.continuity_requires_posted is False

    def test_rejects_unknown_tier(self):
        with pytest.raises(ValidationError):
            AllocationConfig(tier_weights={1: 0.5, 4: 0.5})

    def test_rejects_negative_weight(self):
        with pytest.raises(ValidationError):
            AllocationConfig(tier_weights={1: 1.0, 2: -0.1})

    def test_from_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"tier_weights": {"1": 0.5, "2": 0.3, "3": 0.2}, "quota_mode": "hard"}))
        config = AllocationConfig.from_file(path)
        assert config.weight_for(2) == pytest.approx(0.3)
        assert config.quota_mode == QuotaMode.HARD

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("ALLOCATOR_QUOTA_MODE", "HARD")
        monkeypatch.setenv("ALLOCATOR_RESTRICTED_CODES", "basti-karma, matra-basti")
        config = AllocationConfig.from_env()
        assert config.quota_mode == QuotaMode.HARD
        assert config.gender_restricted_codes == ["basti-karma", "matra-basti"]

    def test_from_env_without_overrides(self, monkeypatch):
        monkeypatch.delenv("ALLOCATOR_QUOTA_MODE", raising=False)
        monkeypatch.delenv("ALLOCATOR_RESTRICTED_CODES", raising=False)
        assert AllocationConfig.from_env() == AllocationConfig()
