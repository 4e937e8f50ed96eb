"""Tests for core/config.py - pipeline tunables."""

import pytest
from pydantic import ValidationError

from core.config import PipelineConfig


class TestPipelineConfig:
    def test_defaults(self):
        config = PipelineConfig()
        assert config.match_floor_percent == 30
        assert config.medium_confidence_percent == 60
        assert config.high_confidence_percent == 80
        assert config.max_suggestions == 3
        assert config.deal_initial_stage == "discovery"
        assert config.deal_close_days == 30

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValidationError, match="floor <= medium <= high"):
            PipelineConfig(medium_confidence_percent=90)

    def test_bounds(self):
        with pytest.raises(ValidationError):
            PipelineConfig(max_suggestions=0)
