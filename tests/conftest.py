"""Shared fixtures for the deadline engine tests."""

from datetime import date

import pytest

from deadline_engine.config import EngineSettings
from deadline_engine.models import CompanyAnchorData
from deadline_engine.preview import PreviewAggregator


@pytest.fixture
def settings() -> EngineSettings:
    return EngineSettings(render_cap=24, per_rule_cap=12)


@pytest.fixture
def aggregator(settings: EngineSettings) -> PreviewAggregator:
    return PreviewAggregator(settings)


@pytest.fixture
def today() -> date:
    return date(2024, 1, 10)


@pytest.fixture
def dec_fye() -> CompanyAnchorData:
    return CompanyAnchorData(fye_month=12, fye_day=31)
