"""Shared fixtures: isolated configuration and small keyword datasets."""

from unittest.mock import patch

import pytest

from trend_calendar import config_manager
from trend_calendar.models import KeywordSeries

CONFIG_ENV_VARS = [name for name, _, _ in config_manager.ENV_OVERRIDES] + ["TREND_CONFIG_FILE"]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Build configuration from defaults only; no .env file, no real keys."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    with patch.object(config_manager, "load_dotenv"):
        config_manager.get_config(refresh=True)
        yield
        config_manager.get_config(refresh=True)


@pytest.fixture
def openai_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    with patch.object(config_manager, "load_dotenv"):
        config_manager.get_config(refresh=True)
    return "sk-test"


@pytest.fixture
def vat_series():
    """부가세: positive average 1,000 and 5,000 searches in 2025-07."""
    return KeywordSeries(
        keyword="부가세",
        monthly_data={
            "2025-01": 0,
            "2025-02": 200,
            "2025-03": 200,
            "2025-04": 200,
            "2025-05": 200,
            "2025-06": 200,
            "2025-07": 5000,
        },
        male_percent=56.0,
        female_percent=44.0,
        age_groups={"20대": 15.0, "30대": 30.0},
    )


@pytest.fixture
def dataset(vat_series):
    return {
        "부가세": vat_series,
        "알바": KeywordSeries(
            keyword="알바",
            monthly_data={"2025-05": 300, "2025-06": 200, "2025-07": 300},
            male_percent=47.0,
            female_percent=53.0,
            age_groups={"20대": 40.0},
        ),
        "여행자보험": KeywordSeries(
            keyword="여행자보험",
            monthly_data={"2025-06": 100, "2025-07": 100},
        ),
    }
