import pandas as pd
import pytest

from backend.config import CleaningConfig, find_fallback_date


def test_defaults():
    config = CleaningConfig("2021-09-01", "2022-08-31")

    assert config.window_cutoff == pd.Timestamp("2022-09-01")
    assert config.min_duration_seconds == 60
    assert config.max_duration_seconds == 86000
    assert config.timezone == "America/Chicago"
    assert config.dst_fallback_date == pd.Timestamp("2021-11-07")
    assert len(config.expected_months()) == 12


def test_explicit_overrides():
    config = CleaningConfig("2022-01-01", "2022-12-31",
                            window_cutoff="2023-01-01 06:00",
                            dst_fallback_date="2022-11-06")
    assert config.window_cutoff == pd.Timestamp("2023-01-01 06:00")
    assert config.dst_fallback_date == pd.Timestamp("2022-11-06")


def test_fallback_date_lookup():
    assert find_fallback_date("2022-01-01", "2022-12-31", "America/Chicago") == pd.Timestamp("2022-11-06")
    assert find_fallback_date("2022-01-01", "2022-06-30", "America/Chicago") is None
    assert find_fallback_date("2022-01-01", "2022-12-31", "UTC") is None


def test_invalid_ranges():
    with pytest.raises(ValueError):
        CleaningConfig("2022-08-31", "2021-09-01")
    with pytest.raises(ValueError):
        CleaningConfig("2021-09-01", "2022-08-31", min_duration_seconds=100, max_duration_seconds=50)


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("BIKESHARE_START_DATE", "2022-01-01")
    monkeypatch.setenv("BIKESHARE_END_DATE", "2022-03-31")
    monkeypatch.setenv("BIKESHARE_MIN_DURATION_SECONDS", "120")
    monkeypatch.setenv("BIKESHARE_DB_PATH", str(tmp_path / "trips.db"))

    config = CleaningConfig.from_env()

    assert config.end_date == pd.Timestamp("2022-03-31")
    assert config.min_duration_seconds == 120
    assert config.dst_fallback_date is None
    assert config.db_path == str(tmp_path / "trips.db")
    assert config.report_path == str(tmp_path / "cleaning_report.json")
