# backend\config.py
# Pipeline Configuration: Collection window, duration bounds, timezone and file locations for the cleaning run.

import os

import pandas as pd

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_TIMEZONE = "America/Chicago"
DEFAULT_MIN_DURATION_SECONDS = 60
DEFAULT_MAX_DURATION_SECONDS = 86000


def get_db_path():
    return os.environ.get(
        "BIKESHARE_DB_PATH",
        os.path.join(BASE_DIR, "database", "bikeshare.db"),
    )


class CleaningConfig:
    """Options for one cleaning run.

    start_date / end_date bound the expected monthly input files (inclusive).
    window_cutoff defaults to midnight following end_date; dst_fallback_date
    defaults to the fall-back date of `timezone` inside the window.
    """

    def __init__(self, start_date, end_date, window_cutoff=None,
                 min_duration_seconds=DEFAULT_MIN_DURATION_SECONDS,
                 max_duration_seconds=DEFAULT_MAX_DURATION_SECONDS,
                 dst_fallback_date=None, timezone=DEFAULT_TIMEZONE,
                 data_dir=None, stations_path=None, db_path=None,
                 report_path=None, log_dir=None):
        self.start_date = pd.Timestamp(start_date).normalize()
        self.end_date = pd.Timestamp(end_date).normalize()
        if self.start_date > self.end_date:
            raise ValueError(f"start_date {self.start_date.date()} is after end_date {self.end_date.date()}")

        if window_cutoff is None:
            self.window_cutoff = self.end_date + pd.Timedelta(days=1)
        else:
            self.window_cutoff = pd.Timestamp(window_cutoff)

        self.min_duration_seconds = float(min_duration_seconds)
        self.max_duration_seconds = float(max_duration_seconds)
        if self.min_duration_seconds >= self.max_duration_seconds:
            raise ValueError("min_duration_seconds must be smaller than max_duration_seconds")

        self.timezone = timezone
        if dst_fallback_date is None:
            self.dst_fallback_date = find_fallback_date(self.start_date, self.end_date, timezone)
        else:
            self.dst_fallback_date = pd.Timestamp(dst_fallback_date).normalize()

        self.data_dir = data_dir or os.path.join(BASE_DIR, "data", "raw")
        self.stations_path = stations_path or os.path.join(BASE_DIR, "data", "stations.csv")
        self.db_path = db_path or get_db_path()
        self.report_path = report_path or os.path.join(os.path.dirname(self.db_path), "cleaning_report.json")
        self.log_dir = log_dir or os.path.join(BASE_DIR, "data", "logs")

    @classmethod
    def from_env(cls):
        """Builds the config from BIKESHARE_* environment variables"""
        env = os.environ
        return cls(
            start_date=env.get("BIKESHARE_START_DATE", "2021-09-01"),
            end_date=env.get("BIKESHARE_END_DATE", "2022-08-31"),
            window_cutoff=env.get("BIKESHARE_WINDOW_CUTOFF") or None,
            min_duration_seconds=env.get("BIKESHARE_MIN_DURATION_SECONDS", DEFAULT_MIN_DURATION_SECONDS),
            max_duration_seconds=env.get("BIKESHARE_MAX_DURATION_SECONDS", DEFAULT_MAX_DURATION_SECONDS),
            dst_fallback_date=env.get("BIKESHARE_DST_FALLBACK_DATE") or None,
            timezone=env.get("BIKESHARE_TIMEZONE", DEFAULT_TIMEZONE),
            data_dir=env.get("BIKESHARE_DATA_DIR"),
            stations_path=env.get("BIKESHARE_STATIONS_PATH"),
            db_path=env.get("BIKESHARE_DB_PATH"),
            report_path=env.get("BIKESHARE_REPORT_PATH"),
            log_dir=env.get("BIKESHARE_LOG_DIR"),
        )

    def expected_months(self):
        """First-of-month timestamps covered by the window"""
        return list(pd.date_range(self.start_date.replace(day=1), self.end_date, freq="MS"))


def find_fallback_date(start_date, end_date, timezone):
    """Returns the first date in [start_date, end_date] on which clocks fall back, or None"""
    # One extra day so a transition on end_date itself is still visible
    midnights = pd.date_range(start_date, pd.Timestamp(end_date) + pd.Timedelta(days=1), freq="D")
    local = midnights.tz_localize(timezone, ambiguous="NaT", nonexistent="shift_forward")
    offsets = [ts.utcoffset() if ts is not pd.NaT else None for ts in local]

    for i in range(len(offsets) - 1):
        today, tomorrow = offsets[i], offsets[i + 1]
        if today is not None and tomorrow is not None and tomorrow < today:
            return midnights[i]
    return None
