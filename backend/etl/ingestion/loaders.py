# backend\etl\ingestion\loaders.py
# Data Ingestion Module: Loads monthly bike-share trip files and the active station registry from CSV.

import logging
import os

import pandas as pd

from backend.etl.features.feature_engineer import FeatureEngineer
from backend.etl.processing.validator import MissingMonthError

logger = logging.getLogger("DataLoader")

TRIP_FILE_PATTERN = "{:%Y%m}-divvy-tripdata.csv"

TRIP_DTYPES = {
    "ride_id": str,
    "start_station_name": str,
    "start_station_id": str,
    "end_station_name": str,
    "end_station_id": str,
    "start_lat": "float64",
    "start_lng": "float64",
    "end_lat": "float64",
    "end_lng": "float64",
}
TRIP_DATE_COLUMNS = ["started_at", "ended_at"]


class DataLoader:
    """Base class for data ingestion"""
    def __init__(self, file_path):
        self.file_path = file_path

    def load(self):
        raise NotImplementedError("Subclasses must implement load()")


class CSVLoader(DataLoader):
    """Loads a single CSV file"""
    def load(self, chunksize=None, **kwargs):
        logger.info(f"Loading CSV from: {self.file_path}")
        return pd.read_csv(self.file_path, chunksize=chunksize, **kwargs)


class TripLoader(DataLoader):
    """Loads and concatenates the monthly trip files of a collection window"""
    def __init__(self, data_dir, start_date, end_date):
        super().__init__(data_dir)
        self.start_date = pd.Timestamp(start_date)
        self.end_date = pd.Timestamp(end_date)

    def expected_files(self):
        months = pd.date_range(self.start_date.replace(day=1), self.end_date, freq="MS")
        return [os.path.join(self.file_path, TRIP_FILE_PATTERN.format(m)) for m in months]

    def load(self):
        paths = self.expected_files()
        missing = [os.path.basename(p) for p in paths if not os.path.exists(p)]
        if missing:
            raise MissingMonthError(missing)

        frames = []
        for path in paths:
            frame = CSVLoader(path).load(dtype=TRIP_DTYPES, parse_dates=TRIP_DATE_COLUMNS)
            logger.info(f"  {os.path.basename(path)}: {len(frame)} rows")
            frames.append(frame)

        trips = pd.concat(frames, ignore_index=True)
        trips = FeatureEngineer.recode_categories(trips)
        logger.info(f"Loaded {len(trips)} trips from {len(paths)} monthly files")
        return trips


class StationLoader(DataLoader):
    """Loads the active station registry (station_name, latitude, longitude, first_seen)"""
    def load(self):
        stations = CSVLoader(self.file_path).load(
            dtype={"station_name": str},
            parse_dates=["first_seen"],
        )
        logger.info(f"Loaded {len(stations)} reference stations")
        return stations
