import pandas as pd
import pytest

from backend.config import CleaningConfig
from backend.dal.init_db import init_db
from backend.dal.trip_dal import TripDAL
from backend.etl.processing.cleaner import TripCleaner

COORDINATE_COLUMNS = ["start_lat", "start_lng", "end_lat", "end_lng"]

TRIP_DEFAULTS = {
    "start_station_name": "A",
    "start_station_id": "TA1",
    "end_station_name": "B",
    "end_station_id": "TB1",
    "start_lat": 41.88,
    "start_lng": -87.63,
    "end_lat": 41.89,
    "end_lng": -87.64,
    "bike_type": "Classic",
    "user_type": "Member",
}


def build_trips(rows):
    df = pd.DataFrame([{**TRIP_DEFAULTS, **row} for row in rows])
    df["started_at"] = pd.to_datetime(df["started_at"])
    df["ended_at"] = pd.to_datetime(df["ended_at"])
    for col in COORDINATE_COLUMNS:
        df[col] = df[col].astype(float)
    return df


@pytest.fixture
def make_trips():
    return build_trips


@pytest.fixture
def stations():
    return pd.DataFrame({
        "station_name": ["A", "B"],
        "latitude": [41.881234, 41.892345],
        "longitude": [-87.629876, -87.641234],
        "first_seen": pd.to_datetime(["2020-04-01", "2021-05-15"]),
    })


@pytest.fixture
def config():
    return CleaningConfig("2022-01-01", "2022-12-31")


COHORT_ROWS = [
    {"ride_id": "m1", "started_at": "2022-06-06 08:00:00", "ended_at": "2022-06-06 08:10:00",
     "user_type": "Member", "bike_type": "Classic", "start_station_name": "A"},
    {"ride_id": "m2", "started_at": "2022-06-07 08:30:00", "ended_at": "2022-06-07 08:50:00",
     "user_type": "Member", "bike_type": "Electric", "start_station_name": "A"},
    {"ride_id": "c1", "started_at": "2022-06-11 14:00:00", "ended_at": "2022-06-11 14:30:00",
     "user_type": "Casual", "bike_type": "Classic", "start_station_name": "B"},
    {"ride_id": "c2", "started_at": "2022-07-10 15:00:00", "ended_at": "2022-07-10 16:00:00",
     "user_type": "Casual", "bike_type": "Docked", "start_station_name": "A"},
    {"ride_id": "c3", "started_at": "2022-07-10 16:00:00", "ended_at": "2022-07-10 16:40:00",
     "user_type": "Casual", "bike_type": "Classic", "start_station_name": "B"},
]


@pytest.fixture
def cleaned_trips(stations, config):
    cleaned, _ = TripCleaner.clean(build_trips(COHORT_ROWS), stations, config)
    return cleaned


@pytest.fixture
def seeded_db(tmp_path, cleaned_trips, stations):
    db_path = str(tmp_path / "bikeshare.db")
    init_db(db_path)
    dal = TripDAL(db_path)
    dal.insert_stations(stations)
    dal.insert_trips(cleaned_trips)
    return db_path
