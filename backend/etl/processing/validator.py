# backend\etl\processing\validator.py
# Batch Validation Module: Rejects trip batches and station tables that cannot be cleaned without guessing.

import pandas as pd

BIKE_TYPES = ("Classic", "Docked", "Electric")
USER_TYPES = ("Member", "Casual")

TIMESTAMP_COLUMNS = ["started_at", "ended_at"]
COORDINATE_COLUMNS = ["start_lat", "start_lng", "end_lat", "end_lng"]
REQUIRED_TRIP_COLUMNS = [
    "ride_id", "started_at", "ended_at",
    "start_station_name", "end_station_name",
    "bike_type", "user_type",
]
REQUIRED_STATION_COLUMNS = ["station_name", "latitude", "longitude"]


class CleaningError(Exception):
    """Base class for failures that abort a cleaning run"""


class SchemaError(CleaningError):
    def __init__(self, column, observed):
        self.column = column
        self.observed = observed
        super().__init__(f"Schema violation in column '{column}': observed {observed}")


class DuplicateRideIdError(CleaningError):
    def __init__(self, ride_ids):
        self.ride_ids = list(ride_ids)
        preview = ", ".join(str(r) for r in self.ride_ids[:10])
        super().__init__(f"{len(self.ride_ids)} duplicated ride_id value(s): {preview}")


class ReferentialAmbiguityError(CleaningError):
    def __init__(self, station_names):
        self.station_names = list(station_names)
        preview = ", ".join(self.station_names[:10])
        super().__init__(f"Reference stations mapped to conflicting coordinates: {preview}")


class MissingMonthError(CleaningError):
    def __init__(self, missing_files):
        self.missing_files = list(missing_files)
        super().__init__(f"Missing monthly trip files: {', '.join(self.missing_files)}")


class BatchValidator:
    """Fatal checks run before any cleaning stage"""

    @staticmethod
    def validate_trips(df):
        for col in REQUIRED_TRIP_COLUMNS:
            if col not in df.columns:
                raise SchemaError(col, "missing column")

        for col in TIMESTAMP_COLUMNS:
            if not pd.api.types.is_datetime64_any_dtype(df[col]):
                raise SchemaError(col, str(df[col].dtype))

        # Coordinates are optional, but must be numeric when present
        for col in COORDINATE_COLUMNS:
            if col in df.columns and not pd.api.types.is_numeric_dtype(df[col]):
                raise SchemaError(col, str(df[col].dtype))

        for col, allowed in (("bike_type", BIKE_TYPES), ("user_type", USER_TYPES)):
            unknown = set(df[col].dropna().unique()) - set(allowed)
            if unknown:
                raise SchemaError(col, f"unexpected values {sorted(map(str, unknown))}")

        duplicated = df.loc[df["ride_id"].duplicated(keep=False), "ride_id"].unique()
        if len(duplicated):
            raise DuplicateRideIdError(duplicated)

    @staticmethod
    def validate_stations(df):
        for col in REQUIRED_STATION_COLUMNS:
            if col not in df.columns:
                raise SchemaError(col, "missing column")
        for col in ("latitude", "longitude"):
            if not pd.api.types.is_numeric_dtype(df[col]):
                raise SchemaError(col, str(df[col].dtype))

        # Re-activated stations may repeat, but only with the same coordinates
        coords = df[REQUIRED_STATION_COLUMNS].drop_duplicates()
        conflicting = coords.loc[coords["station_name"].duplicated(keep=False), "station_name"].unique()
        if len(conflicting):
            raise ReferentialAmbiguityError(sorted(conflicting))
