# backend\etl\features\feature_engineer.py
# Feature Engineering Module: Recodes rider/bike categories and derives ride duration and calendar fields.

import numpy as np
import pandas as pd

BIKE_TYPE_LABELS = {
    "classic_bike": "Classic",
    "docked_bike": "Docked",
    "electric_bike": "Electric",
}
USER_TYPE_LABELS = {
    "member": "Member",
    "casual": "Casual",
}
RAW_COLUMN_NAMES = {
    "rideable_type": "bike_type",
    "member_casual": "user_type",
}


class FeatureEngineer:
    """Calculates derived features for the trip dataset"""

    @staticmethod
    def recode_categories(df):
        """Renames raw Divvy category columns and maps their values to display labels"""
        df = df.rename(columns=RAW_COLUMN_NAMES)
        for col, labels in (("bike_type", BIKE_TYPE_LABELS), ("user_type", USER_TYPE_LABELS)):
            if col in df.columns:
                # Already-recoded labels pass through unchanged
                df[col] = df[col].replace(labels)
        return df

    @staticmethod
    def add_time_features(df, timezone):
        """Adds duration and started_at calendar features, read in the given civil timezone"""
        df = df.copy()

        # Naive wall-clock difference; DST fall-back produces negatives here
        df['duration_seconds'] = (df['ended_at'] - df['started_at']).dt.total_seconds()

        # Repeated fall-back hour is read as standard time
        local = df['started_at'].dt.tz_localize(
            timezone,
            ambiguous=np.zeros(len(df), dtype=bool),
            nonexistent='shift_forward',
        )
        wall = local.dt.tz_localize(None)

        df['month'] = wall.dt.to_period('M').dt.to_timestamp()
        df['hour'] = local.dt.hour
        df['weekday'] = local.dt.day_name()
        df['day'] = local.dt.day

        return df
