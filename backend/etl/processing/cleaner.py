# backend\etl\processing\cleaner.py
# Data Cleaning Module: Ordered filter/repair rules for raw bike-share trips, each returning a new table and an audit entry.

import logging

import pandas as pd

from backend.etl.features.feature_engineer import FeatureEngineer
from backend.etl.processing.validator import BatchValidator, CleaningError

logger = logging.getLogger("DataCleaner")

SECONDS_PER_HOUR = 3600


class StageReport:
    """What one stage removed or adjusted"""

    def __init__(self, name, rows_in, rows_out, removed_ids=None, adjusted=0, details=None):
        self.name = name
        self.rows_in = rows_in
        self.rows_out = rows_out
        self.removed_ids = list(removed_ids) if removed_ids is not None else []
        self.adjusted = adjusted
        self.details = details or {}

    @property
    def removed(self):
        return self.rows_in - self.rows_out

    def to_dict(self):
        return {
            "stage": self.name,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "removed": self.removed,
            "adjusted": self.adjusted,
            "removed_ids": [str(r) for r in self.removed_ids],
            "details": self.details,
        }


class CleaningReport:
    """Audit trail of a cleaning run, in stage order"""

    def __init__(self):
        self.stages = []

    def add(self, stage_report):
        self.stages.append(stage_report)
        logger.info(
            f"[{stage_report.name}] {stage_report.rows_in} -> {stage_report.rows_out} rows "
            f"(removed {stage_report.removed}, adjusted {stage_report.adjusted})"
        )

    def stage(self, name):
        for s in self.stages:
            if s.name == name:
                return s
        raise KeyError(name)

    @property
    def total_removed(self):
        return sum(s.removed for s in self.stages)

    def to_dict(self):
        return {
            "rows_in": self.stages[0].rows_in if self.stages else 0,
            "rows_out": self.stages[-1].rows_out if self.stages else 0,
            "total_removed": self.total_removed,
            "stages": [s.to_dict() for s in self.stages],
        }


class TripCleaner:
    """Handles the trip cleaning stages"""

    @staticmethod
    def drop_missing_end_coordinates(df):
        """Rides that never recorded a terminal location (lost or stolen bikes)"""
        if "end_lat" not in df.columns or "end_lng" not in df.columns:
            return df, StageReport("missing_end_coordinates", len(df), len(df))

        missing = df["end_lat"].isna() & df["end_lng"].isna()
        removed_ids = df.loc[missing, "ride_id"].tolist()
        out = df.loc[~missing].copy()
        return out, StageReport("missing_end_coordinates", len(df), len(out), removed_ids)

    @staticmethod
    def find_unlisted_stations(df, stations):
        """Station names used by trips but absent from the active registry"""
        listed = set(stations["station_name"].dropna())
        used = pd.concat([df["start_station_name"], df["end_station_name"]]).dropna()
        return sorted(set(used) - listed)

    @staticmethod
    def drop_unlisted_stations(df, stations):
        """Removes rides touching test, charging or other unlisted infrastructure"""
        BatchValidator.validate_stations(stations)
        unlisted = TripCleaner.find_unlisted_stations(df, stations)
        start_hit = df["start_station_name"].isin(unlisted)
        end_hit = df["end_station_name"].isin(unlisted)
        hit = start_hit | end_hit

        # Each removed ride counts once per distinct unlisted name it references
        touched = pd.concat([
            df.loc[start_hit, ["ride_id", "start_station_name"]].rename(columns={"start_station_name": "station"}),
            df.loc[end_hit, ["ride_id", "end_station_name"]].rename(columns={"end_station_name": "station"}),
        ]).drop_duplicates()
        counts = {str(k): int(v) for k, v in touched["station"].value_counts().items()}

        removed_ids = df.loc[hit, "ride_id"].tolist()
        out = df.loc[~hit].copy()
        return out, StageReport("unlisted_stations", len(df), len(out), removed_ids,
                                details={"unlisted_stations": counts})

    @staticmethod
    def drop_outside_window(df, window_cutoff):
        """Drops rides ending after the cutoff"""
        cutoff = pd.Timestamp(window_cutoff)
        late = df["ended_at"] > cutoff
        removed_ids = df.loc[late, "ride_id"].tolist()
        out = df.loc[~late].copy()
        return out, StageReport("outside_window", len(df), len(out), removed_ids,
                                details={"window_cutoff": cutoff.isoformat()})

    @staticmethod
    def resolve_coordinates(df, stations, excluded_ids=()):
        """Replaces raw start/end coordinates with the registry's canonical ones where a station matches"""
        BatchValidator.validate_stations(stations)
        reference = stations[["station_name", "latitude", "longitude"]].dropna(subset=["station_name"])
        out = df.copy()
        adjusted = pd.Series(False, index=out.index)

        for side in ("start", "end"):
            lat_col, lng_col, name_col = f"{side}_lat", f"{side}_lng", f"{side}_station_name"
            if lat_col not in out.columns or lng_col not in out.columns:
                logger.debug(f"No raw {side} coordinates, skipping {side} resolution")
                continue

            merged = out[["ride_id", name_col]].merge(
                reference.rename(columns={"station_name": name_col,
                                          "latitude": "_ref_lat", "longitude": "_ref_lng"}),
                on=name_col, how="left",
            )
            # Station may be listed once per re-activation; coordinates already checked to agree
            merged = merged.drop_duplicates(subset="ride_id").set_index("ride_id")

            new_lat = out["ride_id"].map(merged["_ref_lat"]).fillna(out[lat_col])
            new_lng = out["ride_id"].map(merged["_ref_lng"]).fillna(out[lng_col])
            adjusted |= TripCleaner._changed(out[lat_col], new_lat) | TripCleaner._changed(out[lng_col], new_lng)
            out[lat_col] = new_lat
            out[lng_col] = new_lng

        out = out.drop_duplicates(subset="ride_id")

        resurrected = set(excluded_ids) & set(out["ride_id"])
        if resurrected:
            raise CleaningError(f"{len(resurrected)} previously removed rides reappeared after coordinate resolution")

        return out, StageReport("resolve_coordinates", len(df), len(out), adjusted=int(adjusted.loc[out.index].sum()))

    @staticmethod
    def _changed(old, new):
        return ~((old == new) | (old.isna() & new.isna()))

    @staticmethod
    def repair_dst_fallback(df, fallback_date):
        """Adds back the repeated hour to negative durations on the fall-back date"""
        if fallback_date is None:
            return df, StageReport("dst_repair", len(df), len(df), details={"dst_fallback_date": None})

        day = pd.Timestamp(fallback_date).normalize()
        out = df.copy()
        fixable = (out["duration_seconds"] < 0) & (out["started_at"].dt.normalize() == day)
        out.loc[fixable, "duration_seconds"] = out.loc[fixable, "duration_seconds"] + SECONDS_PER_HOUR

        unresolved = int(((out["duration_seconds"] < 0) & ~fixable).sum())
        if unresolved:
            logger.warning(f"{unresolved} negative durations outside {day.date()} left unresolved")
        return out, StageReport("dst_repair", len(df), len(out), adjusted=int(fixable.sum()),
                                details={"dst_fallback_date": day.date().isoformat(),
                                         "unresolved_negative": unresolved})

    @staticmethod
    def drop_implausible_durations(df, min_seconds, max_seconds):
        """Keeps rides strictly between the minimum ride time and the theft threshold"""
        ok = (df["duration_seconds"] > min_seconds) & (df["duration_seconds"] < max_seconds)
        removed_ids = df.loc[~ok, "ride_id"].tolist()
        out = df.loc[ok].copy()
        return out, StageReport("implausible_duration", len(df), len(out), removed_ids,
                                details={"too_short": int((df["duration_seconds"] <= min_seconds).sum()),
                                         "too_long": int((df["duration_seconds"] >= max_seconds).sum())})

    @staticmethod
    def clean(trips, stations, config):
        """
        Runs every stage in order:
        1. Drop rides with no end coordinates
        2. Drop rides touching unlisted stations
        3. Drop rides ending past the window cutoff
        4. Substitute canonical station coordinates
        5. Add duration and calendar fields
        6. Repair fall-back DST negative durations
        7. Drop implausible durations
        """
        BatchValidator.validate_trips(trips)
        BatchValidator.validate_stations(stations)

        report = CleaningReport()

        df, stage = TripCleaner.drop_missing_end_coordinates(trips)
        report.add(stage)
        missing_end_ids = stage.removed_ids

        df, stage = TripCleaner.drop_unlisted_stations(df, stations)
        report.add(stage)

        df, stage = TripCleaner.drop_outside_window(df, config.window_cutoff)
        report.add(stage)

        df, stage = TripCleaner.resolve_coordinates(df, stations, excluded_ids=missing_end_ids)
        report.add(stage)

        rows_in = len(df)
        df = FeatureEngineer.add_time_features(df, config.timezone)
        report.add(StageReport("derived_fields", rows_in, len(df)))

        df, stage = TripCleaner.repair_dst_fallback(df, config.dst_fallback_date)
        report.add(stage)

        df, stage = TripCleaner.drop_implausible_durations(
            df, config.min_duration_seconds, config.max_duration_seconds)
        report.add(stage)

        logger.info(f"Cleaning complete. Reduced rows from {len(trips)} to {len(df)}.")
        return df.reset_index(drop=True), report
