# backend\dal\trip_dal.py
# Trip Data Access Layer: Persists cleaned bike-share trips and the station registry, and reads cleaned trips back.

import logging
import sqlite3

import pandas as pd

logger = logging.getLogger("TripDAL")

TRIP_COLUMNS = [
    'ride_id', 'bike_type', 'user_type', 'started_at', 'ended_at',
    'start_station_name', 'start_station_id', 'end_station_name', 'end_station_id',
    'start_lat', 'start_lng', 'end_lat', 'end_lng',
    'duration_seconds', 'month', 'hour', 'weekday', 'day',
]
TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


class TripDAL:
    """Data Access Layer for Trip operations"""
    def __init__(self, db_path):
        self.db_path = db_path

    @staticmethod
    def _trip_rows(trips_df):
        df_final = trips_df.reindex(columns=TRIP_COLUMNS).copy()
        for col in ('started_at', 'ended_at'):
            df_final[col] = df_final[col].dt.strftime(TIMESTAMP_FORMAT)
        df_final['month'] = pd.to_datetime(df_final['month']).dt.strftime('%Y-%m-%d')
        # object dtype hands sqlite3 plain Python scalars, None for missing
        df_final = df_final.astype(object).where(df_final.notna(), None)
        return list(df_final.itertuples(index=False, name=None))

    @staticmethod
    def _station_rows(stations_df):
        rows = []
        for rec in stations_df.to_dict('records'):
            first_seen = rec.get('first_seen')
            rows.append((
                rec['station_name'],
                rec.get('latitude'),
                rec.get('longitude'),
                None if pd.isna(first_seen) else pd.Timestamp(first_seen).strftime(TIMESTAMP_FORMAT),
            ))
        return rows

    @staticmethod
    def _write_trips(conn, rows, replace):
        if replace:
            conn.execute("DELETE FROM trips")
        placeholders = ", ".join("?" for _ in TRIP_COLUMNS)
        conn.executemany(
            f"INSERT INTO trips ({', '.join(TRIP_COLUMNS)}) VALUES ({placeholders})", rows)

    @staticmethod
    def _write_stations(conn, rows, replace):
        if replace:
            conn.execute("DELETE FROM stations")
        conn.executemany('''
            INSERT OR IGNORE INTO stations (station_name, latitude, longitude, first_seen)
            VALUES (?, ?, ?, ?)
        ''', rows)

    def insert_trips(self, trips_df, replace=False):
        """Bulk-inserts cleaned trips; replace=True empties the table first"""
        rows = self._trip_rows(trips_df)
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                self._write_trips(conn, rows, replace)
        finally:
            conn.close()
        logger.info(f"Inserted {len(rows)} rows into 'trips' table.")
        return len(rows)

    def insert_stations(self, stations_df, replace=False):
        """Inserts the station registry using INSERT OR IGNORE; replace=True empties the table first"""
        rows = self._station_rows(stations_df)
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                self._write_stations(conn, rows, replace)
        finally:
            conn.close()
        logger.info(f"Inserted {len(rows)} stations into 'stations' table.")

    def save_run(self, trips_df, stations_df):
        """Replaces both tables in one transaction; a failure leaves the previous run intact"""
        trip_rows = self._trip_rows(trips_df)
        station_rows = self._station_rows(stations_df)
        conn = sqlite3.connect(self.db_path)
        try:
            with conn:
                self._write_stations(conn, station_rows, replace=True)
                self._write_trips(conn, trip_rows, replace=True)
        finally:
            conn.close()
        logger.info(f"Stored {len(trip_rows)} trips and {len(station_rows)} stations.")
        return len(trip_rows)

    def load_trips(self):
        """Reads the cleaned trip table back with timestamps parsed"""
        conn = sqlite3.connect(self.db_path)
        try:
            df = pd.read_sql_query(
                "SELECT * FROM trips ORDER BY started_at, ride_id",
                conn,
                parse_dates={'started_at': TIMESTAMP_FORMAT, 'ended_at': TIMESTAMP_FORMAT, 'month': '%Y-%m-%d'},
            )
        finally:
            conn.close()
        return df

    def count_trips(self):
        conn = sqlite3.connect(self.db_path)
        try:
            return conn.execute("SELECT COUNT(*) FROM trips").fetchone()[0]
        finally:
            conn.close()
