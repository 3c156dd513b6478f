# backend\logic\aggregators.py
# Business Logic Layer: SQL aggregations comparing member and casual rider cohorts over the cleaned trip table.

import sqlite3

from backend.config import get_db_path

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class TripAggregator:
    """Business Logic Layer: Handles cohort aggregations"""

    @staticmethod
    def _connect(db_path):
        return sqlite3.connect(db_path or get_db_path())

    @staticmethod
    def _where(filters, extra=None):
        """Builds the WHERE clause shared by every aggregation"""
        filters = filters or {}
        where_clauses = list(extra or [])
        params = []

        if filters.get('start_date'):
            where_clauses.append("started_at >= ?")
            params.append(filters['start_date'])
        if filters.get('end_date'):
            # end_date is inclusive of the whole day
            where_clauses.append("date(started_at) <= ?")
            params.append(filters['end_date'])
        if filters.get('user_type') and filters['user_type'] != 'all':
            where_clauses.append("user_type = ?")
            params.append(filters['user_type'])

        where_str = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        return where_str, params

    @staticmethod
    def get_cohort_summary(filters=None, db_path=None):
        """Ride counts, share and duration statistics per user type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters)
            cur.execute(f"""
                SELECT user_type, COUNT(*), AVG(duration_seconds)
                FROM trips
                {where_str}
                GROUP BY user_type
                ORDER BY user_type
            """, params)
            rows = cur.fetchall()
            total = sum(r[1] for r in rows)

            summary = {}
            for user_type, count, avg_dur in rows:
                # SQLite has no MEDIAN; take the middle row(s) of the ordered durations
                cohort_where, cohort_params = TripAggregator._where(
                    {**(filters or {}), 'user_type': user_type})
                offset = (count - 1) // 2
                take = 2 if count % 2 == 0 else 1
                cur.execute(f"""
                    SELECT AVG(duration_seconds) FROM (
                        SELECT duration_seconds FROM trips
                        {cohort_where}
                        ORDER BY duration_seconds
                        LIMIT ? OFFSET ?
                    )
                """, cohort_params + [take, offset])
                median = cur.fetchone()[0] or 0

                summary[user_type] = {
                    "rides": count,
                    "share": round(count / total * 100, 2) if total > 0 else 0,
                    "avgDurationMin": round((avg_dur or 0) / 60, 2),
                    "medianDurationMin": round(median / 60, 2),
                }

            return {"totalRides": total, "cohorts": summary}
        finally:
            conn.close()

    @staticmethod
    def get_hourly_stats(filters=None, db_path=None):
        """Ride counts for every hour of day, per user type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters)
            cur.execute(f"""
                SELECT user_type, hour, COUNT(*)
                FROM trips
                {where_str}
                GROUP BY user_type, hour
            """, params)

            hourly = {}
            for user_type, hour, count in cur.fetchall():
                # Ensure all 24 hours are present
                cohort = hourly.setdefault(user_type, {h: 0 for h in range(24)})
                cohort[hour] = count
            return hourly
        finally:
            conn.close()

    @staticmethod
    def get_weekday_stats(filters=None, db_path=None):
        """Ride counts and mean duration per weekday (Monday first), per user type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters)
            cur.execute(f"""
                SELECT user_type, weekday, COUNT(*), AVG(duration_seconds)
                FROM trips
                {where_str}
                GROUP BY user_type, weekday
            """, params)

            by_cohort = {}
            for user_type, weekday, count, avg_dur in cur.fetchall():
                by_cohort.setdefault(user_type, {})[weekday] = {
                    "rides": count,
                    "avgDurationMin": round((avg_dur or 0) / 60, 2),
                }

            return {
                user_type: [
                    {"weekday": day, **days.get(day, {"rides": 0, "avgDurationMin": 0})}
                    for day in WEEKDAYS
                ]
                for user_type, days in by_cohort.items()
            }
        finally:
            conn.close()

    @staticmethod
    def get_monthly_stats(filters=None, db_path=None):
        """Ride counts per month, per user type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters)
            cur.execute(f"""
                SELECT month, user_type, COUNT(*)
                FROM trips
                {where_str}
                GROUP BY month, user_type
                ORDER BY month
            """, params)

            monthly = {}
            for month, user_type, count in cur.fetchall():
                monthly.setdefault(month, {"month": month})[user_type] = count
            return list(monthly.values())
        finally:
            conn.close()

    @staticmethod
    def get_bike_type_share(filters=None, db_path=None):
        """Ride counts and within-cohort share per bike type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters)
            cur.execute(f"""
                SELECT user_type, bike_type, COUNT(*)
                FROM trips
                {where_str}
                GROUP BY user_type, bike_type
                ORDER BY user_type, bike_type
            """, params)
            rows = cur.fetchall()

            totals = {}
            for user_type, _, count in rows:
                totals[user_type] = totals.get(user_type, 0) + count

            shares = {}
            for user_type, bike_type, count in rows:
                shares.setdefault(user_type, {})[bike_type] = {
                    "rides": count,
                    "share": round(count / totals[user_type] * 100, 2),
                }
            return shares
        finally:
            conn.close()

    @staticmethod
    def get_top_stations(limit=10, filters=None, db_path=None):
        """Most used named start stations, per user type"""
        conn = TripAggregator._connect(db_path)
        cur = conn.cursor()
        try:
            where_str, params = TripAggregator._where(filters, extra=["start_station_name IS NOT NULL"])
            cur.execute(f"""
                SELECT user_type, start_station_name, COUNT(*) AS rides,
                       AVG(start_lat), AVG(start_lng)
                FROM trips
                {where_str}
                GROUP BY user_type, start_station_name
                ORDER BY user_type, rides DESC, start_station_name
            """, params)

            top = {}
            for user_type, station, rides, lat, lng in cur.fetchall():
                ranked = top.setdefault(user_type, [])
                if len(ranked) < limit:
                    ranked.append({"station": station, "rides": rides, "lat": lat, "lng": lng})
            return top
        finally:
            conn.close()
