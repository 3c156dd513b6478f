from backend.logic.aggregators import WEEKDAYS, TripAggregator


def test_cohort_summary(seeded_db):
    result = TripAggregator.get_cohort_summary(db_path=seeded_db)

    assert result["totalRides"] == 5
    assert result["cohorts"]["Member"] == {
        "rides": 2, "share": 40.0, "avgDurationMin": 15.0, "medianDurationMin": 15.0,
    }
    assert result["cohorts"]["Casual"] == {
        "rides": 3, "share": 60.0, "avgDurationMin": 43.33, "medianDurationMin": 40.0,
    }


def test_cohort_summary_filtered_by_user_type(seeded_db):
    result = TripAggregator.get_cohort_summary({"user_type": "Member"}, db_path=seeded_db)
    assert list(result["cohorts"]) == ["Member"]
    assert result["cohorts"]["Member"]["share"] == 100.0


def test_hourly_stats_cover_all_hours(seeded_db):
    hourly = TripAggregator.get_hourly_stats(db_path=seeded_db)

    assert len(hourly["Member"]) == 24
    assert hourly["Member"][8] == 2
    assert hourly["Casual"][14] == 1
    assert hourly["Casual"][8] == 0


def test_weekday_stats_start_on_monday(seeded_db):
    weekly = TripAggregator.get_weekday_stats(db_path=seeded_db)

    assert [d["weekday"] for d in weekly["Casual"]] == WEEKDAYS
    sunday = weekly["Casual"][6]
    assert sunday == {"weekday": "Sunday", "rides": 2, "avgDurationMin": 50.0}
    assert weekly["Member"][0]["rides"] == 1


def test_monthly_stats_with_date_filter(seeded_db):
    assert TripAggregator.get_monthly_stats(db_path=seeded_db) == [
        {"month": "2022-06-01", "Member": 2, "Casual": 1},
        {"month": "2022-07-01", "Casual": 2},
    ]
    june = TripAggregator.get_monthly_stats({"end_date": "2022-06-30"}, db_path=seeded_db)
    assert june == [{"month": "2022-06-01", "Member": 2, "Casual": 1}]


def test_bike_type_share(seeded_db):
    shares = TripAggregator.get_bike_type_share(db_path=seeded_db)
    assert shares["Casual"]["Classic"] == {"rides": 2, "share": 66.67}
    assert shares["Casual"]["Docked"] == {"rides": 1, "share": 33.33}
    assert shares["Member"]["Electric"]["share"] == 50.0


def test_top_stations(seeded_db):
    top = TripAggregator.get_top_stations(limit=1, db_path=seeded_db)
    assert top["Casual"] == [{"station": "B", "rides": 2, "lat": 41.892345, "lng": -87.641234}]
    assert top["Member"][0]["station"] == "A"
