# backend\run.py
# Main Backend Server: Flask application exposing rider-cohort comparisons and the cleaning audit report.

import json
import logging
import os

from flask import Flask, jsonify, request
from flask_cors import CORS

from backend.config import get_db_path
from backend.logic.aggregators import TripAggregator
from backend.security.validator import RequestValidator

logger = logging.getLogger("API")


def create_app(db_path=None, report_path=None):
    app = Flask(__name__)
    CORS(app) # Enable CORS for frontend integration

    app.config['DB_PATH'] = db_path or get_db_path()
    app.config['REPORT_PATH'] = report_path or os.environ.get(
        'BIKESHARE_REPORT_PATH',
        os.path.join(os.path.dirname(app.config['DB_PATH']), 'cleaning_report.json'),
    )

    def cohort_endpoint(aggregate):
        ok, error, filters = RequestValidator.validate_filter_params(request.args)
        if not ok:
            return jsonify({"error": error}), 400
        try:
            return jsonify(aggregate(filters, db_path=app.config['DB_PATH']))
        except Exception as e:
            logger.error(f"Aggregation failed: {e}")
            return jsonify({"error": str(e)}), 500

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Endpoint not found"}), 404

    @app.before_request
    def log_request():
        logger.info(f"API Request: {request.method} {request.path} {dict(request.args)}")

    @app.route('/api/health', methods=['GET'])
    def health_check():
        return jsonify({"status": "healthy", "service": "Bike-Share Cohort API"})

    @app.route('/api/cohorts/summary', methods=['GET'])
    def get_cohort_summary():
        """Rides, share and duration per user type"""
        return cohort_endpoint(TripAggregator.get_cohort_summary)

    @app.route('/api/cohorts/hourly', methods=['GET'])
    def get_hourly():
        return cohort_endpoint(TripAggregator.get_hourly_stats)

    @app.route('/api/cohorts/weekday', methods=['GET'])
    def get_weekday():
        return cohort_endpoint(TripAggregator.get_weekday_stats)

    @app.route('/api/cohorts/monthly', methods=['GET'])
    def get_monthly():
        return cohort_endpoint(TripAggregator.get_monthly_stats)

    @app.route('/api/cohorts/bike-types', methods=['GET'])
    def get_bike_types():
        return cohort_endpoint(TripAggregator.get_bike_type_share)

    @app.route('/api/stations/top', methods=['GET'])
    def get_top_stations():
        """Most used start stations per user type"""
        ok, error, limit = RequestValidator.validate_limit(request.args)
        if not ok:
            return jsonify({"error": error}), 400
        return cohort_endpoint(
            lambda filters, db_path: TripAggregator.get_top_stations(limit, filters, db_path=db_path))

    @app.route('/api/cleaning/report', methods=['GET'])
    def get_cleaning_report():
        """Audit report written by the last pipeline run"""
        path = app.config['REPORT_PATH']
        if not os.path.exists(path):
            return jsonify({"error": "No cleaning report found. Run the ETL pipeline first."}), 404
        with open(path, encoding='utf-8') as f:
            report = json.load(f)
        # Removed ride ids are kept on disk for audit only
        for stage in report.get("stages", []):
            stage.pop("removed_ids", None)
        return jsonify(report)

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    create_app().run(debug=True, port=5000)
