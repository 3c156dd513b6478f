# backend\etl\pipeline.py
# ETL Pipeline Orchestrator: Loads a year of trips, runs the cleaning stages, stores the cleaned table and writes the audit report.

import json
import logging
import os

from backend.config import CleaningConfig
from backend.dal.init_db import init_db
from backend.dal.trip_dal import TripDAL
from backend.etl.ingestion.loaders import StationLoader, TripLoader
from backend.etl.processing.cleaner import TripCleaner

logger = logging.getLogger("ETL-Pipeline")


def configure_logging(log_dir):
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(os.path.join(log_dir, 'etl.log')),
            logging.StreamHandler()
        ]
    )


def write_report(report, config, path):
    payload = {
        "window": {
            "start_date": config.start_date.date().isoformat(),
            "end_date": config.end_date.date().isoformat(),
        },
        "duration_bounds_seconds": [config.min_duration_seconds, config.max_duration_seconds],
        "timezone": config.timezone,
        **report.to_dict(),
    }
    report_dir = os.path.dirname(path)
    if report_dir:
        os.makedirs(report_dir, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Cleaning report written to {path}")


def run_pipeline(config=None):
    """Runs the whole batch; any failure aborts before anything is written"""
    config = config or CleaningConfig.from_env()

    try:
        logger.info("--- Loading Station Registry ---")
        stations = StationLoader(config.stations_path).load()

        logger.info("--- Loading Trip Data ---")
        trips = TripLoader(config.data_dir, config.start_date, config.end_date).load()

        logger.info("--- Cleaning Trip Data ---")
        cleaned, report = TripCleaner.clean(trips, stations, config)

        logger.info("--- Storing Cleaned Trips ---")
        # Report is staged first and only moved into place once the database commit succeeds
        staged_report = config.report_path + ".tmp"
        write_report(report, config, staged_report)
        try:
            init_db(config.db_path)
            TripDAL(config.db_path).save_run(cleaned, stations)
        except Exception:
            os.remove(staged_report)
            raise
        os.replace(staged_report, config.report_path)
    except Exception as e:
        logger.error(f"Pipeline error: {e}")
        raise

    logger.info("ETL Pipeline execution complete.")
    return cleaned, report


if __name__ == "__main__":
    cfg = CleaningConfig.from_env()
    configure_logging(cfg.log_dir)
    run_pipeline(cfg)
