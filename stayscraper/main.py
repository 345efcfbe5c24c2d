"""
Varkala stays scraper -- main orchestrator.

Usage
-----
    python -m stayscraper.main

Configuration comes from the environment (or a ``.env`` file):
``DATABASE_URL`` (required), ``PROXY_URL``, ``DELAY_MIN_MS``,
``DELAY_MAX_MS``, ``HEADLESS``, ``SCRAPER_LOG_DIR``.
"""

import sys
import time

from loguru import logger

from stayscraper.config import get_settings
from stayscraper.core.error_handler import ErrorHandler
from stayscraper.core.scraper import run_scraper
from stayscraper.db.sink import StaySink, connect


def run() -> int:
    """Scrape, de-duplicate and save. Returns the process exit code."""
    settings = get_settings()
    start = time.time()
    error_handler = None
    conn = None

    logger.info("Starting Google Maps scraper (Varkala stays)")
    try:
        error_handler = ErrorHandler(settings.log_dir)
        database_url = settings.require_database_url()

        stays = run_scraper(settings, error_handler=error_handler)
        logger.info("Scraped {} places", len(stays))

        if not stays:
            logger.warning("No stays to save")
        else:
            conn = connect(database_url)
            sink = StaySink(conn)
            sink.ensure_schema()
            processed = sink.insert_stays(stays)
            logger.info(
                "Saved to DB: {} stays (duplicates on google_maps_url ignored)",
                processed,
            )
        logger.info("Done in {:.1f}s", time.time() - start)
    except Exception as exc:
        logger.error("Fatal error: {}", exc)
        return 1
    finally:
        if conn is not None:
            conn.close()
        if error_handler is not None:
            error_handler.close()

    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
