"""Persistence of scraped stays into PostgreSQL."""

from typing import Any, List, Sequence, Tuple

import psycopg2
from loguru import logger
from psycopg2 import extras

import stayscraper.config as cfg
from stayscraper.config import ConfigError
from stayscraper.models.stay import Stay


CREATE_STAYS_TABLE = """
CREATE TABLE IF NOT EXISTS stays (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    name TEXT NOT NULL,
    rating REAL,
    total_reviews INTEGER,
    address TEXT,
    phone TEXT,
    website TEXT,
    category TEXT NOT NULL,
    latitude REAL,
    longitude REAL,
    google_maps_url TEXT NOT NULL UNIQUE,
    image_urls JSONB DEFAULT '[]'::jsonb,
    created_at TIMESTAMP NOT NULL DEFAULT NOW()
);
"""

_INSERT_IGNORE_CONFLICTS = """
INSERT INTO stays (
    name,
    rating,
    total_reviews,
    address,
    phone,
    website,
    category,
    latitude,
    longitude,
    google_maps_url,
    image_urls
) VALUES %s
ON CONFLICT (google_maps_url) DO NOTHING;
"""


def connect(database_url: str):
    """Open a connection; the caller owns it and must close it."""
    if not database_url:
        raise ConfigError("DATABASE_URL is required for database connections")
    conn = psycopg2.connect(dsn=database_url, connect_timeout=10)
    logger.info("Database connection opened")
    return conn


def _row(stay: Stay) -> Tuple[Any, ...]:
    return (
        stay.name,
        stay.rating,
        stay.total_reviews,
        stay.address,
        stay.phone,
        stay.website,
        stay.category,
        stay.latitude,
        stay.longitude,
        stay.google_maps_url,
        extras.Json(list(stay.image_urls)),
    )


class StaySink:
    """
    Batch writer for the ``stays`` table.

    The connection is borrowed: the sink commits and rolls back on it but
    never closes it.
    """

    def __init__(self, connection, batch_size: int = cfg.DB_BATCH_SIZE) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.connection = connection
        self.batch_size = batch_size

    def ensure_schema(self) -> None:
        """Create the ``stays`` table if it does not exist yet."""
        with self.connection.cursor() as cur:
            cur.execute(CREATE_STAYS_TABLE)
        self.connection.commit()
        logger.debug("Ensured table 'stays' exists")

    def _chunks(self, stays: Sequence[Stay]) -> List[Sequence[Stay]]:
        return [
            stays[i : i + self.batch_size]
            for i in range(0, len(stays), self.batch_size)
        ]

    def insert_stays(self, stays: Sequence[Stay]) -> int:
        """
        Insert *stays* in batches, silently skipping rows whose
        ``google_maps_url`` already exists.

        Returns the number of rows attempted, not the number inserted.
        """
        if not stays:
            return 0

        for batch in self._chunks(list(stays)):
            try:
                with self.connection.cursor() as cur:
                    extras.execute_values(
                        cur,
                        _INSERT_IGNORE_CONFLICTS,
                        [_row(stay) for stay in batch],
                        page_size=self.batch_size,
                    )
                self.connection.commit()
            except psycopg2.Error:
                self.connection.rollback()
                raise
            logger.debug("Inserted batch of {} stays", len(batch))

        return len(stays)
