"""
Run diagnostics: loguru file sink and failure screenshots.
"""

import re
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from playwright.sync_api import Page

import stayscraper.config as cfg


class ErrorHandler:
    """Centralised logging setup and failure capture for one run."""

    def __init__(self, log_dir: Path | None = None) -> None:
        self.log_dir = Path(log_dir) if log_dir else cfg.LOGS_DIR
        self._sink_id: int | None = None
        self._setup_logging()

    # -- Logging -----------------------------------------------------------

    def _setup_logging(self) -> None:
        """Add a rotating file sink next to loguru's default console sink."""
        self.log_dir.mkdir(parents=True, exist_ok=True)
        log_path = self.log_dir / "scraper_{time:YYYY-MM-DD}.log"
        self._sink_id = logger.add(
            str(log_path),
            rotation="10 MB",
            retention="7 days",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level:<8} | {message}",
        )
        logger.info("Logging initialised  ->  {}", self.log_dir)

    def close(self) -> None:
        """Detach the file sink (flushes pending records)."""
        if self._sink_id is not None:
            logger.remove(self._sink_id)
            self._sink_id = None

    # -- Screenshots -------------------------------------------------------

    def take_screenshot(self, page: Page, error_name: str) -> Path | None:
        """Save a full-page screenshot when something goes wrong."""
        if not cfg.ENABLE_SCREENSHOTS or page is None:
            return None

        self.log_dir.mkdir(parents=True, exist_ok=True)
        ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        safe_name = re.sub(r"[^A-Za-z0-9_-]+", "_", error_name)[:80]
        filename = self.log_dir / f"{ts}_{safe_name}.png"
        try:
            page.screenshot(path=str(filename), full_page=True)
            logger.warning("Screenshot saved  ->  {}", filename)
            return filename
        except Exception as exc:
            logger.error("Failed to save screenshot: {}", exc)
            return None
