"""
Runtime configuration for the Kid's Story World API.

Settings are read from environment variables (optionally loaded from a
``.env`` file in the working directory). Only a handful of knobs exist:
where the JSON data files live, where uploads are written, the upload
size limit and whether sample books are seeded into an empty catalogue.
"""

from __future__ import annotations

import logging
import logging.config
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

BASE_DIR = Path.cwd()

DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024


@dataclass
class Settings:
    """Settings for the API process."""

    host: str = "127.0.0.1"
    port: int = 3000
    data_dir: Path = BASE_DIR / "data"
    upload_dir: Path = BASE_DIR / "uploads"
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    seed_sample_data: bool = True
    log_level: str = "INFO"

    def ensure_directories(self) -> None:
        for directory in (
            self.data_dir,
            self.upload_dir,
            self.upload_dir / "covers",
            self.upload_dir / "pdfs",
        ):
            if not directory.exists():
                directory.mkdir(parents=True, exist_ok=True)
                logger.info("Created directory: %s", directory)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw not in (None, "") else default
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default


def load_settings() -> Settings:
    """Build ``Settings`` from the environment (and ``.env`` if present)."""
    load_dotenv()
    return Settings(
        host=os.getenv("HOST", "127.0.0.1"),
        port=_env_int("PORT", 3000),
        data_dir=Path(os.getenv("DATA_DIR", str(BASE_DIR / "data"))),
        upload_dir=Path(os.getenv("UPLOAD_DIR", str(BASE_DIR / "uploads"))),
        max_file_size=_env_int("MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE),
        seed_sample_data=_env_bool("SEED_SAMPLE_DATA", True),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s [%(levelname)s][%(name)s:%(lineno)d] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "level": level,
                    "formatter": "standard",
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": {
                "storyworld": {
                    "handlers": ["console"],
                    "level": level,
                    "propagate": False,
                },
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
