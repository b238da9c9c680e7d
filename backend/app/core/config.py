"""
PageFit — Backend configuration.
Loads .env automatically, then reads all settings from environment variables.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)

_PAPER_CODES = ("A3", "A4", "A5")
_ORIENTATIONS = ("portrait", "landscape")


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""
    host: str
    port: int
    debug: bool
    default_paper_size: str
    default_orientation: str
    filename_prefix: str
    max_upload_mb: float
    directory_batch_size: int
    verify_exports: bool


def _load_config() -> AppConfig:
    return AppConfig(
        host=os.getenv("APP_HOST", "127.0.0.1"),
        port=int(os.getenv("APP_PORT", "8000")),
        debug=os.getenv("APP_DEBUG", "false").lower() == "true",
        default_paper_size=os.getenv("PAGEFIT_DEFAULT_PAPER", "A4").upper(),
        default_orientation=os.getenv("PAGEFIT_DEFAULT_ORIENTATION", "portrait").lower(),
        filename_prefix=os.getenv("PAGEFIT_FILENAME_PREFIX", "pagefit"),
        max_upload_mb=float(os.getenv("PAGEFIT_MAX_UPLOAD_MB", "20")),
        directory_batch_size=int(os.getenv("PAGEFIT_DIRECTORY_BATCH_SIZE", "100")),
        verify_exports=os.getenv("PAGEFIT_VERIFY_EXPORTS", "true").lower() == "true",
    )


def _validate_config(cfg: AppConfig) -> None:
    """Fail fast on settings the export pipeline cannot honour."""
    problems: list[str] = []
    if cfg.default_paper_size not in _PAPER_CODES:
        problems.append(f"PAGEFIT_DEFAULT_PAPER={cfg.default_paper_size} (expected one of {', '.join(_PAPER_CODES)})")
    if cfg.default_orientation not in _ORIENTATIONS:
        problems.append(f"PAGEFIT_DEFAULT_ORIENTATION={cfg.default_orientation} (expected portrait or landscape)")
    if cfg.max_upload_mb <= 0:
        problems.append(f"PAGEFIT_MAX_UPLOAD_MB={cfg.max_upload_mb:g} (must be positive)")
    if cfg.directory_batch_size < 1:
        problems.append(f"PAGEFIT_DIRECTORY_BATCH_SIZE={cfg.directory_batch_size} (must be at least 1)")
    if problems:
        print(
            f"\n  ERROR: Invalid PageFit settings: {'; '.join(problems)}\n"
            f"  Fix backend/.env or the environment and restart.\n",
            file=sys.stderr,
        )
        sys.exit(1)


settings = _load_config()
_validate_config(settings)
