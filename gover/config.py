"""Centralised settings for the gover scraper.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _split_domains(raw: str) -> list[str]:
    return [d.strip().lower() for d in raw.split(",") if d.strip()]


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------
    version_url: str = field(
        default_factory=lambda: os.environ.get("VERSION_URL", "https://go.dev/VERSION?m=text")
    )
    release_history_url: str = field(
        default_factory=lambda: os.environ.get(
            "RELEASE_HISTORY_URL", "https://go.dev/doc/devel/release"
        )
    )
    doc_url_template: str = field(
        default_factory=lambda: os.environ.get("DOC_URL_TEMPLATE", "https://go.dev/doc/{version}")
    )
    allowed_domains: list[str] = field(
        default_factory=lambda: _split_domains(os.environ.get("ALLOWED_DOMAINS", "go.dev"))
    )

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT", "gover-scraper/1.0 (+https://github.com/paulstuart/gover)"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Rate limiting (applied per domain)
    # ------------------------------------------------------------------
    rate_limit_delay: float = field(
        default_factory=lambda: float(os.environ.get("RATE_LIMIT_DELAY", "1.0"))
    )
    max_parallelism: int = field(
        default_factory=lambda: int(os.environ.get("MAX_PARALLELISM", "2"))
    )

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    run_deadline: float = field(
        default_factory=lambda: float(os.environ.get("RUN_DEADLINE", "600.0"))
    )
    output_path: Path = field(
        default_factory=lambda: Path(os.environ.get("OUTPUT_PATH", "go_version_data.json"))
    )


# Module-level singleton — import this everywhere:
#   from gover.config import settings
settings = Settings()
