"""Configuration helpers for the DOI webservice."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel

DEFAULT_UPSTREAM_URL = "http://www.fdsn.org/networks/doi/"
TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    """Runtime configuration loaded from env vars with sensible defaults."""

    name: str = "EIDA DOI Webservice"
    host: str = "127.0.0.1"
    port: int = 8080
    upstream_url: str = DEFAULT_UPSTREAM_URL
    refresh_interval_ms: int = 3_600_000
    retry_delay_ms: int = 60_000
    max_redirects: int = 5
    request_timeout: float = 30.0
    cors: bool = False
    debug: bool = False
    log_level: str = "INFO"
    log_file: Path | None = None

    @property
    def refresh_interval(self) -> float:
        return self.refresh_interval_ms / 1000

    @property
    def retry_delay(self) -> float:
        return self.retry_delay_ms / 1000

    @classmethod
    def load(cls) -> "Settings":
        load_dotenv()
        log_file = os.environ.get("EIDADOI_LOG_FILE")
        return cls(
            name=os.environ.get("EIDADOI_NAME", "EIDA DOI Webservice"),
            # SERVICE_HOST and SERVICE_PORT win over the prefixed variables
            host=os.environ.get("SERVICE_HOST") or os.environ.get("EIDADOI_HOST", "127.0.0.1"),
            port=int(os.environ.get("SERVICE_PORT") or os.environ.get("EIDADOI_PORT", 8080)),
            upstream_url=os.environ.get("EIDADOI_UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
            refresh_interval_ms=int(os.environ.get("EIDADOI_REFRESH_INTERVAL_MS", 3_600_000)),
            retry_delay_ms=int(os.environ.get("EIDADOI_RETRY_DELAY_MS", 60_000)),
            max_redirects=int(os.environ.get("EIDADOI_MAX_REDIRECTS", 5)),
            request_timeout=float(os.environ.get("EIDADOI_REQUEST_TIMEOUT", 30.0)),
            cors=_flag("EIDADOI_CORS"),
            debug=_flag("EIDADOI_DEBUG"),
            log_level=os.environ.get("EIDADOI_LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )


def _flag(key: str) -> bool:
    return os.environ.get(key, "").strip().lower() in TRUTHY


def get_settings() -> Settings:
    """Convenience accessor for lazy modules."""
    return Settings.load()
