from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import logging
import os

from dotenv import load_dotenv

from model import DEFAULT_METRIC, METRICS


logger = logging.getLogger(__name__)

DEFAULT_ANALYZER_URL = "http://localhost:5000"


def appdata_env_path() -> Path:
    appdata = os.environ.get("APPDATA")
    if not appdata:
        # Fallback: local
        return Path(".env")
    return Path(appdata) / "Matchcast" / ".env"


@dataclass
class AppSettings:
    analyzer_url: str = DEFAULT_ANALYZER_URL
    request_timeout: int = 30
    default_metric: str = DEFAULT_METRIC


def load_settings() -> AppSettings:
    # 1) Load AppData env first (installed app)
    env_path = appdata_env_path()
    if env_path.exists():
        load_dotenv(env_path, override=True)
    else:
        # 2) Fall back to local .env (dev mode)
        load_dotenv(".env", override=True)

    url = os.getenv("ANALYZER_URL", "").strip() or DEFAULT_ANALYZER_URL
    timeout = int(os.getenv("REQUEST_TIMEOUT", "30"))
    metric = os.getenv("DEFAULT_METRIC", DEFAULT_METRIC).strip()
    if metric not in METRICS:
        logger.warning("Unknown DEFAULT_METRIC %r, using %s", metric, DEFAULT_METRIC)
        metric = DEFAULT_METRIC

    return AppSettings(
        analyzer_url=url,
        request_timeout=timeout,
        default_metric=metric,
    )

