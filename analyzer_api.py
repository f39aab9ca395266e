from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from model import Forecast, MatchRecord, parse_matches, parse_predictions


logger = logging.getLogger(__name__)

ANALYZE_PATH = "/api/analyze-matches"
NO_MATCHES_MESSAGE = "No matches found"


# -----------------------
# Errors
# -----------------------
class AnalyzeError(Exception):
    """Base for everything that can go wrong on the fetch path."""


class InputError(AnalyzeError):
    pass


class TransportError(AnalyzeError):
    pass


class BackendError(AnalyzeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class EmptyResultError(AnalyzeError):
    def __init__(self, message: str = NO_MATCHES_MESSAGE):
        super().__init__(message)


class PayloadError(AnalyzeError):
    pass


@dataclass
class AnalysisResult:
    matches: List[MatchRecord] = field(default_factory=list)
    predictions: Dict[str, Forecast] = field(default_factory=dict)


def validate_identity(name: str, tag: str) -> None:
    if not (name or "").strip():
        raise InputError("Summoner name is required.")
    if not (tag or "").strip():
        raise InputError("Player tag is required.")


def _error_from_response(r: requests.Response) -> BackendError:
    # Backend reports {"error": "..."}; anything else falls back to the status line
    message = None
    try:
        body = r.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"].strip():
        message = body["error"]
    return BackendError(message or f"Request failed with status code {r.status_code}", status_code=r.status_code)


def _analyzer_post(url: str, payload: Dict[str, Any], timeout: float) -> Any:
    try:
        r = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(str(e) or f"Could not reach {url}") from e

    if not r.ok:
        raise _error_from_response(r)

    try:
        return r.json()
    except ValueError as e:
        raise PayloadError(f"Analyzer returned invalid JSON for {url}") from e


def analyze_matches(base_url: str, name: str, tag: str, timeout: float = 30) -> AnalysisResult:
    validate_identity(name, tag)
    name, tag = name.strip(), tag.strip()

    logger.info("Analyzing matches for %s#%s", name, tag)
    url = base_url.rstrip("/") + ANALYZE_PATH
    data = _analyzer_post(url, {"name": name, "tag": tag}, timeout)

    if not isinstance(data, dict):
        raise PayloadError(f"Analyzer response must be an object, got {type(data).__name__}")

    try:
        matches = parse_matches(data.get("matches"))
        predictions = parse_predictions(data.get("predictions"))
    except ValueError as e:
        raise PayloadError(str(e)) from e

    if not matches:
        logger.info("No matches in response data")
        raise EmptyResultError()

    logger.info("Found %d matches", len(matches))
    logger.debug("Forecasts received for: %s", ", ".join(sorted(predictions)) or "none")
    return AnalysisResult(matches=matches, predictions=predictions)
