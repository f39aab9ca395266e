from __future__ import annotations
import enum
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

import requests

from analyzer_api import (
    NO_MATCHES_MESSAGE,
    AnalysisResult,
    AnalyzeError,
    validate_identity,
)
from model import DEFAULT_METRIC, METRICS, ChartPoint, Forecast, MatchRecord
from series import assemble, has_forecast


logger = logging.getLogger(__name__)

FALLBACK_ERROR = "Failed to fetch match data"


class Status(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class AnalysisState:
    matches: List[MatchRecord] = field(default_factory=list)
    predictions: Dict[str, Forecast] = field(default_factory=dict)
    selected_metric: str = DEFAULT_METRIC
    status: Status = Status.IDLE
    error_message: Optional[str] = None
    request_seq: int = 0


class AnalysisSession:
    """
    Owns one AnalysisState and moves it through
    idle -> loading -> success/error.

    Every begin() hands out a ticket. Completions carrying an older ticket
    than the latest begin() are dropped, so overlapping requests resolve to
    the newest one rather than whichever answered last.
    """

    def __init__(self, state: Optional[AnalysisState] = None):
        self.state = state or AnalysisState()

    @property
    def is_loading(self) -> bool:
        return self.state.status is Status.LOADING

    # -----------------------
    # Fetch lifecycle
    # -----------------------
    def begin(self, name: str, tag: str) -> int:
        validate_identity(name, tag)
        self.state.request_seq += 1
        self.state.status = Status.LOADING
        self.state.error_message = None
        return self.state.request_seq

    def _is_stale(self, ticket: int) -> bool:
        if ticket != self.state.request_seq:
            logger.warning("Dropping stale response #%d (latest is #%d)", ticket, self.state.request_seq)
            return True
        return False

    def succeed(self, ticket: int, result: AnalysisResult) -> None:
        if self._is_stale(ticket):
            return
        if not result.matches:
            self.fail(ticket, NO_MATCHES_MESSAGE)
            return
        self.state.matches = list(result.matches)
        self.state.predictions = dict(result.predictions)
        self.state.status = Status.SUCCESS
        self.state.error_message = None

    def fail(self, ticket: int, message: Optional[str]) -> None:
        if self._is_stale(ticket):
            return
        self.state.matches = []
        self.state.predictions = {}
        self.state.status = Status.ERROR
        self.state.error_message = message or FALLBACK_ERROR
        logger.error("Analysis failed: %s", self.state.error_message)

    def analyze(self, name: str, tag: str, fetch: Callable[[str, str], AnalysisResult]) -> Status:
        """Runs one full request cycle synchronously with `fetch(name, tag)`."""
        ticket = self.begin(name, tag)
        try:
            result = fetch(name, tag)
        except (AnalyzeError, requests.RequestException) as e:
            self.fail(ticket, str(e))
        else:
            self.succeed(ticket, result)
        return self.state.status

    # -----------------------
    # Metric selection
    # -----------------------
    def select_metric(self, metric: str) -> List[ChartPoint]:
        if metric not in METRICS:
            raise ValueError(f"Unknown metric: {metric!r}")
        self.state.selected_metric = metric
        return self.points()

    def points(self) -> List[ChartPoint]:
        metric = self.state.selected_metric
        forecast = self.state.predictions.get(metric)
        if forecast is not None and forecast.is_ragged:
            logger.warning(
                "Forecast for %s has mismatched lengths (%d/%d/%d); truncating to %d",
                metric,
                len(forecast.predictions),
                len(forecast.confidence_lower),
                len(forecast.confidence_upper),
                forecast.usable_length,
            )
        return assemble(self.state.matches, self.state.predictions, metric)

    def has_forecast(self) -> bool:
        return has_forecast(self.state.predictions, self.state.selected_metric)
