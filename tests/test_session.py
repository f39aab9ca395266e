"""Tests for the analysis session state machine."""

import logging
from functools import partial
from unittest.mock import Mock, patch

import pytest
import requests

from analyzer_api import (
    AnalysisResult,
    BackendError,
    EmptyResultError,
    InputError,
    TransportError,
    analyze_matches,
)
from conftest import make_forecast, make_match
from model import ForecastPoint
from session import FALLBACK_ERROR, AnalysisSession, AnalysisState, Status


@pytest.fixture
def result(newest_first_matches, kda_forecast):
    return AnalysisResult(matches=newest_first_matches, predictions={"KDA": kda_forecast})


def _raising(exc):
    def fetch(name, tag):
        raise exc
    return fetch


class TestLifecycle:
    def test_starts_idle_and_empty(self):
        session = AnalysisSession()
        assert session.state.status is Status.IDLE
        assert session.state.matches == []
        assert session.state.predictions == {}
        assert session.state.selected_metric == "KDA"
        assert session.points() == []

    def test_begin_moves_to_loading(self):
        session = AnalysisSession(AnalysisState(error_message="old"))
        session.begin("Faker", "KR1")
        assert session.is_loading
        assert session.state.error_message is None

    def test_begin_rejects_empty_identity(self):
        session = AnalysisSession()
        with pytest.raises(InputError):
            session.begin("Faker", " ")
        assert session.state.status is Status.IDLE

    def test_success_stores_result(self, result):
        session = AnalysisSession()
        status = session.analyze("Faker", "KR1", lambda n, t: result)
        assert status is Status.SUCCESS
        assert len(session.state.matches) == 3
        assert "KDA" in session.state.predictions
        assert len(session.points()) == 5
        assert session.has_forecast()

    def test_previous_result_visible_while_loading(self, result):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        session.begin("Faker", "KR1")
        assert session.is_loading
        assert len(session.state.matches) == 3


class TestFailures:
    def test_no_matches(self, result):
        """Zero matches ends in error with everything cleared."""
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        status = session.analyze("Faker", "KR1", lambda n, t: AnalysisResult())
        assert status is Status.ERROR
        assert session.state.error_message == "No matches found"
        assert session.state.matches == []
        assert session.state.predictions == {}

    def test_empty_result_error_from_client(self):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", _raising(EmptyResultError()))
        assert session.state.status is Status.ERROR
        assert session.state.error_message == "No matches found"

    def test_backend_message_is_surfaced(self, result):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        session.analyze("Faker", "KR1", _raising(BackendError("Rate limited", status_code=429)))
        assert session.state.error_message == "Rate limited"
        assert session.state.matches == []
        assert session.points() == []

    def test_transport_error(self):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", _raising(TransportError("Connection refused")))
        assert session.state.error_message == "Connection refused"

    def test_raw_requests_error_is_caught(self):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", _raising(requests.Timeout("timed out")))
        assert session.state.status is Status.ERROR
        assert session.state.error_message == "timed out"

    def test_blank_message_uses_fallback(self):
        session = AnalysisSession()
        ticket = session.begin("Faker", "KR1")
        session.fail(ticket, "")
        assert session.state.error_message == FALLBACK_ERROR

    def test_out_of_range_timestamp_ends_in_error(self, result):
        """A payload the client cannot normalise still leaves the session usable."""
        response = Mock(status_code=200, ok=True)
        response.json.return_value = {"matches": [{"game_creation": 1e20, "KDA": 3}]}
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        with patch("analyzer_api.requests.post", return_value=response):
            status = session.analyze("Faker", "KR1", partial(analyze_matches, "http://x"))
        assert status is Status.ERROR
        assert "game_creation" in session.state.error_message
        assert session.state.matches == []
        assert session.state.predictions == {}

    def test_recovers_after_error(self, result):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", _raising(TransportError("down")))
        assert session.analyze("Faker", "KR1", lambda n, t: result) is Status.SUCCESS
        assert session.state.error_message is None


class TestOverlappingRequests:
    def test_stale_success_is_dropped(self, result):
        session = AnalysisSession()
        first = session.begin("Faker", "KR1")
        second = session.begin("Chovy", "KR1")
        session.succeed(second, AnalysisResult(matches=[make_match(1, KDA=9.0)]))
        session.succeed(first, result)
        assert len(session.state.matches) == 1
        assert session.state.status is Status.SUCCESS

    def test_stale_failure_is_dropped(self, result):
        session = AnalysisSession()
        first = session.begin("Faker", "KR1")
        second = session.begin("Chovy", "KR1")
        session.fail(first, "late failure")
        assert session.is_loading
        session.succeed(second, result)
        assert session.state.status is Status.SUCCESS
        assert session.state.error_message is None


class TestMetricSelection:
    def test_select_recomputes(self, result):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        points = session.select_metric("kills")
        assert [p.value for p in points] == [3.0, 6.0, 9.0]
        assert not session.has_forecast()

    def test_select_is_legal_while_loading(self, result):
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: result)
        session.begin("Faker", "KR1")
        assert len(session.select_metric("kills")) == 3
        assert session.is_loading

    def test_unknown_metric(self):
        with pytest.raises(ValueError):
            AnalysisSession().select_metric("vision_score")

    def test_ragged_forecast_logs_warning(self, newest_first_matches, caplog):
        ragged = make_forecast("KDA", [5.0, 6.0, 7.0], [4.0, 5.0], [6.0, 7.0, 8.0])
        session = AnalysisSession()
        session.analyze("Faker", "KR1", lambda n, t: AnalysisResult(newest_first_matches, {"KDA": ragged}))
        with caplog.at_level(logging.WARNING, logger="session"):
            points = session.points()
        assert len([p for p in points if isinstance(p, ForecastPoint)]) == 2
        assert "mismatched lengths" in caplog.text
