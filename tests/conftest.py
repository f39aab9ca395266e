"""Shared fixtures for the test suite."""

from datetime import datetime

import pytest

from model import Forecast, MatchRecord


def make_match(day: int, **metrics):
    return MatchRecord(game_creation=datetime(2024, 3, day, 18, 0), metrics=dict(metrics))


def make_forecast(metric, predictions, lower, upper):
    return Forecast(
        metric=metric,
        predictions=tuple(predictions),
        confidence_lower=tuple(lower),
        confidence_upper=tuple(upper),
    )


@pytest.fixture
def newest_first_matches():
    """Three matches as the backend returns them: most recent first."""
    return [
        make_match(3, KDA=4.0, kills=9.0),
        make_match(2, KDA=3.0, kills=6.0),
        make_match(1, KDA=2.0, kills=3.0),
    ]


@pytest.fixture
def kda_forecast():
    return make_forecast("KDA", [5.0, 6.0], [4.0, 5.0], [6.0, 7.0])
