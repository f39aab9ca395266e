from __future__ import annotations
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from model import (
    FORECAST,
    HISTORICAL,
    ChartPoint,
    Forecast,
    ForecastPoint,
    HistoricalPoint,
    MatchRecord,
    format_match_date,
)


def assemble(
    matches: Sequence[MatchRecord],
    predictions: Mapping[str, Forecast],
    selected_metric: str,
) -> List[ChartPoint]:
    """
    Builds the chart sequence for one metric.

    `matches` arrive newest-first (as the backend returns them); the output
    is oldest-first, followed by the forecast for `selected_metric` if any.
    Ragged forecast arrays are cut to the shortest one. Never raises on
    missing values: a match without the metric yields a point with no value.
    """
    points: List[ChartPoint] = []

    for i, match in enumerate(reversed(matches)):
        points.append(HistoricalPoint(
            index=i,
            label=format_match_date(match.game_creation),
            value=match.value(selected_metric),
        ))

    forecast = predictions.get(selected_metric)
    if forecast is None:
        return points

    # -1 when there is no history so forecasts start at 0
    last_index = len(points) - 1
    for k in range(forecast.usable_length):
        points.append(ForecastPoint(
            index=last_index + 1 + k,
            label=f"Prediction {k + 1}",
            predicted=forecast.predictions[k],
            lower=forecast.confidence_lower[k],
            upper=forecast.confidence_upper[k],
        ))

    return points


def has_forecast(predictions: Mapping[str, Forecast], metric: str) -> bool:
    forecast = predictions.get(metric)
    return forecast is not None and forecast.usable_length > 0


def chart_rows(points: Sequence[ChartPoint], metric: str) -> List[Dict[str, Any]]:
    return [p.as_row(metric) for p in points]


def plot_series(points: Sequence[ChartPoint]) -> Dict[str, List[Tuple[int, float]]]:
    """(index, value) pairs per drawn line, keyed actual/predicted/lower/upper."""
    out: Dict[str, List[Tuple[int, float]]] = {"actual": [], "predicted": [], "lower": [], "upper": []}
    for p in points:
        if p.kind == HISTORICAL:
            if p.value is not None:
                out["actual"].append((p.index, p.value))
        elif p.kind == FORECAST:
            out["predicted"].append((p.index, p.predicted))
            out["lower"].append((p.index, p.lower))
            out["upper"].append((p.index, p.upper))
    return out
