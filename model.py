from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union


METRICS: Tuple[str, ...] = (
    "KDA",
    "kills",
    "deaths",
    "assists",
    "damage_dealt",
    "damage_taken",
    "gold_earned",
    "creep_score",
    "damage_per_minute",
    "gold_per_minute",
)

DEFAULT_METRIC = "KDA"


def metric_display_name(metric: str) -> str:
    return metric.upper()


def _as_number(raw: Any) -> Optional[float]:
    # bool is an int subclass; a True "kills" value is garbage, not 1
    if isinstance(raw, bool) or raw is None:
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw)
        except ValueError:
            return None
    return None


def parse_game_creation(raw: Any) -> datetime:
    """
    Backend sends either epoch milliseconds (Riot's gameCreation) or an
    ISO-8601 string like "2024-03-01T18:22:05Z".
    """
    millis = _as_number(raw)
    if millis is not None:
        try:
            return datetime.fromtimestamp(millis / 1000.0)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"Unparseable game_creation: {raw!r}") from e

    if isinstance(raw, str) and raw.strip():
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Unparseable game_creation: {raw!r}")
        if dt.tzinfo is not None:
            dt = dt.astimezone().replace(tzinfo=None)
        return dt

    raise ValueError(f"Missing game_creation: {raw!r}")


def format_match_date(dt: datetime) -> str:
    return dt.strftime("%x")


@dataclass(frozen=True)
class MatchRecord:
    game_creation: datetime
    metrics: Dict[str, float] = field(default_factory=dict)

    def value(self, metric: str) -> Optional[float]:
        return self.metrics.get(metric)

    @classmethod
    def from_dto(cls, dto: Mapping[str, Any]) -> "MatchRecord":
        if not isinstance(dto, Mapping):
            raise ValueError(f"Match record must be an object, got {type(dto).__name__}")

        metrics: Dict[str, float] = {}
        for key in METRICS:
            v = _as_number(dto.get(key))
            if v is not None:
                metrics[key] = v

        return cls(game_creation=parse_game_creation(dto.get("game_creation")), metrics=metrics)


def _number_list(raw: Any, name: str) -> Tuple[float, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ValueError(f"{name} must be a list, got {type(raw).__name__}")
    out: List[float] = []
    for item in raw:
        v = _as_number(item)
        if v is None:
            raise ValueError(f"{name} contains a non-numeric value: {item!r}")
        out.append(v)
    return tuple(out)


@dataclass(frozen=True)
class Forecast:
    metric: str
    predictions: Tuple[float, ...]
    confidence_lower: Tuple[float, ...]
    confidence_upper: Tuple[float, ...]

    @property
    def usable_length(self) -> int:
        return min(len(self.predictions), len(self.confidence_lower), len(self.confidence_upper))

    @property
    def is_ragged(self) -> bool:
        return len({len(self.predictions), len(self.confidence_lower), len(self.confidence_upper)}) > 1

    @classmethod
    def from_dto(cls, metric: str, dto: Mapping[str, Any]) -> "Forecast":
        if not isinstance(dto, Mapping):
            raise ValueError(f"Forecast for {metric} must be an object")
        return cls(
            metric=metric,
            predictions=_number_list(dto.get("predictions"), "predictions"),
            confidence_lower=_number_list(dto.get("confidence_lower"), "confidence_lower"),
            confidence_upper=_number_list(dto.get("confidence_upper"), "confidence_upper"),
        )


def parse_matches(raw: Any) -> List[MatchRecord]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise ValueError(f"matches must be a list, got {type(raw).__name__}")
    return [MatchRecord.from_dto(m) for m in raw]


def parse_predictions(raw: Any) -> Dict[str, Forecast]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"predictions must be an object, got {type(raw).__name__}")
    return {str(metric): Forecast.from_dto(str(metric), dto) for metric, dto in raw.items()}


# -----------------------
# Chart points
# -----------------------
HISTORICAL = "historical"
FORECAST = "forecast"


@dataclass(frozen=True)
class HistoricalPoint:
    index: int
    label: str
    value: Optional[float]

    kind = HISTORICAL

    def as_row(self, metric: str) -> Dict[str, Any]:
        row: Dict[str, Any] = {"gameIndex": self.index, "gameCreation": self.label}
        if self.value is not None:
            row[metric] = self.value
        return row


@dataclass(frozen=True)
class ForecastPoint:
    index: int
    label: str
    predicted: float
    lower: float
    upper: float

    kind = FORECAST

    def as_row(self, metric: str) -> Dict[str, Any]:
        return {
            "gameIndex": self.index,
            "gameCreation": self.label,
            f"{metric}_predicted": self.predicted,
            f"{metric}_lower": self.lower,
            f"{metric}_upper": self.upper,
        }


ChartPoint = Union[HistoricalPoint, ForecastPoint]
