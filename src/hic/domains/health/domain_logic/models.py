"""Health analytics data models: measurement records and derived artifacts."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Mapping

Category = Literal["heart", "sleep", "activity", "lab"]
CATEGORIES: tuple[str, ...] = ("heart", "sleep", "activity", "lab")

AlertLevel = Literal["critical", "warning", "info"]
Significance = Literal["high", "medium", "low"]
Priority = Literal["Critical", "High", "Medium", "Low"]

# A sequence of (x, y) pairs joined on timestamp proximity.
AlignedSample = list[tuple[float, float]]


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    return moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MeasurementRecord:
    """One time-stamped measurement from the sample store.

    ``values`` maps field names (e.g. ``hrv_rmssd``, ``sleep_efficiency``) to
    numbers; a field may be present with a ``None`` value. Lab records carry
    the test name in ``label`` and their result under ``values["value"]``.
    A naive ``timestamp`` is stored as UTC so records from different
    sources always compare.
    """

    subject_id: str
    category: str
    timestamp: datetime
    values: Mapping[str, float | None] = field(default_factory=dict)
    label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", as_utc(self.timestamp))

    def get(self, name: str) -> float | None:
        """Return a numeric field, or None when missing or non-numeric."""
        raw = self.values.get(name)
        if raw is None or isinstance(raw, bool):
            return None
        try:
            return float(raw)
        except (TypeError, ValueError):
            return None


# ---------------------------------------------------------------------------
# Correlations
# ---------------------------------------------------------------------------

@dataclass
class CorrelationResult:
    """Pearson correlation over an aligned sample."""

    coefficient: float
    significance: Significance
    p_value: float  # coarse categorical approximation: 0.05 / 0.10 / 0.20
    sample_size: int
    interpretation: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LifestyleCorrelation:
    """A named lifestyle/health pair with its correlation and guidance."""

    pair: str
    lifestyle_metric: str
    health_metric: str
    correlation: CorrelationResult
    insight: str
    recommendation: str
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CorrelationReport:
    """All lifestyle correlations found for one subject."""

    correlations: list[LifestyleCorrelation] = field(default_factory=list)
    summary: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "correlations": [c.to_dict() for c in self.correlations],
            "summary": self.summary,
        }


# ---------------------------------------------------------------------------
# Health score
# ---------------------------------------------------------------------------

DOMAIN_MAX_POINTS: dict[str, int] = {
    "cardiovascular": 25,
    "metabolic": 25,
    "inflammatory": 20,
    "nutritional": 15,
    "recovery": 15,
}


@dataclass
class DomainScore:
    """Score for one physiological domain; ``score`` is the sum of sub-scores."""

    max_points: int
    sub_scores: dict[str, int] = field(default_factory=dict)

    @property
    def score(self) -> int:
        return sum(self.sub_scores.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "max_points": self.max_points,
            "sub_scores": dict(self.sub_scores),
        }


@dataclass
class HealthScore:
    """Composite 0-100 score across the five domains."""

    domains: dict[str, DomainScore]
    approximations: list[str] = field(default_factory=list)

    @property
    def overall(self) -> int:
        return sum(d.score for d in self.domains.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "overall": self.overall,
            "domains": {name: d.to_dict() for name, d in self.domains.items()},
            "approximations": list(self.approximations),
        }


# ---------------------------------------------------------------------------
# Alerts and briefing
# ---------------------------------------------------------------------------

@dataclass
class Alert:
    """A threshold-triggered biomarker alert."""

    level: AlertLevel
    category: str
    metric: str
    current_value: int
    threshold: int
    message: str
    recommended_action: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Recommendation:
    """One action in the daily plan."""

    priority: Priority
    category: str
    action: str
    reasoning: str
    timing: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.timing is None:
            data.pop("timing")
        return data


@dataclass
class Briefing:
    """Daily focus, energy prediction and prioritized recommendations."""

    date: str
    priority: str
    health_focus: str
    energy_prediction: int
    recommendations: list[Recommendation] = field(default_factory=list)
    insights: list[str] = field(default_factory=list)
    risk_alerts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "priority": self.priority,
            "health_focus": self.health_focus,
            "energy_prediction": self.energy_prediction,
            "recommendations": [r.to_dict() for r in self.recommendations],
            "insights": list(self.insights),
            "risk_alerts": list(self.risk_alerts),
        }
