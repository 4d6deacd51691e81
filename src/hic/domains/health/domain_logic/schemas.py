"""Pydantic output schemas for generated analysis documents.

These mirror the ``to_dict()`` shapes of the rule-based artifacts, plus the
cross-field invariants (score sums, bounds) a generated document must keep.
Unknown keys are rejected.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hic.domains.health.domain_logic.models import DOMAIN_MAX_POINTS


class _Strict(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Correlations
# ---------------------------------------------------------------------------

class CorrelationResultModel(_Strict):
    coefficient: float = Field(ge=-1.0, le=1.0)
    significance: Literal["high", "medium", "low"]
    p_value: float
    sample_size: int = Field(ge=0)
    interpretation: str

    @field_validator("p_value")
    @classmethod
    def _coarse_p_value(cls, value: float) -> float:
        if value not in (0.05, 0.10, 0.20):
            raise ValueError("p_value must be one of 0.05, 0.10, 0.20")
        return value


class LifestyleCorrelationModel(_Strict):
    pair: str
    lifestyle_metric: str
    health_metric: str
    correlation: CorrelationResultModel
    insight: str = Field(min_length=1)
    recommendation: str = Field(min_length=1)
    confidence: int = Field(ge=0, le=100)


class CorrelationReportModel(_Strict):
    correlations: list[LifestyleCorrelationModel]
    summary: str


# ---------------------------------------------------------------------------
# Health score
# ---------------------------------------------------------------------------

class DomainScoreModel(_Strict):
    score: int = Field(ge=0)
    max_points: int
    sub_scores: dict[str, int]

    @model_validator(mode="after")
    def _consistent(self) -> DomainScoreModel:
        if any(v < 0 for v in self.sub_scores.values()):
            raise ValueError("sub-scores must not be negative")
        if self.score != sum(self.sub_scores.values()):
            raise ValueError("score must equal the sum of sub_scores")
        if self.score > self.max_points:
            raise ValueError("score must not exceed max_points")
        return self


class HealthScoreModel(_Strict):
    overall: int = Field(ge=0, le=100)
    domains: dict[str, DomainScoreModel]
    approximations: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _consistent(self) -> HealthScoreModel:
        if set(self.domains) != set(DOMAIN_MAX_POINTS):
            raise ValueError(f"domains must be exactly {sorted(DOMAIN_MAX_POINTS)}")
        for name, domain in self.domains.items():
            if domain.max_points != DOMAIN_MAX_POINTS[name]:
                raise ValueError(f"{name} max_points must be {DOMAIN_MAX_POINTS[name]}")
        if self.overall != sum(d.score for d in self.domains.values()):
            raise ValueError("overall must equal the sum of domain scores")
        return self


# ---------------------------------------------------------------------------
# Alerts and briefing
# ---------------------------------------------------------------------------

class AlertModel(_Strict):
    level: Literal["critical", "warning", "info"]
    category: str
    metric: str
    current_value: int | float
    threshold: int | float
    message: str
    recommended_action: str


class RecommendationModel(_Strict):
    priority: Literal["Critical", "High", "Medium", "Low"]
    category: str
    action: str = Field(min_length=1)
    reasoning: str
    timing: str | None = None


class BriefingModel(_Strict):
    date: str
    priority: str
    health_focus: str
    energy_prediction: int = Field(ge=1, le=10)
    recommendations: list[RecommendationModel]
    insights: list[str] = Field(default_factory=list)
    risk_alerts: list[str] = Field(default_factory=list)


class DailyBriefingModel(_Strict):
    alerts: list[AlertModel]
    briefing: BriefingModel

    @model_validator(mode="after")
    def _critical_first(self) -> DailyBriefingModel:
        levels = [a.level == "critical" for a in self.alerts]
        if levels != sorted(levels, reverse=True):
            raise ValueError("critical alerts must come first")
        return self


ANALYSIS_SCHEMAS: dict[str, type[BaseModel]] = {
    "correlations": CorrelationReportModel,
    "health_score": HealthScoreModel,
    "daily_briefing": DailyBriefingModel,
}
