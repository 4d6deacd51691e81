"""Privacy policy for controlling what data is sent to the insight generator.

The insight generator should generally operate on:
- the deterministic rule-based result it is asked to enrich
- rounded per-category aggregates (means, trends)

The prior insight for the same analysis (if any) is sent in every mode so the
generator can relate today to its last reading; strict and standard modes
round it like the rule-based result. Raw measurement records never leave the
process, and record counts are only included outside strict mode.
"""

from __future__ import annotations

from typing import Any, Literal

PrivacyMode = Literal["strict", "standard", "explicit"]
PRIVACY_MODES: tuple[str, ...] = ("strict", "standard", "explicit")


def _round_floats(obj: Any, ndigits: int = 2) -> Any:
    if isinstance(obj, float):
        return round(obj, ndigits)
    if isinstance(obj, dict):
        return {k: _round_floats(v, ndigits=ndigits) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_round_floats(v, ndigits=ndigits) for v in obj]
    return obj


def build_gateway_payload(
    *,
    subject_id: str,
    analysis_type: str,
    aggregates: dict[str, Any],
    rule_based_result: dict[str, Any],
    prior_insight: dict[str, Any] | None = None,
    record_counts: dict[str, int] | None = None,
    privacy_mode: PrivacyMode = "strict",
) -> dict[str, Any]:
    """Build the minimized payload rendered into the insight generator prompt."""
    if privacy_mode not in PRIVACY_MODES:
        raise ValueError(
            f"Unknown privacy mode {privacy_mode!r}; expected one of {PRIVACY_MODES}"
        )

    base: dict[str, Any] = {
        "subject_id": subject_id,
        "analysis_type": analysis_type,
        "aggregates": _round_floats(aggregates, ndigits=1),
        "rule_based_result": _round_floats(rule_based_result, ndigits=3),
    }
    if prior_insight is not None:
        base["prior_insight"] = _round_floats(prior_insight, ndigits=3)

    if privacy_mode == "strict":
        return base

    if privacy_mode == "standard":
        base["record_counts"] = dict(record_counts or {})
        return base

    # explicit
    # Everything the caller supplied, unrounded.
    return {
        "subject_id": subject_id,
        "analysis_type": analysis_type,
        "aggregates": aggregates,
        "rule_based_result": rule_based_result,
        "record_counts": dict(record_counts or {}),
        "prior_insight": prior_insight,
    }


def disclosed_fields(payload: dict[str, Any]) -> list[str]:
    """Top-level fields present in a payload, for the audit trail."""
    return sorted(k for k, v in payload.items() if v is not None)
