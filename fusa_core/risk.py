"""ISO 12100 style risk scoring and the risk-graph PLr rule table."""

from __future__ import annotations

from .config import DEFAULT_SETTINGS, EngineSettings
from .models import (
    AVOIDANCE_LEVELS,
    FREQUENCY_LEVELS,
    RISK_LEVELS,
    SEVERITY_LEVELS,
    RiskAssessment,
    RiskInput,
)


def risk_score(severity: str, frequency: str, avoidance: str) -> int:
    """Return the product of the three 1-based ordinal ranks (1..64).

    Raises ``ValueError`` for names outside the scales; callers validate raw
    data through :mod:`fusa_core.conversions` first.
    """

    return (
        _rank(severity, SEVERITY_LEVELS, "severity")
        * _rank(frequency, FREQUENCY_LEVELS, "frequency")
        * _rank(avoidance, AVOIDANCE_LEVELS, "avoidance")
    )


def risk_level(score: int, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    for upper, level in settings.risk_bands:
        if score <= upper:
            return level
    return RISK_LEVELS[-1]


def required_performance_level(level: str, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    """Return the PLr for a risk level; unknown levels fall back to PLc."""
    return settings.plr_by_risk_level.get(level, "PLc")


def assess_risk(risk: RiskInput, settings: EngineSettings = DEFAULT_SETTINGS) -> RiskAssessment:
    score = risk_score(risk.severity, risk.frequency, risk.avoidance)
    level = risk_level(score, settings)
    return RiskAssessment(
        score=score,
        level=level,
        required_pl=required_performance_level(level, settings),
        has_mitigation=bool(risk.mitigation and risk.mitigation.strip()),
    )


def _rank(value: str, scale: tuple, label: str) -> int:
    try:
        return scale.index(value) + 1
    except ValueError:
        raise ValueError(f"Unknown {label} '{value}' (expected one of {', '.join(scale)})") from None
