import itertools

import pytest

from fusa_core.config import settings_from_mapping
from fusa_core.models import AVOIDANCE_LEVELS, FREQUENCY_LEVELS, RISK_LEVELS, SEVERITY_LEVELS, RiskInput
from fusa_core.risk import assess_risk, required_performance_level, risk_level, risk_score


def test_risk_score_is_product_of_ranks() -> None:
    assert risk_score("Critical", "Frequent", "Difficult") == 4 * 3 * 3
    assert risk_score("Negligible", "Rare", "Easy") == 1
    assert risk_score("Critical", "Continuous", "Impossible") == 64


@pytest.mark.parametrize("axis", [0, 1, 2])
def test_risk_score_is_non_decreasing_in_each_ordinal(axis: int) -> None:
    scales = [SEVERITY_LEVELS, FREQUENCY_LEVELS, AVOIDANCE_LEVELS]
    others = [s for i, s in enumerate(scales) if i != axis]
    for fixed in itertools.product(*others):
        scores = []
        for value in scales[axis]:
            args = list(fixed)
            args.insert(axis, value)
            scores.append(risk_score(*args))
        assert scores == sorted(scores)


@pytest.mark.parametrize(
    "score, expected",
    [(1, "Low"), (6, "Low"), (7, "Medium"), (24, "Medium"), (25, "High"), (36, "High"), (37, "Extreme"), (64, "Extreme")],
)
def test_risk_level_bands(score: int, expected: str) -> None:
    assert risk_level(score) == expected


def test_risk_level_is_a_step_function() -> None:
    ranks = [RISK_LEVELS.index(risk_level(s)) for s in range(1, 65)]
    assert ranks == sorted(ranks)


@pytest.mark.parametrize(
    "level, expected",
    [("Low", "PLb"), ("Medium", "PLc"), ("High", "PLd"), ("Extreme", "PLe"), ("Unknown", "PLc")],
)
def test_required_performance_level(level: str, expected: str) -> None:
    assert required_performance_level(level) == expected


def test_unknown_severity_raises() -> None:
    with pytest.raises(ValueError, match="severity"):
        risk_score("Catastrophic", "Rare", "Easy")


def test_assess_risk_flags_missing_mitigation() -> None:
    result = assess_risk(RiskInput("Critical", "Frequent", "Difficult", mitigation="   "))

    assert result.score == 36
    assert result.level == "High"
    assert result.required_pl == "PLd"
    assert result.has_mitigation is False


def test_custom_risk_bands_from_settings() -> None:
    settings = settings_from_mapping({"risk": {"bands": {"Low": 4, "Medium": 12, "High": 30}}})

    assert risk_level(5, settings) == "Medium"
    assert risk_level(31, settings) == "Extreme"
