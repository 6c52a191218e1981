import math
from dataclasses import replace

import pytest

from fusa_core.engine import (
    aggregate_pfhd,
    check_proof_test,
    classify_sil_from_pfhd,
    evaluate_function_pfhd,
    proof_test_warnings,
    subsystem_pfhd,
    suggest_proof_test_parameters,
)
from fusa_core.models import Assumptions, DeviceSpec, SafetyFunctionSpec, SubsystemSpec


def _device(pfhd: float, dcavg: float = 0.9, beta: float = 0.1, name: str = "D") -> DeviceSpec:
    return DeviceSpec(name, pfhd=pfhd, dcavg=dcavg, beta=beta)


def test_two_series_subsystems_reach_sil2(default_assumptions: Assumptions) -> None:
    subsystems = [
        SubsystemSpec("SS1", "1oo1", (_device(1e-7),)),
        SubsystemSpec("SS2", "1oo1", (_device(1e-7),)),
    ]

    result = aggregate_pfhd(subsystems, default_assumptions)

    assert math.isclose(result.total_pfhd, 2e-7)
    assert result.achieved_sil == "SIL2"
    assert [s.pfhd for s in result.subsystems] == pytest.approx([1e-7, 1e-7])


def test_pfhd_is_additive_across_subsystems(default_assumptions: Assumptions) -> None:
    a = SubsystemSpec("A", "1oo2", (_device(1e-6), _device(2e-6)))
    b = SubsystemSpec("B", "2oo2", (_device(3e-8), _device(4e-8)))

    total = aggregate_pfhd([a, b], default_assumptions).total_pfhd
    parts = aggregate_pfhd([a], default_assumptions).total_pfhd + aggregate_pfhd([b], default_assumptions).total_pfhd

    assert math.isclose(total, parts)


def test_one_out_of_two_matches_beta_model(default_assumptions: Assumptions) -> None:
    l1, l2, beta = 1e-6, 2e-6, 0.1
    result = subsystem_pfhd(SubsystemSpec("SS", "1oo2", (_device(l1), _device(l2))), default_assumptions)

    expected = (1 - beta) ** 2 * l1 * l2 * default_assumptions.T1 + beta * (l1 + l2) / 2
    assert math.isclose(result.pfhd, expected)
    assert result.warnings == ()


def test_one_out_of_two_d_uses_diagnostic_interval(default_assumptions: Assumptions) -> None:
    l1 = l2 = 1e-6
    devices = (_device(l1, dcavg=0.9), _device(l2, dcavg=0.9))
    result = subsystem_pfhd(SubsystemSpec("SS", "1oo2D", devices, diagnostic_test_interval=10.0), default_assumptions)

    ind = l1 * l2 * (1.8 * 10.0 / 2 + 0.2 * default_assumptions.T1 / 2)
    assert math.isclose(result.pfhd, 0.81 * ind + 0.1 * (l1 + l2) / 2)


def test_two_out_of_three_sums_channel_pairs(default_assumptions: Assumptions) -> None:
    lams = (1e-7, 2e-7, 3e-7)
    devices = tuple(_device(l, beta=0.05) for l in lams)
    result = subsystem_pfhd(SubsystemSpec("SS", "2oo3", devices, proof_test_interval=8760.0), default_assumptions)

    pairs = 1e-7 * 2e-7 + 1e-7 * 3e-7 + 2e-7 * 3e-7
    assert math.isclose(result.pfhd, 0.95 ** 2 * pairs * 8760.0 + 0.05 * sum(lams) / 3)


def test_missing_pfhd_is_reported_and_counted_as_zero(default_assumptions: Assumptions) -> None:
    devices = (DeviceSpec("X", dcavg=0.9), _device(1e-7, name="Y"))
    result = subsystem_pfhd(SubsystemSpec("SS", "2oo2", devices), default_assumptions)

    assert math.isclose(result.pfhd, 1e-7)
    assert not result.complete
    assert any("PFHd missing for device X" in w for w in result.warnings)


@pytest.mark.parametrize("pfhd", [0.0, -1e-8])
def test_out_of_range_pfhd_has_its_own_warning(default_assumptions: Assumptions, pfhd: float) -> None:
    result = subsystem_pfhd(SubsystemSpec("SS", "1oo1", (DeviceSpec("X", pfhd=pfhd),)), default_assumptions)

    assert result.pfhd == 0.0
    assert not result.complete
    assert any("of device X is out of range (must be > 0)" in w for w in result.warnings)
    assert not any("missing" in w for w in result.warnings)


def test_incomplete_pfhd_data_claims_no_sil(default_assumptions: Assumptions) -> None:
    subsystems = [
        SubsystemSpec("SS-A", "1oo1", (_device(1e-8),)),
        SubsystemSpec("SS-B", "1oo1", (DeviceSpec("K"),)),
    ]

    result = aggregate_pfhd(subsystems, default_assumptions)

    assert math.isclose(result.total_pfhd, 1e-8)
    assert result.achieved_sil is None
    assert any("PFHd data incomplete for SS-B" in w for w in result.warnings)


def test_empty_subsystem_claims_no_sil(default_assumptions: Assumptions) -> None:
    result = aggregate_pfhd([SubsystemSpec("SS", "1oo1", ())], default_assumptions)

    assert result.total_pfhd == 0.0
    assert result.achieved_sil is None


def test_too_few_devices_fall_back_to_series(default_assumptions: Assumptions) -> None:
    result = subsystem_pfhd(SubsystemSpec("SS", "1oo2", (_device(5e-8),)), default_assumptions)

    assert math.isclose(result.pfhd, 5e-8)
    assert any("needs 2 devices" in w for w in result.warnings)


def test_out_of_range_beta_is_clamped(default_assumptions: Assumptions) -> None:
    devices = (_device(1e-6, beta=1.5), _device(1e-6, beta=1.5))
    result = subsystem_pfhd(SubsystemSpec("SS", "1oo2", devices), default_assumptions)

    assert math.isclose(result.pfhd, 1e-6)
    assert any("beta" in w for w in result.warnings)


def test_empty_subsystem_list_warns(default_assumptions: Assumptions) -> None:
    result = aggregate_pfhd([], default_assumptions)

    assert result.total_pfhd == 0.0
    assert "No subsystems defined." in result.warnings


@pytest.mark.parametrize(
    "pfhd, expected",
    [
        (5e-9, "SIL3"),
        (9.99e-8, "SIL3"),
        (1e-7, "SIL2"),
        (5e-7, "SIL2"),
        (1e-6, "SIL1"),
        (9.99e-6, "SIL1"),
        (1e-5, None),
        (1e-3, None),
    ],
)
def test_classify_sil_from_pfhd_bands(pfhd: float, expected: str) -> None:
    assert classify_sil_from_pfhd(pfhd) == expected


def test_classified_sil_never_improves_with_higher_pfhd() -> None:
    ranks = {"SIL3": 3, "SIL2": 2, "SIL1": 1, None: 0}
    values = [10 ** (-9 + i * 0.25) for i in range(20)]
    levels = [ranks[classify_sil_from_pfhd(v)] for v in values]

    assert levels == sorted(levels, reverse=True)


def test_proof_test_interval_longer_than_lifetime_warns() -> None:
    warnings = proof_test_warnings(100000.0, 87600.0)

    assert any("exceeds T10D" in w for w in warnings)
    assert any("keep it below 50%" in w for w in warnings)


def test_short_proof_test_interval_has_no_warnings() -> None:
    assert proof_test_warnings(8760.0, 87600.0) == []


@pytest.mark.parametrize(
    "t1, expected",
    [(100000.0, "Critical"), (75000.0, "High"), (50000.0, "Medium"), (30000.0, "Low"), (8760.0, "Low")],
)
def test_proof_test_expiry_risk_levels(t1: float, expected: str) -> None:
    assert check_proof_test(t1, 87600.0).risk_level == expected


def test_proof_test_coverage_bands() -> None:
    too_long = check_proof_test(50000.0, 87600.0)
    optimise = check_proof_test(30000.0, 87600.0)
    short = check_proof_test(8760.0, 87600.0)

    assert not too_long.coverage_adequate
    assert "Limit T1 to half of T10D (43800 h)." in too_long.recommendations
    assert optimise.coverage_adequate
    assert any("consider optimising" in w for w in optimise.warnings)
    assert short.coverage_adequate
    assert math.isclose(short.coverage_ratio, 0.1)
    assert short.warnings == () and short.recommendations == ()


def test_low_proof_test_coverage_is_warned() -> None:
    result = check_proof_test(8760.0, 87600.0, coverage=0.6)

    assert result.coverage == 0.6
    assert "Proof-test coverage 60% is below the recommended 90%." in result.warnings
    assert "Raise the proof-test coverage to at least 90%." in result.recommendations


def test_proof_test_without_t10d_only_checks_coverage() -> None:
    result = check_proof_test(8760.0, None, coverage=0.95)

    assert result.risk_level == "Low"
    assert result.coverage_ratio is None
    assert result.warnings == ()


@pytest.mark.parametrize("sil, t10d", [("SIL1", 87600.0), ("SIL2", 87600.0), ("SIL3", 43800.0)])
def test_suggested_proof_test_parameters(sil: str, t10d: float) -> None:
    suggestion = suggest_proof_test_parameters(sil)

    assert suggestion.t10d == t10d
    assert suggestion.t1 == 0.5 * t10d
    assert len(suggestion.recommendations) == 3


def test_suggestion_keeps_given_mission_time() -> None:
    suggestion = suggest_proof_test_parameters("SIL3", mission_time=60000.0)

    assert suggestion.t10d == 60000.0
    assert suggestion.t1 == 30000.0
    with pytest.raises(ValueError):
        suggest_proof_test_parameters("SIL4")


def test_function_target_sil_shortfall_is_reported(default_assumptions: Assumptions) -> None:
    function = SafetyFunctionSpec(
        id="SF",
        target_sil="SIL3",
        subsystems=(SubsystemSpec("SS", "1oo1", (_device(5e-7),)),),
    )

    result = evaluate_function_pfhd(function, default_assumptions)

    assert result.achieved_sil == "SIL2"
    assert any("below the target SIL3" in w for w in result.warnings)


def test_function_proof_test_interval_overrides_t1(default_assumptions: Assumptions) -> None:
    devices = (_device(1e-6), _device(1e-6))
    function = SafetyFunctionSpec(
        id="SF",
        subsystems=(SubsystemSpec("SS", "1oo2", devices),),
        proof_test_interval=8760.0,
    )

    result = evaluate_function_pfhd(function, default_assumptions)

    assert math.isclose(result.total_pfhd, 0.81 * 1e-12 * 8760.0 + 0.1 * 1e-6)


def test_function_result_carries_the_proof_test_check(default_assumptions: Assumptions) -> None:
    function = SafetyFunctionSpec(
        id="SF",
        subsystems=(SubsystemSpec("SS", "1oo1", (_device(1e-8),)),),
        proof_test_interval=80000.0,
        mission_time=87600.0,
        proof_test_coverage=0.8,
    )

    result = evaluate_function_pfhd(function, default_assumptions)

    assert result.proof_test is not None
    assert result.proof_test.risk_level == "High"
    assert not result.proof_test.coverage_adequate
    assert "Proof-test coverage 80% is below the recommended 90%." in result.warnings
    assert evaluate_function_pfhd(replace(function, proof_test_interval=None, mission_time=None)).proof_test is None
