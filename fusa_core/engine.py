"""PFHd aggregation per subsystem architecture and SIL classification."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, replace
from itertools import combinations
from types import MappingProxyType
from typing import Callable, List, Mapping, Optional, Sequence, Tuple

from .models import (
    SIL_LEVELS,
    Assumptions,
    PfhdResult,
    ProofTestCheck,
    ProofTestRisk,
    ProofTestSuggestion,
    SafetyFunctionSpec,
    SubsystemPfhd,
    SubsystemSpec,
    sil_rank,
)

logger = logging.getLogger(__name__)

# Upper PFHd bound (exclusive) per SIL, best level first.
SIL_PFHD_BANDS: Tuple[Tuple[str, float], ...] = (
    ("SIL3", 1e-7),
    ("SIL2", 1e-6),
    ("SIL1", 1e-5),
)

# Suggested useful lifetime T10D in hours; SIL3 is planned more conservatively.
PROOF_TEST_T10D_BY_SIL: Mapping[str, float] = MappingProxyType({"SIL1": 87600.0, "SIL2": 87600.0, "SIL3": 43800.0})


@dataclass(frozen=True)
class _Channels:
    """Inputs of one subsystem formula."""

    lambdas: Tuple[float, ...]  # PFHd of each device
    dcs: Tuple[float, ...]
    beta: float
    t1: float
    t2: float


def _series(c: _Channels) -> float:
    return sum(c.lambdas)


def _one_out_of_two(c: _Channels) -> float:
    l1, l2 = c.lambdas[:2]
    return (1.0 - c.beta) ** 2 * l1 * l2 * c.t1 + c.beta * (l1 + l2) / 2.0


def _one_out_of_two_d(c: _Channels) -> float:
    l1, l2 = c.lambdas[:2]
    dc1, dc2 = c.dcs[:2]
    ind = l1 * l2 * ((dc1 + dc2) * c.t2 / 2.0 + (2.0 - dc1 - dc2) * c.t1 / 2.0)
    return (1.0 - c.beta) ** 2 * ind + c.beta * (l1 + l2) / 2.0


def _two_out_of_three(c: _Channels) -> float:
    lams = c.lambdas[:3]
    pairs = sum(a * b for a, b in combinations(lams, 2))
    return (1.0 - c.beta) ** 2 * pairs * c.t1 + c.beta * sum(lams) / 3.0


def _one_out_of_three(c: _Channels) -> float:
    l1, l2, l3 = c.lambdas[:3]
    return (1.0 - c.beta) ** 3 * l1 * l2 * l3 * c.t1 ** 2 + c.beta * (l1 + l2 + l3) / 3.0


# architecture -> (formula, minimum device count, description)
ARCHITECTURE_FORMULAS: Mapping[str, Tuple[Callable[[_Channels], float], int, str]] = MappingProxyType(
    {
        "1oo1": (_series, 1, "sum(PFHd)"),
        "2oo2": (_series, 2, "sum(PFHd)"),
        "1oo2": (_one_out_of_two, 2, "(1-b)^2*l1*l2*T1 + b*(l1+l2)/2"),
        "1oo2D": (
            _one_out_of_two_d,
            2,
            "(1-b)^2*l1*l2*((DC1+DC2)*T2/2 + (2-DC1-DC2)*T1/2) + b*(l1+l2)/2",
        ),
        "2oo3": (_two_out_of_three, 3, "(1-b)^2*(l1l2+l1l3+l2l3)*T1 + b*mean(l)"),
        "1oo3": (_one_out_of_three, 3, "(1-b)^3*l1*l2*l3*T1^2 + b*mean(l)"),
    }
)


def classify_sil_from_pfhd(pfhd: float) -> Optional[str]:
    """Return the highest SIL whose upper PFHd bound ``pfhd`` stays below."""

    for sil, upper in SIL_PFHD_BANDS:
        if pfhd < upper:
            return sil
    return None


def subsystem_pfhd(subsystem: SubsystemSpec, assumptions: Assumptions = Assumptions()) -> SubsystemPfhd:
    """Return the PFHd contribution of one subsystem."""

    label = subsystem.label
    warnings: List[str] = []
    devices = subsystem.devices
    if not devices:
        warnings.append(f"Subsystem {label}: no devices defined; contributes no PFHd.")
        return SubsystemPfhd(subsystem.id, subsystem.architecture, 0.0, "none", tuple(warnings), complete=False)

    lambdas = []
    complete = True
    for device in devices:
        if device.pfhd is not None and 0.0 < device.pfhd < math.inf:
            lambdas.append(float(device.pfhd))
            continue
        if device.pfhd is None:
            warnings.append(
                f"Subsystem {label}: PFHd missing for device {device.id}; PFHd-based evaluation requires it."
            )
        else:
            warnings.append(
                f"Subsystem {label}: PFHd {device.pfhd:g} of device {device.id} is out of range (must be > 0)."
            )
        complete = False
        lambdas.append(0.0)

    dcs = []
    for device in devices:
        dc = device.dcavg if device.dcavg is not None else 0.0
        if not 0.0 <= dc <= 1.0:
            warnings.append(f"Subsystem {label}: DCavg {dc} of device {device.id} outside [0, 1]; clamped.")
            dc = min(1.0, max(0.0, dc))
        dcs.append(dc)

    betas = [d.beta if d.beta is not None else assumptions.beta for d in devices]
    beta = sum(betas) / len(betas)
    if not 0.0 <= beta <= 1.0:
        warnings.append(f"Subsystem {label}: beta {beta} outside [0, 1]; clamped.")
        beta = min(1.0, max(0.0, beta))

    channels = _Channels(
        lambdas=tuple(lambdas),
        dcs=tuple(dcs),
        beta=beta,
        t1=subsystem.proof_test_interval or assumptions.T1,
        t2=subsystem.diagnostic_test_interval or assumptions.T2,
    )

    entry = ARCHITECTURE_FORMULAS.get(subsystem.architecture)
    if entry is None:
        warnings.append(
            f"Subsystem {label}: unknown architecture '{subsystem.architecture}'; devices summed in series."
        )
        formula, description = _series, ARCHITECTURE_FORMULAS["1oo1"][2]
    else:
        formula, minimum, description = entry
        if len(devices) < minimum:
            warnings.append(
                f"Subsystem {label}: architecture {subsystem.architecture} needs {minimum} devices, "
                f"got {len(devices)}; devices summed in series."
            )
            formula, description = _series, ARCHITECTURE_FORMULAS["1oo1"][2]
        elif len(devices) > minimum and formula is not _series:
            warnings.append(
                f"Subsystem {label}: only the first {minimum} devices enter the "
                f"{subsystem.architecture} formula."
            )

    pfhd = formula(channels)
    logger.debug("Subsystem %s (%s): PFHd %.3e", label, subsystem.architecture, pfhd)
    return SubsystemPfhd(subsystem.id, subsystem.architecture, pfhd, description, tuple(warnings), complete)


def aggregate_pfhd(
    subsystems: Sequence[SubsystemSpec],
    assumptions: Assumptions = Assumptions(),
) -> PfhdResult:
    """Return total PFHd (sum over subsystems) and the achieved SIL.

    No SIL is claimed when a subsystem lacks usable PFHd data: the total is
    then only a lower bound.
    """

    parts = tuple(subsystem_pfhd(s, assumptions) for s in subsystems)
    warnings: List[str] = []
    if not parts:
        warnings.append("No subsystems defined.")
    for part in parts:
        warnings.extend(part.warnings)
    total = sum(p.pfhd for p in parts)
    incomplete = [p.id for p in parts if not p.complete]
    if incomplete:
        achieved = None
        warnings.append(
            f"PFHd data incomplete for {', '.join(incomplete)}; total {total:.3e} 1/h is a lower bound "
            "and no SIL is claimed."
        )
    else:
        achieved = classify_sil_from_pfhd(total)
        if achieved is None:
            warnings.append(f"Total PFHd {total:.3e} 1/h does not reach SIL1.")
    return PfhdResult(total_pfhd=total, achieved_sil=achieved, subsystems=parts, warnings=tuple(warnings))


def check_proof_test(
    proof_test_interval: Optional[float],
    mission_time: Optional[float],
    coverage: Optional[float] = None,
    assumptions: Assumptions = Assumptions(),
) -> ProofTestCheck:
    """Grade the proof-test interval T1 against the useful lifetime T10D.

    The risk level follows the share of T10D taken by T1: above 100% is
    Critical, above 80% High, above 50% Medium. Coverage is adequate while
    T1 stays within half of T10D; above 30% an optimisation hint is added.
    ``coverage`` is the fraction of dangerous faults the proof test reveals.
    """

    t1, t10d = proof_test_interval, mission_time
    warnings: List[str] = []
    recommendations: List[str] = []
    risk: ProofTestRisk = "Low"
    ratio: Optional[float] = None
    adequate = True

    if t1 is not None and t10d is not None and t10d > 0:
        ratio = t1 / t10d
        half = 0.5 * t10d
        if t1 > t10d:
            risk = "Critical"
            warnings.append(
                f"T1 ({t1:g} h) exceeds T10D ({t10d:g} h): the proof-test interval is longer than "
                "the useful lifetime and PFHd may be understated."
            )
            recommendations.append("Shorten the proof-test interval or extend the useful lifetime.")
            recommendations.append("Re-check the validity of the PFHd calculation.")
        elif t1 > 0.8 * t10d:
            risk = "High"
            warnings.append(f"T1 ({t1:g} h) is close to T10D ({t10d:g} h); shorten the proof-test interval.")
        elif t1 > half:
            risk = "Medium"
            recommendations.append("Shorten the proof-test interval further to gain safety margin.")

        if ratio > 0.5:
            adequate = False
            warnings.append(f"T1 covers {ratio:.0%} of T10D; keep it below 50%.")
            recommendations.append(f"Limit T1 to half of T10D ({half:.0f} h).")
        elif ratio > 0.3:
            warnings.append(f"T1 covers {ratio:.0%} of T10D; consider optimising the proof-test interval.")
            recommendations.append("Shorten the proof-test interval to improve coverage.")

    if t10d is not None and t10d > assumptions.lifetime * 1.5:
        warnings.append(
            f"T10D ({t10d:g} h, about {t10d / 8760:.1f} years) exceeds the typical useful lifetime; "
            "confirm device lifetime and maintenance strategy."
        )
        recommendations.append("Plan device replacement before the end of the useful lifetime.")

    if coverage is not None and coverage < 0.9:
        warnings.append(f"Proof-test coverage {coverage:.0%} is below the recommended 90%.")
        recommendations.append("Raise the proof-test coverage to at least 90%.")

    return ProofTestCheck(
        t1=t1,
        t10d=t10d,
        risk_level=risk,
        coverage_ratio=ratio,
        coverage_adequate=adequate,
        coverage=coverage,
        warnings=tuple(warnings),
        recommendations=tuple(dict.fromkeys(recommendations)),
    )


def proof_test_warnings(
    proof_test_interval: Optional[float],
    mission_time: Optional[float],
    assumptions: Assumptions = Assumptions(),
) -> List[str]:
    """Return T1/T10D plausibility warnings."""

    return list(check_proof_test(proof_test_interval, mission_time, assumptions=assumptions).warnings)


def suggest_proof_test_parameters(target_sil: str, mission_time: Optional[float] = None) -> ProofTestSuggestion:
    """Suggest T10D for ``target_sil`` (or keep ``mission_time``) and T1 as half of it."""

    if target_sil not in SIL_LEVELS:
        raise ValueError(f"Unknown SIL: {target_sil!r}")
    t10d = mission_time if mission_time else PROOF_TEST_T10D_BY_SIL[target_sil]
    t1 = 0.5 * t10d
    return ProofTestSuggestion(
        target_sil=target_sil,
        t10d=t10d,
        t1=t1,
        recommendations=(
            f"T10D: {t10d:.0f} h (about {t10d / 8760:.1f} years).",
            f"T1: {t1:.0f} h (about {t1 / 8760:.2f} years).",
            "Keep T1 at or below half of T10D.",
        ),
    )


def evaluate_function_pfhd(
    function: SafetyFunctionSpec,
    assumptions: Assumptions = Assumptions(),
) -> PfhdResult:
    """Aggregate the subsystems of a safety function and check its SIL target."""

    if function.proof_test_interval:
        assumptions = replace(assumptions, T1=function.proof_test_interval)
    result = aggregate_pfhd(function.subsystems, assumptions)
    warnings = list(result.warnings)
    proof_test = None
    if function.proof_test_interval is not None or function.mission_time is not None:
        proof_test = check_proof_test(
            function.proof_test_interval,
            function.mission_time,
            function.proof_test_coverage,
            assumptions,
        )
        warnings.extend(proof_test.warnings)
    if function.target_sil is not None and sil_rank(result.achieved_sil) < sil_rank(function.target_sil):
        warnings.append(
            f"Achieved {result.achieved_sil or 'no SIL'} is below the target {function.target_sil}."
        )
    return PfhdResult(
        total_pfhd=result.total_pfhd,
        achieved_sil=result.achieved_sil,
        subsystems=result.subsystems,
        warnings=tuple(warnings),
        proof_test=proof_test,
    )
