"""Checklist evaluation against ISO 12100 / ISO 13849-1 and the IEC 62061 cross-check."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from .category import advise_category, category_input_for_function
from .config import DEFAULT_SETTINGS, EngineSettings
from .diagnostics import calculate_dcavg
from .engine import evaluate_function_pfhd
from .mapping import check_consistency
from .models import (
    CATEGORIES,
    PERFORMANCE_LEVELS,
    ComplianceChecklist,
    DeviceDc,
    DualStandardResult,
    EvaluationResult,
    FunctionComputation,
    Iso13849Parameters,
    SafetyFunctionSpec,
    pl_rank,
    sil_rank,
)
from .risk import assess_risk

logger = logging.getLogger(__name__)

# Category -> architecture points of the achieved-PL score.
_CATEGORY_POINTS = {"B": 0, "1": 0, "2": 1, "3": 2, "4": 3}


class FunctionNotFoundError(LookupError):
    """Raised when a safety function id is not in the supplied mapping."""


def achieved_performance_level(
    params: Iso13849Parameters,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> str:
    """Return the PL reached by MTTFd, DCavg, category and CCF.

    Each factor is graded into points; their sum selects PLb..PLe. Raises
    ``ValueError`` for a DCavg outside ``[0, 1]`` or an unknown category.
    """

    if not 0.0 <= params.dcavg <= 1.0:
        raise ValueError(f"DCavg {params.dcavg} outside valid range [0, 1]")
    if params.category not in CATEGORIES:
        raise ValueError(f"Unknown category '{params.category}' (expected one of {', '.join(CATEGORIES)})")

    if params.mttfd < 3e6:
        mttfd_points = 0
    elif params.mttfd < 1e7:
        mttfd_points = 1
    else:
        mttfd_points = 2
    if params.dcavg < 0.6:
        dc_points = 0
    elif params.dcavg < 0.99:
        dc_points = 1
    else:
        dc_points = 2
    ccf_points = 1 if params.ccf_score >= settings.ccf_threshold else 0

    total = mttfd_points + dc_points + _CATEGORY_POINTS[params.category] + ccf_points
    if total <= 2:
        return "PLb"
    if total == 3:
        return "PLc"
    if total == 4:
        return "PLd"
    return "PLe"


def meets_requirement(params: Iso13849Parameters, settings: EngineSettings = DEFAULT_SETTINGS) -> bool:
    return not _shortfalls(params, achieved_performance_level(params, settings), settings)


def evaluate_compliance(
    checklist: ComplianceChecklist,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> EvaluationResult:
    """Evaluate a checklist; malformed data ends up as non-conformities."""

    details: Dict[str, str] = {}
    non_conformities: List[str] = []
    fragments: List[str] = []
    iso = checklist.iso13849

    try:
        risk = assess_risk(checklist.risk, settings)
    except ValueError as e:
        non_conformities.append(f"ISO12100: invalid risk parameters ({e}).")
        fragments.append("Correct the severity, frequency and avoidance ratings.")
    else:
        details["ISO12100.RiskScore"] = str(risk.score)
        details["ISO12100.RiskLevel"] = risk.level
        details["ISO12100.RequiredPL"] = risk.required_pl
        if risk.level in ("High", "Extreme") and not risk.has_mitigation:
            non_conformities.append(f"ISO12100: {risk.level.lower()} risk but no risk reduction measures provided.")
        if risk.level in ("High", "Extreme"):
            fragments.append(
                "Apply inherently safe design, add guarding and information for use, "
                "and review the severity/frequency/avoidance ratings."
            )
        if pl_rank(iso.required_pl) < pl_rank(risk.required_pl):
            non_conformities.append(
                f"ISO13849-1: required PL {iso.required_pl} is below the risk-derived PLr {risk.required_pl}."
            )
            fragments.append(f"Raise the required PL to at least {risk.required_pl}.")

    details["ISO13849.RequiredPL"] = iso.required_pl
    details["ISO13849.Category"] = iso.category
    details["ISO13849.CcfScore"] = str(iso.ccf_score)
    try:
        achieved = achieved_performance_level(iso, settings)
    except ValueError as e:
        non_conformities.append(f"ISO13849-1: invalid parameters ({e}).")
        fragments.append("Correct the category and DCavg of the safety function.")
    else:
        details["ISO13849.AchievedPL"] = achieved
        shortfalls = _shortfalls(iso, achieved, settings)
        if shortfalls:
            non_conformities.append(f"ISO13849-1: requirement not met ({'; '.join(shortfalls)}).")
            fragments.append(
                f"Verify the PL: target {iso.required_pl}, achieved {achieved}; improve the architecture, "
                f"DCavg or MTTFd, keep CCF at {settings.ccf_threshold} or more and complete the validation."
            )

    for item in checklist.general_items:
        if item.required and not item.completed:
            non_conformities.append(f"General item incomplete: {item.title or item.code} ({item.code}).")
            fragments.append(f"Complete general item: {item.title or item.code}.")

    compliant = not non_conformities
    summary = (
        "The system meets ISO 12100 and ISO 13849-1."
        if compliant
        else "The system has non-conformities that must be resolved."
    )
    logger.debug(
        "Evaluated %s: compliant=%s, %d non-conformities",
        checklist.system_name or "checklist",
        compliant,
        len(non_conformities),
    )
    return EvaluationResult(
        is_compliant=compliant,
        summary=summary,
        details=details,
        non_conformities=tuple(non_conformities),
        recommended_actions="None" if compliant else " ".join(dict.fromkeys(fragments)),
    )


def evaluate_dual_standard(
    checklist: ComplianceChecklist,
    function: SafetyFunctionSpec,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> DualStandardResult:
    """Evaluate ISO 13849-1 and IEC 62061 side by side and compare the verdicts."""

    iso = evaluate_compliance(checklist, settings)
    achieved_pl = iso.details.get("ISO13849.AchievedPL")
    pfhd = evaluate_function_pfhd(function, settings.assumptions)
    consistency = check_consistency(achieved_pl, pfhd.achieved_sil)

    iec_ok = bool(pfhd.subsystems) and pfhd.achieved_sil is not None and (
        function.target_sil is None or sil_rank(pfhd.achieved_sil) >= sil_rank(function.target_sil)
    )
    agree = iso.is_compliant == iec_ok

    issues: List[str] = list(pfhd.warnings) + list(consistency.warnings)
    if function.target_pl and function.target_pl != checklist.iso13849.required_pl:
        issues.append(
            f"Function target {function.target_pl} differs from the checklist requirement "
            f"{checklist.iso13849.required_pl}."
        )
    if not agree:
        issues.append(
            f"ISO 13849-1 verdict ({'compliant' if iso.is_compliant else 'not compliant'}) disagrees with "
            f"IEC 62061 verdict ({'compliant' if iec_ok else 'not compliant'})."
        )

    recommendations: List[str] = []
    if not iso.is_compliant:
        recommendations.append(iso.recommended_actions)
    if not iec_ok:
        recommendations.append("Lower the subsystem PFHd (redundancy, diagnostics or shorter proof tests).")
    if not consistency.is_consistent:
        recommendations.extend(consistency.recommended_actions)

    return DualStandardResult(
        iso13849=iso,
        achieved_pl=achieved_pl,
        pfhd=pfhd,
        consistency=consistency,
        verdicts_agree=agree,
        issues=tuple(issues),
        recommendations=tuple(dict.fromkeys(recommendations)),
    )


def compute_function(
    function_id: str,
    functions: Mapping[str, SafetyFunctionSpec],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> FunctionComputation:
    """Run category advice, PFHd and DCavg for one stored safety function."""

    function = functions.get(function_id)
    if function is None:
        raise FunctionNotFoundError(f"Safety function '{function_id}' not found")

    channels = function.channels()
    devices = [d for _, devs, _ in channels for d in devs]
    warnings: List[str] = []

    dc_devices = []
    for device in devices:
        if device.dcavg is None:
            warnings.append(f"Device {device.id}: DCavg missing; excluded from DCavg.")
        else:
            dc_devices.append(DeviceDc(device.id, device.dcavg))
    rates = [opts.demand_rate for _, _, opts in channels if opts.demand_rate is not None]
    dcavg = calculate_dcavg(
        dc_devices,
        demand_rate=min(rates) if rates else 1.0,
        series_count=max(len(devs) for _, devs, _ in channels),
        settings=settings,
    )

    category = advise_category(category_input_for_function(function), settings=settings)
    pfhd = evaluate_function_pfhd(function, settings.assumptions)
    warnings.extend(dcavg.warnings)
    warnings.extend(pfhd.warnings)
    warnings.extend(c.message for c in category.conflicts)

    return FunctionComputation(
        function_id=function.id,
        device_count=len(devices),
        redundant=any(len(devs) >= 2 for _, devs, _ in channels),
        category=category,
        pfhd=pfhd,
        dcavg=dcavg,
        warnings=tuple(warnings),
    )


def _shortfalls(params: Iso13849Parameters, achieved: str, settings: EngineSettings) -> List[str]:
    out = []
    if params.required_pl not in PERFORMANCE_LEVELS:
        out.append(f"unknown required PL '{params.required_pl}'")
    elif pl_rank(achieved) < pl_rank(params.required_pl):
        out.append(f"achieved {achieved} below required {params.required_pl}")
    if not params.validation_performed:
        out.append("validation not performed")
    if params.ccf_score < settings.ccf_threshold:
        out.append(f"CCF score {params.ccf_score} below {settings.ccf_threshold}")
    return out
