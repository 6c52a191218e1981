"""Diagnostic coverage (DCavg) of devices in series and fault-masking limits.

Series combination::

    DCavg = 1 - (1 - DC1) * (1 - DC2) * ... * (1 - DCn) * (1 - DCtest)

capped by the fault-masking limit ``L(n, r)`` for ``n`` series devices at
demand rate ``r``. Bad inputs never raise; they are reported as warnings and
the calculation continues with the remaining values.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from .config import DEFAULT_SETTINGS, EngineSettings
from .models import (
    CalculationStep,
    DcavgResult,
    DeviceDc,
    DiagnosticTestParameters,
    MaskingRiskResult,
    SeriesCheckResult,
)

logger = logging.getLogger(__name__)


def masking_limit(
    series_count: int,
    demand_rate: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> float:
    """Return the fault-masking upper limit for DCavg.

    Non-increasing in ``series_count`` and bounded to ``[floor, base]``.
    """

    coeff = settings.diagnostics.masking
    r = float(np.clip(demand_rate, 0.0, 1.0))
    reduction = min(coeff.max_reduction, max(0, series_count - 1) * coeff.step)
    limit = coeff.base - reduction
    if r < 1.0:
        limit *= coeff.demand_floor + r * (1.0 - coeff.demand_floor)
    return max(coeff.floor, limit)


def diagnostic_test_dc(
    demand_rate: float,
    test: Optional[DiagnosticTestParameters] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> float:
    """Return the DC contribution of the test channel."""

    diag = settings.diagnostics
    r = float(np.clip(demand_rate, 0.0, 1.0))
    if test is not None:
        if test.frequency > 0 and test.coverage > 0:
            effectiveness = 1.0 - math.exp(-r * test.frequency)
            return min(diag.test_dc_cap, test.coverage * effectiveness)
        return 0.0
    return min(diag.test_dc_cap, r * diag.test_dc_fallback_factor)


def calculate_dcavg(
    devices: Sequence[DeviceDc],
    demand_rate: float = 1.0,
    series_count: Optional[int] = None,
    test: Optional[DiagnosticTestParameters] = None,
    detailed: bool = False,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> DcavgResult:
    """Return DCavg for ``devices`` in series, capped by the masking limit.

    ``series_count`` feeds only the masking-limit formula and defaults to the
    number of devices. With ``detailed=True`` every step records its
    intermediate values in ``DcavgResult.steps``.
    """

    diag = settings.diagnostics
    warnings: List[str] = []
    recommendations: List[str] = []
    steps: List[CalculationStep] = []

    # 1. validation
    valid = []
    for device in devices:
        if 0.0 <= device.dcavg <= 1.0:
            valid.append(device)
        else:
            warnings.append(f"Device {device.id}: DCavg {device.dcavg} outside valid range [0, 1]; ignored.")
    if not devices:
        warnings.append("No devices provided.")
    if not 0.0 <= demand_rate <= 1.0:
        warnings.append(f"Demand rate {demand_rate} outside valid range [0, 1]; clamped.")
    r = float(np.clip(demand_rate, 0.0, 1.0))
    n = len(devices) if series_count is None else int(series_count)
    if detailed:
        steps.append(
            CalculationStep(1, "Validate inputs", {"devices": len(devices), "valid_devices": len(valid), "demand_rate": r})
        )

    if not valid:
        limit = masking_limit(n, r, settings)
        if detailed:
            steps.append(CalculationStep(2, "No valid devices", {"masking_limit": limit}))
        return DcavgResult(
            dcavg=0.0,
            raw_dcavg=0.0,
            masking_limit=limit,
            test_dc=0.0,
            product=1.0,
            warnings=tuple(warnings),
            steps=tuple(steps),
        )

    # 2. series product
    undetected = np.array([1.0 - d.dcavg for d in valid], dtype=float)
    product = float(np.prod(undetected))
    if detailed:
        steps.append(
            CalculationStep(
                2,
                "Series product of undetected fractions",
                {"contributions": {d.id: float(u) for d, u in zip(valid, undetected)}, "product": product},
            )
        )

    # 3. test channel
    test_dc = diagnostic_test_dc(r, test, settings)
    if detailed:
        values = {"test_dc": test_dc}
        if test is not None:
            values.update({"test_frequency": test.frequency, "test_coverage": test.coverage})
        else:
            values["method"] = "simplified"
        steps.append(CalculationStep(3, "Test channel DC", values))

    # 4. combination
    raw = 1.0 - product * (1.0 - test_dc)
    if detailed:
        steps.append(CalculationStep(4, "Combine series and test channel", {"raw_dcavg": raw}))

    # 5. masking limit
    limit = masking_limit(n, r, settings)
    dcavg = min(raw, limit)
    if raw > limit:
        warnings.append(
            f"Fault-masking risk: DCavg {raw:.2%} exceeds the masking limit {limit:.2%} "
            f"for {n} series device(s); limit applied."
        )
        recommendations.append("Reduce the number of series devices or increase the test frequency.")
        logger.debug("DCavg %.6f capped to masking limit %.6f (n=%d, r=%.3f)", raw, limit, n, r)
    if detailed:
        steps.append(
            CalculationStep(5, "Apply fault-masking limit", {"series_count": n, "masking_limit": limit, "dcavg": dcavg})
        )

    # 6. optimisation hints
    low = [d for d in valid if d.dcavg < diag.low_dc_threshold]
    if low:
        recommendations.append(
            f"{len(low)} device(s) below {diag.low_dc_threshold:.0%} DC; improve their diagnostics: "
            + ", ".join(f"{d.id} ({d.dcavg:.0%})" for d in low)
        )
    if n > diag.series_warning_count:
        recommendations.append(
            f"{n} devices in series; consider redesigning the architecture to shorten the chain."
        )
    if test is None or test.coverage < diag.recommended_test_coverage:
        recommendations.append(f"Raise test coverage to at least {diag.recommended_test_coverage:.0%}.")

    return DcavgResult(
        dcavg=dcavg,
        raw_dcavg=raw,
        masking_limit=limit,
        test_dc=test_dc,
        product=product,
        warnings=tuple(warnings),
        recommendations=tuple(recommendations),
        steps=tuple(steps),
    )


def analyze_masking_risk(
    dcavg: float,
    series_count: int,
    demand_rate: float = 1.0,
    test_coverage: Optional[float] = None,
    has_diagnostics: bool = False,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> MaskingRiskResult:
    """Grade how close ``dcavg`` sits to the masking limit."""

    diag = settings.diagnostics
    limit = masking_limit(series_count, demand_rate, settings)
    margin = limit - dcavg
    ratio = margin / limit
    warnings: List[str] = []
    recommendations: List[str] = []

    if dcavg > limit:
        level = "Critical"
        warnings.append(f"DCavg {dcavg:.2%} exceeds the fault-masking limit {limit:.2%}.")
        recommendations += [
            "Reduce the number of series devices.",
            "Increase test frequency or test coverage.",
            "Add diagnostic functions or monitoring devices.",
        ]
    elif ratio < 0.1:
        level = "High"
        warnings.append(f"DCavg {dcavg:.2%} is close to the fault-masking limit {limit:.2%} (margin {margin:.2%}).")
        recommendations += [
            "Reduce the number of series devices to raise the limit.",
            "Optimise the test strategy to improve fault detection.",
        ]
    elif ratio < 0.2:
        level = "Medium"
        warnings.append(f"Margin between DCavg {dcavg:.2%} and the masking limit {limit:.2%} is {margin:.2%}.")
        recommendations.append("Review the test strategy to widen the safety margin.")
    else:
        level = "Low"

    if series_count > diag.series_warning_count:
        warnings.append(f"{series_count} series devices increase the fault-masking risk.")
        recommendations.append(f"Keep critical paths at no more than {diag.series_warning_count} series devices.")
    elif series_count > 3:
        warnings.append(f"{series_count} series devices; make sure every device is covered by testing.")

    if demand_rate < 0.1:
        warnings.append(f"Low demand rate ({demand_rate:.0%}) increases the fault-masking risk.")
        recommendations.append("Low-demand functions need a stricter periodic test strategy.")

    if test_coverage is None:
        warnings.append("Test coverage not provided.")
        recommendations.append("Provide the test coverage for a complete masking analysis.")
    elif test_coverage < diag.recommended_test_coverage:
        warnings.append(f"Test coverage {test_coverage:.0%} is below the recommended {diag.recommended_test_coverage:.0%}.")
        recommendations.append(f"Raise test coverage to at least {diag.recommended_test_coverage:.0%}.")

    if not has_diagnostics:
        warnings.append("No diagnostic function present.")
        recommendations.append("Add diagnostics to improve fault detection.")

    return MaskingRiskResult(
        dcavg=dcavg,
        masking_limit=limit,
        margin=margin,
        risk_level=level,
        warnings=tuple(warnings),
        recommendations=tuple(recommendations),
    )


def check_series_devices(
    series_count: int,
    target_dcavg: float,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SeriesCheckResult:
    diag = settings.diagnostics
    warnings: List[str] = []
    within = series_count <= diag.series_max_count
    if not within:
        warnings.append(
            f"{series_count} series devices exceed the recommended maximum of {diag.series_max_count}."
        )
    estimated = masking_limit(series_count, 1.0, settings)
    if target_dcavg > estimated:
        warnings.append(
            f"Target DCavg {target_dcavg:.2%} is not reachable with {series_count} series devices "
            f"(limit about {estimated:.2%})."
        )
    return SeriesCheckResult(
        series_count=series_count,
        within_limit=within,
        estimated_limit=estimated,
        warnings=tuple(warnings),
    )
