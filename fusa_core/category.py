"""ISO 13849 architecture category suggestions and conflict detection."""

from __future__ import annotations

import logging
from typing import List

from .config import DEFAULT_SETTINGS, EngineSettings
from .models import (
    CalculationStep,
    CategoryAdvice,
    CategoryConflict,
    CategoryInput,
    CategorySuggestion,
    SafetyFunctionSpec,
    pl_rank,
)

logger = logging.getLogger(__name__)

_JUSTIFICATION = {
    "B": "Basic safety principles apply to every design.",
    "1": "Single channel with well-tried components and no diagnostics.",
    "2": "Single channel checked periodically by test equipment.",
    "3": "Redundant channels with monitoring and adequate CCF measures.",
    "4": "Redundant channels with monitoring, adequate CCF measures and high diagnostic coverage.",
}

_REQUIREMENTS = {
    "B": ("Apply basic safety principles.",),
    "1": ("Use well-tried components.", "Apply well-tried safety principles."),
    "2": ("Provide test equipment.", "Test at suitable intervals.", "DCavg at least low (60%)."),
    "3": ("Provide redundancy.", "Detect single faults.", "DCavg at least low (60%).", "CCF score of 65 or more."),
    "4": ("Provide redundancy.", "Detect accumulated faults.", "DCavg high (99%).", "CCF score of 65 or more."),
}

_REMEDIATION = {
    "MissingChannels": "Define at least one channel for input, logic and output.",
    "CategoryWithoutRedundancy": "Add a second channel (redundancy) or choose Category B/1/2.",
    "CategoryWithLowCcf": "Implement further CCF measures until the score reaches the threshold.",
    "CategoryWithoutMonitoring": "Add channel monitoring (cross-monitoring or diagnostics).",
    "Category2WithoutTestEquipment": "Provide test equipment for periodic testing.",
    "CategoryBelowRequiredPl": "Raise the architecture category to reach the required PL.",
}


def advise_category(
    params: CategoryInput,
    detailed: bool = False,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> CategoryAdvice:
    """Suggest categories for a channel configuration, best confidence first."""

    has_redundancy = max(params.input_channels, params.logic_channels, params.output_channels) >= 2
    has_monitoring = params.input_monitoring or params.logic_monitoring or params.output_monitoring
    has_test = params.test_equipment
    ccf_ok = params.ccf_score is not None and params.ccf_score >= settings.ccf_threshold
    steps: List[CalculationStep] = []
    if detailed:
        steps.append(
            CalculationStep(
                1,
                "Evaluate architecture predicates",
                {
                    "has_redundancy": has_redundancy,
                    "has_monitoring": has_monitoring,
                    "has_test_equipment": has_test,
                    "ccf_ok": ccf_ok,
                },
            )
        )

    candidates = ["B"]
    if not (has_redundancy or has_monitoring or has_test):
        candidates.append("1")
    if has_test and not has_redundancy:
        candidates.append("2")
    if has_redundancy and has_monitoring and ccf_ok:
        candidates += ["3", "4"]

    confidence = settings.category_confidence
    suggestions = sorted(
        (
            CategorySuggestion(
                category=cat,
                confidence=float(confidence.get(cat, 0.0)),
                justification=_JUSTIFICATION[cat],
                requirements=_REQUIREMENTS[cat],
            )
            for cat in candidates
        ),
        key=lambda s: -s.confidence,
    )
    if detailed:
        steps.append(
            CalculationStep(2, "Rank candidate categories", {s.category: s.confidence for s in suggestions})
        )

    conflicts = _conflicts(params, suggestions, has_redundancy, has_monitoring, ccf_ok, settings)
    if detailed:
        steps.append(CalculationStep(3, "Detect conflicts", {"conflicts": [c.kind for c in conflicts]}))

    recommendations = [_REMEDIATION[c.kind] for c in conflicts]
    if suggestions:
        top = suggestions[0]
        recommendations.append(f"Suggested category: Category {top.category} ({top.justification})")
    logger.debug("Category advice: %s, %d conflict(s)", [s.category for s in suggestions], len(conflicts))
    return CategoryAdvice(
        suggestions=tuple(suggestions),
        conflicts=tuple(conflicts),
        recommendations=tuple(dict.fromkeys(recommendations)),
        steps=tuple(steps),
    )


def category_input_for_function(function: SafetyFunctionSpec) -> CategoryInput:
    """Derive the category predicates from a function's channels."""

    return CategoryInput(
        input_channels=len(function.inputs),
        logic_channels=len(function.logic),
        output_channels=len(function.outputs),
        input_monitoring=function.input_options.monitoring != "none",
        logic_monitoring=function.logic_options.monitoring != "none",
        output_monitoring=function.output_options.monitoring != "none",
        test_equipment=function.test_equipment
        or any(opts.monitoring == "test" for _, _, opts in function.channels()),
        ccf_score=function.ccf_score,
        required_pl=function.target_pl,
    )


def _conflicts(
    params: CategoryInput,
    suggestions: List[CategorySuggestion],
    has_redundancy: bool,
    has_monitoring: bool,
    ccf_ok: bool,
    settings: EngineSettings,
) -> List[CategoryConflict]:
    out: List[CategoryConflict] = []
    counts = (params.input_channels, params.logic_channels, params.output_channels)
    if min(counts) <= 0:
        out.append(
            CategoryConflict(
                "MissingChannels",
                "High",
                f"Channel counts input/logic/output = {counts[0]}/{counts[1]}/{counts[2]}; every part needs a channel.",
            )
        )

    claimed = {s.category for s in suggestions}
    if params.selected_category is not None:
        claimed.add(params.selected_category)

    high = sorted(claimed & {"3", "4"})
    for cat in high:
        if not has_redundancy:
            out.append(
                CategoryConflict(
                    "CategoryWithoutRedundancy", "High", f"Category {cat} requires redundant channels."
                )
            )
        if not ccf_ok:
            score = "not given" if params.ccf_score is None else f"{params.ccf_score:g}"
            out.append(
                CategoryConflict(
                    "CategoryWithLowCcf",
                    "High",
                    f"Category {cat} requires a CCF score of at least {settings.ccf_threshold} (score {score}).",
                )
            )
        if not has_monitoring:
            out.append(
                CategoryConflict("CategoryWithoutMonitoring", "High", f"Category {cat} requires channel monitoring.")
            )

    if "2" in claimed and not params.test_equipment:
        out.append(
            CategoryConflict("Category2WithoutTestEquipment", "Medium", "Category 2 requires test equipment.")
        )

    if suggestions and pl_rank(params.required_pl) >= pl_rank("PLd") and suggestions[0].category in ("B", "1"):
        out.append(
            CategoryConflict(
                "CategoryBelowRequiredPl",
                "Medium",
                f"Required {params.required_pl} is not reachable with Category {suggestions[0].category}.",
            )
        )
    return out