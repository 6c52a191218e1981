"""Common-cause failure scoring against the weighted measure catalog."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from .config import DEFAULT_SETTINGS, CcfMeasure, EngineSettings
from .models import CcfAssessment, CcfRecommendation, CcfSuggestion

logger = logging.getLogger(__name__)

_REASONS = {
    "CCF-ENV": "Environmental separation and protection is a baseline measure; implement it first.",
    "CCF-RED": "Diverse redundancy substantially lowers the share of common-cause failures.",
    "CCF-WIR": "Wiring segregation and isolation limits shared-cause faults between channels.",
    "CCF-EMC": "EMC design and verification is essential for electronic channels.",
    "CCF-MNT": "Maintenance and periodic testing keep the channels dependable over the lifetime.",
    "CCF-DIV": "Logic and channel diversity makes the function robust against shared design faults.",
    "CCF-QA": "Quality process and change control are the basis of systematic management.",
    "CCF-DOC": "Documentation and training ensure correct operation and maintenance.",
}


def ccf_score(selected: Iterable[str], catalog: Sequence[CcfMeasure] = DEFAULT_SETTINGS.ccf_catalog) -> int:
    """Return the sum of weights of the distinct selected catalog codes."""

    chosen = set(selected or ())
    return sum(m.weight for m in catalog if m.code in chosen)


def assess_ccf(selected: Iterable[str], settings: EngineSettings = DEFAULT_SETTINGS) -> CcfAssessment:
    codes = list(dict.fromkeys(selected or ()))
    known = {m.code for m in settings.ccf_catalog}
    unknown = [c for c in codes if c not in known]
    score = ccf_score(codes, settings.ccf_catalog)
    passed = score >= settings.ccf_threshold
    if passed:
        message = f"CCF score {score} meets the threshold of {settings.ccf_threshold}."
    else:
        message = (
            f"CCF score {score} is below the threshold of {settings.ccf_threshold}; "
            "additional measures are required."
        )
    return CcfAssessment(
        score=score,
        passed=passed,
        threshold=settings.ccf_threshold,
        selected=tuple(c for c in codes if c in known),
        message=message,
        warnings=tuple(f"Unknown CCF measure code '{c}' ignored." for c in unknown),
        evidence_suggestions=tuple(
            f"Provide evidence for {c} (certificate, test report or photographs)." for c in codes if c in known
        ),
    )


def recommend_ccf_measures(
    selected: Iterable[str],
    current_score: Optional[int] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> CcfRecommendation:
    """Greedily pick unselected measures, heaviest first, until the gap closes.

    This is not a minimum-count solver. Equal weights keep catalog order.
    ``current_score`` defaults to the score of ``selected``.
    """

    chosen = set(selected or ())
    threshold = settings.ccf_threshold
    score = ccf_score(chosen, settings.ccf_catalog) if current_score is None else int(current_score)
    gap = max(0, threshold - score)
    if gap == 0:
        return CcfRecommendation(
            current_score=score,
            target_score=threshold,
            gap=0,
            message=f"CCF score {score} already meets the threshold of {threshold}.",
        )

    suggestions = []
    available = [m for m in settings.ccf_catalog if m.code not in chosen]
    for measure in sorted(available, key=lambda m: -m.weight):
        if gap <= 0:
            break
        suggestions.append(
            CcfSuggestion(
                code=measure.code,
                title=measure.title,
                weight=measure.weight,
                reason=_REASONS.get(measure.code, "Implement this measure to raise the CCF score."),
                priority=_priority(measure.weight, gap),
            )
        )
        gap -= measure.weight

    remaining = max(0, gap)
    if remaining:
        message = f"All remaining measures leave a gap of {remaining} points to {threshold}."
        logger.warning("CCF catalog exhausted with %d points missing", remaining)
    else:
        message = f"{len(suggestions)} additional measure(s) close the gap to {threshold}."
    return CcfRecommendation(
        current_score=score,
        target_score=threshold,
        gap=remaining,
        suggestions=tuple(suggestions),
        message=message,
    )


def _priority(weight: int, gap: int) -> str:
    if weight >= gap:
        return "High"
    if weight >= gap / 2:
        return "Medium"
    return "Low"
