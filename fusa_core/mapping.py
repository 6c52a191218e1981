"""Approximate PL (ISO 13849-1) to SIL (IEC 62061) correspondence."""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional

from .models import PERFORMANCE_LEVELS, SIL_LEVELS, ConsistencyCheckResult, MappingNotes

PL_TO_SIL: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "PLa": frozenset({"SIL1"}),
        "PLb": frozenset({"SIL1"}),
        "PLc": frozenset({"SIL1", "SIL2"}),
        "PLd": frozenset({"SIL2", "SIL3"}),
        "PLe": frozenset({"SIL3"}),
    }
)

SIL_TO_PL: Mapping[str, FrozenSet[str]] = MappingProxyType(
    {
        "SIL1": frozenset({"PLa", "PLb", "PLc"}),
        "SIL2": frozenset({"PLc", "PLd"}),
        "SIL3": frozenset({"PLd", "PLe"}),
    }
)


def map_pl_to_sil(pl: str) -> FrozenSet[str]:
    """Return the SILs corresponding to ``pl``; empty for unknown input."""
    return PL_TO_SIL.get(pl, frozenset())


def map_sil_to_pl(sil: str) -> FrozenSet[str]:
    return SIL_TO_PL.get(sil, frozenset())


def check_consistency(pl: Optional[str], sil: Optional[str]) -> ConsistencyCheckResult:
    """Check whether a PL and a SIL describe compatible integrity levels.

    Either side missing is reported as not consistent, since nothing can be
    compared.
    """

    if not pl or not sil:
        missing = " and ".join(name for name, value in (("PL", pl), ("SIL", sil)) if not value)
        return ConsistencyCheckResult(
            is_consistent=False,
            warnings=(f"{missing} not given; cannot compare PL and SIL.",),
            recommended_actions=("Determine both the PL and the SIL of the safety function.",),
        )

    expected_sils = map_pl_to_sil(pl)
    expected_pls = map_sil_to_pl(sil)
    if sil in expected_sils or pl in expected_pls:
        return ConsistencyCheckResult(
            is_consistent=True,
            recommended_actions=(
                "Document the PL and SIL evaluations side by side.",
                "Verify PFHd, DCavg and CCF values against both standards.",
            ),
        )

    return ConsistencyCheckResult(
        is_consistent=False,
        warnings=(
            f"{pl} is not consistent with {sil}.",
            f"{pl} corresponds to {_join(expected_sils)}; {sil} corresponds to {_join(expected_pls)}.",
        ),
        recommended_actions=(
            "Review the PL and SIL evaluations.",
            "Reconcile the requirements of ISO 13849-1 and IEC 62061.",
            "Recheck PFHd, DCavg and CCF values.",
        ),
    )


def mapping_notes(pl: Optional[str] = None, sil: Optional[str] = None) -> MappingNotes:
    """Return advisory notes on using the PL/SIL correspondence."""

    general = (
        "The PL/SIL correspondence is approximate; both standards must be applied in full.",
        "ISO 13849-1 suits mechanical, hydraulic and pneumatic systems as well as simple electronics.",
        "IEC 62061 suits complex electrical, electronic and programmable systems.",
    )
    boundary = (
        "PFHd ranges of the two standards overlap but are not identical.",
        "Architecture requirements (category versus HFT) differ between the standards.",
        "Diagnostic coverage is evaluated differently.",
        "CCF measures are scored on different scales.",
    )
    recommendations: List[str] = []
    if pl in PL_TO_SIL:
        recommendations.append(f"{pl} usually corresponds to {_join(map_pl_to_sil(pl), ' or ')}.")
    if pl == "PLc":
        recommendations.append("PLc may correspond to SIL1 or SIL2; decide by the calculated PFHd.")
    elif pl == "PLd":
        recommendations.append("PLd usually corresponds to SIL2 or SIL3; verify by a PFHd calculation.")
    if pl in ("PLd", "PLe"):
        recommendations.append(f"For {pl}, high diagnostic coverage and CCF measures are required.")
    elif pl in ("PLa", "PLb"):
        recommendations.append(f"{pl} is achievable with a simple single-channel architecture.")
    if sil in SIL_TO_PL:
        recommendations.append(f"{sil} usually corresponds to {_join(map_sil_to_pl(sil), ' or ')}.")
    if sil == "SIL3":
        recommendations.append("SIL3 needs a redundant architecture and a thorough PFHd calculation.")
    elif sil == "SIL2":
        recommendations.append("SIL2 may correspond to PLc or PLd; decide by category and DCavg.")
    elif sil == "SIL1":
        recommendations.append("SIL1 is achievable with a simple architecture.")
    return MappingNotes(general=general, boundary_conditions=boundary, recommendations=tuple(recommendations))


def _join(levels: FrozenSet[str], sep: str = ", ") -> str:
    order = PERFORMANCE_LEVELS + SIL_LEVELS
    return sep.join(sorted(levels, key=order.index)) or "nothing"
