"""Heuristic constants of the engine and their YAML overrides.

The fault-masking coefficients, the test-DC fallback factor and the category
confidences are engineering heuristics rather than normative values, so they
live here instead of inside the calculators.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple

import yaml

from .conversions import ConversionError
from .models import Assumptions, CATEGORIES, PERFORMANCE_LEVELS, RISK_LEVELS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CcfMeasure:
    code: str
    title: str
    weight: int


CCF_CATALOG: Tuple[CcfMeasure, ...] = (
    CcfMeasure("CCF-ENV", "Environmental separation and protection (temperature, dust, liquids)", 10),
    CcfMeasure("CCF-RED", "Redundancy diversity (different principles or suppliers)", 20),
    CcfMeasure("CCF-WIR", "Wiring and isolation (shielding, segregation, interference)", 15),
    CcfMeasure("CCF-EMC", "EMC design and verification (grounding, filtering, testing)", 15),
    CcfMeasure("CCF-MNT", "Maintenance and periodic testing", 10),
    CcfMeasure("CCF-DIV", "Logic and channel diversity (software, hardware)", 10),
    CcfMeasure("CCF-QA", "Quality process and change control", 10),
    CcfMeasure("CCF-DOC", "Documentation and training", 10),
)


@dataclass(frozen=True)
class MaskingCoefficients:
    base: float = 0.99
    step: float = 0.02  # reduction per series device beyond the first
    max_reduction: float = 0.10
    demand_floor: float = 0.8  # demand factor at r = 0
    floor: float = 0.5


@dataclass(frozen=True)
class DiagnosticSettings:
    masking: MaskingCoefficients = field(default_factory=MaskingCoefficients)
    test_dc_cap: float = 0.99
    test_dc_fallback_factor: float = 0.1
    low_dc_threshold: float = 0.6
    series_warning_count: int = 5
    series_max_count: int = 10
    recommended_test_coverage: float = 0.9


_DEFAULT_CONFIDENCE = MappingProxyType({"B": 0.5, "1": 0.8, "2": 0.85, "3": 0.9, "4": 0.95})
# Inclusive upper score bound per risk level, checked in order.
_DEFAULT_RISK_BANDS: Tuple[Tuple[int, str], ...] = ((6, "Low"), (24, "Medium"), (36, "High"))
_DEFAULT_PLR = MappingProxyType({"Low": "PLb", "Medium": "PLc", "High": "PLd", "Extreme": "PLe"})


@dataclass(frozen=True)
class EngineSettings:
    assumptions: Assumptions = field(default_factory=Assumptions)
    ccf_threshold: int = 65
    ccf_catalog: Tuple[CcfMeasure, ...] = CCF_CATALOG
    diagnostics: DiagnosticSettings = field(default_factory=DiagnosticSettings)
    category_confidence: Mapping[str, float] = field(default_factory=lambda: _DEFAULT_CONFIDENCE)
    risk_bands: Tuple[Tuple[int, str], ...] = _DEFAULT_RISK_BANDS
    plr_by_risk_level: Mapping[str, str] = field(default_factory=lambda: _DEFAULT_PLR)


DEFAULT_SETTINGS = EngineSettings()


def load_settings(path: str) -> EngineSettings:
    """Read a YAML settings file and apply it on top of the defaults."""

    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, Mapping):
        raise ConversionError(f"{path}: top level of the settings file must be a mapping.")
    settings = settings_from_mapping(data)
    logger.debug("Loaded engine settings from %s", path)
    return settings


def settings_from_mapping(
    data: Mapping[str, Any],
    base: Optional[EngineSettings] = None,
) -> EngineSettings:
    """Return ``base`` (default settings) with the sections in ``data`` applied.

    Recognised sections are ``assumptions``, ``ccf``, ``diagnostics``,
    ``category`` and ``risk``. Unknown keys inside a section are rejected so
    that typos do not silently fall back to defaults.
    """

    settings = base or DEFAULT_SETTINGS
    unknown = set(data) - {"assumptions", "ccf", "diagnostics", "category", "risk"}
    if unknown:
        raise ConversionError(f"Unknown settings sections: {', '.join(sorted(unknown))}")

    if "assumptions" in data:
        section = _section(data, "assumptions")
        settings = replace(
            settings,
            assumptions=replace(
                settings.assumptions,
                **_floats(section, "assumptions", ("T1", "T2", "beta", "lifetime")),
            ),
        )
        if not 0.0 <= settings.assumptions.beta <= 1.0:
            raise ConversionError("assumptions.beta must lie within [0, 1].")

    if "ccf" in data:
        section = _section(data, "ccf")
        _reject_unknown(section, "ccf", ("threshold", "catalog"))
        if "threshold" in section:
            settings = replace(settings, ccf_threshold=_int(section["threshold"], "ccf.threshold"))
        if "catalog" in section:
            settings = replace(settings, ccf_catalog=_catalog(section["catalog"]))

    if "diagnostics" in data:
        section = dict(_section(data, "diagnostics"))
        masking_raw = section.pop("masking", None)
        diag = settings.diagnostics
        if masking_raw is not None:
            if not isinstance(masking_raw, Mapping):
                raise ConversionError("diagnostics.masking must be a mapping.")
            diag = replace(
                diag,
                masking=replace(
                    diag.masking,
                    **_floats(
                        masking_raw,
                        "diagnostics.masking",
                        ("base", "step", "max_reduction", "demand_floor", "floor"),
                    ),
                ),
            )
        counts = {}
        for key in ("series_warning_count", "series_max_count"):
            if key in section:
                counts[key] = _int(section.pop(key), f"diagnostics.{key}")
        values = _floats(
            section,
            "diagnostics",
            ("test_dc_cap", "test_dc_fallback_factor", "low_dc_threshold", "recommended_test_coverage"),
        )
        settings = replace(settings, diagnostics=replace(diag, **values, **counts))

    if "category" in data:
        section = _section(data, "category")
        _reject_unknown(section, "category", ("confidence",))
        confidence = dict(settings.category_confidence)
        raw = section.get("confidence") or {}
        if not isinstance(raw, Mapping):
            raise ConversionError("category.confidence must be a mapping.")
        for key, value in raw.items():
            cat = str(key)
            if cat not in CATEGORIES:
                raise ConversionError(f"category.confidence: unknown category '{cat}'.")
            conf = _float(value, f"category.confidence.{cat}")
            if not 0.0 <= conf <= 1.0:
                raise ConversionError(f"category.confidence.{cat} must lie within [0, 1].")
            confidence[cat] = conf
        settings = replace(settings, category_confidence=MappingProxyType(confidence))

    if "risk" in data:
        section = _section(data, "risk")
        _reject_unknown(section, "risk", ("bands", "plr"))
        if "bands" in section:
            settings = replace(settings, risk_bands=_bands(section["bands"]))
        if "plr" in section:
            plr = dict(settings.plr_by_risk_level)
            raw = section["plr"]
            if not isinstance(raw, Mapping):
                raise ConversionError("risk.plr must be a mapping.")
            for level, pl in raw.items():
                if level not in RISK_LEVELS or pl not in PERFORMANCE_LEVELS:
                    raise ConversionError(f"risk.plr: invalid rule {level!r} -> {pl!r}.")
                plr[level] = pl
            settings = replace(settings, plr_by_risk_level=MappingProxyType(plr))

    return settings


def _section(data: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, Mapping):
        raise ConversionError(f"Settings section '{name}' must be a mapping.")
    return section


def _reject_unknown(section: Mapping[str, Any], name: str, allowed: Tuple[str, ...]) -> None:
    unknown = set(section) - set(allowed)
    if unknown:
        raise ConversionError(f"{name}: unknown keys {', '.join(sorted(map(str, unknown)))}")


def _floats(section: Mapping[str, Any], name: str, allowed: Tuple[str, ...]) -> dict:
    _reject_unknown(section, name, allowed)
    return {key: _float(section[key], f"{name}.{key}") for key in allowed if key in section}


def _float(value: Any, label: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConversionError(f"{label}: invalid numeric value {value!r}.")


def _int(value: Any, label: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConversionError(f"{label}: invalid integer value {value!r}.")


def _catalog(raw: Any) -> Tuple[CcfMeasure, ...]:
    if not isinstance(raw, list) or not raw:
        raise ConversionError("ccf.catalog must be a non-empty list.")
    measures = []
    seen = set()
    for entry in raw:
        if not isinstance(entry, Mapping) or "code" not in entry or "weight" not in entry:
            raise ConversionError("ccf.catalog entries need 'code' and 'weight'.")
        code = str(entry["code"])
        if code in seen:
            raise ConversionError(f"ccf.catalog: duplicate code '{code}'.")
        seen.add(code)
        weight = _int(entry["weight"], f"ccf.catalog.{code}.weight")
        if weight < 0:
            raise ConversionError(f"ccf.catalog.{code}.weight must be non-negative.")
        measures.append(CcfMeasure(code, str(entry.get("title") or code), weight))
    return tuple(measures)


def _bands(raw: Any) -> Tuple[Tuple[int, str], ...]:
    if not isinstance(raw, Mapping):
        raise ConversionError("risk.bands must map Low/Medium/High to upper score bounds.")
    bands = []
    previous = 0
    for level in RISK_LEVELS[:-1]:
        if level not in raw:
            raise ConversionError(f"risk.bands: missing bound for '{level}'.")
        bound = _int(raw[level], f"risk.bands.{level}")
        if bound <= previous:
            raise ConversionError("risk.bands: bounds must be strictly increasing.")
        bands.append((bound, level))
        previous = bound
    return tuple(bands)
