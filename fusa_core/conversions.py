"""Helpers that convert raw project data into validated value objects."""

from __future__ import annotations

import math
import re
from typing import Any, Iterable, Mapping, Optional, Tuple

from .models import (
    ARCHITECTURES,
    AVOIDANCE_LEVELS,
    FREQUENCY_LEVELS,
    MONITORING_MODES,
    SEVERITY_LEVELS,
    SIL_LEVELS,
    ChannelOptions,
    ChecklistItem,
    ComplianceChecklist,
    DeviceSpec,
    Iso13849Parameters,
    RiskInput,
    SafetyFunctionSpec,
    SubsystemSpec,
)


class ConversionError(ValueError):
    """Raised when raw data cannot be translated into an engine input."""


def normalize_pl(value: Any) -> str:
    """Return ``"PLa"``..``"PLe"`` for inputs such as ``"PL d"``, ``"d"`` or ``"PLd"``."""

    if isinstance(value, str):
        m = re.fullmatch(r"\s*(?:PL\s*)?([a-e])\s*", value, flags=re.IGNORECASE)
        if m:
            return f"PL{m.group(1).lower()}"
    raise ConversionError(f"Unknown performance level: {value!r}")


def normalize_sil(value: Any) -> str:
    """Return ``"SIL1"``..``"SIL3"`` for inputs such as ``"SIL 2"``, ``"2"`` or ``2``."""

    if isinstance(value, bool):
        raise ConversionError(f"Unknown SIL: {value!r}")
    if isinstance(value, (int, float)) and float(value).is_integer():
        n = int(value)
    elif isinstance(value, str):
        m = re.fullmatch(r"\s*(?:SIL\s*)?([0-9])\s*", value.upper())
        if not m:
            raise ConversionError(f"Unknown SIL: {value!r}")
        n = int(m.group(1))
    else:
        raise ConversionError(f"Unknown SIL: {value!r}")
    if not 1 <= n <= len(SIL_LEVELS):
        raise ConversionError(f"SIL out of range (1..{len(SIL_LEVELS)}): {value!r}")
    return f"SIL{n}"


def normalize_category(value: Any) -> str:
    """Return ``"B"``, ``"1"``..``"4"`` for inputs such as ``"Cat3"``, ``3`` or ``"b"``."""

    text = str(value).strip()
    m = re.fullmatch(r"(?:cat(?:egory)?\s*)?([b1-4])", text, flags=re.IGNORECASE)
    if not m:
        raise ConversionError(f"Unknown architecture category: {value!r}")
    return m.group(1).upper()


def normalize_ordinal(value: Any, scale: Tuple[str, ...], label: str) -> str:
    """Accept a scale name (case-insensitive) or its 1-based rank."""

    if isinstance(value, int) and not isinstance(value, bool):
        if 1 <= value <= len(scale):
            return scale[value - 1]
        raise ConversionError(f"{label} rank out of range (1..{len(scale)}): {value}")
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return normalize_ordinal(int(text), scale, label)
        for name in scale:
            if name.lower() == text.lower():
                return name
    raise ConversionError(f"Unknown {label}: {value!r} (expected one of {', '.join(scale)})")


def device_from_raw(raw: Mapping[str, Any]) -> DeviceSpec:
    """Return a :class:`DeviceSpec` from a component-library mapping.

    Recognised keys are ``id`` (or ``code``/``name``), ``mttfd``, ``dcavg``
    (or ``dc``), ``pfhd`` (or ``pfh``/``pfh_avg``) and ``beta``. Range checks
    are left to the calculators, which report them as warnings.
    """

    name = _preferred_label(raw)
    return DeviceSpec(
        id=name,
        mttfd=_first_float(raw, ("mttfd", "MTTFd"), name),
        dcavg=_first_float(raw, ("dcavg", "DCavg", "dc"), name),
        pfhd=_first_float(raw, ("pfhd", "PFHd", "pfh", "pfh_avg"), name),
        beta=_first_float(raw, ("beta",), name),
    )


def subsystem_from_raw(raw: Mapping[str, Any]) -> SubsystemSpec:
    name = _preferred_label(raw, fallback="subsystem")
    architecture = str(raw.get("architecture") or "1oo1").strip()
    matches = [a for a in ARCHITECTURES if a.lower() == architecture.lower()]
    if not matches:
        raise ConversionError(
            f"{name}: unsupported architecture '{architecture}' (expected one of {', '.join(ARCHITECTURES)})."
        )
    return SubsystemSpec(
        id=name,
        architecture=matches[0],
        devices=_devices(raw.get("devices") or raw.get("components"), name),
        name=str(raw.get("name") or ""),
        proof_test_interval=_optional_float(raw, "proof_test_interval", name),
        diagnostic_test_interval=_optional_float(raw, "diagnostic_test_interval", name),
    )


def function_from_raw(raw: Mapping[str, Any]) -> SafetyFunctionSpec:
    name = _preferred_label(raw, fallback="function")
    target_pl = raw.get("target_pl")
    target_sil = raw.get("target_sil")
    ccf_score = _optional_float(raw, "ccf_score", name)
    subsystems = raw.get("subsystems") or []
    if not isinstance(subsystems, list):
        raise ConversionError(f"{name}: 'subsystems' must be a list.")
    return SafetyFunctionSpec(
        id=name,
        name=str(raw.get("name") or ""),
        target_pl=normalize_pl(target_pl) if target_pl not in (None, "") else None,
        target_sil=normalize_sil(target_sil) if target_sil not in (None, "") else None,
        inputs=_devices(raw.get("inputs"), name),
        logic=_devices(raw.get("logic"), name),
        outputs=_devices(raw.get("outputs"), name),
        subsystems=tuple(subsystem_from_raw(s) for s in subsystems),
        input_options=_channel_options(raw.get("input_options"), name),
        logic_options=_channel_options(raw.get("logic_options"), name),
        output_options=_channel_options(raw.get("output_options"), name),
        test_equipment=bool(raw.get("test_equipment", False)),
        ccf_score=int(ccf_score) if ccf_score is not None else None,
        proof_test_interval=_optional_float(raw, "proof_test_interval", name),
        mission_time=_optional_float(raw, "mission_time", name),
        proof_test_coverage=_optional_float(raw, "proof_test_coverage", name),
    )


def checklist_from_raw(raw: Mapping[str, Any]) -> ComplianceChecklist:
    """Return a :class:`ComplianceChecklist` with validated ordinals."""

    context = str(raw.get("system_name") or "checklist")
    risk_raw = raw.get("risk") or {}
    iso_raw = raw.get("iso13849") or {}
    items_raw = raw.get("general_items") or []
    if not isinstance(risk_raw, Mapping) or not isinstance(iso_raw, Mapping):
        raise ConversionError(f"{context}: 'risk' and 'iso13849' must be mappings.")
    if not isinstance(items_raw, list):
        raise ConversionError(f"{context}: 'general_items' must be a list.")

    defaults = RiskInput()
    risk = RiskInput(
        severity=normalize_ordinal(risk_raw.get("severity", defaults.severity), SEVERITY_LEVELS, "severity"),
        frequency=normalize_ordinal(risk_raw.get("frequency", defaults.frequency), FREQUENCY_LEVELS, "frequency"),
        avoidance=normalize_ordinal(risk_raw.get("avoidance", defaults.avoidance), AVOIDANCE_LEVELS, "avoidance"),
        mitigation=str(risk_raw.get("mitigation") or ""),
        hazards=tuple(str(h) for h in risk_raw.get("hazards") or ()),
    )

    iso_defaults = Iso13849Parameters()
    dcavg = _optional_float(iso_raw, "dcavg", context)
    mttfd = _optional_float(iso_raw, "mttfd", context)
    ccf = _optional_float(iso_raw, "ccf_score", context)
    iso = Iso13849Parameters(
        required_pl=normalize_pl(iso_raw.get("required_pl", iso_defaults.required_pl)),
        category=normalize_category(iso_raw.get("category", iso_defaults.category)),
        dcavg=iso_defaults.dcavg if dcavg is None else dcavg,
        mttfd=iso_defaults.mttfd if mttfd is None else mttfd,
        ccf_score=iso_defaults.ccf_score if ccf is None else int(ccf),
        validation_performed=bool(iso_raw.get("validation_performed", False)),
    )

    items = []
    for entry in items_raw:
        if not isinstance(entry, Mapping) or not entry.get("code"):
            raise ConversionError(f"{context}: every general item needs a 'code'.")
        items.append(
            ChecklistItem(
                code=str(entry["code"]),
                title=str(entry.get("title") or ""),
                description=str(entry.get("description") or ""),
                required=bool(entry.get("required", False)),
                completed=bool(entry.get("completed", False)),
                evidence=entry.get("evidence"),
            )
        )

    return ComplianceChecklist(
        risk=risk,
        iso13849=iso,
        general_items=tuple(items),
        system_name=str(raw.get("system_name") or ""),
        project_id=raw.get("project_id"),
        assessor=str(raw.get("assessor") or ""),
    )


def _devices(raw: Optional[Iterable[Any]], context: str) -> Tuple[DeviceSpec, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise ConversionError(f"{context}: device lists must be lists of mappings.")
    devices = []
    for entry in raw:
        if not isinstance(entry, Mapping):
            raise ConversionError(f"{context}: device entries must be mappings.")
        devices.append(device_from_raw(entry))
    return tuple(devices)


def _channel_options(raw: Any, context: str) -> ChannelOptions:
    if raw is None:
        return ChannelOptions()
    if not isinstance(raw, Mapping):
        raise ConversionError(f"{context}: channel options must be a mapping.")
    monitoring = str(raw.get("monitoring") or "none").strip().lower()
    if monitoring not in MONITORING_MODES:
        raise ConversionError(
            f"{context}: unknown monitoring mode '{monitoring}' (expected one of {', '.join(MONITORING_MODES)})."
        )
    return ChannelOptions(
        monitoring=monitoring,
        demand_rate=_optional_float(raw, "demand_rate", context),
    )


def _preferred_label(raw: Mapping[str, Any], fallback: str = "component") -> str:
    for key in ("id", "code", "name", "title"):
        val = raw.get(key)
        if isinstance(val, str) and val.strip():
            return val
    return fallback


def _first_float(raw: Mapping[str, Any], keys: Tuple[str, ...], context: str) -> Optional[float]:
    for key in keys:
        value = _optional_float(raw, key, context)
        if value is not None:
            return value
    return None


def _optional_float(
    raw: Mapping[str, Any],
    key: str,
    context: str,
) -> Optional[float]:
    value = raw.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConversionError(f"{context}: invalid numeric value for '{key}'.")
    if not math.isfinite(number):
        raise ConversionError(f"{context}: non-finite value for '{key}': {value!r}.")
    return number

