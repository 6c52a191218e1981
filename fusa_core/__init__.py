"""Functional-safety evaluation core (ISO 12100, ISO 13849-1, IEC 62061)."""

from .batch import BatchItem, BatchResult, evaluate_checklists, evaluate_functions, run_batch
from .category import advise_category, category_input_for_function
from .ccf import assess_ccf, ccf_score, recommend_ccf_measures
from .compliance import (
    FunctionNotFoundError,
    achieved_performance_level,
    compute_function,
    evaluate_compliance,
    evaluate_dual_standard,
    meets_requirement,
)
from .config import DEFAULT_SETTINGS, EngineSettings, load_settings, settings_from_mapping
from .conversions import ConversionError, checklist_from_raw, function_from_raw
from .diagnostics import analyze_masking_risk, calculate_dcavg, check_series_devices, masking_limit
from .engine import (
    aggregate_pfhd,
    check_proof_test,
    classify_sil_from_pfhd,
    evaluate_function_pfhd,
    subsystem_pfhd,
    suggest_proof_test_parameters,
)
from .mapping import check_consistency, map_pl_to_sil, map_sil_to_pl, mapping_notes
from .models import Assumptions
from .risk import assess_risk, risk_level, risk_score

__version__ = "0.1.0"

__all__ = [
    "Assumptions",
    "BatchItem",
    "BatchResult",
    "ConversionError",
    "DEFAULT_SETTINGS",
    "EngineSettings",
    "FunctionNotFoundError",
    "achieved_performance_level",
    "advise_category",
    "aggregate_pfhd",
    "analyze_masking_risk",
    "assess_ccf",
    "assess_risk",
    "calculate_dcavg",
    "category_input_for_function",
    "ccf_score",
    "check_consistency",
    "check_proof_test",
    "check_series_devices",
    "checklist_from_raw",
    "classify_sil_from_pfhd",
    "compute_function",
    "evaluate_checklists",
    "evaluate_compliance",
    "evaluate_dual_standard",
    "evaluate_function_pfhd",
    "evaluate_functions",
    "function_from_raw",
    "load_settings",
    "map_pl_to_sil",
    "map_sil_to_pl",
    "mapping_notes",
    "masking_limit",
    "meets_requirement",
    "recommend_ccf_measures",
    "risk_level",
    "risk_score",
    "run_batch",
    "settings_from_mapping",
    "subsystem_pfhd",
    "suggest_proof_test_parameters",
]
