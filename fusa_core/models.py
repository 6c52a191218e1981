"""Domain models for functional-safety evaluations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional, Tuple

Severity = Literal["Negligible", "Minor", "Serious", "Critical"]
Frequency = Literal["Rare", "Occasional", "Frequent", "Continuous"]
Avoidance = Literal["Easy", "Possible", "Difficult", "Impossible"]
RiskLevel = Literal["Low", "Medium", "High", "Extreme"]
PerformanceLevel = Literal["PLa", "PLb", "PLc", "PLd", "PLe"]
Sil = Literal["SIL1", "SIL2", "SIL3"]
Category = Literal["B", "1", "2", "3", "4"]
Architecture = Literal["1oo1", "1oo2", "1oo2D", "2oo2", "2oo3", "1oo3"]
MonitoringMode = Literal["none", "diagnostics", "test"]

# Ordered scales: position + 1 is the rank.
SEVERITY_LEVELS: Tuple[str, ...] = ("Negligible", "Minor", "Serious", "Critical")
FREQUENCY_LEVELS: Tuple[str, ...] = ("Rare", "Occasional", "Frequent", "Continuous")
AVOIDANCE_LEVELS: Tuple[str, ...] = ("Easy", "Possible", "Difficult", "Impossible")
RISK_LEVELS: Tuple[str, ...] = ("Low", "Medium", "High", "Extreme")
PERFORMANCE_LEVELS: Tuple[str, ...] = ("PLa", "PLb", "PLc", "PLd", "PLe")
SIL_LEVELS: Tuple[str, ...] = ("SIL1", "SIL2", "SIL3")
CATEGORIES: Tuple[str, ...] = ("B", "1", "2", "3", "4")
ARCHITECTURES: Tuple[str, ...] = ("1oo1", "1oo2", "1oo2D", "2oo2", "2oo3", "1oo3")
MONITORING_MODES: Tuple[str, ...] = ("none", "diagnostics", "test")


def pl_rank(pl: Optional[str]) -> int:
    """Return 1..5 for PLa..PLe, 0 for anything else."""
    try:
        return PERFORMANCE_LEVELS.index(pl) + 1  # type: ignore[arg-type]
    except ValueError:
        return 0


def sil_rank(sil: Optional[str]) -> int:
    """Return 1..3 for SIL1..SIL3, 0 for anything else (including ``None``)."""
    try:
        return SIL_LEVELS.index(sil) + 1  # type: ignore[arg-type]
    except ValueError:
        return 0


@dataclass(frozen=True)
class Assumptions:
    """Global calculation assumptions expressed in hours and fractions."""

    T1: float = 175200.0  # Proof-test interval / mission time in hours (20 years)
    T2: float = 1.0  # Diagnostic test interval in hours
    beta: float = 0.05  # Common-cause share used when a device carries none
    lifetime: float = 87600.0  # Typical useful lifetime in hours (10 years)


# --------------------------------------------------------------------------
# Inputs
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class DeviceSpec:
    """Reference data for one device, owned by the component library."""

    id: str
    mttfd: Optional[float] = None  # hours
    dcavg: Optional[float] = None  # 0..1
    pfhd: Optional[float] = None  # dangerous failures per hour
    beta: Optional[float] = None  # CCF factor 0..1


@dataclass(frozen=True)
class SubsystemSpec:
    id: str
    architecture: str = "1oo1"
    devices: Tuple[DeviceSpec, ...] = ()
    name: str = ""
    proof_test_interval: Optional[float] = None  # overrides Assumptions.T1
    diagnostic_test_interval: Optional[float] = None  # overrides Assumptions.T2

    @property
    def label(self) -> str:
        return self.name or self.id


@dataclass(frozen=True)
class ChannelOptions:
    monitoring: str = "none"
    demand_rate: Optional[float] = None


@dataclass(frozen=True)
class SafetyFunctionSpec:
    """A safety function with its I/L/O channels and IEC 62061 subsystems."""

    id: str
    name: str = ""
    target_pl: Optional[str] = None
    target_sil: Optional[str] = None
    inputs: Tuple[DeviceSpec, ...] = ()
    logic: Tuple[DeviceSpec, ...] = ()
    outputs: Tuple[DeviceSpec, ...] = ()
    subsystems: Tuple[SubsystemSpec, ...] = ()
    input_options: ChannelOptions = field(default_factory=ChannelOptions)
    logic_options: ChannelOptions = field(default_factory=ChannelOptions)
    output_options: ChannelOptions = field(default_factory=ChannelOptions)
    test_equipment: bool = False
    ccf_score: Optional[int] = None
    proof_test_interval: Optional[float] = None  # T1, hours
    mission_time: Optional[float] = None  # T10D, hours
    proof_test_coverage: Optional[float] = None  # fraction of faults the proof test reveals

    def channels(self) -> Tuple[Tuple[str, Tuple[DeviceSpec, ...], ChannelOptions], ...]:
        return (
            ("input", self.inputs, self.input_options),
            ("logic", self.logic, self.logic_options),
            ("output", self.outputs, self.output_options),
        )


@dataclass(frozen=True)
class RiskInput:
    severity: str = "Minor"
    frequency: str = "Occasional"
    avoidance: str = "Possible"
    mitigation: str = ""
    hazards: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Iso13849Parameters:
    required_pl: str = "PLc"
    category: str = "3"
    dcavg: float = 0.9
    mttfd: float = 10e6  # hours
    ccf_score: int = 65
    validation_performed: bool = False


@dataclass(frozen=True)
class ChecklistItem:
    code: str
    title: str = ""
    description: str = ""
    required: bool = False
    completed: bool = False
    evidence: Optional[str] = None


@dataclass(frozen=True)
class ComplianceChecklist:
    risk: RiskInput = field(default_factory=RiskInput)
    iso13849: Iso13849Parameters = field(default_factory=Iso13849Parameters)
    general_items: Tuple[ChecklistItem, ...] = ()
    system_name: str = ""
    project_id: Optional[str] = None
    assessor: str = ""


@dataclass(frozen=True)
class DiagnosticTestParameters:
    """Test-equipment parameters for the test channel DC contribution."""

    frequency: float  # tests per hour
    coverage: float  # 0..1


@dataclass(frozen=True)
class DeviceDc:
    id: str
    dcavg: float


@dataclass(frozen=True)
class CategoryInput:
    input_channels: int = 0
    logic_channels: int = 0
    output_channels: int = 0
    input_monitoring: bool = False
    logic_monitoring: bool = False
    output_monitoring: bool = False
    test_equipment: bool = False
    ccf_score: Optional[float] = None
    required_pl: Optional[str] = None
    selected_category: Optional[str] = None


# --------------------------------------------------------------------------
# Results
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class CalculationStep:
    """One explainability record of a multi-step calculation."""

    step: int
    description: str
    values: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RiskAssessment:
    score: int
    level: str
    required_pl: str
    has_mitigation: bool


@dataclass(frozen=True)
class CcfAssessment:
    score: int
    passed: bool
    threshold: int
    selected: Tuple[str, ...]
    message: str
    warnings: Tuple[str, ...] = ()
    evidence_suggestions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CcfSuggestion:
    code: str
    title: str
    weight: int
    reason: str
    priority: str  # "High" | "Medium" | "Low"


@dataclass(frozen=True)
class CcfRecommendation:
    current_score: int
    target_score: int
    gap: int  # remaining gap after the suggestions, never negative
    suggestions: Tuple[CcfSuggestion, ...] = ()
    message: str = ""


@dataclass(frozen=True)
class DcavgResult:
    dcavg: float
    raw_dcavg: float
    masking_limit: float
    test_dc: float
    product: float
    warnings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    steps: Tuple[CalculationStep, ...] = ()


@dataclass(frozen=True)
class MaskingRiskResult:
    dcavg: float
    masking_limit: float
    margin: float
    risk_level: str  # "Low" | "Medium" | "High" | "Critical"
    warnings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SeriesCheckResult:
    series_count: int
    within_limit: bool
    estimated_limit: float
    warnings: Tuple[str, ...] = ()


@dataclass(frozen=True)
class SubsystemPfhd:
    id: str
    architecture: str
    pfhd: float
    formula: str
    warnings: Tuple[str, ...] = ()
    complete: bool = True  # every device carried a usable PFHd


ProofTestRisk = Literal["Low", "Medium", "High", "Critical"]


@dataclass(frozen=True)
class ProofTestCheck:
    """T1 against T10D: expiry risk and proof-test coverage."""

    t1: Optional[float]
    t10d: Optional[float]
    risk_level: ProofTestRisk = "Low"
    coverage_ratio: Optional[float] = None  # T1 / T10D
    coverage_adequate: bool = True
    coverage: Optional[float] = None
    warnings: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ProofTestSuggestion:
    target_sil: str
    t10d: float
    t1: float
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PfhdResult:
    total_pfhd: float
    achieved_sil: Optional[str]
    subsystems: Tuple[SubsystemPfhd, ...] = ()
    warnings: Tuple[str, ...] = ()
    proof_test: Optional[ProofTestCheck] = None


@dataclass(frozen=True)
class CategorySuggestion:
    category: str
    confidence: float
    justification: str
    requirements: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CategoryConflict:
    kind: str
    severity: str  # "Low" | "Medium" | "High"
    message: str


@dataclass(frozen=True)
class CategoryAdvice:
    suggestions: Tuple[CategorySuggestion, ...]
    conflicts: Tuple[CategoryConflict, ...] = ()
    recommendations: Tuple[str, ...] = ()
    steps: Tuple[CalculationStep, ...] = ()

    @property
    def top(self) -> Optional[CategorySuggestion]:
        return self.suggestions[0] if self.suggestions else None


@dataclass(frozen=True)
class ConsistencyCheckResult:
    is_consistent: bool
    warnings: Tuple[str, ...] = ()
    recommended_actions: Tuple[str, ...] = ()


@dataclass(frozen=True)
class MappingNotes:
    general: Tuple[str, ...]
    boundary_conditions: Tuple[str, ...]
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EvaluationResult:
    is_compliant: bool
    summary: str
    details: Dict[str, str] = field(default_factory=dict)
    non_conformities: Tuple[str, ...] = ()
    recommended_actions: str = ""


@dataclass(frozen=True)
class DualStandardResult:
    iso13849: EvaluationResult
    achieved_pl: Optional[str]
    pfhd: PfhdResult
    consistency: ConsistencyCheckResult
    verdicts_agree: bool
    issues: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()


@dataclass(frozen=True)
class FunctionComputation:
    function_id: str
    device_count: int
    redundant: bool
    category: CategoryAdvice
    pfhd: PfhdResult
    dcavg: DcavgResult
    warnings: Tuple[str, ...] = ()
