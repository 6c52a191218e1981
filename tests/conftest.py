import pytest

from fusa_core.config import EngineSettings
from fusa_core.models import (
    Assumptions,
    ChannelOptions,
    ChecklistItem,
    ComplianceChecklist,
    DeviceSpec,
    Iso13849Parameters,
    RiskInput,
    SafetyFunctionSpec,
    SubsystemSpec,
)


@pytest.fixture
def default_assumptions() -> Assumptions:
    """Standard assumptions used across unit tests."""
    return Assumptions(T1=175200.0, T2=1.0, beta=0.05, lifetime=87600.0)


@pytest.fixture
def default_settings(default_assumptions: Assumptions) -> EngineSettings:
    return EngineSettings(assumptions=default_assumptions)


@pytest.fixture
def compliant_checklist() -> ComplianceChecklist:
    """Medium risk, Cat3 design with full validation: passes every check."""
    return ComplianceChecklist(
        risk=RiskInput(severity="Serious", frequency="Occasional", avoidance="Possible"),
        iso13849=Iso13849Parameters(
            required_pl="PLd",
            category="3",
            dcavg=0.9,
            mttfd=10e6,
            ccf_score=65,
            validation_performed=True,
        ),
        general_items=(ChecklistItem("GEN-01", "Technical file", required=True, completed=True),),
        system_name="Press line guard",
    )


@pytest.fixture
def door_interlock() -> SafetyFunctionSpec:
    """Two-channel door interlock with monitored inputs and two 1oo1 subsystems."""
    switch_a = DeviceSpec("SW-A", mttfd=1.5e6, dcavg=0.9, pfhd=2.0e-8)
    switch_b = DeviceSpec("SW-B", mttfd=1.5e6, dcavg=0.9, pfhd=2.0e-8)
    relay = DeviceSpec("SR-1", mttfd=2.0e6, dcavg=0.99, pfhd=1.0e-7)
    contactor = DeviceSpec("K1", mttfd=1.0e6, dcavg=0.6, pfhd=1.0e-7)
    return SafetyFunctionSpec(
        id="SF-01",
        name="Guard door interlock",
        target_pl="PLd",
        target_sil="SIL2",
        inputs=(switch_a, switch_b),
        logic=(relay,),
        outputs=(contactor,),
        subsystems=(
            SubsystemSpec("SS-LOGIC", "1oo1", (relay,)),
            SubsystemSpec("SS-OUT", "1oo1", (contactor,)),
        ),
        input_options=ChannelOptions(monitoring="diagnostics", demand_rate=0.5),
        ccf_score=70,
    )
