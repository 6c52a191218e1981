import pytest

from fusa_core.category import advise_category, category_input_for_function
from fusa_core.config import settings_from_mapping
from fusa_core.models import CategoryInput, SafetyFunctionSpec


def _kinds(advice) -> list[str]:
    return [c.kind for c in advice.conflicts]


def test_single_channel_without_diagnostics_suggests_category_1() -> None:
    advice = advise_category(CategoryInput(1, 1, 1))

    assert [s.category for s in advice.suggestions] == ["1", "B"]
    assert advice.top.category == "1"
    assert advice.conflicts == ()


def test_test_equipment_without_redundancy_suggests_category_2() -> None:
    advice = advise_category(CategoryInput(1, 1, 1, test_equipment=True))

    assert [s.category for s in advice.suggestions] == ["2", "B"]


def test_redundant_monitored_design_with_ccf_suggests_category_4_first() -> None:
    params = CategoryInput(2, 2, 2, input_monitoring=True, ccf_score=65)

    advice = advise_category(params)

    assert [s.category for s in advice.suggestions] == ["4", "3", "B"]
    assert advice.conflicts == ()
    assert advice.recommendations[-1].startswith("Suggested category: Category 4")


def test_redundancy_with_low_ccf_only_offers_category_b() -> None:
    advice = advise_category(CategoryInput(2, 2, 2, logic_monitoring=True, ccf_score=60))

    assert [s.category for s in advice.suggestions] == ["B"]


def test_missing_channels_is_a_high_conflict() -> None:
    advice = advise_category(CategoryInput(1, 0, 1))

    assert advice.conflicts[0].kind == "MissingChannels"
    assert advice.conflicts[0].severity == "High"
    assert "Define at least one channel for input, logic and output." in advice.recommendations


@pytest.mark.parametrize(
    "params, expected",
    [
        (CategoryInput(1, 1, 1, input_monitoring=True, ccf_score=80, selected_category="3"), ["CategoryWithoutRedundancy"]),
        (CategoryInput(2, 2, 2, input_monitoring=True, ccf_score=40, selected_category="4"), ["CategoryWithLowCcf"]),
        (CategoryInput(2, 2, 2, ccf_score=80, selected_category="3"), ["CategoryWithoutMonitoring"]),
        (CategoryInput(1, 1, 1, selected_category="2"), ["Category2WithoutTestEquipment"]),
    ],
)
def test_selected_category_conflicts(params: CategoryInput, expected: list[str]) -> None:
    assert _kinds(advise_category(params)) == expected


def test_high_required_pl_with_basic_suggestion_conflicts() -> None:
    advice = advise_category(CategoryInput(1, 1, 1, required_pl="PLd"))

    assert _kinds(advice) == ["CategoryBelowRequiredPl"]
    assert advice.conflicts[0].severity == "Medium"


def test_detailed_advice_records_predicates() -> None:
    advice = advise_category(CategoryInput(2, 1, 1, test_equipment=True), detailed=True)

    assert [s.step for s in advice.steps] == [1, 2, 3]
    assert advice.steps[0].values["has_redundancy"] is True
    assert advice.steps[0].values["has_test_equipment"] is True


def test_confidences_come_from_settings() -> None:
    settings = settings_from_mapping({"category": {"confidence": {"B": 0.99}}})

    advice = advise_category(CategoryInput(1, 1, 1), settings=settings)

    assert advice.top.category == "B"
    assert advice.top.confidence == 0.99


def test_category_input_from_function(door_interlock: SafetyFunctionSpec) -> None:
    params = category_input_for_function(door_interlock)

    assert (params.input_channels, params.logic_channels, params.output_channels) == (2, 1, 1)
    assert params.input_monitoring and not params.output_monitoring
    assert params.ccf_score == 70
    assert params.required_pl == "PLd"
    assert [s.category for s in advise_category(params).suggestions] == ["4", "3", "B"]
