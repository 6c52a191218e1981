from pathlib import Path

import numpy as np
import pytest
import yaml

from fusa_cli import NumpySafeDumper, main

CHECKLIST = """\
system_name: Press line guard
risk:
  severity: Serious
  frequency: Occasional
  avoidance: Possible
iso13849:
  required_pl: PL d
  category: 3
  dcavg: 0.9
  mttfd: 1.0e6
  ccf_score: 65
  validation_performed: true
"""

FUNCTION = """\
id: SF-01
target_pl: PLd
target_sil: SIL 2
inputs:
  - {id: SW-A, dcavg: 0.9, pfhd: 2.0e-8}
  - {id: SW-B, dcavg: 0.9, pfhd: 2.0e-8}
logic:
  - {id: SR-1, dcavg: 0.99, pfhd: 1.0e-7}
outputs:
  - {id: K1, dcavg: 0.6, pfhd: 1.0e-7}
input_options: {monitoring: diagnostics}
ccf_score: 70
subsystems:
  - {id: SS-LOGIC, architecture: 1oo1, devices: [{id: SR-1, pfhd: 1.0e-7}]}
  - {id: SS-OUT, architecture: 1oo1, devices: [{id: K1, pfhd: 1.0e-7}]}
"""


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


def test_version(capsys: pytest.CaptureFixture) -> None:
    assert main(["--version"]) == 0
    assert capsys.readouterr().out.strip() == "0.1.0"


def test_selftest(capsys: pytest.CaptureFixture) -> None:
    assert main(["--selftest"]) == 0
    assert "Selftests OK" in capsys.readouterr().out


def test_evaluate_dumps_yaml(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    code = main(["evaluate", _write(tmp_path, "checklist.yaml", CHECKLIST)])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert code == 0
    assert payload["is_compliant"] is True
    assert payload["details"]["ISO13849.AchievedPL"] == "PLd"
    assert payload["non_conformities"] == []


def test_function_command(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    code = main(["function", _write(tmp_path, "function.yaml", FUNCTION)])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert code == 0
    assert payload["function_id"] == "SF-01"
    assert payload["pfhd"]["achieved_sil"] == "SIL2"
    assert payload["category"]["suggestions"][0]["category"] == "4"


def test_dual_command_with_config(tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
    checklist = _write(tmp_path, "checklist.yaml", CHECKLIST)
    function = _write(tmp_path, "function.yaml", FUNCTION)
    config = _write(tmp_path, "settings.yaml", "ccf:\n  threshold: 60\n")

    code = main(["--config", config, "dual", checklist, function])

    payload = yaml.safe_load(capsys.readouterr().out)
    assert code == 0
    assert payload["consistency"]["is_consistent"] is True
    assert payload["verdicts_agree"] is True


def test_missing_file_returns_error_code(tmp_path: Path) -> None:
    assert main(["evaluate", str(tmp_path / "missing.yaml")]) == 2


def test_invalid_checklist_returns_error_code(tmp_path: Path) -> None:
    path = _write(tmp_path, "bad.yaml", "iso13849:\n  required_pl: PL z\n")

    assert main(["evaluate", path]) == 2


def test_unknown_command_prints_usage(capsys: pytest.CaptureFixture) -> None:
    assert main(["report", "x.yaml"]) == 2
    assert "evaluate checklist.yaml" in capsys.readouterr().err


def test_numpy_safe_dumper_handles_numpy_scalars_and_tuples() -> None:
    text = yaml.dump({"a": np.float64(0.5), "b": (np.int64(1), 2)}, Dumper=NumpySafeDumper)

    assert yaml.safe_load(text) == {"a": 0.5, "b": [1, 2]}


def test_non_finite_number_returns_error_code(tmp_path: Path) -> None:
    path = _write(tmp_path, "function.yaml", "id: SF-01\nccf_score: .nan\n")

    assert main(["function", path]) == 2
