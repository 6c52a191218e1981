"""Command-line entry point: evaluate checklists and safety functions from YAML files.

Usage::

    fusa [--config settings.yaml] [-v] evaluate checklist.yaml
    fusa [--config settings.yaml] [-v] function function.yaml
    fusa [--config settings.yaml] [-v] dual checklist.yaml function.yaml
    fusa --selftest
    fusa --version
"""

from __future__ import annotations

import dataclasses
import logging
import sys
from typing import Any, List, Mapping, Optional

import numpy as np
import yaml

from fusa_core import __version__
from fusa_core.compliance import compute_function, evaluate_compliance, evaluate_dual_standard
from fusa_core.config import DEFAULT_SETTINGS, EngineSettings, load_settings
from fusa_core.conversions import ConversionError, checklist_from_raw, function_from_raw
from fusa_core.engine import classify_sil_from_pfhd
from fusa_core.mapping import check_consistency, map_pl_to_sil
from fusa_core.risk import risk_level, risk_score

logger = logging.getLogger("fusa_cli")

USAGE = __doc__.split("Usage::", 1)[1].strip("\n")


class NumpySafeDumper(yaml.SafeDumper):
    def ignore_aliases(self, data):
        return True

    def represent_data(self, data):
        if isinstance(data, (np.integer, np.floating)):
            return super().represent_data(data.item())
        if isinstance(data, tuple):
            return self.represent_list(data)
        return super().represent_data(data)


def _setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _load_yaml(path: str) -> Mapping[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, Mapping):
        raise ConversionError(f"{path}: top level must be a mapping.")
    return data


def _dump(result: Any) -> None:
    payload = dataclasses.asdict(result) if dataclasses.is_dataclass(result) else result
    yaml.dump(payload, sys.stdout, sort_keys=False, allow_unicode=True, Dumper=NumpySafeDumper)


def _assert_equal(actual, expected, label):
    if actual != expected:
        raise AssertionError(f"{label}: expected {expected}, got {actual}")


def run_selftests() -> None:
    _assert_equal(classify_sil_from_pfhd(5e-8), "SIL3", "PFHd mid SIL3")
    _assert_equal(classify_sil_from_pfhd(1e-7), "SIL2", "PFHd lower SIL2 bound")
    _assert_equal(classify_sil_from_pfhd(1e-6), "SIL1", "PFHd lower SIL1 bound")
    _assert_equal(classify_sil_from_pfhd(1e-5), None, "PFHd out of range")
    _assert_equal(risk_score("Critical", "Frequent", "Difficult"), 36, "risk score 4*3*3")
    _assert_equal(risk_level(36), "High", "risk level of 36")
    _assert_equal(risk_level(37), "Extreme", "risk level of 37")
    _assert_equal(map_pl_to_sil("PLd"), frozenset({"SIL2", "SIL3"}), "PLd -> SIL")
    _assert_equal(check_consistency("PLa", "SIL3").is_consistent, False, "PLa/SIL3 consistency")
    _assert_equal(check_consistency("PLe", "SIL3").is_consistent, True, "PLe/SIL3 consistency")
    print("Selftests OK (SIL bands, risk levels, PL/SIL mapping).")


def _run(command: str, args: List[str], settings: EngineSettings) -> int:
    if command == "evaluate" and len(args) == 1:
        result = evaluate_compliance(checklist_from_raw(_load_yaml(args[0])), settings)
        _dump(result)
        return 0 if result.is_compliant else 1
    if command == "function" and len(args) == 1:
        function = function_from_raw(_load_yaml(args[0]))
        _dump(compute_function(function.id, {function.id: function}, settings))
        return 0
    if command == "dual" and len(args) == 2:
        checklist = checklist_from_raw(_load_yaml(args[0]))
        function = function_from_raw(_load_yaml(args[1]))
        result = evaluate_dual_standard(checklist, function, settings)
        _dump(result)
        return 0 if result.iso13849.is_compliant and result.verdicts_agree else 1
    print(USAGE, file=sys.stderr)
    return 2


def main(argv: Optional[List[str]] = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)

    if "--version" in argv:
        print(__version__)
        return 0
    if "--selftest" in argv:
        run_selftests()
        return 0

    verbose = "--verbose" in argv or "-v" in argv
    argv = [a for a in argv if a not in ("--verbose", "-v")]
    _setup_logging(verbose)

    config_path = None
    if "--config" in argv:
        i = argv.index("--config")
        if i + 1 >= len(argv):
            print("--config needs a path", file=sys.stderr)
            return 2
        config_path = argv[i + 1]
        del argv[i : i + 2]

    if not argv:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        settings = load_settings(config_path) if config_path else DEFAULT_SETTINGS
        return _run(argv[0], argv[1:], settings)
    except (OSError, yaml.YAMLError, ConversionError) as e:
        logger.error("%s", e)
        return 2


if __name__ == "__main__":
    sys.exit(main())
