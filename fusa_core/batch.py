"""Fan independent evaluations out over a thread pool."""

from __future__ import annotations

import concurrent.futures
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .compliance import compute_function, evaluate_compliance
from .config import DEFAULT_SETTINGS, EngineSettings
from .models import ComplianceChecklist, SafetyFunctionSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchItem:
    key: str
    ok: bool
    result: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class BatchResult:
    items: Tuple[BatchItem, ...]
    total: int
    succeeded: int
    failed: int


def run_batch(
    requests: Sequence[Tuple[str, Any]],
    func: Callable[[Any], Any],
    max_workers: int = 4,
) -> BatchResult:
    """Apply ``func`` to every ``(key, payload)`` pair.

    A failing item is logged and recorded with its error message; the other
    items still run. Items come back in request order.
    """

    done: Dict[int, BatchItem] = {}
    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_to_index = {
            executor.submit(func, payload): index for index, (_, payload) in enumerate(requests)
        }
        for future in concurrent.futures.as_completed(future_to_index):
            index = future_to_index[future]
            key = requests[index][0]
            try:
                done[index] = BatchItem(key=key, ok=True, result=future.result())
            except Exception as e:
                logger.error("Batch item %s failed: %s", key, e)
                done[index] = BatchItem(key=key, ok=False, error=f"{type(e).__name__}: {e}")

    items = tuple(done[i] for i in range(len(requests)))
    succeeded = sum(1 for item in items if item.ok)
    return BatchResult(items=items, total=len(items), succeeded=succeeded, failed=len(items) - succeeded)


def evaluate_checklists(
    checklists: Mapping[str, ComplianceChecklist],
    settings: EngineSettings = DEFAULT_SETTINGS,
    max_workers: int = 4,
) -> BatchResult:
    return run_batch(
        list(checklists.items()),
        lambda checklist: evaluate_compliance(checklist, settings),
        max_workers=max_workers,
    )


def evaluate_functions(
    function_ids: Sequence[str],
    functions: Mapping[str, SafetyFunctionSpec],
    settings: EngineSettings = DEFAULT_SETTINGS,
    max_workers: int = 4,
) -> BatchResult:
    """Compute every listed function; unknown ids fail only their own item."""

    requests: List[Tuple[str, str]] = [(fid, fid) for fid in function_ids]
    return run_batch(
        requests,
        lambda fid: compute_function(fid, functions, settings),
        max_workers=max_workers,
    )
