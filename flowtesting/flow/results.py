"""
Results of executed flow steps, plus helpers that bridge them into a test runner
"""

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from flowtesting.snapshot.result import SnapshotResult, SnapshotStatus


@dataclass(frozen=True)
class StepResult:
    """
    Outcome of one executed step.

    duration is wall-clock seconds covering hooks, action, snapshot and
    assertions. configuration_label is only set for matrix runs.
    """
    step_name: str
    resolved_name: str
    index: int
    duration: float
    assertion_count: int
    configuration_label: Optional[str] = None
    snapshot_result: Optional[SnapshotResult] = None
    assertion_failures: Tuple[str, ...] = ()

    @property
    def passed(self) -> bool:
        if self.assertion_failures:
            return False
        return self.snapshot_result is None or not self.snapshot_result.is_failure

    def to_dict(self) -> dict:
        return {
            "step_name": self.step_name,
            "resolved_name": self.resolved_name,
            "index": self.index,
            "duration_ms": int(self.duration * 1000),
            "assertion_count": self.assertion_count,
            "configuration_label": self.configuration_label,
            "snapshot": self.snapshot_result.to_dict() if self.snapshot_result else None,
            "assertion_failures": list(self.assertion_failures),
        }


def attach_snapshots(results: Iterable[StepResult], handler: Callable[[bytes, str], None]) -> int:
    """
    Pass each step's rendered PNG to handler(png_data, "{resolved_name}.png")

    Returns:
        int: Number of snapshots handed over
    """
    attached = 0
    for result in results:
        if result.snapshot_result is None or result.snapshot_result.png_data is None:
            continue
        handler(result.snapshot_result.png_data, f"{result.resolved_name}.png")
        attached += 1
    return attached


def failure_summary(results: Iterable[StepResult]) -> List[str]:
    """Human-readable lines for every mismatched, unavailable or failing step"""
    lines = []
    for result in results:
        snapshot = result.snapshot_result
        if snapshot is not None and snapshot.status == SnapshotStatus.MISMATCH:
            line = f"{result.resolved_name}: snapshot mismatch (reference {snapshot.reference_path}, actual {snapshot.actual_path}"
            if snapshot.diff_path:
                line += f", diff {snapshot.diff_path}"
            lines.append(line + ")")
        elif snapshot is not None and snapshot.status == SnapshotStatus.UNAVAILABLE:
            lines.append(f"{result.resolved_name}: snapshot unavailable (renderer produced no image)")
        for failure in result.assertion_failures:
            lines.append(f"{result.resolved_name}: assertion failed: {failure}")
    return lines


def assert_flow_passed(results: Iterable[StepResult]) -> None:
    """Raise AssertionError listing every failing step, if any"""
    lines = failure_summary(results)
    if lines:
        raise AssertionError("Flow failed:\n" + "\n".join(lines))
