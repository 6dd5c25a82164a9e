"""
Outcome of a single snapshot capture
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SnapshotStatus(str, Enum):
    """Comparison status of a rendered snapshot against its reference"""
    MATCHED = "matched"
    NEW_REFERENCE = "new_reference"
    MISMATCH = "mismatch"
    SKIPPED = "skipped"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SnapshotResult:
    """
    Result produced by the snapshot engine for one step.

    reference_path is set for new references and mismatches, actual_path only
    for mismatches (it points at the written .fail.png). diff_path is present
    only when a diff image could be generated and written.
    """
    status: SnapshotStatus
    png_data: Optional[bytes] = None
    reference_path: Optional[str] = None
    actual_path: Optional[str] = None
    diff_path: Optional[str] = None
    diff_metrics: Optional[dict] = None

    def __post_init__(self):
        if self.status == SnapshotStatus.MISMATCH:
            if self.png_data is None:
                raise ValueError("A mismatch result must carry the rendered PNG data")
            if self.reference_path is None or self.actual_path is None:
                raise ValueError("A mismatch result needs both reference and actual paths")
        if self.status == SnapshotStatus.NEW_REFERENCE and self.reference_path is None:
            raise ValueError("A new reference result needs the reference path")

    @classmethod
    def matched(cls, png_data: Optional[bytes] = None) -> "SnapshotResult":
        return cls(SnapshotStatus.MATCHED, png_data=png_data)

    @classmethod
    def new_reference(cls, path: str, png_data: Optional[bytes] = None) -> "SnapshotResult":
        return cls(SnapshotStatus.NEW_REFERENCE, png_data=png_data, reference_path=path)

    @classmethod
    def mismatch(cls, reference_path: str, actual_path: str, png_data: bytes,
                 diff_path: Optional[str] = None, diff_metrics: Optional[dict] = None) -> "SnapshotResult":
        return cls(
            SnapshotStatus.MISMATCH,
            png_data=png_data,
            reference_path=reference_path,
            actual_path=actual_path,
            diff_path=diff_path,
            diff_metrics=diff_metrics,
        )

    @classmethod
    def skipped(cls) -> "SnapshotResult":
        return cls(SnapshotStatus.SKIPPED)

    @classmethod
    def unavailable(cls) -> "SnapshotResult":
        return cls(SnapshotStatus.UNAVAILABLE)

    @property
    def is_failure(self) -> bool:
        """Whether a test runner should report this snapshot as failed"""
        return self.status in (SnapshotStatus.MISMATCH, SnapshotStatus.UNAVAILABLE)

    def to_dict(self) -> dict:
        """Serializable view without the raw PNG bytes"""
        return {
            "status": self.status.value,
            "reference_path": self.reference_path,
            "actual_path": self.actual_path,
            "diff_path": self.diff_path,
            "diff_metrics": self.diff_metrics,
            "png_size": len(self.png_data) if self.png_data is not None else None,
        }
