"""
Configuration for the built-in snapshot engine
Controls rendering scale, proposed view size, record behaviour, tolerance and storage location
"""

from dataclasses import dataclass, field
from typing import Optional

from flowtesting.config import Config


@dataclass(frozen=True)
class ProposedSize:
    """Logical width and height used to lay out a view before rendering"""
    width: float = Config.DEFAULT_WIDTH
    height: float = Config.DEFAULT_HEIGHT

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Proposed size must be positive, got {self.width}x{self.height}")

    def to_pixels(self, scale: float) -> tuple:
        """Pixel dimensions of the rendered image at the given density"""
        return (max(1, round(self.width * scale)), max(1, round(self.height * scale)))


@dataclass(frozen=True)
class SnapshotConfiguration:
    """
    Settings for one built-in snapshot run.

    Defaults that are not given explicitly are resolved from the environment
    when the configuration is constructed:

        SnapshotConfiguration()                 # record if FLOW_RECORD_SNAPSHOTS is set
        SnapshotConfiguration(record=False)     # never record, whatever the environment says
        SnapshotConfiguration(tolerance=0.02, snapshot_directory="/tmp/snaps")
    """
    scale: float = field(default_factory=Config.snapshot_scale)
    proposed_size: ProposedSize = field(default_factory=ProposedSize)
    record: bool = field(default_factory=Config.record_snapshots)
    tolerance: float = field(default_factory=Config.snapshot_tolerance)
    snapshot_directory: Optional[str] = None

    def __post_init__(self):
        if self.scale <= 0:
            raise ValueError(f"Scale must be positive, got {self.scale}")
        if not 0.0 <= self.tolerance <= 1.0:
            raise ValueError(f"Tolerance must be within [0, 1], got {self.tolerance}")

    @property
    def pixel_size(self) -> tuple:
        return self.proposed_size.to_pixels(self.scale)
