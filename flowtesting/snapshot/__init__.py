"""
Snapshot capture, comparison and storage
"""

from .config import ProposedSize, SnapshotConfiguration
from .engine import SnapshotEngine
from .modes import SnapshotMode
from .result import SnapshotResult, SnapshotStatus
from .store import SnapshotStore

__all__ = [
    'ProposedSize', 'SnapshotConfiguration', 'SnapshotEngine', 'SnapshotMode',
    'SnapshotResult', 'SnapshotStatus', 'SnapshotStore',
]
