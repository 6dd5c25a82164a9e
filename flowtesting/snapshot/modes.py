"""
Snapshot strategies for a flow run
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from flowtesting.snapshot.config import SnapshotConfiguration


class SnapshotModeKind(str, Enum):
    BUILTIN = "builtin"
    CUSTOM = "custom"
    DISABLED = "disabled"


@dataclass(frozen=True)
class SnapshotMode:
    """
    Selects how each step is captured:

    - builtin(config): render and compare against references on disk
    - custom(fn): call fn(resolved_name, rendered_view); no SnapshotResult is recorded
    - disabled(): capture nothing
    """
    kind: SnapshotModeKind
    configuration: Optional[SnapshotConfiguration] = None
    handler: Optional[Callable[[str, Any], None]] = None

    @classmethod
    def builtin(cls, configuration: Optional[SnapshotConfiguration] = None) -> "SnapshotMode":
        return cls(SnapshotModeKind.BUILTIN, configuration=configuration or SnapshotConfiguration())

    @classmethod
    def custom(cls, handler: Callable[[str, Any], None]) -> "SnapshotMode":
        if not callable(handler):
            raise TypeError("Custom snapshot mode needs a callable handler")
        return cls(SnapshotModeKind.CUSTOM, handler=handler)

    @classmethod
    def disabled(cls) -> "SnapshotMode":
        return cls(SnapshotModeKind.DISABLED)

    @classmethod
    def coerce(cls, value: Any) -> "SnapshotMode":
        """None means builtin with defaults; a bare callable means custom"""
        if value is None:
            return cls.builtin()
        if isinstance(value, SnapshotMode):
            return value
        if isinstance(value, SnapshotConfiguration):
            return cls.builtin(value)
        if callable(value):
            return cls.custom(value)
        raise TypeError(f"Unsupported snapshot mode: {value!r}")
