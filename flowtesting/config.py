"""
Environment-driven defaults for flow testing
Values are read from the process environment (and a local .env file, if present)
"""

import os
from dotenv import load_dotenv

load_dotenv()

RECORD_ENV_VAR = 'FLOW_RECORD_SNAPSHOTS'


def _get_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


class Config:
    """Process-wide defaults, resolved at call time from the environment"""

    DEFAULT_SCALE = 2.0
    DEFAULT_WIDTH = 390.0
    DEFAULT_HEIGHT = 844.0
    DEFAULT_TOLERANCE = 0.0
    DEFAULT_BACKDROP_ALPHA = 128

    SNAPSHOTS_FOLDER = '__snapshots__'

    @staticmethod
    def record_snapshots() -> bool:
        """Presence check only: FLOW_RECORD_SNAPSHOTS=0 still enables recording"""
        return os.getenv(RECORD_ENV_VAR) is not None

    @staticmethod
    def snapshot_scale() -> float:
        scale = _get_float('FLOW_SNAPSHOT_SCALE', Config.DEFAULT_SCALE)
        return scale if scale > 0 else Config.DEFAULT_SCALE

    @staticmethod
    def snapshot_tolerance() -> float:
        tolerance = _get_float('FLOW_SNAPSHOT_TOLERANCE', Config.DEFAULT_TOLERANCE)
        return min(1.0, max(0.0, tolerance))

    @staticmethod
    def diff_backdrop_alpha() -> int:
        return _get_int('FLOW_DIFF_BACKDROP_ALPHA', Config.DEFAULT_BACKDROP_ALPHA)
