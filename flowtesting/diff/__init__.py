"""
Visual diff generation module for flow snapshots
"""

from .diff_engine import VisualDiffEngine, DiffConfig

__all__ = ['VisualDiffEngine', 'DiffConfig']
