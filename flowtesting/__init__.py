"""
UI flow testing: drive a model through steps and compare each rendered step against reference snapshots
"""

from .flow import (
    EnvironmentValues,
    FlowAssertion,
    FlowConfiguration,
    FlowModel,
    FlowStep,
    FlowTester,
    FlowViewProvider,
    LIGHT_AND_DARK,
    RenderedView,
    StepResult,
    assert_flow_passed,
    attach_snapshots,
    failure_summary,
    resolve_step_name,
)
from .screenshot import PillowRenderer, PlaywrightRenderer, Renderer
from .snapshot import (
    ProposedSize,
    SnapshotConfiguration,
    SnapshotEngine,
    SnapshotMode,
    SnapshotResult,
    SnapshotStatus,
)

__version__ = '0.1.0'

__all__ = [
    'EnvironmentValues', 'FlowAssertion', 'FlowConfiguration', 'FlowModel', 'FlowStep', 'FlowTester',
    'FlowViewProvider', 'LIGHT_AND_DARK', 'RenderedView', 'StepResult', 'assert_flow_passed',
    'attach_snapshots', 'failure_summary', 'resolve_step_name', 'PillowRenderer', 'PlaywrightRenderer',
    'Renderer', 'ProposedSize', 'SnapshotConfiguration', 'SnapshotEngine', 'SnapshotMode',
    'SnapshotResult', 'SnapshotStatus',
]
