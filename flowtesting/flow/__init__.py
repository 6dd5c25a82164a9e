"""
Flow orchestration: steps, configurations, results and the tester
"""

from .models import (
    EnvironmentValues,
    FlowAssertion,
    FlowConfiguration,
    FlowModel,
    FlowStep,
    FlowViewProvider,
    LIGHT_AND_DARK,
    RenderedView,
)
from .results import StepResult, assert_flow_passed, attach_snapshots, failure_summary
from .tester import FlowTester, resolve_step_name

__all__ = [
    'EnvironmentValues', 'FlowAssertion', 'FlowConfiguration', 'FlowModel', 'FlowStep',
    'FlowViewProvider', 'LIGHT_AND_DARK', 'RenderedView', 'StepResult', 'assert_flow_passed',
    'attach_snapshots', 'failure_summary', 'FlowTester', 'resolve_step_name',
]
