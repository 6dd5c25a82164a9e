"""
Flow tester: drives a model through ordered steps, capturing a snapshot and running assertions after each one

Example:

    tester = (
        FlowTester(CheckoutModel(), lambda m: render_checkout(m), name="checkout")
        .step("cart")
        .step("payment", lambda m: m.proceed_to_payment())
        .step("confirmation", lambda m: m.confirm_order(), assertion=lambda m: assert_confirmed(m))
    )
    results = tester.run(SnapshotMode.builtin(SnapshotConfiguration(tolerance=0.01)))
    assert_flow_passed(results)
"""

import inspect
import logging
import time
from typing import Any, Callable, Coroutine, Generic, Iterable, List, Optional, Sequence, Tuple

from flowtesting.flow.models import (
    FlowAssertion,
    FlowConfiguration,
    FlowStep,
    FlowViewProvider,
    ModelT,
    RenderedView,
    as_assertion,
)
from flowtesting.flow.results import StepResult
from flowtesting.screenshot.renderer import PlaywrightRenderer
from flowtesting.snapshot.engine import SnapshotEngine
from flowtesting.snapshot.modes import SnapshotMode, SnapshotModeKind
from flowtesting.snapshot.result import SnapshotResult
from flowtesting.utils.path_manager import caller_source_file

Hook = Callable[[str, int, Any], None]


def resolve_step_name(tester_name: Optional[str], step_name: str, index: int,
                      config_label: Optional[str] = None) -> str:
    """
    Resolve the snapshot/result name of a step

    Unnamed steps become "step-{index}", the tester name prefixes everything,
    and a non-empty configuration label is appended in matrix runs.
    """
    if step_name:
        base = f"{tester_name}-{step_name}" if tester_name else step_name
    else:
        base = f"{tester_name}-step-{index}" if tester_name else f"step-{index}"
    if config_label:
        return f"{base}-{config_label}"
    return base


class _RunContext:
    """What a single run needs besides the step: where and how to capture"""

    def __init__(self, mode: SnapshotMode, engine: Optional[SnapshotEngine]):
        self.mode = mode
        self.engine = engine


class FlowTester(Generic[ModelT]):
    """
    Orchestrates a UI flow over a caller-owned model.

    Steps are declared with step()/async_step() and executed in declaration
    order by run(), async_run() or matrix_run(). For each step the tester
    calls the before hook, the action, builds and patches the view, captures
    it according to the snapshot mode, runs the assertions, then calls the
    after hook.

    All execution happens on the calling thread; async runs await each step
    in turn and never overlap steps.
    """

    def __init__(self, model: ModelT, view_builder: Optional[Callable[[ModelT], Any]] = None, *,
                 name: Optional[str] = None, configuration: Optional[FlowConfiguration] = None,
                 renderer: Any = None):
        """
        Args:
            model: Model instance driven by run() and async_run()
            view_builder: Builds the view for the current model state; defaults to model.flow_body()
            name: Optional flow name, prefixed to every resolved step name
            configuration: Environment configuration for run() and async_run()
            renderer: Rendering backend for built-in snapshots, defaults to PlaywrightRenderer
        """
        if view_builder is None:
            if not isinstance(model, FlowViewProvider):
                raise TypeError("A view_builder is required unless the model provides flow_body()")
            view_builder = _flow_body
        self.name = name
        self.model = model
        self.configuration = configuration or FlowConfiguration()
        self.view_builder = view_builder
        self.renderer = renderer if renderer is not None else PlaywrightRenderer()
        self.logger = logging.getLogger(__name__)

        self._steps: List[FlowStep] = []
        self._before_hook: Optional[Hook] = None
        self._after_hook: Optional[Hook] = None

    # Step building

    def step(self, name: str = "", action: Optional[Callable[[ModelT], None]] = None, *,
             snapshot: bool = True, assertions: Iterable[Any] = (),
             assertion: Optional[Callable[[ModelT], None]] = None) -> "FlowTester[ModelT]":
        """
        Add a step. An empty name is auto-generated from the step's index.

        Args:
            name: Step identifier used in snapshot file names
            action: Mutates the model to simulate an interaction; no-op if None
            snapshot: Whether this step is captured
            assertions: FlowAssertion values or plain callables
            assertion: Single assertion shortcut, run after ``assertions``
        """
        kwargs = {}
        if action is not None:
            kwargs['action'] = action
        self._steps.append(FlowStep(
            name=name,
            assertions=self._collect_assertions(assertions, assertion),
            snapshot_enabled=snapshot,
            **kwargs,
        ))
        return self

    def async_step(self, name: str = "", action: Optional[Callable[[ModelT], Any]] = None, *,
                   snapshot: bool = True, assertions: Iterable[Any] = (),
                   assertion: Optional[Callable[[ModelT], None]] = None) -> "FlowTester[ModelT]":
        """
        Add a step whose action is a coroutine function (or returns an awaitable).

        async_run() awaits the result when it is awaitable; run() and matrix_run() use a
        no-op instead. A non-callable action raises TypeError here, not during the run.
        """
        if action is None or not callable(action):
            raise TypeError("async_step requires a coroutine function or a callable returning an awaitable")
        self._steps.append(FlowStep(
            name=name,
            async_action=action,
            assertions=self._collect_assertions(assertions, assertion),
            snapshot_enabled=snapshot,
        ))
        return self

    @staticmethod
    def _collect_assertions(assertions: Iterable[Any], assertion: Optional[Callable]) -> Tuple[FlowAssertion, ...]:
        collected = [as_assertion(a) for a in assertions]
        if assertion is not None:
            collected.append(as_assertion(assertion))
        return tuple(collected)

    # Hooks

    def before_each_step(self, hook: Hook) -> "FlowTester[ModelT]":
        """Register hook(resolved_name, index, model), called before each action"""
        self._before_hook = hook
        return self

    def after_each_step(self, hook: Hook) -> "FlowTester[ModelT]":
        """Register hook(resolved_name, index, model), called after each step's assertions"""
        self._after_hook = hook
        return self

    # Composition and introspection

    @property
    def extracted_steps(self) -> Tuple[FlowStep, ...]:
        return tuple(self._steps)

    def steps(self, new_steps: Iterable[FlowStep]) -> "FlowTester[ModelT]":
        """Append steps taken from another tester; unnamed ones renumber by their new index"""
        self._steps.extend(new_steps)
        return self

    @property
    def step_count(self) -> int:
        return len(self._steps)

    @property
    def step_names(self) -> List[str]:
        return [self.resolved_name(step.name, index) for index, step in enumerate(self._steps)]

    def resolved_name(self, step_name: str, index: int, config_label: Optional[str] = None) -> str:
        return resolve_step_name(self.name, step_name, index, config_label)

    # Execution

    def run(self, snapshot_mode: Any = None, *, file_path: Optional[str] = None) -> List[StepResult]:
        """
        Execute every step once against the tester's model

        Args:
            snapshot_mode: SnapshotMode, SnapshotConfiguration (builtin), callable (custom), or None (builtin defaults)
            file_path: Calling test file for the default snapshot directory; detected from the stack if None

        Returns:
            Ordered StepResult list
        """
        context = self._prepare(snapshot_mode, file_path or caller_source_file())
        self.logger.info(f"Running flow '{self.name or 'unnamed'}' with {len(self._steps)} steps")
        return [
            self._execute_step(step, index, self.model, self.configuration, None, context)
            for index, step in enumerate(self._steps)
        ]

    def async_run(self, snapshot_mode: Any = None, *,
                  file_path: Optional[str] = None) -> Coroutine[Any, Any, List[StepResult]]:
        """
        Like run(), but awaits async step actions and async renderers, one step at a time

        Not a coroutine function itself: the calling file is resolved here, before
        an event loop such as asyncio.run() becomes the caller of the coroutine.
        """
        context = self._prepare(snapshot_mode, file_path or caller_source_file())
        return self._run_async(context)

    async def _run_async(self, context: _RunContext) -> List[StepResult]:
        self.logger.info(f"Running async flow '{self.name or 'unnamed'}' with {len(self._steps)} steps")
        results = []
        for index, step in enumerate(self._steps):
            result = await self._execute_step_async(step, index, self.model, self.configuration, None, context)
            results.append(result)
        return results

    def matrix_run(self, configurations: Sequence[FlowConfiguration], model_factory: Callable[[], ModelT],
                   snapshot_mode: Any = None, *, file_path: Optional[str] = None) -> List[StepResult]:
        """
        Execute the whole flow once per configuration, each against a fresh model

        Results are ordered configuration first, then step. Configuration labels
        are appended to resolved names and recorded on each result.
        """
        context = self._prepare(snapshot_mode, file_path or caller_source_file())
        results = []
        for configuration in configurations:
            self.logger.info(
                f"Running flow '{self.name or 'unnamed'}' for configuration '{configuration.label}'"
            )
            matrix_model = model_factory()
            for index, step in enumerate(self._steps):
                results.append(
                    self._execute_step(step, index, matrix_model, configuration, configuration.label, context)
                )
        return results

    def _prepare(self, snapshot_mode: Any, file_path: Optional[str]) -> _RunContext:
        mode = SnapshotMode.coerce(snapshot_mode)
        engine = None
        if mode.kind == SnapshotModeKind.BUILTIN:
            engine = SnapshotEngine(mode.configuration, renderer=self.renderer, file_path=file_path)
            self.logger.debug(f"Snapshots stored in {engine.snapshot_directory}")
        return _RunContext(mode, engine)

    def _build_view(self, model: ModelT, configuration: FlowConfiguration) -> RenderedView:
        content = self.view_builder(model)
        return RenderedView(content=content, environment=configuration.make_environment())

    def _capture(self, step: FlowStep, resolved: str, view: RenderedView,
                 context: _RunContext) -> Optional[SnapshotResult]:
        if not step.snapshot_enabled:
            return SnapshotResult.skipped()
        if context.mode.kind == SnapshotModeKind.BUILTIN:
            return context.engine.capture(resolved, view)
        if context.mode.kind == SnapshotModeKind.CUSTOM:
            context.mode.handler(resolved, view)
        return None

    async def _capture_async(self, step: FlowStep, resolved: str, view: RenderedView,
                             context: _RunContext) -> Optional[SnapshotResult]:
        if step.snapshot_enabled and context.mode.kind == SnapshotModeKind.BUILTIN:
            return await context.engine.capture_async(resolved, view)
        return self._capture(step, resolved, view, context)

    def _run_assertions(self, step: FlowStep, resolved: str, model: ModelT) -> Tuple[str, ...]:
        # A failing assertion never stops the remaining assertions or steps
        failures = []
        for assertion in step.assertions:
            try:
                assertion(model)
            except AssertionError as e:
                label = f"[{assertion.label}] " if assertion.label else ""
                message = f"{label}{e}" if str(e) else f"{label}assertion failed"
                self.logger.error(f"Step '{resolved}': {message}")
                failures.append(message)
        return tuple(failures)

    def _execute_step(self, step: FlowStep, index: int, model: ModelT, configuration: FlowConfiguration,
                      config_label: Optional[str], context: _RunContext) -> StepResult:
        resolved = self.resolved_name(step.name, index, config_label)
        start = time.perf_counter()

        if self._before_hook is not None:
            self._before_hook(resolved, index, model)

        step.action(model)

        view = self._build_view(model, configuration)
        snapshot_result = self._capture(step, resolved, view, context)
        failures = self._run_assertions(step, resolved, model)

        if self._after_hook is not None:
            self._after_hook(resolved, index, model)

        return self._result(step, resolved, index, start, config_label, snapshot_result, failures)

    async def _execute_step_async(self, step: FlowStep, index: int, model: ModelT,
                                  configuration: FlowConfiguration, config_label: Optional[str],
                                  context: _RunContext) -> StepResult:
        resolved = self.resolved_name(step.name, index, config_label)
        start = time.perf_counter()

        if self._before_hook is not None:
            self._before_hook(resolved, index, model)

        if step.async_action is not None:
            outcome = step.async_action(model)
            # Plain callables are accepted; only awaitables are awaited
            if inspect.isawaitable(outcome):
                await outcome
        else:
            step.action(model)

        view = self._build_view(model, configuration)
        snapshot_result = await self._capture_async(step, resolved, view, context)
        failures = self._run_assertions(step, resolved, model)

        if self._after_hook is not None:
            self._after_hook(resolved, index, model)

        return self._result(step, resolved, index, start, config_label, snapshot_result, failures)

    def _result(self, step: FlowStep, resolved: str, index: int, start: float, config_label: Optional[str],
                snapshot_result: Optional[SnapshotResult], failures: Tuple[str, ...]) -> StepResult:
        duration = time.perf_counter() - start
        status = snapshot_result.status.value if snapshot_result else "none"
        self.logger.debug(f"Step {index} '{resolved}' finished in {duration * 1000:.1f}ms (snapshot: {status})")
        return StepResult(
            step_name=step.name,
            resolved_name=resolved,
            index=index,
            duration=duration,
            assertion_count=len(step.assertions),
            configuration_label=config_label,
            snapshot_result=snapshot_result,
            assertion_failures=failures,
        )


def _flow_body(model: Any) -> Any:
    return model.flow_body()
