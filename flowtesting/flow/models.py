"""
Value types describing a UI flow: steps, assertions, configurations and the rendering environment
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Generic, Optional, Protocol, Tuple, TypeVar, runtime_checkable


@runtime_checkable
class FlowModel(Protocol):
    """
    Marker for the caller-owned application state driven through a flow.

    Any mutable object qualifies; the tester only passes it to actions,
    hooks, assertions and the view builder.
    """


@runtime_checkable
class FlowViewProvider(Protocol):
    """A model that knows how to build its own view description"""

    def flow_body(self) -> Any:
        ...


ModelT = TypeVar("ModelT", bound=FlowModel)


def _no_op(model: Any) -> None:
    return None


@dataclass
class EnvironmentValues:
    """
    Mutable bag of rendering-context values.

    A fresh instance is created for every step and handed to the active
    configuration's patch just before rendering.
    """
    color_scheme: str = "light"
    locale: str = "en-US"
    reduced_motion: str = "no-preference"
    timezone_id: Optional[str] = None
    extras: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RenderedView:
    """View content built from the model, together with its patched environment"""
    content: Any
    environment: EnvironmentValues


@dataclass(frozen=True)
class FlowAssertion(Generic[ModelT]):
    """
    A check run against the model after a step's snapshot.

    Bodies fail by raising AssertionError (plain ``assert`` works); those
    failures are recorded and the flow continues. Anything else propagates
    and stops the run, including test-runner outcomes that do not derive
    from AssertionError, such as ``pytest.fail()`` or ``pytest.skip()``.
    """
    body: Callable[[ModelT], None]
    label: str = ""

    def __call__(self, model: ModelT) -> None:
        self.body(model)


@dataclass(frozen=True)
class FlowStep(Generic[ModelT]):
    """One unit of work in a flow. An empty name means the tester auto-names it."""
    name: str = ""
    action: Callable[[ModelT], None] = _no_op
    async_action: Optional[Callable[[ModelT], Awaitable[None]]] = None
    assertions: Tuple[FlowAssertion, ...] = ()
    snapshot_enabled: bool = True

    def __post_init__(self):
        # Accept any iterable of assertions or bare callables
        object.__setattr__(self, "assertions", tuple(as_assertion(a) for a in self.assertions))


def as_assertion(value: Any) -> FlowAssertion:
    if isinstance(value, FlowAssertion):
        return value
    if callable(value):
        return FlowAssertion(body=value, label=getattr(value, "__name__", ""))
    raise TypeError(f"Assertions must be callables or FlowAssertion, got {type(value).__name__}")


def _no_patch(environment: EnvironmentValues) -> None:
    return None


@dataclass(frozen=True)
class FlowConfiguration:
    """
    Rendering context for a run. The label is appended to snapshot names
    in matrix runs; an empty label adds no suffix.
    """
    label: str = ""
    environment_patch: Callable[[EnvironmentValues], None] = _no_patch

    @classmethod
    def with_values(cls, label: str = "", **values: Any) -> "FlowConfiguration":
        """
        Configuration whose patch assigns the given environment values

            FlowConfiguration.with_values("dark", color_scheme="dark")

        Names that are not EnvironmentValues fields are stored in ``extras``.
        """
        known = set(EnvironmentValues.__dataclass_fields__) - {"extras"}

        def patch(environment: EnvironmentValues) -> None:
            for key, value in values.items():
                if key in known:
                    setattr(environment, key, value)
                else:
                    environment.extras[key] = value

        return cls(label=label, environment_patch=patch)

    def make_environment(self) -> EnvironmentValues:
        environment = EnvironmentValues()
        self.environment_patch(environment)
        return environment


LIGHT_AND_DARK = (
    FlowConfiguration.with_values("light", color_scheme="light"),
    FlowConfiguration.with_values("dark", color_scheme="dark"),
)
