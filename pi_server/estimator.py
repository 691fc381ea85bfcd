# estimator.py
"""Monte Carlo estimation of pi, one batch at a time.

Points are drawn uniformly from [-1, 1] x [-1, 1] and counted when they land in
the closed unit disk. The ratio of the disk to the square is pi/4, so the
running estimate is 4 * inside / done.

Every operation takes a ``SimulationState`` and returns a new one; nothing here
keeps a reference to the state it was given. Drivers (a frame loop, an HTTP
handler, a test) decide when to call ``advance``.
"""

from __future__ import annotations

import dataclasses
import enum
import math
import random
from typing import Callable, NamedTuple, Optional, Tuple

DEFAULT_BATCH_SIZE = 250


class InvalidConfigurationError(ValueError):
    """Raised when a target, batch size or state breaks the counting rules."""


class Phase(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    REACHED_TARGET = "reached_target"


class Sample(NamedTuple):
    x: float
    y: float
    inside: bool


@dataclasses.dataclass(frozen=True)
class SimulationState:
    samples_target: int
    samples_done: int = 0
    inside_count: int = 0
    estimate: Optional[float] = None
    is_running: bool = False

    def __post_init__(self):
        if self.samples_target < 0:
            raise InvalidConfigurationError(f"samples_target must be non-negative, got {self.samples_target}")
        if not 0 <= self.inside_count <= self.samples_done <= self.samples_target:
            raise InvalidConfigurationError(
                "expected 0 <= inside_count <= samples_done <= samples_target, got "
                f"{self.inside_count}, {self.samples_done}, {self.samples_target}"
            )
        if self.samples_done == 0 and self.estimate is not None:
            raise InvalidConfigurationError("estimate must be undefined before any sample is drawn")


def random_point_square(rng: Optional[random.Random] = None) -> Tuple[float, float]:
    """Return a random point uniformly sampled from [-1, 1] x [-1, 1]."""

    if rng is None:
        rng = random
    return (rng.uniform(-1, 1), rng.uniform(-1, 1))


def is_inside_unit_circle(x: float, y: float) -> bool:
    """Check whether (x, y) lies inside the unit circle, boundary included."""

    return x * x + y * y <= 1.0


def draw_sample(rng: Optional[random.Random] = None) -> Sample:
    x, y = random_point_square(rng)
    return Sample(x, y, is_inside_unit_circle(x, y))


def new_state(samples_target: int) -> SimulationState:
    """Return an idle state with nothing sampled yet."""

    return SimulationState(samples_target=int(samples_target))


def _compute_estimate(inside_count: int, samples_done: int) -> Optional[float]:
    if samples_done <= 0:
        return None
    return 4.0 * inside_count / samples_done


def advance(
    state: SimulationState,
    batch_size: int = DEFAULT_BATCH_SIZE,
    rng: Optional[random.Random] = None,
    on_sample: Optional[Callable[[Sample], None]] = None,
) -> SimulationState:
    """Draw one batch and fold it into the running totals.

    The batch is clamped to the samples still missing, so repeated calls end
    exactly on ``samples_target``; the run stops itself there. A state that is
    not running comes back unchanged.

    Args:
        state: current simulation state.
        batch_size: maximum number of samples to draw in this call.
        rng: optional ``random.Random`` for reproducible runs.
        on_sample: optional observer called with every ``Sample`` in draw order.
    """
    if batch_size < 1:
        raise InvalidConfigurationError(f"batch_size must be at least 1, got {batch_size}")
    if not state.is_running:
        return state

    remaining = state.samples_target - state.samples_done
    if remaining <= 0:
        return dataclasses.replace(state, is_running=False)

    count = min(batch_size, remaining)
    inside = 0
    for _ in range(count):
        sample = draw_sample(rng)
        if sample.inside:
            inside += 1
        if on_sample is not None:
            on_sample(sample)

    samples_done = state.samples_done + count
    inside_count = state.inside_count + inside
    return dataclasses.replace(
        state,
        samples_done=samples_done,
        inside_count=inside_count,
        estimate=_compute_estimate(inside_count, samples_done),
        is_running=samples_done < state.samples_target,
    )


def start(state: SimulationState, samples_target: Optional[int] = None) -> SimulationState:
    """Begin a fresh run; the target must be at least one sample."""

    target = state.samples_target if samples_target is None else int(samples_target)
    if target < 1:
        raise InvalidConfigurationError(f"samples_target must be at least 1 to start, got {target}")
    return SimulationState(samples_target=target, is_running=True)


def pause(state: SimulationState) -> SimulationState:
    if not state.is_running:
        return state
    return dataclasses.replace(state, is_running=False)


def reset(state: SimulationState, samples_target: Optional[int] = None) -> SimulationState:
    """Return to the created state, keeping the target unless one is given."""

    target = state.samples_target if samples_target is None else samples_target
    return new_state(target)


def phase(state: SimulationState) -> Phase:
    if state.is_running:
        return Phase.RUNNING
    if state.samples_done > 0 and state.samples_done == state.samples_target:
        return Phase.REACHED_TARGET
    return Phase.IDLE


def abs_error(state: SimulationState) -> Optional[float]:
    if state.estimate is None:
        return None
    return abs(math.pi - state.estimate)


def estimate_pi(samples: int = 10000, batch_size: int = DEFAULT_BATCH_SIZE, rng: Optional[random.Random] = None) -> float:
    """Run a whole simulation in one call and return the final estimate."""

    if samples <= 0:
        raise ValueError("samples must be positive")

    state = start(new_state(samples))
    while state.is_running:
        state = advance(state, batch_size, rng=rng)
    return state.estimate
