# driver.py
"""Frame loops that call ``advance`` until a run stops."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Callable, Optional

from .estimator import DEFAULT_BATCH_SIZE, InvalidConfigurationError, Sample, SimulationState, advance, pause


class FrameDriver:
    """Drive a simulation one batch per frame.

    ``run`` loops as fast as it can, ``animate`` paces frames at ``fps`` on the
    running event loop. Either way the state is owned by the loop and
    ``on_frame`` sees every intermediate state.
    """

    def __init__(
        self,
        batch_size: int = DEFAULT_BATCH_SIZE,
        fps: float = 60.0,
        rng: Optional[random.Random] = None,
        on_frame: Optional[Callable[[SimulationState], None]] = None,
        on_sample: Optional[Callable[[Sample], None]] = None,
    ):
        if batch_size < 1:
            raise InvalidConfigurationError(f"batch_size must be at least 1, got {batch_size}")
        self.batch_size = batch_size
        self.fps = fps
        self.rng = rng
        self.on_frame = on_frame
        self.on_sample = on_sample
        self.frames = 0
        self._cancelled = False

    def cancel(self):
        """Ask the loop to stop after the frame in flight."""
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def step(self, state: SimulationState) -> SimulationState:
        state = advance(state, self.batch_size, rng=self.rng, on_sample=self.on_sample)
        self.frames += 1
        if self.on_frame is not None:
            self.on_frame(state)
        return state

    def _finish(self, state: SimulationState) -> SimulationState:
        if self._cancelled and state.is_running:
            logging.info("Run cancelled at %d/%d samples", state.samples_done, state.samples_target)
            state = pause(state)
        self._cancelled = False
        return state

    def run(self, state: SimulationState) -> SimulationState:
        """Step synchronously until the run completes or is cancelled."""
        while state.is_running and not self._cancelled:
            state = self.step(state)
        return self._finish(state)

    async def animate(self, state: SimulationState) -> SimulationState:
        """Step once per frame interval until the run completes or is cancelled."""
        interval = 1.0 / self.fps if self.fps and self.fps > 0 else 0.0
        while state.is_running and not self._cancelled:
            state = self.step(state)
            if state.is_running:
                await asyncio.sleep(interval)
        return self._finish(state)
