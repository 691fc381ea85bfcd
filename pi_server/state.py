# state.py
"""Centralized simulation state for the server."""

import logging
import random
from typing import Optional

from .estimator import SimulationState, advance, new_state, pause, phase, reset, start


class ServerState:
    """Holds the single simulation a server instance drives.

    Handlers run on one event loop, so transitions never interleave.
    """

    def __init__(self, samples_target: int, batch_size: int, seed: Optional[int] = None):
        self.batch_size = batch_size
        self.rng = random.Random(seed)
        self.simulation: SimulationState = new_state(samples_target)

    def start(self, samples_target: Optional[int] = None) -> SimulationState:
        self.simulation = start(self.simulation, samples_target)
        logging.info("Simulation started with target %d", self.simulation.samples_target)
        return self.simulation

    def advance(self, batch_size: Optional[int] = None) -> SimulationState:
        was_running = self.simulation.is_running
        size = self.batch_size if batch_size is None else batch_size
        self.simulation = advance(self.simulation, size, rng=self.rng)
        logging.debug(
            "Advanced to %d/%d samples (estimate=%s)",
            self.simulation.samples_done, self.simulation.samples_target, self.simulation.estimate,
        )
        if was_running and not self.simulation.is_running:
            logging.info(
                "Simulation reached target %d: estimate=%s",
                self.simulation.samples_target, self.simulation.estimate,
            )
        return self.simulation

    def pause(self) -> SimulationState:
        was_running = self.simulation.is_running
        self.simulation = pause(self.simulation)
        if was_running:
            logging.info("Simulation paused at %d/%d samples", self.simulation.samples_done, self.simulation.samples_target)
        return self.simulation

    def reset(self, samples_target: Optional[int] = None) -> SimulationState:
        self.simulation = reset(self.simulation, samples_target)
        logging.info("Simulation reset (target %d)", self.simulation.samples_target)
        return self.simulation

    def get_phase(self):
        return phase(self.simulation)
