# cli.py
"""Command line entry point: serve the API, or run a simulation locally or remotely."""

import asyncio
import math
import random

from fire import Fire
from pi_client.client import SimulationClient, SimulationError

from .driver import FrameDriver
from .estimator import InvalidConfigurationError, new_state, start
from .settings import configure_logging, load_settings


def _report(estimate, samples):
    error = abs(estimate - math.pi)
    print(f"\nResults:")
    print(f"  Samples:      {samples:,}")
    print(f"  Estimated PI: {estimate:.10f}")
    print(f"  Actual PI:    {math.pi:.10f}")
    print(f"  Error:        {error:.10f} ({error / math.pi * 100:.6f}%)")


def serve(host=None, port=None):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    print(f"🚀 Serving Monte Carlo Pi Lab on http://{host or settings.host}:{port or settings.port}")
    uvicorn.run("pi_server.app:app", host=host or settings.host, port=int(port or settings.port))


def simulate(samples=None, batch=None, seed=None, fps=0):
    """Run a simulation in-process, printing progress every frame.

    fps=0 runs frames back to back; a positive fps paces them like an animation.
    """
    settings = load_settings()
    configure_logging(settings.log_level)
    samples = settings.default_target if samples is None else int(samples)
    batch = settings.batch_size if batch is None else int(batch)
    seed = settings.seed if seed is None else seed
    rng = random.Random(seed) if seed is not None else None

    def on_frame(state):
        print(f"\r  {state.samples_done:>7,}/{state.samples_target:,}  π ≈ {state.estimate:.6f}", end="", flush=True)

    try:
        driver = FrameDriver(batch_size=batch, fps=float(fps), rng=rng, on_frame=on_frame)
        state = start(new_state(samples))
    except InvalidConfigurationError as e:
        print(f"Invalid configuration: {e}")
        return
    if fps and float(fps) > 0:
        state = asyncio.run(driver.animate(state))
    else:
        state = driver.run(state)
    print()
    _report(state.estimate, state.samples_done)
    print(f"  Frames:       {driver.frames}")


def remote(url=None, samples=None):
    """Drive a running server through the HTTP client."""
    settings = load_settings()
    url = url or f"http://{settings.host}:{settings.port}"
    client = SimulationClient(url)
    try:
        state = client.run(samples_target=None if samples is None else int(samples))
    except SimulationError as e:
        print(f"Simulation failed: {e}")
        return
    _report(state["estimate"], state["samples_done"])


def main():
    Fire({"serve": serve, "simulate": simulate, "remote": remote})


if __name__ == "__main__":
    main()
