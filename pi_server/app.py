# app.py
from fastapi import FastAPI, HTTPException
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import FileResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
import os

from .estimator import InvalidConfigurationError, SimulationState, abs_error, phase
from .settings import APP_VERSION, Settings, load_settings
from .state import ServerState

_current_dir = os.path.dirname(os.path.abspath(__file__))


class NoCacheHTMLMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        response = await call_next(request)
        ct = response.headers.get('content-type', '')
        if 'text/html' in ct:
            response.headers['Cache-Control'] = 'no-store, no-cache, must-revalidate, max-age=0'
            response.headers['Pragma'] = 'no-cache'
            response.headers['Expires'] = '0'
        return response


class TargetBody(BaseModel):
    samples_target: Optional[int] = None


class AdvanceBody(BaseModel):
    batch_size: Optional[int] = Field(None, description="Samples to draw this frame; defaults to the server batch size")


def simulation_view(state: SimulationState) -> Dict[str, Any]:
    """JSON shape returned by every simulation endpoint."""
    return {
        "samples_target": state.samples_target,
        "samples_done": state.samples_done,
        "inside_count": state.inside_count,
        "estimate": state.estimate,
        "is_running": state.is_running,
        "phase": phase(state).value,
        "abs_error": abs_error(state),
    }


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API around a fresh ``ServerState``."""
    settings = settings or load_settings()
    server_state = ServerState(
        samples_target=settings.default_target,
        batch_size=settings.batch_size,
        seed=settings.seed,
    )

    app = FastAPI(title="Monte Carlo Pi Lab", version=APP_VERSION)
    app.state.server_state = server_state
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(NoCacheHTMLMiddleware)

    def _check_target(samples_target: Optional[int]):
        if samples_target is not None and samples_target > settings.max_target:
            raise HTTPException(
                status_code=422,
                detail=f"samples_target must be at most {settings.max_target}, got {samples_target}",
            )

    @app.get("/")
    async def read_index():
        return FileResponse(os.path.join(_current_dir, 'landing/index.html'))

    @app.get("/api/health")
    async def health():
        return {"ok": True, "version": APP_VERSION, "phase": server_state.get_phase().value}

    @app.get("/api/config")
    async def get_config():
        return {
            "batch_size": settings.batch_size,
            "default_target": settings.default_target,
            "max_target": settings.max_target,
            "fps": settings.fps,
        }

    @app.get("/api/simulation")
    async def get_simulation():
        return simulation_view(server_state.simulation)

    @app.post("/api/simulation/start")
    async def start_simulation(body: Optional[TargetBody] = None):
        body = body or TargetBody()
        _check_target(body.samples_target)
        try:
            state = server_state.start(body.samples_target)
        except InvalidConfigurationError as e:
            logging.warning("Refused to start simulation: %s", e)
            raise HTTPException(status_code=422, detail=str(e))
        return simulation_view(state)

    @app.post("/api/simulation/advance")
    async def advance_simulation(body: Optional[AdvanceBody] = None):
        body = body or AdvanceBody()
        if not server_state.simulation.is_running:
            raise HTTPException(status_code=409, detail="Simulation is not running. Start it first.")
        try:
            state = server_state.advance(body.batch_size)
        except InvalidConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return simulation_view(state)

    @app.post("/api/simulation/pause")
    async def pause_simulation():
        return simulation_view(server_state.pause())

    @app.post("/api/simulation/reset")
    async def reset_simulation(body: Optional[TargetBody] = None):
        body = body or TargetBody()
        _check_target(body.samples_target)
        try:
            state = server_state.reset(body.samples_target)
        except InvalidConfigurationError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return simulation_view(state)

    logging.debug("Created app with settings: %s", settings)
    return app


app = create_app()
