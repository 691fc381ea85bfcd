import requests
import json
from typing import Any, Callable, Dict, Optional


class SimulationError(Exception):
    """Base exception for simulation client errors."""


class SimulationServerError(SimulationError):
    """Raised when the server returns a non-2xx response."""


class SimulationNetworkError(SimulationError):
    """Raised when there is a network/transport error reaching the server."""


class SimulationProtocolError(SimulationError):
    """Raised when the server responds successfully but the payload is invalid."""


class InvalidTargetError(SimulationServerError):
    """Raised when the server rejects a target or batch size (HTTP 422)."""


class NotRunningError(SimulationServerError):
    """Raised when advancing a simulation that is not running (HTTP 409)."""


_STATE_KEYS = ("samples_target", "samples_done", "inside_count", "estimate", "is_running")


class SimulationClient:
    """A client for the Monte Carlo Pi Lab server."""

    def __init__(self, server_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0):
        """Initializes the client with the server URL and an optional requests session."""
        self.server_url = server_url.rstrip('/')
        self.timeout = timeout
        self._http = session or requests.Session()

    def _request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.server_url}{path}"
        try:
            if method == "GET":
                response = self._http.get(url, timeout=self.timeout)
            else:
                response = self._http.post(url, json=body or {}, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SimulationNetworkError(f"Network error calling {method} {path}: {e}") from e

        if not response.ok:
            status = response.status_code
            try:
                detail = response.json().get("detail")
            except Exception:
                detail = response.text or response.reason
            if isinstance(detail, list):
                # FastAPI request validation errors
                detail = "; ".join(str(item.get("msg", item)) if isinstance(item, dict) else str(item) for item in detail)
            if status == 422:
                raise InvalidTargetError(f"Rejected by server: {detail} (HTTP 422)")
            if status == 409:
                raise NotRunningError(f"{detail} (HTTP 409)")
            raise SimulationServerError(f"Server error calling {method} {path}: {detail or 'unknown error'} (HTTP {status})")

        try:
            return response.json()
        except json.JSONDecodeError as e:
            raise SimulationProtocolError(f"Invalid JSON response from {path}: {e}") from e

    def _state_request(self, method: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        payload = self._request(method, path, body)
        missing = [key for key in _STATE_KEYS if key not in payload]
        if missing:
            raise SimulationProtocolError(f"Missing {', '.join(missing)} in response from {path}.")
        return payload

    def health(self) -> Dict[str, Any]:
        return self._request("GET", "/api/health")

    def config(self) -> Dict[str, Any]:
        return self._request("GET", "/api/config")

    def state(self) -> Dict[str, Any]:
        return self._state_request("GET", "/api/simulation")

    def start(self, samples_target: Optional[int] = None) -> Dict[str, Any]:
        return self._state_request("POST", "/api/simulation/start", {"samples_target": samples_target})

    def advance(self, batch_size: Optional[int] = None) -> Dict[str, Any]:
        return self._state_request("POST", "/api/simulation/advance", {"batch_size": batch_size})

    def pause(self) -> Dict[str, Any]:
        return self._state_request("POST", "/api/simulation/pause")

    def reset(self, samples_target: Optional[int] = None) -> Dict[str, Any]:
        return self._state_request("POST", "/api/simulation/reset", {"samples_target": samples_target})

    def run(
        self,
        samples_target: Optional[int] = None,
        on_frame: Optional[Callable[[Dict[str, Any]], None]] = None,
        max_frames: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Start a run and advance it until it stops.

        Args:
            samples_target: optional target override for this run.
            on_frame: called with the state after every advance.
            max_frames: stop early after this many frames and pause the run.

        Returns:
            The final simulation state.
        """
        state = self.start(samples_target)
        frames = 0
        while state["is_running"]:
            if max_frames is not None and frames >= max_frames:
                return self.pause()
            state = self.advance()
            frames += 1
            if on_frame is not None:
                on_frame(state)
        return state
