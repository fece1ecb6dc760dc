"""
Python client for the math solver API.

Mirrors what the browser front end does:
- checks /health before solving
- POSTs { "problem": ... } to /solve
- falls back to a hardcoded demo answer when the server is unreachable or fails
- keeps the bearer token of a logged-in user so solutions land in history
"""

from __future__ import annotations

from typing import Any, Optional
import logging

import httpx


logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "http://localhost:3000"

EXAMPLE_PROBLEMS = [
    "Find the derivative of x^2 + 3x + 2",
    "Integrate 2x + 3 dx",
    "Factor x^2 + 5x + 6",
    "Simplify (x + 1)^2",
    "Find zeros of x^2 - 4",
]


def demo_solution(problem: str) -> dict:
    """The canned answer shown when the server cannot solve anything."""
    return {
        "success": True,
        "originalProblem": problem,
        "analysis": {
            "operation": "solve",
            "expression": problem,
            "context": "Local fallback solution (server unavailable)",
        },
        "calculation": {
            "result": "x = 4",
            "operation": "solve",
            "method": "demo",
            "steps": [
                "Server connection failed - showing demo solution",
                "Subtract 2 from both sides: 3x + 2 - 2 = 14 - 2",
                "Simplify: 3x = 12",
                "Divide both sides by 3: 3x/3 = 12/3",
                "Final answer: x = 4",
            ],
        },
        "explanation": (
            "This is a demo solution since the server is currently unavailable. "
            "The actual server would provide AI-powered solutions."
        ),
        "demo": True,
    }


class ClientError(Exception):
    """Raised for rejected auth/history calls"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class MathSolverClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._http = httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout, transport=transport)
        self.token: Optional[str] = None
        self.user: Optional[dict] = None
        self.connection_status = "checking"

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "MathSolverClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def connected(self) -> bool:
        return self.connection_status == "connected"

    def _auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    # ============================================
    # SOLVING
    # ============================================

    def check_connection(self) -> str:
        """GET /health and record "connected" or "disconnected"."""
        try:
            resp = self._http.get("/health")
            self.connection_status = "connected" if resp.is_success else "disconnected"
        except httpx.HTTPError as e:
            logger.info(f"[CLIENT] Health check failed: {e}")
            self.connection_status = "disconnected"
        return self.connection_status

    def solve(self, problem: str) -> Optional[dict]:
        """
        Solve a problem through the server.

        Returns:
            None for a blank problem, the server payload on success,
            otherwise the demo solution.
        """
        if not problem or not problem.strip():
            return None

        if self.connection_status == "checking":
            self.check_connection()
        if not self.connected:
            logger.warning("[CLIENT] Server not connected - using demo solution")
            return demo_solution(problem)

        try:
            resp = self._http.post("/solve", json={"problem": problem}, headers=self._auth_headers())
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"[CLIENT] Error solving problem: {e}")
            return demo_solution(problem)

        if not data.get("success"):
            logger.error(f"[CLIENT] Server reported failure: {data.get('error', 'Unknown error from server')}")
            return demo_solution(problem)
        return data

    # ============================================
    # AUTH & HISTORY (demo accounts)
    # ============================================

    def _auth(self, path: str, payload: dict) -> dict:
        resp = self._http.post(path, json=payload)
        data = _json_or_empty(resp)
        if not resp.is_success:
            raise ClientError(data.get("error") or f"HTTP {resp.status_code}", resp.status_code)
        self.token = data["token"]
        self.user = data["user"]
        return self.user

    def login(self, username: str, password: str) -> dict:
        return self._auth("/auth/login", {"username": username, "password": password})

    def register(self, username: str, password: str, email: str = "") -> dict:
        return self._auth("/auth/register", {"username": username, "password": password, "email": email})

    def logout(self) -> None:
        if self.token:
            self._http.post("/auth/logout", headers=self._auth_headers())
        self.token = None
        self.user = None

    def history(self) -> list[dict]:
        resp = self._http.get("/history", headers=self._auth_headers())
        data = _json_or_empty(resp)
        if not resp.is_success:
            raise ClientError(data.get("error") or f"HTTP {resp.status_code}", resp.status_code)
        return data.get("calculations", [])

    def delete_calculation(self, calculation_id: int) -> bool:
        resp = self._http.delete(f"/history/{calculation_id}", headers=self._auth_headers())
        return resp.is_success


def _json_or_empty(resp: httpx.Response) -> dict:
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
