"""
Tests for the Python API client, using httpx.MockTransport instead of a server.
"""

import httpx
import pytest

from mathsolver.client import ClientError, MathSolverClient, demo_solution


SERVER_SOLUTION = {
    "success": True,
    "originalProblem": "Factor x^2 + 5x + 6",
    "analysis": {"operation": "factor", "expression": "x^2 + 5x + 6", "context": "..."},
    "calculation": {"result": "(x + 2)(x + 3)", "operation": "factor", "steps": "1. a: $b$"},
    "explanation": "Factoring.",
}


def make_client(handler):
    return MathSolverClient(base_url="http://testserver", transport=httpx.MockTransport(handler))


class TestSolve:
    """Connection check and demo fallback"""

    def test_connected_solve(self):
        seen = {}

        def handler(request):
            if request.url.path == "/health":
                return httpx.Response(200, json={"status": "healthy"})
            seen["body"] = request.content
            return httpx.Response(200, json=SERVER_SOLUTION)

        client = make_client(handler)
        assert client.check_connection() == "connected"
        assert client.solve("Factor x^2 + 5x + 6") == SERVER_SOLUTION
        assert b'"problem"' in seen["body"]

    def test_blank_problem_returns_none(self):
        client = make_client(lambda request: httpx.Response(200, json={}))
        assert client.solve("   ") is None

    def test_unhealthy_server_uses_demo(self):
        client = make_client(lambda request: httpx.Response(503, json={"status": "unhealthy"}))
        result = client.solve("Solve 3x + 2 = 14")
        assert client.connection_status == "disconnected"
        assert result["demo"] is True
        assert result["calculation"]["result"] == "x = 4"
        assert result["originalProblem"] == "Solve 3x + 2 = 14"

    def test_transport_error_uses_demo(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        assert client.check_connection() == "disconnected"
        assert client.solve("x")["demo"] is True

    def test_server_error_on_solve_uses_demo(self):
        def handler(request):
            if request.url.path == "/health":
                return httpx.Response(200, json={})
            return httpx.Response(500, json={"success": False, "error": "Failed to solve math problem"})

        client = make_client(handler)
        client.check_connection()
        assert client.solve("x")["demo"] is True

    def test_success_false_uses_demo(self):
        def handler(request):
            if request.url.path == "/health":
                return httpx.Response(200, json={})
            return httpx.Response(200, json={"success": False})

        client = make_client(handler)
        client.check_connection()
        assert client.solve("x")["demo"] is True


class TestDemoSolution:
    def test_first_step_explains_fallback(self):
        steps = demo_solution("anything")["calculation"]["steps"]
        assert steps[0] == "Server connection failed - showing demo solution"
        assert steps[-1] == "Final answer: x = 4"


class TestAuth:
    """Token handling for login and history"""

    def test_login_stores_token_and_sends_it(self):
        seen = {}

        def handler(request):
            if request.url.path == "/auth/login":
                return httpx.Response(200, json={"success": True, "token": "t0k", "user": {"username": "demo", "email": "demo@example.com"}})
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"success": True, "calculations": [{"id": 1}]})

        client = make_client(handler)
        user = client.login("demo", "demo")
        assert user["username"] == "demo"
        assert client.history() == [{"id": 1}]
        assert seen["auth"] == "Bearer t0k"

    def test_login_rejected(self):
        client = make_client(lambda request: httpx.Response(401, json={"success": False, "error": "Invalid credentials"}))
        with pytest.raises(ClientError) as exc:
            client.login("ada", "bad")
        assert exc.value.status_code == 401
        assert str(exc.value) == "Invalid credentials"
        assert client.token is None

    def test_logout_clears_token(self):
        client = make_client(lambda request: httpx.Response(200, json={"success": True, "token": "t", "user": {"username": "demo", "email": ""}}))
        client.login("demo", "demo")
        client.logout()
        assert client.token is None
        assert client.user is None
