"""
Tests for the HTTP API: solve, health, catalog, auth/history, CORS, errors.
"""

from mathsolver.config import Settings
from mathsolver.cors import DEFAULT_ORIGINS, resolve_cors_headers
from mathsolver.solver import MathSolver

from conftest import FakeLLM


# ============================================
# SOLVE
# ============================================

class TestSolveEndpoint:
    """Tests for POST /solve"""

    def test_success(self, api):
        resp = api.post("/solve", json={"problem": "Factor x^2 + 5x + 6"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["originalProblem"] == "Factor x^2 + 5x + 6"
        assert data["analysis"]["operation"] == "factor"
        assert data["calculation"]["result"] == "(x + 2)(x + 3)"
        assert data["calculation"]["method"] == "llm-enhanced"
        assert data["timestamp"].endswith("Z")

    def test_blank_problem(self, api):
        resp = api.post("/solve", json={"problem": "   "})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Problem statement is required and must be a non-empty string"

    def test_missing_problem(self, api):
        resp = api.post("/solve", json={})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_non_string_problem(self, api):
        resp = api.post("/solve", json={"problem": 123})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Problem statement is required and must be a non-empty string"

    def test_non_string_problem_on_unconfigured_server(self, api):
        api.solver.llm = FakeLLM(configured=False)
        resp = api.post("/solve", json={"problem": 123})
        assert resp.status_code == 500
        assert "checkApiKey" in resp.json()["troubleshooting"]

    def test_not_configured(self, api):
        api.solver.llm = FakeLLM(configured=False)
        resp = api.post("/solve", json={"problem": "Solve x + 1 = 2"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert "checkApiKey" in body["troubleshooting"]
        assert "derivatives" in body["troubleshooting"]["supportedOperations"]

    def test_both_paths_fail(self, api):
        api.solver.llm = FakeLLM([RuntimeError("request timed out"), RuntimeError("down")])
        resp = api.post("/solve", json={"problem": "Solve x + 1 = 2"})
        assert resp.status_code == 500
        body = resp.json()
        assert body["error"] == "Failed to solve math problem"
        assert body["details"] == "request timed out"
        assert "checkProblem" in body["troubleshooting"]

    def test_fallback_path(self, api):
        api.solver.llm = FakeLLM([RuntimeError("bad"), "x = 1"])
        resp = api.post("/solve", json={"problem": "Solve x + 1 = 2"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["calculation"]["method"] == "llm-fallback"
        assert body["calculation"]["result"] == "x = 1"
        assert body["note"].startswith("Fallback method used")


# ============================================
# HEALTH / CATALOG
# ============================================

class TestInfoEndpoints:
    """Tests for /, /test, /health, /operations, /examples"""

    def test_health_ok(self, api):
        resp = api.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["services"]["llm"] == "configured"
        assert data["services"]["providers"] == ["fake:model"]
        assert "pythonVersion" in data["server"]

    def test_health_unavailable(self, api):
        api.solver.llm = FakeLLM(configured=False)
        resp = api.get("/health")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "unhealthy"
        assert data["error"] == "AI service unavailable"
        assert data["services"]["llm"] == "missing_api_key"

    def test_root(self, api):
        data = api.get("/").json()
        assert data["name"] == "Hybrid Math Solver API"
        assert "POST /solve" in data["endpoints"]

    def test_test_endpoint_echoes_origin(self, api):
        data = api.get("/test", headers={"Origin": "http://localhost:5173"}).json()
        assert data["success"] is True
        assert data["origin"] == "http://localhost:5173"
        assert data["method"] == "GET"

    def test_operations(self, api):
        data = api.get("/operations").json()
        assert "find_zeros" in data["availableOperations"]
        assert len(data["examples"]) == 5

    def test_examples(self, api):
        data = api.get("/examples").json()
        assert data["examples"][2]["expectedResult"] == "(x + 2)(x + 3)"

    def test_unknown_route(self, api):
        resp = api.get("/nope")
        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "Endpoint not found"
        assert body["requestedPath"] == "/nope"
        assert "/solve" in body["availableEndpoints"]


# ============================================
# AUTH / HISTORY
# ============================================

def _login(api, username="demo", password="demo"):
    resp = api.post("/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.json()['token']}"}


class TestAccounts:
    """Tests for demo auth and history endpoints"""

    def test_demo_login_sees_seed_history(self, api):
        headers = _login(api)
        data = api.get("/history", headers=headers).json()
        problems = [c["problem"] for c in data["calculations"]]
        assert problems == ["Factor x^2 + 5x + 6", "Solve 3x + 2 = 14"]
        assert data["calculations"][0]["userId"] == "demo"

    def test_solve_records_history_for_logged_in_user(self, api):
        headers = _login(api)
        api.post("/solve", json={"problem": "Factor x^2 + 5x + 6"}, headers=headers)
        latest = api.get("/history", headers=headers).json()["calculations"][0]
        assert latest["result"] == "(x + 2)(x + 3)"
        assert latest["operation"] == "factor"
        assert len(latest["steps"]) == 3

    def test_anonymous_solve_records_nothing(self, api):
        api.post("/solve", json={"problem": "Factor x^2 + 5x + 6"})
        assert len(api.store.list_for_user("demo")) == 2

    def test_history_requires_login(self, api):
        resp = api.get("/history")
        assert resp.status_code == 401
        assert resp.json()["success"] is False

    def test_register_and_duplicate(self, api):
        payload = {"username": "ada", "password": "pw", "email": "ada@example.com"}
        resp = api.post("/auth/register", json=payload)
        assert resp.status_code == 200
        assert resp.json()["user"] == {"username": "ada", "email": "ada@example.com"}
        assert api.post("/auth/register", json=payload).status_code == 409

    def test_blank_username_rejected(self, api):
        resp = api.post("/auth/register", json={"username": "   ", "password": "pw"})
        assert resp.status_code == 409
        assert resp.json()["error"] == "Username is required"

    def test_bad_password(self, api):
        api.post("/auth/register", json={"username": "ada", "password": "pw"})
        resp = api.post("/auth/login", json={"username": "ada", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid credentials"

    def test_delete_history_entry(self, api):
        headers = _login(api)
        assert api.delete("/history/1", headers=headers).status_code == 200
        assert api.delete("/history/1", headers=headers).status_code == 404

    def test_logout_invalidates_token(self, api):
        headers = _login(api)
        assert api.post("/auth/logout", headers=headers).status_code == 200
        assert api.get("/history", headers=headers).status_code == 401


# ============================================
# CORS
# ============================================

class TestCors:
    """Tests for the origin policy"""

    def test_preflight(self, api):
        resp = api.options("/solve", headers={"Origin": "http://localhost:3000"})
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert "POST" in resp.headers["access-control-allow-methods"]

    def test_headers_on_normal_response(self, api):
        resp = api.get("/operations", headers={"Origin": "http://localhost:5173"})
        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"

    def test_development_echoes_any_origin(self):
        cfg = Settings(_env_file=None, environment="development")
        headers = resolve_cors_headers("https://elsewhere.example", cfg)
        assert headers["Access-Control-Allow-Origin"] == "https://elsewhere.example"
        assert headers["Access-Control-Allow-Credentials"] == "true"

    def test_development_without_origin_uses_wildcard_without_credentials(self):
        cfg = Settings(_env_file=None, environment="development")
        headers = resolve_cors_headers(None, cfg)
        assert headers["Access-Control-Allow-Origin"] == "*"
        assert headers["Access-Control-Allow-Credentials"] == "false"

    def test_production_listed_origin(self):
        cfg = Settings(_env_file=None, environment="production")
        headers = resolve_cors_headers(DEFAULT_ORIGINS[0], cfg)
        assert headers["Access-Control-Allow-Origin"] == DEFAULT_ORIGINS[0]
        assert headers["Access-Control-Allow-Credentials"] == "true"

    def test_production_extra_origin_from_env(self):
        cfg = Settings(_env_file=None, environment="production", allowed_origins=" https://a.example , https://b.example")
        headers = resolve_cors_headers("https://b.example", cfg)
        assert headers["Access-Control-Allow-Credentials"] == "true"

    def test_production_unknown_origin(self):
        cfg = Settings(_env_file=None, environment="production")
        headers = resolve_cors_headers("https://evil.example", cfg)
        assert headers["Access-Control-Allow-Origin"] == "https://evil.example"
        assert headers["Access-Control-Allow-Credentials"] == "false"

    def test_production_no_origin(self):
        cfg = Settings(_env_file=None, environment="production")
        assert resolve_cors_headers(None, cfg)["Access-Control-Allow-Origin"] == "null"


# ============================================
# UNHANDLED ERRORS
# ============================================

class TestUnhandledErrors:
    """Tests for the catch-all 500 handler"""

    def test_500_carries_cors_headers(self):
        from fastapi.testclient import TestClient
        from mathsolver.main import app, get_accounts

        def broken_store():
            raise RuntimeError("store exploded")

        app.dependency_overrides[get_accounts] = broken_store
        try:
            client = TestClient(app, raise_server_exceptions=False)
            resp = client.post(
                "/auth/login",
                json={"username": "demo", "password": "demo"},
                headers={"Origin": "http://localhost:5173"},
            )
        finally:
            app.dependency_overrides.clear()

        assert resp.status_code == 500
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Internal server error"
        assert body["message"] == "store exploded"
        assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
