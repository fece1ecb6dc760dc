"""
FastAPI Main Application - Relays math problems to the LLM.

This is where the magic happens:
1. User sends { "problem": "..." }
2. LLM solves it in a labeled text format
3. Backend extracts OPERATION / EXPRESSION / RESULT / STEPS
4. Returns JSON for the client to render
"""

import logging
import os
import platform
import sys
import time
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from apscheduler.schedulers.background import BackgroundScheduler

from mathsolver.accounts import AccountError, AccountStore, User
from mathsolver.catalog import (
    API_NAME,
    API_VERSION,
    AVAILABLE_PATHS,
    examples_payload,
    operations_payload,
    root_payload,
)
from mathsolver.config import settings
from mathsolver.cors import build_cors_middleware, resolve_cors_headers
from mathsolver.error_handler import (
    AINotConfiguredError,
    AIServiceError,
    SolverError,
    classify_solver_error,
)
from mathsolver.models import (
    AuthResponse,
    HistoryEntry,
    HistoryResponse,
    LoginRequest,
    RegisterRequest,
    SolveRequest,
    UserInfo,
)
from mathsolver.solver import PROBLEM_REQUIRED_MESSAGE, MathSolver, utc_timestamp


logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ============================================
# FASTAPI APP INITIALIZATION
# ============================================

app = FastAPI(
    title=API_NAME,
    description="AI-powered math problem solver using natural language",
    version=API_VERSION,
)

app.middleware("http")(build_cors_middleware())

STARTED_AT = time.monotonic()

solver = MathSolver()
accounts = AccountStore(max_entries_per_user=settings.history_max_entries_per_user)
scheduler: Optional[BackgroundScheduler] = None


def get_solver() -> MathSolver:
    return solver


def get_accounts() -> AccountStore:
    return accounts


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_user(
    token: Optional[str] = Depends(bearer_token),
    store: AccountStore = Depends(get_accounts),
) -> User:
    user = store.user_for_token(token)
    if user is None:
        raise HTTPException(status_code=401, detail="Login required")
    return user


# ============================================
# STARTUP / SHUTDOWN
# ============================================

def cleanup_old_history():
    """Drop unpinned history entries and sessions past the retention window"""
    accounts.prune_older_than(settings.history_retention_hours)
    accounts.prune_sessions_older_than(settings.history_retention_hours)


@app.on_event("startup")
async def startup_event():
    """Log configuration and schedule the history cleanup task"""
    global scheduler
    providers = solver.llm.describe()
    print(f"✓ {API_NAME} v{API_VERSION} started")
    print(f"✓ Environment: {settings.environment}")
    print(f"✓ LLM providers: {', '.join(providers) if providers else 'none configured'}")
    if not providers:
        print("✗ GROQ_API_KEY is not set - /solve will fail until it is configured")
    print(f"✓ CORS: {'allow all' if settings.cors_allow_all or settings.is_development else 'listed origins'}")

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        cleanup_old_history,
        "interval",
        minutes=settings.history_cleanup_interval_minutes,
    )
    scheduler.start()
    print(f"✓ History cleanup scheduled (entries kept {settings.history_retention_hours}h)")


@app.on_event("shutdown")
async def shutdown_event():
    """Stop background jobs on shutdown"""
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
    print(f"✓ {API_NAME} shutting down")


# ============================================
# ERROR HANDLERS
# ============================================

@app.exception_handler(SolverError)
async def solver_error_handler(request: Request, exc: SolverError):
    classification = classify_solver_error(exc)
    details = None
    if isinstance(exc, AINotConfiguredError):
        details = "GROQ_API_KEY environment variable may be missing or invalid"
    elif isinstance(exc, AIServiceError):
        details = str(exc)
    logger.warning(f"[API] {request.url.path} -> {classification.status_code}: {classification.system_message}")
    return JSONResponse(
        status_code=classification.status_code,
        content=classification.to_payload(details=details),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    error = PROBLEM_REQUIRED_MESSAGE if request.url.path == "/solve" else "Invalid request body"
    return JSONResponse(status_code=400, content={"success": False, "error": error, "details": details})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "availableEndpoints": AVAILABLE_PATHS,
                "requestedPath": request.url.path,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"[API] Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(exc),
            "timestamp": utc_timestamp(),
        },
        headers=resolve_cors_headers(request.headers.get("origin"), settings),
    )


# ============================================
# API ENDPOINTS
# ============================================

@app.get("/")
async def root():
    """API documentation"""
    return root_payload(settings.llm_model, settings.frontend_url)


@app.get("/test")
async def test_endpoint(request: Request):
    """Simple echo for connectivity debugging"""
    origin = request.headers.get("origin")
    logger.info(f"[API] Test endpoint hit from origin: {origin}")
    return {
        "success": True,
        "message": "Server is working!",
        "timestamp": utc_timestamp(),
        "origin": origin,
        "method": request.method,
        "cors": "enabled",
    }


@app.post("/solve")
def solve_problem(
    body: SolveRequest,
    request: Request,
    solver: MathSolver = Depends(get_solver),
    store: AccountStore = Depends(get_accounts),
    token: Optional[str] = Depends(bearer_token),
):
    """
    Main endpoint: solve a natural-language math problem.

    Example:
    - POST {"problem": "Factor x^2 + 5x + 6"}
    - Returns originalProblem, analysis, calculation, explanation
    """
    logger.info(f"[API] Solve endpoint hit from origin: {request.headers.get('origin')}")
    response = solver.solve(body.problem)

    user = store.user_for_token(token)
    if user is not None:
        store.add_calculation(
            user.username,
            response.original_problem,
            response.calculation.result,
            response.analysis.operation,
            response.calculation.steps,
        )

    return response.to_payload()


@app.get("/health")
async def health(solver: MathSolver = Depends(get_solver)):
    """Health check; 503 when no LLM provider is configured"""
    ai_available = solver.is_available()
    health_data = {
        "status": "healthy" if ai_available else "unhealthy",
        "timestamp": utc_timestamp(),
        "uptime": round(time.monotonic() - STARTED_AT, 3),
        "services": {
            "llm": "configured" if ai_available else "missing_api_key",
            "llmModel": settings.llm_model,
            "providers": solver.llm.describe(),
            "cors": "enabled",
            "method": "llm-only",
        },
        "configuration": {
            "port": settings.port,
            "environment": settings.environment,
            "corsAllowAll": settings.cors_allow_all,
            "allowedOrigins": settings.extra_origins or "default + frontend",
            "frontendUrl": settings.frontend_url or "not_set",
        },
        "server": {
            "pythonVersion": platform.python_version(),
            "platform": sys.platform,
        },
    }
    logger.info(f"[API] Health check: AI {'available' if ai_available else 'unavailable'}")

    if not ai_available:
        return JSONResponse(
            status_code=503,
            content={
                **health_data,
                "error": "AI service unavailable",
                "message": "No LLM provider is configured. The math solver requires AI to function.",
            },
        )
    return health_data


@app.get("/operations")
async def operations():
    return operations_payload()


@app.get("/examples")
async def examples():
    return examples_payload()


@app.post("/auth/register", response_model=AuthResponse)
def register(body: RegisterRequest, store: AccountStore = Depends(get_accounts)):
    try:
        token, user = store.register(body.username, body.password, body.email)
    except AccountError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return AuthResponse(token=token, user=UserInfo(username=user.username, email=user.email))


@app.post("/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, store: AccountStore = Depends(get_accounts)):
    try:
        token, user = store.login(body.username, body.password)
    except AccountError as e:
        raise HTTPException(status_code=401, detail=str(e))
    return AuthResponse(token=token, user=UserInfo(username=user.username, email=user.email))


@app.post("/auth/logout")
def logout(
    token: Optional[str] = Depends(bearer_token),
    store: AccountStore = Depends(get_accounts),
):
    if not token or not store.logout(token):
        raise HTTPException(status_code=401, detail="Login required")
    return {"success": True}


@app.get("/history", response_model=HistoryResponse)
def history(
    user: User = Depends(require_user),
    store: AccountStore = Depends(get_accounts),
):
    records = store.list_for_user(user.username)
    return HistoryResponse(calculations=[HistoryEntry(**r.to_dict()) for r in records])


@app.delete("/history/{calculation_id}")
def delete_history_entry(
    calculation_id: int,
    user: User = Depends(require_user),
    store: AccountStore = Depends(get_accounts),
):
    if not store.delete_calculation(user.username, calculation_id):
        raise HTTPException(status_code=404, detail="Calculation not found")
    return {"success": True, "deleted": calculation_id}


# ============================================
# STATIC FILES (Pre-built frontend)
# ============================================

# Mount pre-built frontend dist folder if it exists
frontend_dist_path = "frontend/dist"
if os.path.exists(frontend_dist_path):
    app.mount("/", StaticFiles(directory=frontend_dist_path, html=True), name="static")


# ============================================
# RUN SERVER (for development)
# ============================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mathsolver.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development
    )
