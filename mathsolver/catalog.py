"""Static payloads: supported operations, example problems, API overview."""

API_NAME = "Hybrid Math Solver API"
API_VERSION = "2.1.0"


AVAILABLE_OPERATIONS = [
    "derivative",
    "integral",
    "simplify",
    "factor",
    "solve",
    "find_zeros",
    "expand",
    "evaluate",
]

EXAMPLE_PROMPTS = [
    "Find the derivative of x^2 + 3x + 2",
    "Integrate 2x + 3",
    "Factor x^2 + 5x + 6",
    "Simplify (x + 1)^2",
    "Solve x^2 - 4 = 0",
]

EXAMPLES = [
    {
        "problem": "Find the derivative of x^2 + 3x + 2",
        "expectedOperation": "derivative",
        "expectedResult": "2x + 3",
        "difficulty": "basic",
    },
    {
        "problem": "Integrate 2x + 3 dx",
        "expectedOperation": "integral",
        "expectedResult": "x^2 + 3x + C",
        "difficulty": "basic",
    },
    {
        "problem": "Factor x^2 + 5x + 6",
        "expectedOperation": "factor",
        "expectedResult": "(x + 2)(x + 3)",
        "difficulty": "intermediate",
    },
    {
        "problem": "Simplify (x^2 + 2x + 1)",
        "expectedOperation": "simplify",
        "expectedResult": "(x + 1)^2",
        "difficulty": "basic",
    },
    {
        "problem": "Find the zeros of x^2 - 4",
        "expectedOperation": "find_zeros",
        "expectedResult": "x = 2, x = -2",
        "difficulty": "basic",
    },
]

ENDPOINTS = {
    "POST /solve": "Solve a mathematical problem",
    "GET /health": "Check server health and configuration",
    "GET /operations": "List supported mathematical operations",
    "GET /examples": "Get example problems and expected results",
    "GET /test": "Simple test endpoint for debugging",
    "POST /auth/register": "Create a demo account",
    "POST /auth/login": "Log in (try username 'demo')",
    "POST /auth/logout": "End the current session",
    "GET /history": "List your saved calculations",
    "DELETE /history/{calculation_id}": "Delete a saved calculation",
}

AVAILABLE_PATHS = ["/solve", "/health", "/operations", "/examples", "/test", "/auth", "/history"]


def operations_payload() -> dict:
    return {
        "availableOperations": AVAILABLE_OPERATIONS,
        "method": "llm-enhanced",
        "description": "Mathematical operations supported by the LLM-powered solver",
        "examples": EXAMPLE_PROMPTS,
    }


def examples_payload() -> dict:
    return {
        "examples": EXAMPLES,
        "usage": "POST to /solve with { problem: 'your math problem here' }",
    }


def root_payload(model: str, frontend_url: str | None = None) -> dict:
    return {
        "name": API_NAME,
        "version": API_VERSION,
        "description": "AI-powered mathematical problem solver using hosted LLMs",
        "endpoints": ENDPOINTS,
        "usage": {
            "solve": {
                "method": "POST",
                "url": "/solve",
                "body": {"problem": "Find the derivative of x^2 + 3x"},
                "response": "Structured solution with steps and explanation",
            }
        },
        "cors": "Enabled for development origins and configured frontends",
        "ai_model": model,
        "frontend": frontend_url,
    }
