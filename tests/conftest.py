"""Shared fixtures: a scripted fake LLM and an API client wired to it."""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from mathsolver.llm_client import GenerationResult
from mathsolver.error_handler import AIServiceError


FACTOR_REPLY = """OPERATION: factor
EXPRESSION: x^2 + 5x + 6
RESULT: (x + 2)(x + 3)
STEPS:
1. Identify the quadratic form: $ax^2 + bx + c$ where $a=1$, $b=5$, $c=6$
2. Find two numbers that multiply to 6 and add to 5: The numbers are 2 and 3
3. Write the factored form: $(x + 2)(x + 3)$
"""

EXPLANATION_REPLY = "This is a factoring problem. We looked for two numbers whose product is 6 and sum is 5."


class FakeLLM:
    """Stands in for LLMClient; replies are consumed in order.

    A reply that is an exception instance is raised instead of returned.
    """

    def __init__(self, replies=None, configured=True):
        self.replies = list(replies or [])
        self.configured = configured
        self.prompts = []

    def is_configured(self):
        return self.configured

    def describe(self):
        return ["fake:model"] if self.configured else []

    def generate(self, prompt, system=None):
        self.prompts.append(prompt)
        if not self.replies:
            raise AIServiceError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return GenerationResult(text=reply, provider="fake:model")


@pytest.fixture
def fake_llm():
    return FakeLLM([FACTOR_REPLY, EXPLANATION_REPLY])


@pytest.fixture
def api(fake_llm):
    """TestClient with the solver and account store swapped for test doubles"""
    from fastapi.testclient import TestClient
    from mathsolver.accounts import AccountStore
    from mathsolver.main import app, get_accounts, get_solver
    from mathsolver.solver import MathSolver

    solver = MathSolver(llm=fake_llm)
    store = AccountStore(max_entries_per_user=5)
    app.dependency_overrides[get_solver] = lambda: solver
    app.dependency_overrides[get_accounts] = lambda: store
    client = TestClient(app)
    client.solver = solver
    client.store = store
    yield client
    app.dependency_overrides.clear()
