"""
Pydantic models for request/response validation.

Wire format is camelCase (``originalProblem``, ``processingTime``) so browser
clients can consume responses directly; Python code uses snake_case names.
"""

from typing import Any, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================
# SOLVE REQUEST / RESPONSE MODELS
# ============================================

class SolveRequest(BaseModel):
    """User's math problem"""
    # Checked by validate_problem after the provider check, so any JSON value is accepted here
    problem: Any = Field(default=None, description="Natural language math problem")


class Analysis(CamelModel):
    """What the model thinks the problem is"""
    operation: str
    expression: str
    context: str


class Calculation(CamelModel):
    """The model's answer"""
    method: str
    result: str
    operation: str
    steps: Union[str, List[str]]
    confidence: Optional[str] = None


class SolveResponse(CamelModel):
    """Successful /solve response"""
    success: Literal[True] = True
    original_problem: str
    analysis: Analysis
    calculation: Calculation
    explanation: str
    timestamp: str
    processing_time: Optional[int] = Field(default=None, description="Milliseconds spent solving")
    note: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ============================================
# AUTH / HISTORY MODELS (demo only)
# ============================================

class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    email: str = ""


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = ""


class UserInfo(BaseModel):
    username: str
    email: str


class AuthResponse(BaseModel):
    success: bool = True
    token: str
    user: UserInfo


class HistoryEntry(CamelModel):
    """One saved calculation"""
    id: int
    user_id: str
    problem: str
    result: str
    operation: str
    timestamp: str
    steps: List[str]


class HistoryResponse(BaseModel):
    success: bool = True
    calculations: List[HistoryEntry]
