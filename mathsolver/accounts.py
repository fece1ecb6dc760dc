"""
Demo accounts, sessions and calculation history.

DEMO ONLY:
- Everything lives in process memory and is lost on restart
- Passwords are compared as plain strings
- The "demo" user always logs in

Thread-safe: FastAPI runs sync endpoints in a threadpool and the
APScheduler cleanup job runs on its own thread.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import List, Optional, Union
import itertools
import logging
import uuid

from mathsolver.step_formatter import split_steps


logger = logging.getLogger(__name__)


DEMO_USERNAME = "demo"
DEMO_EMAIL = "demo@example.com"


class AccountError(Exception):
    """Raised for rejected registrations and logins"""


@dataclass
class User:
    username: str
    email: str
    password: Optional[str] = None


@dataclass
class Session:
    username: str
    created_at: datetime


@dataclass
class CalculationRecord:
    """Stores one solved problem for a user"""
    id: int
    user_id: str
    problem: str
    result: str
    operation: str
    timestamp: datetime
    steps: List[str] = field(default_factory=list)
    pinned: bool = False  # seed records survive pruning

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "problem": self.problem,
            "result": self.result,
            "operation": self.operation,
            "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
            "steps": list(self.steps),
        }


def _seed_records(now: datetime) -> List[CalculationRecord]:
    return [
        CalculationRecord(
            id=1,
            user_id=DEMO_USERNAME,
            problem="Solve 3x + 2 = 14",
            result="x = 4",
            operation="solve",
            timestamp=now - timedelta(days=1),
            steps=[
                "Subtract 2 from both sides: 3x + 2 - 2 = 14 - 2",
                "Simplify: 3x = 12",
                "Divide both sides by 3: 3x/3 = 12/3",
                "Simplify: x = 4",
            ],
            pinned=True,
        ),
        CalculationRecord(
            id=2,
            user_id=DEMO_USERNAME,
            problem="Factor x^2 + 5x + 6",
            result="(x + 2)(x + 3)",
            operation="factor",
            timestamp=now - timedelta(hours=12),
            steps=[
                "Look for two numbers that multiply to 6 and add to 5: The numbers are 2 and 3",
                "Check: 2 × 3 = 6, 2 + 3 = 5 ✓",
                "Write as factored form: (x + 2)(x + 3)",
                "Verify by expanding: (x + 2)(x + 3) = x² + 3x + 2x + 6 = x² + 5x + 6 ✓",
            ],
            pinned=True,
        ),
    ]


class AccountStore:
    """In-memory users, bearer sessions and per-user history"""

    def __init__(self, max_entries_per_user: int = 100, seed: bool = True):
        self._lock = Lock()
        self._users: dict[str, User] = {}
        self._sessions: dict[str, Session] = {}
        self._history: List[CalculationRecord] = []
        self._ids = itertools.count(1)
        self.max_entries_per_user = max_entries_per_user

        if seed:
            for record in _seed_records(datetime.now(timezone.utc)):
                self._history.append(record)
            self._ids = itertools.count(len(self._history) + 1)

    # ============================================
    # USERS & SESSIONS
    # ============================================

    def register(self, username: str, password: str, email: str = "") -> tuple[str, User]:
        username = username.strip()
        if not username:
            raise AccountError("Username is required")
        with self._lock:
            if username == DEMO_USERNAME or username in self._users:
                raise AccountError("Username already exists")
            user = User(username=username, email=email, password=password)
            self._users[username] = user
            token = self._open_session(username)
        logger.info(f"[ACCOUNTS] Registered user {username!r}")
        return token, user

    def login(self, username: str, password: str) -> tuple[str, User]:
        username = username.strip()
        if not username:
            raise AccountError("Invalid credentials")
        with self._lock:
            if username == DEMO_USERNAME:
                user = User(username=DEMO_USERNAME, email=DEMO_EMAIL)
            else:
                user = self._users.get(username)
                if user is None or user.password != password:
                    raise AccountError("Invalid credentials")
            token = self._open_session(username)
        logger.info(f"[ACCOUNTS] Login for {username!r}")
        return token, user

    def logout(self, token: str) -> bool:
        with self._lock:
            return self._sessions.pop(token, None) is not None

    def user_for_token(self, token: Optional[str]) -> Optional[User]:
        if not token:
            return None
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                return None
            username = session.username
            if username == DEMO_USERNAME:
                return User(username=DEMO_USERNAME, email=DEMO_EMAIL)
            return self._users.get(username)

    def _open_session(self, username: str) -> str:
        token = uuid.uuid4().hex
        self._sessions[token] = Session(username=username, created_at=datetime.now(timezone.utc))
        return token

    def prune_sessions_older_than(self, hours: float, now: Optional[datetime] = None) -> int:
        """Drop sessions opened more than ``hours`` ago. Returns the count removed."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=hours)
        with self._lock:
            expired = [t for t, s in self._sessions.items() if s.created_at < cutoff]
            for token in expired:
                del self._sessions[token]
        if expired:
            logger.info(f"[ACCOUNTS] Expired {len(expired)} sessions older than {hours}h")
        return len(expired)

    # ============================================
    # HISTORY
    # ============================================

    def add_calculation(
        self,
        user_id: str,
        problem: str,
        result: str,
        operation: str,
        steps: Union[str, List[str], None],
    ) -> CalculationRecord:
        record = CalculationRecord(
            id=next(self._ids),
            user_id=user_id,
            problem=problem,
            result=result,
            operation=operation,
            timestamp=datetime.now(timezone.utc),
            steps=split_steps(steps),
        )
        with self._lock:
            self._history.insert(0, record)
            self._enforce_cap(user_id)
        logger.debug(f"[HISTORY] Saved calculation {record.id} for {user_id!r}")
        return record

    def list_for_user(self, user_id: str) -> List[CalculationRecord]:
        with self._lock:
            records = [r for r in self._history if r.user_id == user_id]
        return sorted(records, key=lambda r: r.timestamp, reverse=True)

    def delete_calculation(self, user_id: str, calculation_id: int) -> bool:
        with self._lock:
            for i, record in enumerate(self._history):
                if record.id == calculation_id and record.user_id == user_id:
                    del self._history[i]
                    return True
        return False

    def prune_older_than(self, hours: float, now: Optional[datetime] = None) -> int:
        """Delete unpinned records older than ``hours``. Returns the count removed."""
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=hours)
        with self._lock:
            before = len(self._history)
            self._history = [r for r in self._history if r.pinned or r.timestamp >= cutoff]
            removed = before - len(self._history)
        if removed:
            logger.info(f"[HISTORY] Pruned {removed} calculations older than {hours}h")
        return removed

    def _enforce_cap(self, user_id: str) -> None:
        # Caller holds the lock. History is newest first.
        seen = 0
        kept: List[CalculationRecord] = []
        for record in self._history:
            if record.user_id == user_id and not record.pinned:
                seen += 1
                if seen > self.max_entries_per_user:
                    continue
            kept.append(record)
        self._history = kept
