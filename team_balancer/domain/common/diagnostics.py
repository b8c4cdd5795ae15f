"""Injectable diagnostics sink for warnings raised during optimization.

Generators and algorithms report partial fills and fallbacks here instead of
printing. Repeated warnings with the same key are forwarded to the log only
once per suppression window, but every occurrence is counted.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from loguru import logger


@dataclass(frozen=True)
class Diagnostic:
    """A single structured warning."""

    code: str
    message: str
    role: Optional[str] = None
    team_index: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "code": self.code,
            "message": self.message,
            "role": self.role,
            "team_index": self.team_index,
        }


class DiagnosticsSink:
    """Collects diagnostics for one optimization run.

    Safe to share between worker threads.
    """

    def __init__(
        self,
        window_seconds: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._last_logged: Dict[str, float] = {}
        self._counts: Dict[str, int] = {}
        self._entries: List[Diagnostic] = []

    def warn(
        self,
        code: str,
        message: str,
        role: Optional[str] = None,
        team_index: Optional[int] = None,
    ) -> bool:
        """Record a warning.

        Args:
            code: Stable identifier of the warning kind, used for de-duplication
            message: Human-readable text
            role: Role the warning refers to, if any
            team_index: Team the warning refers to, if any

        Returns:
            True if the warning was forwarded to the log, False if suppressed
        """
        key = f"{code}:{role}:{team_index}"
        now = self._clock()
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + 1
            last = self._last_logged.get(key)
            if last is not None and now - last < self.window_seconds:
                return False
            self._last_logged[key] = now
            self._entries.append(Diagnostic(code, message, role, team_index))

        logger.warning(f"⚠️ {message}")
        return True

    @property
    def entries(self) -> List[Diagnostic]:
        with self._lock:
            return list(self._entries)

    def count(self, code: str) -> int:
        """Total occurrences (logged or suppressed) of a warning code."""
        with self._lock:
            return sum(
                n for key, n in self._counts.items() if key.split(":", 1)[0] == code
            )

    def clear(self) -> None:
        with self._lock:
            self._last_logged.clear()
            self._counts.clear()
            self._entries.clear()


class NullDiagnosticsSink(DiagnosticsSink):
    """Sink that drops everything. Used when no run-level sink is supplied."""

    def warn(self, code, message, role=None, team_index=None) -> bool:
        logger.debug(f"{code}: {message}")
        return False
