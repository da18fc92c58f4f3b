"""
Board client settings.

Read from the environment so the same client works against a local
``runserver`` and a deployed API:

    TASKBOARD_API_URL        base URL of the API, e.g. http://localhost:8000/api
    TASKBOARD_TOKEN          bearer access token (optional)
    TASKBOARD_UNDO_DELAY_MS  undo window for task deletion, default 5000
    TASKBOARD_TIMEOUT        HTTP timeout in seconds, default 10
"""
from dataclasses import dataclass
from typing import Optional
import os

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_UNDO_DELAY_MS = 5000
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class BoardSettings:
    api_url: str = DEFAULT_API_URL
    token: Optional[str] = None
    undo_delay_ms: int = DEFAULT_UNDO_DELAY_MS
    timeout: float = DEFAULT_TIMEOUT

    @property
    def undo_delay_seconds(self) -> float:
        return self.undo_delay_ms / 1000.0

    @classmethod
    def from_env(cls, environ=None) -> "BoardSettings":
        environ = os.environ if environ is None else environ
        return cls(
            api_url=environ.get("TASKBOARD_API_URL", DEFAULT_API_URL).rstrip("/"),
            token=environ.get("TASKBOARD_TOKEN") or None,
            undo_delay_ms=int(environ.get("TASKBOARD_UNDO_DELAY_MS", DEFAULT_UNDO_DELAY_MS)),
            timeout=float(environ.get("TASKBOARD_TIMEOUT", DEFAULT_TIMEOUT)),
        )
