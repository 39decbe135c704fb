"""Per-session logging state."""

from .models import SessionState
from .store import SessionStore, session_key

__all__ = ["SessionState", "SessionStore", "session_key"]
