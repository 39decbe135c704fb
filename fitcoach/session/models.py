"""Logging session state."""

from typing import Optional

from pydantic import BaseModel


class SessionState(BaseModel):
    """Per (user, active workout) logging state."""

    current_exercise: Optional[str] = None
    current_exercise_id: Optional[str] = None
    last_weight: Optional[float] = None
    last_weight_unit: Optional[str] = None
    set_count: int = 0

    def switch_exercise(self, exercise_id: str, name: str) -> None:
        """Make ``exercise_id`` current; set numbering restarts."""
        self.current_exercise = name
        self.current_exercise_id = exercise_id
        self.set_count = 0
