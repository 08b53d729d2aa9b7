# motionverse/pipeline/session.py
"""
Motionverse — ANALYSIS SESSION

Progress tracker around one pipeline run. It records state changes and
completed stages for the caller; it never changes what the stages
compute.

    IDLE → RECORDING → PROCESSING → ANALYZING → COMPLETE
                 ↘          ↘            ↘
                                            ERROR
"""

from enum import Enum
from typing import List, Optional, Tuple

from motionverse.pipeline.errors import InvalidTransitionError
from motionverse.utils.logger import debug


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PROCESSING = "processing"
    ANALYZING = "analyzing"
    COMPLETE = "complete"
    ERROR = "error"


ALLOWED = {
    SessionState.IDLE: {SessionState.RECORDING, SessionState.PROCESSING},
    SessionState.RECORDING: {SessionState.PROCESSING, SessionState.ERROR, SessionState.IDLE},
    SessionState.PROCESSING: {SessionState.ANALYZING, SessionState.ERROR},
    SessionState.ANALYZING: {SessionState.COMPLETE, SessionState.ERROR},
    SessionState.COMPLETE: {SessionState.IDLE},
    SessionState.ERROR: {SessionState.IDLE},
}


class AnalysisSession:
    def __init__(self, action: str, total_stages: int = 0):
        self.action = action
        self.state = SessionState.IDLE
        self.total_stages = total_stages
        self.stages_completed: List[str] = []
        self.history: List[Tuple[SessionState, SessionState]] = []
        self.error_code: Optional[str] = None

    def transition(self, new: SessionState) -> None:
        if new not in ALLOWED[self.state]:
            raise InvalidTransitionError(
                f"Cannot move session from {self.state.value} to {new.value}",
                stage="session",
            )
        debug(f"[Session] {self.action}: {self.state.value} → {new.value}")
        self.history.append((self.state, new))
        self.state = new

    def stage_done(self, name: str) -> None:
        self.stages_completed.append(name)

    def fail(self, code: str) -> None:
        self.error_code = code
        self.transition(SessionState.ERROR)

    def reset(self) -> None:
        self.transition(SessionState.IDLE)
        self.stages_completed = []
        self.error_code = None

    @property
    def progress(self) -> float:
        if self.state == SessionState.COMPLETE:
            return 1.0
        if not self.total_stages:
            return 0.0
        return min(1.0, len(self.stages_completed) / self.total_stages)
