from pydantic import BaseModel, Field
from typing import Optional, List, Dict


KEYFRAME_ORDER = ("start", "peak_displacement", "release", "end")


class EventFrame(BaseModel):
    frame: int
    conf: float = 0.0


class KeyframesModel(BaseModel):
    """
    Detected keyframes. Each event is either a valid index into the
    sequence or None (detection failed / discarded).
    """
    start: Optional[EventFrame] = None
    peak_displacement: Optional[EventFrame] = None
    release: Optional[EventFrame] = None
    end: Optional[EventFrame] = None

    diagnostics: List[str] = Field(default_factory=list)

    def frame(self, name: str) -> Optional[int]:
        evt = getattr(self, name, None)
        return None if evt is None else evt.frame

    def indices(self) -> Dict[str, Optional[int]]:
        return {name: self.frame(name) for name in KEYFRAME_ORDER}

    def is_complete(self) -> bool:
        return all(v is not None for v in self.indices().values())
