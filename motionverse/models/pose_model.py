import math

from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Sequence, Any


# MediaPipe BlazePose 33-point layout → named landmarks
MEDIAPIPE_NAMES = [
    "nose",
    "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer",
    "left_ear", "right_ear",
    "mouth_left", "mouth_right",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_pinky", "right_pinky",
    "left_index", "right_index",
    "left_thumb", "right_thumb",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
    "left_heel", "right_heel",
    "left_foot_index", "right_foot_index",
]


class Landmark(BaseModel):
    # Normalized image coordinates: origin top-left, y grows downward
    x: float
    y: float
    z: Optional[float] = None
    vis: float = 1.0


class PoseFrame(BaseModel):
    frame_index: int
    timestamp_ms: Optional[float] = None
    landmarks: Dict[str, Landmark] = Field(default_factory=dict)

    @classmethod
    def from_mediapipe(
        cls,
        frame_index: int,
        points: Sequence[Dict[str, Any]],
        timestamp_ms: Optional[float] = None,
    ) -> "PoseFrame":
        """
        Build a frame from the 33-point index layout emitted by MediaPipe,
        each point a dict with x / y / z / vis (or visibility).
        """
        landmarks = {}
        for name, p in zip(MEDIAPIPE_NAMES, points):
            vis = p.get("vis", p.get("visibility", 0.0))
            landmarks[name] = Landmark(
                x=float(p["x"]),
                y=float(p["y"]),
                z=float(p["z"]) if p.get("z") is not None else None,
                vis=float(vis),
            )
        return cls(frame_index=frame_index, timestamp_ms=timestamp_ms, landmarks=landmarks)

    def visibility(self, name: str) -> float:
        lm = self.landmarks.get(name)
        return 0.0 if lm is None else float(lm.vis)


class PoseModel(BaseModel):
    """
    A landmark sequence for one session. Frames are ordered by
    frame_index with no gaps; stages build new PoseModels instead of
    mutating an existing one.
    """
    fps: Optional[float] = None
    frames: List[PoseFrame] = Field(default_factory=list)
    smoothed: bool = False

    @property
    def total_frames(self) -> int:
        return len(self.frames)

    def landmark_names(self) -> List[str]:
        names = set()
        for pf in self.frames:
            names.update(pf.landmarks.keys())
        return sorted(names)

    def estimated_fps(self) -> Optional[float]:
        """
        Known rate if supplied, otherwise estimated from frame timestamps.
        None when neither is available.
        """
        if self.fps is not None and math.isfinite(self.fps) and self.fps > 0:
            return float(self.fps)

        stamps = [pf.timestamp_ms for pf in self.frames]
        if len(stamps) < 2 or any(t is None for t in stamps):
            return None

        span_ms = stamps[-1] - stamps[0]
        if not span_ms > 0:
            return None
        fps = (len(stamps) - 1) * 1000.0 / span_ms
        return fps if math.isfinite(fps) and fps > 0 else None
