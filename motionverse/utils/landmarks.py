from typing import Iterable, List, Optional, Sequence

import numpy as np

from motionverse.models.pose_model import PoseFrame


# Names that resolve to the athlete's primary side ("wrist" → "right_wrist")
SIDE_RELATIVE = {
    "shoulder", "elbow", "wrist",
    "pinky", "index", "thumb",
    "hip", "knee", "ankle",
    "heel", "foot_index",
    "eye", "ear",
}

# Midpoints of a left/right pair, confidence = min of the two
VIRTUAL = {
    "mid_hip": ("left_hip", "right_hip"),
    "mid_shoulder": ("left_shoulder", "right_shoulder"),
    "mid_ankle": ("left_ankle", "right_ankle"),
}


class LandmarkMapper:
    """
    Motionverse — Landmark Mapper

    Resolves side-relative and virtual landmark names against a
    PoseFrame and returns numpy points. Points are 2D (x, y) unless the
    action asks for depth, in which case z is appended (0.0 when the
    detector gave none).
    """

    def __init__(self, hand: str = "R", use_depth: bool = False):
        self.hand = hand.upper()
        self.use_depth = use_depth
        self.prefix = "right_" if self.hand == "R" else "left_"

    @classmethod
    def for_sequence(cls, frames: Sequence[PoseFrame], hand: str = "auto", use_depth: bool = False):
        if hand.upper() == "AUTO":
            hand = detect_primary_side(frames)
        return cls(hand=hand, use_depth=use_depth)

    # -----------------------------------------------------
    # Name resolution
    # -----------------------------------------------------
    def resolve(self, name: str) -> str:
        if name in SIDE_RELATIVE:
            return self.prefix + name
        return name

    def sided(self, name: str, side: str) -> str:
        """Explicit left / right variant of a side-relative name."""
        if name in SIDE_RELATIVE:
            return f"{side}_{name}"
        return name

    def required_names(self, names: Iterable[str]) -> List[str]:
        """Concrete landmark names behind a list of (possibly virtual) names."""
        out = []
        for name in names:
            pair = VIRTUAL.get(name)
            out.extend(pair if pair else (self.resolve(name),))
        return out

    # -----------------------------------------------------
    # Access
    # -----------------------------------------------------
    def _raw(self, pf: PoseFrame, name: str) -> Optional[np.ndarray]:
        lm = pf.landmarks.get(name)
        if lm is None:
            return None
        if self.use_depth:
            return np.array([lm.x, lm.y, lm.z if lm.z is not None else 0.0], float)
        return np.array([lm.x, lm.y], float)

    def point(self, pf: PoseFrame, name: str) -> Optional[np.ndarray]:
        pair = VIRTUAL.get(name)
        if pair:
            a = self._raw(pf, pair[0])
            b = self._raw(pf, pair[1])
            if a is None or b is None:
                return None
            return (a + b) / 2.0
        return self._raw(pf, self.resolve(name))

    def visibility(self, pf: PoseFrame, name: str) -> float:
        pair = VIRTUAL.get(name)
        if pair:
            return min(pf.visibility(pair[0]), pf.visibility(pair[1]))
        return pf.visibility(self.resolve(name))

    # -----------------------------------------------------
    # Whole-sequence series
    # -----------------------------------------------------
    def series(self, frames: Sequence[PoseFrame], name: str):
        """
        Returns (points, vis): an (n, d) array with NaN rows where the
        landmark is missing, and an (n,) visibility array.
        """
        dim = 3 if self.use_depth else 2
        pts = np.full((len(frames), dim), np.nan)
        vis = np.zeros(len(frames))
        for i, pf in enumerate(frames):
            p = self.point(pf, name)
            if p is not None:
                pts[i] = p
                vis[i] = self.visibility(pf, name)
        return pts, vis


def detect_primary_side(frames: Sequence[PoseFrame], min_vis: float = 0.5) -> str:
    """
    Pick the side whose wrist is held higher on average (smaller image y).
    Ties and missing data resolve to the right side.
    """
    left, right = [], []
    for pf in frames:
        lw = pf.landmarks.get("left_wrist")
        rw = pf.landmarks.get("right_wrist")
        if lw is not None and lw.vis >= min_vis:
            left.append(lw.y)
        if rw is not None and rw.vis >= min_vis:
            right.append(rw.y)

    if not left or not right:
        return "R"
    return "L" if np.mean(left) < np.mean(right) else "R"
