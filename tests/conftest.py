"""Shared synthetic sequences and configs.

The jump-shot sequence (60 frames, 30 fps, right-handed):
  - hips follow a parabola with the highest point (min image y) at frame 30
  - the whole body drifts sideways at a constant rate, so it never settles
  - the shooting arm (right shoulder, elbow, wrist) gets an extra upward
    lift whose per-frame velocity is a symmetric bump centred on frame 34
  - the arm moves as a rigid body, so its angles are the same in every
    frame (raw or smoothed) and can be checked by hand
"""

import numpy as np
import pytest

from motionverse.config.action_config import ActionConfig
from motionverse.config.registry import get_action_config
from motionverse.models.pose_model import Landmark, PoseFrame, PoseModel

N_FRAMES = 60
FPS = 30.0
PEAK_FRAME = 30
RELEASE_FRAME = 34

HIP_TOP = 0.45
HIP_AMPLITUDE = 0.13
DRIFT = 0.005
TORSO = 0.20

# Upward wrist/arm velocity per frame transition, symmetric around frame 34
LIFT_BUMP = {31: 0.003, 32: 0.008, 33: 0.016, 34: 0.026, 35: 0.016, 36: 0.008, 37: 0.003}

# Fixed arm geometry relative to the right shoulder / right elbow
ELBOW_OFFSET = np.array([0.05, -0.06])
WRIST_OFFSET = np.array([0.04, -0.07])


def hip_y(i: int) -> float:
    return HIP_TOP + HIP_AMPLITUDE * ((i - PEAK_FRAME) / PEAK_FRAME) ** 2


def lift(i: int) -> float:
    return sum(v for j, v in LIFT_BUMP.items() if j <= i)


def jump_points(i: int) -> dict:
    hy = hip_y(i)
    d = DRIFT * i
    sh = hy - TORSO

    pts = {
        "nose": (0.35 + d, sh - 0.12),
        "left_shoulder": (0.20 + d, sh),
        "right_shoulder": (0.50 + d, sh - lift(i)),
        "left_elbow": (0.17 + d, sh + 0.10),
        "left_wrist": (0.17 + d, sh + 0.20),
        "left_hip": (0.30 + d, hy),
        "right_hip": (0.40 + d, hy),
        "left_knee": (0.30 + d, hy + 0.19),
        "right_knee": (0.40 + d, hy + 0.19),
        "left_ankle": (0.30 + d, hy + 0.38),
        "right_ankle": (0.40 + d, hy + 0.38),
    }
    rs = np.array(pts["right_shoulder"])
    re = rs + ELBOW_OFFSET
    rw = re + WRIST_OFFSET
    pts["right_elbow"] = tuple(re)
    pts["right_wrist"] = tuple(rw)
    return pts


def make_frame(index: int, points: dict, vis: float = 0.95, timestamp_ms=None) -> PoseFrame:
    return PoseFrame(
        frame_index=index,
        timestamp_ms=timestamp_ms,
        landmarks={
            name: Landmark(x=float(x), y=float(y), vis=vis)
            for name, (x, y) in points.items()
        },
    )


def make_jump_sequence(n: int = N_FRAMES, vis: float = 0.95, fps=FPS) -> PoseModel:
    return PoseModel(fps=fps, frames=[make_frame(i, jump_points(i), vis) for i in range(n)])


def make_static_sequence(n: int = 30, vis: float = 0.95, fps=FPS) -> PoseModel:
    return PoseModel(fps=fps, frames=[make_frame(i, jump_points(0), vis) for i in range(n)])


def make_config(metrics, rules=(), categories=None, **overrides) -> ActionConfig:
    """Small ActionConfig for unit tests. Categories default to those used by the metrics."""
    if categories is None:
        names = []
        for m in metrics:
            if m["category"] not in names:
                names.append(m["category"])
        categories = [{"name": c, "weight": 1.0} for c in names]

    raw = {
        "action_id": "test_action",
        "sport": "test",
        "categories": categories,
        "metrics": list(metrics),
        "rules": list(rules),
    }
    raw.update(overrides)
    return ActionConfig.model_validate(raw)


@pytest.fixture
def jump_sequence() -> PoseModel:
    return make_jump_sequence()


@pytest.fixture
def low_confidence_sequence() -> PoseModel:
    return make_jump_sequence(vis=0.1)


@pytest.fixture
def jump_shot_config() -> ActionConfig:
    return get_action_config("basketball_jump_shot")
