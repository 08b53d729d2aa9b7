# motionverse/pipeline/smoothing_stage.py
"""
Motionverse — SMOOTHING STAGE

Centered moving average per landmark coordinate, clipped at the
sequence boundaries. Only confidently observed frames feed the average;
a landmark with too few of them in its window is carried through as-is.
"""

from typing import Dict, List

import numpy as np

from motionverse.config.action_config import ActionConfig, SmoothingConfig
from motionverse.models.context import Context
from motionverse.models.pose_model import Landmark, PoseFrame, PoseModel
from motionverse.utils.angles import kernel_weights
from motionverse.utils.logger import stage


def _landmark_arrays(frames: List[PoseFrame], name: str):
    n = len(frames)
    xyz = np.full((n, 3), np.nan)
    vis = np.zeros(n)
    present = np.zeros(n, dtype=bool)
    for i, pf in enumerate(frames):
        lm = pf.landmarks.get(name)
        if lm is None:
            continue
        present[i] = True
        xyz[i, 0] = lm.x
        xyz[i, 1] = lm.y
        if lm.z is not None:
            xyz[i, 2] = lm.z
        vis[i] = lm.vis
    return xyz, vis, present


def _smooth_landmark(frames, name, cfg: SmoothingConfig, half: int, weights) -> Dict[int, Landmark]:
    n = len(frames)
    xyz, vis, present = _landmark_arrays(frames, name)
    usable = present & (vis >= cfg.min_visibility)
    out = {}

    for i in range(n):
        if not present[i]:
            continue
        raw = frames[i].landmarks[name]

        lo = max(0, i - half)
        hi = min(n - 1, i + half)
        span = hi - lo + 1
        w = weights[lo - i + half: hi - i + half + 1]
        mask = usable[lo:hi + 1]

        new_vis = raw.vis
        if cfg.smooth_visibility:
            pm = present[lo:hi + 1]
            new_vis = float(np.sum(w[pm] * vis[lo:hi + 1][pm]) / np.sum(w[pm]))

        count = int(np.sum(mask))
        if count == 0 or count < cfg.min_coverage * span:
            out[i] = Landmark(x=raw.x, y=raw.y, z=raw.z, vis=new_vis)
            continue

        wm = w[mask]
        block = xyz[lo:hi + 1][mask]
        x = float(np.sum(wm * block[:, 0]) / np.sum(wm))
        y = float(np.sum(wm * block[:, 1]) / np.sum(wm))

        z = None
        zs = block[:, 2]
        zok = np.isfinite(zs)
        if raw.z is not None and np.any(zok):
            z = float(np.sum(wm[zok] * zs[zok]) / np.sum(wm[zok]))

        out[i] = Landmark(x=x, y=y, z=z, vis=new_vis)

    return out


def smooth_sequence(pose: PoseModel, cfg: SmoothingConfig) -> PoseModel:
    """
    Returns a new PoseModel with identical length and frame indices.
    The input is never modified.
    """
    frames = pose.frames
    if not frames:
        return PoseModel(fps=pose.fps, frames=[], smoothed=True)

    window = cfg.window_size
    if window % 2 == 0:
        window += 1
    half = window // 2
    weights = kernel_weights(cfg.kernel, half)

    per_landmark = {
        name: _smooth_landmark(frames, name, cfg, half, weights)
        for name in pose.landmark_names()
    }

    out_frames = []
    for i, pf in enumerate(frames):
        landmarks = {
            name: smoothed[i]
            for name, smoothed in per_landmark.items()
            if i in smoothed
        }
        out_frames.append(
            PoseFrame(frame_index=pf.frame_index, timestamp_ms=pf.timestamp_ms, landmarks=landmarks)
        )

    return PoseModel(fps=pose.fps, frames=out_frames, smoothed=True)


def run(ctx: Context, config: ActionConfig) -> Context:
    ctx.smoothed = smooth_sequence(ctx.pose, config.smoothing)
    stage(
        "SmoothingStage",
        f"window={config.smoothing.window_size} kernel={config.smoothing.kernel} "
        f"frames={ctx.smoothed.total_frames}",
    )
    return ctx
