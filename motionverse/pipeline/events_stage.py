# motionverse/pipeline/events_stage.py
"""
Motionverse — EVENTS STAGE (keyframe detection)
--------------------------------------------------------------

Design rules:
- Canonical order: start → peak_displacement → release → end
- Velocities are finite differences scaled by the athlete's torso
  length, so per-action thresholds do not depend on camera distance
- A step that finds no qualifying frame leaves its keyframe absent
- Ordering is validated, never repaired: a keyframe that lands before
  an accepted predecessor is dropped and a diagnostic recorded
- Only confidently observed frames are considered
"""

from typing import List, Optional, Tuple

import numpy as np

from motionverse.config.action_config import ActionConfig, KeyframeConfig
from motionverse.models.context import Context
from motionverse.models.events_model import KEYFRAME_ORDER, EventFrame, KeyframesModel
from motionverse.models.pose_model import PoseModel
from motionverse.utils.landmarks import LandmarkMapper
from motionverse.utils.logger import stage, warn


# -----------------------------------------------------
# Body scale
# -----------------------------------------------------
def body_scale(frames, mapper: LandmarkMapper, min_vis: float) -> float:
    """Median torso length (mid-shoulder → mid-hip). 1.0 if never observed."""
    sh, sh_vis = mapper.series(frames, "mid_shoulder")
    hp, hp_vis = mapper.series(frames, "mid_hip")
    ok = (sh_vis >= min_vis) & (hp_vis >= min_vis)
    if not np.any(ok):
        return 1.0
    lengths = np.linalg.norm(sh[ok] - hp[ok], axis=1)
    lengths = lengths[lengths > 1e-6]
    if len(lengths) == 0:
        return 1.0
    return float(np.median(lengths))


def _step_ok(vis: np.ndarray, i: int, min_vis: float) -> bool:
    return vis[i] >= min_vis and vis[i - 1] >= min_vis


# -----------------------------------------------------
# Start
# -----------------------------------------------------
def detect_start(frames, mapper, cfg: KeyframeConfig, scale: float) -> Optional[EventFrame]:
    pts, vis = mapper.series(frames, cfg.onset_landmark)

    for i in range(1, len(frames)):
        if not _step_ok(vis, i, cfg.min_visibility):
            continue
        speed = np.linalg.norm(pts[i] - pts[i - 1]) / scale
        if speed > cfg.onset_velocity:
            # The motion departs from the previous frame
            return EventFrame(frame=i - 1, conf=float(vis[i - 1]))

    # Never exceeded: first frame with acceptable confidence
    ok = np.flatnonzero(vis >= cfg.min_visibility)
    if len(ok) == 0:
        return None
    return EventFrame(frame=int(ok[0]), conf=float(vis[ok[0]]))


# -----------------------------------------------------
# Peak vertical displacement
# -----------------------------------------------------
def detect_peak(frames, mapper, cfg: KeyframeConfig, from_frame: int) -> Optional[EventFrame]:
    pts, vis = mapper.series(frames, cfg.tracking_landmark)

    cands = [i for i in range(from_frame, len(frames)) if vis[i] >= cfg.min_visibility]
    if not cands:
        return None

    ys = pts[cands, 1]
    # argmin / argmax return the earliest index on ties
    k = int(np.argmin(ys)) if cfg.peak_mode == "min" else int(np.argmax(ys))
    idx = cands[k]
    return EventFrame(frame=idx, conf=float(vis[idx]))


# -----------------------------------------------------
# Release / contact
# -----------------------------------------------------
def _directional(step: np.ndarray, direction: str, outward_axis: Optional[np.ndarray]) -> float:
    if direction == "up":
        return -step[1]
    if direction == "down":
        return step[1]
    if direction == "left":
        return -step[0]
    if direction == "right":
        return step[0]
    # outward: away from the mid-shoulder line
    if outward_axis is None:
        return float("nan")
    return float(np.dot(step[:2], outward_axis))


def detect_release(frames, mapper, cfg: KeyframeConfig, peak: int, scale: float) -> Optional[EventFrame]:
    pts, vis = mapper.series(frames, cfg.extremity_landmark)
    ms, ms_vis = mapper.series(frames, "mid_shoulder")

    last = min(len(frames) - 1, peak + cfg.release_window)
    run: List[Tuple[int, float]] = []

    for i in range(peak + 1, last + 1):
        v = float("nan")
        if _step_ok(vis, i, cfg.min_visibility):
            axis = None
            if cfg.release_direction == "outward" and ms_vis[i - 1] >= cfg.min_visibility:
                radial = pts[i - 1, :2] - ms[i - 1, :2]
                norm = np.linalg.norm(radial)
                if norm > 1e-9:
                    axis = radial / norm
            step = (pts[i] - pts[i - 1]) / scale
            v = _directional(step, cfg.release_direction, axis)

        if np.isfinite(v) and v > cfg.release_velocity:
            run.append((i, v))
        elif run:
            break

    if not run:
        return None

    idx = max(run, key=lambda t: t[1])[0]
    return EventFrame(frame=idx, conf=float(vis[idx]))


# -----------------------------------------------------
# End
# -----------------------------------------------------
def body_speed(frames, mapper, cfg: KeyframeConfig, scale: float) -> np.ndarray:
    """
    Mean speed of the confident body landmarks per frame (NaN where none
    is confident). Entry 0 is always NaN.
    """
    n = len(frames)
    total = np.zeros(n)
    count = np.zeros(n)
    for name in cfg.body_landmarks:
        pts, vis = mapper.series(frames, name)
        for i in range(1, n):
            if _step_ok(vis, i, cfg.min_visibility):
                total[i] += np.linalg.norm(pts[i] - pts[i - 1]) / scale
                count[i] += 1

    speed = np.full(n, np.nan)
    ok = count > 0
    speed[ok] = total[ok] / count[ok]
    return speed


def detect_end(frames, mapper, cfg: KeyframeConfig, anchor: int, scale: float) -> EventFrame:
    n = len(frames)
    speed = body_speed(frames, mapper, cfg, scale)

    for i in range(anchor + 1, n):
        window = speed[i + 1: i + 1 + cfg.stop_window]
        if len(window) < cfg.stop_window:
            break
        if np.all(np.isfinite(window)) and float(np.mean(window)) < cfg.stop_velocity:
            return EventFrame(frame=i, conf=_body_conf(frames[i], mapper, cfg))

    return EventFrame(frame=n - 1, conf=_body_conf(frames[n - 1], mapper, cfg))


def _body_conf(pf, mapper, cfg: KeyframeConfig) -> float:
    vals = [mapper.visibility(pf, name) for name in cfg.body_landmarks]
    return float(np.mean(vals)) if vals else 0.0


# -----------------------------------------------------
# Ordering validation
# -----------------------------------------------------
def validate_order(kf: KeyframesModel) -> KeyframesModel:
    last = None
    for name in KEYFRAME_ORDER:
        evt = getattr(kf, name)
        if evt is None:
            continue
        if last is not None and evt.frame < last[1]:
            kf.diagnostics.append(
                f"{name} at frame {evt.frame} precedes {last[0]} at frame {last[1]}; discarded"
            )
            setattr(kf, name, None)
            continue
        last = (name, evt.frame)
    return kf


# -----------------------------------------------------
# Detector
# -----------------------------------------------------
def detect_keyframes(pose: PoseModel, cfg: KeyframeConfig, mapper: LandmarkMapper) -> KeyframesModel:
    frames = pose.frames
    n = len(frames)
    kf = KeyframesModel()

    if n < cfg.min_frames:
        kf.diagnostics.append(f"sequence has {n} frames, fewer than the {cfg.min_frames} required")
        return kf

    scale = body_scale(frames, mapper, cfg.min_visibility)

    kf.start = detect_start(frames, mapper, cfg, scale)
    if kf.start is None:
        kf.diagnostics.append(f"start: {cfg.onset_landmark} never observed with sufficient confidence")

    kf.peak_displacement = detect_peak(frames, mapper, cfg, kf.start.frame if kf.start else 0)
    if kf.peak_displacement is None:
        kf.diagnostics.append(f"peak_displacement: {cfg.tracking_landmark} never observed with sufficient confidence")

    if kf.peak_displacement is not None:
        kf.release = detect_release(frames, mapper, cfg, kf.peak_displacement.frame, scale)
        if kf.release is None:
            kf.diagnostics.append(
                f"release: no {cfg.release_direction} motion of {cfg.extremity_landmark} above "
                f"{cfg.release_velocity} within {cfg.release_window} frames of the peak"
            )
    else:
        kf.diagnostics.append("release: skipped, peak_displacement absent")

    anchor = kf.release or kf.peak_displacement or kf.start
    if anchor is not None:
        kf.end = detect_end(frames, mapper, cfg, anchor.frame, scale)
    else:
        kf.diagnostics.append("end: skipped, no earlier keyframe to anchor on")

    return validate_order(kf)


# -----------------------------------------------------
# Stage entry
# -----------------------------------------------------
def run(ctx: Context, config: ActionConfig, mapper: LandmarkMapper) -> Context:
    ctx.keyframes = detect_keyframes(ctx.smoothed, config.keyframes, mapper)

    for msg in ctx.keyframes.diagnostics:
        warn(f"[EventsStage] {msg}")
    stage("EventsStage", f"keyframes={ctx.keyframes.indices()}")
    return ctx
