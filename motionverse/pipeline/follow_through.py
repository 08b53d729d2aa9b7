# motionverse/pipeline/follow_through.py
"""
Follow-through index over the trailing window after a keyframe.

- extension:    best joint extension reached, mapped from
                [angle_floor, angle_ceiling] degrees onto 0–100
- deceleration: share of consecutive trailing steps where the extremity
                slows down (or holds speed) instead of speeding up
"""

import numpy as np

from motionverse.models.metrics_model import MetricValue
from motionverse.utils.angles import angle


def trailing_window(defn, kf: int, n: int):
    return kf, min(n - 1, kf + defn.trailing_frames)


def _extension(defn, frames, lo, hi, mapper):
    best = None
    for pf in frames[lo:hi + 1]:
        if any(mapper.visibility(pf, name) < defn.min_landmark_confidence for name in defn.landmarks):
            continue
        pts = [mapper.point(pf, name) for name in defn.landmarks]
        if any(p is None for p in pts):
            continue
        deg = angle(*pts)
        if deg is not None and (best is None or deg > best):
            best = deg

    if best is None:
        return MetricValue.unavailable(defn.unit, "no measurable joint angle after keyframe")

    span = defn.angle_ceiling - defn.angle_floor
    value = (best - defn.angle_floor) / span * 100.0
    return MetricValue.ok(max(0.0, min(100.0, value)), defn.unit)


def _deceleration(defn, frames, lo, hi, mapper):
    name = defn.landmarks[0]
    speeds = []
    for i in range(lo + 1, hi + 1):
        a, b = frames[i - 1], frames[i]
        if mapper.visibility(a, name) < defn.min_landmark_confidence:
            continue
        if mapper.visibility(b, name) < defn.min_landmark_confidence:
            continue
        pa, pb = mapper.point(a, name), mapper.point(b, name)
        if pa is None or pb is None:
            continue
        speeds.append(float(np.linalg.norm(pb - pa)))

    if len(speeds) < 2:
        return MetricValue.unavailable(defn.unit, "trailing window too short")

    slowing = sum(1 for s0, s1 in zip(speeds, speeds[1:]) if s1 <= s0)
    return MetricValue.ok(100.0 * slowing / (len(speeds) - 1), defn.unit)


def follow_through(defn, frames, kfs, mapper, **_):
    lo, hi = trailing_window(defn, kfs[0], len(frames))
    if defn.method == "deceleration":
        return _deceleration(defn, frames, lo, hi, mapper)
    return _extension(defn, frames, lo, hi, mapper)
