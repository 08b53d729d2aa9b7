# motionverse/pipeline/posture.py
"""
Whole-body posture metrics.

Each one is measured per frame, at a single keyframe or over the window
between two keyframes. Frames where any landmark falls below
min_landmark_confidence are skipped. The survivors are averaged with
their visibility as weight.

- relative_height:  height of a landmark between two references, in
                    percent of the span (e.g. ankles → shoulders),
                    clipped to [0, 130]
- trunk_rotation:   angle between two body lines (shoulders vs hips)
- trunk_lean:       mid-hip → mid-shoulder tilt from vertical
- hand_symmetry:    100 − wrist height gap / shoulder width × 200
- width_ratio:      horizontal span of one pair over another, percent
- trajectory_angle: climb angle of a landmark between two keyframes
- speed:            mean landmark speed in shoulder widths per second
"""

from math import atan2, degrees, isfinite

import numpy as np

from motionverse.models.metrics_model import MetricValue
from motionverse.pipeline.stability import MIN_SHOULDER_WIDTH

MIN_BODY_SPAN = 0.05
MIN_TORSO_RISE = 0.01
MIN_PAIR_WIDTH = 0.03
MIN_CLIMB = 0.001
MIN_SPEED_STEPS = 3
HEIGHT_CEILING = 130.0

SHOULDERS = ("left_shoulder", "right_shoulder")


def weighted_mean(values, weights):
    if not values:
        return None
    v = np.array(values, dtype=float)
    w = np.array(weights, dtype=float)
    s = np.sum(w)
    if s <= 0:
        return float(np.mean(v))
    return float(np.sum(w * v) / s)


def _confident_points(pf, mapper, names, min_conf):
    vis = [mapper.visibility(pf, name) for name in names]
    if min(vis) < min_conf:
        return None, 0.0
    pts = [mapper.point(pf, name) for name in names]
    if any(p is None for p in pts):
        return None, 0.0
    return pts, min(vis)


def _over_window(defn, frames, kfs, mapper, names, measure):
    """
    Visibility-weighted mean of measure(points) over [min(kfs), max(kfs)].
    measure returns None for a degenerate frame.
    """
    lo, hi = min(kfs), max(kfs)
    values, weights = [], []
    confident = 0
    for pf in frames[lo:hi + 1]:
        pts, vis = _confident_points(pf, mapper, names, defn.min_landmark_confidence)
        if pts is None:
            continue
        confident += 1
        v = measure(pts)
        if v is None:
            continue
        values.append(v)
        weights.append(vis)

    if not values:
        if confident:
            return MetricValue.unavailable(defn.unit, "degenerate geometry in every confident frame")
        return MetricValue.unavailable(defn.unit, "no confident frame in window")
    return MetricValue.ok(weighted_mean(values, weights), defn.unit)


def _line_angle(a, b) -> float:
    return degrees(atan2(a[1] - b[1], a[0] - b[0]))


# -----------------------------------------------------
# Heights and lines
# -----------------------------------------------------
def relative_height(defn, frames, kfs, mapper, **_):
    """
    landmarks: [target, top reference, bottom reference]. 100 means the
    target is level with the top reference; overhead reaches exceed it.
    """
    def measure(pts):
        target, top, bottom = pts
        span = bottom[1] - top[1]
        if span < MIN_BODY_SPAN:
            return None
        value = (bottom[1] - target[1]) / span * 100.0
        return max(0.0, min(HEIGHT_CEILING, value))

    return _over_window(defn, frames, kfs, mapper, defn.landmarks, measure)


def trunk_rotation(defn, frames, kfs, mapper, **_):
    """
    landmarks: [A1, B1, A2, B2]. Unsigned angle between line B1→A1 and
    line B2→A2, wrapped into [0, 180].
    """
    def measure(pts):
        a1, b1, a2, b2 = pts
        diff = abs(_line_angle(a1, b1) - _line_angle(a2, b2))
        return 360.0 - diff if diff > 180.0 else diff

    return _over_window(defn, frames, kfs, mapper, defn.landmarks, measure)


def trunk_lean(defn, frames, kfs, mapper, **_):
    """
    landmarks: [lower, upper], usually [mid_hip, mid_shoulder]. Degrees
    from vertical, or a 0–100 alignment score when lean_limit is set.
    """
    def measure(pts):
        lower, upper = pts
        rise = lower[1] - upper[1]
        if abs(rise) < MIN_TORSO_RISE:
            return None
        lean = abs(degrees(atan2(upper[0] - lower[0], rise)))
        if defn.lean_limit is None:
            return lean
        return max(0.0, 100.0 * (1.0 - lean / defn.lean_limit))

    return _over_window(defn, frames, kfs, mapper, defn.landmarks, measure)


def hand_symmetry(defn, frames, kfs, mapper, **_):
    """landmarks: [left, right]. Height gap scaled by shoulder width."""
    def measure(pts):
        a, b, ls, rs = pts
        width = max(abs(ls[0] - rs[0]), MIN_SHOULDER_WIDTH)
        return max(0.0, 100.0 - abs(a[1] - b[1]) / width * 200.0)

    names = tuple(defn.landmarks) + SHOULDERS
    return _over_window(defn, frames, kfs, mapper, names, measure)


def width_ratio(defn, frames, kfs, mapper, **_):
    """
    landmarks: [A1, B1, A2, B2]. 100 × |A1.x − B1.x| / |A2.x − B2.x|,
    e.g. stance width as a percentage of shoulder width.
    """
    def measure(pts):
        a1, b1, a2, b2 = pts
        base = abs(a2[0] - b2[0])
        if base < MIN_PAIR_WIDTH:
            return None
        return abs(a1[0] - b1[0]) / base * 100.0

    return _over_window(defn, frames, kfs, mapper, defn.landmarks, measure)


# -----------------------------------------------------
# Movement between keyframes
# -----------------------------------------------------
def trajectory_angle(defn, frames, kfs, mapper, **_):
    """
    Climb angle of a landmark from the first keyframe to the second:
    atan2(|dy|, |dx|) in degrees. 90 is straight up.
    """
    name = defn.landmarks[0]
    ends = []
    for kf in kfs:
        pf = frames[kf]
        if mapper.visibility(pf, name) < defn.min_landmark_confidence:
            return MetricValue.unavailable(defn.unit, f"{name} not confident at frame {kf}")
        p = mapper.point(pf, name)
        if p is None:
            return MetricValue.unavailable(defn.unit, "landmark missing at keyframe")
        ends.append(p)

    dx = abs(ends[1][0] - ends[0][0])
    dy = abs(ends[1][1] - ends[0][1])
    if dy < MIN_CLIMB:
        return MetricValue.unavailable(defn.unit, "degenerate geometry (no vertical travel)")
    return MetricValue.ok(degrees(atan2(dy, dx)), defn.unit)


def speed_window(defn, kfs):
    if len(kfs) == 1:
        return max(0, kfs[0] - defn.leading_frames), kfs[0]
    return min(kfs), max(kfs)


def _step(pa, pb, axis: str) -> float:
    d = pb - pa
    if axis == "x":
        return abs(float(d[0]))
    if axis == "y":
        return abs(float(d[1]))
    return float(np.linalg.norm(d[:2]))


def speed(defn, frames, kfs, mapper, fps=None, **_):
    """
    Mean per-frame travel of a landmark over the window, in shoulder
    widths per second. With a single keyframe the window is the
    leading_frames before it. With speed_reference set the result is
    a 0–100 score, 100 at or above the reference speed.
    """
    if fps is None or not isfinite(fps) or fps <= 0:
        return MetricValue.unavailable(defn.unit, "sample rate unknown")

    lo, hi = speed_window(defn, kfs)
    name = defn.landmarks[0]
    min_conf = defn.min_landmark_confidence

    steps = []
    for i in range(lo + 1, hi + 1):
        a, b = frames[i - 1], frames[i]
        if mapper.visibility(a, name) < min_conf or mapper.visibility(b, name) < min_conf:
            continue
        pa, pb = mapper.point(a, name), mapper.point(b, name)
        if pa is None or pb is None:
            continue
        steps.append(_step(pa, pb, defn.axis))

    if len(steps) < MIN_SPEED_STEPS:
        return MetricValue.unavailable(
            defn.unit, f"only {len(steps)} confident steps in window, need {MIN_SPEED_STEPS}"
        )

    widths = []
    for pf in frames[lo:hi + 1]:
        pts, _vis = _confident_points(pf, mapper, SHOULDERS, min_conf)
        if pts is not None:
            widths.append(abs(pts[0][0] - pts[1][0]))
    width = max(float(np.median(widths)) if widths else 0.0, MIN_SHOULDER_WIDTH)

    per_sec = float(np.mean(steps)) * fps / width
    if defn.speed_reference is None:
        return MetricValue.ok(per_sec, defn.unit)
    return MetricValue.ok(min(100.0, per_sec / defn.speed_reference * 100.0), defn.unit)
