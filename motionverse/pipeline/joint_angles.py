# motionverse/pipeline/joint_angles.py

import numpy as np

from motionverse.models.metrics_model import MetricValue
from motionverse.utils.angles import angle, segment_elevation


def _both_sides(defn, pf, mapper):
    # Sides below confidence are skipped; one measurable side is enough
    found = []
    for side in ("left", "right"):
        names = [mapper.sided(name, side) for name in defn.landmarks]
        if any(mapper.visibility(pf, name) < defn.min_landmark_confidence for name in names):
            continue
        pts = [mapper.point(pf, name) for name in names]
        if any(p is None for p in pts):
            continue
        deg = angle(*pts)
        if deg is not None:
            found.append(deg)

    if not found:
        return MetricValue.unavailable(defn.unit, "no side measurable at keyframe")
    return MetricValue.ok(float(np.mean(found)), defn.unit)


def joint_angle(defn, frames, kfs, mapper, **_):
    """
    Angle at the middle landmark of a three-landmark chain, at one keyframe.
    With both_sides, the mean of the left and right chains.
    """
    pf = frames[kfs[0]]
    if defn.both_sides:
        return _both_sides(defn, pf, mapper)

    a, b, c = (mapper.point(pf, name) for name in defn.landmarks)
    if a is None or b is None or c is None:
        return MetricValue.unavailable(defn.unit, "landmark missing at keyframe")

    deg = angle(a, b, c)
    if deg is None:
        return MetricValue.unavailable(defn.unit, "degenerate geometry (zero-length segment)")
    return MetricValue.ok(deg, defn.unit)


def segment_angle(defn, frames, kfs, mapper, **_):
    """
    Elevation of the segment between two landmarks above horizontal,
    e.g. elbow → wrist at release.
    """
    pf = frames[kfs[0]]
    a, b = (mapper.point(pf, name) for name in defn.landmarks)
    if a is None or b is None:
        return MetricValue.unavailable(defn.unit, "landmark missing at keyframe")

    deg = segment_elevation(a, b)
    if deg is None:
        return MetricValue.unavailable(defn.unit, "degenerate geometry (zero-length segment)")
    return MetricValue.ok(deg, defn.unit)
