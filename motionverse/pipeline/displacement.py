# motionverse/pipeline/displacement.py
"""
Peak-to-baseline vertical displacement, normalized by body size.

The image-space length of a reference segment is divided by its
anthropometric share of standing height to get "image units per
height"; the displacement is then expressed as a fraction of height
(ratio), in centimetres, or in percent.
"""

import numpy as np

from motionverse.models.metrics_model import MetricValue

# Segment length as a fraction of standing height
PROPORTIONS = {
    "leg": 0.491,
    "torso": 0.288,
    "thigh": 0.245,
    "shank": 0.246,
    "upper_arm": 0.186,
    "forearm": 0.146,
}

SEGMENT_ENDS = {
    "leg": ("hip", "ankle"),
    "torso": ("mid_shoulder", "mid_hip"),
    "thigh": ("hip", "knee"),
    "shank": ("knee", "ankle"),
    "upper_arm": ("shoulder", "elbow"),
    "forearm": ("elbow", "wrist"),
}


def reference_length(frames, lo, hi, mapper, segment: str, min_conf: float):
    """Median image length of the segment over confident frames in [lo, hi]."""
    a_name, b_name = SEGMENT_ENDS[segment]
    lengths = []
    for pf in frames[lo:hi + 1]:
        if mapper.visibility(pf, a_name) < min_conf or mapper.visibility(pf, b_name) < min_conf:
            continue
        a = mapper.point(pf, a_name)
        b = mapper.point(pf, b_name)
        if a is None or b is None:
            continue
        lengths.append(float(np.linalg.norm(a - b)))
    if not lengths:
        return None
    return float(np.median(lengths))


def normalized_displacement(defn, frames, kfs, mapper, height_cm=None, **_):
    unit = defn.unit or "ratio"
    if height_cm is None:
        return MetricValue.unavailable(unit, "athlete height unknown")

    baseline, peak = kfs
    name = defn.landmarks[0]
    p0 = mapper.point(frames[baseline], name)
    p1 = mapper.point(frames[peak], name)
    if p0 is None or p1 is None:
        return MetricValue.unavailable(unit, "landmark missing at keyframe")

    lo, hi = min(kfs), max(kfs)
    seg = reference_length(frames, lo, hi, mapper, defn.reference_segment, defn.min_landmark_confidence)
    if seg is None or seg < 1e-6:
        return MetricValue.unavailable(unit, f"{defn.reference_segment} segment not measurable")

    # Upward motion is a decrease in image y
    signed = float(p0[1] - p1[1])
    ratio = signed * PROPORTIONS[defn.reference_segment] / seg

    if unit == "cm":
        return MetricValue.ok(ratio * height_cm, unit)
    if unit == "percent":
        return MetricValue.ok(ratio * 100.0, unit)
    return MetricValue.ok(ratio, unit)
