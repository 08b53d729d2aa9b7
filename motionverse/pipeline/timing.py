# motionverse/pipeline/timing.py

import math

from motionverse.models.metrics_model import MetricValue


def timing(defn, frames, kfs, mapper, fps=None, **_):
    """
    Signed offset from the first keyframe to the second in milliseconds.
    Never computed against an assumed frame rate.
    """
    if fps is None or not math.isfinite(fps) or fps <= 0:
        return MetricValue.unavailable(defn.unit or "ms", "sample rate unknown")

    frm, to = kfs
    ms = (to - frm) / fps * 1000.0
    return MetricValue.ok(ms, defn.unit or "ms")
