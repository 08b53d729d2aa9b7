# motionverse/pipeline/stability.py

import numpy as np

from motionverse.models.metrics_model import MetricValue

MIN_SHOULDER_WIDTH = 0.05


def stability(defn, frames, kfs, mapper, **_):
    """
    100 × (1 − std(horizontal position) / shoulder width / max_spread),
    clamped to [0, 100], over the window between the two keyframes.

    Shoulder width is the median over the same frames, floored so a
    side-on camera cannot blow the ratio up.
    """
    lo, hi = min(kfs), max(kfs)
    name = defn.landmarks[0]
    min_conf = defn.min_landmark_confidence

    xs, widths = [], []
    for pf in frames[lo:hi + 1]:
        if mapper.visibility(pf, name) < min_conf:
            continue
        if mapper.visibility(pf, "left_shoulder") < min_conf or mapper.visibility(pf, "right_shoulder") < min_conf:
            continue
        p = mapper.point(pf, name)
        ls = mapper.point(pf, "left_shoulder")
        rs = mapper.point(pf, "right_shoulder")
        if p is None or ls is None or rs is None:
            continue
        xs.append(float(p[0]))
        widths.append(float(np.linalg.norm(ls - rs)))

    if len(xs) < defn.min_window_frames:
        return MetricValue.unavailable(
            defn.unit, f"only {len(xs)} confident frames in window, need {defn.min_window_frames}"
        )

    width = max(float(np.median(widths)), MIN_SHOULDER_WIDTH)
    spread = float(np.std(xs)) / width
    value = 100.0 * (1.0 - spread / defn.max_spread)
    return MetricValue.ok(max(0.0, min(100.0, value)), defn.unit)
