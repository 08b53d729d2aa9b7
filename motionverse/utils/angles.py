# motionverse/utils/angles.py

from typing import Optional

import numpy as np

EPS = 1e-9


# -----------------------------------------------------------
# THREE-POINT ANGLE
# -----------------------------------------------------------

def angle(a, b, c) -> Optional[float]:
    """
    Angle ABC in degrees [0, 180] between vectors BA and BC.
    None when either vector has zero length.
    """
    ab = np.asarray(a, float) - np.asarray(b, float)
    cb = np.asarray(c, float) - np.asarray(b, float)
    n1 = np.linalg.norm(ab)
    n2 = np.linalg.norm(cb)
    if n1 < EPS or n2 < EPS:
        return None
    val = float(np.dot(ab, cb) / (n1 * n2))
    val = max(-1.0, min(1.0, val))
    return float(np.degrees(np.arccos(val)))


# -----------------------------------------------------------
# SEGMENT ELEVATION ABOVE HORIZONTAL
# -----------------------------------------------------------

def segment_elevation(a, b) -> Optional[float]:
    """
    Elevation of segment A→B above the horizontal, in degrees [0, 90].
    Image y grows downward, so an upward segment has negative dy.
    """
    a = np.asarray(a, float)
    b = np.asarray(b, float)
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    if abs(dx) < EPS and abs(dy) < EPS:
        return None
    deg = float(np.degrees(np.arctan2(-dy, abs(dx))))
    return max(0.0, min(90.0, deg))


# -----------------------------------------------------------
# SMOOTHING KERNELS
# -----------------------------------------------------------

def kernel_weights(kind: str, half: int) -> np.ndarray:
    """
    Weights for a centered window of 2*half+1 frames. Gaussian sigma is
    half the radius so the tails stay inside the window.
    """
    xs = np.arange(-half, half + 1)
    if kind == "gaussian" and half > 0:
        sigma = max(half / 2.0, 0.5)
        w = np.exp(-(xs ** 2) / (2 * sigma ** 2))
    else:
        w = np.ones(len(xs))
    return w / np.sum(w)
