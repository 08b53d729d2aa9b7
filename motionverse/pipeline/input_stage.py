# motionverse/pipeline/input_stage.py
"""
Motionverse — INPUT STAGE

Rejects sequences the pipeline cannot interpret before any smoothing
happens. Low confidence is NOT malformed: those frames pass through and
the later stages degrade.
"""

import math

from motionverse.models.context import Context
from motionverse.models.pose_model import PoseModel
from motionverse.pipeline.errors import MalformedInputError
from motionverse.utils.logger import stage

STAGE = "input"


def _fail(msg: str):
    raise MalformedInputError(msg, stage=STAGE)


def validate_sequence(pose: PoseModel) -> None:
    frames = pose.frames
    if not frames:
        _fail("Landmark sequence is empty")

    if pose.fps is not None and not (math.isfinite(pose.fps) and pose.fps > 0):
        _fail(f"fps must be a positive number, got {pose.fps}")

    first = frames[0].frame_index
    for pos, pf in enumerate(frames):
        expected = first + pos
        if pf.frame_index != expected:
            if pf.frame_index < expected:
                _fail(f"Frame index {pf.frame_index} at position {pos} is duplicated or out of order")
            _fail(f"Gap in frame indices: expected {expected}, got {pf.frame_index}")

        for name, lm in pf.landmarks.items():
            if not (0.0 <= lm.vis <= 1.0):
                _fail(f"Visibility of {name} in frame {pf.frame_index} is outside [0, 1]: {lm.vis}")
            coords = (lm.x, lm.y) if lm.z is None else (lm.x, lm.y, lm.z)
            if not all(math.isfinite(c) for c in coords):
                _fail(f"Non-finite coordinate for {name} in frame {pf.frame_index}")

    stamps = [pf.timestamp_ms for pf in frames]
    given = [t for t in stamps if t is not None]
    if given:
        if len(given) != len(stamps):
            _fail("Timestamps must be supplied for every frame or for none")
        for pf in frames:
            if not math.isfinite(pf.timestamp_ms):
                _fail(f"Non-finite timestamp in frame {pf.frame_index}")
        for prev, cur in zip(given, given[1:]):
            if cur < prev:
                _fail(f"Timestamps decrease ({prev} → {cur})")


def run(ctx: Context) -> Context:
    validate_sequence(ctx.pose)
    stage("InputStage", f"{ctx.pose.total_frames} frames accepted")
    return ctx
