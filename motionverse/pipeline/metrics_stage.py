# motionverse/pipeline/metrics_stage.py
"""
Motionverse — METRICS STAGE

Evaluates every metric definition of the action against the smoothed
sequence and the detected keyframes.

Gating, in order (first failure wins, value stays None):
    1. a required keyframe is absent
    2. a required landmark's mean visibility over the metric window is
       below min_landmark_confidence
    3. kind-specific inputs missing (fps for timing and speed, height
       for displacement) or degenerate geometry
"""

from typing import Optional

import numpy as np

from motionverse.config.action_config import ActionConfig, MetricDefinition
from motionverse.models.context import Context
from motionverse.models.events_model import KeyframesModel
from motionverse.models.metrics_model import MetricsModel, MetricValue
from motionverse.models.pose_model import PoseModel
from motionverse.pipeline.displacement import normalized_displacement
from motionverse.pipeline.follow_through import follow_through, trailing_window
from motionverse.pipeline.joint_angles import joint_angle, segment_angle
from motionverse.pipeline.posture import (
    hand_symmetry,
    relative_height,
    speed,
    speed_window,
    trajectory_angle,
    trunk_lean,
    trunk_rotation,
    width_ratio,
)
from motionverse.pipeline.stability import stability
from motionverse.pipeline.timing import timing
from motionverse.utils.landmarks import LandmarkMapper
from motionverse.utils.logger import debug, stage

HANDLERS = {
    "joint_angle": joint_angle,
    "segment_angle": segment_angle,
    "timing": timing,
    "normalized_displacement": normalized_displacement,
    "stability": stability,
    "follow_through": follow_through,
    "relative_height": relative_height,
    "trunk_rotation": trunk_rotation,
    "trunk_lean": trunk_lean,
    "hand_symmetry": hand_symmetry,
    "width_ratio": width_ratio,
    "trajectory_angle": trajectory_angle,
    "speed": speed,
}


def metric_window(defn: MetricDefinition, kfs, n: int):
    if defn.kind == "follow_through":
        return trailing_window(defn, kfs[0], n)
    if defn.kind == "speed":
        return speed_window(defn, kfs)
    return min(kfs), max(kfs)


def compute_metric(
    defn: MetricDefinition,
    pose: PoseModel,
    keyframes: KeyframesModel,
    mapper: LandmarkMapper,
    fps: Optional[float] = None,
    height_cm: Optional[float] = None,
) -> MetricValue:
    kfs = []
    for name in defn.keyframes:
        idx = keyframes.frame(name)
        if idx is None:
            return MetricValue.unavailable(defn.unit, f"keyframe {name} absent")
        kfs.append(idx)

    frames = pose.frames
    # both_sides chains are checked per side by the handler
    if defn.landmarks and not defn.both_sides:
        lo, hi = metric_window(defn, kfs, len(frames))
        for name in defn.landmarks:
            mean_vis = float(np.mean([mapper.visibility(pf, name) for pf in frames[lo:hi + 1]]))
            if mean_vis < defn.min_landmark_confidence:
                return MetricValue.unavailable(
                    defn.unit,
                    f"{name} confidence {mean_vis:.2f} below {defn.min_landmark_confidence}",
                )

    return HANDLERS[defn.kind](defn, frames, tuple(kfs), mapper, fps=fps, height_cm=height_cm)


def compute_metrics(
    pose: PoseModel,
    keyframes: KeyframesModel,
    config: ActionConfig,
    mapper: LandmarkMapper,
    fps: Optional[float] = None,
    height_cm: Optional[float] = None,
) -> MetricsModel:
    values = {}
    for defn in config.metrics:
        mv = compute_metric(defn, pose, keyframes, mapper, fps=fps, height_cm=height_cm)
        if not mv.available:
            debug(f"[MetricsStage] {defn.name} unavailable: {mv.reason}")
        values[defn.name] = mv
    return MetricsModel(values=values)


def run(ctx: Context, config: ActionConfig, mapper: LandmarkMapper) -> Context:
    ctx.metrics = compute_metrics(
        ctx.smoothed,
        ctx.keyframes,
        config,
        mapper,
        fps=ctx.smoothed.estimated_fps(),
        height_cm=ctx.input.height_cm(),
    )
    stage(
        "MetricsStage",
        f"{len(ctx.metrics.available_names())}/{len(config.metrics)} metrics available",
    )
    return ctx
