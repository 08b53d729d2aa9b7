# motionverse/config/action_config.py
"""
Per-action analysis configuration.

One ActionConfig per sport action, loaded from YAML and frozen. Stages
receive it by reference; nothing in here is mutated after load.
"""

from typing import Literal, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from motionverse.utils.landmarks import SIDE_RELATIVE


KEYFRAME_NAMES = ("start", "peak_displacement", "release", "end")

# Keyframe counts each metric kind accepts. Two keyframes on a posture
# kind average it over the window between them.
KIND_KEYFRAMES = {
    "joint_angle": (1,),
    "segment_angle": (1,),
    "timing": (2,),
    "normalized_displacement": (2,),
    "stability": (2,),
    "follow_through": (1,),
    "relative_height": (1, 2),
    "trunk_rotation": (1, 2),
    "trunk_lean": (1, 2),
    "hand_symmetry": (1, 2),
    "width_ratio": (1, 2),
    "trajectory_angle": (2,),
    "speed": (1, 2),
}

# Number of landmarks each metric kind expects
KIND_LANDMARKS = {
    "joint_angle": 3,
    "segment_angle": 2,
    "timing": 0,
    "normalized_displacement": 1,
    "stability": 1,
    "relative_height": 3,
    "trunk_rotation": 4,
    "trunk_lean": 2,
    "hand_symmetry": 2,
    "width_ratio": 4,
    "trajectory_angle": 1,
    "speed": 1,
}


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


# -----------------------------------------------------
# Stage 1: smoothing
# -----------------------------------------------------
class SmoothingConfig(_Frozen):
    window_size: int = Field(5, ge=1)
    kernel: Literal["box", "gaussian"] = "box"
    min_visibility: float = Field(0.3, ge=0.0, le=1.0)
    min_coverage: float = Field(0.5, ge=0.0, le=1.0)
    smooth_visibility: bool = False


# -----------------------------------------------------
# Stage 2: keyframes
# -----------------------------------------------------
class KeyframeConfig(_Frozen):
    min_frames: int = Field(15, ge=2)
    min_visibility: float = Field(0.5, ge=0.0, le=1.0)

    # Velocities are in body-scale units (torso lengths) per frame
    onset_landmark: str = "mid_hip"
    onset_velocity: float = Field(0.02, gt=0.0)

    tracking_landmark: str = "mid_hip"
    peak_mode: Literal["min", "max"] = "min"

    extremity_landmark: str = "wrist"
    release_direction: Literal["up", "down", "left", "right", "outward"] = "up"
    release_velocity: float = Field(0.05, gt=0.0)
    release_window: int = Field(12, ge=1)

    body_landmarks: Tuple[str, ...] = (
        "left_shoulder", "right_shoulder",
        "left_hip", "right_hip",
        "left_knee", "right_knee",
        "left_ankle", "right_ankle",
    )
    stop_velocity: float = Field(0.01, gt=0.0)
    stop_window: int = Field(3, ge=1)


# -----------------------------------------------------
# Stage 3/4: metric definitions + scoring
# -----------------------------------------------------
class MetricDefinition(_Frozen):
    name: str
    kind: Literal[
        "joint_angle",
        "segment_angle",
        "timing",
        "normalized_displacement",
        "stability",
        "follow_through",
        "relative_height",
        "trunk_rotation",
        "trunk_lean",
        "hand_symmetry",
        "width_ratio",
        "trajectory_angle",
        "speed",
    ]
    unit: str = ""
    label: Optional[str] = None
    category: str
    weight: float = Field(1.0, gt=0.0)

    landmarks: Tuple[str, ...] = ()
    keyframes: Tuple[str, ...] = ()
    min_landmark_confidence: float = Field(0.5, ge=0.0, le=1.0)

    # joint_angle: mean of the left and right chains
    both_sides: bool = False

    # normalized_displacement
    reference_segment: Literal["leg", "torso", "thigh", "shank", "upper_arm", "forearm"] = "leg"

    # stability
    max_spread: float = Field(0.8, gt=0.0)
    min_window_frames: int = Field(3, ge=1)

    # follow_through
    method: Literal["extension", "deceleration"] = "extension"
    trailing_frames: int = Field(15, ge=1)
    angle_floor: float = 120.0
    angle_ceiling: float = 170.0

    # trunk_lean: report 100 × (1 − lean / lean_limit) instead of degrees
    lean_limit: Optional[float] = Field(None, gt=0.0)

    # speed: shoulder widths per second, or a 0–100 score against speed_reference
    axis: Literal["xy", "x", "y"] = "xy"
    leading_frames: int = Field(12, ge=1)
    speed_reference: Optional[float] = Field(None, gt=0.0)

    # scoring
    ideal_range: Tuple[float, float]
    max_deviation: float = Field(..., gt=0.0)
    max_deviation_below: Optional[float] = Field(None, gt=0.0)
    max_deviation_above: Optional[float] = Field(None, gt=0.0)
    directionality: Literal["closer", "within"] = "closer"
    falloff: Literal["linear", "smooth"] = "linear"

    @field_validator("keyframes")
    @classmethod
    def _known_keyframes(cls, v):
        for k in v:
            if k not in KEYFRAME_NAMES:
                raise ValueError(f"unknown keyframe {k!r}")
        return v

    @model_validator(mode="after")
    def _shape(self):
        lo, hi = self.ideal_range
        if lo > hi:
            raise ValueError(f"{self.name}: ideal_range low > high")

        want_kf = KIND_KEYFRAMES[self.kind]
        if len(self.keyframes) not in want_kf:
            counts = " or ".join(str(n) for n in want_kf)
            raise ValueError(f"{self.name}: {self.kind} needs {counts} keyframe(s)")

        if self.kind == "follow_through":
            want_lm = 3 if self.method == "extension" else 1
        else:
            want_lm = KIND_LANDMARKS[self.kind]
        if len(self.landmarks) != want_lm:
            raise ValueError(f"{self.name}: {self.kind} needs {want_lm} landmark(s)")

        if self.both_sides:
            if self.kind != "joint_angle":
                raise ValueError(f"{self.name}: both_sides only applies to joint_angle")
            if not any(name in SIDE_RELATIVE for name in self.landmarks):
                raise ValueError(f"{self.name}: both_sides needs side-relative landmarks")

        if self.angle_ceiling <= self.angle_floor:
            raise ValueError(f"{self.name}: angle_ceiling must exceed angle_floor")
        return self

    def deviation_limit(self, below: bool) -> float:
        if below and self.max_deviation_below is not None:
            return self.max_deviation_below
        if not below and self.max_deviation_above is not None:
            return self.max_deviation_above
        return self.max_deviation


class CategoryConfig(_Frozen):
    name: str
    weight: float = Field(1.0, gt=0.0)


# -----------------------------------------------------
# Stage 5: flaw rules
# -----------------------------------------------------
class Drill(_Frozen):
    name: str
    description: str = ""
    duration: Optional[str] = None


class Reference(_Frozen):
    url: str
    title: Optional[str] = None


class FlawCondition(_Frozen):
    metric: str
    op: Literal["below", "above", "outside_range"]
    threshold: Optional[float] = None
    margin: float = Field(0.0, ge=0.0)

    @model_validator(mode="after")
    def _threshold_required(self):
        if self.op in ("below", "above") and self.threshold is None:
            raise ValueError(f"{self.op} condition on {self.metric} needs a threshold")
        return self


class FlawRule(_Frozen):
    id: str
    title: str
    description: str = ""
    category: Literal["form", "power", "balance", "timing", "injury_risk"] = "form"
    severity: Literal["low", "medium", "high"]
    injury_risk: bool = False
    injury_details: Optional[str] = None
    correction: str
    affected_body_parts: Tuple[str, ...] = ()
    drill: Optional[Drill] = None
    reference: Optional[Reference] = None
    conditions: Tuple[FlawCondition, ...] = Field(..., min_length=1)


# -----------------------------------------------------
# Action
# -----------------------------------------------------
class ActionConfig(_Frozen):
    action_id: str
    sport: str
    display_name: str = ""
    use_depth: bool = False

    smoothing: SmoothingConfig = Field(default_factory=SmoothingConfig)
    keyframes: KeyframeConfig = Field(default_factory=KeyframeConfig)

    categories: Tuple[CategoryConfig, ...]
    metrics: Tuple[MetricDefinition, ...]
    rules: Tuple[FlawRule, ...] = ()

    @model_validator(mode="after")
    def _cross_refs(self):
        names = [m.name for m in self.metrics]
        if len(set(names)) != len(names):
            raise ValueError(f"{self.action_id}: duplicate metric names")

        cats = {c.name for c in self.categories}
        for m in self.metrics:
            if m.category not in cats:
                raise ValueError(f"{self.action_id}: metric {m.name} has unknown category {m.category!r}")

        by_name = {m.name: m for m in self.metrics}
        for rule in self.rules:
            for cond in rule.conditions:
                m = by_name.get(cond.metric)
                if m is None:
                    raise ValueError(f"rule {rule.id}: unknown metric {cond.metric!r}")
                lo, hi = m.ideal_range
                # A rule must never fire for a value inside the ideal range
                if cond.op == "below" and cond.threshold > lo:
                    raise ValueError(f"rule {rule.id}: below-threshold {cond.threshold} is inside ideal range of {m.name}")
                if cond.op == "above" and cond.threshold < hi:
                    raise ValueError(f"rule {rule.id}: above-threshold {cond.threshold} is inside ideal range of {m.name}")
        return self

    def metric(self, name: str) -> Optional[MetricDefinition]:
        for m in self.metrics:
            if m.name == name:
                return m
        return None

    def category_weight(self, name: str) -> float:
        for c in self.categories:
            if c.name == name:
                return c.weight
        return 0.0
