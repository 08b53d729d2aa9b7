from pydantic import BaseModel, Field
from typing import Optional

from motionverse.models.input_model import InputModel
from motionverse.models.pose_model import PoseModel
from motionverse.models.events_model import KeyframesModel
from motionverse.models.metrics_model import MetricsModel
from motionverse.models.score_model import ScoreModel
from motionverse.models.flaw_model import FlawReport
from motionverse.models.report_model import ReportModel


class AnalysisError(BaseModel):
    code: str
    message: str
    stage: Optional[str] = None


class Context(BaseModel):
    """
    Canonical analysis context passed through the pipeline.

    NOTE:
    - One Context per run; stages never share one across sessions.
    - `pose` holds the raw input, `smoothed` the smoother output.
    """

    # -------------------------
    # Inputs & raw data
    # -------------------------
    input: InputModel
    pose: PoseModel = Field(default_factory=PoseModel)

    # -------------------------
    # Derived stages
    # -------------------------
    smoothed: PoseModel = Field(default_factory=PoseModel)
    keyframes: KeyframesModel = Field(default_factory=KeyframesModel)
    metrics: MetricsModel = Field(default_factory=MetricsModel)

    # -------------------------
    # Interpretation layers
    # -------------------------
    score: ScoreModel = Field(default_factory=ScoreModel)
    flaws: FlawReport = Field(default_factory=FlawReport)

    # -------------------------
    # Reporting
    # -------------------------
    report: ReportModel = Field(default_factory=ReportModel)

    error: Optional[AnalysisError] = None
