# motionverse/pipeline/runner.py
"""
Motionverse — PIPELINE RUNNER

Runs the stages strictly in order on one Context:

    input → smoothing → events → metrics → scoring → flaws → report

A PipelineError ends the run: it is stored on ctx.error and the session
moves to ERROR. Nothing is retried.
"""

from typing import Optional

from motionverse.config.action_config import ActionConfig
from motionverse.config.registry import get_action_config
from motionverse.models.context import AnalysisError, Context
from motionverse.models.input_model import InputModel
from motionverse.models.pose_model import PoseModel
from motionverse.pipeline import (
    events_stage,
    flaws_stage,
    input_stage,
    metrics_stage,
    report_stage,
    scoring_stage,
    smoothing_stage,
)
from motionverse.pipeline.errors import PipelineError
from motionverse.pipeline.session import AnalysisSession, SessionState
from motionverse.utils.landmarks import LandmarkMapper
from motionverse.utils.logger import error, log

STAGES = ("input", "smoothing", "events", "metrics", "scoring", "flaws", "report")


def run_analysis(
    ctx: Context,
    config: Optional[ActionConfig] = None,
    session: Optional[AnalysisSession] = None,
) -> Context:
    session = session or AnalysisSession(ctx.input.action)
    session.total_stages = len(STAGES)
    if session.state != SessionState.PROCESSING:
        session.transition(SessionState.PROCESSING)

    try:
        if config is None:
            config = get_action_config(ctx.input.action)

        log(f"[Runner] Analyzing {config.action_id} ({ctx.pose.total_frames} frames)")

        input_stage.run(ctx)
        session.stage_done("input")

        smoothing_stage.run(ctx, config)
        session.stage_done("smoothing")

        session.transition(SessionState.ANALYZING)
        mapper = LandmarkMapper.for_sequence(
            ctx.smoothed.frames, hand=ctx.input.hand, use_depth=config.use_depth
        )

        events_stage.run(ctx, config, mapper)
        session.stage_done("events")

        metrics_stage.run(ctx, config, mapper)
        session.stage_done("metrics")

        scoring_stage.run(ctx, config)
        session.stage_done("scoring")

        flaws_stage.run(ctx, config)
        session.stage_done("flaws")

        report_stage.run(ctx, config)
        session.stage_done("report")

        session.transition(SessionState.COMPLETE)

    except PipelineError as e:
        error(f"[Runner] {e.code} at {e.stage or 'pipeline'}: {e}")
        ctx.error = AnalysisError(code=e.code, message=str(e), stage=e.stage)
        session.fail(e.code)

    return ctx


def analyze(
    pose: PoseModel,
    action: str,
    hand: str = "auto",
    athlete_height: Optional[float] = None,
    height_unit: str = "cm",
    config: Optional[ActionConfig] = None,
    session: Optional[AnalysisSession] = None,
) -> Context:
    """Build a fresh Context for one sequence and run the whole pipeline."""
    ctx = Context(
        input=InputModel(
            action=action,
            hand=hand,
            athlete_height=athlete_height,
            height_unit=height_unit,
        ),
        pose=pose,
    )
    return run_analysis(ctx, config=config, session=session)
