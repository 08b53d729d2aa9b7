# motionverse/pipeline/report_stage.py

from typing import List

from motionverse.config.action_config import ActionConfig
from motionverse.explainability.coach_context import build_coach_context, serialize_coach_context
from motionverse.models.context import Context
from motionverse.models.report_model import ReportModel
from motionverse.utils.logger import stage

REPORT_SCHEMA = "motionverse.v1"
REPORT_VERSION = "1.0.0"


# ---------------------------------------------------------
# Data-quality warnings (derived, neutral)
# ---------------------------------------------------------
def collect_warnings(ctx: Context) -> List[str]:
    warnings = [f"keyframes: {d}" for d in ctx.keyframes.diagnostics]

    for name, mv in ctx.metrics.values.items():
        if not mv.available:
            warnings.append(f"metric {name} unavailable: {mv.reason}")

    if ctx.flaws.rules_suppressed:
        warnings.append(
            f"{ctx.flaws.rules_suppressed} of {ctx.flaws.rules_evaluated} flaw rules "
            f"not evaluated because their metrics were unavailable"
        )
    return warnings


# ---------------------------------------------------------
# MAIN STAGE
# ---------------------------------------------------------
def run(ctx: Context, config: ActionConfig) -> Context:
    coach = build_coach_context(
        sport=config.sport,
        action=config.action_id,
        keyframes=ctx.keyframes,
        metrics=ctx.metrics,
        score=ctx.score,
        flaws=ctx.flaws,
    )

    ctx.report = ReportModel(
        schema_id=REPORT_SCHEMA,
        version=REPORT_VERSION,
        coach_context=coach,
        grounding_text=serialize_coach_context(coach),
        warnings=collect_warnings(ctx),
    )
    stage("ReportStage", f"{len(ctx.report.warnings)} data-quality warning(s)")
    return ctx
