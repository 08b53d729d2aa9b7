# motionverse/explainability/coach_context.py
"""
Grounding context for a downstream explainer.

build_coach_context copies values out of the run's keyframes, metrics,
score and flaws; serialize_coach_context turns that into a plain-text
block. Nothing is added that is not already in those structures, and
unavailable metrics / absent keyframes are left out rather than shown
as zero.
"""

from typing import List

from motionverse.models.events_model import KeyframesModel
from motionverse.models.flaw_model import FlawReport
from motionverse.models.metrics_model import MetricsModel
from motionverse.models.report_model import CoachContext, CoachFlaw
from motionverse.models.score_model import ScoreModel


def _title(key: str) -> str:
    return key.replace("_", " ").title()


def _num(val: float) -> str:
    return f"{val:.1f}" if abs(val) >= 1.0 else f"{val:.3f}"


def build_coach_context(
    sport: str,
    action: str,
    keyframes: KeyframesModel,
    metrics: MetricsModel,
    score: ScoreModel,
    flaws: FlawReport,
) -> CoachContext:
    return CoachContext(
        sport=sport,
        action=action,
        overall_score=score.overall,
        confidence=score.confidence,
        keyframes=keyframes.indices(),
        metrics=metrics.as_flat(),
        metric_units={k: v.unit for k, v in metrics.values.items()},
        score_breakdown=dict(score.breakdown),
        flaws=[
            CoachFlaw(
                id=f.id,
                title=f.title,
                severity=f.severity,
                injury_risk=f.injury_risk,
                category=f.category,
                correction=f.correction,
            )
            for f in flaws.flaws
        ],
    )


def serialize_coach_context(ctx: CoachContext) -> str:
    lines: List[str] = []

    lines.append(f"SPORT: {ctx.sport.upper()}")
    lines.append(f"ACTION: {ctx.action.replace('_', ' ')}")
    lines.append(f"OVERALL SCORE: {ctx.overall_score}/100")
    lines.append(f"CONFIDENCE: {round(ctx.confidence * 100)}%")
    lines.append("")

    present = {k: v for k, v in ctx.keyframes.items() if v is not None}
    if present:
        lines.append("KEYFRAMES:")
        for key, frame in present.items():
            lines.append(f"  {_title(key)}: frame {frame}")
        lines.append("")

    if ctx.score_breakdown:
        lines.append("SCORE BREAKDOWN:")
        for key, val in ctx.score_breakdown.items():
            lines.append(f"  {_title(key)}: {val}/100")
        lines.append("")

    measured = {k: v for k, v in ctx.metrics.items() if v is not None}
    if measured:
        lines.append("MEASURED METRICS:")
        for key, val in measured.items():
            unit = ctx.metric_units.get(key, "")
            suffix = f" {unit}" if unit else ""
            lines.append(f"  {_title(key)}: {_num(val)}{suffix}")
        lines.append("")

    if ctx.flaws:
        lines.append(f"DETECTED FLAWS ({len(ctx.flaws)} total):")
        for flaw in ctx.flaws:
            risk = " ⚠ INJURY RISK" if flaw.injury_risk else ""
            lines.append(f"  [{flaw.severity.upper()}] {flaw.title}{risk}")
            lines.append(f"    Category: {flaw.category}")
            lines.append(f"    Correction: {flaw.correction}")
    else:
        lines.append("DETECTED FLAWS: None")

    return "\n".join(lines)
