# motionverse/pipeline/flaws_stage.py
"""
Motionverse — FLAWS STAGE

Evaluates the action's rule table against the MetricsModel.

Ordering:
- duplicate rule ids keep the first match in table order
- most severe first, ties keep table order (stable sort)
"""

from motionverse.config.action_config import ActionConfig
from motionverse.flaws.aggregator import aggregate_injury_risk, summarize
from motionverse.flaws.formatter import format_flaw
from motionverse.flaws.rules import evaluate_rule, is_evaluable
from motionverse.models.context import Context
from motionverse.models.flaw_model import SEVERITY_RANK, FlawReport
from motionverse.models.metrics_model import MetricsModel
from motionverse.utils.logger import debug, stage


def detect_flaws(metrics: MetricsModel, config: ActionConfig) -> FlawReport:
    definitions = {m.name: m for m in config.metrics}
    fired = []
    seen = set()
    suppressed = 0

    for rule in config.rules:
        if not is_evaluable(rule, metrics):
            suppressed += 1
            debug(f"[FlawsStage] {rule.id} suppressed: required metric unavailable")
            continue
        if rule.id in seen:
            continue

        confidence = evaluate_rule(rule, metrics, definitions)
        if confidence is None:
            continue

        first = rule.conditions[0].metric
        fired.append(format_flaw(rule, metrics.get(first), definitions[first], confidence))
        seen.add(rule.id)

    flaws = sorted(fired, key=lambda f: SEVERITY_RANK[f.severity])

    return FlawReport(
        flaws=flaws,
        rules_evaluated=len(config.rules),
        rules_suppressed=suppressed,
        overall_injury_risk=aggregate_injury_risk(flaws),
        summary=summarize(flaws),
    )


def run(ctx: Context, config: ActionConfig) -> Context:
    ctx.flaws = detect_flaws(ctx.metrics, config)
    stage(
        "FlawsStage",
        f"{len(ctx.flaws.flaws)} flaw(s), {ctx.flaws.rules_suppressed} rule(s) suppressed, "
        f"injury risk={ctx.flaws.overall_injury_risk}",
    )
    return ctx
