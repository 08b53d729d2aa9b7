# motionverse/flaws/formatter.py

from motionverse.config.action_config import FlawRule, MetricDefinition
from motionverse.models.flaw_model import Drill, FlawModel, Reference
from motionverse.utils.logger import warn


def _describe(rule: FlawRule, value: float, defn: MetricDefinition) -> str:
    """
    Fill the rule's description template. Available fields:
    {value} {lo} {hi} {unit} {threshold}.
    """
    lo, hi = defn.ideal_range
    try:
        return rule.description.format(
            value=value,
            lo=lo,
            hi=hi,
            unit=defn.unit,
            threshold=rule.conditions[0].threshold,
        )
    except (KeyError, IndexError, ValueError) as e:
        warn(f"[Flaws] description template of {rule.id} not formatted: {e}")
        return rule.description


def format_flaw(rule: FlawRule, value: float, defn: MetricDefinition, confidence: float) -> FlawModel:
    """
    Convert a fired rule into the reporting shape. The first condition's
    metric is the one displayed with its actual value and ideal range.
    """
    first = rule.conditions[0]
    return FlawModel(
        id=rule.id,
        title=rule.title,
        description=_describe(rule, value, defn),
        category=rule.category,
        severity=rule.severity,
        injury_risk=rule.injury_risk,
        injury_details=rule.injury_details,
        correction=rule.correction,
        metric=first.metric,
        actual_value=value,
        ideal_range=list(defn.ideal_range),
        threshold=first.threshold,
        affected_body_parts=list(rule.affected_body_parts),
        drill=Drill(**rule.drill.model_dump()) if rule.drill else None,
        reference=Reference(**rule.reference.model_dump()) if rule.reference else None,
        confidence=confidence,
    )
