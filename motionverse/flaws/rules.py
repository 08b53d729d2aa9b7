# motionverse/flaws/rules.py
"""
Rule predicates.

A condition either misses (None) or fires with an "excess": how far the
value went past its threshold, used for the flaw's confidence.
"""

from typing import List, Optional

from motionverse.config.action_config import FlawCondition, FlawRule, MetricDefinition
from motionverse.models.metrics_model import MetricsModel


def condition_excess(cond: FlawCondition, value: float, defn: MetricDefinition) -> Optional[float]:
    if cond.op == "below":
        return cond.threshold - value if value < cond.threshold else None

    if cond.op == "above":
        return value - cond.threshold if value > cond.threshold else None

    lo, hi = defn.ideal_range
    if value < lo - cond.margin:
        return (lo - cond.margin) - value
    if value > hi + cond.margin:
        return value - (hi + cond.margin)
    return None


def condition_limit(cond: FlawCondition, value: float, defn: MetricDefinition) -> float:
    lo, _ = defn.ideal_range
    return defn.deviation_limit(below=value < lo)


def required_metrics(rule: FlawRule) -> List[str]:
    return [c.metric for c in rule.conditions]


def is_evaluable(rule: FlawRule, metrics: MetricsModel) -> bool:
    """Unavailable data suppresses a rule; it never triggers one."""
    return all(metrics.is_available(name) for name in required_metrics(rule))


def evaluate_rule(rule: FlawRule, metrics: MetricsModel, definitions) -> Optional[float]:
    """
    Returns the rule confidence in (0, 1] when every condition holds,
    None otherwise. Caller must check is_evaluable first.
    """
    confidence = 1.0
    for cond in rule.conditions:
        defn = definitions[cond.metric]
        value = metrics.get(cond.metric)
        excess = condition_excess(cond, value, defn)
        if excess is None:
            return None
        confidence = min(confidence, excess / condition_limit(cond, value, defn))
    return max(0.0, min(1.0, confidence))
