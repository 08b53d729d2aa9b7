# motionverse/pipeline/scoring_stage.py
"""
Motionverse — SCORING STAGE

Sub-score per metric against its ideal range, weighted category
averages over the available metrics, and a weighted overall score.
Pure function of (MetricsModel, ActionConfig).
"""

import math
from typing import Dict, Optional

from motionverse.config.action_config import ActionConfig, MetricDefinition
from motionverse.models.context import Context
from motionverse.models.metrics_model import MetricsModel
from motionverse.models.score_model import MetricScore, ScoreModel
from motionverse.utils.logger import stage


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def metric_subscore(defn: MetricDefinition, value: float) -> float:
    """
    100 inside [lo, hi]. Outside, decays to 0 at the configured maximum
    deviation (linear or raised-cosine) and is never negative.
    """
    lo, hi = defn.ideal_range
    if lo <= value <= hi:
        return 100.0
    if defn.directionality == "within":
        return 0.0

    below = value < lo
    dev = (lo - value) if below else (value - hi)
    limit = defn.deviation_limit(below)
    if dev >= limit:
        return 0.0

    if defn.falloff == "smooth":
        score = 50.0 * (1.0 + math.cos(math.pi * dev / limit))
    else:
        score = 100.0 * (1.0 - dev / limit)
    return max(0.0, score)


class ScoringEngine:
    """
    Score thresholds follow the 0.80 / 0.65 / 0.45 label bands.
    """

    # -------------------------------------------------
    # Public entry
    # -------------------------------------------------
    def compute(self, metrics: MetricsModel, config: ActionConfig) -> ScoreModel:
        details: Dict[str, MetricScore] = {}
        sums: Dict[str, float] = {}
        weights: Dict[str, float] = {}

        for defn in config.metrics:
            value = metrics.get(defn.name)
            if value is None:
                mv = metrics.values.get(defn.name)
                details[defn.name] = MetricScore(
                    category=defn.category,
                    exclude_reason=(mv.reason if mv is not None else None) or "unavailable",
                )
                continue

            sub = metric_subscore(defn, value)
            details[defn.name] = MetricScore(
                raw_value=value,
                score=sub,
                included=True,
                category=defn.category,
            )
            sums[defn.category] = sums.get(defn.category, 0.0) + defn.weight * sub
            weights[defn.category] = weights.get(defn.category, 0.0) + defn.weight

        # Categories with nothing available are left out entirely
        category_scores = {c: sums[c] / weights[c] for c in sums}
        overall = self._overall(category_scores, config)

        configured = len(config.metrics)
        available = sum(1 for d in details.values() if d.included)
        confidence = available / configured if configured else 0.0

        rounded = round_half_up(overall) if overall is not None else None
        return ScoreModel(
            overall=rounded or 0,
            breakdown={c: round_half_up(s) for c, s in category_scores.items()},
            confidence=confidence,
            label=self._label(rounded),
            details=details,
        )

    # -------------------------------------------------
    # Helpers
    # -------------------------------------------------
    def _overall(self, category_scores: Dict[str, float], config: ActionConfig) -> Optional[float]:
        if not category_scores:
            return None
        total = 0.0
        wsum = 0.0
        for cat, score in category_scores.items():
            w = config.category_weight(cat)
            total += w * score
            wsum += w
        if wsum <= 0:
            return None
        return total / wsum

    def _label(self, overall: Optional[int]) -> str:
        if overall is None:
            return "INSUFFICIENT_DATA"
        s = overall / 100.0
        if s >= 0.80:
            return "EXCELLENT"
        if s >= 0.65:
            return "GOOD"
        if s >= 0.45:
            return "NEEDS_WORK"
        return "POOR"


def run(ctx: Context, config: ActionConfig) -> Context:
    ctx.score = ScoringEngine().compute(ctx.metrics, config)
    stage(
        "ScoringStage",
        f"overall={ctx.score.overall} label={ctx.score.label} "
        f"confidence={ctx.score.confidence:.2f} breakdown={ctx.score.breakdown}",
    )
    return ctx
