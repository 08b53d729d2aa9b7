"""Tests for the scoring engine.

Covers:
  - Sub-score boundaries, falloff shapes and monotonicity
  - Strict (within) and asymmetric tolerances
  - Category / overall aggregation and omitted categories
  - Confidence and labels
  - Determinism
"""

import pytest

from motionverse.models.metrics_model import MetricsModel, MetricValue
from motionverse.pipeline.scoring_stage import ScoringEngine, metric_subscore, round_half_up

from conftest import make_config


def _metric(name, category="form", weight=1.0, ideal=(40, 60), max_dev=20, **kw):
    m = {
        "name": name,
        "kind": "timing",
        "unit": "ms",
        "keyframes": ["peak_displacement", "release"],
        "category": category,
        "weight": weight,
        "ideal_range": list(ideal),
        "max_deviation": max_dev,
    }
    m.update(kw)
    return m


def _values(**kw):
    return MetricsModel(values={
        k: (MetricValue.ok(v, "ms") if v is not None else MetricValue.unavailable("ms", "test"))
        for k, v in kw.items()
    })


# ============================================================================
# Sub-scores
# ============================================================================

class TestSubscore:

    def _defn(self, **kw):
        return make_config([_metric("a", **kw)]).metrics[0]

    @pytest.mark.parametrize("value", [40.0, 50.0, 60.0])
    def test_inside_and_boundaries_score_100(self, value):
        assert metric_subscore(self._defn(), value) == 100.0

    @pytest.mark.parametrize("value", [20.0, 80.0, 10.0, 200.0])
    def test_at_or_past_max_deviation_scores_0(self, value):
        assert metric_subscore(self._defn(), value) == 0.0

    def test_linear_midpoint(self):
        assert metric_subscore(self._defn(), 70.0) == pytest.approx(50.0)
        assert metric_subscore(self._defn(), 30.0) == pytest.approx(50.0)

    def test_smooth_midpoint(self):
        d = self._defn(falloff="smooth")
        assert metric_subscore(d, 70.0) == pytest.approx(50.0)
        assert metric_subscore(d, 65.0) > metric_subscore(self._defn(), 65.0)

    @pytest.mark.parametrize("falloff", ["linear", "smooth"])
    def test_monotonic_non_increasing(self, falloff):
        d = self._defn(falloff=falloff)
        above = [metric_subscore(d, 60.0 + 0.5 * k) for k in range(60)]
        below = [metric_subscore(d, 40.0 - 0.5 * k) for k in range(60)]
        for seq in (above, below):
            assert all(b <= a for a, b in zip(seq, seq[1:]))
            assert min(seq) >= 0.0

    def test_within_is_strict(self):
        d = self._defn(directionality="within")
        assert metric_subscore(d, 60.0) == 100.0
        assert metric_subscore(d, 60.01) == 0.0

    def test_asymmetric_deviation(self):
        d = self._defn(max_deviation_above=5)
        assert metric_subscore(d, 62.5) == pytest.approx(50.0)
        assert metric_subscore(d, 30.0) == pytest.approx(50.0)


# ============================================================================
# Aggregation
# ============================================================================

class TestAggregation:

    def _config(self):
        return make_config(
            [
                _metric("a", category="form", weight=3.0),
                _metric("b", category="form", weight=1.0),
                _metric("c", category="power"),
            ],
            categories=[{"name": "form", "weight": 3.0}, {"name": "power", "weight": 1.0}],
        )

    def test_weighted_category_average(self):
        score = ScoringEngine().compute(_values(a=50.0, b=70.0, c=50.0), self._config())
        # form = (3*100 + 1*50) / 4
        assert score.breakdown == {"form": 88, "power": 100}
        # overall = (3*87.5 + 100) / 4
        assert score.overall == 91
        assert score.confidence == 1.0
        assert score.label == "EXCELLENT"

    def test_empty_category_omitted(self):
        score = ScoringEngine().compute(_values(a=50.0, b=50.0, c=None), self._config())
        assert "power" not in score.breakdown
        assert score.breakdown == {"form": 100}
        assert score.overall == 100
        assert score.confidence == pytest.approx(2 / 3)
        assert score.details["c"].included is False
        assert score.details["c"].exclude_reason == "test"

    def test_category_uses_only_available_metrics(self):
        score = ScoringEngine().compute(_values(a=None, b=70.0, c=50.0), self._config())
        assert score.breakdown["form"] == 50

    def test_nothing_available(self):
        score = ScoringEngine().compute(_values(a=None, b=None, c=None), self._config())
        assert score.breakdown == {}
        assert score.confidence == 0.0
        assert score.overall == 0
        assert score.label == "INSUFFICIENT_DATA"

    def test_missing_metric_entries_count_as_unavailable(self):
        score = ScoringEngine().compute(MetricsModel(), self._config())
        assert score.confidence == 0.0
        assert all(not d.included for d in score.details.values())

    def test_deterministic(self):
        cfg = self._config()
        m = _values(a=35.0, b=73.2, c=12.0)
        assert ScoringEngine().compute(m, cfg) == ScoringEngine().compute(m, cfg)


# ============================================================================
# Labels / rounding
# ============================================================================

class TestLabels:

    @pytest.mark.parametrize("value, label", [
        (60.0, "EXCELLENT"),   # 100
        (64.0, "EXCELLENT"),   # 80
        (67.0, "GOOD"),        # 65
        (71.0, "NEEDS_WORK"),  # 45
        (72.0, "POOR"),        # 40
    ])
    def test_label_bands(self, value, label):
        cfg = make_config([_metric("a")])
        assert ScoringEngine().compute(_values(a=value), cfg).label == label

    def test_round_half_up(self):
        assert round_half_up(87.5) == 88
        assert round_half_up(86.5) == 87
        assert round_half_up(86.49) == 86
