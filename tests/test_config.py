"""Tests for action configuration loading.

Covers:
  - Shipped configurations load and validate
  - Unsupported actions
  - Directory override through MOTIONVERSE_CONFIG_DIR
  - Invalid YAML, duplicate action ids, bad metric shapes
  - Rules that would fire inside an ideal range are rejected
"""

import pytest
from pydantic import ValidationError

from motionverse.config.registry import get_action_config, list_actions, load_action_config
from motionverse.pipeline.errors import ConfigurationError, UnsupportedActionError

from conftest import make_config

MINIMAL = """\
action_id: {action_id}
sport: test
categories:
  - name: timing
metrics:
  - name: offset
    kind: timing
    unit: ms
    category: timing
    keyframes: [peak_displacement, release]
    ideal_range: [0, 100]
    max_deviation: 50
"""


SHIPPED = [
    "basketball_dribbling",
    "basketball_free_throw",
    "basketball_jump_shot",
    "basketball_layup",
    "volleyball_block",
    "volleyball_serve",
    "volleyball_set",
    "volleyball_spike",
]


def _timing_metric(**kw):
    m = {
        "name": "offset",
        "kind": "timing",
        "category": "timing",
        "keyframes": ["peak_displacement", "release"],
        "ideal_range": [0, 100],
        "max_deviation": 50,
    }
    m.update(kw)
    return m


# ============================================================================
# Shipped configurations
# ============================================================================

class TestShipped:

    def test_shipped_actions(self):
        ids = sorted(cfg.action_id for cfg in list_actions())
        assert ids == SHIPPED

    @pytest.mark.parametrize("action", SHIPPED)
    def test_every_metric_category_weighted(self, action):
        cfg = get_action_config(action)
        assert cfg.metrics
        assert cfg.rules
        for m in cfg.metrics:
            assert cfg.category_weight(m.category) > 0

    def test_spike_measures_contact_and_posture(self):
        names = {m.name for m in get_action_config("volleyball_spike").metrics}
        assert {"contact_height", "trunk_rotation", "body_alignment", "arm_swing_speed"} <= names

    def test_both_arm_metrics(self):
        assert get_action_config("volleyball_block").metric("arm_extension").both_sides
        assert get_action_config("volleyball_set").metric("elbow_angle").both_sides

    def test_config_is_frozen(self):
        cfg = get_action_config("basketball_jump_shot")
        with pytest.raises(ValidationError):
            cfg.sport = "football"

    def test_same_object_returned(self):
        assert get_action_config("volleyball_spike") is get_action_config("volleyball_spike")

    def test_unsupported_action(self):
        with pytest.raises(UnsupportedActionError) as exc:
            get_action_config("cricket_cover_drive")
        assert exc.value.code == "ACTION_UNSUPPORTED"


# ============================================================================
# Loading from a directory
# ============================================================================

class TestDirectory:

    def test_env_override(self, tmp_path, monkeypatch):
        (tmp_path / "mini.yaml").write_text(MINIMAL.format(action_id="mini"))
        monkeypatch.setenv("MOTIONVERSE_CONFIG_DIR", str(tmp_path))
        cfg = get_action_config("mini")
        assert cfg.metric("offset").unit == "ms"
        assert [c.action_id for c in list_actions()] == ["mini"]

    def test_explicit_directory(self, tmp_path):
        (tmp_path / "a.yaml").write_text(MINIMAL.format(action_id="a_action"))
        assert get_action_config("a_action", directory=tmp_path).sport == "test"

    def test_duplicate_action_id(self, tmp_path):
        (tmp_path / "one.yaml").write_text(MINIMAL.format(action_id="dup"))
        (tmp_path / "two.yaml").write_text(MINIMAL.format(action_id="dup"))
        with pytest.raises(ConfigurationError):
            list_actions(directory=tmp_path)

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("action_id: [unclosed\n")
        with pytest.raises(ConfigurationError) as exc:
            load_action_config(path)
        assert exc.value.code == "CONFIG_INVALID"

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ConfigurationError):
            load_action_config(path)

    def test_schema_error_wrapped(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text(MINIMAL.format(action_id="bad").replace("max_deviation: 50", "max_deviation: -1"))
        with pytest.raises(ConfigurationError):
            load_action_config(path)


# ============================================================================
# Validation
# ============================================================================

class TestValidation:

    def test_wrong_keyframe_count(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(keyframes=["release"])])

    def test_wrong_landmark_count(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(kind="joint_angle", keyframes=["release"], landmarks=["elbow", "wrist"])])

    def test_unknown_keyframe(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(keyframes=["peak_displacement", "landing"])])

    def test_inverted_ideal_range(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(ideal_range=[100, 0])])

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric()], categories=[{"name": "form"}])

    def test_duplicate_metric_names(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(), _timing_metric()])

    def test_rule_inside_ideal_range_rejected(self):
        rule = {
            "id": "late", "title": "Late", "severity": "low", "correction": "earlier",
            "conditions": [{"metric": "offset", "op": "above", "threshold": 50}],
        }
        with pytest.raises(ValidationError):
            make_config([_timing_metric()], rules=[rule])

    def test_rule_on_unknown_metric_rejected(self):
        rule = {
            "id": "late", "title": "Late", "severity": "low", "correction": "earlier",
            "conditions": [{"metric": "missing", "op": "above", "threshold": 150}],
        }
        with pytest.raises(ValidationError):
            make_config([_timing_metric()], rules=[rule])

    def test_threshold_required(self):
        rule = {
            "id": "late", "title": "Late", "severity": "low", "correction": "earlier",
            "conditions": [{"metric": "offset", "op": "above"}],
        }
        with pytest.raises(ValidationError):
            make_config([_timing_metric()], rules=[rule])

    def test_posture_kind_accepts_one_or_two_keyframes(self):
        base = {"kind": "relative_height", "landmarks": ["wrist", "mid_shoulder", "mid_ankle"]}
        make_config([_timing_metric(keyframes=["release"], **base)])
        make_config([_timing_metric(keyframes=["start", "end"], **base)])
        with pytest.raises(ValidationError):
            make_config([_timing_metric(keyframes=["start", "release", "end"], **base)])

    def test_both_sides_only_on_joint_angle(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(kind="segment_angle", keyframes=["release"],
                                        landmarks=["elbow", "wrist"], both_sides=True)])

    def test_both_sides_needs_side_relative_names(self):
        with pytest.raises(ValidationError):
            make_config([_timing_metric(kind="joint_angle", keyframes=["release"],
                                        landmarks=["left_shoulder", "left_elbow", "left_wrist"], both_sides=True)])
