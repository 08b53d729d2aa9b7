"""Tests for keyframe detection.

Covers:
  - The synthetic jump shot (peak at 30, release spike at 34, no settle)
  - Short and low-confidence sequences
  - Release window bounds and direction
  - Ordering validation (discard, never reorder)
  - Primary side detection
"""

import pytest

from motionverse.config.action_config import KeyframeConfig, SmoothingConfig
from motionverse.models.events_model import EventFrame, KeyframesModel
from motionverse.models.pose_model import PoseModel
from motionverse.pipeline.events_stage import (
    body_scale,
    detect_keyframes,
    detect_release,
    validate_order,
)
from motionverse.pipeline.smoothing_stage import smooth_sequence
from motionverse.utils.landmarks import LandmarkMapper, detect_primary_side

from conftest import (
    N_FRAMES,
    PEAK_FRAME,
    RELEASE_FRAME,
    TORSO,
    make_frame,
    make_jump_sequence,
    make_static_sequence,
)


def _smoothed(pose):
    return smooth_sequence(pose, SmoothingConfig(window_size=5))


def _mapper():
    return LandmarkMapper(hand="R")


# ============================================================================
# Synthetic jump shot
# ============================================================================

class TestJumpShot:

    def test_keyframes_detected(self, jump_shot_config):
        kf = detect_keyframes(_smoothed(make_jump_sequence()), jump_shot_config.keyframes, _mapper())
        assert kf.start is not None and kf.start.frame <= 2
        assert kf.peak_displacement.frame == PEAK_FRAME
        assert kf.release.frame == RELEASE_FRAME
        assert kf.end.frame == N_FRAMES - 1
        assert kf.is_complete()
        assert kf.diagnostics == []

    def test_ordering_invariant(self, jump_shot_config):
        kf = detect_keyframes(_smoothed(make_jump_sequence()), jump_shot_config.keyframes, _mapper())
        idx = kf.indices()
        assert idx["start"] <= idx["peak_displacement"] <= idx["release"] <= idx["end"]

    def test_event_confidence_in_unit_range(self, jump_shot_config):
        kf = detect_keyframes(_smoothed(make_jump_sequence()), jump_shot_config.keyframes, _mapper())
        for name in ("start", "peak_displacement", "release", "end"):
            assert 0.0 <= getattr(kf, name).conf <= 1.0

    def test_body_scale_is_torso_length(self):
        pose = _smoothed(make_jump_sequence())
        assert body_scale(pose.frames, _mapper(), 0.5) == pytest.approx(TORSO, abs=5e-3)


# ============================================================================
# Insufficient data
# ============================================================================

class TestInsufficientData:

    def test_short_sequence_all_absent(self):
        pose = _smoothed(make_jump_sequence(n=10))
        kf = detect_keyframes(pose, KeyframeConfig(min_frames=15), _mapper())
        assert kf.indices() == {"start": None, "peak_displacement": None, "release": None, "end": None}
        assert any("fewer than" in d for d in kf.diagnostics)

    def test_low_confidence_all_absent(self, jump_shot_config):
        pose = _smoothed(make_jump_sequence(vis=0.1))
        kf = detect_keyframes(pose, jump_shot_config.keyframes, _mapper())
        assert all(v is None for v in kf.indices().values())
        assert kf.diagnostics

    def test_no_motion_has_no_release(self, jump_shot_config):
        pose = _smoothed(make_static_sequence(n=30))
        kf = detect_keyframes(pose, jump_shot_config.keyframes, _mapper())
        # onset never exceeded: start falls back to the first confident frame
        assert kf.start.frame == 0
        assert kf.release is None
        assert any(d.startswith("release") for d in kf.diagnostics)
        # end is anchored on the peak and still present
        assert kf.end is not None
        assert kf.end.frame >= kf.peak_displacement.frame

    def test_empty_sequence(self):
        kf = detect_keyframes(PoseModel(frames=[]), KeyframeConfig(), _mapper())
        assert not kf.is_complete()
        assert kf.diagnostics


# ============================================================================
# Release search
# ============================================================================

class TestRelease:

    def test_release_outside_window_not_found(self):
        pose = _smoothed(make_jump_sequence())
        cfg = KeyframeConfig(release_window=1)
        assert detect_release(pose.frames, _mapper(), cfg, PEAK_FRAME, TORSO) is None

    def test_wrong_direction_not_found(self):
        pose = _smoothed(make_jump_sequence())
        cfg = KeyframeConfig(release_direction="down")
        assert detect_release(pose.frames, _mapper(), cfg, PEAK_FRAME, TORSO) is None

    def test_release_is_max_of_first_run(self):
        pose = _smoothed(make_jump_sequence())
        evt = detect_release(pose.frames, _mapper(), KeyframeConfig(), PEAK_FRAME, TORSO)
        assert evt.frame == RELEASE_FRAME

    def test_outward_direction(self):
        # wrist moves right, away from the shoulder line centred at x=0.5
        frames = []
        for i in range(20):
            x = 0.7 + 0.05 * min(max(i - 9, 0), 3)
            pts = {
                "left_shoulder": (0.4, 0.3), "right_shoulder": (0.6, 0.3),
                "left_hip": (0.4, 0.6), "right_hip": (0.6, 0.6),
                "right_wrist": (x, 0.4),
            }
            frames.append(make_frame(i, pts))
        cfg = KeyframeConfig(release_direction="outward", release_velocity=0.1, release_window=10)
        evt = detect_release(frames, _mapper(), cfg, 8, 0.3)
        assert evt is not None
        assert 10 <= evt.frame <= 12


# ============================================================================
# Ordering validation
# ============================================================================

class TestOrdering:

    def test_violating_keyframe_discarded(self):
        kf = KeyframesModel(
            start=EventFrame(frame=2),
            peak_displacement=EventFrame(frame=20),
            release=EventFrame(frame=15),
            end=EventFrame(frame=40),
        )
        out = validate_order(kf)
        assert out.release is None
        assert out.peak_displacement.frame == 20
        assert out.end.frame == 40
        assert any("release" in d for d in out.diagnostics)

    def test_never_reordered(self):
        kf = KeyframesModel(
            start=EventFrame(frame=30),
            peak_displacement=EventFrame(frame=10),
            end=EventFrame(frame=50),
        )
        out = validate_order(kf)
        assert out.start.frame == 30
        assert out.peak_displacement is None
        assert out.end.frame == 50

    def test_equal_frames_allowed(self):
        kf = KeyframesModel(
            start=EventFrame(frame=5),
            peak_displacement=EventFrame(frame=5),
            release=EventFrame(frame=5),
            end=EventFrame(frame=5),
        )
        assert validate_order(kf).is_complete()


# ============================================================================
# Side detection
# ============================================================================

class TestSide:

    def test_auto_picks_raised_wrist(self):
        assert detect_primary_side(make_jump_sequence().frames) == "R"

    def test_auto_left(self):
        frames = [
            make_frame(i, {"left_wrist": (0.3, 0.2), "right_wrist": (0.7, 0.6)})
            for i in range(5)
        ]
        assert detect_primary_side(frames) == "L"

    def test_missing_wrists_default_right(self):
        frames = [make_frame(i, {"nose": (0.5, 0.2)}) for i in range(5)]
        assert detect_primary_side(frames) == "R"
