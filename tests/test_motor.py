"""Tests for the motor lab and lab sessions."""

from __future__ import annotations

import pytest

from wellness_labs.labs.motor import HandLandmarks, MotorFrame, MotorLab
from wellness_labs.labs.simulate import SyntheticHand


def _hand(thumb=(0.5, 0.4), index=(0.6, 0.4), wrist=(0.5, 0.6)) -> HandLandmarks:
    points = [(0.5, 0.5)] * 21
    points[0] = wrist
    points[4] = thumb
    points[8] = index
    return HandLandmarks.from_points(points)


def _run_session(scheduler, lab, hand, fps=30.0):
    from wellness_labs.core.resources import SharedHandle
    from wellness_labs.labs.session import LabSession

    handle = SharedHandle(lambda: hand, name="hand tracker")
    session = LabSession(lab, lambda tracker, now: tracker(now), scheduler, handle, 1000.0 / fps)
    assert session.start()
    while lab.recording:
        scheduler.advance(100)
    scheduler.advance(100)
    return session, handle


class TestMotorLab:
    """Tests for the finger-tapping test."""

    def test_full_test_with_synthetic_hand(self, scheduler):
        """Test a 5 s run tapping at 3 Hz with a 5 Hz tremor."""
        lab = MotorLab(scheduler=scheduler)
        hand = SyntheticHand(tap_hz=3.0, tremor_hz=5.0, tremor_amplitude=0.01)

        session, handle = _run_session(scheduler, lab, hand)
        metrics = lab.metrics()

        assert not lab.recording
        assert metrics.elapsed_s == 5.0
        assert 14 <= metrics.tap_count <= 16
        assert metrics.tap_rate == pytest.approx(3.0, abs=0.3)
        assert metrics.coordination_score > 60
        assert metrics.tremor.dominant_frequency_hz == pytest.approx(5.0, abs=0.1)
        assert metrics.tremor.amplitude_normalized == pytest.approx(0.01 / 2**0.5, rel=0.05)
        assert 0 <= metrics.movement_quality <= 100
        assert lab.status.startswith("Test complete")

        # Session stopped its own loop once the test ended
        assert not session.loop.active
        session.close()
        assert handle.refcount == 0
        assert scheduler.pending == 0

    def test_no_taps_without_touch(self, scheduler):
        """Test fingers held apart never register taps."""
        lab = MotorLab(scheduler=scheduler)
        hand = SyntheticHand(tap_hz=0.0, tremor_amplitude=0.0)

        _run_session(scheduler, lab, hand)
        metrics = lab.metrics()

        assert metrics.tap_count == 0
        assert metrics.tap_rate == 0
        assert metrics.coordination_score == 0
        assert metrics.tremor.dominant_frequency_hz == 0

    def test_frames_ignored_when_idle(self, scheduler):
        """Test frames outside a recording change nothing."""
        lab = MotorLab(scheduler=scheduler)

        metrics = lab.step(MotorFrame((_hand(index=(0.5, 0.4)),), 640, 480, 0.0))

        assert metrics.tap_count == 0
        assert len(lab.tremor_samples) == 0

    def test_tap_refractory_within_lab(self, scheduler):
        """Test consecutive touching frames count once within 200 ms."""
        lab = MotorLab(scheduler=scheduler)
        lab.start()
        touching = _hand(index=(0.51, 0.4))

        for t in (0.0, 33.0, 66.0, 199.0):
            lab.step(MotorFrame((touching,), 640, 480, t))
        assert lab.metrics().tap_count == 1
        assert lab.metrics().tap_detected

        lab.step(MotorFrame((touching,), 640, 480, 250.0))
        assert lab.metrics().tap_count == 2
        assert lab.detector.intervals.snapshot() == (0.0, 250.0)

    def test_closest_hand_is_used(self, scheduler):
        """Test the smallest fingertip distance across hands is measured."""
        lab = MotorLab(scheduler=scheduler)
        lab.start()
        far = _hand(index=(0.9, 0.4))
        near = _hand(index=(0.52, 0.4))

        metrics = lab.step(MotorFrame((far, near), 640, 480, 0.0))

        assert metrics.hands_detected == 2
        assert metrics.last_distance_px == 13
        assert metrics.tap_count == 1
        assert len(lab.tremor_samples) == 2

    def test_no_hands(self, scheduler):
        """Test an empty frame reports zero hands."""
        lab = MotorLab(scheduler=scheduler)
        lab.start()

        metrics = lab.step(MotorFrame((), 640, 480, 0.0))

        assert metrics.hands_detected == 0
        assert metrics.last_distance_px is None

    def test_restart_clears_results(self, scheduler):
        """Test starting again discards the previous run."""
        lab = MotorLab(scheduler=scheduler)
        lab.start()
        lab.step(MotorFrame((_hand(index=(0.5, 0.4)),), 640, 480, 0.0))
        scheduler.advance(5000)
        assert not lab.recording

        lab.start()

        assert lab.metrics().tap_count == 0
        assert lab.elapsed_s == 0
        assert len(lab.tremor_samples) == 0

    def test_stop_early(self, scheduler):
        """Test stopping mid-test keeps the elapsed time."""
        lab = MotorLab(scheduler=scheduler)
        lab.start()
        scheduler.advance(1500)
        lab.stop()
        scheduler.advance(5000)

        assert lab.elapsed_s == 1.5
        assert scheduler.pending == 0


class TestMotorAssessment:
    """Tests for end-of-test interpretation."""

    def test_assessment(self, scheduler):
        """Test levels, recommendations and insights."""
        lab = MotorLab(scheduler=scheduler)
        hand = SyntheticHand(tap_hz=3.0, tremor_hz=7.0)
        _run_session(scheduler, lab, hand)

        assessment = lab.assessment()

        assert assessment.speed.level == "Slow"
        assert assessment.tremor.level == "Moderate"
        assert "Monitor tremor patterns over time for changes" in assessment.recommendations
        assert "Practice rapid alternating movements to improve speed" in assessment.recommendations
        assert [i.category for i in assessment.insights] == [
            "Motor Coordination",
            "Tremor Assessment",
            "Movement Speed",
        ]
        assert "Potential pathological" in assessment.insights[1].findings[2]

    def test_idle_assessment(self):
        """Test an empty run recommends based on zero scores."""
        from wellness_labs.labs.motor import assess_motor

        lab = MotorLab()
        assessment = assess_motor(lab.metrics(), 0)

        assert assessment.coordination.level == "Poor"
        assert assessment.tremor.level == "None"
        assert "Insufficient data" in assessment.insights[0].findings[1]


class TestLabSession:
    """Tests for capture sessions."""

    def test_capture_failure_sets_status(self, scheduler):
        """Test a denied camera leaves the lab idle with a message."""
        from wellness_labs.core.exceptions import PermissionDeniedError
        from wellness_labs.core.resources import SharedHandle
        from wellness_labs.labs.session import LabSession

        def factory():
            raise PermissionDeniedError(device="camera")

        lab = MotorLab(scheduler=scheduler)
        session = LabSession(lab, lambda h, now: None, scheduler, SharedHandle(factory))

        assert not session.start()
        assert session.status == "Camera permission denied. Please allow camera access and try again."
        assert not lab.recording
        assert scheduler.pending == 0

    def test_backend_failure_sets_status(self, scheduler):
        """Test a failing model load is reported."""
        from wellness_labs.core.resources import SharedHandle
        from wellness_labs.labs.session import LabSession

        def factory():
            raise RuntimeError("no weights")

        lab = MotorLab(scheduler=scheduler)
        session = LabSession(lab, lambda h, now: None, scheduler, SharedHandle(factory))

        assert not session.open()
        assert session.status == "Failed to load model. Check the model path."

    def test_frame_error_does_not_stop_test(self, scheduler):
        """Test a bad frame shows an error and later frames still count."""
        from wellness_labs.labs.session import LabSession

        hand = SyntheticHand()
        calls = {"n": 0}

        def source(_, now):
            calls["n"] += 1
            if calls["n"] == 3:
                raise ValueError("corrupt frame")
            return hand(now)

        lab = MotorLab(scheduler=scheduler)
        session = LabSession(lab, source, scheduler, period_ms=50)
        session.start()

        scheduler.advance(150)
        assert "corrupt frame" in session.status
        assert lab.recording

        scheduler.advance(50)
        assert session.status == lab.status
        assert session.loop.errors == 1

        session.close()

    def test_shared_handle_across_sessions(self, scheduler):
        """Test two sessions share one model instance."""
        from wellness_labs.core.resources import SharedHandle
        from wellness_labs.labs.session import LabSession

        created = []
        handle = SharedHandle(lambda: created.append(1) or SyntheticHand(), name="tracker")
        first = LabSession(MotorLab(scheduler=scheduler), lambda h, now: h(now), scheduler, handle)
        second = LabSession(MotorLab(scheduler=scheduler), lambda h, now: h(now), scheduler, handle)

        assert first.open() and second.open()
        assert handle.refcount == 2
        assert len(created) == 1

        first.close()
        assert handle.loaded
        second.close()
        assert not handle.loaded
