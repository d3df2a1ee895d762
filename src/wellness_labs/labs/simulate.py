"""
Synthetic Inputs
================

Deterministic stand-ins for the capture layer: hand landmarks with tapping
and tremor, sung tones, and a scripted participant for the cognition tests.
Used by the CLI demos and the test suite.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from ..core.scheduler import Scheduler
from .cognition import CognitionBattery, CognitionTest, Phase, SaccadeTarget, SessionSummary
from .motor import HandLandmarks, MotorFrame


@dataclass
class SyntheticHand:
    """
    Parametric hand performing finger taps with a wrist tremor.

    Fingertip separation follows ``gap * (1 - cos(2*pi*tap_hz*t)) / 2`` so the
    fingers touch at every multiple of ``1 / tap_hz``.
    """

    width: int = 640
    height: int = 480
    tap_hz: float = 3.0
    open_gap_px: float = 120.0
    tremor_hz: float = 5.0
    tremor_amplitude: float = 0.01  # fraction of frame height
    wrist_y: float = 0.6
    start_ms: float = 0.0

    def landmarks_at(self, now_ms: float) -> HandLandmarks:
        t = (now_ms - self.start_ms) / 1000.0
        wy = self.wrist_y + self.tremor_amplitude * math.sin(2 * math.pi * self.tremor_hz * t)
        if self.tap_hz:
            gap = self.open_gap_px * (1 - math.cos(2 * math.pi * self.tap_hz * t)) / 2
        else:
            gap = self.open_gap_px

        # Joints spread above the wrist; only tips 4 and 8 matter for tapping
        points = [(0.5, wy)] + [
            (0.5 + 0.01 * (i % 5), wy - 0.02 * (i // 4 + 1)) for i in range(1, 21)
        ]
        tip_y = wy - 0.2
        points[4] = (0.5, tip_y)
        points[8] = (0.5 + gap / self.width, tip_y)
        return HandLandmarks(tuple(points))

    def frame_at(self, now_ms: float) -> MotorFrame:
        return MotorFrame(
            hands=(self.landmarks_at(now_ms),),
            width=self.width,
            height=self.height,
            timestamp_ms=now_ms,
        )

    def __call__(self, now_ms: float) -> MotorFrame:
        return self.frame_at(now_ms)


def motor_frames(hand: SyntheticHand, duration_s: float, fps: float = 30.0) -> Iterator[MotorFrame]:
    """Frames sampled at ``fps`` for ``duration_s`` seconds."""
    n = int(duration_s * fps)
    for i in range(n):
        yield hand.frame_at(hand.start_ms + i * 1000.0 / fps)


def tone(
    frequency: float,
    sample_rate: float = 44100.0,
    n: int = 1024,
    amplitude: float = 0.3,
    phase: float = 0.0,
) -> np.ndarray:
    """Pure sine frame."""
    t = np.arange(n) / sample_rate
    return amplitude * np.sin(2 * np.pi * frequency * t + phase)


def voice_frames(
    frequency: float,
    duration_s: float,
    sample_rate: float = 44100.0,
    frame_size: int = 1024,
    amplitude: float = 0.3,
    wobble_hz: float = 0.0,
    noise: float = 0.0,
    seed: int | None = None,
) -> Iterator[np.ndarray]:
    """
    Consecutive frames of a sustained vowel.

    Args:
        frequency: Base pitch in Hz
        duration_s: Total duration
        wobble_hz: Std of per-frame random pitch variation (creates jitter)
        noise: Std of additive white noise
    """
    rng = np.random.default_rng(seed)
    n_frames = int(duration_s * sample_rate / frame_size)
    phase = 0.0
    for _ in range(n_frames):
        f = frequency + (rng.normal(0, wobble_hz) if wobble_hz else 0.0)
        frame = tone(f, sample_rate, frame_size, amplitude, phase)
        phase = (phase + 2 * np.pi * f * frame_size / sample_rate) % (2 * np.pi)
        if noise:
            frame = frame + rng.normal(0, noise, frame_size)
        yield frame


class ScriptedParticipant:
    """
    Answers cognition trials after a fixed reaction time.

    With probability ``accuracy`` the answer is correct (click on the target,
    the ink colour, a match press exactly on targets); otherwise it is wrong.
    """

    def __init__(
        self,
        battery: CognitionBattery,
        accuracy: float = 1.0,
        reaction_ms: float = 450.0,
        area: tuple[float, float] = (800.0, 600.0),
        rng: np.random.Generator | None = None,
    ):
        self.battery = battery
        self.accuracy = accuracy
        self.reaction_ms = reaction_ms
        self.area = area
        self.rng = rng or np.random.default_rng()
        self._seen = 0

    def _timeout(self) -> float:
        cfg = self.battery.config
        return {
            CognitionTest.SACCADE: cfg.saccade_timeout_ms,
            CognitionTest.STROOP: cfg.stroop_timeout_ms,
            CognitionTest.NBACK: cfg.nback_soa_ms,
        }[self.battery.test_type]

    def observe(self) -> None:
        """Schedule an answer when a new trial appears."""
        battery = self.battery
        if battery.phase != Phase.RUNNING or battery.current_trial == self._seen:
            return
        self._seen = battery.current_trial
        rt = min(self.reaction_ms, self._timeout() - 1)
        delay = max(0.0, battery.trial_started_at + rt - battery.scheduler.now)
        correct = self.rng.random() < self.accuracy
        battery.scheduler.call_later(delay, self._answer, self._seen, correct)

    def _answer(self, trial: int, correct: bool) -> None:
        battery = self.battery
        if battery.phase != Phase.RUNNING or battery.current_trial != trial:
            return
        stimulus = battery.current_stimulus
        if battery.test_type == CognitionTest.SACCADE:
            target: SaccadeTarget = stimulus
            w, h = self.area
            if correct:
                battery.respond_saccade(target.x / 100 * w, target.y / 100 * h, w, h)
            else:
                x = (target.x + 50) % 100
                battery.respond_saccade(x / 100 * w, target.y / 100 * h, w, h)
        elif battery.test_type == CognitionTest.STROOP:
            if correct:
                battery.respond_stroop(stimulus.color)
            else:
                wrong = [c for c in battery.config.colors if c != stimulus.color]
                battery.respond_stroop(wrong[int(self.rng.integers(len(wrong)))])
        else:
            press = battery.current_is_target if correct else not battery.current_is_target
            if press:
                battery.respond_match()

    def reset(self) -> None:
        self._seen = 0


def run_battery(
    battery: CognitionBattery,
    test_type: CognitionTest | str,
    participant: ScriptedParticipant | None = None,
    step_ms: float = 10.0,
) -> SessionSummary:
    """
    Run a full test with a scripted participant on the battery's scheduler.

    Returns:
        Summary of the completed session
    """
    scheduler: Scheduler = battery.scheduler
    participant = participant or ScriptedParticipant(battery)
    participant.reset()
    battery.start(test_type)

    cfg = battery.config
    per_trial = max(cfg.saccade_timeout_ms, cfg.stroop_timeout_ms, cfg.nback_soa_ms) + cfg.inter_trial_ms
    deadline = scheduler.now + cfg.lead_in_ms + cfg.total_trials * per_trial + 1000

    while battery.phase != Phase.COMPLETE and scheduler.now < deadline:
        scheduler.advance(step_ms)
        participant.observe()
    return battery.summary()
