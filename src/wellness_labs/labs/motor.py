"""
Motor Lab
=========

Finger-tapping and tremor assessment driven by per-frame hand landmarks.

Each call to ``MotorLab.step`` consumes one frame, updates the lab's single
authoritative state (tap detector, tremor window) and returns a read-only
``MotorMetrics`` snapshot for display.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Sequence

from ..analysis.buffer import RollingBuffer, TimedSample
from ..analysis.scoring import (
    TREMOR_LEVEL_DESCRIPTIONS,
    RiskLevel,
    coordination_level,
    coordination_score,
    movement_quality,
    speed_level,
)
from ..analysis.tapping import WRIST, TapDetector, fingertip_distance, tap_rate, tap_threshold_px
from ..analysis.tremor import EMPTY_TREMOR, FrequencyAnalyzer, TremorMetrics
from ..core.config import MotorConfig
from ..core.scheduler import Scheduler, TimerSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandLandmarks:
    """21 normalized (x, y) landmarks of one detected hand."""

    points: tuple[tuple[float, float], ...]

    @classmethod
    def from_points(cls, points: Sequence[Sequence[float]]) -> HandLandmarks:
        return cls(tuple((float(p[0]), float(p[1])) for p in points))


@dataclass(frozen=True)
class MotorFrame:
    """One camera frame worth of landmark data."""

    hands: tuple[HandLandmarks, ...]
    width: int
    height: int
    timestamp_ms: float


@dataclass(frozen=True)
class MotorMetrics:
    """Read-only projection of the motor lab state."""

    recording: bool
    elapsed_s: float
    tap_count: int
    tap_rate: float
    hands_detected: int
    last_distance_px: int | None
    tap_detected: bool
    tremor: TremorMetrics
    coordination_score: int
    movement_quality: int

    def to_dict(self) -> dict:
        return {
            "recording": self.recording,
            "elapsed_s": self.elapsed_s,
            "tap_count": self.tap_count,
            "tap_rate": self.tap_rate,
            "hands_detected": self.hands_detected,
            "last_distance_px": self.last_distance_px,
            "tap_detected": self.tap_detected,
            "tremor_amplitude_percent": self.tremor.amplitude_percent,
            "tremor_frequency_hz": self.tremor.dominant_frequency_hz,
            "coordination_score": self.coordination_score,
            "movement_quality": self.movement_quality,
        }


@dataclass(frozen=True)
class ClinicalInsight:
    category: str
    findings: list[str]
    significance: str


@dataclass(frozen=True)
class MotorAssessment:
    """End-of-test interpretation of motor metrics."""

    metrics: MotorMetrics
    coordination: RiskLevel
    tremor: RiskLevel
    speed: RiskLevel
    recommendations: list[str] = field(default_factory=list)
    insights: list[ClinicalInsight] = field(default_factory=list)


class MotorLab:
    """Finger-tapping test with live tremor analysis."""

    def __init__(self, config: MotorConfig | None = None, scheduler: Scheduler | None = None):
        self.config = config or MotorConfig()
        self.scheduler = scheduler or Scheduler()
        self.detector = TapDetector(self.config.refractory_ms, self.config.interval_capacity)
        self.tremor_samples: RollingBuffer[TimedSample] = RollingBuffer(self.config.tremor_capacity)
        self.recording = False
        self.status = "Enable the camera to begin motor assessment"
        self._ticks = 0
        self._ticker = TimerSlot(self.scheduler, "motor-duration")
        self._hands = 0
        self._last_distance: int | None = None
        self._tap_detected = False
        self._frame_height: float = 0.0
        self._tremor = EMPTY_TREMOR

    @property
    def elapsed_s(self) -> float:
        return min(self.config.test_duration_s, round(self._ticks * self.config.tick_ms / 1000.0, 1))

    def start(self) -> None:
        """Begin a timed recording, discarding any previous results."""
        if self.recording:
            return
        self.detector.reset()
        self.tremor_samples.clear()
        self._ticks = 0
        self._hands = 0
        self._last_distance = None
        self._tap_detected = False
        self._tremor = EMPTY_TREMOR
        self.recording = True
        self.status = (
            f"Test running - tap index & thumb rapidly for {self.config.test_duration_s:g}s"
        )
        self._ticker.start_every(self.config.tick_ms, self._tick)
        logger.info("Motor test started")

    def stop(self) -> None:
        if not self.recording:
            self._ticker.cancel()
            return
        self.recording = False
        self._ticker.cancel()
        self.status = "Test complete. See results & report below."
        logger.info("Motor test finished: %d taps in %.1fs", self.detector.count, self.elapsed_s)

    def _tick(self) -> None:
        if not self.recording:
            return
        self._ticks += 1
        if self.elapsed_s >= self.config.test_duration_s:
            self.stop()

    def step(self, frame: MotorFrame) -> MotorMetrics:
        """
        Process one frame.

        Frames arriving while no test is running are ignored.
        """
        if not self.recording:
            return self.metrics()

        self._hands = len(frame.hands)
        self._tap_detected = False
        self._frame_height = float(frame.height)

        min_distance: float | None = None
        for hand in frame.hands:
            distance = fingertip_distance(hand.points, frame.width, frame.height)
            if distance is not None and (min_distance is None or distance < min_distance):
                min_distance = distance
            if len(hand.points) > WRIST:
                wrist_y = hand.points[WRIST][1] * frame.height
                self.tremor_samples.push(TimedSample(frame.timestamp_ms, wrist_y))

        if min_distance is not None:
            self._last_distance = int(round(min_distance))
            threshold = tap_threshold_px(frame.width, frame.height, self.config.threshold_fraction)
            if min_distance < threshold:
                self._tap_detected = True
                self.detector.detect(min_distance, threshold, frame.timestamp_ms)

        analyzer = FrequencyAnalyzer(self._frame_height, self.config.min_tremor_samples)
        self._tremor = analyzer.analyze(self.tremor_samples.snapshot())
        return self.metrics()

    def metrics(self) -> MotorMetrics:
        coordination = coordination_score(self.detector.intervals.snapshot())
        return MotorMetrics(
            recording=self.recording,
            elapsed_s=self.elapsed_s,
            tap_count=self.detector.count,
            tap_rate=tap_rate(self.detector.count, self.elapsed_s),
            hands_detected=self._hands,
            last_distance_px=self._last_distance,
            tap_detected=self._tap_detected,
            tremor=self._tremor,
            coordination_score=coordination,
            movement_quality=movement_quality(coordination, self._tremor.amplitude_normalized),
        )

    def assessment(self) -> MotorAssessment:
        """Interpret the current metrics."""
        return assess_motor(self.metrics(), len(self.detector.intervals))


def motor_recommendations(metrics: MotorMetrics) -> list[str]:
    recommendations = []
    if metrics.coordination_score < 60:
        recommendations.append("Consider coordination exercises like finger-to-nose movements")
        recommendations.append("Practice fine motor tasks such as writing or drawing")
    if metrics.tremor.dominant_frequency_hz > 6:
        recommendations.append("Monitor tremor patterns over time for changes")
        recommendations.append("Consider consultation with a neurologist")
        recommendations.append("Avoid caffeine before assessments as it may increase tremor")
    if metrics.tap_rate < 4:
        recommendations.append("Practice rapid alternating movements to improve speed")
        recommendations.append("Consider occupational therapy evaluation")
    if metrics.movement_quality < 70:
        recommendations.append("Regular exercise may help improve overall motor function")
        recommendations.append("Consider tracking improvements over multiple sessions")
    if not recommendations:
        recommendations.append("Excellent motor function - maintain current activity level")
        recommendations.append("Consider periodic re-assessment to monitor any changes")
    return recommendations


def motor_insights(metrics: MotorMetrics, interval_count: int) -> list[ClinicalInsight]:
    coordination = metrics.coordination_score
    frequency = metrics.tremor.dominant_frequency_hz
    pathological = 4 <= frequency <= 12
    return [
        ClinicalInsight(
            category="Motor Coordination",
            findings=[
                f"Coordination score: {coordination}%",
                f"Tap consistency: {'Measured' if interval_count > 1 else 'Insufficient data'}",
                f"Movement pattern: {'Regular' if coordination >= 70 else 'Irregular'}",
            ],
            significance=(
                "Normal coordination patterns suggest intact motor control pathways."
                if coordination >= 70
                else "Irregular patterns may indicate motor control difficulties requiring attention."
            ),
        ),
        ClinicalInsight(
            category="Tremor Assessment",
            findings=[
                f"Dominant frequency: {frequency:.2f} Hz",
                f"Amplitude: {metrics.tremor.amplitude_percent:.2f}%",
                f"Tremor type: {'Potential pathological' if pathological else 'Within normal range'}",
            ],
            significance=(
                "Tremor frequency in 4-12 Hz range may warrant clinical evaluation."
                if pathological
                else "Tremor patterns appear within normal physiological range."
            ),
        ),
        ClinicalInsight(
            category="Movement Speed",
            findings=[
                f"Tap rate: {metrics.tap_rate:.2f} taps/second",
                f"Total taps: {metrics.tap_count} in {metrics.elapsed_s:.1f}s",
                f"Speed classification: {speed_level(metrics.tap_rate).level}",
            ],
            significance=(
                "Movement speed within normal range for finger tapping tasks."
                if metrics.tap_rate >= 5
                else "Reduced movement speed may indicate bradykinesia or motor slowing."
            ),
        ),
    ]


def assess_motor(metrics: MotorMetrics, interval_count: int) -> MotorAssessment:
    return MotorAssessment(
        metrics=metrics,
        coordination=coordination_level(metrics.coordination_score),
        tremor=TREMOR_LEVEL_DESCRIPTIONS[metrics.tremor.level.value],
        speed=speed_level(metrics.tap_rate),
        recommendations=motor_recommendations(metrics),
        insights=motor_insights(metrics, interval_count),
    )
