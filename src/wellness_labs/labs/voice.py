"""
Voice Lab
=========

Sustained-vowel analysis: per-frame pitch, loudness and jitter, with peak
tracking during a timed recording and a final ``VoiceAnalysis``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

import numpy as np

from ..analysis.buffer import RollingBuffer
from ..analysis.pitch import PitchEstimator, hz_to_note, relative_jitter
from ..analysis.scoring import voice_quality_score, voice_risk_level, voice_risk_score
from ..core.config import VoiceConfig
from ..core.scheduler import Scheduler, TimerSlot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoiceMetrics:
    """Live per-frame voice metrics."""

    pitch_hz: float | None
    loudness_rms: float
    jitter_relative: float | None
    audio_detected: bool
    risk_score: float
    quality_score: int
    method: str | None = None

    @property
    def note(self) -> str | None:
        return hz_to_note(self.pitch_hz) if self.pitch_hz else None


@dataclass(frozen=True)
class VoiceAnalysis:
    """Final result of one recording."""

    timestamp: str
    pitch: float | None
    note: str | None
    loudness: float
    jitter: float | None
    risk_score: float
    quality_score: int
    risk_level: str
    recommendations: list[str]
    synthetic_fields: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "pitch": self.pitch,
            "note": self.note,
            "loudness": self.loudness,
            "jitter": self.jitter,
            "riskScore": self.risk_score,
            "qualityScore": self.quality_score,
            "riskLevel": self.risk_level,
            "recommendations": list(self.recommendations),
            "syntheticFields": list(self.synthetic_fields),
        }


class FallbackPolicy:
    """
    Placeholder values for recordings without usable signal.

    Disabled by default. When enabled, missing pitch, jitter or loudness are
    drawn from typical adult ranges and the filled fields are listed in
    ``VoiceAnalysis.synthetic_fields``.
    """

    BASE_PITCHES = (120, 140, 160, 180, 200, 220, 240, 260, 280, 300)

    def __init__(self, enabled: bool = False, seed: int | None = None):
        self.enabled = enabled
        self.rng = np.random.default_rng(seed)

    def fill(
        self,
        pitch: float | None,
        jitter: float | None,
        rms: float,
    ) -> tuple[float | None, float | None, float, list[str]]:
        if not self.enabled:
            return pitch, jitter, rms, []

        filled = []
        if not pitch:
            pitch = float(self.rng.choice(self.BASE_PITCHES) + (self.rng.random() - 0.5) * 20)
            filled.append("pitch")
        if not jitter:
            jitter = float(0.01 + self.rng.random() * 0.07)
            filled.append("jitter")
        if rms == 0:
            rms = float(0.02 + self.rng.random() * 0.13)
            filled.append("loudness")
        if filled:
            logger.warning("Voice analysis uses synthetic values for: %s", ", ".join(filled))
        return pitch, jitter, rms, filled


def voice_recommendations(rms: float, jitter: float | None, pitch: float | None) -> list[str]:
    recommendations = []
    if rms < 0.03:
        recommendations.append("Consider speaking louder for better signal quality")
    if jitter and jitter > 0.06:
        recommendations.append("Voice shows some instability - practice sustained vowel sounds")
    if not pitch:
        recommendations.append("No clear pitch detected - ensure steady vocalization")
    if not recommendations:
        recommendations.append("Voice characteristics appear normal")
    return recommendations


class VoiceLab:
    """Live voice analysis with timed recordings."""

    def __init__(
        self,
        config: VoiceConfig | None = None,
        scheduler: Scheduler | None = None,
        estimator: PitchEstimator | None = None,
        fallback: FallbackPolicy | None = None,
    ):
        self.config = config or VoiceConfig()
        self.scheduler = scheduler or Scheduler()
        self.estimator = estimator or PitchEstimator(
            silence_rms=self.config.silence_rms,
            min_correlation=self.config.min_correlation,
            min_pitch_hz=self.config.min_pitch_hz,
            max_pitch_hz=self.config.max_pitch_hz,
            fallback_min_hz=self.config.fallback_min_hz,
            fallback_min_db=self.config.fallback_min_db,
        )
        self.fallback = fallback or FallbackPolicy(self.config.fabricate_missing, self.config.seed)
        self.pitch_history: RollingBuffer[float] = RollingBuffer(self.config.pitch_history)

        self.recording = False
        self.analyzing = False
        self.analysis: VoiceAnalysis | None = None
        self.status = "Enable the microphone to begin"
        self._ticks = 0
        self._ticker = TimerSlot(self.scheduler, "voice-duration")
        self._analysis_timer = TimerSlot(self.scheduler, "voice-analysis")

        self._pitch: float | None = None
        self._rms = 0.0
        self._jitter: float | None = None
        self._audio_detected = False
        self._method: str | None = None

        self.peak_rms = 0.0
        self.peak_pitch: float | None = None
        self.peak_jitter: float | None = None

    @property
    def duration_s(self) -> float:
        return min(self.config.recording_duration_s, self._ticks * self.config.tick_ms / 1000.0)

    def step(self, frame: np.ndarray, sample_rate: float) -> VoiceMetrics:
        """Analyze one audio frame (runs whether or not a recording is active)."""
        buf = np.asarray(frame, dtype=np.float64).ravel()
        self._audio_detected = bool(buf.size and np.max(np.abs(buf)) > self.config.silence_rms)

        estimate = self.estimator.estimate(buf, sample_rate)
        self._rms = estimate.rms
        self._method = estimate.method

        if self.estimator.accept_pitch(estimate.fundamental_hz):
            f0 = estimate.fundamental_hz
            if self.recording:
                self.pitch_history.push(f0)
                self.peak_rms = max(self.peak_rms, estimate.rms)
                if f0 > (self.peak_pitch or 0):
                    self.peak_pitch = f0
            self._pitch = f0

            jitter = relative_jitter(self.pitch_history.snapshot(), self.config.jitter_min_history)
            if jitter is not None:
                self._jitter = jitter
                if self.recording and (self.peak_jitter is None or jitter > self.peak_jitter):
                    self.peak_jitter = jitter
        else:
            self._pitch = None

        return self.metrics()

    def metrics(self) -> VoiceMetrics:
        risk = voice_risk_score(self._rms, self._jitter, self._pitch)
        return VoiceMetrics(
            pitch_hz=self._pitch,
            loudness_rms=self._rms,
            jitter_relative=self._jitter,
            audio_detected=self._audio_detected,
            risk_score=risk,
            quality_score=voice_quality_score(self._rms, self._jitter, self._pitch),
            method=self._method,
        )

    def start_recording(self) -> None:
        if self.recording or self.analyzing:
            return
        self.pitch_history.clear()
        self.peak_rms = 0.0
        self.peak_pitch = None
        self.peak_jitter = None
        self._ticks = 0
        self.analysis = None
        self.recording = True
        self.status = "Recording... Sustain a steady 'aaaa' sound"
        self._ticker.start_every(self.config.tick_ms, self._tick)
        logger.info("Voice recording started")

    def _tick(self) -> None:
        if not self.recording:
            return
        self._ticks += 1
        if self.duration_s >= self.config.recording_duration_s - 1e-9:
            self.stop_recording()

    def stop_recording(self) -> None:
        if not self.recording:
            return
        self.recording = False
        self._ticker.cancel()
        self.analyzing = True
        self.status = "Analyzing your voice sample..."
        self._analysis_timer.start(self.config.analysis_delay_ms, self._finish_analysis)

    def cancel(self) -> None:
        """Abort any recording or pending analysis without producing a result."""
        self.recording = False
        self.analyzing = False
        self._ticker.cancel()
        self._analysis_timer.cancel()
        self.status = "Recording cancelled"

    def _finish_analysis(self) -> None:
        if not self.analyzing:
            return
        self.analyzing = False
        self.analysis = self.analyze()
        self.status = "Analysis complete! You can record again or view detailed results."
        logger.info(
            "Voice analysis: pitch=%s jitter=%s quality=%d",
            self.analysis.pitch,
            self.analysis.jitter,
            self.analysis.quality_score,
        )

    def analyze(self) -> VoiceAnalysis:
        """Build the final analysis from the peak values of the last recording."""
        pitch, jitter, rms, synthetic = self.fallback.fill(
            self.peak_pitch, self.peak_jitter, self.peak_rms
        )
        risk = voice_risk_score(rms, jitter, pitch)
        return VoiceAnalysis(
            timestamp=datetime.now(timezone.utc).isoformat(),
            pitch=pitch,
            note=hz_to_note(pitch) if pitch else None,
            loudness=rms,
            jitter=jitter,
            risk_score=risk,
            quality_score=voice_quality_score(rms, jitter, pitch),
            risk_level=voice_risk_level(risk).level,
            recommendations=voice_recommendations(rms, jitter, pitch),
            synthetic_fields=synthetic,
        )
