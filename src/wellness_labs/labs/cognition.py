"""
Eye & Cognition Battery
=======================

Saccade reaction, Stroop colour-word and n-back working-memory tests driven
by a trial state machine on the cooperative scheduler.

Phases run ``ready -> instructions -> running -> complete``. Each trial has a
single timeout timer and accepts at most one response. Trial sequences are
generated up front with test-specific balancing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

import numpy as np

from ..analysis.scoring import d_prime, round_half_up
from ..core.config import CognitionConfig
from ..core.scheduler import Scheduler, TimerSlot

logger = logging.getLogger(__name__)


class CognitionTest(str, Enum):
    """Available cognition tests."""

    SACCADE = "saccade"
    STROOP = "stroop"
    NBACK = "nback"


class Phase(str, Enum):
    READY = "ready"
    INSTRUCTIONS = "instructions"
    RUNNING = "running"
    COMPLETE = "complete"


class Outcome(str, Enum):
    HIT = "hit"
    MISS = "miss"
    FALSE_ALARM = "false_alarm"
    CORRECT_REJECTION = "correct_rejection"


INSTRUCTIONS = {
    CognitionTest.SACCADE: (
        "Focus on the center. A dot will appear around the screen - click it as fast "
        "as possible. Clicks anywhere else won't count."
    ),
    CognitionTest.STROOP: "Select the INK COLOR of the word (not the text). Use keys R/B/G/Y or click.",
    CognitionTest.NBACK: (
        "If the current letter matches the one from {n} steps earlier, press Space or "
        "the Match button."
    ),
}

STROOP_KEYS = {"r": "red", "b": "blue", "g": "green", "y": "yellow"}


@dataclass(frozen=True)
class SaccadeTarget:
    """Target position as a percentage of the test area."""

    x: float
    y: float


@dataclass(frozen=True)
class StroopStimulus:
    word: str
    color: str

    @property
    def congruent(self) -> bool:
        return self.word == self.color


@dataclass(frozen=True)
class Trial:
    """One recorded trial; immutable once recorded."""

    index: int  # 1-based
    stimulus: Any
    outcome: Outcome
    correct: bool
    reaction_time_ms: int | None = None
    response: str | None = None

    def to_dict(self) -> dict[str, Any]:
        stimulus = self.stimulus
        if isinstance(stimulus, (SaccadeTarget, StroopStimulus)):
            stimulus = dict(stimulus.__dict__)
        return {
            "trial": self.index,
            "rt": self.reaction_time_ms,
            "correct": self.correct,
            "type": self.outcome.value,
            "stimulus": stimulus,
            "response": self.response,
        }


@dataclass(frozen=True)
class SessionSummary:
    """Summary statistics, always recomputed from the full trial list."""

    average_reaction_time: float | None
    accuracy_percent: float
    hit_count: int
    miss_count: int
    false_alarm_count: int
    correct_rejection_count: int
    d_prime: float | None = None

    @classmethod
    def from_trials(
        cls,
        trials: Sequence[Trial],
        include_d_prime: bool = False,
        total_trials: int | None = None,
    ) -> SessionSummary:
        rts = [t.reaction_time_ms for t in trials if t.reaction_time_ms is not None]
        average = float(np.mean(rts)) if rts else None
        accuracy = sum(1 for t in trials if t.correct) / len(trials) * 100 if trials else 0.0
        counts = {outcome: 0 for outcome in Outcome}
        for trial in trials:
            counts[trial.outcome] += 1

        dp = None
        if include_d_prime:
            dp = d_prime(
                counts[Outcome.HIT],
                counts[Outcome.MISS],
                counts[Outcome.FALSE_ALARM],
                counts[Outcome.CORRECT_REJECTION],
                total_trials if total_trials is not None else len(trials),
            )

        return cls(
            average_reaction_time=average,
            accuracy_percent=round(accuracy, 1),
            hit_count=counts[Outcome.HIT],
            miss_count=counts[Outcome.MISS],
            false_alarm_count=counts[Outcome.FALSE_ALARM],
            correct_rejection_count=counts[Outcome.CORRECT_REJECTION],
            d_prime=dp,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "avgRT": self.average_reaction_time,
            "accuracy": self.accuracy_percent,
            "hits": self.hit_count,
            "misses": self.miss_count,
            "falseAlarms": self.false_alarm_count,
            "correctRejections": self.correct_rejection_count,
            "dPrime": self.d_prime,
        }


# ============================================================================
# Trial generators
# ============================================================================


def make_saccade_trials(rng: np.random.Generator, total: int) -> list[SaccadeTarget]:
    """Uniform target positions within 10-90% of the test area."""
    return [
        SaccadeTarget(float(rng.random() * 80 + 10), float(rng.random() * 80 + 10))
        for _ in range(total)
    ]


def make_stroop_trials(
    rng: np.random.Generator,
    total: int,
    colors: Sequence[str],
) -> list[StroopStimulus]:
    """Half congruent, half incongruent, shuffled."""
    trials = []
    half = total // 2
    for _ in range(half):
        c = colors[rng.integers(len(colors))]
        trials.append(StroopStimulus(word=c, color=c))
    for _ in range(half, total):
        word = colors[rng.integers(len(colors))]
        color = colors[rng.integers(len(colors))]
        while color == word:
            color = colors[rng.integers(len(colors))]
        trials.append(StroopStimulus(word=word, color=color))
    order = rng.permutation(len(trials))
    return [trials[i] for i in order]


def make_nback_sequence(
    rng: np.random.Generator,
    total: int,
    n_back: int,
    letters: Sequence[str],
    target_rate: float = 0.3,
) -> list[str]:
    """
    Letter sequence with forced matches at roughly ``target_rate``.

    Non-target positions never repeat the letter from ``n_back`` steps earlier.
    """
    seq: list[str] = []
    for t in range(total):
        if t >= n_back and rng.random() < target_rate:
            seq.append(seq[t - n_back])
            continue
        letter = letters[rng.integers(len(letters))]
        if t >= n_back:
            while letter == seq[t - n_back]:
                letter = letters[rng.integers(len(letters))]
        seq.append(letter)
    return seq


def is_nback_target(seq: Sequence[str], t: int, n_back: int) -> bool:
    return t >= n_back and seq[t - n_back] == seq[t]


# ============================================================================
# State machine
# ============================================================================


class CognitionBattery:
    """
    Trial state machine for the cognition tests.

    Usage:
        scheduler = Scheduler()
        battery = CognitionBattery(scheduler)
        battery.start(CognitionTest.NBACK)
        scheduler.advance(4000)      # instructions lead-in
        battery.respond_match()      # on target letters
        ...
        summary = battery.summary()
    """

    def __init__(
        self,
        scheduler: Scheduler,
        config: CognitionConfig | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.scheduler = scheduler
        self.config = config or CognitionConfig()
        self.rng = rng or np.random.default_rng()

        self.test_type: CognitionTest | None = None
        self.phase = Phase.READY
        self.status = "Select a cognitive test to begin assessment"
        self.current_trial = 0  # 1-based index of the trial on screen
        self.response_taken = False
        self.trial_started_at = 0.0
        self.stimulus_visible = False
        self.session_results: dict[CognitionTest, tuple[Trial, ...]] = {}

        self._active = False
        self._generation = 0
        self._stimuli: list[Any] = []
        self._results: list[Trial] = []
        self._trial_timer = TimerSlot(scheduler, "trial")
        self._stimulus_timer = TimerSlot(scheduler, "stimulus")

    # ------------------------------------------------------------------ state

    @property
    def active(self) -> bool:
        return self._active

    @property
    def total_trials(self) -> int:
        return self.config.total_trials

    @property
    def trials(self) -> tuple[Trial, ...]:
        return tuple(self._results)

    @property
    def stimuli(self) -> tuple[Any, ...]:
        return tuple(self._stimuli)

    @property
    def progress(self) -> float:
        if self.phase == Phase.COMPLETE:
            return 100.0
        if self.current_trial == 0:
            return 0.0
        return (self.current_trial - 1) / self.total_trials * 100

    @property
    def current_stimulus(self) -> Any:
        if self.phase != Phase.RUNNING or self.current_trial == 0:
            return None
        return self._stimuli[self.current_trial - 1]

    @property
    def current_is_target(self) -> bool:
        """Whether the n-back letter on screen matches the one N steps back."""
        if self.test_type != CognitionTest.NBACK or self.current_stimulus is None:
            return False
        return is_nback_target(self._stimuli, self.current_trial - 1, self.config.n_back)

    # -------------------------------------------------------------- lifecycle

    def start(self, test_type: CognitionTest | str) -> None:
        """Start (or restart) a test with a freshly generated trial sequence."""
        test_type = CognitionTest(test_type)
        self._cancel_timers()
        self._generation += 1
        self._active = True
        self.response_taken = False
        self.stimulus_visible = False
        self._results = []
        self.current_trial = 0
        self.test_type = test_type
        self.phase = Phase.INSTRUCTIONS
        self.status = "Instructions: " + INSTRUCTIONS[test_type].format(n=self.config.n_back)
        self._stimuli = self._generate(test_type)

        generation = self._generation
        self._trial_timer.start(self.config.lead_in_ms, self._begin, generation)
        logger.info("Started %s test (%d trials)", test_type.value, self.total_trials)

    def reset(self) -> None:
        """Abort the current test; nothing in flight is recorded."""
        self._cancel_timers()
        self._generation += 1
        self._active = False
        self.test_type = None
        self.phase = Phase.READY
        self.response_taken = False
        self.stimulus_visible = False
        self._results = []
        self.current_trial = 0
        self.status = "Select a cognitive test to begin assessment"

    def _cancel_timers(self) -> None:
        self._trial_timer.cancel()
        self._stimulus_timer.cancel()

    def _generate(self, test_type: CognitionTest) -> list[Any]:
        cfg = self.config
        if test_type == CognitionTest.SACCADE:
            return make_saccade_trials(self.rng, cfg.total_trials)
        if test_type == CognitionTest.STROOP:
            return make_stroop_trials(self.rng, cfg.total_trials, cfg.colors)
        return make_nback_sequence(
            self.rng, cfg.total_trials, cfg.n_back, cfg.letters, cfg.nback_target_rate
        )

    def _live(self, generation: int) -> bool:
        return self._active and generation == self._generation

    def _begin(self, generation: int) -> None:
        if not self._live(generation):
            return
        self.phase = Phase.RUNNING
        self._run_trial(0, generation)

    def _run_trial(self, t: int, generation: int) -> None:
        if not self._live(generation):
            return
        cfg = self.config
        self.response_taken = False
        self.current_trial = t + 1
        self.trial_started_at = self.scheduler.now
        self.stimulus_visible = True
        self.status = f"Running {self.test_type.value} - Trial {t + 1}/{self.total_trials}"

        if self.test_type == CognitionTest.SACCADE:
            self._trial_timer.start(cfg.saccade_timeout_ms, self._on_timeout, t, generation)
        elif self.test_type == CognitionTest.STROOP:
            self._trial_timer.start(cfg.stroop_timeout_ms, self._on_timeout, t, generation)
        else:
            self._stimulus_timer.start(cfg.nback_stimulus_on_ms, self._hide_stimulus, generation)
            self._trial_timer.start(cfg.nback_soa_ms, self._end_nback_trial, t, generation)

    def _hide_stimulus(self, generation: int) -> None:
        if self._live(generation):
            self.stimulus_visible = False

    def _on_timeout(self, t: int, generation: int) -> None:
        if not self._live(generation):
            return
        if not self.response_taken:
            self.response_taken = True
            self.stimulus_visible = False
            self._record(Trial(index=t + 1, stimulus=self._stimuli[t], outcome=Outcome.MISS, correct=False))
            self._advance_or_finish(t, generation)

    def _end_nback_trial(self, t: int, generation: int) -> None:
        if not self._live(generation):
            return
        if not self.response_taken:
            self.response_taken = True
            target = is_nback_target(self._stimuli, t, self.config.n_back)
            self._record(
                Trial(
                    index=t + 1,
                    stimulus=self._stimuli[t],
                    outcome=Outcome.MISS if target else Outcome.CORRECT_REJECTION,
                    correct=not target,
                )
            )
        self._advance_or_finish(t, generation)

    def _advance_or_finish(self, t: int, generation: int) -> None:
        nxt = t + 1
        if nxt >= self.total_trials:
            self._finish()
        else:
            self._trial_timer.start(self.config.inter_trial_ms, self._run_trial, nxt, generation)

    def _finish(self) -> None:
        self._active = False
        self._cancel_timers()
        self.phase = Phase.COMPLETE
        self.stimulus_visible = False
        self.status = "Test complete! Review your performance and export a report."
        self.session_results[self.test_type] = tuple(self._results)
        summary = self.summary()
        logger.info(
            "%s complete: accuracy %.1f%%, avg RT %s",
            self.test_type.value,
            summary.accuracy_percent,
            "n/a" if summary.average_reaction_time is None else f"{summary.average_reaction_time:.0f} ms",
        )

    def _record(self, trial: Trial) -> None:
        self._results.append(trial)
        logger.debug("Trial %d: %s", trial.index, trial.outcome.value)

    # -------------------------------------------------------------- responses

    def _accepting(self, test_type: CognitionTest) -> bool:
        return (
            self._active
            and self.phase == Phase.RUNNING
            and self.test_type == test_type
            and not self.response_taken
        )

    def _reaction_time(self, now: float | None) -> int:
        now = self.scheduler.now if now is None else now
        return round_half_up(now - self.trial_started_at)

    def respond_saccade(
        self,
        x: float,
        y: float,
        width: float,
        height: float,
        now: float | None = None,
    ) -> Trial | None:
        """
        Click at ``(x, y)`` px inside a ``width`` x ``height`` test area.

        Returns:
            The recorded Trial, or None if the click was ignored
        """
        if not self._accepting(CognitionTest.SACCADE) or not self.stimulus_visible:
            return None
        t = self.current_trial - 1
        target: SaccadeTarget = self._stimuli[t]
        tx = target.x / 100 * width
        ty = target.y / 100 * height
        within = float(np.hypot(x - tx, y - ty)) <= self.config.target_radius_px

        self.response_taken = True
        self.stimulus_visible = False
        self._trial_timer.cancel()
        trial = Trial(
            index=t + 1,
            stimulus=target,
            outcome=Outcome.HIT if within else Outcome.FALSE_ALARM,
            correct=within,
            reaction_time_ms=self._reaction_time(now),
            response="hit" if within else "outside_click",
        )
        self._record(trial)
        self._advance_or_finish(t, self._generation)
        return trial

    def respond_stroop(self, color: str, now: float | None = None) -> Trial | None:
        """Answer the ink colour of the current Stroop word."""
        if not self._accepting(CognitionTest.STROOP):
            return None
        t = self.current_trial - 1
        stimulus: StroopStimulus = self._stimuli[t]
        correct = color == stimulus.color

        self.response_taken = True
        self._trial_timer.cancel()
        trial = Trial(
            index=t + 1,
            stimulus=stimulus,
            outcome=Outcome.HIT if correct else Outcome.FALSE_ALARM,
            correct=correct,
            reaction_time_ms=self._reaction_time(now),
            response=color,
        )
        self._record(trial)
        self._advance_or_finish(t, self._generation)
        return trial

    def respond_match(self, now: float | None = None) -> Trial | None:
        """
        Press "match" for the current n-back letter.

        The trial keeps running until its SOA timer ends so the rhythm is
        unchanged.
        """
        if not self._accepting(CognitionTest.NBACK):
            return None
        t = self.current_trial - 1
        target = is_nback_target(self._stimuli, t, self.config.n_back)

        self.response_taken = True
        trial = Trial(
            index=t + 1,
            stimulus=self._stimuli[t],
            outcome=Outcome.HIT if target else Outcome.FALSE_ALARM,
            correct=target,
            reaction_time_ms=self._reaction_time(now),
            response="match_press",
        )
        self._record(trial)
        return trial

    def handle_key(self, key: str, now: float | None = None) -> Trial | None:
        """Keyboard shortcuts: R/B/G/Y for Stroop, space for n-back."""
        if self.phase != Phase.RUNNING:
            return None
        if self.test_type == CognitionTest.STROOP and key.lower() in STROOP_KEYS:
            return self.respond_stroop(STROOP_KEYS[key.lower()], now)
        if self.test_type == CognitionTest.NBACK and key in (" ", "space", "Space"):
            return self.respond_match(now)
        return None

    # ---------------------------------------------------------------- results

    def summary(self) -> SessionSummary:
        return SessionSummary.from_trials(
            self._results,
            include_d_prime=self.test_type == CognitionTest.NBACK and self.phase == Phase.COMPLETE,
            total_trials=self.total_trials,
        )

    def report(self):
        """Structured report for the current test."""
        from ..report.generator import build_cognition_report

        return build_cognition_report(self.test_type, self.trials, self.summary())
