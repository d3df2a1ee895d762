"""CLI application using Typer."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="labs",
    help="Motor, voice and eye & cognition wellness labs",
    no_args_is_help=True,
)
console = Console()

# Sub-applications
config_app = typer.Typer(help="Configuration management")
motor_app = typer.Typer(help="Finger tapping & tremor lab")
voice_app = typer.Typer(help="Sustained-vowel voice lab")
cognition_app = typer.Typer(help="Eye & cognition tests")

app.add_typer(config_app, name="config")
app.add_typer(motor_app, name="motor")
app.add_typer(voice_app, name="voice")
app.add_typer(cognition_app, name="cognition")


def _write_report(report, output: Path | None, template_dir: Path | None = None) -> None:
    """Write a session report as JSON (``.json``) or Markdown (anything else)."""
    if output is None:
        return
    from wellness_labs.report import generate_session_report

    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() == ".json":
        output.write_text(report.to_json())
    else:
        generate_session_report(report, output, template_dir)
    console.print(f"[green]Report saved to {output}[/green]")


# ============================================================================
# Config commands
# ============================================================================


@config_app.command("show")
def config_show():
    """Show current configuration."""
    from wellness_labs.core.config import get_settings

    settings = get_settings()
    data = settings.to_dict()

    console.print("[bold]Current Configuration[/bold]\n")

    for section, values in data.items():
        console.print(f"[cyan]{section}:[/cyan]")
        if isinstance(values, dict):
            for key, value in values.items():
                console.print(f"  {key}: {value}")
        else:
            console.print(f"  {values}")
        console.print()


@config_app.command("init")
def config_init(
    path: Annotated[Path, typer.Option("--path", "-p", help="Config file path")] = Path(
        "config/settings.yaml"
    ),
):
    """Initialize configuration file."""
    from wellness_labs.core.config import Settings

    path.parent.mkdir(parents=True, exist_ok=True)

    if path.exists():
        console.print(f"[yellow]Config already exists at {path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Abort()

    header = "# Wellness Labs Configuration\n\n"
    path.write_text(header + Settings().to_yaml())
    console.print(f"[green]Created config at {path}[/green]")


# ============================================================================
# Motor commands
# ============================================================================


@motor_app.command("simulate")
def motor_simulate(
    tap_hz: Annotated[float, typer.Option("--tap-hz", help="Taps per second")] = 3.0,
    tremor_hz: Annotated[float, typer.Option("--tremor-hz", help="Wrist tremor frequency")] = 5.0,
    tremor_amplitude: Annotated[
        float, typer.Option("--tremor-amplitude", help="Tremor amplitude (fraction of height)")
    ] = 0.01,
    fps: Annotated[float, typer.Option("--fps", help="Camera frame rate")] = 30.0,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Report path (.md or .json)")
    ] = None,
    template_dir: Annotated[
        Optional[Path], typer.Option("--template-dir", help="Directory with a session_report.md layout")
    ] = None,
):
    """Run a finger-tapping test against a synthetic hand."""
    from wellness_labs.core.config import get_settings
    from wellness_labs.core.logging import setup_logging
    from wellness_labs.core.resources import SharedHandle
    from wellness_labs.core.scheduler import Scheduler
    from wellness_labs.labs.motor import MotorLab
    from wellness_labs.labs.session import LabSession
    from wellness_labs.labs.simulate import SyntheticHand
    from wellness_labs.report import build_motor_report

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.log_file)

    scheduler = Scheduler()
    hand = SyntheticHand(tap_hz=tap_hz, tremor_hz=tremor_hz, tremor_amplitude=tremor_amplitude)
    model = SharedHandle(lambda: hand, name="synthetic hand tracker")
    lab = MotorLab(settings.motor, scheduler)
    session = LabSession(lab, lambda tracker, now: tracker(now), scheduler, model, 1000.0 / fps)

    if not session.start():
        console.print(f"[red]{session.status}[/red]")
        raise typer.Exit(1)

    with console.status("[bold green]Recording..."):
        while lab.recording:
            scheduler.advance(lab.config.tick_ms)
        scheduler.advance(1000.0 / fps)
    session.close()

    assessment = lab.assessment()
    metrics = assessment.metrics

    table = Table(title="Motor Assessment")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_column("Level")
    table.add_row("Taps", str(metrics.tap_count), "")
    table.add_row("Tap rate", f"{metrics.tap_rate:.2f} /s", assessment.speed.level)
    table.add_row("Coordination", f"{metrics.coordination_score}%", assessment.coordination.level)
    table.add_row(
        "Tremor",
        f"{metrics.tremor.dominant_frequency_hz:.2f} Hz, {metrics.tremor.amplitude_percent:.2f}%",
        assessment.tremor.level,
    )
    table.add_row("Movement quality", f"{metrics.movement_quality}%", "")
    console.print(table)

    console.print("\n[bold]Recommendations:[/bold]")
    for item in assessment.recommendations:
        console.print(f"  - {item}")

    _write_report(build_motor_report(assessment), output, template_dir)


# ============================================================================
# Voice commands
# ============================================================================


def _run_voice(frames, sample_rate: float):
    """Record frames through a VoiceLab and print the analysis."""
    from wellness_labs.core.config import get_settings
    from wellness_labs.core.scheduler import Scheduler
    from wellness_labs.labs.voice import VoiceLab

    settings = get_settings()
    scheduler = Scheduler()
    lab = VoiceLab(settings.voice, scheduler)
    lab.start_recording()

    frame_ms = settings.voice.frame_size / sample_rate * 1000.0
    for frame in frames:
        if not lab.recording:
            break
        scheduler.advance(frame_ms)
        lab.step(frame, sample_rate)

    lab.stop_recording()
    scheduler.run_until_idle()
    analysis = lab.analysis
    if analysis is None:
        console.print("[red]No analysis produced[/red]")
        raise typer.Exit(1)

    table = Table(title="Voice Analysis")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Pitch", f"{analysis.pitch:.1f} Hz ({analysis.note})" if analysis.pitch else "-")
    table.add_row("Loudness (RMS)", f"{analysis.loudness:.4f}")
    table.add_row("Jitter", f"{analysis.jitter * 100:.2f}%" if analysis.jitter is not None else "-")
    table.add_row("Quality", f"{analysis.quality_score}/100")
    table.add_row("Risk level", analysis.risk_level)
    console.print(table)

    if analysis.synthetic_fields:
        console.print(
            f"[yellow]Placeholder values used for: {', '.join(analysis.synthetic_fields)}[/yellow]"
        )
    console.print("\n[bold]Recommendations:[/bold]")
    for item in analysis.recommendations:
        console.print(f"  - {item}")
    return analysis


@voice_app.command("simulate")
def voice_simulate(
    frequency: Annotated[float, typer.Option("--frequency", "-f", help="Vowel pitch in Hz")] = 180.0,
    wobble: Annotated[float, typer.Option("--wobble", help="Pitch variation std in Hz")] = 2.0,
    noise: Annotated[float, typer.Option("--noise", help="White noise std")] = 0.0,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Report path (.md or .json)")
    ] = None,
    template_dir: Annotated[
        Optional[Path], typer.Option("--template-dir", help="Directory with a session_report.md layout")
    ] = None,
):
    """Analyze a synthetic sustained vowel."""
    from wellness_labs.core.config import get_settings
    from wellness_labs.core.logging import setup_logging
    from wellness_labs.labs.simulate import voice_frames
    from wellness_labs.report import build_voice_report

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.log_file)

    sample_rate = 44100.0
    frames = voice_frames(
        frequency,
        settings.voice.recording_duration_s + 0.5,
        sample_rate=sample_rate,
        frame_size=settings.voice.frame_size,
        wobble_hz=wobble,
        noise=noise,
        seed=seed,
    )
    analysis = _run_voice(frames, sample_rate)
    _write_report(build_voice_report(analysis), output, template_dir)


@voice_app.command("analyze")
def voice_analyze(
    wav_path: Annotated[Path, typer.Argument(help="WAV file with a sustained vowel")],
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Report path (.md or .json)")
    ] = None,
    template_dir: Annotated[
        Optional[Path], typer.Option("--template-dir", help="Directory with a session_report.md layout")
    ] = None,
):
    """Analyze a recorded WAV file."""
    import numpy as np
    from scipy.io import wavfile

    from wellness_labs.core.config import get_settings
    from wellness_labs.core.logging import setup_logging
    from wellness_labs.report import build_voice_report

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.log_file)

    if not wav_path.exists():
        console.print(f"[red]File not found: {wav_path}[/red]")
        raise typer.Exit(1)

    try:
        sample_rate, data = wavfile.read(wav_path)
    except ValueError as e:
        console.print(f"[red]Could not read {wav_path}: {e}[/red]")
        raise typer.Exit(1)

    if data.ndim > 1:
        data = data.mean(axis=1)
    if np.issubdtype(data.dtype, np.integer):
        data = data / float(np.iinfo(data.dtype).max)
    data = data.astype(np.float64)

    size = settings.voice.frame_size
    frames = (data[i : i + size] for i in range(0, len(data) - size + 1, size))
    analysis = _run_voice(frames, float(sample_rate))
    _write_report(build_voice_report(analysis), output, template_dir)


# ============================================================================
# Cognition commands
# ============================================================================


@cognition_app.command("simulate")
def cognition_simulate(
    test: Annotated[str, typer.Option("--test", "-t", help="saccade, stroop or nback")] = "stroop",
    accuracy: Annotated[
        float, typer.Option("--accuracy", "-a", help="Probability of a correct answer")
    ] = 0.9,
    reaction_ms: Annotated[float, typer.Option("--reaction-ms", help="Reaction time")] = 450.0,
    seed: Annotated[Optional[int], typer.Option("--seed", help="Random seed")] = None,
    output: Annotated[
        Optional[Path], typer.Option("--output", "-o", help="Report path (.md or .json)")
    ] = None,
    template_dir: Annotated[
        Optional[Path], typer.Option("--template-dir", help="Directory with a session_report.md layout")
    ] = None,
):
    """Run a cognition test with a scripted participant."""
    import numpy as np

    from wellness_labs.core.config import get_settings
    from wellness_labs.core.logging import setup_logging
    from wellness_labs.core.scheduler import Scheduler
    from wellness_labs.labs.cognition import CognitionBattery, CognitionTest
    from wellness_labs.labs.simulate import ScriptedParticipant, run_battery

    settings = get_settings()
    setup_logging(settings.logging.level, settings.logging.log_file)

    try:
        test_type = CognitionTest(test.lower())
    except ValueError:
        console.print(f"[red]Unknown test: {test}. Use saccade, stroop or nback.[/red]")
        raise typer.Exit(1)

    rng = np.random.default_rng(seed)
    battery = CognitionBattery(Scheduler(), settings.cognition, rng)
    participant = ScriptedParticipant(battery, accuracy, reaction_ms, rng=rng)

    with console.status(f"[bold green]Running {test_type.value} test..."):
        summary = run_battery(battery, test_type, participant)

    table = Table(title=f"{test_type.value.title()} Results")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    avg = summary.average_reaction_time
    table.add_row("Trials", str(len(battery.trials)))
    table.add_row("Average RT", f"{avg:.0f} ms" if avg is not None else "-")
    table.add_row("Accuracy", f"{summary.accuracy_percent:.1f}%")
    table.add_row("Hits", str(summary.hit_count))
    table.add_row("Misses", str(summary.miss_count))
    table.add_row("False alarms", str(summary.false_alarm_count))
    table.add_row("Correct rejections", str(summary.correct_rejection_count))
    if summary.d_prime is not None:
        table.add_row("d'", f"{summary.d_prime:.2f}")
    console.print(table)

    _write_report(battery.report(), output, template_dir)


# ============================================================================
# Main entry point
# ============================================================================


@app.callback()
def main():
    """Motor, voice and eye & cognition wellness labs."""
    pass


if __name__ == "__main__":
    app()
