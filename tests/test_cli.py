"""Tests for the command-line interface."""

from __future__ import annotations

import json

import numpy as np
import pytest
from typer.testing import CliRunner

from wellness_labs.cli import app


@pytest.fixture
def runner():
    """Typer test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _default_settings():
    """Use default settings regardless of files on disk."""
    from wellness_labs.core import config

    config._settings = config.Settings()
    yield
    config._settings = None


class TestConfigCommands:
    """Tests for config commands."""

    def test_show(self, runner):
        """Test printing the configuration."""
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "motor:" in result.output
        assert "refractory_ms: 200" in result.output

    def test_init(self, runner, temp_dir):
        """Test writing a config file that loads back."""
        from wellness_labs.core.config import Settings

        path = temp_dir / "config" / "settings.yaml"
        result = runner.invoke(app, ["config", "init", "--path", str(path)])

        assert result.exit_code == 0
        assert path.exists()
        assert Settings.from_yaml(path).cognition.total_trials == 20

    def test_init_keeps_existing(self, runner, temp_dir):
        """Test declining to overwrite an existing file."""
        path = temp_dir / "settings.yaml"
        path.write_text("motor: {}\n")

        result = runner.invoke(app, ["config", "init", "--path", str(path)], input="n\n")

        assert result.exit_code != 0
        assert path.read_text() == "motor: {}\n"


class TestMotorCommands:
    """Tests for motor commands."""

    def test_simulate(self, runner, temp_dir):
        """Test a simulated tapping run with a JSON report."""
        output = temp_dir / "motor.json"
        result = runner.invoke(app, ["motor", "simulate", "--output", str(output)])

        assert result.exit_code == 0, result.output
        assert "Motor Assessment" in result.output
        data = json.loads(output.read_text())
        assert data["testType"] == "motor"
        assert data["summary"]["tapCount"] > 0


class TestVoiceCommands:
    """Tests for voice commands."""

    def test_simulate(self, runner, temp_dir):
        """Test a simulated vowel with a Markdown report."""
        output = temp_dir / "voice.md"
        result = runner.invoke(
            app, ["voice", "simulate", "--frequency", "150", "--seed", "1", "--output", str(output)]
        )

        assert result.exit_code == 0, result.output
        assert "Voice Analysis" in result.output
        assert "# Voice Lab - Sustained Vowel" in output.read_text()

    def test_analyze_wav(self, runner, temp_dir):
        """Test analyzing a 16-bit WAV file."""
        from scipy.io import wavfile

        sr = 22050
        t = np.arange(int(sr * 6)) / sr
        data = (0.4 * np.sin(2 * np.pi * 160 * t) * 32767).astype(np.int16)
        wav_path = temp_dir / "vowel.wav"
        wavfile.write(wav_path, sr, data)

        result = runner.invoke(app, ["voice", "analyze", str(wav_path)])

        assert result.exit_code == 0, result.output
        assert "Voice Analysis" in result.output
        assert "Hz" in result.output

    def test_analyze_missing_file(self, runner, temp_dir):
        """Test a missing WAV file fails cleanly."""
        result = runner.invoke(app, ["voice", "analyze", str(temp_dir / "none.wav")])

        assert result.exit_code == 1
        assert "File not found" in result.output


class TestCognitionCommands:
    """Tests for cognition commands."""

    def test_simulate(self, runner, temp_dir):
        """Test a simulated n-back run with a Markdown report."""
        output = temp_dir / "nback.md"
        result = runner.invoke(
            app,
            ["cognition", "simulate", "--test", "nback", "--seed", "3", "--output", str(output)],
        )

        assert result.exit_code == 0, result.output
        assert "Nback Results" in result.output
        content = output.read_text()
        assert "# Eye & Cognition Lab - 2-Back Test" in content
        assert "| trial | rt_ms | correct | type | stimulus | response |" in content

    def test_simulate_with_template_dir(self, runner, temp_dir):
        """Test a custom report layout from a template directory."""
        templates = temp_dir / "templates"
        templates.mkdir()
        (templates / "session_report.md").write_text("{{ title }} | {{ report.trials | length }}")
        output = temp_dir / "stroop.md"

        result = runner.invoke(
            app,
            [
                "cognition", "simulate", "--test", "stroop", "--seed", "1",
                "--output", str(output), "--template-dir", str(templates),
            ],
        )

        assert result.exit_code == 0, result.output
        assert output.read_text() == "Eye & Cognition Lab - Stroop Test | 20"

    def test_unknown_test(self, runner):
        """Test an unknown test name is rejected."""
        result = runner.invoke(app, ["cognition", "simulate", "--test", "memory"])

        assert result.exit_code == 1
        assert "Unknown test" in result.output
