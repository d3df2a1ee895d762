"""Tests for report generation module."""

from __future__ import annotations

import json
import tempfile
from datetime import datetime
from pathlib import Path

import pytest

from wellness_labs.report import (
    ReportGenerator,
    SessionReport,
    build_motor_report,
    build_voice_report,
    generate_session_report,
)


@pytest.fixture
def sample_report():
    """Create a sample Stroop report."""
    return SessionReport(
        test_type="stroop",
        timestamp=datetime(2024, 3, 1, 14, 30),
        trials=[
            {
                "trial": 1,
                "rt": 512,
                "correct": True,
                "type": "hit",
                "stimulus": {"word": "red", "color": "blue"},
                "response": "blue",
            },
            {
                "trial": 2,
                "rt": None,
                "correct": False,
                "type": "miss",
                "stimulus": {"word": "green", "color": "green"},
                "response": None,
            },
        ],
        summary={"avgRT": 512.0, "accuracy": 50.0, "hits": 1, "misses": 1},
    )


class TestSessionReport:
    """Tests for SessionReport."""

    def test_to_dict(self, sample_report):
        """Test report dictionary layout."""
        data = sample_report.to_dict()

        assert data["testType"] == "stroop"
        assert data["timestamp"] == "2024-03-01T14:30:00"
        assert len(data["trials"]) == 2
        assert data["summary"]["accuracy"] == 50.0

    def test_to_json(self, sample_report):
        """Test JSON export parses back."""
        data = json.loads(sample_report.to_json())

        assert data["trials"][0]["stimulus"] == {"word": "red", "color": "blue"}

    def test_trial_rows(self, sample_report):
        """Test tabular rows with a header."""
        rows = sample_report.trial_rows()

        assert rows[0] == ["trial", "rt_ms", "correct", "type", "stimulus", "response"]
        assert rows[1] == [1, 512, 1, "hit", '{"word": "red", "color": "blue"}', "blue"]
        assert rows[2][1] == ""
        assert rows[2][2] == 0
        assert rows[2][5] == ""


class TestReportGenerator:
    """Tests for ReportGenerator."""

    @pytest.fixture
    def generator(self):
        """Create report generator."""
        return ReportGenerator()

    def test_format_number_filter(self, generator):
        """Test number formatting filter."""
        assert generator._format_number(3.14159, 2) == "3.14"
        assert generator._format_number(20) == "20"
        assert generator._format_number(None) == "n/a"

    def test_format_date_filter(self, generator):
        """Test date formatting filter."""
        assert generator._format_date(datetime(2024, 1, 15, 9, 5)) == "2024-01-15 09:05"

    def test_label_filter(self, generator):
        """Test key labels."""
        assert generator._label("falseAlarms") == "False Alarms"
        assert generator._label("tap_rate") == "Tap rate"

    def test_render_string(self, generator):
        """Test rendering a template string."""
        result = generator.render_string("{{ x | format_number(1) }} Hz", {"x": 2.26})

        assert result == "2.3 Hz"

    def test_generate_session_report(self, generator, sample_report):
        """Test Markdown session report."""
        content = generator.generate_session_report(sample_report)

        assert "# Eye & Cognition Lab - Stroop Test" in content
        assert "**Date:** 2024-03-01 14:30" in content
        assert "- **Accuracy:** 50.00" in content
        assert "- **Avg RT:** 512.00" in content
        assert "- **Hits:** 1" in content
        assert "| trial | rt_ms | correct | type | stimulus | response |" in content
        assert "| 1 | 512 | 1 | hit |" in content
        assert "not a diagnostic device" in content

    def test_save_report_to_file(self, generator, sample_report):
        """Test saving report to file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            output_path = Path(tmpdir) / "report.md"
            content = generator.generate_session_report(sample_report, output_path)

            assert output_path.exists()
            assert output_path.read_text() == content

    def test_template_dir(self, temp_dir, sample_report):
        """Test a session_report.md in the template directory replaces the built-in layout."""
        (temp_dir / "session_report.md").write_text(
            "{{ title }}: {{ report.summary.hits }} hits, {{ rows | length - 1 }} trials"
        )
        generator = ReportGenerator(temp_dir)

        result = generator.generate_session_report(sample_report)

        assert result == "Eye & Cognition Lab - Stroop Test: 1 hits, 2 trials"

    def test_template_dir_without_override(self, temp_dir, sample_report):
        """Test an empty template directory falls back to the built-in layout."""
        generator = ReportGenerator(temp_dir)

        result = generator.generate_session_report(sample_report)

        assert result.startswith("# Eye & Cognition Lab - Stroop Test")


class TestReportBuilders:
    """Tests for per-lab report builders."""

    def test_motor_report(self, scheduler):
        """Test motor report summary and notes."""
        from wellness_labs.labs.motor import MotorLab

        lab = MotorLab(scheduler=scheduler)
        report = build_motor_report(lab.assessment())

        assert report.test_type == "motor"
        assert report.trials == []
        assert report.summary["tapCount"] == 0
        assert report.summary["coordinationLevel"] == "Poor"
        assert len(report.notes) == 3
        assert report.recommendations

        content = generate_session_report(report)
        assert "# Motor Lab - Finger Tapping & Tremor" in content
        assert "## Recommendations" in content
        assert "## Trials" not in content

    def test_voice_report(self, scheduler):
        """Test voice report flags placeholder values."""
        from wellness_labs.labs.voice import FallbackPolicy, VoiceLab

        lab = VoiceLab(scheduler=scheduler, fallback=FallbackPolicy(enabled=True, seed=2))
        report = build_voice_report(lab.analyze())

        assert report.test_type == "voice"
        assert report.summary["riskLevel"] in ("Low", "Medium", "High")
        assert report.notes == ["Placeholder values were used for: pitch, jitter, loudness"]

    def test_cognition_report_drops_d_prime(self, battery):
        """Test non n-back reports omit d'."""
        from wellness_labs.labs.simulate import run_battery

        run_battery(battery, "saccade")
        report = battery.report()

        assert report.test_type == "saccade"
        assert "dPrime" not in report.summary
        assert len(report.trial_rows()) == 21
