"""
Session Report Generator
========================

Structured per-session reports for the labs and Markdown rendering through
Jinja2 templates. Writing files in other formats (CSV, PDF, downloads) is
left to the caller; ``to_json`` and ``trial_rows`` provide the data for it.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

if TYPE_CHECKING:
    from ..labs.cognition import CognitionTest, SessionSummary, Trial
    from ..labs.motor import MotorAssessment
    from ..labs.voice import VoiceAnalysis

TRIAL_COLUMNS = ["trial", "rt_ms", "correct", "type", "stimulus", "response"]


@dataclass
class SessionReport:
    """Report for one completed lab session."""

    test_type: str
    timestamp: datetime
    trials: list[dict[str, Any]]
    summary: dict[str, Any]
    recommendations: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "testType": self.test_type,
            "timestamp": self.timestamp.isoformat(),
            "trials": self.trials,
            "summary": self.summary,
            "recommendations": self.recommendations,
            "notes": self.notes,
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def trial_rows(self) -> list[list[Any]]:
        """Tabular trial rows (header first) for spreadsheet-style exports."""
        rows: list[list[Any]] = [list(TRIAL_COLUMNS)]
        for t in self.trials:
            rows.append(
                [
                    t.get("trial"),
                    "" if t.get("rt") is None else t["rt"],
                    1 if t.get("correct") else 0,
                    t.get("type") or "",
                    json.dumps(t.get("stimulus") if t.get("stimulus") is not None else ""),
                    t.get("response") or "",
                ]
            )
        return rows


class ReportGenerator:
    """Render session reports from templates."""

    def __init__(self, template_dir: str | Path | None = None):
        self.template_dir = Path(template_dir) if template_dir else None

        # Markdown output: only escape HTML/XML templates
        autoescape = select_autoescape(["html", "xml"], default_for_string=False)
        if self.template_dir is not None and self.template_dir.exists():
            self.env = Environment(
                loader=FileSystemLoader(str(self.template_dir)),
                autoescape=autoescape,
                trim_blocks=True,
                lstrip_blocks=True,
            )
        else:
            self.env = Environment(autoescape=autoescape, trim_blocks=True, lstrip_blocks=True)

        # Register custom filters
        self.env.filters["format_number"] = self._format_number
        self.env.filters["format_date"] = self._format_date
        self.env.filters["label"] = self._label

    @staticmethod
    def _format_number(value: Any, decimals: int = 2) -> str:
        """Format number with specified decimals."""
        if value is None:
            return "n/a"
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return f"{value:.{decimals}f}"
        return str(value)

    @staticmethod
    def _format_date(value: datetime, fmt: str = "%Y-%m-%d %H:%M") -> str:
        """Format datetime."""
        if isinstance(value, datetime):
            return value.strftime(fmt)
        return str(value)

    @staticmethod
    def _label(key: str) -> str:
        """camelCase / snake_case key to a readable label."""
        out = []
        for ch in key.replace("_", " "):
            if ch.isupper() and out and out[-1].islower():
                out.append(" ")
            out.append(ch)
        text = "".join(out)
        return text[:1].upper() + text[1:]

    def _has_template(self, template_name: str) -> bool:
        return self.template_dir is not None and (self.template_dir / template_name).is_file()

    def render_template(self, template_name: str, context: dict[str, Any]) -> str:
        """Render a template file with context."""
        template = self.env.get_template(template_name)
        return template.render(**context)

    def render_string(self, template_str: str, context: dict[str, Any]) -> str:
        """Render a template string with context."""
        template = self.env.from_string(template_str)
        return template.render(**context)

    def generate_session_report(
        self,
        report: SessionReport,
        output_path: str | Path | None = None,
        template: str | None = None,
    ) -> str:
        """
        Render a session report as Markdown.

        Args:
            report: SessionReport data
            output_path: Optional path to save report
            template: Template string (defaults to ``session_report.md`` in the
                template directory, then the built-in Markdown layout)

        Returns:
            Rendered report string
        """
        context = {
            "report": report,
            "title": REPORT_TITLES.get(report.test_type, report.test_type),
            "rows": report.trial_rows(),
            "generated_at": datetime.now(),
        }
        if template is None and self._has_template(SESSION_TEMPLATE_NAME):
            content = self.render_template(SESSION_TEMPLATE_NAME, context)
        else:
            content = self.render_string(template or SESSION_REPORT_TEMPLATE, context)

        if output_path:
            Path(output_path).write_text(content)

        return content


SESSION_TEMPLATE_NAME = "session_report.md"

REPORT_TITLES = {
    "saccade": "Eye & Cognition Lab - Saccade Test",
    "stroop": "Eye & Cognition Lab - Stroop Test",
    "nback": "Eye & Cognition Lab - 2-Back Test",
    "motor": "Motor Lab - Finger Tapping & Tremor",
    "voice": "Voice Lab - Sustained Vowel",
}

SESSION_REPORT_TEMPLATE = """# {{ title }}

**Date:** {{ report.timestamp | format_date }}

## Summary

{% for key, value in report.summary.items() %}
- **{{ key | label }}:** {{ value | format_number }}
{% endfor %}
{% if report.recommendations %}

## Recommendations

{% for item in report.recommendations %}
- {{ item }}
{% endfor %}
{% endif %}
{% if report.notes %}

## Notes

{% for note in report.notes %}
- {{ note }}
{% endfor %}
{% endif %}
{% if report.trials %}

## Trials

| {{ rows[0] | join(" | ") }} |
|{% for _ in rows[0] %}---|{% endfor %}

{% for row in rows[1:] %}
| {{ row | join(" | ") }} |
{% endfor %}
{% endif %}

---
*Screening tool, not a diagnostic device. Generated on {{ generated_at | format_date }}*
"""


def build_cognition_report(
    test_type: CognitionTest | str | None,
    trials: Sequence[Trial],
    summary: SessionSummary,
) -> SessionReport:
    """Report for a cognition test."""
    name = getattr(test_type, "value", test_type) or "unknown"
    data = summary.to_dict()
    if name != "nback":
        data.pop("dPrime", None)
    return SessionReport(
        test_type=name,
        timestamp=datetime.now(timezone.utc),
        trials=[t.to_dict() for t in trials],
        summary=data,
    )


def build_motor_report(assessment: MotorAssessment) -> SessionReport:
    """Report for a motor lab recording."""
    m = assessment.metrics
    summary = {
        "tapCount": m.tap_count,
        "tapRate": m.tap_rate,
        "durationS": m.elapsed_s,
        "coordinationScore": m.coordination_score,
        "movementQuality": m.movement_quality,
        "tremorFrequencyHz": m.tremor.dominant_frequency_hz,
        "tremorAmplitudePercent": m.tremor.amplitude_percent,
        "coordinationLevel": assessment.coordination.level,
        "tremorLevel": assessment.tremor.level,
        "speedLevel": assessment.speed.level,
    }
    notes = [
        f"{insight.category}: {insight.significance}" for insight in assessment.insights
    ]
    return SessionReport(
        test_type="motor",
        timestamp=datetime.now(timezone.utc),
        trials=[],
        summary=summary,
        recommendations=list(assessment.recommendations),
        notes=notes,
    )


def build_voice_report(analysis: VoiceAnalysis) -> SessionReport:
    """Report for a voice lab recording."""
    summary = {
        "pitchHz": analysis.pitch,
        "note": analysis.note,
        "loudnessRms": analysis.loudness,
        "jitter": analysis.jitter,
        "qualityScore": analysis.quality_score,
        "riskLevel": analysis.risk_level,
    }
    notes = []
    if analysis.synthetic_fields:
        notes.append(
            "Placeholder values were used for: " + ", ".join(analysis.synthetic_fields)
        )
    return SessionReport(
        test_type="voice",
        timestamp=datetime.fromisoformat(analysis.timestamp),
        trials=[],
        summary=summary,
        recommendations=list(analysis.recommendations),
        notes=notes,
    )


def generate_session_report(
    report: SessionReport,
    output_path: str | Path | None = None,
    template_dir: str | Path | None = None,
) -> str:
    """
    Convenience function to render a session report.

    Args:
        report: SessionReport data
        output_path: Optional output file path
        template_dir: Optional directory holding a ``session_report.md`` override

    Returns:
        Rendered report string
    """
    generator = ReportGenerator(template_dir)
    return generator.generate_session_report(report, output_path)
