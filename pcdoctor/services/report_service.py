"""
Report sinks.

A ReportSink consumes a finished DiagnosticReport and renders it somewhere.
Rendering never feeds back into the diagnostic pipeline.
"""

import html
import json
import os
from abc import ABC, abstractmethod
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Union

from pcdoctor import __version__
from pcdoctor.schemas.diagnostics import DiagnosticReport, UpgradeOption, UpgradeRecommendation
from pcdoctor.schemas.hardware import Unavailable
from pcdoctor.utils.logger import get_logger

log = get_logger(__name__)


def to_jsonable(value: Any) -> Any:
    """Convert report values to JSON types, keeping dataclass field order."""
    if isinstance(value, Unavailable):
        return {"status": "unavailable", "category": value.category, "reason": value.reason}
    if isinstance(value, Enum):
        return value.name if isinstance(value.value, int) else value.value
    if isinstance(value, UpgradeOption):
        data = {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
        data["budget_tag"] = value.budget_tag
        return data
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, Path):
        return str(value)
    return value


def report_to_dict(report: DiagnosticReport) -> dict:
    data = {"tool_version": __version__}
    data.update(to_jsonable(report))
    return data


class ReportSink(ABC):
    """Destination for a finished report."""

    @abstractmethod
    def write(self, report: DiagnosticReport) -> Optional[Path]:
        """
        Render the report.

        Returns:
            Path written to, or None for sinks with no file output
        """
        ...


class _FileSink(ReportSink):
    extension = ""

    def __init__(self, output: Union[str, Path]):
        self.output = Path(output)

    def target_path(self, report: DiagnosticReport) -> Path:
        """A directory output gets a timestamped file name inside it."""
        if self.output.suffix:
            return self.output
        stamp = (report.generated_at or "report").replace(":", "").replace("-", "")
        return self.output / f"pcdoctor-{stamp}{self.extension}"

    def write(self, report: DiagnosticReport) -> Path:
        path = self.target_path(report)
        os.makedirs(path.parent, exist_ok=True)
        path.write_text(self.render(report), encoding="utf-8")
        log.info(f"Report written to {path}")
        return path

    @abstractmethod
    def render(self, report: DiagnosticReport) -> str:
        ...


class JsonReportSink(_FileSink):
    extension = ".json"

    def render(self, report: DiagnosticReport) -> str:
        return json.dumps(report_to_dict(report), indent=2)


_PRIORITY_COLORS = {
    "CRITICAL": "#c0392b",
    "HIGH": "#e67e22",
    "MEDIUM": "#d4ac0d",
    "LOW": "#27ae60",
}

_STYLE = """
body { font-family: Segoe UI, Arial, sans-serif; margin: 2em; background: #1e1e1e; color: #ddd; }
h1, h2 { color: #fff; }
table { border-collapse: collapse; margin-bottom: 1.5em; }
td, th { border: 1px solid #444; padding: 4px 10px; text-align: left; }
.badge { padding: 2px 8px; border-radius: 4px; color: #fff; font-weight: bold; }
.warning { color: #e74c3c; font-weight: bold; }
.over { color: #999; }
"""


def _e(value: Any) -> str:
    return html.escape(str(value))


def _badge(name: str) -> str:
    color = _PRIORITY_COLORS.get(name, "#555")
    return f'<span class="badge" style="background:{color}">{_e(name)}</span>'


class HtmlReportSink(_FileSink):
    """Single self-contained HTML page."""

    extension = ".html"

    def render(self, report: DiagnosticReport) -> str:
        parts: List[str] = [
            "<!DOCTYPE html>",
            "<html><head><meta charset=\"utf-8\"><title>PC Doctor Report</title>",
            f"<style>{_STYLE}</style></head><body>",
            "<h1>PC Doctor Report</h1>",
            f"<p>Generated {_e(report.generated_at or '')} &middot; use case <b>{_e(report.use_case.value)}</b>"
            f" &middot; budget ${_e(report.budget_usd)} &middot; {_e(report.target_fps)} fps</p>",
        ]
        parts.extend(self._render_scores(report))
        parts.extend(self._render_bottlenecks(report))
        for rec in report.recommendations:
            parts.extend(self._render_recommendation(rec))
        if report.warnings:
            parts.append("<h2>Health warnings</h2><ul>")
            parts.extend(f"<li>{_e(w)}</li>" for w in report.warnings)
            parts.append("</ul>")
        parts.append("</body></html>")
        return "\n".join(parts)

    def _render_scores(self, report: DiagnosticReport) -> List[str]:
        scores = report.scores
        rows = [
            "<h2>Performance scores</h2><table>",
            f"<tr><th>Gaming</th><td>{scores.gaming:g}</td></tr>",
            f"<tr><th>Recording</th><td>{scores.recording:g}</td></tr>",
            f"<tr><th>Multitasking</th><td>{scores.multitasking:g}</td></tr>",
            "</table>",
        ]
        if scores.missing_inputs:
            rows.append(f"<p>Not scored (unavailable): {_e(', '.join(scores.missing_inputs))}</p>")
        return rows

    def _render_bottlenecks(self, report: DiagnosticReport) -> List[str]:
        if not report.bottlenecks:
            return ["<h2>Bottlenecks</h2><p>No bottlenecks found.</p>"]
        rows = ["<h2>Bottlenecks</h2><table>",
                "<tr><th>Severity</th><th>Component</th><th>Issue</th><th>Current</th><th>Recommended</th></tr>"]
        for b in report.bottlenecks:
            rows.append(
                f"<tr><td>{_badge(b.severity.name)}</td><td>{_e(b.component.value)}</td>"
                f"<td>{_e(b.issue)}</td><td>{_e(b.current_spec)}</td><td>{_e(b.recommendation)}</td></tr>"
            )
        rows.append("</table>")
        return rows

    def _render_recommendation(self, rec: UpgradeRecommendation) -> List[str]:
        rows = [
            f"<h2>{_e(rec.category.value.upper())} {_badge(rec.priority.name)}</h2>",
            f"<p>{_e(rec.reason)}</p>",
        ]
        if rec.critical_warning:
            rows.append(f'<p class="warning">{_e(rec.critical_warning)}</p>')
        options = list(rec.options)
        if rec.best_pick is not None:
            options.append(rec.best_pick)
        if options:
            rows.append("<table><tr><th>Option</th><th>Cost</th><th>Budget</th><th>Notes</th></tr>")
            for option in options:
                css = ' class="over"' if option.within_budget is False else ""
                label = option.label
                if option is rec.best_pick:
                    label = f"Best pick: {label}"
                rows.append(
                    f"<tr{css}><td>{_e(label)}</td><td>${_e(option.estimated_cost_usd)}</td>"
                    f"<td>{_e(option.budget_tag or '')}</td><td>{_e(option.notes)}</td></tr>"
                )
            rows.append("</table>")
        return rows


def sink_for_format(fmt: str, output: Union[str, Path]) -> ReportSink:
    sinks = {"json": JsonReportSink, "html": HtmlReportSink}
    if fmt not in sinks:
        raise ValueError(f"Unknown report format {fmt!r}; expected one of {sorted(sinks)}")
    return sinks[fmt](output)
