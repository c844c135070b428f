"""
Rich formatting for compliance output.

Provides standardized formatters for:
- Compliance reports (violations table per validation pass)
- Pipeline summary cards
- SSOT audit results
- Errors with troubleshooting guidance
"""

from typing import Any, Dict, List, Optional

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from blockforge.errors import BlockForgeError
from blockforge.models import ComplianceReport, PipelineResult
from blockforge.ssot_audit import AuditResult

COLORS = {
    "primary": "#D9EAFC",      # Light blue - primary text
    "secondary": "#758B9B",    # Muted blue-gray
    "tertiary": "#94A5CC",     # Medium blue
    "accent1": "#71E4D1",      # Cyan - highlights
    "accent2": "#67CFEE",      # Light cyan
    "success": "#71E4D1",      # Cyan
    "warning": "#FFA500",      # Orange
    "error": "#FF6B6B",        # Red
}


def _message_table(messages: List[str], color: str) -> Table:
    table = Table(
        show_header=True,
        header_style=f"bold {COLORS['primary']}",
        border_style=color,
        show_lines=False,
        padding=(0, 1)
    )
    table.add_column("#", style=COLORS["accent2"], width=4, justify="right")
    table.add_column("Issue", style=COLORS["primary"], no_wrap=False, ratio=1)

    for index, message in enumerate(messages, 1):
        table.add_row(str(index), Text(message))
    return table


class ReportFormatter:
    """Rich renderables for compliance output."""

    @staticmethod
    def compliance_report(report: ComplianceReport) -> Panel:
        """
        Format one validation pass.

        Args:
            report: Compliance report

        Returns:
            Rich Panel, green when clean, orange listing violations otherwise
        """
        if report.passed:
            return Panel(
                Text("+ All validations passed", style=COLORS["success"]),
                title=f"[bold {COLORS['success']}]SSOT Compliance ({report.label})[/bold {COLORS['success']}]",
                border_style=COLORS["success"],
                padding=(0, 1)
            )

        return Panel(
            _message_table(report.violations, COLORS["warning"]),
            title=(
                f"[bold {COLORS['warning']}]SSOT Compliance ({report.label}): "
                f"{len(report.violations)} issue(s)[/bold {COLORS['warning']}]"
            ),
            border_style=COLORS["warning"],
            padding=(0, 1)
        )

    @staticmethod
    def summary_card(
        title: str,
        metrics: Dict[str, Any],
        style: str = "success"
    ) -> Panel:
        style_color = COLORS.get(style, COLORS["success"])

        table = Table.grid(padding=(0, 2))
        table.add_column(style=f"bold {COLORS['primary']}")
        table.add_column(style=COLORS["accent1"])

        for key, value in metrics.items():
            if isinstance(value, bool):
                formatted = "Yes" if value else "No"
            else:
                formatted = str(value)
            table.add_row(f"{key}:", formatted)

        return Panel(
            table,
            title=f"[bold {style_color}]{title}[/bold {style_color}]",
            border_style=style_color,
            padding=(0, 1)
        )

    @classmethod
    def pipeline_result(cls, result: PipelineResult) -> Group:
        """Before/after reports plus a summary card."""
        summary = cls.summary_card(
            f"Block {result.bundle.block_name or '(unnamed)'}",
            {
                "Issues before auto-fix": len(result.initial_report.violations),
                "Fixes applied": ", ".join(result.applied_fixes) or "none",
                "Issues after auto-fix": len(result.final_report.violations),
                "Compliant": result.compliant,
            },
            style="success" if result.compliant else "warning"
        )
        return Group(
            cls.compliance_report(result.initial_report),
            cls.compliance_report(result.final_report),
            summary,
        )

    @staticmethod
    def audit_result(audit: AuditResult, title: str = "SSOT Audit") -> Panel:
        parts = []
        if audit.violations:
            parts.append(Text("Violations", style=f"bold {COLORS['error']}"))
            parts.append(_message_table(audit.violations, COLORS["error"]))
        if audit.warnings:
            parts.append(Text("Warnings", style=f"bold {COLORS['warning']}"))
            parts.append(_message_table(audit.warnings, COLORS["warning"]))
        if not parts:
            parts.append(Text("+ No violations found", style=COLORS["success"]))

        color = COLORS["success"] if audit.valid else COLORS["error"]
        status = "PASSED" if audit.valid else "FAILED"
        return Panel(
            Group(*parts),
            title=f"[bold {color}]{title}: {status}[/bold {color}]",
            border_style=color,
            padding=(0, 1)
        )

    @staticmethod
    def error(error: Exception, suggestion: Optional[str] = None) -> Panel:
        """Format an error; BlockForgeError gets its troubleshooting steps."""
        content = []

        error_line = Text()
        error_line.append("X ", style=COLORS["error"])
        error_line.append(str(error), style=COLORS["error"])
        content.append(error_line)

        if isinstance(error, BlockForgeError):
            guidance = error.get_guidance()
            content.append(Text())
            content.append(Text(guidance.what_happened, style=COLORS["primary"]))
            for step in guidance.troubleshooting:
                line = Text()
                line.append("  * ", style=COLORS["accent1"])
                line.append(step, style=COLORS["primary"])
                content.append(line)
            suggestion = suggestion or guidance.recovery

        if suggestion:
            content.append(Text())
            line = Text()
            line.append("Let's fix that: ", style=COLORS["accent1"])
            line.append(suggestion, style=COLORS["primary"])
            content.append(line)

        title = type(error).__name__
        return Panel(
            Text("\n").join(content),
            title=f"[bold {COLORS['error']}]{title}[/bold {COLORS['error']}]",
            border_style=COLORS["error"],
            padding=(0, 1)
        )
