"""
Validation report generation for scopegrid.

Writes the check results as JSON plus a human-readable summary.
"""

import os

from scopegrid.io.save_artifacts import ensure_dir, save_json
from scopegrid.tracer import get_tracer, trace


def format_check_result(check):
    """Format a single check result for display."""
    status = "PASS" if check.passed else "FAIL"
    severity = check.severity.value.upper()
    return f"[{status}][{severity}] {check.rule_id}: {check.message}"


def summarize_report(report, title="Grid Validation Report"):
    """Human-readable summary text of a ValidationReport."""
    failed = [c for c in report.checks if not c.passed]

    lines = [title, "=" * 40, ""]
    lines.append(f"Total checks: {len(report.checks)}")
    lines.append(f"Passed: {len(report.checks) - len(failed)}")
    lines.append(f"Failed: {len(failed)}")
    lines.append("")

    if failed:
        lines.append("ISSUES:")
        lines.append("-" * 40)
        lines.extend(format_check_result(c) for c in failed)
        lines.append("")

    lines.append("ALL CHECKS:")
    lines.append("-" * 40)
    lines.extend(format_check_result(c) for c in report.checks)
    return "\n".join(lines)


@trace(label="generate_report")
def generate_report(report, out_dir):
    """
    Generate validation report files.

    Creates:
    - validation_report.json: full check results
    - validation_summary.txt: human-readable summary

    Returns (report_path, summary_path).
    """
    tracer = get_tracer()
    ensure_dir(out_dir)

    report_path = os.path.join(out_dir, "validation_report.json")
    save_json(report, report_path)

    summary_path = os.path.join(out_dir, "validation_summary.txt")
    with open(summary_path, "w", encoding="utf-8") as f:
        f.write(summarize_report(report))

    tracer.event(f"Report saved: {len(report.checks)} checks, {report.error_count} errors")
    return report_path, summary_path
