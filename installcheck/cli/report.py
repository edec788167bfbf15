"""Report output for installcheck CLI.

Two output modes:
- text: one "can't install" block per package (default)
- json: a single JSON document (programmatic consumption)
"""

import json
import sys
from enum import Enum
from typing import List

from . import colors
from ..core.check import CheckResult, InstallReport


class OutputMode(Enum):
    """Output mode for check results."""
    TEXT = "text"
    JSON = "json"


def format_report(report: InstallReport) -> List[str]:
    """Format one uninstallable package as text lines."""
    lines = report.lines()
    header = colors.error("can't install")
    lines[0] = f"{header} {colors.bold(report.nevra)}"
    return lines


def format_text(result: CheckResult) -> List[str]:
    lines = []
    for report in result.reports:
        lines.extend(format_report(report))
    return lines


def to_dict(result: CheckResult) -> dict:
    return {
        'checked': result.checked,
        'rounds': list(result.rounds),
        'survivors': len(result.survivors),
        'uninstallable': [
            {'package': report.nevra, 'problems': report.problems}
            for report in result.reports
        ],
    }


def format_json(result: CheckResult) -> str:
    return json.dumps(to_dict(result), indent=2, ensure_ascii=False)


def print_result(result: CheckResult, mode: OutputMode = OutputMode.TEXT, file=None):
    """Print check results to `file` (default: stdout)."""
    if file is None:
        file = sys.stdout

    if mode == OutputMode.JSON:
        print(format_json(result), file=file)
        return

    for line in format_text(result):
        print(line, file=file)
