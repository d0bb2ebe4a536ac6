"""Shell fix-script generation.

Scripts are written for a human to review; nothing here executes them.
"""
from __future__ import annotations

import re
import shlex
from pathlib import Path
from typing import Iterable, List, Sequence

from ..core.models import Finding, Plan
from ..core.utils import now_utc

_CONFIG_SET = re.compile(r"bin/magento config:set (\S+) (\S+)")
_COMMAND_PREFIXES = ("bin/magento ", "sysctl ", "echo '", "pecl ", "add_header ")


def normalize_line_endings(content: str) -> str:
    return content.replace("\r\n", "\n").replace("\r", "\n")


def _header(title: str) -> List[str]:
    return [
        "#!/bin/bash",
        f"# {title}",
        f"# Generated: {now_utc().strftime('%Y-%m-%d %H:%M:%S')} UTC",
        "# WARNING: Review all commands before execution",
        "",
        "set -e",
        "",
        'if [ ! -f "bin/magento" ]; then',
        '    echo "Error: bin/magento not found. Please run from Magento root directory."',
        "    exit 1",
        "fi",
        "",
    ]


def _one_line(text: str) -> str:
    return " ".join(text.splitlines())


def _echo(text: str) -> str:
    return f"echo {shlex.quote(text)}"


def _finding_block(finding: Finding) -> List[str]:
    title = _one_line(finding.title)
    lines = [
        f"# [{_one_line(finding.area)}] {finding.priority_label}: {title}",
        _echo(f">> {title}"),
    ]
    settings = _CONFIG_SET.findall(finding.details)
    for path, value in settings:
        lines.extend(
            [
                _echo(f"  -> Setting {path} = {value}"),
                f"if php bin/magento config:set {shlex.quote(path)} {shlex.quote(value)} --lock-config; then",
                f"    {_echo(f'    set {path}')}",
                "else",
                f"    {_echo(f'    could not set {path} (may already be locked or invalid)')}",
                "fi",
            ]
        )
    manual = [
        line.strip()
        for line in finding.details.splitlines()
        if line.strip().startswith(_COMMAND_PREFIXES) and not _CONFIG_SET.search(line)
    ]
    if manual:
        lines.append("# Suggested commands (uncomment after review):")
        lines.extend(f"# {command}" for command in manual)
    if not settings and not manual:
        lines.append(_echo("    Manual action required. See details in analysis report."))
    lines.append('echo ""')
    lines.append("")
    return lines


def _ordered(findings: Sequence[Finding], plan: Plan | None) -> List[Finding]:
    if plan is None:
        return sorted(findings, key=lambda finding: finding.priority, reverse=True)
    ordered: List[Finding] = []
    for item in (*plan.quick_wins, *plan.strategic, *plan.long_term):
        if item.finding not in ordered:
            ordered.append(item.finding)
    return ordered


def to_shell_script(findings: Iterable[Finding], plan: Plan | None = None) -> str:
    """Render a bash script with one block per finding.

    With a plan, only the planned items are included, quick wins first.
    """

    findings = list(findings)
    lines = _header("Magento Performance Fix Script")
    if plan is not None:
        lines.extend(f"# {line}" for line in plan.summary.splitlines())
        lines.append("")
    for finding in _ordered(findings, plan):
        lines.extend(_finding_block(finding))
    lines.extend(
        [
            _echo("Done. Remember to:"),
            _echo("  1. Clear cache: bin/magento cache:clean"),
            _echo("  2. Reindex if needed: bin/magento indexer:reindex"),
            "",
        ]
    )
    return normalize_line_endings("\n".join(lines))


def write_script(path: Path, content: str) -> Path:
    path.write_text(normalize_line_endings(content), encoding="utf-8", newline="\n")
    path.chmod(0o755)
    return path


__all__ = ["normalize_line_endings", "to_shell_script", "write_script"]
