"""Reporting helpers."""

from .jsonout import to_json
from .markdown import parse_markdown_findings, to_markdown
from .script import to_shell_script, write_script

__all__ = ["parse_markdown_findings", "to_json", "to_markdown", "to_shell_script", "write_script"]
