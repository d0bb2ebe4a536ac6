"""Command line interface for m2perf."""
from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, Sequence

from ..core.collector import Collector
from ..core.config import PROFILES, RuntimeConfig, load_config
from ..core.context import RunContext, detect_mode
from ..core.models import Finding, Priority
from ..core.narrative import select_enricher
from ..core.pipeline import run_inspectors
from ..core.registry import (
    AREA_ALIASES,
    Inspector,
    builtin_inspectors,
    discover_inspectors,
    load_example_inspector,
    load_inspector,
    select_inspectors,
)
from ..core.synthesis import Synthesizer
from ..core.utils import configure_logging, get_logger, now_utc
from ..reporting import to_json, to_markdown, to_shell_script, write_script

logger = get_logger("cli")

_FORMATS = ("json", "md", "sh")


def _add_analysis_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--magento-root", dest="magento_root", type=Path, default=None)
    parser.add_argument("--profile", choices=PROFILES, default=None)
    parser.add_argument(
        "--areas",
        default="",
        help=f"Comma-separated areas: {', '.join(sorted(AREA_ALIASES))}",
    )
    parser.add_argument(
        "--min-priority",
        dest="min_priority",
        choices=("high", "medium", "low"),
        default=None,
    )
    parser.add_argument("--workers", type=int, default=None, help="Run inspectors on N threads")
    parser.add_argument("--disable", action="append", default=[], help="Skip an inspector by name")
    parser.add_argument("--plugin", action="append", default=[], help="Also run an installed inspector")
    parser.add_argument("--base-url", dest="base_url", default=None)
    parser.add_argument(
        "--allow-dev-mode",
        dest="allow_dev_mode",
        action="store_true",
        help="Adjust recommendations when Magento runs in developer mode",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="m2perf",
        description="m2perf - Magento 2 performance and security advisor",
    )
    parser.add_argument("--output", type=Path, help="Write report to file", default=None)
    parser.add_argument("--format", choices=_FORMATS, default="json")
    parser.add_argument("--config", type=Path, default=None, help="Alternate config.toml")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", action="store_true", default=None)
    verbosity.add_argument("--quiet", action="store_true")

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Inspect an installation")
    _add_analysis_options(analyze_parser)
    analyze_parser.add_argument("--plan", action="store_true", help="Include the action plan")
    analyze_parser.add_argument("--insights", action="store_true", help="Include predictive insights")

    plan_parser = subparsers.add_parser("plan", help="Inspect and synthesize an action plan")
    _add_analysis_options(plan_parser)

    monitor_parser = subparsers.add_parser("monitor", help="Re-run inspectors and report changes")
    _add_analysis_options(monitor_parser)
    monitor_parser.add_argument("--interval", type=float, default=60.0, help="Seconds between passes")
    monitor_parser.add_argument(
        "--count",
        type=int,
        default=0,
        help="Stop after N passes (0 runs until interrupted)",
    )

    inspectors_parser = subparsers.add_parser("inspectors", help="Interact with inspectors")
    inspectors_sub = inspectors_parser.add_subparsers(dest="inspectors_command", required=True)
    inspectors_sub.add_parser("list", help="List available inspectors")

    return parser


def _write_output(path: Path | None, content: str, fmt: str) -> None:
    if path is None:
        print(content)
    elif fmt == "sh":
        write_script(path, content)
        print(f"Script written to {path}", file=sys.stderr)
    else:
        path.write_text(content, encoding="utf-8")
        print(f"Report written to {path}", file=sys.stderr)


def _load_config(args: argparse.Namespace) -> RuntimeConfig:
    return load_config(
        cli_magento_root=args.magento_root,
        cli_profile=args.profile,
        cli_verbose=args.verbose,
        cli_workers=args.workers,
        cli_disabled=args.disable,
        cli_base_url=args.base_url,
        config_path=args.config,
    )


def _select(args: argparse.Namespace, config: RuntimeConfig) -> List[Inspector]:
    areas = [area for area in args.areas.split(",") if area.strip()]
    inspectors = select_inspectors(config.profile, areas, config.disabled_inspectors)
    for name in args.plugin:
        inspectors.append(load_inspector(name))
    return inspectors


def _run_pass(
    args: argparse.Namespace,
    config: RuntimeConfig,
    inspectors: List[Inspector],
    collector: Collector,
) -> List[Finding]:
    # A fresh context per pass so memoized lookups are re-read.
    root = config.magento_root
    mode = detect_mode(root)
    context = RunContext(
        magento_root=root,
        mode=mode,
        dev_mode_aware=args.allow_dev_mode,
        base_url=config.base_url,
    )
    logger.info("Analyzing %s (mode: %s, %d inspectors)", root, mode, len(inspectors))

    report = run_inspectors(inspectors, collector, context, workers=config.workers)
    for name in report.executed:
        logger.debug("%s finished in %.2fs", name, report.timings.get(name, 0.0))
    for name, message in report.failures.items():
        logger.warning("%s did not complete: %s", name, message)

    if args.min_priority:
        return collector.at_least(args.min_priority)
    return collector.all()


def _collect(args: argparse.Namespace, config: RuntimeConfig) -> List[Finding]:
    return _run_pass(args, config, _select(args, config), Collector())


def _monitor(args: argparse.Namespace, config: RuntimeConfig) -> int:
    if args.interval < 0:
        raise ValueError("--interval must not be negative")
    inspectors = _select(args, config)
    collector = Collector()
    previous: List[str] = []
    high = 0
    passes = 0
    try:
        while True:
            collector.clear()
            findings = _run_pass(args, config, inspectors, collector)
            passes += 1
            titles = [finding.title for finding in findings]
            high = sum(1 for finding in findings if finding.priority == Priority.HIGH)
            stamp = now_utc().isoformat(timespec="seconds")
            print(f"{stamp} pass {passes}: {len(findings)} findings ({high} high)", flush=True)
            if passes > 1:
                for title in titles:
                    if title not in previous:
                        print(f"  + {title}", flush=True)
                for title in previous:
                    if title not in titles:
                        print(f"  - {title}", flush=True)
            previous = titles
            if args.count and passes >= args.count:
                break
            time.sleep(args.interval)
    except KeyboardInterrupt:
        print(f"Stopped after {passes} passes", file=sys.stderr)
        return 0
    return 2 if high else 0


def _render(
    findings: List[Finding],
    fmt: str,
    config: RuntimeConfig,
    *,
    with_plan: bool,
    with_insights: bool,
) -> str:
    enricher = select_enricher(config) if with_plan else None
    synthesizer = Synthesizer(config.plan_settings, enricher=enricher)
    plan = synthesizer.build_plan(findings) if with_plan else None
    insights = synthesizer.predictive_insights(findings) if with_insights else None
    if fmt == "md":
        return to_markdown(findings, plan, insights)
    if fmt == "sh":
        return to_shell_script(findings, plan)
    action_plan = synthesizer.rank_by_roi(findings) if with_plan else None
    return to_json(findings, plan, insights, action_plan)


def _list_inspectors() -> int:
    print("Built-in inspectors:")
    for inspector in builtin_inspectors():
        print(f"- {inspector.name} ({inspector.area})")
    discovered = discover_inspectors()
    if discovered:
        print("Installed inspectors:")
        for name in sorted(discovered):
            print(f"- {name} [{discovered[name].source}]")
    try:
        example = load_example_inspector()
    except (ImportError, RuntimeError, TypeError):
        return 0
    print(f"- {example.name} (example plugin)")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose), quiet=args.quiet)
    try:
        if args.command == "inspectors" and args.inspectors_command == "list":
            return _list_inspectors()

        if args.command in {"analyze", "plan"}:
            config = _load_config(args)
            if config.verbose:
                configure_logging(verbose=True)
            findings = _collect(args, config)
            is_plan = args.command == "plan"
            output = _render(
                findings,
                args.format,
                config,
                with_plan=is_plan or args.plan,
                with_insights=is_plan or args.insights,
            )
            _write_output(args.output, output, args.format)
            return 2 if any(f.priority == Priority.HIGH for f in findings) else 0

        if args.command == "monitor":
            config = _load_config(args)
            if config.verbose:
                configure_logging(verbose=True)
            return _monitor(args, config)

        parser.error("Unsupported command")
    except KeyError as exc:
        print(f"Error: {exc.args[0] if exc.args else exc}", file=sys.stderr)
        return 1
    except (ValueError, RuntimeError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
