#!/usr/bin/env python3
"""Post-build console report and the advisory collaborator boundary.

The console report always prints. Collaborators (history, metrics, checklist)
run afterwards, each isolated: a failure is logged and listed, and never
changes the build result or the exit code.
"""

import logging
from typing import Callable, List

from buildmate.checklist import generate_checklist
from buildmate.diagnostics import ErrorGroup, ParsedError, ParsedWarning
from buildmate.history import save_results
from buildmate.metrics import record_build_metrics
from buildmate.pipeline import BuildResult
from buildmate.util.color_output import (
    print_cyan,
    print_dim,
    print_heading,
    print_labeled,
    print_plain,
    print_rule,
    print_yellow,
)
from buildmate.util.config import BuildMateConfig
from buildmate.util.exceptions import CollaboratorFailure


logger = logging.getLogger(__name__)

SUMMARY_ITEMS = 3
GROUP_ITEMS = 5


def _print_first(items: List[ParsedError] | List[ParsedWarning]) -> None:
    for i, item in enumerate(items[:SUMMARY_ITEMS], 1):
        print_plain(f"  {i}. {item}")
    if len(items) > SUMMARY_ITEMS:
        print_plain(f"  ... and {len(items) - SUMMARY_ITEMS} more")


def display_summary(result: BuildResult) -> None:
    outcome = result.outcome
    print_plain()
    print_rule()
    if outcome.success and not result.errors:
        print_heading("✅ Build Successful!", "green")
    elif result.timed_out:
        print_heading("⏱️ Build Timed Out!", "red")
    else:
        print_heading("❌ Build Failed!", "red")
    print_plain(f"⏱️  Build time: {outcome.elapsed:.1f}s")
    print_plain(f"📁 Files generated: {len(result.artifacts)}")
    print_plain(f"🔨 Build scripts: {len(result.build_scripts)}")

    if result.errors:
        print_plain()
        print_heading(f"🔴 {len(result.errors)} Error(s):", "red")
        _print_first(result.prioritized_errors or result.errors)
    if result.warnings:
        print_plain()
        print_heading(f"⚠️  {len(result.warnings)} Warning(s):", "yellow")
        _print_first(result.warnings)
    print_rule()


def display_error_groups(groups: List[ErrorGroup]) -> None:
    if not groups:
        return
    print_plain()
    print_heading(f"🔴 {len(groups)} Unique Error Patterns:", "red")
    for i, group in enumerate(groups[:GROUP_ITEMS], 1):
        print_plain(
            f"  {i}. {group.primary_error.message} "
            f"({group.count}x across {len(group.locations)} locations)"
        )
        if group.count > 1:
            print_dim(f"     {group.count} similar variations grouped")


def display_tip(tip: str) -> None:
    print_plain()
    print_cyan(tip)


def display_view_options(result: BuildResult) -> None:
    print_plain("\n🔍 View Options:")
    options = [
        ("buildmate view errors", "View latest errors"),
        ("buildmate view warnings", "View latest warnings"),
        ("buildmate view artifacts", "View generated files"),
        ("buildmate view scripts", "View build script outputs"),
        ("buildmate history", "View build history"),
        ("buildmate checklist", "View checklist and fixes"),
        ("buildmate view all", "View all results in one place"),
    ]
    if result.errors or result.warnings:
        options.append(("buildmate history errors", "Quick view of recent issues"))
    for command, description in options:
        print_labeled(f"  {command}", f" - {description}", "cyan")


def display_report(result: BuildResult) -> None:
    """Print the full console report for a finished build."""
    display_summary(result)
    if result.errors:
        display_error_groups(result.error_groups)
    if result.tip:
        display_tip(result.tip)


def _run_advisory(
    name: str, action: Callable[[], object], failures: List[CollaboratorFailure]
) -> None:
    try:
        action()
    except Exception as e:
        failure = CollaboratorFailure(
            collaborator=name, error=str(e), exception_type=type(e).__name__
        )
        logger.warning(str(failure))
        failures.append(failure)


def run_collaborators(
    result: BuildResult, argv: List[str], config: BuildMateConfig
) -> List[CollaboratorFailure]:
    """Hand the build result to persistence, metrics and checklist generation."""
    failures: List[CollaboratorFailure] = []

    _run_advisory(
        "history",
        lambda: save_results(
            result.errors,
            result.warnings,
            result.artifacts,
            result.build_scripts,
            argv,
            config.data_dir,
            config.history_limit,
        ),
        failures,
    )
    _run_advisory(
        "metrics",
        lambda: record_build_metrics(
            argv,
            result.outcome.elapsed,
            result.outcome.error_count,
            result.outcome.warning_count,
            result.outcome.success,
            crate_units_compiled=len(result.artifacts),
            data_dir=config.data_dir,
            compiler=config.compiler,
            limit=config.metrics_limit,
        ),
        failures,
    )
    if result.errors or result.warnings:
        _run_advisory(
            "checklist",
            lambda: generate_checklist(result.errors, result.warnings, config.data_dir),
            failures,
        )
    return failures


def finish_build(
    result: BuildResult, argv: List[str], config: BuildMateConfig
) -> List[CollaboratorFailure]:
    """Report, persist and point at follow-up commands; returns advisory failures."""
    display_report(result)
    failures = run_collaborators(result, argv, config)
    if failures:
        print_yellow(
            f"\n⚠️  {len(failures)} post-build step(s) failed; build result unaffected:"
        )
        for failure in failures:
            print_yellow(f"  - {failure}")
    elif result.errors or result.warnings:
        print_yellow("\n📋 Run `buildmate checklist` to see your checklist")
    display_view_options(result)
    return failures
