"""Apply command implementation.

Reconciles the system with the catalogue: installs missing packages,
writes stale files and applies settings, then reports what changed.
"""

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType
from typing import Annotated

import typer

from provctl.cli.display import create_outcomes_table, print_run_summary
from provctl.cli.types import ExitCode, get_config, is_quiet, require_items, require_platform
from provctl.core.actions import ActionFactory
from provctl.core.backup import BackupManager
from provctl.core.config import EngineConfig
from provctl.core.context import ExecutionContext, SudoSession
from provctl.core.executor import RetryableExecutor
from provctl.core.inspector import StateInspector
from provctl.core.reconcile import Reconciler
from provctl.core.report import ReportGenerator
from provctl.core.state import RunHistory
from provctl.models.item import DesiredStateItem
from provctl.models.platform import PackageManagerKind, PlatformInfo
from provctl.models.report import RunSummary
from provctl.utils.formatting import console, print_error, print_info, print_warning

app = typer.Typer(
    help="Apply the catalogue to the system.",
    invoke_without_command=True,
)

# Reasons the reconciler records for runs stopped by the user
_INTERRUPT_REASONS = ("cancelled", "interrupted")


@contextmanager
def cancel_on_signals(event: threading.Event) -> Iterator[None]:
    """Set ``event`` on SIGINT/SIGTERM while the block runs.

    A second SIGINT raises KeyboardInterrupt to stop immediately.
    Handlers are restored on exit.
    """

    def handler(signum: int, frame: FrameType | None) -> None:
        if event.is_set() and signum == signal.SIGINT:
            raise KeyboardInterrupt
        event.set()
        print_warning("Stopping after the current item (press Ctrl+C again to abort).")

    signals = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signals.append(signal.SIGTERM)

    previous = {}
    try:
        for signum in signals:
            previous[signum] = signal.signal(signum, handler)
    except ValueError:
        # Not in the main thread; signals cannot be handled here
        pass

    try:
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old)


def build_reconciler(
    platform: PlatformInfo,
    config: EngineConfig,
    context: ExecutionContext,
    max_attempts: int | None = None,
    workers: int | None = None,
    cancel_event: threading.Event | None = None,
) -> Reconciler:
    """Wire up the engine components for one run.

    Args:
        platform: Probed platform.
        config: Engine configuration.
        context: Execution context (dry-run, sudo, environment).
        max_attempts: Overrides the configured attempt limit.
        workers: Overrides the configured worker count.
        cancel_event: Event that stops the run between items.

    Returns:
        Ready-to-run Reconciler.
    """
    executor = RetryableExecutor(
        max_attempts=max_attempts or config.max_attempts,
        delay=config.retry_delay,
        backoff=config.retry_backoff,
        cancel_event=cancel_event,
        dry_run=context.dry_run,
    )
    reporter = ReportGenerator(
        report_path=config.effective_report_path,
        history=RunHistory(),
    )
    return Reconciler(
        platform=platform,
        inspector=StateInspector(platform, context),
        actions=ActionFactory(platform, context),
        executor=executor,
        backups=BackupManager(),
        reporter=reporter,
        workers=workers or config.workers,
    )


def _select(items: list[DesiredStateItem], only: list[str]) -> list[DesiredStateItem]:
    """Keep the items named by --only, in catalogue order."""
    known = {item.id for item in items}
    unknown = [item_id for item_id in only if item_id not in known]
    if unknown:
        print_error(f"Unknown item id(s): {', '.join(unknown)}")
        raise typer.Exit(code=ExitCode.FAILED)
    wanted = set(only)
    return [item for item in items if item.id in wanted]


def _needs_sudo(platform: PlatformInfo, items: list[DesiredStateItem]) -> bool:
    """Check if any in-scope item will run a privileged command."""
    return platform.package_manager == PackageManagerKind.APT and any(
        item.is_package and item.applies_to(platform.variant) for item in items
    )


def exit_code_for(summary: RunSummary) -> ExitCode:
    """Map a run summary to the process exit code."""
    if summary.incomplete and summary.abort_reason in _INTERRUPT_REASONS:
        return ExitCode.INTERRUPTED
    if summary.failed or summary.incomplete:
        return ExitCode.FAILED
    return ExitCode.OK


@app.callback(invoke_without_command=True)
def apply(
    ctx: typer.Context,
    catalog: Annotated[
        Path | None,
        typer.Option(
            "--catalog",
            "-c",
            help="Catalogue file (default: ~/.config/provctl/catalog.toml).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Inspect only; show what would change without changing it.",
        ),
    ] = False,
    max_attempts: Annotated[
        int | None,
        typer.Option(
            "--max-attempts",
            min=1,
            max=10,
            help="Attempts per action (default from config: 3).",
        ),
    ] = None,
    workers: Annotated[
        int | None,
        typer.Option(
            "--workers",
            "-j",
            min=1,
            max=16,
            help="Write up to this many files concurrently.",
        ),
    ] = None,
    only: Annotated[
        list[str] | None,
        typer.Option(
            "--only",
            help="Reconcile only this item id (repeatable).",
        ),
    ] = None,
) -> None:
    """Bring the system to the state described by the catalogue.

    Items that already match are left untouched. Files and settings are
    backed up before being overwritten. A failing item does not stop the
    run unless it is marked fatal.

    Examples:
        provctl apply --dry-run
        provctl apply
        provctl apply --only package:git --only file:~/.zshrc
    """
    if ctx.invoked_subcommand is not None:
        return

    config = get_config(ctx)
    items = require_items(catalog)
    platform = require_platform()

    if only:
        items = _select(items, only)

    if not items:
        print_info("Nothing to do: catalogue is empty.")
        return

    context = ExecutionContext(dry_run=dry_run, use_sudo=config.use_sudo)
    cancel_event = threading.Event()
    reconciler = build_reconciler(platform, config, context, max_attempts, workers, cancel_event)

    if dry_run:
        print_info("Dry run: no changes will be made.")

    session = SudoSession(context)
    try:
        if not dry_run and _needs_sudo(platform, items) and not session.start():
            print_warning("Could not obtain administrator privileges; package installs will fail.")

        with cancel_on_signals(cancel_event):
            report = reconciler.reconcile(items)
    except KeyboardInterrupt:
        print_error("Interrupted.")
        raise typer.Exit(code=ExitCode.INTERRUPTED) from None
    finally:
        session.close()

    summary = RunSummary.from_report(report)
    if not is_quiet(ctx):
        console.print(create_outcomes_table(summary.items))
    print_run_summary(summary)
    print_info(f"Report written to {config.effective_report_path}")

    code = exit_code_for(summary)
    if code != ExitCode.OK:
        raise typer.Exit(code=code)
