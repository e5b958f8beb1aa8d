"""Reconciliation loop.

This module provides the Reconciler that drives every desired state
item through inspect, back up, execute and verify, and records the
outcome of each item in a run report.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections import Counter
from collections.abc import Iterator, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from provctl.core.errors import BackupError, PostConditionError
from provctl.core.paths import expand_path
from provctl.models.item import DesiredStateItem, ItemKind
from provctl.models.outcome import ActionOutcome, OutcomeStatus
from provctl.models.report import RunReport
from provctl.settings import parse_setting_key

if TYPE_CHECKING:
    from provctl.core.actions import ActionFactory
    from provctl.core.backup import BackupManager
    from provctl.core.executor import RetryableExecutor
    from provctl.core.inspector import StateInspector
    from provctl.core.report import ReportGenerator
    from provctl.models.platform import PlatformInfo

logger = logging.getLogger(__name__)

POST_CONDITION_MESSAGE = "post-condition not met"


def check_unique_ids(items: Sequence[DesiredStateItem]) -> None:
    """Reject item lists that reuse an id.

    Raises:
        ValueError: If any id occurs more than once.
    """
    counts = Counter(item.id for item in items)
    duplicates = sorted(item_id for item_id, n in counts.items() if n > 1)
    if duplicates:
        msg = f"Duplicate item ids: {', '.join(duplicates)}"
        raise ValueError(msg)


def warn_shared_targets(items: Sequence[DesiredStateItem]) -> None:
    """Log a warning for items of the same kind that share a target."""
    seen: dict[tuple[ItemKind, str], str] = {}
    for item in items:
        key = (item.kind, item.target)
        if key in seen:
            logger.warning(
                "Items %s and %s share the target %s; the later one wins",
                seen[key],
                item.id,
                item.target,
            )
        else:
            seen[key] = item.id


class Reconciler:
    """Brings the system to the desired state, one item at a time.

    For each item in list order: out-of-scope items are skipped;
    satisfied items are left alone; otherwise the backing file is backed
    up, the action is executed with retries, and the item is inspected
    again to confirm it converged. A failing item does not stop the run
    unless it is marked ``fatal_if_missing``.

    With ``workers > 1`` consecutive file items run concurrently. Any
    other kind of item waits for the running batch to finish. Mutations
    of the same package manager, setting backend or file are serialized
    by a per-resource lock. Outcomes are always recorded in list order.

    The report is finalized on every exit path, including cancellation
    and unexpected exceptions.

    Example:
        >>> reconciler = Reconciler(platform, inspector, actions, executor, backups, reporter)
        >>> report = reconciler.reconcile(items)
        >>> report.has_failures
        False
    """

    def __init__(
        self,
        platform: PlatformInfo,
        inspector: StateInspector,
        actions: ActionFactory,
        executor: RetryableExecutor,
        backups: BackupManager,
        reporter: ReportGenerator,
        workers: int = 1,
    ) -> None:
        if workers < 1:
            msg = f"workers must be at least 1, got {workers}"
            raise ValueError(msg)
        self.platform = platform
        self.inspector = inspector
        self.actions = actions
        self.executor = executor
        self.backups = backups
        self.reporter = reporter
        self.workers = workers
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def cancel_event(self) -> threading.Event:
        """Event that stops the run before the next item."""
        return self.executor.cancel_event

    def cancel(self) -> None:
        """Request the run to stop before the next item."""
        self.cancel_event.set()

    def reconcile(self, items: Sequence[DesiredStateItem]) -> RunReport:
        """Reconcile a list of items.

        Args:
            items: Items in processing order. Ids must be unique.

        Returns:
            The finalized run report.

        Raises:
            ValueError: If item ids are not unique (nothing is processed).
        """
        check_unique_ids(items)
        warn_shared_targets(items)

        report = RunReport(platform=self.platform.describe(), dry_run=self.executor.dry_run)
        logger.info("Run %s started: %d item(s) on %s", report.run_id, len(items), report.platform)

        try:
            self._run(items, report)
        except KeyboardInterrupt:
            report.mark_incomplete("interrupted")
            raise
        except Exception as e:
            report.mark_incomplete(f"unexpected error: {type(e).__name__}: {e}")
            raise
        finally:
            self.reporter.finalize(report)
            logger.info(
                "Run %s finished: %d applied, %d already satisfied, %d skipped, %d failed%s",
                report.run_id,
                report.count(OutcomeStatus.APPLIED),
                report.count(OutcomeStatus.ALREADY_SATISFIED),
                report.count(OutcomeStatus.SKIPPED),
                report.count(OutcomeStatus.FAILED),
                " (incomplete)" if report.incomplete else "",
            )

        return report

    def _run(self, items: Sequence[DesiredStateItem], report: RunReport) -> None:
        for batch in self._batches(items):
            if self.cancel_event.is_set():
                report.mark_incomplete("cancelled")
                remaining = len(items) - len(report.outcomes)
                logger.warning("Run cancelled; %d item(s) not processed", remaining)
                return

            if len(batch) == 1:
                outcomes: list[ActionOutcome | None] = [self.process(batch[0])]
            else:
                with ThreadPoolExecutor(
                    max_workers=self.workers, thread_name_prefix="provctl"
                ) as pool:
                    outcomes = list(pool.map(self._process_unless_cancelled, batch))

            for item, outcome in zip(batch, outcomes, strict=True):
                if outcome is None:
                    report.mark_incomplete("cancelled")
                    return
                report.append(outcome)
                if outcome.failed and item.fatal_if_missing:
                    reason = f"required item {item.id} failed: {outcome.error}"
                    logger.error("Aborting run: %s", reason)
                    report.mark_incomplete(reason)
                    return

    def _batches(self, items: Sequence[DesiredStateItem]) -> Iterator[list[DesiredStateItem]]:
        """Yield items one by one, or runs of file items when workers > 1."""
        if self.workers == 1:
            for item in items:
                yield [item]
            return

        batch: list[DesiredStateItem] = []
        for item in items:
            if item.kind == ItemKind.FILE_CONTENT:
                batch.append(item)
                continue
            if batch:
                yield batch
                batch = []
            yield [item]
        if batch:
            yield batch

    def _process_unless_cancelled(self, item: DesiredStateItem) -> ActionOutcome | None:
        if self.cancel_event.is_set():
            return None
        return self.process(item)

    def process(self, item: DesiredStateItem) -> ActionOutcome:
        """Reconcile a single item and return its outcome."""
        start = time.monotonic()

        if not item.applies_to(self.platform.variant):
            logger.debug("Skipping %s: not in scope for %s", item.id, self.platform.variant.value)
            return ActionOutcome(item_id=item.id, status=OutcomeStatus.SKIPPED)

        with self._lock_for(item):
            outcome = self._converge(item)

        logger.info("%s: %s", item.id, outcome.status.value)
        return outcome.with_changes(duration_seconds=time.monotonic() - start)

    def _converge(self, item: DesiredStateItem) -> ActionOutcome:
        before = self.inspector.inspect(item)
        if before.satisfied:
            return ActionOutcome(
                item_id=item.id,
                status=OutcomeStatus.ALREADY_SATISFIED,
                current_value=before.current_value,
            )

        backup = None
        if item.kind != ItemKind.PACKAGE and not self.executor.dry_run:
            try:
                backing_file = self.inspector.backing_file(item)
            except ValueError:
                backing_file = None
            if backing_file is not None:
                try:
                    backup = self.backups.backup(backing_file)
                except BackupError as e:
                    logger.error("Not touching %s: %s", item.id, e)
                    return ActionOutcome(
                        item_id=item.id,
                        status=OutcomeStatus.FAILED,
                        error=str(e),
                        error_kind=e.kind,
                        current_value=before.current_value,
                    )

        outcome = self.executor.execute(self.actions.for_item(item)).with_changes(
            backup=backup, current_value=before.current_value
        )
        if outcome.status != OutcomeStatus.APPLIED:
            return outcome

        after = self.inspector.inspect(item)
        if not after.satisfied:
            logger.error(
                "%s: %s (current value: %s)", item.id, POST_CONDITION_MESSAGE, after.current_value
            )
            return outcome.with_changes(
                status=OutcomeStatus.FAILED,
                error=POST_CONDITION_MESSAGE,
                error_kind=PostConditionError.kind,
                current_value=after.current_value,
            )
        return outcome.with_changes(current_value=after.current_value)

    def resource_key(self, item: DesiredStateItem) -> str:
        """Return the name of the resource an item mutates."""
        if item.kind == ItemKind.PACKAGE:
            manager = self.platform.package_manager
            return f"package:{manager.value if manager else 'none'}"
        if item.kind == ItemKind.SETTING:
            try:
                backend, _ = parse_setting_key(item.target)
            except ValueError:
                backend = item.target
            return f"setting:{backend}"
        return f"file:{os.path.realpath(expand_path(item.target))}"

    def _lock_for(self, item: DesiredStateItem) -> threading.Lock:
        key = self.resource_key(item)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]
