"""Retrying execution of mutating actions.

This module provides the RetryableExecutor that runs a MutatingAction,
classifies failures as transient or fatal, and retries transient
failures with a fixed or linear delay.
"""

import errno
import logging
import subprocess
import threading
from typing import Literal

from provctl.core.actions import MutatingAction
from provctl.core.errors import ExecutionError, FatalExecutionError, TransientExecutionError
from provctl.models.outcome import ActionOutcome, OutcomeStatus
from provctl.utils.shell import truncate_output

logger = logging.getLogger(__name__)

BackoffStrategy = Literal["fixed", "linear"]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 2.0

# OS errors that usually clear up on their own
TRANSIENT_ERRNOS = frozenset(
    {
        errno.EAGAIN,
        errno.EBUSY,
        errno.ETXTBSY,
        errno.ETIMEDOUT,
        errno.EINTR,
    }
)


def classify_exception(exc: Exception) -> ExecutionError:
    """Map any exception raised by an action to an execution error.

    Execution errors are returned unchanged. Timeouts and OS errors with
    a transient errno become TransientExecutionError; everything else,
    including missing files and permission errors, is fatal.
    """
    if isinstance(exc, ExecutionError):
        return exc
    if isinstance(exc, subprocess.TimeoutExpired):
        return TransientExecutionError(f"Command timed out: {exc}")
    if isinstance(exc, (FileNotFoundError, PermissionError)):
        return FatalExecutionError(str(exc))
    if isinstance(exc, OSError) and exc.errno in TRANSIENT_ERRNOS:
        return TransientExecutionError(str(exc))
    return FatalExecutionError(f"{type(exc).__name__}: {exc}")


def error_text(error: ExecutionError) -> str:
    """Return the report text for an execution error, output included."""
    message = str(error) or type(error).__name__
    if error.output:
        return f"{message}: {truncate_output(error.output)}"
    return message


class RetryableExecutor:
    """Runs mutating actions with bounded retries.

    Transient failures are retried up to ``max_attempts`` times in total;
    fatal failures end the item after the first attempt. The wait between
    attempts is interrupted by the cancellation event, in which case the
    remaining retries are abandoned.

    Example:
        >>> executor = RetryableExecutor(max_attempts=3, delay=2.0)
        >>> outcome = executor.execute(action)
        >>> outcome.attempts
        1
    """

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        delay: float = DEFAULT_RETRY_DELAY,
        backoff: BackoffStrategy = "linear",
        cancel_event: threading.Event | None = None,
        dry_run: bool = False,
    ) -> None:
        """Initialize the executor.

        Args:
            max_attempts: Default attempt limit per action (at least 1).
            delay: Base delay in seconds between attempts.
            backoff: "fixed" waits ``delay`` every time; "linear" waits
                ``delay * attempt``.
            cancel_event: Set to abandon pending retries.
            dry_run: If True, actions are never run.

        Raises:
            ValueError: If max_attempts or delay is out of range.
        """
        if max_attempts < 1:
            msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(msg)
        if delay < 0:
            msg = f"delay cannot be negative, got {delay}"
            raise ValueError(msg)
        self.max_attempts = max_attempts
        self.delay = delay
        self.backoff = backoff
        self.cancel_event = cancel_event or threading.Event()
        self.dry_run = dry_run

    def delay_for(self, attempt: int) -> float:
        """Return the wait after failed attempt number ``attempt``."""
        if self.backoff == "linear":
            return self.delay * attempt
        return self.delay

    def execute(self, action: MutatingAction, max_attempts: int | None = None) -> ActionOutcome:
        """Run an action, retrying transient failures.

        Args:
            action: Action to run.
            max_attempts: Attempt limit overriding the executor default.

        Returns:
            APPLIED on success, FAILED with the last error otherwise, or
            SKIPPED with zero attempts in dry-run mode.
        """
        if self.dry_run:
            logger.info("[dry-run] Would %s (%s)", action.description or "run", action.action_id)
            return ActionOutcome(item_id=action.action_id, status=OutcomeStatus.SKIPPED)

        limit = max_attempts if max_attempts is not None else self.max_attempts
        if limit < 1:
            msg = f"max_attempts must be at least 1, got {limit}"
            raise ValueError(msg)

        last_error: ExecutionError | None = None
        attempt = 0
        while attempt < limit:
            attempt += 1
            try:
                output = action.run()
            except Exception as exc:
                error = classify_exception(exc)
                last_error = error
                transient = isinstance(error, TransientExecutionError)
                logger.warning(
                    "Attempt %d/%d for %s failed (%s): %s",
                    attempt,
                    limit,
                    action.action_id,
                    "transient" if transient else "fatal",
                    error_text(error),
                )
                if not transient:
                    break
                if attempt < limit:
                    wait = self.delay_for(attempt)
                    logger.debug("Retrying %s in %.1fs", action.action_id, wait)
                    if self.cancel_event.wait(wait):
                        logger.warning(
                            "Cancelled while waiting to retry %s; abandoning retries",
                            action.action_id,
                        )
                        break
                continue

            logger.info("Attempt %d/%d for %s succeeded", attempt, limit, action.action_id)
            if output:
                logger.debug("%s output: %s", action.action_id, truncate_output(output))
            return ActionOutcome(
                item_id=action.action_id, status=OutcomeStatus.APPLIED, attempts=attempt
            )

        assert last_error is not None
        return ActionOutcome(
            item_id=action.action_id,
            status=OutcomeStatus.FAILED,
            attempts=attempt,
            error=error_text(last_error),
            error_kind=last_error.kind,
        )
