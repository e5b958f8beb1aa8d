"""Execution context for mutating actions.

Carries the state that shell provisioning scripts keep in globals, such
as the sudo session and PATH tweaks, as one explicit object passed to
every component that runs commands.
"""

import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from types import TracebackType

from provctl.utils.shell import merged_environment, run_command

logger = logging.getLogger(__name__)

# Interval between sudo credential refreshes (sudo's default timeout is 5 minutes)
SUDO_REFRESH_SECONDS = 60.0


def _running_as_root() -> bool:
    getuid = getattr(os, "geteuid", None)
    return getuid is not None and getuid() == 0


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Explicit execution settings shared by inspectors and actions.

    Attributes:
        dry_run: If True, no mutating action is executed.
        use_sudo: Prefix privileged commands with ``sudo -n``.
        env: Environment overrides (e.g. PATH additions) for commands.
        is_root: Whether the process already runs as root.
        command_timeout: Timeout in seconds for package manager commands.
    """

    dry_run: bool = False
    use_sudo: bool = True
    env: dict[str, str] = field(default_factory=lambda: {})
    is_root: bool = field(default_factory=_running_as_root)
    command_timeout: float = 600.0

    def privileged(self, args: list[str]) -> list[str]:
        """Return the command line for a command that needs root.

        ``sudo -n`` never prompts; credentials are expected to have been
        validated up front by a SudoSession.
        """
        if self.use_sudo and not self.is_root:
            return ["sudo", "-n", *args]
        return list(args)

    def environment(self) -> dict[str, str] | None:
        """Return the environment for child processes, None to inherit."""
        if not self.env:
            return None
        return merged_environment(self.env)

    @property
    def search_path(self) -> str | None:
        """PATH override for command lookups, if one is configured."""
        return self.env.get("PATH")


class SudoSession:
    """Validates sudo credentials once and keeps them fresh.

    Passwordless sudo is detected with ``sudo -n true``. Otherwise
    ``sudo -v`` prompts once, and a daemon thread refreshes the timestamp
    until the session is closed.

    Example:
        >>> with SudoSession(context) as session:
        ...     if session.active:
        ...         reconciler.reconcile(items)
    """

    def __init__(
        self,
        context: ExecutionContext,
        refresh_seconds: float = SUDO_REFRESH_SECONDS,
    ) -> None:
        self._context = context
        self._refresh_seconds = refresh_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._active = False

    @property
    def active(self) -> bool:
        """True if privileged commands can run without prompting."""
        return self._active

    def start(self) -> bool:
        """Validate credentials and start the refresh thread.

        Returns:
            True if sudo is usable (or not needed), False otherwise.
        """
        if not self._context.use_sudo or self._context.is_root:
            self._active = True
            return True

        try:
            if run_command(["sudo", "-n", "true"], timeout=10.0).success:
                logger.info("Passwordless sudo detected")
                self._active = True
                return True

            logger.info("Administrator privileges will be required")
            # Interactive prompt: must not capture the terminal
            validated = subprocess.run(["sudo", "-v"], check=False).returncode == 0
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("sudo is not usable: %s", e)
            return False

        if not validated:
            logger.error("Failed to authenticate with sudo")
            return False

        self._active = True
        self._thread = threading.Thread(target=self._refresh_loop, name="sudo-refresh", daemon=True)
        self._thread.start()
        return True

    def _refresh_loop(self) -> None:
        while not self._stop.wait(self._refresh_seconds):
            try:
                run_command(["sudo", "-n", "true"], timeout=10.0)
            except (OSError, subprocess.TimeoutExpired) as e:
                logger.debug("sudo refresh failed: %s", e)

    def close(self) -> None:
        """Stop refreshing credentials."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
            self._thread = None

    def __enter__(self) -> "SudoSession":
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
