"""Shell execution utilities.

Provides safe subprocess execution with proper error handling.
"""

import os
import shutil
import subprocess
from dataclasses import dataclass

# Characters of command output kept when logging or reporting
OUTPUT_LIMIT = 500


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
    """

    stdout: str
    stderr: str
    returncode: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined stderr and stdout, stderr first."""
        return "\n".join(part.strip() for part in (self.stderr, self.stdout) if part.strip())


def run_command(
    args: list[str],
    *,
    check: bool = False,
    timeout: float | None = 60.0,
    cwd: str | None = None,
    env: dict[str, str] | None = None,
    input_text: str | None = None,
) -> CommandResult:
    """Execute a shell command and return the result.

    Args:
        args: Command and arguments to execute.
        check: If True, raise CalledProcessError on non-zero exit.
        timeout: Maximum time in seconds to wait for command.
        cwd: Working directory for the command. If None, uses current directory.
        env: Full environment for the command. If None, inherits the current one.
        input_text: Text passed to the command's standard input.

    Returns:
        CommandResult with stdout, stderr, and returncode.

    Raises:
        subprocess.CalledProcessError: If check=True and command fails.
        subprocess.TimeoutExpired: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    result = subprocess.run(
        args,
        capture_output=True,
        text=True,
        check=check,
        timeout=timeout,
        cwd=cwd,
        env=env,
        input=input_text,
    )
    return CommandResult(
        stdout=result.stdout,
        stderr=result.stderr,
        returncode=result.returncode,
    )


def command_exists(name: str, path: str | None = None) -> bool:
    """Check if a command exists in the system PATH.

    Args:
        name: Command name to check.
        path: Search path to use instead of the process PATH.

    Returns:
        True if command exists, False otherwise.
    """
    return shutil.which(name, path=path) is not None


def truncate_output(text: str, limit: int = OUTPUT_LIMIT) -> str:
    """Shorten command output for logs and reports.

    Keeps the tail of the output, where package managers print the error.

    Args:
        text: Output to shorten.
        limit: Maximum number of characters kept.

    Returns:
        The text itself if short enough, otherwise its last ``limit``
        characters prefixed with an ellipsis.
    """
    text = text.strip()
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


def merged_environment(overrides: dict[str, str] | None = None) -> dict[str, str]:
    """Return the current environment with overrides applied."""
    return {**os.environ, **(overrides or {})}
