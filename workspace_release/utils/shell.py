"""Safe subprocess execution utilities.

Provides shell command execution for git and package-manager calls with:
- ANSI escape code stripping (keeps tag and branch names clean)
- Proper error handling and reporting
- A dry-run mode that prints the command and replays a canned result
"""

import os
import re
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.markup import escape


console = Console()


class ShellError(Exception):
    """Exception raised when a shell command fails.

    Attributes:
        cmd: The command that failed
        returncode: Exit code of the failed command
        stdout: Standard output (ANSI stripped)
        stderr: Standard error (ANSI stripped)
    """

    def __init__(
        self,
        cmd: str,
        returncode: int,
        stdout: str,
        stderr: str,
    ) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")

    def __str__(self) -> str:
        parts = [f"Command failed: {self.cmd}"]
        parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            parts.append(f"Stderr: {self.stderr}")
        if self.stdout:
            parts.append(f"Stdout: {self.stdout}")
        return "\n".join(parts)


# Matches: ESC[...m, ESC[...;...m, and other control sequences
ANSI_PATTERN = re.compile(
    r"\x1b\[[0-9;]*[a-zA-Z]|\x1b\][^\x07]*\x07|\x1b[PX^_][^\x1b]*\x1b\\"
)

CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences and control characters from text.

    Args:
        text: Input text potentially containing ANSI codes

    Returns:
        Clean text with all ANSI sequences removed
    """
    if not text:
        return ""
    result = ANSI_PATTERN.sub("", text)
    result = CONTROL_CHARS_PATTERN.sub("", result)
    return result


def run(
    cmd: str | list[str],
    cwd: Path | None = None,
    capture: bool = True,
    check: bool = True,
    timeout: int = 300,
    env: dict[str, str] | None = None,
    strip_output: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Execute a command safely.

    Key security features:
    - Always uses shell=False to prevent shell injection
    - Strips ANSI codes from output by default
    - Raises ShellError with context on failure

    Args:
        cmd: Command to execute (string or list of arguments)
        cwd: Working directory for the command
        capture: Whether to capture stdout/stderr
        check: Whether to raise ShellError on non-zero exit
        timeout: Maximum execution time in seconds
        env: Additional environment variables
        strip_output: Whether to strip ANSI codes from output

    Returns:
        CompletedProcess with stdout/stderr (ANSI stripped if requested)

    Raises:
        ShellError: If command fails and check=True
        subprocess.TimeoutExpired: If command exceeds timeout
    """
    cmd_list = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)

    merged_env = {**os.environ}
    if env:
        merged_env.update(env)

    result = subprocess.run(
        cmd_list,
        cwd=cwd,
        capture_output=capture,
        text=True,
        timeout=timeout,
        env=merged_env,
    )

    if capture and strip_output:
        result.stdout = strip_ansi(result.stdout) if result.stdout else ""
        result.stderr = strip_ansi(result.stderr) if result.stderr else ""

    if check and result.returncode != 0:
        raise ShellError(
            cmd=" ".join(cmd_list),
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )

    return result


def display_command(cmd: str | list[str]) -> str:
    """Return a printable form of a command."""
    return cmd if isinstance(cmd, str) else shlex.join(cmd)


@dataclass
class Shell:
    """Command executor bound to a working directory and a dry-run flag.

    Mutating commands go through exec() with the default dry-run setting;
    read-only queries pass dry_run=False so a dry run still sees real
    repository state.
    """

    cwd: Path | None = None
    dry_run: bool = False
    verbose: bool = False
    timeout: int = 300

    def exec(
        self,
        cmd: str | list[str],
        dry_run: bool | None = None,
        dry_run_result: str = "",
        cwd: Path | None = None,
        env: dict[str, str] | None = None,
    ) -> str:
        """Run a command and return its trimmed stdout.

        Args:
            cmd: Command to execute (string or list of arguments)
            dry_run: Override the shell-wide dry-run flag for this call
            dry_run_result: Output returned instead of running in dry-run
            cwd: Working directory (defaults to the shell's cwd)
            env: Additional environment variables

        Returns:
            Trimmed stdout, or dry_run_result when not executed

        Raises:
            ShellError: If the command exits non-zero
        """
        is_dry_run = self.dry_run if dry_run is None else dry_run
        shown = escape(display_command(cmd))

        if is_dry_run:
            console.print(f"[yellow]\\[DRY RUN][/yellow] [dim]$ {shown}[/dim]")
            return dry_run_result

        if self.verbose:
            console.print(f"[dim]$ {shown}[/dim]")

        result = run(cmd, cwd=cwd or self.cwd, timeout=self.timeout, env=env)
        return result.stdout.strip()
