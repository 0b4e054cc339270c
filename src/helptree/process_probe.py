"""Subprocess probing of the target program.

Provides execute() - run "<program> <args...>" and capture its output
without ever raising. The crawler relies on this: a subcommand whose help
cannot be obtained still yields a (truncated) node.

Usage:
    from helptree.process_probe import execute

    capture = execute("git remote --help")
    if capture.succeeded:
        print(capture.stdout)

Limitations:
    The command string is split on whitespace. Shell quoting is not
    supported, so arguments containing spaces cannot be passed.
"""

import logging
import subprocess
from collections.abc import Callable

from helptree.models import HelpCapture

logger = logging.getLogger(__name__)

UNKNOWN_VERSION = "Unknown"


def execute(full_command: str, timeout: float | None = None) -> HelpCapture:
    """Run a command and capture stdout, stderr and exit status.

    The child gets an empty stdin, so programs that read input see EOF
    instead of waiting on the terminal.

    Args:
        full_command: Program followed by its arguments, whitespace separated
        timeout: Seconds before the process is killed (None = wait forever)

    Returns:
        HelpCapture with trimmed output. Launch failures and timeouts are
        reported with exit_code -1 and the error text in stderr. A child
        killed by a signal also reports -1.
    """
    argv = full_command.split()
    if not argv:
        return HelpCapture(stdout="", stderr="Error executing command: empty command", exit_code=-1)

    logger.debug(f"Probing: {full_command}")
    try:
        completed = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            capture_output=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.debug(f"Probe timed out after {timeout}s: {full_command}")
        return HelpCapture(
            stdout="",
            stderr=f"Error executing command: timed out after {timeout} seconds",
            exit_code=-1,
        )
    except (OSError, ValueError) as e:
        logger.debug(f"Probe could not start: {full_command}: {e}")
        return HelpCapture(stdout="", stderr=f"Error executing command: {e}", exit_code=-1)

    capture = HelpCapture(
        stdout=completed.stdout.decode("utf-8", errors="replace").strip(),
        stderr=completed.stderr.decode("utf-8", errors="replace").strip(),
        exit_code=_exit_code(completed.returncode),
    )
    if not capture.succeeded:
        logger.debug(f"Probe exited with {capture.exit_code}: {full_command}")
    return capture


def _exit_code(returncode: int | None) -> int:
    # killed by a signal (negative returncode) or no status at all
    if returncode is None or returncode < 0:
        return -1
    return returncode


def get_program_version(
    program: str,
    version_arg: str = "version",
    timeout: float | None = None,
    probe: Callable[..., HelpCapture] = execute,
) -> str:
    """Best-effort version lookup via "<program> version".

    Returns:
        Trimmed stdout of the version invocation, or "Unknown" when the
        invocation fails or prints nothing.
    """
    capture = probe(f"{program} {version_arg}", timeout=timeout)
    if not capture.succeeded or not capture.stdout:
        return UNKNOWN_VERSION
    return capture.stdout


__all__ = ["UNKNOWN_VERSION", "execute", "get_program_version"]
