"""External command execution.

Thin wrapper around :func:`subprocess.run` that turns the two ways an
external tool can fail (missing binary, non-zero exit) into fluxops
exceptions with readable messages.
"""

import subprocess

from icecream import ic

from fluxops.exceptions import BinaryNotFoundError, CommandFailedError

# Error message constants
_ERR_BINARY_NOT_FOUND = "{binary} not found; please install {binary} and ensure it's on PATH"
_ERR_COMMAND_FAILED = "'{command}' failed (exit code {code}){details}"


def _describe(cmd: list[str]) -> str:
    return " ".join(cmd[:3])


def run(
    cmd: list[str],
    *,
    input_data: str | None = None,
    capture: bool = True,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """Run an external command to completion.

    Args:
        cmd: The command and its arguments.
        input_data: Optional text passed on stdin.
        capture: Capture stdout/stderr instead of letting them reach the terminal.
        check: Raise CommandFailedError on a non-zero exit status.

    Returns:
        The completed process (stdout/stderr are None when not captured).

    Raises:
        BinaryNotFoundError: If the executable does not exist.
        CommandFailedError: If check is set and the command fails.

    """
    ic(cmd)
    try:
        return subprocess.run(
            cmd,
            input=input_data,
            capture_output=capture,
            text=True,
            check=check,
        )
    except FileNotFoundError as err:
        raise BinaryNotFoundError(_ERR_BINARY_NOT_FOUND.format(binary=cmd[0])) from err
    except subprocess.CalledProcessError as err:
        stderr_msg = err.stderr.strip() if err.stderr else ""
        error_details = f" - {stderr_msg}" if stderr_msg else ""
        raise CommandFailedError(
            _ERR_COMMAND_FAILED.format(command=_describe(cmd), code=err.returncode, details=error_details),
            cmd=cmd,
            returncode=err.returncode,
            stderr=stderr_msg,
        ) from err


def succeeds(cmd: list[str], *, input_data: str | None = None) -> bool:
    """Run a command quietly and report whether it exited with status 0.

    Raises:
        BinaryNotFoundError: If the executable does not exist.

    """
    return run(cmd, input_data=input_data, check=False).returncode == 0
