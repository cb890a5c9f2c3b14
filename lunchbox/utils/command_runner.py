"""
External command execution for boot checks.
"""

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit status reported when the shell itself could not be started.
EXIT_NOT_STARTED = 127


@dataclass
class CommandResult:
    """Outcome of a short-lived command."""
    command: str
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace") if data else ""


async def run_command(command_line: str) -> CommandResult:
    """
    Run a command line through the shell and capture its output.

    Args:
        command_line: Full command, e.g. ``vagrant --version``

    Returns:
        CommandResult; a missing program shows up as a non-zero exit code
        with the shell's message in ``stderr``.
    """
    logger.debug("Running command: %s", command_line)
    try:
        process = await asyncio.create_subprocess_shell(
            command_line,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        logger.warning("Could not start %r: %s", command_line, e)
        return CommandResult(command_line, EXIT_NOT_STARTED, "", str(e))

    stdout, stderr = await process.communicate()
    result = CommandResult(command_line, process.returncode, _decode(stdout), _decode(stderr))
    logger.debug("Command %r exited with %s", command_line, result.exit_code)
    return result


async def spawn(program: str, *args: str) -> asyncio.subprocess.Process:
    """
    Start a long-running command with piped stdout/stderr.

    The caller streams the output (see ``StatusSink.log_process``) and
    awaits ``process.wait()`` for the exit code.

    Raises:
        OSError: the program could not be started
    """
    logger.info("Spawning: %s %s", program, " ".join(args))
    return await asyncio.create_subprocess_exec(
        program,
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
