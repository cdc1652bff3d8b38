# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Asynchronous execution of external key tools."""

import asyncio
import logging
from collections.abc import Sequence

from .exceptions import ExternalProcessError

logger = logging.getLogger(__name__)


class ProcessRunner:
    """Runs a command from an argument list, without a shell.

    Attributes:
        timeout: Seconds to wait for the process, or None to wait forever
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout

    async def run(self, command: Sequence[str]) -> str:
        """Run a command to completion.

        Args:
            command: Executable followed by its arguments

        Returns:
            Captured standard output

        Raises:
            ExternalProcessError: If the process cannot be started, times out
                or exits with a non-zero code
        """
        command = [str(arg) for arg in command]
        logger.debug("Executing %s", " ".join(command))

        try:
            proc = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExternalProcessError(
                f"Failed to start {command[0]}: {e}", command=command
            ) from e

        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise ExternalProcessError(
                f"{command[0]} timed out after {self.timeout}s", command=command
            ) from e

        error_output = stderr.decode("utf-8", "replace").strip()
        if proc.returncode != 0:
            raise ExternalProcessError(
                f"{command[0]} failed with code {proc.returncode}: {error_output}",
                command=command,
                returncode=proc.returncode,
                stderr=error_output,
            )

        return stdout.decode("utf-8", "replace")
