"""Launch external commands with logging and optional sudo elevation."""

from __future__ import annotations

import os
import shutil
import subprocess
from typing import Dict, List, Optional, Sequence

from ignition_injector.constants import SUDO_PREFIX
from ignition_injector.exceptions import ExternalToolFailure
from ignition_injector.utils import Logger, format_cmdline, log


class CommandRunner:
    """Runs one executable with varying arguments.

    ``run`` waits and returns combined stdout/stderr; ``start`` returns as
    soon as the process is up with its stdout readable. ``env`` is merged
    over a copy of ``os.environ`` for the child only. Output that is not
    valid UTF-8 is decoded with replacement characters.
    """

    def __init__(self, executable: str, elevate: bool = False, logger: Logger = log) -> None:
        self.executable = executable
        self.elevate = elevate
        self.logger = logger

    def command_line(self, args: Sequence[str]) -> List[str]:
        cmd = [self.executable, *args]
        if self.elevate:
            cmd = [*SUDO_PREFIX, *cmd]
        return cmd

    def _child_env(self, env: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not env:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def _describe(self, cmd: List[str]) -> str:
        resolved = shutil.which(cmd[0]) or cmd[0]
        return format_cmdline([resolved, *cmd[1:]])

    def run(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> str:
        cmd = self.command_line(args)
        self.logger("DEBUG", f"Running: {self._describe(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                env=self._child_env(env),
            )
        except OSError as exc:
            raise ExternalToolFailure(
                f"error running command '{format_cmdline(cmd)}': {exc}", command=cmd
            ) from exc
        output = result.stdout or ""
        self.logger("DEBUG", f"Ran: {self._describe(cmd)} Output: {output.strip()}")
        if result.returncode != 0:
            raise ExternalToolFailure(
                f"error running command '{format_cmdline(cmd)}': exit status {result.returncode}: {output.strip()}",
                command=cmd,
                returncode=result.returncode,
                output=output,
            )
        return output

    def start(self, args: Sequence[str], env: Optional[Dict[str, str]] = None) -> subprocess.Popen:
        cmd = self.command_line(args)
        self.logger("DEBUG", f"Starting: {self._describe(cmd)}")
        try:
            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                text=True,
                errors="replace",
                env=self._child_env(env),
            )
        except OSError as exc:
            raise ExternalToolFailure(
                f"error starting command '{format_cmdline(cmd)}': {exc}", command=cmd
            ) from exc
        self.logger("DEBUG", f"Started: {self._describe(cmd)}")
        return proc

    def read_output(self, proc: subprocess.Popen) -> str:
        """Read a started process's stdout to EOF, then reap it."""
        cmd = [str(part) for part in proc.args] if isinstance(proc.args, (list, tuple)) else [str(proc.args)]
        try:
            output = proc.stdout.read() if proc.stdout is not None else ""
        except OSError as exc:
            raise ExternalToolFailure(
                f"error reading output of command '{format_cmdline(cmd)}': {exc}", command=cmd
            ) from exc
        finally:
            if proc.stdout is not None:
                proc.stdout.close()
        self.logger("DEBUG", f"Output message: {output.strip()}")
        returncode = proc.wait()
        if returncode != 0:
            raise ExternalToolFailure(
                f"error running command '{format_cmdline(cmd)}': exit status {returncode}: {output.strip()}",
                command=cmd,
                returncode=returncode,
                output=output,
            )
        return output
