"""Inject the Ignition file into a disk image through a guestfish session.

The session is driven with one process per step: ``guestfish --listen``
starts a background daemon and prints ``GUESTFISH_PID=<pid>; export
GUESTFISH_PID``; every later ``guestfish --remote`` call finds that daemon
through the same variable, passed here as a per-call environment override.
"""

from __future__ import annotations

import enum
from typing import List, Optional

from ignition_injector.constants import BOOT_FS_LABEL, GUESTFISH, IGNITION_GUEST_PATH
from ignition_injector.exceptions import ExternalToolFailure, ProtocolParseFailure, SessionStateError
from ignition_injector.models import GuestfishHandle
from ignition_injector.process import CommandRunner
from ignition_injector.utils import Logger, log


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LISTENING = "listening"
    READY = "ready"
    RUNNING = "running"
    FILESYSTEM_LOCATED = "filesystem-located"
    MOUNTED = "mounted"
    UPLOADED = "uploaded"
    UNMOUNTED = "unmounted"
    EXITED = "exited"
    FAILED = "failed"


# the tool is listening and still needs an explicit exit
_UNFINISHED = {
    SessionState.READY,
    SessionState.RUNNING,
    SessionState.FILESYSTEM_LOCATED,
    SessionState.MOUNTED,
    SessionState.UPLOADED,
    SessionState.UNMOUNTED,
}
_MAY_BE_MOUNTED = {SessionState.FILESYSTEM_LOCATED, SessionState.MOUNTED, SessionState.UPLOADED}


def parse_listen_output(output: str) -> GuestfishHandle:
    """Extract the control-channel handle from ``guestfish --listen`` output."""
    segments = output.split(";")
    if len(segments) != 2:
        raise ProtocolParseFailure(f"Invalid output when starting guestfish: {output!r}")
    pair = segments[0].strip().split("=")
    if len(pair) != 2 or not pair[0].strip() or not pair[1].strip():
        raise ProtocolParseFailure(f"Failed to get the guestfish PID from {output!r}")
    return GuestfishHandle(key=pair[0].strip(), value=pair[1].strip())


class GuestfishSession:
    def __init__(self, runner: Optional[CommandRunner] = None, logger: Logger = log) -> None:
        self.runner = runner or CommandRunner(GUESTFISH, logger=logger)
        self.logger = logger
        self.state = SessionState.UNINITIALIZED
        self.handle: Optional[GuestfishHandle] = None
        # last state reached before a failure, used to decide what to clean up
        self._last_good = SessionState.UNINITIALIZED

    def __enter__(self) -> "GuestfishSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _expect(self, step: str, *allowed: SessionState) -> None:
        if self.state not in allowed:
            expected = ", ".join(s.value for s in allowed)
            raise SessionStateError(
                f"guestfish step '{step}' requires state {expected}, session is {self.state.value}"
            )

    def _fail(self) -> None:
        if self.state != SessionState.FAILED:
            self._last_good = self.state
        self.state = SessionState.FAILED

    def _remote(self, step: str, *args: str) -> str:
        if self.handle is None:
            raise SessionStateError(f"guestfish step '{step}' requires a session handle")
        try:
            return self.runner.run(["--remote", "--", *args], env=self.handle.env())
        except ExternalToolFailure as exc:
            self._fail()
            raise ExternalToolFailure(
                f"guestfish step '{step}' failed: {exc}",
                command=exc.command,
                returncode=exc.returncode,
                output=exc.output,
                step=step,
            ) from exc

    def start(self, disk_file: str) -> GuestfishHandle:
        self._expect("listen", SessionState.UNINITIALIZED)
        self.logger("INFO", f"Starting guestfish on {disk_file}")
        self.state = SessionState.LISTENING
        try:
            proc = self.runner.start(["--listen", "-a", disk_file])
            output = self.runner.read_output(proc)
        except ExternalToolFailure as exc:
            self._fail()
            raise ExternalToolFailure(
                f"guestfish step 'listen' failed: {exc}",
                command=exc.command,
                returncode=exc.returncode,
                output=exc.output,
                step="listen",
            ) from exc
        try:
            self.handle = parse_listen_output(output)
        except ProtocolParseFailure:
            self._fail()
            raise
        self.logger("DEBUG", f"guestfish session handle: {self.handle}")
        self.state = SessionState.READY
        return self.handle

    def run(self) -> None:
        self._expect("run", SessionState.READY)
        self._remote("run", "run")
        self.state = SessionState.RUNNING

    def find_boot_filesystem(self, label: str = BOOT_FS_LABEL) -> str:
        self._expect("findfs-label", SessionState.RUNNING)
        device = self._remote("findfs-label", "findfs-label", label).strip()
        if not device:
            self._fail()
            raise ProtocolParseFailure(f"{label} filesystem not found")
        self.logger("DEBUG", f"Found {label} filesystem on {device}")
        self.state = SessionState.FILESYSTEM_LOCATED
        return device

    def mount(self, device: str) -> None:
        self._expect("mount", SessionState.FILESYSTEM_LOCATED)
        self._remote("mount", "mount", device, "/")
        self.state = SessionState.MOUNTED

    def upload(self, local_file: str, guest_path: str = IGNITION_GUEST_PATH) -> None:
        self._expect("upload", SessionState.MOUNTED)
        self._remote("upload", "upload", local_file, guest_path)
        self.state = SessionState.UPLOADED

    def umount_all(self) -> None:
        self._expect("umount-all", SessionState.UPLOADED)
        self._remote("umount-all", "umount-all")
        self.state = SessionState.UNMOUNTED

    def exit(self) -> None:
        self._expect("exit", SessionState.UNMOUNTED)
        try:
            self._remote("exit", "exit")
        finally:
            self.state = SessionState.EXITED

    def inject(self, disk_file: str, local_file: str) -> None:
        """Run the full listen/run/mount/upload/umount/exit sequence."""
        self.start(disk_file)
        self.run()
        device = self.find_boot_filesystem()
        self.mount(device)
        self.upload(local_file)
        self.umount_all()
        self.exit()
        self.logger("SUCCESS", f"Ignition injected into {disk_file}")

    def _cleanup_steps(self) -> List[List[str]]:
        if self.handle is None:
            return []
        reached = self._last_good if self.state == SessionState.FAILED else self.state
        if reached not in _UNFINISHED:
            return []
        steps = []
        if reached in _MAY_BE_MOUNTED:
            steps.append(["umount-all"])
        steps.append(["exit"])
        return steps

    def close(self) -> None:
        """Best-effort teardown of a session that did not reach ``exit``.

        Runs whenever the tool is listening, whatever interrupted the
        sequence.
        """
        steps = self._cleanup_steps()
        for args in steps:
            try:
                self.runner.run(["--remote", "--", *args], env=self.handle.env())
            except ExternalToolFailure as exc:
                self.logger("WARN", f"guestfish cleanup '{args[0]}' failed: {exc}")
        if steps:
            self.state = SessionState.EXITED
