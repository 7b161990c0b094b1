"""Interpreter process — a subprocess running in a PTY, attached to a buffer."""

from __future__ import annotations

import asyncio
import enum
import logging
import os
import pty
import signal
import subprocess
from dataclasses import dataclass, field
from typing import Callable

from tsrepl.filters import OutputFilter, apply_filters, plain_text, split_partial_escape
from tsrepl.process.buffer import SessionBuffer

logger = logging.getLogger(__name__)

OutputListener = Callable[[str], None]


class ProcessStatus(enum.Enum):
    """Lifecycle states for an interpreter process."""

    PENDING = "pending"  # Not started yet
    RUNNING = "running"
    KILLED = "killed"  # Killed by us
    EXITED = "exited"  # Process exited on its own


@dataclass
class InterpreterProcess:
    """An interactive interpreter running in its own pseudo-terminal.

    Output is read by a background task, passed through ``output_filters``
    in order, then appended to ``buffer``. With ``render_ansi`` the buffer's
    display track gets ANSI colors interpreted; otherwise escape codes are
    kept literally. Output listeners receive each filtered chunk.

    Uses subprocess.Popen (not os.fork) so it can be spawned from inside
    a running asyncio event loop.
    """

    buffer: SessionBuffer
    command: list[str] = field(default_factory=list)
    cwd: str = field(default_factory=os.getcwd)
    env: dict[str, str] = field(default_factory=dict)
    output_filters: list[OutputFilter] = field(default_factory=list)
    render_ansi: bool = True

    _master_fd: int = field(default=-1, init=False)
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _pgid: int = field(default=0, init=False)
    _reader_task: asyncio.Task | None = field(default=None, init=False)
    _status: ProcessStatus = field(default=ProcessStatus.PENDING, init=False)
    _listeners: list[OutputListener] = field(default_factory=list, init=False)
    _pending: str = field(default="", init=False)  # Unfinished escape from the last read

    def add_listener(self, listener: OutputListener) -> None:
        """Call ``listener`` with every filtered output chunk."""
        self._listeners.append(listener)

    async def start(self) -> None:
        """Spawn the process in a new PTY with its own process group.

        Errors from process creation (missing executable, permissions)
        propagate unchanged.
        """
        master_fd, slave_fd = pty.openpty()

        env = {**os.environ, **self.env}
        env["TERM"] = "dumb"

        try:
            self._proc = subprocess.Popen(
                self.command,
                stdin=slave_fd,
                stdout=slave_fd,
                stderr=slave_fd,
                start_new_session=True,
                env=env,
                cwd=self.cwd,
            )
        except BaseException:
            os.close(master_fd)
            raise
        finally:
            os.close(slave_fd)

        self._master_fd = master_fd
        self._pgid = os.getpgid(self._proc.pid)
        self._status = ProcessStatus.RUNNING

        self.buffer.attach_loop(asyncio.get_running_loop())
        self._reader_task = asyncio.create_task(self._read_loop())

        logger.info(
            "Interpreter %s started: pid=%d cmd=%s",
            self.buffer.name,
            self._proc.pid,
            " ".join(self.command),
        )

    async def _read_loop(self) -> None:
        """Continuously read output from the PTY master fd."""
        loop = asyncio.get_running_loop()
        try:
            while self._status != ProcessStatus.KILLED:
                try:
                    data = await loop.run_in_executor(
                        None, lambda: os.read(self._master_fd, 4096)
                    )
                except OSError:
                    break

                if not data:
                    break

                self.handle_output(data.decode("utf-8", errors="replace"))
        finally:
            if self._pending:
                pending, self._pending = self._pending, ""
                self._emit(pending)
            if self._status == ProcessStatus.RUNNING:
                exit_code = self._proc.poll() if self._proc else None
                self._status = ProcessStatus.EXITED
                logger.info(
                    "Interpreter %s exited (code=%s)", self.buffer.name, exit_code
                )
            self._close_master()

    def handle_output(self, raw_text: str) -> str:
        """Filter one chunk of raw output and append it to the buffer.

        An escape sequence cut off at the end of the chunk is held back and
        prefixed to the next one. Returns the filtered chunk.
        """
        text, self._pending = split_partial_escape(self._pending + raw_text)
        if not text:
            return ""
        return self._emit(text)

    def _emit(self, raw_text: str) -> str:
        filtered = apply_filters(raw_text, self.output_filters)
        display = plain_text(filtered) if self.render_ansi else filtered
        self.buffer.append_text(display, raw_text=filtered)
        for listener in self._listeners:
            try:
                listener(filtered)
            except Exception:
                logger.exception("Output listener failed for %s", self.buffer.name)
        return filtered

    def write(self, text: str) -> None:
        """Write ``text`` to the interpreter's input stream as-is.

        Raises:
            RuntimeError: If the process is not running.
        """
        if not self.alive:
            raise RuntimeError(f"Interpreter {self.buffer.name} is not running")
        logger.debug("-> %s: %r", self.buffer.name, text)
        os.write(self._master_fd, text.encode("utf-8"))

    def kill(self) -> None:
        """Kill the entire process tree and release the PTY."""
        if self._status == ProcessStatus.RUNNING:
            self._status = ProcessStatus.KILLED
            try:
                os.killpg(self._pgid, signal.SIGKILL)
                logger.info("Killed interpreter %s (pgid=%d)", self.buffer.name, self._pgid)
            except ProcessLookupError:
                logger.debug("Process group already gone: %d", self._pgid)

            if self._proc is not None:
                try:
                    self._proc.wait(timeout=2)
                except subprocess.TimeoutExpired:
                    logger.warning("Interpreter %s did not die in time", self.buffer.name)

        self._close_master()

    def _close_master(self) -> None:
        if self._master_fd < 0:
            return
        try:
            os.close(self._master_fd)
        except OSError:
            pass
        self._master_fd = -1

    async def wait_closed(self, timeout: float = 2.0) -> None:
        """Wait for the output reader to drain and stop."""
        if self._reader_task is not None:
            await asyncio.wait({self._reader_task}, timeout=timeout)

    @property
    def alive(self) -> bool:
        """True iff the OS process is still running and attached."""
        if self._status != ProcessStatus.RUNNING:
            return False
        if self._proc is not None and self._proc.poll() is not None:
            self._status = ProcessStatus.EXITED
            return False
        return True

    @property
    def status(self) -> ProcessStatus:
        return self._status

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc else None

    async def wait_for_exit(self, timeout: float = 10.0) -> int | None:
        """Wait for the process to exit. Returns exit code or None on timeout."""
        if self._proc is None:
            return -1
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while loop.time() < deadline:
            ret = self._proc.poll()
            if ret is not None:
                if self._status == ProcessStatus.RUNNING:
                    self._status = ProcessStatus.EXITED
                return ret
            await asyncio.sleep(0.1)
        return None
