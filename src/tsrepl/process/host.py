"""Process host — creates interpreter processes attached to named buffers."""

from __future__ import annotations

import logging
from typing import Any

from tsrepl.filters import OutputFilter
from tsrepl.process.buffer import SessionBuffer
from tsrepl.process.process import InterpreterProcess, OutputListener

logger = logging.getLogger(__name__)


class ProcessHost:
    """Tracks interpreter processes by buffer name.

    A buffer outlives its process: when the process exits the buffer is
    still there (and can be looked at) until ``kill_buffer`` removes it.
    Starting a process under a name that already has a dead one replaces
    it with a fresh process and buffer.
    """

    def __init__(self, cwd: str | None = None, max_lines: int = 50_000) -> None:
        self._processes: dict[str, InterpreterProcess] = {}
        self._listeners: list[OutputListener] = []
        self._cwd = cwd
        self._max_lines = max_lines

    def add_listener(self, listener: OutputListener) -> None:
        """Attach ``listener`` to every process started from now on."""
        self._listeners.append(listener)

    async def start(
        self,
        name: str,
        command: list[str],
        env: dict[str, str] | None = None,
        output_filters: list[OutputFilter] | None = None,
        render_ansi: bool = True,
    ) -> InterpreterProcess:
        """Spawn ``command`` attached to the buffer called ``name``.

        Raises:
            RuntimeError: If a live process is already attached to ``name``.
        """
        existing = self._processes.get(name)
        if existing is not None and existing.alive:
            raise RuntimeError(f"Buffer {name} already has a live process")

        kwargs: dict[str, Any] = {}
        if self._cwd:
            kwargs["cwd"] = self._cwd
        process = InterpreterProcess(
            buffer=SessionBuffer(name, max_lines=self._max_lines),
            command=command,
            env=env or {},
            output_filters=list(output_filters or []),
            render_ansi=render_ansi,
            **kwargs,
        )
        for listener in self._listeners:
            process.add_listener(listener)
        await process.start()
        self._processes[name] = process
        return process

    def get(self, name: str) -> InterpreterProcess | None:
        """The process attached to ``name``, live or not."""
        return self._processes.get(name)

    def kill_buffer(self, name: str) -> InterpreterProcess | None:
        """Kill the process (if running) and forget its buffer."""
        process = self._processes.pop(name, None)
        if process:
            process.kill()
        return process

    def list_buffers(self) -> list[dict[str, Any]]:
        return [
            {
                "name": name,
                "command": " ".join(p.command),
                "alive": p.alive,
                "status": p.status.value,
                "lines": p.buffer.line_count,
            }
            for name, p in self._processes.items()
        ]

    async def cleanup(self) -> None:
        """Kill all processes and wait for their readers. Called on shutdown."""
        for name in list(self._processes):
            process = self.kill_buffer(name)
            if process is not None:
                await process.wait_closed()
        logger.info("All interpreter processes cleaned up")

    def __len__(self) -> int:
        return len(self._processes)
