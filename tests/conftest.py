"""Shared fixtures: in-memory stand-ins for interpreter processes."""

from __future__ import annotations

import pytest

from tsrepl.editor import MemoryEditor
from tsrepl.process.buffer import SessionBuffer
from tsrepl.session.dispatch import Dispatcher
from tsrepl.session.manager import SessionManager, SessionRegistry


class FakeProcess:
    """Records writes instead of talking to a real subprocess."""

    def __init__(self, name: str, command: list[str], env: dict[str, str], filters, render_ansi: bool) -> None:
        self.buffer = SessionBuffer(name)
        self.command = command
        self.env = env
        self.output_filters = filters
        self.render_ansi = render_ansi
        self.alive = True
        self.written: list[str] = []

    def write(self, text: str) -> None:
        if not self.alive:
            raise RuntimeError("not running")
        self.written.append(text)

    def kill(self) -> None:
        self.alive = False


class FakeHost:
    """ProcessHost look-alike that spawns FakeProcess objects."""

    def __init__(self) -> None:
        self.processes: dict[str, FakeProcess] = {}
        self.spawned: list[FakeProcess] = []

    async def start(self, name, command, env=None, output_filters=None, render_ansi=True):
        process = FakeProcess(name, command, env or {}, list(output_filters or []), render_ansi)
        self.processes[name] = process
        self.spawned.append(process)
        return process

    def get(self, name):
        return self.processes.get(name)

    def kill_buffer(self, name: str) -> None:
        process = self.processes.pop(name, None)
        if process:
            process.kill()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def editor() -> MemoryEditor:
    return MemoryEditor("let x = 1\nx + 1\n", name="main.ts")


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def manager(registry: SessionRegistry, host: FakeHost, editor: MemoryEditor) -> SessionManager:
    return SessionManager(registry, host, editor)  # type: ignore[arg-type]


@pytest.fixture
def dispatcher(manager: SessionManager, editor: MemoryEditor) -> Dispatcher:
    return Dispatcher(manager, editor)
