"""Session manager — spawn, reuse and focus the interpreter session."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tsrepl.config import DEFAULT_BUFFER_NAME, NO_READLINE_ENV, SessionConfig, TsreplConfig
from tsrepl.editor import EditorHost
from tsrepl.filters import OutputFilter, strip_cursor_codes
from tsrepl.process.host import ProcessHost
from tsrepl.process.process import InterpreterProcess

logger = logging.getLogger(__name__)


class NoSessionError(RuntimeError):
    """No interpreter session has been started, or its buffer is gone."""


@dataclass(frozen=True)
class DisplayFilterState:
    """How a session's output is displayed. Fixed when the session spawns."""

    ansi_color: bool = True


@dataclass
class SessionRegistry:
    """Process-wide session state, passed explicitly to manager and dispatcher.

    ``current`` is the buffer name of the last spawned session (at most one).
    ``config`` seeds the next spawn; changing it never touches a live
    session. Independent registries can coexist.
    """

    buffer_name: str = DEFAULT_BUFFER_NAME
    config: SessionConfig = field(default_factory=SessionConfig)
    ansi_color: bool = True
    current: str | None = None

    @classmethod
    def from_config(cls, config: TsreplConfig) -> SessionRegistry:
        return cls(
            buffer_name=config.buffer_name,
            config=config.session,
            ansi_color=config.ansi_color,
        )


@dataclass
class SessionHandle:
    """One interpreter subprocess plus its attached output buffer."""

    process: InterpreterProcess
    config: SessionConfig
    display: DisplayFilterState

    @property
    def buffer_name(self) -> str:
        return self.process.buffer.name

    @property
    def alive(self) -> bool:
        return self.process.alive


class SessionManager:
    """Owns the identity of the current interpreter session.

    Decides whether to spawn a new subprocess or reuse the live one, and
    moves editor focus to the session buffer on request. Never sends text
    itself; that is the dispatcher's job.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        host: ProcessHost,
        editor: EditorHost,
    ) -> None:
        self.registry = registry
        self.host = host
        self.editor = editor
        self._handles: dict[str, SessionHandle] = {}

    def current_handle(self) -> SessionHandle | None:
        """Handle of the named session, live or stale, if one was spawned."""
        handle = self._handles.get(self.registry.buffer_name)
        if handle is None or self.host.get(handle.buffer_name) is not handle.process:
            return None
        return handle

    async def ensure_session(
        self,
        command_line: str | None = None,
        *,
        config: SessionConfig | None = None,
        keep_focus: bool = False,
    ) -> SessionHandle:
        """Return the live session, spawning one if there is none.

        Args:
            command_line: Full interpreter command line; replaces the
                registry's config before any spawn.
            config: Replacement config, used when ``command_line`` is None.
            keep_focus: Leave editor focus where it is.

        Process creation errors propagate unchanged.
        """
        if command_line is not None:
            config = SessionConfig.from_command_line(command_line)
        if config is not None:
            self.registry.config = config

        handle = self.current_handle()
        if handle is None or not handle.alive:
            if handle is not None:
                logger.info("Session %s has exited, respawning", handle.buffer_name)
            handle = await self._spawn()

        if not keep_focus:
            self.editor.pop_to_buffer(handle.buffer_name)
        return handle

    async def _spawn(self) -> SessionHandle:
        registry = self.registry
        display = DisplayFilterState(ansi_color=registry.ansi_color)
        config = registry.config

        env: dict[str, str] = {}
        output_filters: list[OutputFilter] = []
        if display.ansi_color:
            output_filters.append(strip_cursor_codes)
        else:
            env[NO_READLINE_ENV] = "1"

        process = await self.host.start(
            registry.buffer_name,
            config.argv,
            env=env,
            output_filters=output_filters,
            render_ansi=display.ansi_color,
        )
        handle = SessionHandle(process=process, config=config, display=display)
        self._handles[registry.buffer_name] = handle
        registry.current = registry.buffer_name
        logger.info("Spawned session %s: %s", registry.buffer_name, config)
        return handle

    def switch_to_session(self, move_to_end: bool = False) -> None:
        """Focus the session buffer.

        With ``move_to_end``, the prior location is pushed on the mark ring
        and the cursor moves to the end of the session buffer.

        Raises:
            NoSessionError: If no session was started or its buffer is gone.
        """
        name = self.registry.current
        process = self.host.get(name) if name is not None else None
        if name is None or process is None:
            raise NoSessionError("No current interpreter session")

        self.editor.pop_to_buffer(name)
        if move_to_end:
            self.editor.push_mark()
            self.editor.goto(name, process.buffer.end)

    def kill_session(self) -> None:
        """Kill the tracked interpreter. Its buffer stays around."""
        handle = self.current_handle()
        if handle is not None:
            handle.process.kill()
