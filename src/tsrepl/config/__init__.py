"""Configuration — Pydantic models for tsrepl settings."""

from __future__ import annotations

import json
import os
import shlex
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COMMAND = "tsun"
DEFAULT_BUFFER_NAME = "Typescript"

# Tells node-based REPLs to skip their own readline echo.
NO_READLINE_ENV = "NODE_NO_READLINE"


class SessionConfig(BaseModel):
    """Command line used to spawn the next interpreter session.

    Immutable: overriding the command means building a new value and
    storing it in the session registry. A live session keeps the config it
    was spawned with.
    """

    model_config = ConfigDict(frozen=True)

    command: str = Field(default=DEFAULT_COMMAND, description="Interpreter executable")
    args: tuple[str, ...] = Field(
        default=(), description="Arguments passed to the interpreter, in order"
    )

    @classmethod
    def from_command_line(cls, command_line: str) -> SessionConfig:
        """Parse a full command line (``"tsun --foo bar"``) into a config.

        Raises:
            ValueError: If the command line is empty.
        """
        parts = shlex.split(command_line)
        if not parts:
            raise ValueError("Empty interpreter command line")
        return cls(command=parts[0], args=tuple(parts[1:]))

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]

    def __str__(self) -> str:
        return shlex.join(self.argv)


class TsreplConfig(BaseModel):
    """Top-level tsrepl configuration."""

    session: SessionConfig = Field(default_factory=SessionConfig)
    ansi_color: bool = Field(
        default=True,
        description=(
            "Render ANSI colors and strip readline cursor codes. When off, "
            f"{NO_READLINE_ENV}=1 is set for the interpreter instead."
        ),
    )
    buffer_name: str = Field(
        default=DEFAULT_BUFFER_NAME, description="Name of the session buffer"
    )
    max_lines: int = Field(
        default=50_000, description="Lines kept in the session output buffer"
    )

    @classmethod
    def load(cls, config_path: str | None = None) -> TsreplConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            TSREPL_COMMAND      - Full interpreter command line (e.g. "tsun --verbose")
            TSREPL_ANSI_COLOR   - "0"/"false"/"no" disables ANSI rendering
            TSREPL_BUFFER_NAME  - Session buffer name
            TSREPL_MAX_LINES    - Output buffer size
        """
        load_dotenv(find_dotenv(usecwd=True), override=True)

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_command = os.environ.get("TSREPL_COMMAND")
        if env_command:
            session = SessionConfig.from_command_line(env_command)
            config_data["session"] = session.model_dump()

        env_ansi = os.environ.get("TSREPL_ANSI_COLOR")
        if env_ansi:
            config_data["ansi_color"] = env_ansi.strip().lower() not in (
                "0",
                "false",
                "no",
                "off",
            )

        env_buffer_name = os.environ.get("TSREPL_BUFFER_NAME")
        if env_buffer_name:
            config_data["buffer_name"] = env_buffer_name

        env_max_lines = os.environ.get("TSREPL_MAX_LINES")
        if env_max_lines:
            config_data["max_lines"] = int(env_max_lines)

        return cls.model_validate(config_data)
