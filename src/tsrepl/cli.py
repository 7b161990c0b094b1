"""CLI entry point for tsrepl."""

from __future__ import annotations

import asyncio
import logging
import shlex

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from tsrepl import __version__
from tsrepl.config import SessionConfig, TsreplConfig
from tsrepl.editor import MemoryEditor
from tsrepl.filters import render_ansi
from tsrepl.process.host import ProcessHost
from tsrepl.session.dispatch import Dispatcher, load_statement
from tsrepl.session.manager import NoSessionError, SessionManager, SessionRegistry

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tsrepl",
    help="Run a TypeScript interpreter session and send source text into it.",
    no_args_is_help=True,
)

HELP_TEXT = """\
Lines are sent to the interpreter as typed. Commands:
  :load FILE               import FILE as a module
  :send FILE               send the whole contents of FILE
  :region FILE START END   send characters START..END of FILE
  :last FILE [OFFSET]      send the expression ending at OFFSET (default: end)
  :switch                  jump to the end of the session buffer
  :restart [COMMAND...]    kill the interpreter and start it again
  :tail [N]                reprint the last N lines of the session buffer
  :status                  list interpreter buffers
  :help                    show this text
  :quit                    exit
"""


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


class ReplShell:
    """Line-oriented front end standing in for the editor integration.

    Plain input lines go through the dispatcher; ``:``-prefixed lines map
    onto the send/load/switch operations using files as source buffers.
    """

    def __init__(self, config: TsreplConfig, console: Console | None = None) -> None:
        self.console = console or Console(highlight=False)
        self.config = config
        self.editor = MemoryEditor()
        self.registry = SessionRegistry.from_config(config)
        self.host = ProcessHost(max_lines=config.max_lines)
        self.host.add_listener(self._print_output)
        self.manager = SessionManager(self.registry, self.host, self.editor)
        self.dispatcher = Dispatcher(self.manager, self.editor)

    def _print_output(self, chunk: str) -> None:
        text = render_ansi(chunk) if self.registry.ansi_color else Text(chunk)
        self.console.print(text, end="", soft_wrap=True)

    def _file_dispatcher(self, path: str, point: int | None = None) -> Dispatcher:
        return Dispatcher(self.manager, MemoryEditor.from_file(path, point=point))

    async def handle(self, line: str) -> bool:
        """Handle one input line. Returns False when the shell should exit."""
        if not line.startswith(":"):
            await self.dispatcher.send_text(line)
            return True

        parts = shlex.split(line[1:])
        if not parts:
            return True
        cmd, args = parts[0], parts[1:]

        if cmd in ("quit", "q"):
            return False
        if cmd == "help":
            self.console.print(HELP_TEXT, end="")
        elif cmd == "load" and len(args) == 1:
            await self.dispatcher.load_file(args[0])
        elif cmd == "send" and len(args) == 1:
            await self._file_dispatcher(args[0]).send_buffer()
        elif cmd == "region" and len(args) == 3:
            await self._file_dispatcher(args[0]).send_region(int(args[1]), int(args[2]))
        elif cmd == "last" and len(args) in (1, 2):
            point = int(args[1]) if len(args) == 2 else None
            await self._file_dispatcher(args[0], point).send_last_expression()
        elif cmd == "switch":
            self.manager.switch_to_session(move_to_end=True)
            self.console.print(f"[dim]-- {self.editor.focused} --[/dim]")
        elif cmd == "restart":
            self.manager.kill_session()
            await self.manager.ensure_session(
                shlex.join(args) if args else None, keep_focus=True
            )
        elif cmd == "status":
            self._print_status()
        elif cmd == "tail" and len(args) <= 1:
            self._print_tail(int(args[0]) if args else 20)
        else:
            self.console.print(f"[red]Unknown command:[/red] {escape(line)}  (try :help)")
        return True

    def _print_status(self) -> None:
        table = Table("buffer", "command", "status", "lines")
        for info in self.host.list_buffers():
            table.add_row(
                info["name"], info["command"], info["status"], str(info["lines"])
            )
        self.console.print(table)

    def _print_tail(self, n: int) -> None:
        handle = self.manager.current_handle()
        if handle is None:
            raise NoSessionError("No current interpreter session")
        lines = handle.process.buffer.read_tail(n, raw=handle.display.ansi_color)
        if not lines:
            return
        text = "\n".join(lines) + "\n"
        rendered = render_ansi(text) if handle.display.ansi_color else Text(text)
        self.console.print(rendered, end="", soft_wrap=True)

    async def run(self, files: list[str]) -> None:
        loop = asyncio.get_running_loop()
        await self.manager.ensure_session(keep_focus=True)
        for path in files:
            await self.dispatcher.load_file(path)

        while True:
            line = await loop.run_in_executor(None, _read_line)
            if line is None:
                break
            try:
                if not await self.handle(line):
                    break
            except (RuntimeError, OSError, ValueError) as e:
                self.console.print(f"[red]Error:[/red] {escape(str(e))}")

    async def close(self) -> None:
        await self.host.cleanup()


def _read_line() -> str | None:
    try:
        return input()
    except EOFError:
        return None


async def _run_repl(config: TsreplConfig, files: list[str]) -> None:
    shell = ReplShell(config)
    try:
        await shell.run(files)
    finally:
        await shell.close()


@app.command()
def repl(
    files: list[str] = typer.Argument(
        None, help="Files to load into the session at startup."
    ),
    command: str | None = typer.Option(
        None,
        "--command",
        "-e",
        help="Interpreter command line (default: from env/config, 'tsun').",
    ),
    no_color: bool = typer.Option(
        False,
        "--no-color",
        help="Show output literally and ask the interpreter to skip readline.",
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug logging."
    ),
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Start an interpreter session and send lines into it."""
    setup_logging(verbose)

    config = TsreplConfig.load(config_file)
    try:
        if command:
            config = config.model_copy(
                update={"session": SessionConfig.from_command_line(command)}
            )
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    if no_color:
        config = config.model_copy(update={"ansi_color": False})

    typer.echo(f"tsrepl v{__version__}: {config.session}  (:help for commands)")

    try:
        asyncio.run(_run_repl(config, files or []))
    except OSError as e:
        typer.echo(f"Error: could not start {config.session}: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def statement(
    file: str = typer.Argument(help="File to build the load statement for."),
) -> None:
    """Print the import statement used to load FILE into a session."""
    typer.echo(load_statement(file), nl=False)


@app.command("show-config")
def show_config(
    config_file: str | None = typer.Option(
        None, "--config", "-c", help="Config file path."
    ),
) -> None:
    """Print the effective configuration."""
    config = TsreplConfig.load(config_file)
    typer.echo(config.model_dump_json(indent=2))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
