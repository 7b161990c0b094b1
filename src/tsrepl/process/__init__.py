"""Interpreter process management — subprocesses attached to named buffers.

Each interpreter runs in a managed PTY with process group isolation,
output filtering, and a rolling scrollback buffer.
"""

from tsrepl.process.buffer import SessionBuffer
from tsrepl.process.host import ProcessHost
from tsrepl.process.process import InterpreterProcess, ProcessStatus

__all__ = [
    "InterpreterProcess",
    "ProcessStatus",
    "ProcessHost",
    "SessionBuffer",
]
