"""Interpreter session — lifecycle (manager) and text dispatch."""

from tsrepl.session.dispatch import Dispatcher, load_statement
from tsrepl.session.manager import (
    DisplayFilterState,
    NoSessionError,
    SessionHandle,
    SessionManager,
    SessionRegistry,
)

__all__ = [
    "Dispatcher",
    "DisplayFilterState",
    "NoSessionError",
    "SessionHandle",
    "SessionManager",
    "SessionRegistry",
    "load_statement",
]
