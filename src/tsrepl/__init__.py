"""tsrepl — drive a TypeScript interpreter session from an editor."""

__version__ = "0.1.0"
