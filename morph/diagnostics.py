"""Tagged console diagnostics.

Debug lines go to stdout and warnings to stderr, each prefixed with a marker so
the launcher can filter the chatty ones with :class:`DebugSilencer`.
"""

from __future__ import annotations

import io
import sys

__all__ = ["DEBUG_MARKER", "WARN_MARKER", "debug", "warn", "DebugSilencer", "install_debug_silencer"]

DEBUG_MARKER = "[Morph][DEBUG]"
WARN_MARKER = "[Morph][WARN]"


def debug(message: str) -> None:
    print(f"{DEBUG_MARKER} {message}", flush=True)


def warn(message: str) -> None:
    print(f"{WARN_MARKER} {message}", file=sys.stderr, flush=True)


class DebugSilencer(io.TextIOBase):
    """Stream wrapper dropping every line that contains ``marker``."""

    def __init__(self, stream, marker: str = DEBUG_MARKER) -> None:
        super().__init__()
        self._stream = stream
        self._marker = marker
        self._buffer: str = ""

    def write(self, text: str) -> int:  # type: ignore[override]
        self._buffer += text
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            self._emit(line + "\n")
        return len(text)

    def flush(self) -> None:  # type: ignore[override]
        if self._buffer:
            self._emit(self._buffer)
            self._buffer = ""
        self._stream.flush()

    def _emit(self, chunk: str) -> None:
        if self._marker not in chunk:
            self._stream.write(chunk)

    def writable(self) -> bool:
        return True

    def __getattr__(self, name):
        return getattr(self._stream, name)


def install_debug_silencer(marker: str = DEBUG_MARKER) -> None:
    if marker and not isinstance(sys.stdout, DebugSilencer):
        sys.stdout = DebugSilencer(sys.stdout, marker)
    if marker and not isinstance(sys.stderr, DebugSilencer):
        sys.stderr = DebugSilencer(sys.stderr, marker)
