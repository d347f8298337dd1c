"""
LC-3 Emulator — Output Back-ends

A Writer receives the bytes the display device (DDR) emits.
`write(data)` returns the number of bytes handed to the sink or raises
OutputError; the display device treats that as "not ready", never as
fatal.

  TerminalWriter   raw-mode terminal, LF is sent as CR LF
  FileWriter       plain byte stream, passed through unchanged
"""

import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO, Optional, Union


class OutputError(OSError):
    """The output sink rejected a write."""


class Writer(ABC):
    """Byte sink for display output."""

    translate_newlines = False

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    def write(self, data: bytes) -> int:
        if self.translate_newlines:
            data = data.replace(b'\n', b'\r\n')
        try:
            written = self._write(data)
        except (OSError, ValueError) as e:
            raise OutputError(f"output write failed: {e}") from e
        return len(data) if written is None else written

    @abstractmethod
    def _write(self, data: bytes) -> Optional[int]:
        ...

    def flush(self):
        try:
            self._stream.flush()
        except (OSError, ValueError) as e:
            raise OutputError(f"output flush failed: {e}") from e

    def close(self):
        self._stream.close()


class TerminalWriter(Writer):
    """Writes straight to a terminal, flushing every byte."""

    translate_newlines = True

    def __init__(self, stream: Optional[BinaryIO] = None):
        super().__init__(sys.stdout.buffer if stream is None else stream)

    def _write(self, data):
        written = self._stream.write(data)
        self._stream.flush()
        return written

    def close(self):
        # stdout belongs to the process
        self.flush()


class FileWriter(Writer):
    """Appends to a pre-opened binary stream."""

    @classmethod
    def open(cls, path: Union[str, Path]) -> 'FileWriter':
        return cls(open(path, 'wb'))

    def _write(self, data):
        return self._stream.write(data)
