"""
LC-3 Emulator — Input Back-ends

A Reader feeds bytes to the keyboard device (KBSR/KBDR). Every call to
`read_byte()` returns immediately:

  int       one byte was available
  None      nothing available right now, try again later
  raises    InputExhausted  no byte will ever arrive again
            InputCancelled  the user asked to stop

Two implementations share that contract:
  KeyboardReader   polls a terminal file descriptor with select()
  FileReader       consumes a pre-opened binary stream one byte at a time
"""

import logging
import os
import select
import sys
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

log = logging.getLogger(__name__)

ESC = 0x1B
CTRL_C = 0x03


class InputClosed(Exception):
    """The input source will deliver no further bytes."""


class InputExhausted(InputClosed):
    """A file-backed source ran out of bytes."""


class InputCancelled(InputClosed):
    """The user pressed a cancel key on an interactive source."""


class Reader(ABC):
    """Non-blocking byte source."""

    @abstractmethod
    def read_byte(self) -> Optional[int]:
        ...

    def close(self):
        pass


class FileReader(Reader):
    """Sequential bytes from a binary stream; exhaustion once it is empty."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream

    @classmethod
    def open(cls, path: Union[str, Path]) -> 'FileReader':
        return cls(open(path, 'rb'))

    def read_byte(self) -> Optional[int]:
        try:
            chunk = self._stream.read(1)
        except (OSError, ValueError) as e:
            raise InputExhausted(f"input read failed: {e}") from e
        if not chunk:
            raise InputExhausted("input file has no more bytes")
        return chunk[0]

    def close(self):
        self._stream.close()


class KeyboardReader(Reader):
    """Keystrokes from a terminal, polled without blocking.

    ESC and Ctrl-C cancel; in raw mode Ctrl-C arrives as a byte instead
    of a signal.
    """

    CANCEL_KEYS = (ESC, CTRL_C)

    def __init__(self, fd: Optional[int] = None,
                 cancel_keys: Iterable[int] = CANCEL_KEYS):
        self._fd = fd
        self.cancel_keys = frozenset(cancel_keys)

    def fileno(self) -> int:
        return sys.stdin.fileno() if self._fd is None else self._fd

    def read_byte(self) -> Optional[int]:
        fd = self.fileno()
        ready, _, _ = select.select([fd], [], [], 0)
        if not ready:
            return None
        data = os.read(fd, 1)
        if not data:
            raise InputExhausted("keyboard input closed")
        key = data[0]
        if key in self.cancel_keys:
            raise InputCancelled(f"cancel key 0x{key:02X} pressed")
        return key


@contextmanager
def raw_terminal(fd: Optional[int] = None):
    """Put a terminal into raw mode for the duration of the block.

    Does nothing when fd is not a terminal (piped input, tests).
    """
    fd = sys.stdin.fileno() if fd is None else fd
    if not os.isatty(fd):
        yield
        return

    import termios
    import tty

    old_settings = termios.tcgetattr(fd)
    try:
        tty.setraw(fd)
        log.debug("terminal fd %d in raw mode", fd)
        yield
    finally:
        termios.tcsetattr(fd, termios.TCSADRAIN, old_settings)
