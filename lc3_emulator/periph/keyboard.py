"""
LC-3 Emulator — Keyboard Device Registers

Register map:
  $FE00  KBSR  — Keyboard status (bit 15 = a key is waiting in KBDR)
  $FE02  KBDR  — Keyboard data (low byte = the key)

Both registers are read-only to the program; writes are dropped.

Reading KBSR polls the Reader once, without blocking:
  - byte available     latch it into KBDR, return $8000
  - nothing yet        return 0, no side effects
  - input closed       (exhausted or cancelled) call on_close, return 0

A byte is delivered exactly once. While it sits unread in KBDR, further
KBSR reads return $8000 without polling again, so no key is lost or
duplicated. Reading KBDR hands the byte over and clears the latch; a
second KBDR read before the next latch returns 0.
"""

import logging
from typing import Callable, Optional

from .reader import InputClosed, Reader

log = logging.getLogger(__name__)

# Keyboard register addresses
KBSR = 0xFE00
KBDR = 0xFE02

# KBSR bits
KB_READY = 0x8000


class KeyboardPeripheral:
    """KBSR/KBDR model over a Reader back-end."""

    def __init__(self, reader: Reader,
                 on_close: Optional[Callable[[InputClosed], None]] = None):
        self.reader = reader
        self._on_close = on_close
        self._kbdr = 0x00
        self._ready = False
        self.closed: Optional[InputClosed] = None

    def register(self, memory):
        """Register I/O handlers with the memory system."""
        memory.register_io_handler(KBSR, self._read_kbsr, None)  # read-only
        memory.register_io_handler(KBDR, self._read_kbdr, None)  # read-only

    # --- KBSR register ($FE00) ---

    def _read_kbsr(self, addr: int) -> int:
        if self._ready:
            return KB_READY
        if self.closed is not None:
            return 0

        try:
            byte = self.reader.read_byte()
        except InputClosed as e:
            self.closed = e
            log.info("keyboard input closed: %s", e)
            if self._on_close is not None:
                self._on_close(e)
            return 0

        if byte is None:
            return 0

        self._kbdr = byte & 0xFF
        self._ready = True
        return KB_READY

    # --- KBDR register ($FE02) ---

    def _read_kbdr(self, addr: int) -> int:
        if not self._ready:
            return 0
        value = self._kbdr
        self._kbdr = 0x00
        self._ready = False
        return value

    @property
    def pending(self) -> bool:
        """True while a latched key has not been read from KBDR."""
        return self._ready

    def reset(self):
        self._kbdr = 0x00
        self._ready = False
        self.closed = None
