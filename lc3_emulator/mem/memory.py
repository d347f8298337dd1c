"""
LC-3 Emulator — 64K-Word Memory with Device Register Routing

Memory map:
  $0000–$00FF  Trap vector table
  $0100–$01FF  Interrupt vector table (unused here)
  $0200–$2FFF  Operating system image
  $3000–$FDFF  User programs and data
  $FE00–$FFFF  Device registers (KBSR, KBDR, DSR, DDR, MCR/CLK)

Every address 0x0000–0xFFFF is a valid 16-bit word. Device models
register read/write handlers for their addresses; `read()`/`write()`
route those addresses to the handler and treat everything else as plain
storage. The CPU never looks at the backing array directly.

Object image format: big-endian 16-bit words, the first word is the load
origin, the rest are placed at origin, origin+1, ... wrapping at 0x10000.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, Optional, Union

log = logging.getLogger(__name__)

MEMORY_SIZE = 0x10000


class LoadError(Exception):
    """Object image could not be read or is too short to hold an origin."""


class Memory:
    """65536 words of storage plus memory-mapped device dispatch."""

    def __init__(self):
        self._mem = [0] * MEMORY_SIZE

        # Device register handlers: addr -> read_fn(addr) / write_fn(addr, value)
        self._io_read_handlers: Dict[int, Callable] = {}
        self._io_write_handlers: Dict[int, Callable] = {}

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read one word. Device addresses go to their handler."""
        addr &= 0xFFFF
        handler = self._io_read_handlers.get(addr)
        if handler is not None:
            return handler(addr) & 0xFFFF
        return self._mem[addr]

    def write(self, addr: int, value: int):
        """Write one word. Device addresses go to their handler.

        A device address with a read handler but no write handler is
        read-only: the write is dropped.
        """
        addr &= 0xFFFF
        value &= 0xFFFF
        handler = self._io_write_handlers.get(addr)
        if handler is not None:
            handler(addr, value)
            return
        if addr in self._io_read_handlers:
            return
        self._mem[addr] = value

    # --- Raw access for device models ---

    def peek(self, addr: int) -> int:
        """Backing storage at addr, bypassing device handlers."""
        return self._mem[addr & 0xFFFF]

    def poke(self, addr: int, value: int):
        """Set backing storage at addr, bypassing device handlers."""
        self._mem[addr & 0xFFFF] = value & 0xFFFF

    # --- Device handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable] = None,
                            write_fn: Optional[Callable] = None):
        """Register read/write handlers for a device register address.

        Args:
            addr: device register address ($FE00–$FFFF)
            read_fn: Callable(addr) -> int (16-bit value)
            write_fn: Callable(addr, value) -> None
        """
        if read_fn:
            self._io_read_handlers[addr & 0xFFFF] = read_fn
        if write_fn:
            self._io_write_handlers[addr & 0xFFFF] = write_fn

    # --- Bulk load ---

    def load_image(self, data: bytes) -> int:
        """Place an object image in memory and return its origin.

        Bypasses device handlers. A trailing odd byte is ignored.
        """
        if len(data) < 2:
            raise LoadError(f"object image is {len(data)} bytes, need at least 2")
        origin = (data[0] << 8) | data[1]
        addr = origin
        for i in range(2, len(data) - 1, 2):
            self._mem[addr] = (data[i] << 8) | data[i + 1]
            addr = (addr + 1) & 0xFFFF
        log.debug("placed %d words at x%04X", (len(data) - 2) // 2, origin)
        return origin

    def load_file(self, path: Union[str, Path]) -> int:
        """Read an object file from disk and place it. Returns the origin."""
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise LoadError(f"cannot read {path}: {e.strerror or e}") from e
        try:
            return self.load_image(data)
        except LoadError as e:
            raise LoadError(f"{path}: {e}") from e

    # --- Hex dump ---

    def hexdump(self, start: int, length: int = 64) -> str:
        """Word-oriented dump of backing storage, eight words per line."""
        lines = []
        for offset in range(0, length, 8):
            addr = (start + offset) & 0xFFFF
            count = min(8, length - offset)
            words = [self._mem[(addr + i) & 0xFFFF] for i in range(count)]
            hex_words = ' '.join(f'{w:04X}' for w in words)
            ascii_chars = ''.join(
                chr(w) if 0x20 <= w < 0x7F else '.' for w in words
            )
            lines.append(f'x{addr:04X}  {hex_words:<39}  {ascii_chars}')
        return '\n'.join(lines)
