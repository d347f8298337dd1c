"""
LC-3 Emulator — Display Device Registers

Register map:
  $FE04  DSR  — Display status (bit 15 = ready for the next character)
  $FE06  DDR  — Display data (low byte is sent on write)

Writing DDR forwards the low byte to the Writer immediately, then clears
DDR and sets DSR ready again. If the Writer fails, DSR is left not ready
instead; execution carries on and software polling DSR simply never
sees it ready again. DDR always reads 0; DSR is read-only.
"""

import logging

from .writer import OutputError, Writer

log = logging.getLogger(__name__)

# Display register addresses
DSR = 0xFE04
DDR = 0xFE06

# DSR bits
DS_READY = 0x8000


class DisplayPeripheral:
    """DSR/DDR model over a Writer back-end."""

    def __init__(self, writer: Writer):
        self.writer = writer
        self._dsr = DS_READY
        self._ddr = 0x00
        self.bytes_sent = 0

    def register(self, memory):
        """Register I/O handlers with the memory system."""
        memory.register_io_handler(DSR, self._read_dsr, None)  # read-only
        memory.register_io_handler(DDR, self._read_ddr, self._write_ddr)

    # --- DSR register ($FE04) ---

    def _read_dsr(self, addr: int) -> int:
        return self._dsr

    # --- DDR register ($FE06) ---

    def _read_ddr(self, addr: int) -> int:
        return 0

    def _write_ddr(self, addr: int, value: int):
        self._ddr = value & 0xFF
        ok = True
        try:
            self.writer.write(bytes([self._ddr]))
        except OutputError as e:
            log.warning("display output failed, DSR cleared: %s", e)
            ok = False
        else:
            self.bytes_sent += 1

        self._ddr = 0x00
        self._dsr = DS_READY if ok else 0x0000

    @property
    def ready(self) -> bool:
        return bool(self._dsr & DS_READY)

    def reset(self):
        self._dsr = DS_READY
        self._ddr = 0x00
        self.bytes_sent = 0
