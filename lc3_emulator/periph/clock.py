"""
LC-3 Emulator — Machine Control / Clock Register

Register map:
  $FFFE  MCR  — Machine control (bit 15 = clock enable)

Plain read/write storage, powered on with bit 15 set. The run loop stops
as soon as bit 15 reads 0. The OS HALT routine clears it with an STI;
the simulator clears it through `stop()` when keyboard input is closed.
"""

MCR = 0xFFFE
CLK = MCR

# MCR bits
CLOCK_ENABLE = 0x8000


class ClockPeripheral:
    """MCR model."""

    def __init__(self):
        self._mcr = CLOCK_ENABLE

    def register(self, memory):
        memory.register_io_handler(MCR, self._read_mcr, self._write_mcr)

    def _read_mcr(self, addr: int) -> int:
        return self._mcr

    def _write_mcr(self, addr: int, value: int):
        self._mcr = value & 0xFFFF

    @property
    def running(self) -> bool:
        return bool(self._mcr & CLOCK_ENABLE)

    def stop(self):
        """Clear the clock enable bit. The current instruction still finishes."""
        self._mcr &= ~CLOCK_ENABLE & 0xFFFF

    def reset(self):
        self._mcr = CLOCK_ENABLE
