# LC-3 Emulator — instruction-level simulator for the LC-3 educational ISA
#
# Layout:
#   cpu/      registers, decoder/encoder, ALU helpers
#   mem/      64K-word memory with device register routing
#   periph/   keyboard, display and clock registers + I/O back-ends
#   emu.py    fetch/decode/execute loop
#   trace.py  filtered execution trace
#   predictor.py  two-bit branch predictor model

__version__ = "0.1.0"

from .emu import LC3Simulator, StopReason
from .cpu.decoder import Instruction, Opcode, decode, encode
from .mem.memory import LoadError
from .periph.reader import FileReader, KeyboardReader, InputCancelled, InputExhausted
from .periph.writer import FileWriter, OutputError, TerminalWriter
from .predictor import BranchOutcome, BranchPredictor
from .trace import NullTracer, Tracer, opcode_mask
