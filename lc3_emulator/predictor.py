"""
LC-3 Emulator — Two-bit Branch Predictor

Saturating counter over observed conditional-branch outcomes:

    STRONGLY_NOT_TAKEN <-> NOT_TAKEN <-> TAKEN <-> STRONGLY_TAKEN

A TAKEN outcome moves one step right, NOT_TAKEN one step left, both
saturating at the ends. JUMP (JSR/JSRR/JMP/TRAP) and NONE leave the
state alone. `LC3Simulator.step()` returns the outcome of each
instruction, but the run loop never consults a predictor; feed it from
outside when modelling pipeline hazards.
"""

from enum import Enum, IntEnum


class BranchOutcome(Enum):
    TAKEN = 'TAKEN'
    NOT_TAKEN = 'NOT_TAKEN'
    JUMP = 'JUMP'
    NONE = 'NONE'


class PredictorState(IntEnum):
    STRONGLY_NOT_TAKEN = 0
    NOT_TAKEN = 1
    TAKEN = 2
    STRONGLY_TAKEN = 3


class BranchPredictor:
    """Two-bit saturating counter, starting weakly not-taken."""

    def __init__(self, state: PredictorState = PredictorState.NOT_TAKEN):
        self.state = PredictorState(state)

    def predicts_taken(self) -> bool:
        return self.state >= PredictorState.TAKEN

    def observe(self, outcome: BranchOutcome) -> PredictorState:
        """Update the counter with one outcome and return the new state."""
        if outcome is BranchOutcome.TAKEN:
            self.state = PredictorState(min(self.state + 1, PredictorState.STRONGLY_TAKEN))
        elif outcome is BranchOutcome.NOT_TAKEN:
            self.state = PredictorState(max(self.state - 1, PredictorState.STRONGLY_NOT_TAKEN))
        return self.state

    def reset(self):
        self.state = PredictorState.NOT_TAKEN
