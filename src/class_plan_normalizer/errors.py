"""Exceptions raised while turning raw input into a class plan."""


NO_BLOCKS_MESSAGE = (
    "No workout blocks could be identified in the uploaded text. "
    'Please ensure it contains clear block headers like "Warm-up", '
    '"Main Set", "Cool Down", or use manual entry.'
)

INCOMPLETE_STRUCTURE_MESSAGE = "Workout structure is incomplete - no valid exercises found"


class PlanParseError(ValueError):
    """Raised when no workout blocks can be recovered from the input."""

    def __init__(self, message: str = NO_BLOCKS_MESSAGE):
        super().__init__(message)
        self.message = message


class CandidateFormatError(PlanParseError):
    """Raised when a structured candidate plan is malformed or reports its own error."""
