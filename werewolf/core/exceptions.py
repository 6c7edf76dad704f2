"""
Exceptions raised by the rules engine.

Rule violations (dead targets, wrong actor, double acting) are not exceptions;
they come back as ``ActionResult(success=False)``. The classes here are for
caller bugs: bad configuration, broken invariants, wrong-phase calls.
"""


class WerewolfError(Exception):
    """Base class for engine errors."""


class GameConfigError(WerewolfError, ValueError):
    """Raised when a game configuration cannot be played."""

    def __init__(self, message: str, field: str = ""):
        self.field = field
        self.message = message
        super().__init__(message)


class InvariantViolationError(WerewolfError, RuntimeError):
    """Raised when the game state would be corrupted (two humans, negative round, revival)."""


class InvalidPhaseError(WerewolfError):
    """Raised when an engine operation is called in a phase that does not allow it."""

    def __init__(self, operation: str, phase: str):
        self.operation = operation
        self.phase = phase
        super().__init__(f"{operation} is not allowed during {phase}")


def ensure(condition: bool, message: str) -> None:
    """Fail loudly when an invariant does not hold."""
    if not condition:
        raise InvariantViolationError(message)
