"""
Error types raised by the print farm engine.

"No feasible assignment" is not an error: strategies simply return None
and leave every job pending.
"""


class PrintFarmError(Exception):
    """Base class for all print farm errors."""


class ValidationError(PrintFarmError):
    """A caller request was rejected; no state was changed."""


class InvariantViolation(PrintFarmError):
    """A caller broke a contract of the data model (capacity, ownership, idle printer)."""


class InsufficientFilament(PrintFarmError):
    """A spool does not hold enough filament for the requested amount."""

    def __init__(self, spool_id: int, requested: float, remaining: float):
        super().__init__(
            f"Spool {spool_id} has {remaining} left, cannot consume {requested}"
        )
        self.spool_id = spool_id
        self.requested = requested
        self.remaining = remaining
