"""
Exceptions raised by the alignment and superposition engine
"""


class SuperpositionError(Exception):
    """Base class for superposition engine errors."""


class InternalConsistencyError(SuperpositionError):
    """Raised when an alignment path does not reconcile with its residue lists.

    This is a caller contract violation and is never recovered from.
    """


class NonFiniteCoordinatesError(SuperpositionError, ValueError):
    """Raised when a coordinate set handed to the solver contains NaN or inf."""
