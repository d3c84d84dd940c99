"""Custom exceptions"""

class StateDecodeError(Exception):
    """Raised when a state tree cannot be turned back into a logical state."""

class UnknownSchemaVersionError(StateDecodeError):
    """Raised when a compact tree carries a version tag we do not know."""

class IncompleteSchemaError(StateDecodeError):
    """Raised when a compact or logical tree is missing fields or has the wrong shape."""

class PersonNotFoundError(Exception):
    """Raised when a requested person index does not exist."""

class LastPersonError(Exception):
    """Raised when trying to remove the only remaining person."""
