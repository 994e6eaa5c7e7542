"""Custom exceptions for touhou-info."""


class TouhouInfoError(Exception):
    """Base exception for touhou-info."""
    pass


class InvalidInputError(TouhouInfoError, ValueError):
    """A core function was called with input it cannot work on."""
    pass
