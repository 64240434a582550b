"""Errors raised by the review scheduler."""


class InvalidArgumentError(ValueError):
    """A caller passed a value outside the scheduler's contract (e.g. an unknown rating)."""
