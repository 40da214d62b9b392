class SettleupError(Exception):
    """Base class for errors raised by the split and settlement core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SettleupError):
    """Caller supplied input that breaks a precondition. Fix the input and retry."""


class InvariantError(SettleupError):
    """Stored data is inconsistent, e.g. balances that do not net to zero."""
