"""
LEDGER ERRORS

ValidationError is an expected business-rule violation and carries enough
detail to render a message. InputShapeError is a programmer error and is
never caught by the API layer.
"""


class LedgerError(Exception):
    """Base exception for all ledger failures."""


class ValidationError(LedgerError):
    """Raised when a settlement or sale violates a business rule."""

    def __init__(self, message, *, constraint, balance=None, requested=None, available=None):
        super().__init__(message)
        self.message = message
        self.constraint = constraint
        self.balance = balance
        self.requested = requested
        self.available = available

    def as_dict(self):
        data = {"error": self.message, "constraint": self.constraint}
        if self.balance is not None:
            data["balance"] = self.balance
        if self.requested is not None:
            data["requested"] = f"{self.requested:.2f}"
        if self.available is not None:
            data["available"] = f"{self.available:.2f}"
        return data


class InputShapeError(LedgerError, TypeError):
    """Raised when a ledger function receives a malformed or absent record."""
