from __future__ import annotations


class InputValidationError(ValueError):
    """Caller input rejected before any provider call."""

    def __init__(self, message: str, *, code: str = "invalid_input", status_code: int = 400):
        super().__init__(message)
        self.code = code
        self.status_code = status_code
