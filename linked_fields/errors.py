"""Error types raised by the linked field engine.

Two families are distinguished so the HTTP layer can map them to the right
problem+json status:

- ConfigurationError: static configuration does not match the code (missing
  collection, unregistered model type, unsupported owner). Server fault.
- SubmissionValidationError: the submitted answer itself is unacceptable
  (non-integer aggregate, wrong value type). Client fault.
"""

from __future__ import annotations


class LinkedFieldError(Exception):
    """Base exception for linked field collection and sync."""

    status = 500
    code = "LINKED_FIELD_ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ConfigurationError(LinkedFieldError):
    status = 500
    code = "LINKED_FIELD_CONFIGURATION"


class SubmissionValidationError(LinkedFieldError):
    status = 400
    code = "LINKED_FIELD_INVALID_ANSWER"


__all__ = ["LinkedFieldError", "ConfigurationError", "SubmissionValidationError"]
