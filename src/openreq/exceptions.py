"""Exception hierarchy for openreq.

All exceptions inherit from :class:`OpenreqError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`openreq.exit_codes`.
The top-level error handler in :func:`openreq.app.main` catches
``OpenreqError`` and exits with the appropriate code.

Subclass hierarchy::

    OpenreqError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- SchemaParseError        (exit 7)
    +-- ReferenceError_         (exit 7)
    +-- MissingSchemaError      (exit 6)
    +-- UnknownOperationError   (exit 4)
    +-- RequiredParameterError  (exit 3)
    +-- TypeValidationError     (exit 3)
    +-- MalformedPathError      (exit 7)
    +-- HttpTransportError      (exit 5)
"""

from __future__ import annotations

from openreq.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MISSING_SCHEMA,
    EXIT_SCHEMA_PARSE_ERROR,
    EXIT_TRANSPORT_ERROR,
    EXIT_UNKNOWN_OPERATION,
    EXIT_VALIDATION_ERROR,
)


class OpenreqError(Exception):
    """Base exception for all openreq errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OpenreqError):
    """Raised for invalid CLI arguments or malformed batch input."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(OpenreqError):
    """Raised for configuration problems (missing profiles, invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class SchemaParseError(OpenreqError):
    """Raised when document text is neither valid JSON nor valid YAML, or has the wrong shape."""

    exit_code = EXIT_SCHEMA_PARSE_ERROR


class ReferenceError_(OpenreqError):
    """Raised when a reference pointer cannot be resolved against the document.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ReferenceError``.
    """

    exit_code = EXIT_SCHEMA_PARSE_ERROR

    def __init__(self, pointer: str, detail: str | None = None):
        message = f"Invalid reference: {pointer}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.pointer = pointer


class MissingSchemaError(OpenreqError):
    """Raised when no document source was supplied at all."""

    exit_code = EXIT_MISSING_SCHEMA


class UnknownOperationError(OpenreqError):
    """Raised when the selected ``method|path`` key does not exist in the document."""

    exit_code = EXIT_UNKNOWN_OPERATION

    def __init__(self, key: str):
        super().__init__(f"Unknown operation: {key}")
        self.key = key


class RequiredParameterError(OpenreqError):
    """Raised when one or more required parameters are absent.

    The message lists every missing parameter, not only the first.
    """

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(self, missing: list[str]):
        super().__init__(f"Missing required parameters: {', '.join(missing)}")
        self.missing = list(missing)


class TypeValidationError(OpenreqError):
    """Raised when a supplied value does not match its declared parameter type."""

    exit_code = EXIT_VALIDATION_ERROR

    def __init__(self, parameter: str, problems: list[str]):
        super().__init__(f"Parameter {parameter} {'; '.join(problems)}")
        self.parameter = parameter
        self.problems = list(problems)


class MalformedPathError(OpenreqError):
    """Raised when a path template contains an unterminated ``{`` placeholder."""

    exit_code = EXIT_SCHEMA_PARSE_ERROR


class HttpTransportError(OpenreqError):
    """Raised by the transport on HTTP error statuses or network failures.

    The engine does not interpret the contents; the message is passed
    through to the caller as-is.
    """

    exit_code = EXIT_TRANSPORT_ERROR

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
