"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~openreq.exceptions.OpenreqError` subclass.
Shell wrappers can inspect the exit code to tell a bad document apart from a
rejected parameter or a failed HTTP call without parsing stderr.

Example::

    $ openreq call "get|/pets/{id}" --param path|id=abc
    $ echo $?
    3   # EXIT_VALIDATION_ERROR -- the value did not match its declared type
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_VALIDATION_ERROR = 3
"""A caller-supplied parameter was missing or did not match its declared type."""

EXIT_UNKNOWN_OPERATION = 4
"""The selected operation key does not exist in the document."""

EXIT_TRANSPORT_ERROR = 5
"""The HTTP call failed (error status or network failure)."""

EXIT_MISSING_SCHEMA = 6
"""No document source was supplied."""

EXIT_SCHEMA_PARSE_ERROR = 7
"""The document could not be parsed or a reference could not be resolved."""
