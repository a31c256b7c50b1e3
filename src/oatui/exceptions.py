"""Exception hierarchy for oatui.

All exceptions inherit from :class:`OatuiError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oatui.exit_codes`.
The top-level error handler in :func:`oatui.app.main` catches
``OatuiError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Every loading failure is fatal: there is no partially loaded model. Once a
:class:`~oatui.models.DocumentModel` exists, navigation and rendering never
raise.

Subclass hierarchy::

    OatuiError (exit 1)
    +-- InvalidUsageError             (exit 2)
    +-- ConfigError                   (exit 1)
    +-- SpecParseError                (exit 7)
        +-- ReferenceError_
        |   +-- UnresolvedReferenceError
        |   +-- UnsupportedReferenceError
        +-- MalformedDocumentError
"""

from __future__ import annotations

from typing import Optional

from oatui.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SPEC_PARSE_ERROR,
)


class OatuiError(Exception):
    """Base exception for all oatui errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OatuiError):
    """Raised for invalid CLI arguments (bad key script, bad endpoint target)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(OatuiError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE


class SpecParseError(OatuiError):
    """Raised when the OpenAPI document cannot be loaded or validated."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ReferenceError_(SpecParseError):
    """Base class for ``$ref`` resolution failures.

    Named with a trailing underscore to avoid shadowing the built-in
    ``ReferenceError``.

    Attributes:
        detail: The message without location prefix.
        ref: The offending ``$ref`` string.
        location: Where the reference was used, e.g. ``"GET /users"``.
    """

    def __init__(self, detail: str, ref: str, location: Optional[str] = None):
        super().__init__(f"{location}: {detail}" if location else detail)
        self.detail = detail
        self.ref = ref
        self.location = location


class UnresolvedReferenceError(ReferenceError_):
    """Raised when an internal ``$ref`` points at a location that does not exist."""


class UnsupportedReferenceError(ReferenceError_):
    """Raised for ``$ref`` pointers leaving the document (files, URLs)."""


class MalformedDocumentError(SpecParseError):
    """Raised when the document violates the OpenAPI structure.

    Attributes:
        reason: What is wrong, without location prefix.
        location: Where it is wrong, e.g. ``"GET /users"`` or ``"paths"``.
    """

    def __init__(self, reason: str, location: Optional[str] = None):
        message = f"{location}: {reason}" if location else reason
        super().__init__(message)
        self.reason = reason
        self.location = location
