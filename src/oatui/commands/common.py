"""Helpers shared by the CLI commands."""

from __future__ import annotations

from typing import Optional

import typer

from oatui.exceptions import InvalidUsageError, OatuiError, UnsupportedReferenceError
from oatui.models import DocumentModel, HTTPMethod
from oatui.output import debug, error, suggest


def open_model(source: str) -> DocumentModel:
    """Load, validate and normalise the document at *source*.

    Loading errors are reported on stderr and end the command with the
    error's exit code.

    Raises:
        typer.Exit: The document could not be loaded.
    """
    from oatui.parser import build_model, load_document

    debug(f"Loading OpenAPI document from {source}")
    try:
        model = build_model(load_document(source))
    except UnsupportedReferenceError as exc:
        raise fail(exc, hint="Bundle the document into a single file first.") from None
    except OatuiError as exc:
        raise fail(exc) from None
    debug(f"Loaded {len(model.endpoints)} endpoints, {len(model.schemas)} shared schemas")
    return model


def parse_method(value: str) -> HTTPMethod:
    """Parse an HTTP method name in any case.

    Raises:
        InvalidUsageError: *value* is not an HTTP method.
    """
    try:
        return HTTPMethod(value.strip().lower())
    except ValueError:
        choices = ", ".join(m.label for m in HTTPMethod)
        raise InvalidUsageError(
            f"Unknown HTTP method {value!r}; expected one of: {choices}"
        ) from None


def parse_target(value: str) -> tuple[str, HTTPMethod]:
    """Parse an endpoint target written as ``"GET /users/{id}"``.

    Returns:
        A ``(path, method)`` tuple.

    Raises:
        InvalidUsageError: *value* is not ``METHOD /path``.
    """
    parts = value.split(None, 1)
    if len(parts) != 2 or not parts[1].startswith("/"):
        raise InvalidUsageError(
            f"Endpoint must look like 'GET /path', got {value!r}"
        )
    return parts[1].strip(), parse_method(parts[0])


def fail(exc: OatuiError, hint: Optional[str] = None) -> typer.Exit:
    """Report *exc* and return the :class:`typer.Exit` that ends the command.

    *hint*, when given, is printed after the error as a suggested next step.
    """
    error(str(exc))
    if hint:
        suggest(hint)
    return typer.Exit(code=exc.exit_code)
