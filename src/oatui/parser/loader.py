"""Read OpenAPI documents from a local file, a URL, or stdin.

This is the only I/O in the loading pipeline. It hands a generic tree of
dicts, lists and scalars to :mod:`oatui.parser.resolver` and
:mod:`oatui.parser.normalizer`, which never see bytes.

The two public functions are:

* :func:`load_document` -- read and parse a document from any supported source.
* :func:`validate_openapi_version` -- check the ``openapi`` field and return it.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from oatui.exceptions import SpecParseError

logger = logging.getLogger(__name__)

_JSON_SUFFIXES = frozenset({".json"})
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def load_document(source: str) -> dict[str, Any]:
    """Load an OpenAPI document from a URL, file path, or stdin (``"-"``).

    JSON and YAML are both accepted; the format is guessed from the file
    extension or the response content type, then from the content itself.

    Args:
        source: An ``http(s)`` URL, a file path, or ``"-"`` for stdin.

    Returns:
        The parsed document as a dictionary.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        text, hint = _read_stdin(), ""
    elif source.startswith(("http://", "https://")):
        text, hint = _fetch(source)
    else:
        text, hint = _read_file(source)
    logger.debug("Loaded %d characters from %s", len(text), source)
    return parse_document(text, hint=hint)


def _read_stdin() -> str:
    try:
        text = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not text.strip():
        raise SpecParseError("No input received from stdin")
    return text


def _fetch(url: str) -> tuple[str, str]:
    """Fetch a document over HTTP and derive a format hint from its content type."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return response.text, hint


def _read_file(path: str) -> tuple[str, str]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document not found: {path}")
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc
    if not text.strip():
        raise SpecParseError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    if suffix in _JSON_SUFFIXES:
        return text, "json"
    if suffix in _YAML_SUFFIXES:
        return text, "yaml"
    return text, ""


def parse_document(text: str, hint: str = "") -> dict[str, Any]:
    """Parse *text* as JSON or YAML.

    JSON is tried first unless *hint* says ``"yaml"``; every JSON document is
    also YAML, but the JSON parser is stricter and gives better errors.

    Args:
        text: Raw document text.
        hint: ``"json"``, ``"yaml"`` or ``""`` for unknown.

    Returns:
        The top-level mapping.

    Raises:
        SpecParseError: If neither parser accepts the text, or the top level
            is not a mapping.
    """
    json_error: Exception | None = None

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(text))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            json_error = exc

    try:
        return _require_mapping(yaml.safe_load(text))
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise SpecParseError(msg) from exc


def _require_mapping(value: Any) -> dict[str, Any]:
    if not isinstance(value, dict):
        kind = type(value).__name__ if value is not None else "empty document"
        raise SpecParseError(f"Document must be a JSON/YAML object (got {kind})")
    return value


def validate_openapi_version(document: dict[str, Any]) -> str:
    """Validate and return the OpenAPI version string.

    Any ``3.x`` version is accepted. Swagger 2.x and documents without an
    ``openapi`` field are rejected.

    Raises:
        SpecParseError: If the version is missing, unsupported, or Swagger 2.x.
    """
    if "swagger" in document:
        raise SpecParseError(
            f"Swagger {document['swagger']} is not supported. "
            "Only OpenAPI 3.x documents can be viewed. "
            "Consider converting with https://converter.swagger.io"
        )

    version = document.get("openapi")
    if version is None:
        raise SpecParseError(
            "Missing 'openapi' field. Is this an OpenAPI 3.x document?"
        )

    version_str = str(version)
    if not version_str.startswith("3."):
        raise SpecParseError(
            f"Unsupported OpenAPI version: {version_str}. "
            "Only OpenAPI 3.x is supported."
        )
    return version_str
