"""OpenAPI document parser -- load, resolve ``$ref`` pointers, and normalise.

This sub-package turns a raw OpenAPI 3.x document (JSON or YAML, local file,
remote URL or stdin) into an immutable :class:`~oatui.models.DocumentModel`.

Typical usage::

    from oatui.parser import build_model, load_document

    model = build_model(load_document("openapi.yaml"))

Sub-modules:

* :mod:`~oatui.parser.loader` -- I/O layer plus format detection and
  OpenAPI version validation.
* :mod:`~oatui.parser.resolver` -- ``$ref`` resolution into a shared,
  cycle-safe schema table.
* :mod:`~oatui.parser.normalizer` -- Walks the path items and produces the
  :class:`~oatui.models.DocumentModel`.
"""

from oatui.parser.loader import load_document, parse_document, validate_openapi_version
from oatui.parser.normalizer import build_model, merge_parameters, normalize
from oatui.parser.resolver import SchemaResolver, resolve_schemas

__all__ = [
    "load_document",
    "parse_document",
    "validate_openapi_version",
    "SchemaResolver",
    "resolve_schemas",
    "normalize",
    "build_model",
    "merge_parameters",
]
