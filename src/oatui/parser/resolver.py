"""Resolve ``$ref`` pointers into a shared, cycle-safe schema graph.

OpenAPI documents use ``$ref`` pointers (``{"$ref": "#/components/schemas/Pet"}``)
to share definitions. Instead of deep-copying every target into place, the
:class:`SchemaResolver` keeps an arena: each referenced schema is converted
once, stored in a table keyed by its ``$ref`` string, and the same object is
returned for every later use.

Cycles are detected with the set of ids currently being resolved on the
active resolution path. When an id reappears on that path the branch ends
with a :class:`~oatui.models.ReferenceSchema` holding only the id, so a
self-referential schema (a tree node whose ``children`` are nodes) becomes a
finite graph with a single placeholder at the cycle point.

Only internal references (``#/...``) are supported. External file or URL
references raise :class:`~oatui.exceptions.UnsupportedReferenceError`;
internal references to missing locations raise
:class:`~oatui.exceptions.UnresolvedReferenceError`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from oatui.exceptions import (
    MalformedDocumentError,
    UnresolvedReferenceError,
    UnsupportedReferenceError,
)
from oatui.models import (
    ArraySchema,
    Combinator,
    CompositeSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    Schema,
)

logger = logging.getLogger(__name__)

COMPONENT_SCHEMAS_PREFIX = "#/components/schemas/"


class SchemaResolver:
    """Convert raw schema objects of one document into :data:`~oatui.models.Schema` values.

    Args:
        document: The parsed OpenAPI document. It is never modified.

    Example::

        resolver = SchemaResolver(document)
        table = resolver.resolve_components()
        node = table["#/components/schemas/Node"]
    """

    def __init__(self, document: dict[str, Any]) -> None:
        self._document = document
        self._table: dict[str, Schema] = {}
        self._visiting: list[str] = []

    @property
    def table(self) -> dict[str, Schema]:
        """Snapshot of the id -> schema table built so far."""
        return dict(self._table)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def resolve_components(self) -> dict[str, Schema]:
        """Resolve every ``components.schemas`` entry in declaration order.

        Resolving in a fixed order keeps the table (and therefore where cycle
        placeholders land) identical across loads of the same document.
        """
        components = self._document.get("components") or {}
        if not isinstance(components, dict):
            raise MalformedDocumentError("'components' must be a mapping")
        schemas = components.get("schemas") or {}
        if not isinstance(schemas, dict):
            raise MalformedDocumentError("'components.schemas' must be a mapping")

        declared = [COMPONENT_SCHEMAS_PREFIX + escape_pointer(str(name)) for name in schemas]
        for ref in declared:
            self.resolve({"$ref": ref})

        # Dependencies land in the table first; put declared components back in order.
        ordered = {ref: self._table[ref] for ref in declared}
        ordered.update((ref, schema) for ref, schema in self._table.items() if ref not in ordered)
        self._table = ordered
        return self.table

    def resolve(self, raw: Any) -> Schema:
        """Convert one raw schema object, following ``$ref`` pointers.

        Raises:
            UnresolvedReferenceError: A ``$ref`` target does not exist.
            UnsupportedReferenceError: A ``$ref`` leaves the document.
        """
        if isinstance(raw, dict) and "$ref" in raw:
            return self._resolve_ref(raw["$ref"])
        return self._convert(raw)

    def deref(self, raw: Any) -> Any:
        """Follow ``$ref`` pointers on a non-schema object (parameter, response...).

        Returns:
            The raw target object, after every ``$ref`` hop.

        Raises:
            UnresolvedReferenceError: A target is missing or the chain loops.
            UnsupportedReferenceError: A ``$ref`` leaves the document.
        """
        chain: list[str] = []
        while isinstance(raw, dict) and "$ref" in raw:
            ref = raw["$ref"]
            if ref in chain:
                raise UnresolvedReferenceError(
                    f"Circular $ref chain: {' -> '.join(chain + [ref])}", ref
                )
            chain.append(ref)
            raw = self.pointer(ref)
        return raw

    def pointer(self, ref: Any) -> Any:
        """Return the value an internal JSON pointer designates.

        Handles RFC 6901 escaping (``~1`` for ``/``, ``~0`` for ``~``) and
        numeric indexes into lists.
        """
        if not isinstance(ref, str):
            raise MalformedDocumentError(f"$ref must be a string, got {ref!r}")
        if not ref.startswith("#"):
            raise UnsupportedReferenceError(
                f"External $ref not supported: {ref}. "
                "Only internal references (#/...) are handled.",
                ref,
            )
        if ref in ("#", "#/"):
            return self._document

        current: Any = self._document
        for segment in ref[2:].split("/"):
            segment = segment.replace("~1", "/").replace("~0", "~")
            if isinstance(current, dict):
                if segment not in current:
                    raise UnresolvedReferenceError(
                        f"Cannot resolve $ref '{ref}': key '{segment}' not found",
                        ref,
                    )
                current = current[segment]
            elif isinstance(current, list):
                try:
                    current = current[int(segment)]
                except (ValueError, IndexError) as exc:
                    raise UnresolvedReferenceError(
                        f"Cannot resolve $ref '{ref}': invalid array index '{segment}'",
                        ref,
                    ) from exc
            else:
                raise UnresolvedReferenceError(
                    f"Cannot resolve $ref '{ref}': "
                    f"cannot navigate into {type(current).__name__}",
                    ref,
                )
        return current

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _resolve_ref(self, ref: Any) -> Schema:
        if isinstance(ref, str) and ref in self._table:
            return self._table[ref]
        if ref in self._visiting:
            logger.debug("Cycle detected at %s (path: %s)", ref, " -> ".join(self._visiting))
            return ReferenceSchema(target=ref, title=reference_name(ref))

        target = self.pointer(ref)
        self._visiting.append(ref)
        try:
            if isinstance(target, dict) and "$ref" in target:
                schema = self._resolve_ref(target["$ref"])
            else:
                schema = self._convert(target, title=reference_name(ref))
        finally:
            self._visiting.pop()

        self._table[ref] = schema
        return schema

    def _convert(self, raw: Any, title: Optional[str] = None) -> Schema:
        # `true`, `{}` and non-mapping values all mean "anything".
        if not isinstance(raw, dict):
            return PrimitiveSchema(title=title)

        type_name, nullable = _schema_type(raw.get("type"))
        enum = raw.get("enum")
        common: dict[str, Any] = {
            "title": title or _optional_str(raw.get("title")),
            "description": _optional_str(raw.get("description")),
            "nullable": nullable or raw.get("nullable") is True,
            "enum_values": tuple(enum) if isinstance(enum, list) else None,
        }

        for combinator in Combinator:
            variants_raw = raw.get(combinator.value)
            if not isinstance(variants_raw, list):
                continue
            variants = [self.resolve(variant) for variant in variants_raw]
            own = {
                key: value
                for key, value in raw.items()
                if key not in _COMBINATOR_KEYS and key not in _ANNOTATION_KEYS
            }
            if own.keys() & _SHAPE_KEYS:
                variants.append(self._convert(own))
            return CompositeSchema(combinator=combinator, variants=tuple(variants), **common)

        if type_name == "array" or (type_name is None and "items" in raw):
            items = self.resolve(raw["items"]) if "items" in raw else None
            return ArraySchema(items=items, **common)

        if type_name == "object" or (type_name is None and "properties" in raw):
            properties_raw = raw.get("properties")
            if not isinstance(properties_raw, dict):
                properties_raw = {}
            required_raw = raw.get("required")
            required = (
                frozenset(str(name) for name in required_raw)
                if isinstance(required_raw, list)
                else frozenset()
            )
            return ObjectSchema(
                properties={
                    str(name): self.resolve(prop) for name, prop in properties_raw.items()
                },
                required=required,
                **common,
            )

        return PrimitiveSchema(
            type=type_name or "any",
            format=_optional_str(raw.get("format")),
            **common,
        )


_COMBINATOR_KEYS = frozenset(c.value for c in Combinator)
_ANNOTATION_KEYS = frozenset({"title", "description", "nullable", "enum", "example", "default"})
# Keys that give the siblings of a combinator a shape of their own.
_SHAPE_KEYS = frozenset({"type", "properties", "items"})


def _schema_type(type_value: Any) -> tuple[Optional[str], bool]:
    """Return ``(type, nullable)`` for a ``type`` keyword.

    OpenAPI 3.1 allows a list such as ``["string", "null"]``; the first
    non-null entry wins and ``"null"`` marks the schema nullable.
    """
    if isinstance(type_value, list):
        non_null = [str(t) for t in type_value if t != "null"]
        return (non_null[0] if non_null else None), "null" in type_value
    if type_value is None:
        return None, False
    return str(type_value), False


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def escape_pointer(segment: str) -> str:
    """Escape one JSON pointer segment (RFC 6901)."""
    return segment.replace("~", "~0").replace("/", "~1")


def reference_name(ref: Any) -> Optional[str]:
    """Return the last segment of a ``$ref``, e.g. ``"Pet"``."""
    if not isinstance(ref, str) or "/" not in ref:
        return None
    return ref.rsplit("/", 1)[-1].replace("~1", "/").replace("~0", "~") or None


def resolve_schemas(document: dict[str, Any]) -> dict[str, Schema]:
    """Build the shared schema table for *document*.

    Convenience wrapper around :meth:`SchemaResolver.resolve_components`.
    """
    return SchemaResolver(document).resolve_components()
