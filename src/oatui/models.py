"""Canonical Pydantic models shared across all oatui modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Configuration models** -- read from the user's config directory:
    :class:`OutputConfig` and :class:`ViewerConfig`.

**Document models** -- produced by the normaliser and consumed, read-only, by
the navigation reducer and the rendering projector:
    :class:`HTTPMethod`, :class:`ParameterLocation`, the schema union
    (:class:`PrimitiveSchema`, :class:`ArraySchema`, :class:`ObjectSchema`,
    :class:`CompositeSchema`, :class:`ReferenceSchema`), :class:`Parameter`,
    :class:`RequestBody`, :class:`Response`, :class:`Endpoint`,
    :class:`APIInfo` and :class:`DocumentModel`.

Document models are frozen. A :class:`DocumentModel` is built once per loaded
document and replaced wholesale on reload, so it can be shared by reference
between the reducer and the projector.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# --- Config ---


class OutputConfig(BaseModel):
    """Default output preferences stored in :class:`ViewerConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )
    no_color: bool = Field(default=False, description="Disable colour output")


class ViewerConfig(BaseModel):
    """User-wide viewer settings read from ``~/.config/oatui/config.json``.

    Loaded by :func:`~oatui.config.load_global_config` and layered with the
    project file, environment variables and CLI flags by
    :func:`~oatui.config.resolve_config`. oatui never writes this file.
    """

    list_width: int = Field(
        default=40, description="Width of the endpoint list pane, in percent"
    )
    output: OutputConfig = Field(default_factory=OutputConfig)


# --- Document enums ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised by OpenAPI 3.x path-item objects."""

    GET = "get"
    POST = "post"
    PUT = "put"
    DELETE = "delete"
    PATCH = "patch"
    HEAD = "head"
    OPTIONS = "options"
    TRACE = "trace"

    @property
    def label(self) -> str:
        """Upper-case display form (``"GET"``)."""
        return self.value.upper()


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Combinator(str, enum.Enum):
    """Composition keywords of a :class:`CompositeSchema`."""

    ONE_OF = "oneOf"
    ANY_OF = "anyOf"
    ALL_OF = "allOf"


# --- Schemas ---


class _SchemaBase(BaseModel):
    """Fields shared by every schema kind."""

    model_config = ConfigDict(frozen=True)

    title: Optional[str] = Field(
        default=None, description="Component name or the schema's own title"
    )
    description: Optional[str] = None
    nullable: bool = False
    enum_values: Optional[tuple[Any, ...]] = None


class PrimitiveSchema(_SchemaBase):
    """A scalar type such as ``string`` or ``integer``.

    ``type`` is ``"any"`` when the source schema declares none.
    """

    kind: Literal["primitive"] = "primitive"
    type: str = "any"
    format: Optional[str] = None


class ArraySchema(_SchemaBase):
    """An ``array`` schema; ``items`` is ``None`` when left unspecified."""

    kind: Literal["array"] = "array"
    items: Optional[Schema] = None


class ObjectSchema(_SchemaBase):
    """An ``object`` schema with ordered properties."""

    kind: Literal["object"] = "object"
    properties: dict[str, Schema] = Field(default_factory=dict)
    required: frozenset[str] = frozenset()


class CompositeSchema(_SchemaBase):
    """A ``oneOf`` / ``anyOf`` / ``allOf`` composition."""

    kind: Literal["composite"] = "composite"
    combinator: Combinator
    variants: tuple[Schema, ...] = ()


class ReferenceSchema(_SchemaBase):
    """Placeholder pointing at an entry of :attr:`DocumentModel.schemas`.

    Only emitted where a ``$ref`` would close a cycle, so a schema graph never
    owns itself. ``target`` is the ``$ref`` string, e.g.
    ``"#/components/schemas/Node"``.
    """

    kind: Literal["reference"] = "reference"
    target: str


Schema = Annotated[
    Union[PrimitiveSchema, ArraySchema, ObjectSchema, CompositeSchema, ReferenceSchema],
    Field(discriminator="kind"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()
CompositeSchema.model_rebuild()


# --- Operations ---


class Parameter(BaseModel):
    """A single parameter of an :class:`Endpoint`.

    Path parameters are always required, whatever the source document says.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False
    schema_: Optional[Schema] = Field(default=None, alias="schema")


class RequestBody(BaseModel):
    """Request body of an :class:`Endpoint`, keyed by content type."""

    model_config = ConfigDict(frozen=True)

    required: bool = False
    description: Optional[str] = None
    content: dict[str, Optional[Schema]] = Field(default_factory=dict)


class Response(BaseModel):
    """One entry of an operation's ``responses`` map.

    ``status_code`` is the status as a string (``"200"``, ``"4XX"``) or the
    literal ``"default"``.
    """

    model_config = ConfigDict(frozen=True)

    status_code: str
    description: Optional[str] = None
    content: dict[str, Optional[Schema]] = Field(default_factory=dict)


class Endpoint(BaseModel):
    """One HTTP operation on one path.

    Identity is the ``(path, method)`` pair, unique within a document.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    method: HTTPMethod
    summary: Optional[str] = None
    description: Optional[str] = None
    operation_id: Optional[str] = None
    tags: tuple[str, ...] = ()
    deprecated: bool = False
    parameters: tuple[Parameter, ...] = ()
    request_body: Optional[RequestBody] = None
    responses: dict[str, Response] = Field(default_factory=dict)

    @property
    def key(self) -> str:
        """Display identity, e.g. ``"GET /users/{id}"``."""
        return f"{self.method.label} {self.path}"


class APIInfo(BaseModel):
    """API metadata extracted from the document's *Info Object*."""

    model_config = ConfigDict(frozen=True)

    title: str = "Untitled API"
    version: str = "0.0.0"
    description: Optional[str] = None


class DocumentModel(BaseModel):
    """The normalised, immutable result of loading one OpenAPI document.

    ``endpoints`` keeps document order. ``schemas`` is the shared table that
    :class:`ReferenceSchema` targets point into.

    See Also:
        :func:`~oatui.parser.normalizer.normalize`: Builds this model.
    """

    model_config = ConfigDict(frozen=True)

    info: APIInfo = Field(default_factory=APIInfo)
    openapi_version: str = "3.0.0"
    endpoints: tuple[Endpoint, ...] = ()
    schemas: dict[str, Schema] = Field(default_factory=dict)

    _index: dict[tuple[str, HTTPMethod], int] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: Any) -> None:
        self._index = {
            (endpoint.path, endpoint.method): position
            for position, endpoint in enumerate(self.endpoints)
        }

    def index_of(self, path: str, method: str | HTTPMethod) -> Optional[int]:
        """Return the position of the ``(path, method)`` endpoint, or ``None``.

        Args:
            path: Path template exactly as declared (``"/users/{id}"``).
            method: An :class:`HTTPMethod` or a method name in any case.
        """
        try:
            http_method = HTTPMethod(str(getattr(method, "value", method)).lower())
        except ValueError:
            return None
        return self._index.get((path, http_method))

    def lookup(self, target: str) -> Optional[Schema]:
        """Return the shared schema stored under *target*, if any."""
        return self.schemas.get(target)
