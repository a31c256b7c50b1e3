"""Normalise a parsed OpenAPI document into a :class:`~oatui.models.DocumentModel`.

The normaliser walks the ``paths`` object in declaration order (authors group
related endpoints, so the order is kept rather than sorted) and emits one
:class:`~oatui.models.Endpoint` per HTTP method declared on each path item.
Schemas are converted through a single :class:`~oatui.parser.resolver.SchemaResolver`
so that every endpoint shares the same schema objects.

Parameter merging follows the OpenAPI rules: path-level parameters apply to
every operation of the path item, and a parameter declared again with the
same ``name`` and ``in`` replaces the earlier one (last declared wins).

Structural violations raise :class:`~oatui.exceptions.MalformedDocumentError`
and reference failures propagate from the resolver, in both cases prefixed
with the location (``"GET /users"``) so the user can find the problem. No
partial model is ever produced. Missing optional fields (summary,
description, parameters) are not errors.

The public entry points are :func:`normalize` and :func:`build_model`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from oatui.exceptions import (
    MalformedDocumentError,
    ReferenceError_,
)
from oatui.models import (
    APIInfo,
    DocumentModel,
    Endpoint,
    HTTPMethod,
    Parameter,
    ParameterLocation,
    RequestBody,
    Response,
    Schema,
)
from oatui.parser.loader import validate_openapi_version
from oatui.parser.resolver import SchemaResolver

logger = logging.getLogger(__name__)

_HTTP_METHODS = frozenset(m.value for m in HTTPMethod)


def build_model(document: dict[str, Any]) -> DocumentModel:
    """Validate the OpenAPI version of *document* and normalise it.

    Raises:
        SpecParseError: The version is missing or unsupported, or any error
            raised by :func:`normalize`.
    """
    version = validate_openapi_version(document)
    return normalize(document, openapi_version=version)


def normalize(document: Any, openapi_version: Optional[str] = None) -> DocumentModel:
    """Build the immutable model for one document.

    Args:
        document: The parsed document tree (``dict`` at the top level).
        openapi_version: Version string to record; read from the document
            when omitted.

    Returns:
        A :class:`~oatui.models.DocumentModel` with endpoints in document
        order and the shared schema table.

    Raises:
        MalformedDocumentError: The document does not have the OpenAPI shape,
            e.g. an operation without a ``responses`` object.
        UnresolvedReferenceError: A ``$ref`` target does not exist.
        UnsupportedReferenceError: A ``$ref`` points outside the document.

    Example::

        model = normalize(yaml.safe_load(text))
        for endpoint in model.endpoints:
            print(endpoint.key)
    """
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            f"document must be a mapping, got {type(document).__name__}"
        )

    resolver = SchemaResolver(document)
    with _located("components"):
        resolver.resolve_components()

    endpoints = _normalize_paths(document, resolver)
    logger.debug(
        "Normalised %d endpoints and %d shared schemas",
        len(endpoints),
        len(resolver.table),
    )
    return DocumentModel(
        info=_normalize_info(document.get("info")),
        openapi_version=openapi_version or str(document.get("openapi", "3.0.0")),
        endpoints=tuple(endpoints),
        schemas=resolver.table,
    )


def _normalize_info(info: Any) -> APIInfo:
    if not isinstance(info, dict):
        return APIInfo()
    return APIInfo(
        title=str(info.get("title") or "Untitled API"),
        version=str(info.get("version") or "0.0.0"),
        description=_text(info.get("description")),
    )


def _normalize_paths(document: dict[str, Any], resolver: SchemaResolver) -> list[Endpoint]:
    paths = document.get("paths")
    if paths is None:
        return []
    if not isinstance(paths, dict):
        raise MalformedDocumentError("'paths' must be a mapping", "paths")

    endpoints: list[Endpoint] = []
    for path, raw_item in paths.items():
        path = str(path)
        with _located(path):
            path_item = resolver.deref(raw_item)
        if not isinstance(path_item, dict):
            raise MalformedDocumentError("path item must be a mapping", path)

        path_params = path_item.get("parameters") or []
        for key, operation in path_item.items():
            if key not in _HTTP_METHODS:
                continue
            method = HTTPMethod(key)
            location = f"{method.label} {path}"
            with _located(location):
                endpoints.append(
                    _normalize_operation(path, method, operation, path_params, resolver)
                )
    return endpoints


def _normalize_operation(
    path: str,
    method: HTTPMethod,
    operation: Any,
    path_params: Any,
    resolver: SchemaResolver,
) -> Endpoint:
    if not isinstance(operation, dict):
        raise MalformedDocumentError("operation must be a mapping")

    responses = operation.get("responses")
    if not isinstance(responses, dict) or not responses:
        raise MalformedDocumentError("operation has no responses object")

    tags = operation.get("tags") or []
    return Endpoint(
        path=path,
        method=method,
        summary=_text(operation.get("summary")),
        description=_text(operation.get("description")),
        operation_id=_text(operation.get("operationId")),
        tags=tuple(str(tag) for tag in tags) if isinstance(tags, list) else (),
        deprecated=operation.get("deprecated") is True,
        parameters=tuple(
            _normalize_parameter(raw, resolver)
            for raw in merge_parameters(
                _parameter_list(path_params, resolver),
                _parameter_list(operation.get("parameters") or [], resolver),
            )
        ),
        request_body=_normalize_request_body(operation.get("requestBody"), resolver),
        responses={
            str(status): _normalize_response(str(status), raw, resolver)
            for status, raw in responses.items()
        },
    )


def _parameter_list(raw: Any, resolver: SchemaResolver) -> list[dict[str, Any]]:
    """Dereference a ``parameters`` array, checking its shape."""
    if not isinstance(raw, list):
        raise MalformedDocumentError("'parameters' must be a list")
    params = []
    for item in raw:
        param = resolver.deref(item)
        if not isinstance(param, dict):
            raise MalformedDocumentError("parameter must be a mapping")
        params.append(param)
    return params


def merge_parameters(*levels: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Merge parameter lists, later declarations replacing earlier ones.

    Parameters are keyed by ``(name, in)``. A replaced parameter moves to the
    position of its last declaration.

    Args:
        levels: Parameter lists from the outermost (path item) to the
            innermost (operation) level.
    """
    merged: dict[tuple[Any, Any], dict[str, Any]] = {}
    for params in levels:
        for param in params:
            key = (param.get("name"), param.get("in"))
            merged.pop(key, None)
            merged[key] = param
    return list(merged.values())


def _normalize_parameter(param: dict[str, Any], resolver: SchemaResolver) -> Parameter:
    name = param.get("name")
    if not name:
        raise MalformedDocumentError("parameter has no name")
    try:
        location = ParameterLocation(param.get("in"))
    except ValueError:
        raise MalformedDocumentError(
            f"parameter '{name}' has invalid location {param.get('in')!r}"
        ) from None

    schema: Optional[Schema] = None
    if "schema" in param:
        schema = resolver.resolve(param["schema"])
    elif isinstance(param.get("content"), dict):
        # A parameter described by `content` carries exactly one media type.
        for media in param["content"].values():
            schema = _media_schema(media, resolver)
            break

    return Parameter(
        name=str(name),
        location=location,
        required=location == ParameterLocation.PATH or param.get("required") is True,
        description=_text(param.get("description")),
        deprecated=param.get("deprecated") is True,
        schema=schema,
    )


def _normalize_request_body(raw: Any, resolver: SchemaResolver) -> Optional[RequestBody]:
    if raw is None:
        return None
    body = resolver.deref(raw)
    if not isinstance(body, dict):
        raise MalformedDocumentError("requestBody must be a mapping")
    return RequestBody(
        required=body.get("required") is True,
        description=_text(body.get("description")),
        content=_normalize_content(body.get("content"), resolver),
    )


def _normalize_response(status: str, raw: Any, resolver: SchemaResolver) -> Response:
    response = resolver.deref(raw)
    if not isinstance(response, dict):
        raise MalformedDocumentError(f"response '{status}' must be a mapping")
    return Response(
        status_code=status,
        description=_text(response.get("description")),
        content=_normalize_content(response.get("content"), resolver),
    )


def _normalize_content(raw: Any, resolver: SchemaResolver) -> dict[str, Optional[Schema]]:
    if not isinstance(raw, dict):
        return {}
    return {
        str(content_type): _media_schema(media, resolver)
        for content_type, media in raw.items()
    }


def _media_schema(media: Any, resolver: SchemaResolver) -> Optional[Schema]:
    if isinstance(media, dict) and "schema" in media:
        return resolver.resolve(media["schema"])
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@contextmanager
def _located(location: str) -> Iterator[None]:
    """Prefix loading errors raised inside the block with *location*.

    The innermost location wins; outer blocks leave located errors alone.
    """
    try:
        yield
    except MalformedDocumentError as exc:
        if exc.location is not None:
            raise
        raise MalformedDocumentError(exc.reason, location) from exc
    except ReferenceError_ as exc:
        if exc.location is not None:
            raise
        raise type(exc)(exc.detail, exc.ref, location) from exc
