"""Rendering projector: ``(DocumentModel, NavigationState) -> Frame``.

The projector is a pure function. It reads the model and the state, writes
nothing, and keeps no counters, so two calls with the same inputs produce
identical frames. That makes every screen testable without a terminal; the
:mod:`oatui.surface` module paints a :class:`Frame` with rich.

A frame is made of :class:`Line` values, each a tuple of :class:`Span` with a
rich style string. Lines in the detail pane that show an expandable schema
node carry the node's path in :attr:`Line.node`.

Node paths identify a node by its traversal path, not by the schema object:
the endpoint key is the root, followed by dotted segments such as
``requestBody.application/json.properties.address``. A schema shared between
two endpoints therefore expands independently under each of them. ``.`` and
``~`` inside a segment are escaped as ``~1`` and ``~0``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from oatui.models import (
    ArraySchema,
    CompositeSchema,
    DocumentModel,
    Endpoint,
    HTTPMethod,
    ObjectSchema,
    ParameterLocation,
    PrimitiveSchema,
    ReferenceSchema,
    Schema,
)
from oatui.state import NavigationState, Pane, SearchApplied, SearchEditing

METHOD_WIDTH = 7  # "OPTIONS"

METHOD_STYLES: dict[HTTPMethod, str] = {
    HTTPMethod.GET: "green",
    HTTPMethod.POST: "blue",
    HTTPMethod.PUT: "yellow",
    HTTPMethod.DELETE: "red",
    HTTPMethod.PATCH: "cyan",
}

SECTION_STYLE = "bold cyan"
MUTED_STYLE = "bright_black"
TEXT_STYLE = "white"
DESCRIPTION_STYLE = "grey70"
NAME_STYLE = "yellow"

EXPANDED_MARK = "▾"
COLLAPSED_MARK = "▸"
RECURSIVE_MARK = "↻"
ELLIPSIS = "…"

FOOTER_ROWS = 1
BORDER_ROWS = 2
SEARCH_ROWS = 3


class Span(BaseModel):
    """A run of text sharing one rich style (``""`` is the default style)."""

    model_config = ConfigDict(frozen=True)

    text: str
    style: str = ""


class Line(BaseModel):
    """One row of a pane."""

    model_config = ConfigDict(frozen=True)

    spans: tuple[Span, ...] = ()
    selected: bool = False
    node: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(span.text for span in self.spans)


class Frame(BaseModel):
    """Layout description of one screen."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    list_width: int
    list_title: str
    list_focused: bool
    list_lines: tuple[Line, ...]
    search_line: Optional[Line] = None
    detail_title: str
    detail_focused: bool
    detail_lines: tuple[Line, ...]
    footer: Line


# ------------------------------------------------------------------ #
# Public helpers
# ------------------------------------------------------------------ #


def method_style(method: HTTPMethod) -> str:
    """Colour class of an HTTP method; methods without one use the default."""
    return METHOD_STYLES.get(method, "")


def status_style(status: str) -> str:
    """Colour class of a response status (``2xx`` green ... ``5xx`` magenta)."""
    return {"2": "green", "3": "yellow", "4": "red", "5": "magenta"}.get(
        status[:1], MUTED_STYLE
    )


def node_path(root: str, *segments: object) -> str:
    """Build a node path from a root and raw segments, escaping each one."""
    return ".".join(_escape_segment(str(part)) for part in (root, *segments))


def child_path(parent: str, *segments: object) -> str:
    """Extend an existing node path with raw segments."""
    return ".".join([parent, *(_escape_segment(str(part)) for part in segments)])


def _escape_segment(segment: str) -> str:
    return segment.replace("~", "~0").replace(".", "~1")


def pane_heights(state: NavigationState) -> tuple[int, int]:
    """Return ``(list_rows, detail_rows)`` of content for the state's viewport."""
    _, height = state.viewport
    body = max(1, height - FOOTER_ROWS - BORDER_ROWS)
    list_rows = body
    if isinstance(state.search_mode, SearchEditing):
        list_rows = max(1, body - SEARCH_ROWS)
    return list_rows, body


def pane_widths(state: NavigationState) -> tuple[int, int]:
    """Return the outer ``(list, detail)`` pane widths for the state's viewport."""
    width, _ = state.viewport
    list_width = max(1, min(width - 1, width * state.list_width // 100)) if width > 1 else 1
    return list_width, max(1, width - list_width)


def selected_endpoint(model: DocumentModel, state: NavigationState) -> Optional[Endpoint]:
    if state.selected_index is None or not 0 <= state.selected_index < len(model.endpoints):
        return None
    return model.endpoints[state.selected_index]


def detail_content(model: DocumentModel, state: NavigationState) -> tuple[Line, ...]:
    """All detail-pane lines of the selected endpoint, before scrolling.

    Returns a single placeholder line when nothing is selected.
    """
    endpoint = selected_endpoint(model, state)
    if endpoint is None:
        return (Line(spans=(Span(text="No endpoint selected", style=MUTED_STYLE),)),)
    return tuple(_DetailBuilder(model, state.expanded_schema_nodes).build(endpoint))


def max_detail_scroll(model: DocumentModel, state: NavigationState) -> int:
    """Largest useful detail scroll offset for the current content and viewport."""
    _, rows = pane_heights(state)
    return max(0, len(detail_content(model, state)) - rows)


# ------------------------------------------------------------------ #
# Projector
# ------------------------------------------------------------------ #


def project(model: DocumentModel, state: NavigationState) -> Frame:
    """Project the model and navigation state onto a :class:`Frame`."""
    width, height = state.viewport
    list_outer, detail_outer = pane_widths(state)
    list_inner = max(1, list_outer - 2)
    detail_inner = max(1, detail_outer - 2)
    list_rows, detail_rows = pane_heights(state)

    search_line = None
    if isinstance(state.search_mode, SearchEditing):
        search_line = _fit(
            Line(spans=(Span(text="/" + state.search_mode.query, style=NAME_STYLE),)),
            list_inner,
        )

    content = detail_content(model, state)
    offset = min(state.detail_scroll_offset, max(0, len(content) - detail_rows))
    detail_focused = state.focused_pane == Pane.DETAIL
    cursor = min(state.detail_cursor, len(content) - 1)
    detail_lines = tuple(
        _fit(
            line.model_copy(update={"selected": detail_focused and offset + row == cursor}),
            detail_inner,
        )
        for row, line in enumerate(content[offset : offset + detail_rows])
    )

    return Frame(
        width=width,
        height=height,
        list_width=list_outer,
        list_title=_list_title(model, state),
        list_focused=state.focused_pane == Pane.LIST
        and not isinstance(state.search_mode, SearchEditing),
        list_lines=tuple(_fit(line, list_inner) for line in _list_lines(model, state, list_rows)),
        search_line=search_line,
        detail_title="Details",
        detail_focused=detail_focused,
        detail_lines=detail_lines,
        footer=_fit(_footer(state), width),
    )


def _list_title(model: DocumentModel, state: NavigationState) -> str:
    title = f"{model.info.title} v{model.info.version}"
    if isinstance(state.search_mode, SearchApplied):
        title += (
            f" [{state.search_mode.query}]"
            f" ({len(state.search_mode.matches)}/{len(model.endpoints)})"
        )
    return title


def _list_lines(model: DocumentModel, state: NavigationState, rows: int) -> list[Line]:
    visible = state.visible_indices
    indices = range(len(model.endpoints)) if visible is None else visible
    if not indices:
        message = "No endpoints" if visible is None else "No matches"
        return [Line(spans=(Span(text=message, style=MUTED_STYLE),))]

    window = list(indices)[state.list_scroll_offset : state.list_scroll_offset + rows]
    lines = []
    for index in window:
        endpoint = model.endpoints[index]
        selected = index == state.selected_index
        lines.append(
            Line(
                spans=(
                    Span(text="> " if selected else "  "),
                    Span(
                        text=endpoint.method.label.ljust(METHOD_WIDTH),
                        style=method_style(endpoint.method),
                    ),
                    Span(text=" "),
                    Span(
                        text=endpoint.path,
                        style=MUTED_STYLE if endpoint.deprecated else "",
                    ),
                ),
                selected=selected,
            )
        )
    return lines


def _footer(state: NavigationState) -> Line:
    if state.focused_pane == Pane.DETAIL:
        hint = "↑/↓ move  Enter expand/collapse  PgUp/PgDn scroll  Esc back  q quit"
    elif isinstance(state.search_mode, SearchEditing):
        hint = "type to filter  ↑/↓ move  Enter apply  Esc cancel"
    elif isinstance(state.search_mode, SearchApplied):
        hint = "↑/↓ move  Enter details  / search  Esc clear filter  q quit"
    else:
        hint = "↑/↓ move  Enter details  / search  q quit"

    spans = [Span(text=hint, style=MUTED_STYLE)]
    if state.notice:
        spans = [Span(text=state.notice, style="bold yellow"), Span(text="  "), *spans]
    return Line(spans=tuple(spans))


def _fit(line: Line, width: int) -> Line:
    """Truncate *line* to *width* cells, marking the cut with an ellipsis."""
    if len(line.text) <= width:
        return line
    spans: list[Span] = []
    room = max(0, width - 1)
    for span in line.spans:
        if room <= 0:
            break
        spans.append(span.model_copy(update={"text": span.text[:room]}))
        room -= len(span.text)
    spans.append(Span(text=ELLIPSIS, style=MUTED_STYLE))
    return line.model_copy(update={"spans": tuple(spans)})


# ------------------------------------------------------------------ #
# Detail pane
# ------------------------------------------------------------------ #


class _DetailBuilder:
    """Accumulate the detail lines of one endpoint."""

    def __init__(self, model: DocumentModel, expanded: frozenset[str]) -> None:
        self._model = model
        self._expanded = expanded
        self._shared_ids = {id(schema): ref for ref, schema in model.schemas.items()}
        self._lines: list[Line] = []

    def build(self, endpoint: Endpoint) -> list[Line]:
        root = endpoint.key
        header = [
            Span(text=endpoint.method.label, style=f"bold {method_style(endpoint.method)}".strip()),
            Span(text=" "),
            Span(text=endpoint.path, style="bold"),
        ]
        if endpoint.deprecated:
            header += [Span(text=" "), Span(text="deprecated", style="bold red")]
        self._add(*header)
        self._blank()

        if endpoint.summary:
            self._add(Span(text=endpoint.summary, style=TEXT_STYLE))
            self._blank()
        if endpoint.description:
            for text in endpoint.description.splitlines():
                self._add(Span(text=text, style=DESCRIPTION_STYLE))
            self._blank()
        if endpoint.operation_id or endpoint.tags:
            if endpoint.operation_id:
                self._add(Span(text=f"operationId: {endpoint.operation_id}", style=MUTED_STYLE))
            if endpoint.tags:
                self._add(Span(text=f"tags: {', '.join(endpoint.tags)}", style=MUTED_STYLE))
            self._blank()

        if endpoint.parameters:
            self._parameters(root, endpoint)
            self._blank()
        if endpoint.request_body is not None:
            self._request_body(root, endpoint)
            self._blank()
        if endpoint.responses:
            self._responses(root, endpoint)

        while self._lines and not self._lines[-1].spans:
            self._lines.pop()
        return self._lines

    def _parameters(self, root: str, endpoint: Endpoint) -> None:
        self._add(Span(text="Parameters", style=SECTION_STYLE))
        for location in ParameterLocation:
            params = [p for p in endpoint.parameters if p.location == location]
            if not params:
                continue
            self._add(Span(text=f"  {location.value}", style=MUTED_STYLE))
            for param in params:
                label = param.name + ("*" if param.required else "")
                path = node_path(root, "parameters", location.value, param.name)
                self._schema(param.schema_, path, label, indent=4, visiting=frozenset())
                if param.description:
                    self._add(Span(text=f"      {param.description}", style=DESCRIPTION_STYLE))

    def _request_body(self, root: str, endpoint: Endpoint) -> None:
        body = endpoint.request_body
        assert body is not None
        self._add(
            Span(
                text="Request Body" + (" (required)" if body.required else ""),
                style=SECTION_STYLE,
            )
        )
        if body.description:
            self._add(Span(text=f"  {body.description}", style=DESCRIPTION_STYLE))
        for content_type, schema in body.content.items():
            path = node_path(root, "requestBody", content_type)
            self._schema(schema, path, content_type, indent=2, visiting=frozenset())

    def _responses(self, root: str, endpoint: Endpoint) -> None:
        self._add(Span(text="Responses", style=SECTION_STYLE))
        for status, response in endpoint.responses.items():
            spans = [Span(text="  "), Span(text=status, style=status_style(status))]
            if response.description:
                spans += [Span(text=" - "), Span(text=response.description, style=TEXT_STYLE)]
            self._add(*spans)
            for content_type, schema in response.content.items():
                path = node_path(root, "responses", status, content_type)
                self._schema(schema, path, content_type, indent=4, visiting=frozenset())

    # -- schema trees ------------------------------------------------ #

    def _schema(
        self,
        schema: Optional[Schema],
        path: str,
        label: str,
        indent: int,
        visiting: frozenset[str],
    ) -> None:
        pad = " " * indent
        if schema is None:
            self._add(
                Span(text=f"{pad}  "),
                Span(text=label, style=NAME_STYLE),
                Span(text=" (any)", style=MUTED_STYLE),
            )
            return

        target, visiting, recursive = self._follow(schema, visiting)
        if recursive:
            self._add(
                Span(text=f"{pad}{RECURSIVE_MARK} "),
                Span(text=label, style=NAME_STYLE),
                Span(text=f" {_display_name(schema)} (recursive)", style=MUTED_STYLE),
            )
            return

        summary = Span(text=" " + _summary(schema, target), style=MUTED_STYLE)
        children = _children(target, path)
        description = _description(schema, target)
        tail = [Span(text=f"  {description}", style=DESCRIPTION_STYLE)] if description else []
        if not children:
            self._add(Span(text=f"{pad}  "), Span(text=label, style=NAME_STYLE), summary, *tail)
            return

        expanded = path in self._expanded
        mark = EXPANDED_MARK if expanded else COLLAPSED_MARK
        self._add(
            Span(text=f"{pad}{mark} "),
            Span(text=label, style=NAME_STYLE),
            summary,
            *tail,
            node=path,
        )
        if expanded:
            for child_label, child, child_node in children:
                self._schema(child, child_node, child_label, indent + 2, visiting)

    def _follow(
        self, schema: Schema, visiting: frozenset[str]
    ) -> tuple[Schema, frozenset[str], bool]:
        """Step through references and record shared schemas on the traversal path.

        Returns ``(target, visiting, recursive)`` where *recursive* means the
        target is already being displayed further up this branch.
        """
        above = visiting
        seen: set[str] = set()
        while isinstance(schema, ReferenceSchema):
            if schema.target in visiting or schema.target in seen:
                return schema, visiting, True
            seen.add(schema.target)
            target = self._model.lookup(schema.target)
            if target is None:
                return schema, visiting, True
            visiting = visiting | {schema.target}
            schema = target
        # Array items may expand in place of the array, so they count as visited too.
        for node in (schema, getattr(schema, "items", None)):
            shared = self._shared_ids.get(id(node))
            if shared is None:
                continue
            # A shared schema reached again without a placeholder in between.
            if shared in above:
                return schema, above, True
            visiting = visiting | {shared}
        return schema, visiting, False

    # -- line helpers ------------------------------------------------ #

    def _add(self, *spans: Span, node: Optional[str] = None) -> None:
        self._lines.append(Line(spans=tuple(spans), node=node))

    def _blank(self) -> None:
        if self._lines and self._lines[-1].spans:
            self._lines.append(Line())


def _children(schema: Schema, path: str) -> list[tuple[str, Schema, str]]:
    """Return the ``(label, schema, node path)`` children shown when *schema* expands."""
    if isinstance(schema, ObjectSchema):
        return [
            (
                name + ("*" if name in schema.required else ""),
                prop,
                child_path(path, "properties", name),
            )
            for name, prop in schema.properties.items()
        ]
    if isinstance(schema, CompositeSchema):
        return [
            (
                f"{schema.combinator.value}[{position}]",
                variant,
                child_path(path, schema.combinator.value, position),
            )
            for position, variant in enumerate(schema.variants)
        ]
    if isinstance(schema, ArraySchema):
        items = schema.items
        # Arrays of objects expand straight to the members of one item.
        if isinstance(items, (ObjectSchema, CompositeSchema)):
            return _children(items, child_path(path, "items"))
        if isinstance(items, (ArraySchema, ReferenceSchema)):
            return [("items", items, child_path(path, "items"))]
    return []


def _display_name(schema: Schema) -> str:
    if isinstance(schema, ReferenceSchema):
        return schema.title or schema.target
    return schema.title or _type_name(schema)


def _type_name(schema: Schema) -> str:
    if isinstance(schema, PrimitiveSchema):
        text = schema.type + (f"<{schema.format}>" if schema.format else "")
    elif isinstance(schema, ArraySchema):
        text = "array"
        if schema.items is not None:
            text += f"[{_display_name(schema.items)}]"
    elif isinstance(schema, ObjectSchema):
        text = "object"
    elif isinstance(schema, CompositeSchema):
        text = f"{schema.combinator.value}({len(schema.variants)})"
    else:
        text = f"→ {schema.title or schema.target}"
    return text


def _summary(schema: Schema, target: Schema) -> str:
    """One-line description of a node as shown next to its label."""
    text = _type_name(schema)
    if isinstance(schema, ReferenceSchema):
        text += f" {_type_name(target)}"
    elif schema.title and not isinstance(schema, ArraySchema):
        text = f"{schema.title} {text}"
    if isinstance(target, ObjectSchema) and target.properties:
        count = len(target.properties)
        text += f" {{{count} {'property' if count == 1 else 'properties'}}}"
    if target.enum_values:
        text += " enum[" + ", ".join(str(value) for value in target.enum_values) + "]"
    if target.nullable:
        text += " | null"
    return f"({text})"


def _description(schema: Schema, target: Schema) -> Optional[str]:
    text = schema.description or target.description
    if not text:
        return None
    return text.splitlines()[0]
