"""Inspect commands -- read-only views of a document.

Provides ``oatui list`` (every endpoint in document order) and ``oatui show``
(the detail pane of one endpoint, printed once). Both load the document,
present the data in the active output format and exit.
"""

from __future__ import annotations

import typer

from oatui.commands.common import fail, open_model, parse_method
from oatui.exceptions import InvalidUsageError
from oatui.navigation import expand_all, initial_state
from oatui.output import OutputFormat, get_output, info
from oatui.render import detail_content, method_style
from oatui.surface import line_text


def list_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
) -> None:
    """List all endpoints in document order.

    Example::

        oatui list openapi.yaml
        oatui --json list https://petstore3.swagger.io/api/v3/openapi.json
    """
    model = open_model(spec)
    if not model.endpoints:
        info("No endpoints defined in this document.")
        return

    output = get_output()
    headers = ["Method", "Path", "Summary", "Deprecated"]
    rows = [
        [
            endpoint.method.label,
            endpoint.path,
            endpoint.summary or "-",
            "Yes" if endpoint.deprecated else "",
        ]
        for endpoint in model.endpoints
    ]
    if output.format == OutputFormat.RICH:
        # Colour the method cell per row.
        rows = [
            [f"[{method_style(e.method) or 'default'}]{row[0]}[/]", *row[1:]]
            for e, row in zip(model.endpoints, rows)
        ]
    output.print_table(
        headers,
        rows,
        title=f"{model.info.title} v{model.info.version} -- Endpoints ({len(rows)})",
    )


def show_command(
    spec: str = typer.Argument(
        ..., help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    method: str = typer.Argument(..., help="HTTP method, e.g. GET."),
    path: str = typer.Argument(..., help="Path template, e.g. /users/{id}."),
    expand_all_nodes: bool = typer.Option(
        False, "--expand-all", "-e", help="Expand every schema node."
    ),
) -> None:
    """Show the details of one endpoint.

    Prints the same lines the viewer's detail pane shows. Schema nodes are
    collapsed unless ``--expand-all`` is given; recursive references are
    marked instead of being expanded.

    Example::

        oatui show openapi.yaml GET /users/{id} --expand-all
    """
    try:
        http_method = parse_method(method)
    except InvalidUsageError as exc:
        raise fail(exc) from None

    model = open_model(spec)
    index = model.index_of(path, http_method)
    if index is None:
        raise fail(
            InvalidUsageError(f"Endpoint not found: {http_method.label} {path}"),
            hint=f"Run: oatui list {spec}",
        )

    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_json(model.endpoints[index].model_dump(mode="json", by_alias=True))
        return

    state = initial_state(model, target=(path, http_method))
    if expand_all_nodes:
        state = expand_all(model, state)
    for line in detail_content(model, state):
        if output.format == OutputFormat.RICH:
            output.print_renderable(line_text(line))
        else:
            output.print_data(line.text)
