"""View command -- the two-pane endpoint viewer.

``oatui view`` opens a :class:`~oatui.session.Session` on a document and
prints its frames. With ``--keys`` it replays a key script headlessly and
prints the final frame, which makes any screen reproducible from the command
line. Without a script, on an interactive terminal, it reads key scripts line
by line until ``q`` or end of input.
"""

from __future__ import annotations

import sys
from typing import Optional

import typer

from oatui.commands.common import fail, open_model, parse_target
from oatui.config import resolve_config
from oatui.exceptions import ConfigError, InvalidUsageError
from oatui.keys import parse_key_script
from oatui.models import HTTPMethod
from oatui.output import OutputFormat, debug, get_output, warning
from oatui.render import Frame
from oatui.session import Session
from oatui.surface import frame_to_text, render_frame


def view_command(
    ctx: typer.Context,
    spec: str = typer.Argument(
        ..., help="OpenAPI document: file path, http(s) URL, or '-' for stdin."
    ),
    endpoint: Optional[str] = typer.Option(
        None, "--endpoint", "-e", help="Endpoint to select first, e.g. 'GET /users/{id}'."
    ),
    keys: Optional[str] = typer.Option(
        None,
        "--keys",
        "-k",
        help="Key script to replay, e.g. 'down enter' or '/ users enter'.",
    ),
    width: Optional[int] = typer.Option(
        None, "--width", min=20, help="Screen width (default: terminal width)."
    ),
    height: Optional[int] = typer.Option(
        None, "--height", min=8, help="Screen height (default: terminal height)."
    ),
    list_width: Optional[int] = typer.Option(
        None, "--list-width", help="List pane width in percent (20-80)."
    ),
) -> None:
    """Explore a document in the two-pane viewer.

    Keys: up/down or j/k move, enter opens an endpoint or toggles a schema
    node, esc goes back, / searches, pageup/pagedown scroll, q quits.

    Example::

        oatui view openapi.yaml --endpoint 'GET /users/{id}'
        oatui --plain view openapi.yaml --keys 'down enter down enter'
    """
    target: Optional[tuple[str, HTTPMethod]] = None
    config = (ctx.obj or {}).get("config")
    try:
        if endpoint is not None:
            target = parse_target(endpoint)
        script = parse_key_script(keys) if keys is not None else None
        if list_width is not None or config is None:
            config = resolve_config(cli_list_width=list_width)
    except (ConfigError, InvalidUsageError) as exc:
        raise fail(exc) from None

    model = open_model(spec)
    output = get_output()
    viewport = (width or output.width, height or output.height)

    session = Session.open(model, viewport, target, config.list_width)
    if session.state.notice:
        warning(session.state.notice)

    if script is not None:
        debug(f"Replaying {len(script)} keys")
        session.replay(script)
        _emit(session.frame)
        return

    if not sys.stdin.isatty():
        _emit(session.frame)
        return

    _interact(session)


def _interact(session: Session) -> None:
    """Read key scripts from the terminal until the session quits."""
    while not session.finished:
        _emit(session.frame)
        try:
            line = typer.prompt("keys", default="", show_default=False)
        except typer.Abort:
            break
        if not line.strip():
            continue
        session.replay(parse_key_script(line))


def _emit(frame: Frame) -> None:
    output = get_output()
    if output.format == OutputFormat.JSON:
        output.print_json(frame.model_dump(mode="json"))
    elif output.format == OutputFormat.PLAIN:
        output.print_data(frame_to_text(frame))
    else:
        output.print_renderable(render_frame(frame), width=frame.width)
