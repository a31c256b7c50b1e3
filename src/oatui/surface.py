"""Paint a :class:`~oatui.render.Frame` with rich.

The projector decides what every line says and how it is styled; this module
only turns that description into rich renderables: two bordered panels side
by side, the search box under the list while a query is being edited, and
the footer line. No terminal escape sequences are written here; printing is
left to the caller's :class:`~rich.console.Console`.
"""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from oatui.render import BORDER_ROWS, FOOTER_ROWS, SEARCH_ROWS, Frame, Line

FOCUSED_BORDER = "cyan"
UNFOCUSED_BORDER = "bright_black"
SELECTED_STYLE = "reverse"


def line_text(line: Line) -> Text:
    """Convert one projected line to a rich :class:`~rich.text.Text`."""
    text = Text(no_wrap=True, overflow="crop")
    for span in line.spans:
        text.append(span.text, style=span.style or None)
    if line.selected:
        text.stylize(SELECTED_STYLE)
    return text


def _pane(lines: tuple[Line, ...], title: str, focused: bool, width: int, height: int) -> Panel:
    body = Text("\n", no_wrap=True, overflow="crop").join(line_text(line) for line in lines)
    return Panel(
        body,
        title=Text(title, style="bold"),
        title_align="left",
        border_style=FOCUSED_BORDER if focused else UNFOCUSED_BORDER,
        width=width,
        height=height,
        padding=0,
    )


def render_frame(frame: Frame) -> RenderableType:
    """Build the renderable for a whole screen."""
    body_height = max(BORDER_ROWS + 1, frame.height - FOOTER_ROWS)
    detail_width = max(1, frame.width - frame.list_width)

    left: RenderableType
    list_height = body_height
    if frame.search_line is not None:
        list_height = max(BORDER_ROWS + 1, body_height - SEARCH_ROWS)
    list_panel = _pane(
        frame.list_lines, frame.list_title, frame.list_focused, frame.list_width, list_height
    )
    if frame.search_line is None:
        left = list_panel
    else:
        search_panel = Panel(
            line_text(frame.search_line),
            title=Text("Search", style="bold"),
            title_align="left",
            border_style=FOCUSED_BORDER,
            width=frame.list_width,
            height=SEARCH_ROWS,
            padding=0,
        )
        left = Group(list_panel, search_panel)

    detail_panel = _pane(
        frame.detail_lines, frame.detail_title, frame.detail_focused, detail_width, body_height
    )

    grid = Table.grid(padding=0)
    grid.add_column(width=frame.list_width, no_wrap=True)
    grid.add_column(width=detail_width, no_wrap=True)
    grid.add_row(left, detail_panel)
    return Group(grid, line_text(frame.footer))


def frame_to_text(frame: Frame) -> str:
    """Plain text of a frame, one pane after the other, without borders.

    Used for machine-readable output where box drawing would get in the way.
    """
    parts = [frame.list_title]
    parts += [line.text for line in frame.list_lines]
    if frame.search_line is not None:
        parts.append(frame.search_line.text)
    parts.append("")
    parts.append(frame.detail_title)
    parts += [line.text for line in frame.detail_lines]
    parts.append("")
    parts.append(frame.footer.text)
    return "\n".join(parts)
