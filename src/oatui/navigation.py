"""Navigation state machine.

:func:`reduce` is a pure reducer ``(model, state, event) -> state``: it reads
the immutable :class:`~oatui.models.DocumentModel`, never performs I/O and
never raises for a well-formed event. Index and offset changes are clamped, so
moving past either end of the list is a no-op rather than an error, and a
state with no endpoints simply ignores movement.

The effective mode is ``focused_pane x search_mode``:

* List pane, no filter -- arrows move through every endpoint.
* List pane, editing -- typed characters refine the live match list; arrows
  step through matches only.
* List pane, filter applied -- like the unfiltered list, restricted to the
  matches.
* Detail pane -- arrows move a line cursor over the detail content, Enter
  expands or collapses the schema node under the cursor.

``Quit`` is terminal: once ``quit`` is set every later event is ignored.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Callable, Optional, Sequence

from oatui.models import DocumentModel, Endpoint, HTTPMethod
from oatui.render import detail_content, max_detail_scroll, pane_heights
from oatui.state import (
    Back,
    Confirm,
    Event,
    MoveDown,
    MoveUp,
    NavigationState,
    Pane,
    Quit,
    Resize,
    ScrollDown,
    ScrollUp,
    SearchApplied,
    SearchBackspace,
    SearchCancel,
    SearchChar,
    SearchEditing,
    SearchInactive,
    SearchSubmit,
    StartSearch,
    ToggleSchemaNode,
)

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Search
# ------------------------------------------------------------------ #


def matches_query(endpoint: Endpoint, query: str) -> bool:
    """Return ``True`` when *query* matches the endpoint's path or summary.

    Matching is case-insensitive and the query characters must appear in
    order, not necessarily adjacent, so ``"useid"`` matches ``/users/{id}``.
    Typing ``useid`` to narrow a list to ``GET /users/{id}`` is the search the
    viewer supports, and no plain substring match can do that. Every substring
    match is also a match, and looser queries match more: ``"ps"`` matches
    ``/pets``. The empty query matches every endpoint.
    """
    needle = query.casefold()
    return any(
        _is_subsequence(needle, text.casefold())
        for text in (endpoint.path, endpoint.summary or "")
    )


def _is_subsequence(needle: str, haystack: str) -> bool:
    chars = iter(haystack)
    return all(char in chars for char in needle)


def search(model: DocumentModel, query: str) -> tuple[int, ...]:
    """Return the indexes of all endpoints matching *query*, in document order."""
    return tuple(
        index
        for index, endpoint in enumerate(model.endpoints)
        if matches_query(endpoint, query)
    )


# ------------------------------------------------------------------ #
# Initial state
# ------------------------------------------------------------------ #


def initial_state(
    model: DocumentModel,
    viewport: tuple[int, int] = (80, 24),
    target: Optional[tuple[str, str | HTTPMethod]] = None,
    list_width: int = 40,
) -> NavigationState:
    """Build the state the viewer opens with.

    Args:
        model: The loaded document.
        viewport: Terminal ``(width, height)`` in cells.
        target: Optional ``(path, method)`` to select instead of the first
            endpoint.
        list_width: Width of the list pane as a percentage of the viewport.

    An unknown *target* is not fatal: a warning is logged, the message is
    kept in :attr:`~oatui.state.NavigationState.notice` for the footer, and
    the first endpoint is selected.
    """
    selected: Optional[int] = 0 if model.endpoints else None
    notice: Optional[str] = None

    if target is not None:
        path, method = target
        index = model.index_of(path, method)
        if index is None:
            label = str(getattr(method, "value", method)).upper()
            notice = f"Endpoint not found: {label} {path}"
            logger.warning("%s; showing the first endpoint instead", notice)
        else:
            selected = index

    state = NavigationState(
        selected_index=selected,
        viewport=viewport,
        list_width=list_width,
        notice=notice,
    )
    return _follow_selection(model, state)


# ------------------------------------------------------------------ #
# Reducer
# ------------------------------------------------------------------ #


def reduce(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    """Return the state that follows *state* after *event*.

    Events that make no sense in the current mode (``StartSearch`` in the
    detail pane, ``SearchChar`` while no search is being edited, ...) return
    *state* unchanged.
    """
    if state.quit:
        return state
    if state.notice is not None and not isinstance(event, Resize):
        state = state.model_copy(update={"notice": None})

    handler = _HANDLERS.get(type(event))
    if handler is None:
        logger.debug("Ignoring unknown event %r", event)
        return state
    return handler(model, state, event)


def reduce_all(
    model: DocumentModel, state: NavigationState, events: Sequence[Event]
) -> NavigationState:
    """Apply *events* in order, as the interactive loop would."""
    for event in events:
        state = reduce(model, state, event)
    return state


def _on_move(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    step = 1 if isinstance(event, MoveDown) else -1
    if state.focused_pane == Pane.DETAIL:
        return _move_cursor(model, state, step)

    count = _visible_count(model, state)
    if not count:
        return state
    position = _position(model, state)
    if position is None:
        position = 0
    else:
        position = max(0, min(position + step, count - 1))
    return _select(model, state, _index_at(state, position))


def _on_confirm(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    if isinstance(state.search_mode, SearchEditing):
        return state
    if state.focused_pane == Pane.DETAIL:
        lines = detail_content(model, state)
        if 0 <= state.detail_cursor < len(lines) and lines[state.detail_cursor].node:
            return _toggle(model, state, lines[state.detail_cursor].node)
        return state

    if _position(model, state) is None:
        return state
    return state.model_copy(
        update={
            "focused_pane": Pane.DETAIL,
            "detail_scroll_offset": 0,
            "detail_cursor": 0,
        }
    )


def _on_back(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    if state.focused_pane == Pane.DETAIL:
        return state.model_copy(update={"focused_pane": Pane.LIST})
    if isinstance(state.search_mode, SearchEditing):
        return _on_search_cancel(model, state, event)
    if isinstance(state.search_mode, SearchApplied):
        return _follow_selection(model, _without_search(state))
    return state


def _on_start_search(
    model: DocumentModel, state: NavigationState, event: Event
) -> NavigationState:
    if state.focused_pane != Pane.LIST or isinstance(state.search_mode, SearchEditing):
        return state
    editing = SearchEditing(
        query="",
        matches=search(model, ""),
        origin_index=state.selected_index,
    )
    return _follow_selection(model, state.model_copy(update={"search_mode": editing}))


def _on_search_edit(
    model: DocumentModel, state: NavigationState, event: Event
) -> NavigationState:
    mode = state.search_mode
    if not isinstance(mode, SearchEditing):
        return state
    if isinstance(event, SearchChar):
        query = mode.query + event.char
    else:
        query = mode.query[:-1]
    editing = mode.model_copy(update={"query": query, "matches": search(model, query)})
    return _follow_selection(model, state.model_copy(update={"search_mode": editing}))


def _on_search_submit(
    model: DocumentModel, state: NavigationState, event: Event
) -> NavigationState:
    mode = state.search_mode
    if not isinstance(mode, SearchEditing):
        return state
    if not mode.query:
        return _follow_selection(model, _without_search(state))

    applied = SearchApplied(query=mode.query, matches=mode.matches)
    state = state.model_copy(update={"search_mode": applied})
    if applied.matches:
        state = _select(model, state, applied.matches[0])
    return _follow_selection(model, state)


def _on_search_cancel(
    model: DocumentModel, state: NavigationState, event: Event
) -> NavigationState:
    mode = state.search_mode
    if not isinstance(mode, SearchEditing):
        return state
    state = _without_search(state)
    if mode.origin_index is not None:
        state = _select(model, state, mode.origin_index)
    return _follow_selection(model, state)


def _on_toggle(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    assert isinstance(event, ToggleSchemaNode)
    return _toggle(model, state, event.path)


def _on_scroll(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    step = 1 if isinstance(event, ScrollDown) else -1
    offset = max(0, min(state.detail_scroll_offset + step, max_detail_scroll(model, state)))
    if offset == state.detail_scroll_offset:
        return state
    _, rows = pane_heights(state)
    cursor = max(offset, min(state.detail_cursor, offset + rows - 1))
    return state.model_copy(update={"detail_scroll_offset": offset, "detail_cursor": cursor})


def _on_quit(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    return state.model_copy(update={"quit": True})


def _on_resize(model: DocumentModel, state: NavigationState, event: Event) -> NavigationState:
    assert isinstance(event, Resize)
    state = state.model_copy(update={"viewport": (event.width, event.height)})
    return _clamp_detail(model, _follow_selection(model, state))


_Handler = Callable[[DocumentModel, NavigationState, Event], NavigationState]

_HANDLERS: dict[type, _Handler] = {
    MoveUp: _on_move,
    MoveDown: _on_move,
    Confirm: _on_confirm,
    Back: _on_back,
    StartSearch: _on_start_search,
    SearchChar: _on_search_edit,
    SearchBackspace: _on_search_edit,
    SearchSubmit: _on_search_submit,
    SearchCancel: _on_search_cancel,
    ToggleSchemaNode: _on_toggle,
    Quit: _on_quit,
    ScrollUp: _on_scroll,
    ScrollDown: _on_scroll,
    Resize: _on_resize,
}


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _visible_count(model: DocumentModel, state: NavigationState) -> int:
    """Number of rows in the list pane."""
    visible = state.visible_indices
    return len(model.endpoints) if visible is None else len(visible)


def _position(model: DocumentModel, state: NavigationState) -> Optional[int]:
    """Row of the selected endpoint in the list pane, ``None`` when it is not shown."""
    index = state.selected_index
    if index is None:
        return None
    visible = state.visible_indices
    if visible is None:
        return index if 0 <= index < len(model.endpoints) else None
    # Matches are kept in document order.
    position = bisect_left(visible, index)
    if position < len(visible) and visible[position] == index:
        return position
    return None


def _index_at(state: NavigationState, position: int) -> int:
    visible = state.visible_indices
    return position if visible is None else visible[position]


def _without_search(state: NavigationState) -> NavigationState:
    return state.model_copy(update={"search_mode": SearchInactive()})


def _select(model: DocumentModel, state: NavigationState, index: int) -> NavigationState:
    if index == state.selected_index:
        return state
    # A different endpoint always opens scrolled to the top.
    return _follow_selection(
        model,
        state.model_copy(
            update={"selected_index": index, "detail_scroll_offset": 0, "detail_cursor": 0}
        ),
    )


def _follow_selection(model: DocumentModel, state: NavigationState) -> NavigationState:
    """Scroll the list so the selected row is visible, clamping the offset."""
    rows, _ = pane_heights(state)

    offset = state.list_scroll_offset
    position = _position(model, state)
    if position is not None:
        if position < offset:
            offset = position
        elif position >= offset + rows:
            offset = position - rows + 1
    offset = max(0, min(offset, _visible_count(model, state) - rows))

    if offset == state.list_scroll_offset:
        return state
    return state.model_copy(update={"list_scroll_offset": offset})


def _move_cursor(model: DocumentModel, state: NavigationState, step: int) -> NavigationState:
    lines = detail_content(model, state)
    cursor = max(0, min(state.detail_cursor + step, len(lines) - 1))
    _, rows = pane_heights(state)
    offset = state.detail_scroll_offset
    if cursor < offset:
        offset = cursor
    elif cursor >= offset + rows:
        offset = cursor - rows + 1
    return state.model_copy(update={"detail_cursor": cursor, "detail_scroll_offset": offset})


def _toggle(model: DocumentModel, state: NavigationState, path: str) -> NavigationState:
    expanded = state.expanded_schema_nodes ^ {path}
    return _clamp_detail(model, state.model_copy(update={"expanded_schema_nodes": expanded}))


def _clamp_detail(model: DocumentModel, state: NavigationState) -> NavigationState:
    """Keep the detail cursor and scroll offset inside the current content."""
    lines = detail_content(model, state)
    _, rows = pane_heights(state)
    cursor = max(0, min(state.detail_cursor, len(lines) - 1))
    offset = min(state.detail_scroll_offset, max(0, len(lines) - rows))
    if cursor < offset:
        offset = cursor
    elif cursor >= offset + rows:
        offset = cursor - rows + 1
    if (cursor, offset) == (state.detail_cursor, state.detail_scroll_offset):
        return state
    return state.model_copy(update={"detail_cursor": cursor, "detail_scroll_offset": offset})


def expand_all(model: DocumentModel, state: NavigationState) -> NavigationState:
    """Expand every schema node of the selected endpoint.

    Recursive references render as leaves, so the expansion is finite.
    """
    expanded = state.expanded_schema_nodes
    while True:
        nodes = {line.node for line in detail_content(model, state) if line.node}
        if nodes <= expanded:
            return state
        expanded = expanded | nodes
        state = state.model_copy(update={"expanded_schema_nodes": expanded})
