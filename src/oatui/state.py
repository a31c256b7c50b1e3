"""Navigation state and the abstract input events that drive it.

:class:`NavigationState` is a frozen value: the reducer in
:mod:`oatui.navigation` never mutates it, it returns the next state. Events
are small frozen models, so an event sequence can be built in a test, logged,
or replayed from a key script.

Search has three phases, each its own type:

* :class:`SearchInactive` -- no filter.
* :class:`SearchEditing` -- the query is being typed; matches are live and
  ``origin_index`` remembers the selection to restore on cancel.
* :class:`SearchApplied` -- the query was submitted and filters the list.
"""

from __future__ import annotations

import enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Pane(str, enum.Enum):
    """The two regions that can hold input focus."""

    LIST = "list"
    DETAIL = "detail"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- Search phases ---


class SearchInactive(_Frozen):
    phase: Literal["inactive"] = "inactive"


class SearchEditing(_Frozen):
    phase: Literal["editing"] = "editing"
    query: str = ""
    matches: tuple[int, ...] = ()
    origin_index: Optional[int] = None


class SearchApplied(_Frozen):
    phase: Literal["applied"] = "applied"
    query: str
    matches: tuple[int, ...] = ()


SearchMode = Union[SearchInactive, SearchEditing, SearchApplied]


class NavigationState(_Frozen):
    """Everything the viewer remembers between two events.

    ``selected_index`` indexes :attr:`~oatui.models.DocumentModel.endpoints`
    and is ``None`` only when the document has no endpoints.
    ``expanded_schema_nodes`` holds node paths (see
    :func:`oatui.render.node_path`); empty means every schema node is
    collapsed. ``viewport`` is the terminal size in cells.
    """

    focused_pane: Pane = Pane.LIST
    selected_index: Optional[int] = None
    detail_scroll_offset: int = 0
    detail_cursor: int = 0
    list_scroll_offset: int = 0
    search_mode: SearchMode = Field(default_factory=SearchInactive, discriminator="phase")
    expanded_schema_nodes: frozenset[str] = frozenset()
    viewport: tuple[int, int] = (80, 24)
    list_width: int = 40
    quit: bool = False
    notice: Optional[str] = None

    @property
    def visible_indices(self) -> Optional[tuple[int, ...]]:
        """Endpoint indexes the list shows, or ``None`` when unfiltered."""
        if isinstance(self.search_mode, (SearchEditing, SearchApplied)):
            return self.search_mode.matches
        return None


# --- Events ---


class MoveUp(_Frozen):
    pass


class MoveDown(_Frozen):
    pass


class Confirm(_Frozen):
    pass


class Back(_Frozen):
    pass


class StartSearch(_Frozen):
    pass


class SearchChar(_Frozen):
    char: str = Field(min_length=1, max_length=1)


class SearchBackspace(_Frozen):
    pass


class SearchSubmit(_Frozen):
    pass


class SearchCancel(_Frozen):
    pass


class ToggleSchemaNode(_Frozen):
    path: str


class Quit(_Frozen):
    pass


class ScrollUp(_Frozen):
    pass


class ScrollDown(_Frozen):
    pass


class Resize(_Frozen):
    width: int = Field(ge=1)
    height: int = Field(ge=1)


Event = Union[
    MoveUp,
    MoveDown,
    Confirm,
    Back,
    StartSearch,
    SearchChar,
    SearchBackspace,
    SearchSubmit,
    SearchCancel,
    ToggleSchemaNode,
    Quit,
    ScrollUp,
    ScrollDown,
    Resize,
]
