"""Classify key names into navigation events.

Keys arrive as abstract names, never raw terminal bytes: a single printable
character (``"j"``, ``"/"``) or one of :data:`NAMED_KEYS` (``"enter"``,
``"pagedown"`` ...). The same key means different things depending on the
mode: while a search query is being edited, ``q`` is text, not quit.
"""

from __future__ import annotations

from typing import Optional

from oatui.exceptions import InvalidUsageError
from oatui.state import (
    Back,
    Confirm,
    Event,
    MoveDown,
    MoveUp,
    NavigationState,
    Quit,
    ScrollDown,
    ScrollUp,
    SearchBackspace,
    SearchCancel,
    SearchChar,
    SearchEditing,
    SearchSubmit,
    StartSearch,
)

NAMED_KEYS = frozenset(
    {"up", "down", "enter", "esc", "backspace", "pageup", "pagedown", "space", "ctrl+c"}
)

_NORMAL: dict[str, Event] = {
    "q": Quit(),
    "ctrl+c": Quit(),
    "esc": Back(),
    "enter": Confirm(),
    "down": MoveDown(),
    "j": MoveDown(),
    "up": MoveUp(),
    "k": MoveUp(),
    "/": StartSearch(),
    "pagedown": ScrollDown(),
    "pageup": ScrollUp(),
}

_EDITING: dict[str, Event] = {
    "ctrl+c": Quit(),
    "esc": SearchCancel(),
    "enter": SearchSubmit(),
    "backspace": SearchBackspace(),
    "down": MoveDown(),
    "up": MoveUp(),
    "space": SearchChar(char=" "),
}


def classify(key: str, state: NavigationState) -> Optional[Event]:
    """Return the event *key* produces in *state*'s mode, or ``None`` if unbound."""
    if isinstance(state.search_mode, SearchEditing):
        if key in _EDITING:
            return _EDITING[key]
        if len(key) == 1 and key.isprintable():
            return SearchChar(char=key)
        return None
    return _NORMAL.get(key)


def parse_key_script(script: str) -> list[str]:
    """Split a key script into key names.

    Tokens are separated by whitespace. A token naming a key in
    :data:`NAMED_KEYS` is that key; any other token is typed one character
    at a time, so ``"/ use enter"`` starts a search, types ``use`` and
    submits it.

    Raises:
        InvalidUsageError: The script contains no keys.
    """
    keys: list[str] = []
    for token in script.split():
        name = token.lower()
        if name in NAMED_KEYS:
            keys.append(name)
        else:
            keys.extend(token)
    if not keys:
        raise InvalidUsageError(f"Key script {script!r} contains no keys")
    return keys
