"""Hold the loaded model and the navigation state of one viewer session.

A :class:`Session` is the only mutable object in the viewer. It processes one
event at a time: the reducer computes the next state, then the projector
builds the frame for it, before the next event is accepted. Swapping in a new
document goes through :meth:`Session.reload`, which replaces the model and
the state together so the two are never out of sync.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from oatui.keys import classify
from oatui.models import DocumentModel, HTTPMethod
from oatui.navigation import initial_state, reduce
from oatui.render import Frame, project, selected_endpoint
from oatui.state import Event, NavigationState

logger = logging.getLogger(__name__)


class Session:
    """One document being explored.

    Use :meth:`open` rather than the constructor to start from the initial
    state.

    Example::

        session = Session.open(model, viewport=(100, 30))
        session.dispatch(MoveDown())
        frame = session.frame
    """

    def __init__(self, model: DocumentModel, state: NavigationState) -> None:
        self._model = model
        self._state = state
        self._frame = project(model, state)

    @classmethod
    def open(
        cls,
        model: DocumentModel,
        viewport: tuple[int, int] = (80, 24),
        target: Optional[tuple[str, str | HTTPMethod]] = None,
        list_width: int = 40,
    ) -> "Session":
        return cls(model, initial_state(model, viewport, target, list_width))

    @property
    def model(self) -> DocumentModel:
        return self._model

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def frame(self) -> Frame:
        """Frame for the current state."""
        return self._frame

    @property
    def finished(self) -> bool:
        return self._state.quit

    def dispatch(self, event: Event) -> Frame:
        """Apply *event* and return the frame to draw."""
        state = reduce(self._model, self._state, event)
        if state is not self._state:
            self._state = state
            self._frame = project(self._model, state)
        return self._frame

    def press(self, key: str) -> Frame:
        """Classify *key* in the current mode and dispatch the resulting event.

        Unbound keys leave the session untouched.
        """
        event = classify(key, self._state)
        if event is None:
            logger.debug("Unbound key %r", key)
            return self._frame
        return self.dispatch(event)

    def replay(self, keys: Iterable[str]) -> Frame:
        """Press *keys* in order, stopping early once the session has quit."""
        for key in keys:
            if self.finished:
                break
            self.press(key)
        return self._frame

    def reload(self, model: DocumentModel) -> Frame:
        """Replace the document, resetting navigation.

        The viewport and list width carry over, and the previously selected
        endpoint stays selected when the new document still has it.
        """
        target = None
        endpoint = selected_endpoint(self._model, self._state)
        if endpoint is not None and model.index_of(endpoint.path, endpoint.method) is not None:
            target = (endpoint.path, endpoint.method)
        state = initial_state(model, self._state.viewport, target, self._state.list_width)
        frame = project(model, state)
        self._model, self._state, self._frame = model, state, frame
        logger.debug("Reloaded document with %d endpoints", len(model.endpoints))
        return frame
