"""oatui -- explore OpenAPI 3.x documents in the terminal.

The package turns a parsed OpenAPI document into a flat, immutable
:class:`~oatui.models.DocumentModel` and drives a keyboard-only, two-pane
viewer over it. The interactive core is split into a pure reducer and a pure
projector so that every screen can be reproduced without a terminal.

Typical pipeline::

    from oatui.parser import load_document, build_model
    from oatui.session import Session

    model = build_model(load_document("openapi.yaml"))
    session = Session.open(model, viewport=(120, 40))
    frame = session.frame

Modules:
    models: Pydantic models for endpoints, schemas and the document model.
    parser: Loading, ``$ref`` resolution and normalisation.
    state: Navigation state and input events.
    navigation: The ``(state, event) -> state`` reducer.
    render: The pure rendering projector.
    keys: Key-name to event classification.
    session: Model + state holder used by the outer shell.
    surface: Rich adapter that paints a :class:`~oatui.render.Frame`.
    app: Typer application and console-script entry point.
"""

__version__ = "0.3.0"

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
