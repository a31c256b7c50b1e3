"""Built-in CLI commands for oatui.

* :mod:`~oatui.commands.inspect` -- ``list`` and ``show``: read-only
  listings of a document's endpoints and of one endpoint's details.
* :mod:`~oatui.commands.view` -- ``view``: the two-pane viewer, driven
  interactively or by a key script.

Each module exports plain callback functions registered directly on the root
app in :mod:`oatui.app`.
"""
