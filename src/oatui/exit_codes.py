"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~oatui.exceptions.OatuiError` subclass.

Example::

    $ oatui list broken.yaml
    $ echo $?
    7   # EXIT_SPEC_PARSE_ERROR -- the document could not be loaded
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, resolved or normalised."""
