"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clisynth.exceptions.ClisynthError` subclass.

Example::

    $ clisynth render broken.yaml
    $ echo $?
    4   # EXIT_SIGNATURE_ERROR -- the signature document could not be read
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_CONSTRUCTION_ERROR = 3
"""The signature violates a precondition of the syntax-tree generator."""

EXIT_SIGNATURE_ERROR = 4
"""The signature document could not be loaded or validated."""

EXIT_RESOLUTION_ERROR = 5
"""A module or import path could not be resolved."""
