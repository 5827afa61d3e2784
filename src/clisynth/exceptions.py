"""Exception hierarchy for clisynth.

All exceptions inherit from :class:`ClisynthError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`clisynth.exit_codes`.
The top-level error handler in :func:`clisynth.app.main` catches
``ClisynthError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    ClisynthError (exit 1)
    +-- InvalidUsageError          (exit 2)
    +-- ConstructionError          (exit 3)
    |   +-- InvariantViolation
    |   +-- UnsupportedFeatureError
    +-- SignatureParseError        (exit 4)
    +-- ModuleResolutionError      (exit 5)
    +-- ConfigError                (exit 1)
"""

from clisynth.exit_codes import (
    EXIT_CONSTRUCTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_RESOLUTION_ERROR,
    EXIT_SIGNATURE_ERROR,
)


class ClisynthError(Exception):
    """Base exception for all clisynth errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`clisynth.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(ClisynthError):
    """Raised for invalid CLI arguments or conflicting input sources."""

    exit_code = EXIT_INVALID_USAGE


class ConstructionError(ClisynthError):
    """Raised when the generator is handed input it must not render.

    The generator never produces a malformed tree; it fails fast with a
    subclass of this error instead.
    """

    exit_code = EXIT_CONSTRUCTION_ERROR


class InvariantViolation(ConstructionError):
    """Raised when a caller breaks a structural precondition (e.g. a non-name callee)."""


class UnsupportedFeatureError(ConstructionError):
    """Raised for signature features the command string cannot express (optional positionals)."""


class SignatureParseError(ClisynthError):
    """Raised when a signature document or entry module cannot be read or parsed."""

    exit_code = EXIT_SIGNATURE_ERROR


class ModuleResolutionError(ClisynthError):
    """Raised when a library or referenced module cannot be turned into an import."""

    exit_code = EXIT_RESOLUTION_ERROR


class ConfigError(ClisynthError):
    """Raised for configuration problems (invalid JSON, unknown render options)."""

    exit_code = EXIT_GENERIC_FAILURE
