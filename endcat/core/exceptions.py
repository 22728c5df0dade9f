class EndcatError(Exception):
    """Base class for errors raised by endcat services."""


class RemoteAPIError(EndcatError):
    """The record API answered with a non-zero code or an unusable payload."""


class StorageError(EndcatError):
    """Persisting pulls or accounts failed."""


class GameLogError(EndcatError):
    """The game web-view log could not be read or held no record URL."""


class PreconditionError(EndcatError):
    """An action was requested without what it needs, e.g. no selected account."""
