"""
notion-cli exception hierarchy.

All custom exceptions live here to avoid circular imports.
"""


class CliError(Exception):
    """Exit code 1: validation, not-found, network and parse errors."""

    exit_code = 1


class SetupError(CliError):
    """Exit code 2: missing credentials or an expired token_v2."""

    exit_code = 2


class NotFoundError(CliError):
    """A pointer resolved to no record after envelope normalization."""


class ValidationError(CliError):
    """Malformed caller input: unknown property names, bad JSON shapes, bad batches."""


class InconsistencyError(CliError):
    """A record is missing a field this layer depends on (parent_id, collection, ...)."""


class PartialFailureError(CliError):
    """A multi-transaction verb stopped after some transactions were applied.

    ``completed`` names the stage that was committed, ``failed`` the stage
    that was rejected.
    """

    def __init__(self, message, *, completed=None, failed=None):
        super().__init__(message)
        self.completed = completed
        self.failed = failed


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}
