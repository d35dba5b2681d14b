"""Domain errors raised below the HTTP layer."""


class ValidationError(Exception):
    """Missing or malformed caller input."""

    status_code = 400


class UpstreamQueryError(Exception):
    """A read or write against the backing store failed."""

    status_code = 500
