"""Errors raised by pgsearch."""


class ConfigurationError(ValueError):
    """Raised when a search scope is declared with malformed or contradictory options.

    This is a programming error on the caller's side; it is raised while the
    configuration is resolved, before any SQL is compiled.
    """
