"""Errors raised while building the kinetics machinery from mechanism data."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid mechanism input detected at load time.

    Covers unsupported rate-law kinds met during reaction classification,
    malformed rate-law or species fields, and unit strings that cannot be
    parsed.
    """

    def __init__(self, subject: str, name: str, detail: str = "") -> None:
        self.subject = subject
        self.name = name
        self.detail = detail
        message = f"Invalid {subject} '{name}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
