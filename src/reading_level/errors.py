from __future__ import annotations


class ConfigError(ValueError):
    """Raised when the configuration (file or CLI overrides) is invalid or unreadable."""


class ParseError(ValueError):
    """Raised when a single document cannot be read or decoded."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason
