"""Exceptions raised by the tag reaper.

Hierarchy::

    ReaperError
    ├── ConfigurationError
    └── RegistryError
        ├── AuthenticationError
        ├── NotFoundError
        └── NetworkError
"""

from __future__ import annotations

from typing import Any


class ReaperError(Exception):
    """Base class for all tag reaper errors.

    Parameters
    ----------
    message
        Human-readable description.
    details
        Optional additional context (URL, status code, and so forth).
    """

    def __init__(
        self, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(ReaperError):
    """A required configuration value is missing or invalid."""


class RegistryError(ReaperError):
    """The registry returned something we cannot use."""


class AuthenticationError(RegistryError):
    """Login failed, or the registry rejected our token."""


class NotFoundError(RegistryError):
    """Namespace, repository, or tag does not exist."""


class NetworkError(RegistryError):
    """Transport failure: timeout, DNS failure, connection reset."""
