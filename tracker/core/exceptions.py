# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain exceptions raised by the service layer.
Not-found conditions raise the built-in KeyError.
"""

from typing import Optional


class TrackerError(Exception):
    """Base class for project-tracker errors."""


class RecordInvalid(TrackerError):
    """A record failed validation; ``errors`` maps field name -> messages."""

    def __init__(self, errors: dict[str, list[str]], message: Optional[str] = None) -> None:
        self.errors = errors
        super().__init__(message or "Validation failed: " + ", ".join(sorted(errors)))


class ConfigurationError(TrackerError):
    """Programming or setup error. Never reported to end users as validation."""


class MissingActorError(ConfigurationError):
    """A project was created without an attributed founding user."""


class StaleProjectError(TrackerError):
    """The project was modified by another writer since it was loaded."""
