"""Exception types raised across the module map pipeline."""

from __future__ import annotations

from typing import Optional


class ModuleMapError(Exception):
    """Base class for all unrecovered pipeline failures."""


class EnumerationError(ModuleMapError):
    """The project root is missing or cannot be walked."""


class ContentReadError(ModuleMapError):
    """A source file is missing or unreadable."""


class OracleError(ModuleMapError):
    """The language model could not be reached or misbehaved."""


class AnalysisError(ModuleMapError):
    """Analysis of a single file failed.

    Wraps the underlying cause so a caller can attribute the failure to
    ``path`` alone.
    """

    def __init__(self, path: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{path}: {message}")
        self.path = path
        self.cause = cause


class SerializationError(ModuleMapError):
    """The module map could not be written."""
