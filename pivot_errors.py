"""Exceptions raised while reading json-stat data and laying out pivot tables."""

from typing import Any, Mapping, Optional


class PivotError(Exception):
    """Base class for all pivot table errors."""

    def __init__(self, message: str, ctx: Optional[Mapping[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.ctx = dict(ctx) if ctx else {}

    def __str__(self) -> str:
        if not self.ctx:
            return self.message
        parts = ", ".join(f"{k}={v!r}" for k, v in self.ctx.items())
        return f"{self.message} ({parts})"


class MalformedDatasetError(PivotError):
    """The json-stat structure is missing fields or is inconsistent."""


class UnresolvedCategoryError(MalformedDatasetError):
    """A category id has no label, so its cell cannot be rendered."""


class InvalidLayoutError(PivotError):
    """The layout configuration does not fit the dataset."""


class UnknownSourceError(PivotError):
    """The requested source is not in the configured resources."""


class SourceUnavailableError(PivotError):
    """A configured source file cannot be read."""
