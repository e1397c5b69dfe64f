"""
Exception hierarchy.

StructureError and ManifestError are fatal for a whole extraction.
MarkupFormatError is recovered per node: conversion stops at the failure
and whatever text was decoded is kept.
"""


class ScryError(Exception):
    """Base class for all scry errors."""


class StructureError(ScryError):
    """Raised when the binder tree is malformed (dangling parent, duplicate id, cycle)."""


class ManifestError(ScryError):
    """Raised when a project manifest cannot be read or fails schema validation."""


class MarkupFormatError(ScryError):
    """Raised when RTF markup is malformed."""

    def __init__(self, message: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            message = f"{message} (at byte {offset})"
        super().__init__(message)
