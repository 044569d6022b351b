"""Exceptions raised by the VPT pipeline."""

from __future__ import annotations


class VPTError(Exception):
    """Base class for every fatal pipeline error."""


class ArchiveError(VPTError):
    """An input archive or one of its required documents cannot be read."""


class ModelResolutionError(VPTError):
    """A model's parent chain is broken or never yields elements."""


class ModelNotFoundError(ModelResolutionError):
    """A blockstate references a model that exists in neither archive."""

    def __init__(self, name: str) -> None:
        super().__init__(f"No model with name: {name}")
        self.name = name


class AtlasFullError(VPTError):
    """The texture atlas grid has no room left for a texture."""
