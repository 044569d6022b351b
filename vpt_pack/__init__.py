"""VanillaPuddingTart resourcepack generator: bakes block geometry into lookup textures."""

from .errors import AtlasFullError, ModelNotFoundError, ModelResolutionError, VPTError
from .pipeline import AtlasOptions, PipelineOptions, build_resourcepack, generate_resourcepack

__all__ = [
    "AtlasFullError",
    "AtlasOptions",
    "ModelNotFoundError",
    "ModelResolutionError",
    "PipelineOptions",
    "VPTError",
    "build_resourcepack",
    "generate_resourcepack",
]
