"""Texture atlas construction for block textures and their normal/specular maps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import logging
import math

import numpy as np
from PIL import UnidentifiedImageError

from .errors import AtlasFullError
from .raster import RgbaBuffer

log = logging.getLogger(__name__)

MIN_TEXTURE_SIZE = 16
MAX_ATLAS_SIZE = 32768

FLAT_NORMAL = (127, 127, 255, 255)
LOW_SPECULAR = (0, 10, 0, 255)

NORMAL_SUFFIX = "_n"
SPECULAR_SUFFIX = "_s"


@dataclass(slots=True)
class Texture:
    albedo: RgbaBuffer
    normal: RgbaBuffer
    specular: RgbaBuffer

    @property
    def size(self) -> int:
        return self.albedo.width


@dataclass(slots=True, frozen=True)
class TextureLocation:
    """Placement in grid cells; ``size`` is the side length in cells."""

    x: int
    y: int
    size: int

    def packed(self) -> int:
        """``log2(size) << 20 | y << 10 | x``, the word the geometry texture stores."""

        return (int(round(math.log2(self.size))) << 20) | (self.y << 10) | self.x


def decode_png(data: Optional[bytes], name: str) -> Optional[RgbaBuffer]:
    if data is None:
        return None
    try:
        return RgbaBuffer.from_png(data)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        log.warning("Cannot decode %s: %s", name, exc)
        return None


def _first_frame(image: RgbaBuffer) -> RgbaBuffer:
    # Animated textures are vertical strips of square frames.
    if image.height > image.width:
        return RgbaBuffer(image.pixels[: image.width, :, :].copy())
    return image


class Atlas:
    """Greedy square-shell packer over a grid of ``min_tile`` cells."""

    def __init__(
        self,
        *,
        min_tile: int = MIN_TEXTURE_SIZE,
        max_size: int = MAX_ATLAS_SIZE,
        normal_fallback: Sequence[int] = FLAT_NORMAL,
        specular_fallback: Sequence[int] = LOW_SPECULAR,
    ) -> None:
        self.min_tile = int(min_tile)
        self.grid_width = int(max_size) // self.min_tile
        self.normal_fallback = tuple(normal_fallback)
        self.specular_fallback = tuple(specular_fallback)
        self.textures: Dict[str, Texture] = {}
        self.locations: Dict[str, TextureLocation] = {}
        self.width = 0
        self.height = 0

    def add_texture(
        self,
        name: str,
        albedo: RgbaBuffer,
        normal: Optional[RgbaBuffer] = None,
        specular: Optional[RgbaBuffer] = None,
    ) -> bool:
        """Register a texture; missing or mismatched companions get a flat fallback."""

        if name in self.textures:
            return False

        albedo = _first_frame(albedo)
        size = albedo.width
        if albedo.height != size or size < self.min_tile or size & (size - 1):
            log.warning("Skipping texture %s: %dx%d is not a power-of-two square >= %d", name, albedo.width, albedo.height, self.min_tile)
            return False

        self.textures[name] = Texture(
            albedo=albedo,
            normal=self._companion(name, "normal", normal, size, self.normal_fallback),
            specular=self._companion(name, "specular", specular, size, self.specular_fallback),
        )
        return True

    @staticmethod
    def _companion(
        name: str,
        kind: str,
        image: Optional[RgbaBuffer],
        size: int,
        fallback: Tuple[int, ...],
    ) -> RgbaBuffer:
        if image is not None:
            image = _first_frame(image)
            if image.width == size and image.height == size:
                return image
            log.warning("Ignoring %s map of %s: %dx%d does not match %dx%d", kind, name, image.width, image.height, size, size)
        return RgbaBuffer.new(size, size, fallback)

    def _find_place(self, occupied: np.ndarray, cells: int) -> TextureLocation:
        grid = self.grid_width
        for i in range(grid):
            for j in range(2 * i + 1):
                x = min(i, j)
                y = i - max(0, j - i)
                if x + cells > grid or y + cells > grid or occupied[y, x]:
                    continue
                block = occupied[y : y + cells, x : x + cells]
                if block.any():
                    continue
                block[:, :] = True
                return TextureLocation(x=x, y=y, size=cells)

        raise AtlasFullError("Atlas is full!")

    def generate_locations(self) -> Dict[str, TextureLocation]:
        """Place every texture, largest first; names break ties so runs are repeatable."""

        occupied = np.zeros((self.grid_width, self.grid_width), dtype=bool)
        self.locations = {}
        self.width = 0
        self.height = 0

        ordered = sorted(self.textures.items(), key=lambda item: (-item[1].size, item[0]))
        for name, texture in ordered:
            location = self._find_place(occupied, texture.size // self.min_tile)
            self.locations[name] = location
            self.width = max(self.width, (location.x + location.size) * self.min_tile)
            self.height = max(self.height, (location.y + location.size) * self.min_tile)

        log.info("Packed %d textures into %dx%d px", len(self.locations), self.width, self.height)
        return self.locations

    def generate_atlas(self) -> RgbaBuffer:
        """Albedo top-left, normal maps to its right, specular maps below."""

        width = self.width or 1
        height = self.height or 1
        atlas = RgbaBuffer.new(width * 2, height * 2)

        for name, location in self.locations.items():
            texture = self.textures[name]
            x = location.x * self.min_tile
            y = location.y * self.min_tile
            atlas.blit(texture.albedo, x, y)
            atlas.blit(texture.normal, x + width, y)
            atlas.blit(texture.specular, x, y + height)

        return atlas
