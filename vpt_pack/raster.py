"""In-memory RGBA8 rasters with an explicit blit."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import io

import numpy as np
from PIL import Image

Rect = Tuple[int, int, int, int]


@dataclass(slots=True)
class RgbaBuffer:
    pixels: np.ndarray  # shape (height, width, 4), uint8

    @classmethod
    def new(cls, width: int, height: int, fill: Sequence[int] = (0, 0, 0, 0)) -> "RgbaBuffer":
        pixels = np.empty((int(height), int(width), 4), dtype=np.uint8)
        pixels[:, :] = np.asarray(fill, dtype=np.uint8)
        return cls(pixels)

    @classmethod
    def from_image(cls, img: Image.Image) -> "RgbaBuffer":
        return cls(np.array(img.convert("RGBA"), dtype=np.uint8))

    @classmethod
    def from_png(cls, data: bytes) -> "RgbaBuffer":
        with Image.open(io.BytesIO(data)) as img:
            return cls.from_image(img)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def blit(
        self,
        src: "RgbaBuffer",
        dst_x: int,
        dst_y: int,
        *,
        src_rect: Optional[Rect] = None,
        channels: Optional[Sequence[Optional[int]]] = None,
    ) -> None:
        """Copy ``src_rect`` of ``src`` (default: all of it) to ``(dst_x, dst_y)``.

        ``channels`` picks, for each destination channel, the source channel
        to read; ``None`` writes 255 instead.
        """

        sx, sy, w, h = src_rect if src_rect is not None else (0, 0, src.width, src.height)
        if sx < 0 or sy < 0 or sx + w > src.width or sy + h > src.height:
            raise ValueError("source rect outside of source buffer")
        if dst_x < 0 or dst_y < 0 or dst_x + w > self.width or dst_y + h > self.height:
            raise ValueError("destination rect outside of target buffer")

        block = src.pixels[sy : sy + h, sx : sx + w, :]
        target = self.pixels[dst_y : dst_y + h, dst_x : dst_x + w, :]
        if channels is None:
            target[:, :, :] = block
            return
        for i, channel in enumerate(channels):
            if channel is None:
                target[:, :, i] = 255
            else:
                target[:, :, i] = block[:, :, channel]

    def to_image(self) -> Image.Image:
        # (H, W, 4) uint8 is inferred as RGBA
        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def to_png(self) -> bytes:
        bio = io.BytesIO()
        self.to_image().save(bio, format="PNG")
        return bio.getvalue()
