"""Derived player skin texture."""

from __future__ import annotations

import logging

from .raster import RgbaBuffer

log = logging.getLogger(__name__)

SKIN_PATH = "assets/minecraft/textures/effect/skin.png"


def derive_skin(skin: RgbaBuffer) -> RgbaBuffer:
    """Opaque albedo on the left, specular taken from the skin's alpha on the right."""

    if skin.width != 64 or skin.height not in (32, 64):
        log.warning("Unusual skin size %dx%d", skin.width, skin.height)

    out = RgbaBuffer.new(skin.width * 2, skin.height)
    out.blit(skin, 0, 0, channels=(0, 1, 2, None))
    out.blit(skin, skin.width, 0, channels=(3, 3, 3, None))
    return out
