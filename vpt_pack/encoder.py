"""Binary encoding of resolved models into the geometry lookup texture.

Layout of one model row::

    header   count & 0xFF, 0, 0, 0xFF
    element  from.xyz, 255 | to.xyz, 255 | axis.xyz, angle code | origin.xyz, 255
             then 8 bytes per face (down, up, south, north, east, west):
             atlas location (u32 little endian) + uv rectangle

Corners are mapped from [-16, 32] and origins/UVs from [0, 16] onto 0..255.
"""

from __future__ import annotations

from typing import Mapping, Optional, Sequence

import logging
import math
import struct

import numpy as np

from .atlas import TextureLocation
from .model import Axis, Element, Face, FaceData, Model, strip_model_name, texture_path
from .raster import RgbaBuffer
from .rotation import default_uv, rescale_bounds

log = logging.getLogger(__name__)

HEADER_SIZE = 4
FACE_RECORD_SIZE = 8
ELEMENT_RECORD_SIZE = 16 + FACE_RECORD_SIZE * len(Face)

EMPTY_FACE = bytes((0, 0, 0, 0xFF, 0, 0, 0, 0))

# Angle code for "no rotation": 0 degrees about x.
NO_ROTATION_CODE = 2

MARKER_COLOR = (0xFF, 0x00, 0xFF, 0xFF)
MARKER_SIZE = 16

_AXIS_VECTORS = {
    Axis.X: (255, 0, 0),
    Axis.Y: (0, 255, 0),
    Axis.Z: (0, 0, 255),
}


def _to_byte(value: float) -> int:
    # round half up, then clamp
    return max(0, min(255, int(math.floor(value + 0.5))))


def _corner(point: Sequence[float]) -> bytes:
    return bytes([_to_byte((v + 16) / 48 * 255) for v in point] + [255])


def _unit(values: Sequence[float]) -> list[int]:
    return [_to_byte(v / 16 * 255) for v in values]


def encode_face(
    model: Model,
    element: Element,
    face: Face,
    data: Optional[FaceData],
    locations: Mapping[str, TextureLocation],
) -> bytes:
    if data is None:
        return EMPTY_FACE

    path = texture_path(model, data.texture)
    if path is None:
        return EMPTY_FACE
    location = locations.get(strip_model_name(path))
    if location is None:
        return EMPTY_FACE

    uv = data.uv if data.uv is not None else default_uv(element, face)
    return struct.pack("<I", location.packed()) + bytes(_unit(uv))


def encode_element(model: Model, element: Element, locations: Mapping[str, TextureLocation]) -> bytes:
    from_, to = rescale_bounds(element)
    out = bytearray()
    out += _corner(from_)
    out += _corner(to)

    rotation = element.rotation
    if rotation is None:
        out += bytes(_AXIS_VECTORS[Axis.X]) + bytes([NO_ROTATION_CODE])
        out += bytes(_unit((8, 8, 8)) + [255])
    else:
        code = _to_byte(rotation.angle / 22.5 + NO_ROTATION_CODE)
        out += bytes(_AXIS_VECTORS[rotation.axis]) + bytes([code])
        out += bytes(_unit(rotation.origin) + [255])

    for face in Face:
        out += encode_face(model, element, face, element.faces.get(face), locations)
    return bytes(out)


def encode_model(model: Model, locations: Mapping[str, TextureLocation]) -> bytes:
    """Geometry row for ``model``; identical inputs always give identical bytes."""

    elements = model.elements or []
    if not elements:
        return bytes(HEADER_SIZE)
    if len(elements) > 0xFF:
        log.warning("Model has %d elements; the header only stores the low byte", len(elements))

    out = bytearray((len(elements) & 0xFF, 0, 0, 0xFF))
    for element in elements:
        out += encode_element(model, element, locations)
    return bytes(out)


def build_geometry_texture(rows: Sequence[bytes]) -> RgbaBuffer:
    """One RGBA row per model; shorter rows are padded with zero bytes."""

    if not rows:
        return RgbaBuffer.new(1, 1)

    row_len = max(len(row) for row in rows)
    row_len = max(4, (row_len + 3) // 4 * 4)
    data = np.zeros((len(rows), row_len), dtype=np.uint8)
    for i, row in enumerate(rows):
        data[i, : len(row)] = np.frombuffer(row, dtype=np.uint8)
    return RgbaBuffer(data.reshape((len(rows), row_len // 4, 4)))


def marker_texture(index: int) -> RgbaBuffer:
    """16x16 index texture: sentinel colour on the left, ``index`` as RGB on the right."""

    half = MARKER_SIZE // 2
    texture = RgbaBuffer.new(MARKER_SIZE, MARKER_SIZE, MARKER_COLOR)
    texture.pixels[:, half:, :] = (index & 0xFF, (index >> 8) & 0xFF, (index >> 16) & 0xFF, 0xFF)
    return texture
