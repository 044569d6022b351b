"""Blockstate x/y rotation of resolved block models."""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Mapping

import logging
import math

from .errors import ModelNotFoundError, ModelResolutionError
from .model import UV, Axis, Element, ElementRotation, Face, FaceData, Model, ModelReference, Rotation, Vec3, resolve_model, strip_model_name

log = logging.getLogger(__name__)

PointFn = Callable[[Vec3], Vec3]

# All tables below are indexed by Rotation.step (0, 90, 180, 270 degrees).

_X_POINTS: tuple[PointFn, PointFn, PointFn, PointFn] = (
    lambda p: p,
    lambda p: (p[0], p[2], 16 - p[1]),
    lambda p: (p[0], 16 - p[1], 16 - p[2]),
    lambda p: (p[0], 16 - p[2], p[1]),
)

_Y_POINTS: tuple[PointFn, PointFn, PointFn, PointFn] = (
    lambda p: p,
    lambda p: (16 - p[2], p[1], p[0]),
    lambda p: (16 - p[0], p[1], 16 - p[2]),
    lambda p: (p[2], p[1], 16 - p[0]),
)

_IDENTITY_FACES = {face: face for face in Face}

_X_FACES: tuple[dict[Face, Face], ...] = (
    _IDENTITY_FACES,
    {
        Face.EAST: Face.EAST,
        Face.WEST: Face.WEST,
        Face.DOWN: Face.SOUTH,
        Face.UP: Face.NORTH,
        Face.NORTH: Face.DOWN,
        Face.SOUTH: Face.UP,
    },
    {
        Face.EAST: Face.EAST,
        Face.WEST: Face.WEST,
        Face.DOWN: Face.UP,
        Face.UP: Face.DOWN,
        Face.NORTH: Face.SOUTH,
        Face.SOUTH: Face.NORTH,
    },
    {
        Face.EAST: Face.EAST,
        Face.WEST: Face.WEST,
        Face.DOWN: Face.NORTH,
        Face.UP: Face.SOUTH,
        Face.NORTH: Face.UP,
        Face.SOUTH: Face.DOWN,
    },
)

_Y_FACES: tuple[dict[Face, Face], ...] = (
    _IDENTITY_FACES,
    {
        Face.DOWN: Face.DOWN,
        Face.UP: Face.UP,
        Face.NORTH: Face.EAST,
        Face.EAST: Face.SOUTH,
        Face.SOUTH: Face.WEST,
        Face.WEST: Face.NORTH,
    },
    {
        Face.DOWN: Face.DOWN,
        Face.UP: Face.UP,
        Face.NORTH: Face.SOUTH,
        Face.SOUTH: Face.NORTH,
        Face.EAST: Face.WEST,
        Face.WEST: Face.EAST,
    },
    {
        Face.DOWN: Face.DOWN,
        Face.UP: Face.UP,
        Face.NORTH: Face.WEST,
        Face.WEST: Face.SOUTH,
        Face.SOUTH: Face.EAST,
        Face.EAST: Face.NORTH,
    },
)

_IDENTITY_AXES = {axis: axis for axis in Axis}
_SWAP_YZ = {Axis.X: Axis.X, Axis.Y: Axis.Z, Axis.Z: Axis.Y}
_SWAP_XZ = {Axis.X: Axis.Z, Axis.Y: Axis.Y, Axis.Z: Axis.X}

_X_AXES: tuple[dict[Axis, Axis], ...] = (_IDENTITY_AXES, _SWAP_YZ, _IDENTITY_AXES, _SWAP_YZ)
_Y_AXES: tuple[dict[Axis, Axis], ...] = (_IDENTITY_AXES, _SWAP_XZ, _IDENTITY_AXES, _SWAP_XZ)

_AXIS_INDEX = {Axis.X: 0, Axis.Y: 1, Axis.Z: 2}


def default_uv(element: Element, face: Face) -> UV:
    """UV rectangle the game derives for a face that does not declare one."""

    x1, y1, z1 = element.from_
    x2, y2, z2 = element.to
    if face is Face.DOWN:
        return (x1, 16 - z2, x2, 16 - z1)
    if face is Face.UP:
        return (x1, z1, x2, z2)
    if face is Face.NORTH:
        return (16 - x2, 16 - y2, 16 - x1, 16 - y1)
    if face is Face.SOUTH:
        return (x1, 16 - y2, x2, 16 - y1)
    if face is Face.WEST:
        return (z1, 16 - y2, z2, 16 - y1)
    return (16 - z2, 16 - y2, 16 - z1, 16 - y1)


def rescale_bounds(element: Element) -> tuple[Vec3, Vec3]:
    """Return the element corners with rescale compensation applied.

    With ``rescale`` set the game stretches the two axes perpendicular to the
    rotation axis by 1/cos(angle); the baked box has to match that footprint.
    """

    rot = element.rotation
    if rot is None or not rot.rescale:
        return element.from_, element.to

    cos_angle = math.cos(math.radians(rot.angle))
    fixed = _AXIS_INDEX[rot.axis]
    center = [(a + b) * 0.5 for a, b in zip(element.from_, element.to)]
    lo = list(element.from_)
    hi = list(element.to)
    for i in range(3):
        if i == fixed:
            continue
        lo[i] = center[i] + (lo[i] - center[i]) / cos_angle
        hi[i] = center[i] + (hi[i] - center[i]) / cos_angle
    return (lo[0], lo[1], lo[2]), (hi[0], hi[1], hi[2])


def _negate(angle: float) -> float:
    return -angle if angle else angle


def rotate_element(element: Element, x: Rotation, y: Rotation) -> Element:
    """Return a rotated copy of ``element`` (x rotation first, then y)."""

    x_point = _X_POINTS[x.step]
    y_point = _Y_POINTS[y.step]
    x_faces = _X_FACES[x.step]
    y_faces = _Y_FACES[y.step]

    def transform(p: Vec3) -> Vec3:
        return y_point(x_point(p))

    a = transform(element.from_)
    b = transform(element.to)
    from_ = (min(a[0], b[0]), min(a[1], b[1]), min(a[2], b[2]))
    to = (max(a[0], b[0]), max(a[1], b[1]), max(a[2], b[2]))

    faces: dict[Face, FaceData] = {}
    for face, data in element.faces.items():
        data = replace(data)
        if data.uv is None:
            data.uv = default_uv(element, face)

        first = x_faces[face]
        final = y_faces[first]
        if data.cullface is not None:
            data.cullface = y_faces[x_faces[data.cullface]]
        if x and first in (Face.EAST, Face.WEST):
            data.rotation = ((data.rotation or 0) + int(x)) % 360
        if y and final in (Face.UP, Face.DOWN):
            data.rotation = ((data.rotation or 0) + int(y)) % 360
        faces[final] = data

    rotation = None
    if element.rotation is not None:
        src = element.rotation
        axis = _Y_AXES[y.step][_X_AXES[x.step][src.axis]]
        angle = src.angle
        if x in (Rotation.DEG_90, Rotation.DEG_180):
            angle = _negate(angle)
        if axis is Axis.Z and y in (Rotation.DEG_180, Rotation.DEG_270):
            angle = _negate(angle)
        if axis is Axis.X and y in (Rotation.DEG_90, Rotation.DEG_180):
            angle = _negate(angle)
        rotation = ElementRotation(axis=axis, angle=angle, origin=transform(src.origin), rescale=src.rescale)

    return Element(
        from_=from_,
        to=to,
        faces=faces,
        rotation=rotation,
        shade=element.shade,
        extra=dict(element.extra),
    )


def apply_reference_rotation(reference: ModelReference, models: Mapping[str, Model]) -> Model:
    """Resolve the referenced model and bake the reference's x/y rotation into it.

    The result never shares state with the store. When the model's parent
    chain cannot be resolved the unrotated model is returned instead.
    """

    name = strip_model_name(reference.model)
    base = models.get(name)
    if base is None:
        raise ModelNotFoundError(name)

    try:
        model = resolve_model(base, models)
    except ModelResolutionError as exc:
        log.debug("Using %s unrotated: %s", name, exc)
        return base.clone()

    model.elements = [rotate_element(e, reference.x, reference.y) for e in model.elements or ()]
    return model
