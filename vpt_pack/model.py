"""Block model data structures and parent-chain resolution."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Dict, List, Mapping, Optional, Tuple

import copy
import logging
import re

from .errors import ModelResolutionError

log = logging.getLogger(__name__)

Vec3 = Tuple[float, float, float]
UV = Tuple[float, float, float, float]

_NAME_PREFIX = re.compile(r"^(?:minecraft:)?(?:block/)?")

MARKER_ALIAS = "vpt_data"


class Face(str, Enum):
    """Element faces, in the order the geometry encoder writes them."""

    DOWN = "down"
    UP = "up"
    SOUTH = "south"
    NORTH = "north"
    EAST = "east"
    WEST = "west"


class Axis(str, Enum):
    X = "x"
    Y = "y"
    Z = "z"


class Rotation(IntEnum):
    """Blockstate rotation about a single axis, in 90 degree steps."""

    DEG_0 = 0
    DEG_90 = 90
    DEG_180 = 180
    DEG_270 = 270

    @property
    def step(self) -> int:
        return self.value // 90

    @classmethod
    def parse(cls, value: Any) -> "Rotation":
        if value is None:
            return cls.DEG_0
        try:
            return cls(int(value))
        except ValueError:
            raise ValueError(f"unsupported rotation: {value!r} (expected 0, 90, 180 or 270)") from None


def strip_model_name(name: str) -> str:
    """Drop the ``minecraft:`` namespace and ``block/`` folder from a model or texture id."""

    return _NAME_PREFIX.sub("", name, count=1)


@dataclass(slots=True)
class FaceData:
    texture: str
    uv: Optional[UV] = None
    cullface: Optional[Face] = None
    rotation: Optional[int] = None
    tintindex: Optional[int] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "FaceData":
        uv = data.get("uv")
        cullface = data.get("cullface")
        # "bottom" is an old alias still accepted by the game
        if cullface == "bottom":
            cullface = "down"
        return cls(
            texture=str(data.get("texture", "")),
            uv=tuple(uv) if uv is not None else None,
            cullface=Face(cullface) if cullface else None,
            rotation=data.get("rotation"),
            tintindex=data.get("tintindex"),
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.uv is not None:
            out["uv"] = list(self.uv)
        out["texture"] = self.texture
        if self.cullface is not None:
            out["cullface"] = self.cullface.value
        if self.rotation:
            out["rotation"] = self.rotation
        if self.tintindex is not None:
            out["tintindex"] = self.tintindex
        return out


@dataclass(slots=True)
class ElementRotation:
    axis: Axis
    angle: float
    origin: Vec3 = (8, 8, 8)
    rescale: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ElementRotation":
        origin = data.get("origin")
        return cls(
            axis=Axis(data["axis"]),
            angle=data.get("angle", 0),
            origin=tuple(origin) if origin is not None else (8, 8, 8),
            rescale=bool(data.get("rescale", False)),
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"origin": list(self.origin), "axis": self.axis.value, "angle": self.angle}
        if self.rescale:
            out["rescale"] = True
        return out


@dataclass(slots=True)
class Element:
    from_: Vec3
    to: Vec3
    faces: Dict[Face, FaceData] = field(default_factory=dict)
    rotation: Optional[ElementRotation] = None
    shade: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Element":
        known = {"from", "to", "faces", "rotation", "shade"}
        faces = {Face(name): FaceData.from_json(face) for name, face in (data.get("faces") or {}).items()}
        rotation = data.get("rotation")
        return cls(
            from_=tuple(data["from"]),
            to=tuple(data["to"]),
            faces=faces,
            rotation=ElementRotation.from_json(rotation) if rotation else None,
            shade=data.get("shade"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"from": list(self.from_), "to": list(self.to)}
        if self.rotation is not None:
            out["rotation"] = self.rotation.to_json()
        if self.shade is not None:
            out["shade"] = self.shade
        out.update(self.extra)
        out["faces"] = {face.value: data.to_json() for face, data in self.faces.items()}
        return out


@dataclass(slots=True)
class Model:
    parent: Optional[str] = None
    textures: Dict[str, str] = field(default_factory=dict)
    elements: Optional[List[Element]] = None
    ambientocclusion: Optional[bool] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    # Set once the merger has suffixed this model's aliases; never serialized.
    parts_tagged: bool = False

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "Model":
        known = {"parent", "textures", "elements", "ambientocclusion"}
        elements = data.get("elements")
        return cls(
            parent=data.get("parent"),
            textures={str(k): str(v) for k, v in (data.get("textures") or {}).items()},
            elements=[Element.from_json(e) for e in elements] if elements is not None else None,
            ambientocclusion=data.get("ambientocclusion"),
            extra={k: v for k, v in data.items() if k not in known},
        )

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.parent is not None:
            out["parent"] = self.parent
        if self.ambientocclusion is not None:
            out["ambientocclusion"] = self.ambientocclusion
        out.update(self.extra)
        out["textures"] = dict(self.textures)
        if self.elements is not None:
            out["elements"] = [e.to_json() for e in self.elements]
        return out

    def clone(self) -> "Model":
        return copy.deepcopy(self)


@dataclass(slots=True)
class ModelReference:
    model: str
    x: Rotation = Rotation.DEG_0
    y: Rotation = Rotation.DEG_0
    uvlock: bool = False
    weight: Optional[int] = None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ModelReference":
        return cls(
            model=str(data["model"]),
            x=Rotation.parse(data.get("x")),
            y=Rotation.parse(data.get("y")),
            uvlock=bool(data.get("uvlock", False)),
            weight=data.get("weight"),
        )

    @classmethod
    def alternatives(cls, data: Any) -> List["ModelReference"]:
        """Parse a single reference or a weighted list of them."""

        if isinstance(data, list):
            return [cls.from_json(item) for item in data]
        return [cls.from_json(data)]

    def to_json(self) -> dict[str, Any]:
        out: dict[str, Any] = {"model": self.model}
        if self.x:
            out["x"] = int(self.x)
        if self.y:
            out["y"] = int(self.y)
        if self.uvlock:
            out["uvlock"] = True
        if self.weight is not None:
            out["weight"] = self.weight
        return out


def resolve_model(model: Model, models: Mapping[str, Model]) -> Model:
    """Return a copy of ``model`` with elements and textures inherited from its parents.

    Texture aliases of the child win over the parent's. The walk stops at the
    first ancestor that defines a non-empty element list.
    """

    result = model.clone()
    visited: set[str] = set()
    while not result.elements:
        if not result.parent:
            raise ModelResolutionError("No elements or parent for model")

        parent_name = strip_model_name(result.parent)
        if parent_name in visited:
            raise ModelResolutionError(f"Cyclic parent chain through: {parent_name}")
        visited.add(parent_name)

        parent = models.get(parent_name)
        if parent is None:
            raise ModelResolutionError(f"No model with name: {parent_name}")

        result.textures = {**parent.textures, **result.textures}
        result.elements = copy.deepcopy(parent.elements)
        result.parent = parent.parent

    return result


def _follow_alias(textures: Mapping[str, str], value: str) -> Optional[str]:
    seen: set[str] = set()
    while value.startswith("#"):
        key = value[1:]
        if key in seen or key not in textures:
            return None
        seen.add(key)
        value = textures[key]
    return value


def texture_path(model: Model, reference: str) -> Optional[str]:
    """Concrete texture behind a face reference such as ``#side``, or None."""

    if not reference.startswith("#"):
        reference = "#" + reference
    return _follow_alias(model.textures, reference)


def simplify_model(model: Model) -> None:
    """Flatten alias chains in place so every alias is keyed by its texture name."""

    model.parent = None

    new_textures: dict[str, str] = {}
    mapping: dict[str, str] = {}
    for key, value in model.textures.items():
        if not value:
            continue
        path = _follow_alias(model.textures, value)
        if path is None:
            log.debug("Dropping unresolvable texture alias %r", key)
            continue
        if key == "particle":
            new_textures[key] = path
            mapping[key] = key
        else:
            new_key = strip_model_name(path)
            new_textures[new_key] = path
            mapping[key] = new_key
    model.textures = new_textures

    for element in model.elements or ():
        for face in element.faces.values():
            alias = face.texture.removeprefix("#")
            if alias in mapping:
                face.texture = "#" + mapping[alias]


def disable_shading(model: Model) -> None:
    model.ambientocclusion = False
    for element in model.elements or ():
        element.shade = False


def add_marker_element(model: Model, texture_path: str) -> None:
    """Append the small cube whose faces sample the model's index texture."""

    model.textures[MARKER_ALIAS] = texture_path
    faces = {face: FaceData(texture="#" + MARKER_ALIAS, uv=(0, 0, 16, 16)) for face in Face}
    marker = Element(from_=(7.5, 7.5, 7.5), to=(8.5, 8.5, 8.5), faces=faces, shade=False)
    if model.elements is None:
        model.elements = []
    model.elements.append(marker)
