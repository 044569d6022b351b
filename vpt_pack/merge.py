"""Combining several rotated models into the single model of a multipart state."""

from __future__ import annotations

from typing import Sequence

from .model import Model

PARTICLE = "particle"


def _suffix_reference(value: str, suffix: str) -> str:
    if value.startswith("#") and value[1:] != PARTICLE:
        return value + suffix
    return value


def tag_parts(model: Model, suffix: str) -> Model:
    """Return a copy of ``model`` with its texture aliases made unique by ``suffix``.

    ``particle`` keeps its name. A model that has already been tagged is
    copied unchanged.
    """

    result = model.clone()
    if result.parts_tagged:
        return result

    textures: dict[str, str] = {}
    for key, value in model.textures.items():
        new_key = key if key == PARTICLE else key + suffix
        textures[new_key] = _suffix_reference(value, suffix)
    result.textures = textures

    for element in result.elements or ():
        for face in element.faces.values():
            face.texture = _suffix_reference(face.texture, suffix)

    result.parts_tagged = True
    return result


def merge_models(models: Sequence[Model]) -> Model:
    """Merge models into one: later alias tables win, elements are concatenated in order."""

    if not models:
        raise ValueError("merge_models needs at least one model")

    tagged = [tag_parts(model, f"_part{i}__") for i, model in enumerate(models)]
    result = tagged[0]
    for other in tagged[1:]:
        result.textures.update(other.textures)
        result.elements = [*(result.elements or ()), *(other.elements or ())]
    return result
