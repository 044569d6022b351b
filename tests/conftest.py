"""Shared fixtures: tiny vanilla-like model set, PNG and zip builders."""

import io
import json
import zipfile

import pytest
from PIL import Image

from vpt_pack.model import Model


def _cube_faces():
    faces = {}
    for face in ("down", "up", "north", "south", "west", "east"):
        faces[face] = {"texture": "#" + face, "cullface": face}
    return faces


BLOCK_MODELS = {
    "block": {"ambientocclusion": True, "display": {"gui": {"rotation": [30, 225, 0]}}},
    "cube": {
        "parent": "block/block",
        "elements": [{"from": [0, 0, 0], "to": [16, 16, 16], "faces": _cube_faces()}],
    },
    "cube_all": {
        "parent": "block/cube",
        "textures": {
            "particle": "#all",
            "down": "#all",
            "up": "#all",
            "north": "#all",
            "east": "#all",
            "south": "#all",
            "west": "#all",
        },
    },
    "stone": {"parent": "minecraft:block/cube_all", "textures": {"all": "minecraft:block/stone"}},
    "dirt": {"parent": "minecraft:block/cube_all", "textures": {"all": "minecraft:block/dirt"}},
    "slab": {
        "textures": {"side": "block/stone", "particle": "#side"},
        "elements": [
            {
                "from": [0, 0, 0],
                "to": [16, 8, 16],
                "faces": {
                    "down": {"uv": [0, 0, 16, 16], "texture": "#side", "cullface": "down"},
                    "up": {"uv": [0, 0, 16, 16], "texture": "#side"},
                    "north": {"uv": [0, 8, 16, 16], "texture": "#side", "cullface": "north"},
                },
            }
        ],
    },
    "air": {"elements": []},
}


@pytest.fixture
def block_models():
    return json.loads(json.dumps(BLOCK_MODELS))


@pytest.fixture
def raw_models(block_models):
    return {name: Model.from_json(doc) for name, doc in block_models.items()}


@pytest.fixture
def png():
    def _png(width=16, height=None, color=(200, 100, 50, 255)):
        img = Image.new("RGBA", (width, height or width), tuple(color))
        bio = io.BytesIO()
        img.save(bio, format="PNG")
        return bio.getvalue()

    return _png


@pytest.fixture
def make_archive(tmp_path):
    def _make(name, entries):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            for entry, value in entries.items():
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)
                zf.writestr(entry, value)
        return path

    return _make


@pytest.fixture
def jar_entries(block_models, png):
    entries = {"assets/minecraft/models/block/%s.json" % name: doc for name, doc in block_models.items()}
    entries["assets/minecraft/blockstates/stone.json"] = {"variants": {"normal": {"model": "block/stone"}}}
    entries["assets/minecraft/textures/block/stone.png"] = png(color=(120, 120, 120, 255))
    entries["assets/minecraft/textures/block/dirt.png"] = png(color=(130, 90, 60, 255))
    entries["pack.mcmeta"] = {"pack": {"pack_format": 15, "description": "Minecraft"}}
    return entries
