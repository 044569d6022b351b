import pytest

from vpt_pack.errors import ModelNotFoundError
from vpt_pack.model import Axis, Element, ElementRotation, Face, FaceData, Model, ModelReference, Rotation
from vpt_pack.rotation import apply_reference_rotation, default_uv, rescale_bounds, rotate_element


def _labelled_cube(**kwargs):
    faces = {face: FaceData(texture="#" + face.value, cullface=face) for face in Face}
    return Element(from_=(0, 0, 0), to=(16, 16, 16), faces=faces, **kwargs)


def test_zero_rotation_is_identity():
    element = _labelled_cube(rotation=ElementRotation(axis=Axis.Y, angle=22.5, origin=(8, 8, 4)))
    rotated = rotate_element(element, Rotation.DEG_0, Rotation.DEG_0)

    assert rotated.from_ == element.from_
    assert rotated.to == element.to
    assert rotated.rotation == element.rotation
    for face in Face:
        assert rotated.faces[face].texture == element.faces[face].texture
        assert rotated.faces[face].cullface is face
        assert rotated.faces[face].rotation is None


def test_x90_face_mapping():
    rotated = rotate_element(_labelled_cube(), Rotation.DEG_90, Rotation.DEG_0)
    assert rotated.faces[Face.NORTH].texture == "#up"
    assert rotated.faces[Face.SOUTH].texture == "#down"
    assert rotated.faces[Face.DOWN].texture == "#north"
    assert rotated.faces[Face.UP].texture == "#south"
    assert rotated.faces[Face.EAST].texture == "#east"
    assert rotated.faces[Face.WEST].texture == "#west"


def test_y90_face_mapping():
    rotated = rotate_element(_labelled_cube(), Rotation.DEG_0, Rotation.DEG_90)
    assert rotated.faces[Face.EAST].texture == "#north"
    assert rotated.faces[Face.SOUTH].texture == "#east"
    assert rotated.faces[Face.WEST].texture == "#south"
    assert rotated.faces[Face.NORTH].texture == "#west"
    assert rotated.faces[Face.UP].texture == "#up"
    assert rotated.faces[Face.DOWN].texture == "#down"
    assert rotated.faces[Face.EAST].cullface is Face.EAST


def test_x_then_y_face_mapping():
    rotated = rotate_element(_labelled_cube(), Rotation.DEG_90, Rotation.DEG_90)
    # up -> north (x) -> east (y)
    assert rotated.faces[Face.EAST].texture == "#up"
    # down -> south (x) -> west (y)
    assert rotated.faces[Face.WEST].texture == "#down"


def test_corner_transforms():
    slab = Element(from_=(0, 0, 0), to=(16, 8, 16))
    assert rotate_element(slab, Rotation.DEG_90, Rotation.DEG_0).from_ == (0, 0, 8)
    assert rotate_element(slab, Rotation.DEG_90, Rotation.DEG_0).to == (16, 16, 16)
    assert rotate_element(slab, Rotation.DEG_180, Rotation.DEG_0).from_ == (0, 8, 0)
    assert rotate_element(slab, Rotation.DEG_270, Rotation.DEG_0).to == (16, 16, 8)

    north_half = Element(from_=(0, 0, 0), to=(16, 16, 8))
    east = rotate_element(north_half, Rotation.DEG_0, Rotation.DEG_90)
    assert (east.from_, east.to) == ((8, 0, 0), (16, 16, 16))
    south = rotate_element(north_half, Rotation.DEG_0, Rotation.DEG_180)
    assert (south.from_, south.to) == ((0, 0, 8), (16, 16, 16))
    west = rotate_element(north_half, Rotation.DEG_0, Rotation.DEG_270)
    assert (west.from_, west.to) == ((0, 0, 0), (8, 16, 16))


def test_missing_uv_derived_from_unrotated_box():
    element = Element(from_=(0, 0, 0), to=(16, 8, 16), faces={Face.NORTH: FaceData(texture="#side")})
    rotated = rotate_element(element, Rotation.DEG_0, Rotation.DEG_90)
    assert rotated.faces[Face.EAST].uv == (0, 8, 16, 16)
    assert default_uv(element, Face.NORTH) == (0, 8, 16, 16)
    assert element.faces[Face.NORTH].uv is None


def test_face_rotation_accumulates():
    faces = {
        Face.UP: FaceData(texture="#top", rotation=90),
        Face.EAST: FaceData(texture="#side"),
        Face.NORTH: FaceData(texture="#front"),
    }
    element = Element(from_=(0, 0, 0), to=(16, 16, 16), faces=faces)

    by_y = rotate_element(element, Rotation.DEG_0, Rotation.DEG_270)
    assert by_y.faces[Face.UP].rotation == 0
    assert by_y.faces[Face.NORTH].rotation is None

    by_x = rotate_element(element, Rotation.DEG_90, Rotation.DEG_0)
    assert by_x.faces[Face.EAST].rotation == 90
    assert by_x.faces[Face.DOWN].rotation is None


def test_element_rotation_axis_origin_and_sign():
    element = Element(
        from_=(0, 0, 0),
        to=(16, 16, 16),
        rotation=ElementRotation(axis=Axis.Y, angle=45, origin=(8, 8, 0)),
    )

    by_x = rotate_element(element, Rotation.DEG_90, Rotation.DEG_0)
    assert by_x.rotation.axis is Axis.Z
    assert by_x.rotation.angle == -45
    assert by_x.rotation.origin == (8, 0, 8)

    by_y = rotate_element(element, Rotation.DEG_0, Rotation.DEG_90)
    assert by_y.rotation.axis is Axis.Y
    assert by_y.rotation.angle == 45
    assert by_y.rotation.origin == (16, 8, 8)


@pytest.mark.parametrize(
    "axis, y, expected_axis, expected_angle",
    [
        (Axis.Z, Rotation.DEG_180, Axis.Z, -22.5),
        (Axis.Z, Rotation.DEG_90, Axis.X, -22.5),
        (Axis.X, Rotation.DEG_180, Axis.X, -22.5),
        (Axis.X, Rotation.DEG_90, Axis.Z, 22.5),
    ],
)
def test_element_rotation_sign_under_y(axis, y, expected_axis, expected_angle):
    element = Element(from_=(0, 0, 0), to=(16, 16, 16), rotation=ElementRotation(axis=axis, angle=22.5))
    rotated = rotate_element(element, Rotation.DEG_0, y)
    assert rotated.rotation.axis is expected_axis
    assert rotated.rotation.angle == expected_angle


def test_rescale_bounds():
    element = Element(
        from_=(0, 0, 0),
        to=(16, 16, 16),
        rotation=ElementRotation(axis=Axis.Y, angle=45, rescale=True),
    )
    from_, to = rescale_bounds(element)
    assert from_[1] == 0 and to[1] == 16
    assert from_[0] == pytest.approx(8 - 8 * 2 ** 0.5)
    assert to[2] == pytest.approx(8 + 8 * 2 ** 0.5)

    element.rotation.rescale = False
    assert rescale_bounds(element) == ((0, 0, 0), (16, 16, 16))


def test_reference_rotation_returns_independent_copy(raw_models):
    before = raw_models["slab"].clone()
    rotated = apply_reference_rotation(ModelReference(model="block/slab", x=Rotation.DEG_180), raw_models)

    assert rotated.elements[0].from_ == (0, 8, 0)
    assert raw_models["slab"] == before
    rotated.textures["side"] = "block/changed"
    assert raw_models["slab"].textures["side"] == "block/stone"


def test_reference_rotation_resolves_parents(raw_models):
    rotated = apply_reference_rotation(ModelReference(model="minecraft:block/stone", y=Rotation.DEG_90), raw_models)
    assert len(rotated.elements) == 1
    assert rotated.textures["all"] == "minecraft:block/stone"
    assert rotated.elements[0].faces[Face.EAST].texture == "#north"


def test_reference_rotation_falls_back_to_unrotated_model():
    store = {"orphan": Model(parent="block/gone", textures={"all": "block/x"})}
    result = apply_reference_rotation(ModelReference(model="block/orphan", y=Rotation.DEG_90), store)
    assert result == store["orphan"]
    assert result is not store["orphan"]


def test_reference_rotation_missing_model():
    with pytest.raises(ModelNotFoundError):
        apply_reference_rotation(ModelReference(model="block/nothing"), {})


FACE_TABLES = [
    (Rotation.DEG_90, Rotation.DEG_0, {"up": "north", "down": "south", "north": "down", "south": "up", "east": "east", "west": "west"}),
    (Rotation.DEG_180, Rotation.DEG_0, {"up": "down", "down": "up", "north": "south", "south": "north", "east": "east", "west": "west"}),
    (Rotation.DEG_270, Rotation.DEG_0, {"up": "south", "down": "north", "north": "up", "south": "down", "east": "east", "west": "west"}),
    (Rotation.DEG_0, Rotation.DEG_90, {"north": "east", "east": "south", "south": "west", "west": "north", "up": "up", "down": "down"}),
    (Rotation.DEG_0, Rotation.DEG_180, {"north": "south", "south": "north", "east": "west", "west": "east", "up": "up", "down": "down"}),
    (Rotation.DEG_0, Rotation.DEG_270, {"north": "west", "west": "south", "south": "east", "east": "north", "up": "up", "down": "down"}),
]


@pytest.mark.parametrize("x, y, mapping", FACE_TABLES)
def test_face_tables_per_step(x, y, mapping):
    rotated = rotate_element(_labelled_cube(), x, y)
    for source, target in mapping.items():
        assert rotated.faces[Face(target)].texture == "#" + source
        assert rotated.faces[Face(target)].cullface is Face(target)


@pytest.mark.parametrize(
    "axis, x, expected_axis, expected_angle",
    [
        (Axis.Y, Rotation.DEG_180, Axis.Y, -22.5),
        (Axis.X, Rotation.DEG_180, Axis.X, -22.5),
        (Axis.Y, Rotation.DEG_270, Axis.Z, 22.5),
        (Axis.X, Rotation.DEG_270, Axis.X, 22.5),
    ],
)
def test_element_rotation_sign_under_x(axis, x, expected_axis, expected_angle):
    element = Element(from_=(0, 0, 0), to=(16, 16, 16), rotation=ElementRotation(axis=axis, angle=22.5))
    rotated = rotate_element(element, x, Rotation.DEG_0)
    assert rotated.rotation.axis is expected_axis
    assert rotated.rotation.angle == expected_angle
