"""High-level pipeline tying together archive IO, blockstate expansion, atlas and encoder."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Union

import logging

from . import archive, encoder
from .archive import ArchiveInput, AssetSource
from .atlas import FLAT_NORMAL, LOW_SPECULAR, NORMAL_SUFFIX, SPECULAR_SUFFIX, Atlas, decode_png
from .context import PipelineContext
from .errors import ArchiveError
from .model import Model, add_marker_element, disable_shading, simplify_model, strip_model_name
from .multipart import expand_multipart
from .raster import RgbaBuffer
from .skin import SKIN_PATH, derive_skin
from .variants import expand_variants

log = logging.getLogger(__name__)

ProgressCallback = Callable[[str, float], None]

ATLAS_PATH = archive.EFFECT_TEXTURES_DIR + "atlas.png"
GEOMETRY_PATH = archive.EFFECT_TEXTURES_DIR + "geometry.png"


@dataclass(slots=True)
class AtlasOptions:
    min_tile: int = 16
    max_size: int = 32768
    normal_fallback: tuple[int, int, int, int] = FLAT_NORMAL
    specular_fallback: tuple[int, int, int, int] = LOW_SPECULAR


@dataclass(slots=True)
class PipelineOptions:
    description_template: str = "VanillaPuddingTart - {name}"
    default_pack_format: int = 9
    strict: bool = True  # missing blockstate models abort the run
    atlas: AtlasOptions = field(default_factory=AtlasOptions)


def _no_progress(phase: str, fraction: float) -> None:
    pass


def generate_resourcepack(
    jar: ArchiveInput,
    resourcepack: ArchiveInput,
    *,
    skin: Optional[Union[str, Path, bytes]] = None,
    output_dir: Union[str, Path] = ".",
    options: PipelineOptions | None = None,
    progress: ProgressCallback | None = None,
) -> Path:
    """Run the whole conversion and write ``VPT_<resourcepack>.zip`` into ``output_dir``.

    Nothing is written when a phase fails.
    """

    opts = options or PipelineOptions()
    report = progress or _no_progress

    skin_image = None
    if skin is not None:
        if isinstance(skin, bytes):
            skin_bytes = skin
        else:
            try:
                skin_bytes = Path(skin).read_bytes()
            except OSError as exc:
                raise ArchiveError(f"Cannot read skin {skin}: {exc}") from exc
        skin_image = decode_png(skin_bytes, "skin")

    with AssetSource(jar, resourcepack) as source:
        files = build_resourcepack(source, options=opts, skin=skin_image, progress=report)
        out_name = f"VPT_{source.resourcepack_name}.zip"

    out_path = archive.write_archive(Path(output_dir) / out_name, files)
    report("Writing archive", 1.0)
    return out_path


def build_resourcepack(
    source: AssetSource,
    *,
    options: PipelineOptions | None = None,
    skin: Optional[RgbaBuffer] = None,
    progress: ProgressCallback | None = None,
    context: Optional[PipelineContext] = None,
) -> Dict[str, bytes]:
    """Produce every entry of the output archive, keyed by path."""

    opts = options or PipelineOptions()
    report = progress or _no_progress
    ctx = context or PipelineContext(strict=opts.strict)
    files: Dict[str, bytes] = {}

    files[archive.PACK_METADATA] = archive.dump_json(pack_metadata(source, opts))
    report("Reading pack metadata", 1.0)

    load_raw_assets(source, ctx)
    report("Loading models", 1.0)

    expand_blockstates(ctx, report)
    normalize_models(ctx)
    report("Simplifying models", 1.0)

    atlas = load_textures(source, opts.atlas, report)
    atlas.generate_locations()
    files[ATLAS_PATH] = atlas.generate_atlas().to_png()
    report("Packing atlas", 1.0)

    drop_missing_textures(ctx, atlas)
    files.update(encode_models(ctx, atlas, report))

    for name, model in ctx.generated_models.items():
        files[f"{archive.MODELS_DIR}{name}.json"] = archive.dump_json(model.to_json())
    for name, document in ctx.variants.items():
        files[f"{archive.BLOCKSTATES_DIR}{name}.json"] = archive.dump_json(document)

    if skin is not None:
        files[SKIN_PATH] = derive_skin(skin).to_png()

    return files


def pack_metadata(source: AssetSource, options: PipelineOptions) -> Dict[str, Any]:
    """The input pack.mcmeta with only the description replaced."""

    meta = source.read_json(archive.PACK_METADATA, required=True)
    if meta is None:
        meta = {}
    elif not isinstance(meta, dict):
        raise ArchiveError(f"{archive.PACK_METADATA} is not a JSON object")
    pack = dict(meta.get("pack") or {})
    pack.setdefault("pack_format", options.default_pack_format)
    pack["description"] = options.description_template.format(name=source.resourcepack_name)
    meta["pack"] = pack
    return meta


def load_raw_assets(source: AssetSource, context: PipelineContext) -> None:
    for name in source.list_entries(archive.MODELS_DIR, ".json"):
        document = source.read_json(f"{archive.MODELS_DIR}{name}.json")
        if not isinstance(document, dict):
            continue
        try:
            context.raw_models[name] = Model.from_json(document)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Skipping model %s: %s", name, exc)

    for name in source.list_entries(archive.BLOCKSTATES_DIR, ".json"):
        document = source.read_json(f"{archive.BLOCKSTATES_DIR}{name}.json")
        if isinstance(document, dict):
            context.blockstates[name] = document

    log.info("Loaded %d models and %d blockstates", len(context.raw_models), len(context.blockstates))


def expand_blockstate(name: str, document: Mapping[str, Any], context: PipelineContext) -> Dict[str, Any]:
    if "multipart" in document:
        return expand_multipart(name, document, context)
    return expand_variants(name, document, context)


def expand_blockstates(context: PipelineContext, progress: ProgressCallback = _no_progress) -> None:
    names = sorted(context.blockstates)
    for done, name in enumerate(names, start=1):
        try:
            context.variants[name] = expand_blockstate(name, context.blockstates[name], context)
        except (KeyError, TypeError, ValueError) as exc:
            log.warning("Skipping malformed blockstate %s: %s", name, exc)
            prefix = f"{name}_generated_model_"
            for stale in [key for key in context.generated_models if key.startswith(prefix)]:
                del context.generated_models[stale]
        progress("Expanding blockstates", done / len(names))

    log.info("Generated %d models from %d blockstates", len(context.generated_models), len(context.variants))


def normalize_models(context: PipelineContext) -> None:
    for model in context.generated_models.values():
        simplify_model(model)
        disable_shading(model)


def _is_companion(name: str, names: set[str]) -> bool:
    for suffix in (NORMAL_SUFFIX, SPECULAR_SUFFIX):
        if name.endswith(suffix) and name[: -len(suffix)] in names:
            return True
    return False


def load_textures(source: AssetSource, options: AtlasOptions, progress: ProgressCallback = _no_progress) -> Atlas:
    atlas = Atlas(
        min_tile=int(options.min_tile),
        max_size=int(options.max_size),
        normal_fallback=options.normal_fallback,
        specular_fallback=options.specular_fallback,
    )

    all_names = source.list_entries(archive.BLOCK_TEXTURES_DIR, ".png")
    name_set = set(all_names)
    names = [name for name in all_names if not _is_companion(name, name_set)]
    for done, name in enumerate(names, start=1):
        base = archive.BLOCK_TEXTURES_DIR + name
        albedo = decode_png(source.read(base + ".png"), name)
        if albedo is not None:
            normal = decode_png(source.read(base + NORMAL_SUFFIX + ".png"), name + NORMAL_SUFFIX)
            specular = decode_png(source.read(base + SPECULAR_SUFFIX + ".png"), name + SPECULAR_SUFFIX)
            atlas.add_texture(name, albedo, normal, specular)
        progress("Loading textures", done / len(names))

    return atlas


def drop_missing_textures(context: PipelineContext, atlas: Atlas) -> None:
    """Remove aliases whose texture exists in neither archive."""

    for name, model in context.generated_models.items():
        kept = {}
        for key, path in model.textures.items():
            if key == "particle" or strip_model_name(path) in atlas.locations:
                kept[key] = path
            else:
                log.debug("%s: texture %s not found", name, path)
        model.textures = kept


def encode_models(context: PipelineContext, atlas: Atlas, progress: ProgressCallback = _no_progress) -> Dict[str, bytes]:
    """Geometry texture plus one index texture per model; adds the marker element to each model."""

    files: Dict[str, bytes] = {}
    rows: list[bytes] = []
    total = len(context.generated_models)
    for index, (name, model) in enumerate(context.generated_models.items()):
        rows.append(encoder.encode_model(model, atlas.locations))
        files[f"{archive.BLOCK_TEXTURES_DIR}{name}_data.png"] = encoder.marker_texture(index).to_png()
        add_marker_element(model, f"minecraft:block/{name}_data")
        progress("Encoding geometry", (index + 1) / total)

    files[GEOMETRY_PATH] = encoder.build_geometry_texture(rows).to_png()
    log.info("Encoded %d models", total)
    return files
