"""Reading the jar/resourcepack pair and writing the generated pack."""

from __future__ import annotations

from pathlib import Path
from typing import Any, BinaryIO, Dict, List, Mapping, Optional, Union

import json
import logging
import zipfile

from .errors import ArchiveError

log = logging.getLogger(__name__)

ArchiveInput = Union[str, Path, BinaryIO]

MODELS_DIR = "assets/minecraft/models/block/"
BLOCKSTATES_DIR = "assets/minecraft/blockstates/"
BLOCK_TEXTURES_DIR = "assets/minecraft/textures/block/"
EFFECT_TEXTURES_DIR = "assets/minecraft/textures/effect/"
PACK_METADATA = "pack.mcmeta"


def _open_zip(source: ArchiveInput, label: str) -> zipfile.ZipFile:
    try:
        return zipfile.ZipFile(source)
    except (OSError, zipfile.BadZipFile) as exc:
        raise ArchiveError(f"Cannot open {label}: {exc}") from exc


def _archive_name(source: ArchiveInput) -> str:
    if isinstance(source, (str, Path)):
        return Path(source).stem
    name = getattr(source, "name", None)
    return Path(name).stem if isinstance(name, str) else "resourcepack"


class AssetSource:
    """Union view of two archives; resourcepack entries shadow jar entries with the same path."""

    def __init__(self, jar: ArchiveInput, resourcepack: ArchiveInput, *, name: Optional[str] = None) -> None:
        self.jar = _open_zip(jar, "jar")
        try:
            self.resourcepack = _open_zip(resourcepack, "resourcepack")
        except ArchiveError:
            self.jar.close()
            raise
        self.resourcepack_name = name or _archive_name(resourcepack)
        self._layers = (self.resourcepack, self.jar)

    def __enter__(self) -> "AssetSource":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        self.resourcepack.close()
        self.jar.close()

    def read(self, path: str) -> Optional[bytes]:
        for layer in self._layers:
            try:
                return layer.read(path)
            except KeyError:
                continue
        return None

    def read_json(self, path: str, *, required: bool = False) -> Optional[Any]:
        """Parsed JSON document, or None when it is missing or malformed.

        With ``required`` a document that exists but does not parse raises
        :class:`ArchiveError` instead.
        """

        data = self.read(path)
        if data is None:
            return None
        try:
            return json.loads(data.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            if required:
                raise ArchiveError(f"Malformed JSON in {path}: {exc}") from exc
            log.warning("Ignoring malformed JSON %s: %s", path, exc)
            return None

    def list_entries(self, prefix: str, suffix: str) -> List[str]:
        """Sorted entry names under ``prefix`` ending with ``suffix``, both stripped."""

        names: set[str] = set()
        for layer in self._layers:
            for entry in layer.namelist():
                if entry.startswith(prefix) and entry.endswith(suffix) and len(entry) > len(prefix) + len(suffix):
                    names.add(entry[len(prefix) : len(entry) - len(suffix)])
        return sorted(names)


def write_archive(path: Union[str, Path], files: Mapping[str, bytes]) -> Path:
    out_path = Path(path)
    if out_path.parent:
        out_path.parent.mkdir(parents=True, exist_ok=True)

    with zipfile.ZipFile(out_path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name in sorted(files):
            zf.writestr(name, files[name])

    log.info("Wrote %s (%d entries)", out_path, len(files))
    return out_path


def dump_json(document: Dict[str, Any]) -> bytes:
    return json.dumps(document, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
