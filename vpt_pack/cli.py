"""Command line interface for the VPT resourcepack generator."""

from __future__ import annotations

import argparse
import logging

from .errors import VPTError
from .pipeline import AtlasOptions, PipelineOptions, generate_resourcepack

log = logging.getLogger("vpt_pack")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="vpt-pack")
    parser.add_argument("jar", help="Path to the Minecraft client .jar providing the default assets")
    parser.add_argument("resourcepack", help="Path to the resourcepack .zip applied on top of the jar")
    parser.add_argument("--skin", help="Optional player skin PNG")
    parser.add_argument("--output-dir", default=".", help="Directory receiving VPT_<resourcepack>.zip")

    parser.add_argument("--lenient", action="store_true", help="Skip blockstate references to missing models instead of failing")
    parser.add_argument("--pack-format", type=int, default=9, help="pack_format used when neither archive has a pack.mcmeta")
    parser.add_argument("--description", default="VanillaPuddingTart - {name}", help="Pack description; {name} is the resourcepack name")
    parser.add_argument("--atlas-max-size", type=int, default=32768, help="Maximum atlas side length in pixels")

    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-item detail")
    return parser


def _log_progress(phase: str, fraction: float) -> None:
    if fraction >= 1.0:
        log.info("%s: done", phase)
    else:
        log.debug("%s: %.0f%%", phase, fraction * 100.0)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    pipeline_opts = PipelineOptions(
        description_template=str(args.description),
        default_pack_format=int(args.pack_format),
        strict=not args.lenient,
        atlas=AtlasOptions(max_size=int(args.atlas_max_size)),
    )

    try:
        out_path = generate_resourcepack(
            args.jar,
            args.resourcepack,
            skin=args.skin,
            output_dir=args.output_dir,
            options=pipeline_opts,
            progress=_log_progress,
        )
    except VPTError as exc:
        log.error("%s", exc)
        return 1

    print(out_path)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
