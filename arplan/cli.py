"""Command line entry point.

    arplan floorplan SNAPSHOT.json [--output plan.json] [--detect-corners]
    arplan rectify IMAGE --corners x,y x,y x,y x,y --output corrected.png
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Sequence

from loguru import logger

from arplan.exceptions import ArplanError, RecordFormatError
from arplan.floorplan.corners import detect_corners
from arplan.floorplan.generator import FloorPlanGenerator
from arplan.floorplan.schema import parse_corner_records, parse_plane_records
from arplan.logging_config import setup_logging
from arplan.settings import Settings
from arplan.vector.perspective import PerspectiveCache, SourceImage


def _parse_corner(value: str) -> tuple[float, float]:
    try:
        x, y = (float(part) for part in value.split(","))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"corner must be 'x,y', got {value!r}") from exc
    return x, y


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arplan", description="AR capture geometry tools")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--log-level", help="Override the configured log level")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("floorplan", help="Generate a top-down floor plan from a capture snapshot")
    plan.add_argument("snapshot", type=Path, help="Snapshot JSON with 'planes' and optional 'corners'")
    plan.add_argument("--output", type=Path, help="Write the plan JSON here instead of stdout")
    plan.add_argument(
        "--detect-corners",
        action="store_true",
        help="Detect corners between wall anchors when the snapshot has none",
    )

    rectify = sub.add_parser("rectify", help="Perspective-correct a region of an image")
    rectify.add_argument("image", type=Path, help="Source image")
    rectify.add_argument(
        "--corners",
        type=_parse_corner,
        nargs=4,
        required=True,
        metavar="X,Y",
        help="Four normalized corners in traversal order",
    )
    rectify.add_argument("--output", type=Path, required=True, help="Corrected image path")
    return parser


def run_floorplan(args: argparse.Namespace, settings: Settings) -> int:
    payload = json.loads(args.snapshot.read_text(encoding="utf-8"))
    if isinstance(payload, list):
        payload = {"planes": payload}
    if not isinstance(payload, dict):
        raise RecordFormatError(
            "snapshot must be an object or a list of planes",
            {"type": type(payload).__name__},
        )
    planes_payload = payload.get("planes", [])
    corners_payload = payload.get("corners", [])
    if not isinstance(planes_payload, list) or not isinstance(corners_payload, list):
        raise RecordFormatError("snapshot planes and corners must be lists", {"path": str(args.snapshot)})
    plane_records = parse_plane_records(planes_payload)
    corner_records = parse_corner_records(corners_payload)

    generator = FloorPlanGenerator.from_settings(settings.floorplan)
    planes = [record.to_plane() for record in plane_records]
    corners = [record.to_candidate() for record in corner_records]
    if not corners and args.detect_corners:
        corners = detect_corners(planes, settings.corners)
    result = generator.generate(planes, corners)

    text = json.dumps(result.to_dict(), indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text, encoding="utf-8")
        logger.info(f"Saved floor plan to {args.output}")
    else:
        print(text)
    return 0


def run_rectify(args: argparse.Namespace, settings: Settings) -> int:
    source = SourceImage.from_bytes(args.image.read_bytes())
    cache = PerspectiveCache.from_settings(settings.perspective)
    corrected = cache.get(args.corners, source)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    args.output.write_bytes(corrected.to_bytes(args.output.suffix or settings.perspective.output_extension))
    logger.info(f"Saved {corrected.width}x{corrected.height} corrected image to {args.output}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = Settings.load(args.config)
    except ArplanError as exc:
        print(f"arplan: {exc.message}", file=sys.stderr)
        return 1

    level = (args.log_level or settings.logging.level).upper()
    log_file = Path(settings.logging.log_file) if settings.logging.log_file else None
    setup_logging(level=level, json_format=args.json_logs or settings.logging.json_format, log_file=log_file)

    handlers = {"floorplan": run_floorplan, "rectify": run_rectify}
    try:
        return handlers[args.command](args, settings)
    except ArplanError as exc:
        logger.error(f"{exc.message} {exc.details}")
        return 1
    except (OSError, json.JSONDecodeError) as exc:
        logger.error(f"Could not read input: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
