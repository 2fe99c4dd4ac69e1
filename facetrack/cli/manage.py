#!/usr/bin/env python
"""
Face Track Admin

Operator commands for the face track service.

Usage:
    facetrack-admin track-id <descriptor.json>
    facetrack-admin stems <track_id>
    facetrack-admin reset-collection
    facetrack-admin init-db
"""
import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from facetrack.core.config import settings
from facetrack.core.exceptions import ExternalServiceError, ValidationError
from facetrack.core.logging import setup_logging
from facetrack.services.descriptors import average_descriptors, normalize, validate_descriptor
from facetrack.services.stems import StemSelector
from facetrack.services.track_identity import derive_track_id, is_track_id


def load_scans(path: Path) -> List[List[float]]:
    """Read one descriptor, or a list of descriptor scans, from a JSON file."""
    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("descriptors") or [data.get("descriptor")]
    if isinstance(data, list) and data and not isinstance(data[0], list):
        data = [data]
    if not isinstance(data, list) or not data:
        raise ValidationError("Descriptor file must hold a descriptor or a list of descriptors")
    return data


def track_id_command(args: argparse.Namespace) -> int:
    try:
        scans = load_scans(Path(args.descriptor_file))
        for scan in scans:
            validate_descriptor(scan, settings.DESCRIPTOR_DIMENSION)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        print(f"Error reading descriptor: {e}", file=sys.stderr)
        return 1

    descriptor = normalize(average_descriptors(scans), settings.QUANTIZATION_MULTIPLIER)
    track_id = derive_track_id(descriptor, settings.TRACK_ID_LENGTH)
    print(f"Track ID: {track_id}")
    if args.verbose:
        print(f"Normalized descriptor: {json.dumps(descriptor, separators=(',', ':'))}")
    for category, url in StemSelector().select(track_id).items():
        print(f"  {category}: {url}")
    return 0


def stems_command(args: argparse.Namespace) -> int:
    if not is_track_id(args.track_id):
        print(f"Invalid track id: {args.track_id}", file=sys.stderr)
        return 1
    selector = StemSelector()
    indices = selector.select_indices(args.track_id)
    for category, url in selector.select(args.track_id).items():
        print(f"{category:>6} #{indices[category]}: {url}")
    return 0


async def reset_collection() -> int:
    from facetrack.services.aws.rekognition import RekognitionRecognizer

    recognizer = RekognitionRecognizer()
    try:
        await recognizer.reset_collection()
    except ExternalServiceError as e:
        print(f"Failed to reset collection: {e}", file=sys.stderr)
        return 1
    print(f"Collection {recognizer.collection_id} reset")
    return 0


async def init_db() -> int:
    from facetrack.infrastructure.database.session import build_engine, create_tables

    engine = build_engine()
    try:
        await create_tables(engine)
    finally:
        await engine.dispose()
    print("Database tables created")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="facetrack-admin", description="Face track service administration")
    subparsers = parser.add_subparsers(dest="command", required=True)

    track_id = subparsers.add_parser("track-id", help="Derive the track id of a descriptor file")
    track_id.add_argument("descriptor_file", help="JSON file with a descriptor or descriptor scans")
    track_id.add_argument("-v", "--verbose", action="store_true", help="Print the normalized descriptor")

    stems = subparsers.add_parser("stems", help="Show the stems selected for a track id")
    stems.add_argument("track_id", help="Track id")

    subparsers.add_parser("reset-collection", help="Delete and recreate the Rekognition collection")
    subparsers.add_parser("init-db", help="Create the database tables")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level="WARNING")

    if args.command == "track-id":
        return track_id_command(args)
    if args.command == "stems":
        return stems_command(args)
    if args.command == "reset-collection":
        return asyncio.run(reset_collection())
    return asyncio.run(init_db())


if __name__ == "__main__":
    sys.exit(main())
