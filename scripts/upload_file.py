#!/usr/bin/env python3
"""
Upload a local file to Selectel Cloud Storage and verify it.

Credentials come from SELECTEL_* variables (see .env).

Examples:
  python scripts/upload_file.py report.pdf
  python scripts/upload_file.py photo.jpg --path images/2026/photo.jpg --content-type image/jpeg
  python scripts/upload_file.py data.json --header Cache-Control:no-cache -v
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv
from loguru import logger

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from cloud_storage import CloudStorageError, get_session_manager


def configure_logging(verbose: bool = False) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        format="{time:HH:mm:ss} | {level:<8} | {message}",
        level="DEBUG" if verbose else "INFO",
    )


def _parse_headers(pairs: Optional[List[str]]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for kv in pairs or []:
        name, sep, value = kv.partition(":")
        if not sep or not name.strip():
            raise argparse.ArgumentTypeError(f"Bad header {kv!r}, expected NAME:VALUE")
        headers[name.strip()] = value.strip()
    return headers


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="upload_file", description="Upload a file to Selectel Cloud Storage")
    parser.add_argument("file", type=Path, help="local file to upload")
    parser.add_argument("--path", help="object path inside the container (default: file name)")
    parser.add_argument("--header", action="append", metavar="NAME:VALUE", help="extra PUT header (repeatable)")
    parser.add_argument("--content-type", help="Content-Type of the object")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        headers = _parse_headers(args.header)
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    if args.content_type:
        headers["Content-Type"] = args.content_type

    if not args.file.is_file():
        logger.error(f"File not found: {args.file}")
        return 1

    relative_path = args.path or args.file.name
    try:
        manager = get_session_manager(dotenv=False)
        url = manager.upload(args.file.read_bytes(), relative_path, headers)
    except CloudStorageError as e:
        logger.error(f"Upload failed: {e}")
        return 1

    print(url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
