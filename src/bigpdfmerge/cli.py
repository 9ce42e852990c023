#!/usr/bin/env python3
"""
BigPdfMerge CLI - combine pages of several PDFs from the terminal.

Usage:
    bigpdfmerge FILE... [options]

Page positions are 1-based positions in the collection right after
import (all pages of the first file, then all pages of the second, ...).
Edits are applied in this order: delete, rotate, order.

Examples:
    # Merge two files
    bigpdfmerge a.pdf b.pdf -o merged.pdf

    # Put page 5 first, drop page 2, turn page 3 clockwise
    bigpdfmerge a.pdf b.pdf --order 5 --delete 2 --rotate 3:90

    # Inspect the collection and write thumbnails
    bigpdfmerge a.pdf b.pdf --list --thumbnails thumbs/
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from bigpdfmerge.config import (
    APP_DESCRIPTION,
    APP_NAME,
    APP_VERSION,
    DEFAULT_OUTPUT_NAME,
    MergeSettings,
)
from bigpdfmerge.constants import ROTATION_STEP, THUMBNAIL_SCALE
from bigpdfmerge.utils.exceptions import BigPdfMergeError
from bigpdfmerge.utils.format_utils import format_file_size
from bigpdfmerge.utils.i18n import _
from bigpdfmerge.utils.logger import set_log_level

# ---------------------------------------------------------------------------
# Page list parsers (shared)
# ---------------------------------------------------------------------------


def _parse_page_list(text: str) -> list[int]:
    """Parse a page specification string into a list of page numbers.

    Supports: "3", "1-5", "1,3,7", "1-3,7,10-12". Order is kept and
    duplicates are dropped.

    Args:
        text: Page specification string.

    Returns:
        List of 1-indexed page numbers in the given order.
    """
    pages: list[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            if "-" in part:
                start_s, end_s = part.split("-", 1)
                s, e = int(start_s.strip()), int(end_s.strip())
                numbers = range(s, e + 1)
            else:
                numbers = [int(part)]
        except ValueError:
            raise ValueError(
                f"Invalid page specification '{part}'. "
                "Use numbers and ranges like '1-5' or '1,3,7'."
            ) from None
        for n in numbers:
            if n >= 1 and n not in pages:
                pages.append(n)
    return pages


def _parse_rotation(text: str) -> tuple[int, int]:
    """Parse a ``PAGE:DEGREES`` rotation such as ``3:90`` or ``2:-90``."""
    try:
        page_s, degrees_s = text.split(":", 1)
        page, degrees = int(page_s.strip()), int(degrees_s.strip())
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"Invalid rotation '{text}'. Use PAGE:DEGREES, e.g. '3:90'."
        ) from None
    if page < 1 or degrees % ROTATION_STEP:
        raise argparse.ArgumentTypeError(
            f"Invalid rotation '{text}'. Pages start at 1 and degrees are multiples of 90."
        )
    return page, degrees


# ---------------------------------------------------------------------------
# Argument parser construction
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(
        prog="bigpdfmerge",
        description=_(APP_DESCRIPTION),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("inputs", nargs="*", type=Path, help=_("PDF files to import, in order"))
    p.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(DEFAULT_OUTPUT_NAME),
        help=_("Output PDF file or directory (default: merged.pdf)"),
    )
    p.add_argument(
        "--order",
        type=str,
        default=None,
        help=_("Pages to put first, in this order (e.g. '5,1-3'). Others follow."),
    )
    p.add_argument(
        "--delete",
        type=str,
        default=None,
        help=_("Pages to discard (e.g. '2,7-9')."),
    )
    p.add_argument(
        "--rotate",
        type=_parse_rotation,
        action="append",
        default=[],
        metavar="PAGE:DEGREES",
        help=_("Rotate a page clockwise (negative = counter-clockwise). Repeatable."),
    )
    p.add_argument(
        "--thumbnails",
        type=Path,
        default=None,
        metavar="DIR",
        help=_("Write a PNG thumbnail of every page to DIR."),
    )
    p.add_argument(
        "--thumbnail-scale",
        type=float,
        default=THUMBNAIL_SCALE,
        help=_("Thumbnail scale relative to 72 dpi (default: %(default)s)."),
    )
    p.add_argument("--list", action="store_true", help=_("Print the final page list."))
    p.add_argument("--dry-run", action="store_true", help=_("Do not write the output PDF."))
    p.add_argument("-v", "--verbose", action="store_true", help=_("Verbose logging (DEBUG)"))
    p.add_argument("--version", action="store_true", help=_("Print version information and exit"))
    return p


# ---------------------------------------------------------------------------
# Command handling
# ---------------------------------------------------------------------------


def _ids_for(positions: list[int], ids: list[int]) -> list[int]:
    """Map 1-based import positions to page ids."""
    out = []
    for pos in positions:
        if pos > len(ids):
            raise ValueError(f"Page {pos} does not exist (only {len(ids)} pages imported)")
        out.append(ids[pos - 1])
    return out


def _apply_edits(session, args) -> None:
    """Apply --delete, --rotate and --order to the session's collection."""
    collection = session.collection
    ids = collection.ids()

    if args.delete:
        for page_id in _ids_for(_parse_page_list(args.delete), ids):
            session.remove(page_id)

    for position, degrees in args.rotate:
        (page_id,) = _ids_for([position], ids)
        if collection.get(page_id) is None:
            raise ValueError(f"Page {position} was deleted and cannot be rotated")
        session.rotate(page_id, degrees)

    if args.order:
        wanted = [pid for pid in _ids_for(_parse_page_list(args.order), ids) if collection.get(pid)]
        for target, page_id in enumerate(wanted):
            session.move(collection.index_of(page_id), target)


def _print_collection(collection) -> None:
    for position, record in enumerate(collection, 1):
        rotation = f"  ↻{record.rotation}°" if record.rotation else ""
        print(f"{position:4d}. [id {record.id}] {record.label}{rotation}")


def _write_thumbnails(collection, directory: Path) -> int:
    directory.mkdir(parents=True, exist_ok=True)
    written = 0
    for position, record in enumerate(collection, 1):
        if record.thumbnail is None:
            print(f"Warning: no thumbnail for {record.label}", file=sys.stderr)
            continue
        name = f"{position:03d}_{Path(record.filename).stem}_p{record.page_number}.png"
        record.thumbnail.save(directory / name, format="PNG")
        written += 1
    return written


async def _run(args, logger) -> int:
    from bigpdfmerge.services.merge_session import MergeSession

    settings = MergeSettings(thumbnail_scale=args.thumbnail_scale)
    async with MergeSession(settings) as session:
        report = await session.import_paths(args.inputs)
        for name in report.skipped:
            print(f"Skipped {name}: not a PDF file", file=sys.stderr)
        for failure in report.failures:
            print(f"Error: {failure}", file=sys.stderr)
        if not report.ok:
            return 1

        _apply_edits(session, args)

        if args.thumbnails:
            await session.wait_for_thumbnails()
            count = _write_thumbnails(session.collection, args.thumbnails)
            logger.info(f"Wrote {count} thumbnail(s) to {args.thumbnails}")

        if args.list:
            _print_collection(session.collection)

        if args.dry_run:
            return 0

        result = await session.export()
        path = session.exporter.save(result.data, args.output, result.filename)
        print(
            f"Merged: {result.page_count} pages from {result.sources_opened} file(s) "
            f"→ {path} ({format_file_size(result.size)})"
        )
    return 0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"{APP_NAME} {APP_VERSION}")
        return 0

    if not args.inputs:
        parser.print_help()
        return 0

    if args.verbose:
        set_log_level(logging.DEBUG)
    logger = logging.getLogger("bigpdfmerge.cli")

    for p in args.inputs:
        if not p.exists():
            print(f"Error: {p} not found", file=sys.stderr)
            return 1

    try:
        return asyncio.run(_run(args, logger))
    except (BigPdfMergeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
