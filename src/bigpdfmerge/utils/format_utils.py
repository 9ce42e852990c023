"""
BigPdfMerge - Format Utilities Module

Shared helpers that turn sizes, page references and positions into
display strings for logs, error messages and the CLI.
"""

from bigpdfmerge.utils.i18n import _


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Formatted size string (e.g., "1.5 MB")
    """
    if size_bytes <= 0:
        return "0 B"

    units = ["B", "KB", "MB", "GB", "TB"]

    size = float(size_bytes)
    unit_index = 0

    while size >= 1024 and unit_index < len(units) - 1:
        size /= 1024
        unit_index += 1

    if unit_index == 0 or size >= 100:
        return f"{int(size)} {units[unit_index]}"
    if size >= 10:
        return f"{size:.1f} {units[unit_index]}"
    return f"{size:.2f} {units[unit_index]}"


def format_page_label(filename: str, page_number: int, page_count: int) -> str:
    """Describe one page of a source document, e.g. ``report.pdf p.3/7``."""
    return _("{name} p.{page}/{total}").format(name=filename, page=page_number, total=page_count)


def format_counter(index: int | None, total: int) -> str:
    """Format a 0-based position as ``"3 / 10"``; empty when nothing is selected."""
    if index is None or total <= 0:
        return ""
    return f"{index + 1} / {total}"
