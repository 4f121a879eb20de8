"""
Helper Utilities Module.

This module provides common utility functions used throughout the
invoice tracker. Functions here should be generic and reusable across
different modules.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - generate_timestamp: Generate formatted timestamps
    - collapse_whitespace: Normalize runs of whitespace
    - parse_iso_date: Lenient ISO date parsing for stored values
"""

import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional, Union


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/reports")
        PosixPath('outputs/reports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the file extension from a filepath.

    Returns the extension in lowercase, including the dot.

    Example:
        >>> get_file_extension("invoice.TXT")
        ".txt"
    """
    return Path(filepath).suffix.lower()


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Example:
        >>> generate_timestamp("%Y-%m-%d")
        "2026-01-21"
    """
    return datetime.now().strftime(format_str)


def collapse_whitespace(text: str) -> str:
    """Replace every run of whitespace with a single space and strip."""
    return re.sub(r'\s+', ' ', text).strip()


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a stored date value into a ``date``.

    Accepts ``date``/``datetime`` objects and ISO strings, including
    timestamps such as ``2024-08-23T00:00:00``.

    Args:
        value: Value to parse.

    Returns:
        Parsed date, or None if the value is empty or malformed.

    Example:
        >>> parse_iso_date("2024-08-23T00:00:00.000Z")
        datetime.date(2024, 8, 23)
        >>> parse_iso_date("not a date") is None
        True
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None

    try:
        return datetime.strptime(str(value).strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        return None
