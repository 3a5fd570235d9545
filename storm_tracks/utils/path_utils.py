"""
Path utilities for the storm track report.

This module provides shared functions for managing output paths
and file names consistently across the project.
"""

from datetime import datetime
from pathlib import Path
from typing import Union
from .config_utils import get_project_root


def ensure_directory(path: Union[str, Path], create_parents: bool = True) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path
        create_parents: Whether to create parent directories

    Returns:
        Path object for the directory
    """
    path_obj = Path(path)
    path_obj.mkdir(parents=create_parents, exist_ok=True)
    return path_obj


def resolve_project_path(path: Union[str, Path]) -> Path:
    """Resolve a path relative to the project root; absolute paths are kept."""
    path_obj = Path(path)
    if path_obj.is_absolute():
        return path_obj
    return get_project_root() / path_obj


def get_results_path(relative_path: Union[str, Path], create: bool = True) -> Path:
    """
    Get an output directory for figures and reports.

    Args:
        relative_path: Directory relative to the project root, or absolute
        create: Whether to create the directory if it doesn't exist

    Returns:
        Full path to the results location
    """
    results_path = resolve_project_path(relative_path)
    if create:
        ensure_directory(results_path)
    return results_path


def sanitize_filename(filename: str) -> str:
    """
    Sanitize a filename by removing/replacing invalid characters.

    Args:
        filename: Original filename

    Returns:
        Sanitized filename
    """
    invalid_chars = '<>:"/\\|?* '
    for char in invalid_chars:
        filename = filename.replace(char, "_")

    return filename.strip(" ._")


def create_output_filename(
    base_name: str, suffix: str = "", extension: str = ".png", timestamp: bool = False
) -> str:
    """
    Create a standardized output filename.

    Args:
        base_name: Base name for the file
        suffix: Optional suffix to add
        extension: File extension (with or without dot)
        timestamp: Whether to add timestamp

    Returns:
        Formatted filename
    """
    if not extension.startswith("."):
        extension = f".{extension}"

    parts = [base_name]
    if suffix:
        parts.append(suffix)
    if timestamp:
        parts.append(datetime.now().strftime("%Y%m%d_%H%M%S"))

    return sanitize_filename("_".join(parts)) + extension
