"""
Path checks for serving uploaded documents.
"""
from pathlib import Path


def is_safe_path(base_dir, path, follow_symlinks=True):
    """
    Check that ``path`` stays inside ``base_dir``.

    Args:
        base_dir: directory the path must live under
        path: candidate path
        follow_symlinks: resolve symlinks before comparing

    Returns:
        bool: True when the path does not escape base_dir
    """
    try:
        base_dir = Path(base_dir).resolve()
        path = Path(path).resolve() if follow_symlinks else Path(path).absolute()
        return path.is_relative_to(base_dir)
    except (ValueError, OSError):
        return False


def sanitize_filename(filename):
    """Strip separators and traversal sequences from a filename used in response headers."""
    sanitized = filename or ""
    for char in ("/", "\\", "\0", "..", '"'):
        sanitized = sanitized.replace(char, "_")
    sanitized = sanitized.strip(". ")
    return sanitized or "document"
