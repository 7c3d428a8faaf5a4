# src/codecontext/utils/paths.py
from pathlib import Path
from typing import Optional, Union


class PathTraversalError(ValueError):
    """Raised when a relative path resolves outside of the project root."""


def find_git_root(start: Union[str, Path, None]) -> Optional[Path]:
    """Walks up from `start` until a directory containing `.git` is found."""
    if not start:
        return None
    current = Path(start).resolve()
    if not current.is_dir():
        return None

    for candidate in (current, *current.parents):
        if (candidate / ".git").is_dir():
            return candidate
    return None


def validate_path_within_root(root: Union[str, Path], rel_path: str) -> Path:
    """Resolves `rel_path` against `root`, rejecting '..' escapes and absolute paths."""
    if not rel_path:
        raise ValueError("Path cannot be empty.")

    abs_root = Path(root).resolve()
    resolved = (abs_root / rel_path).resolve()
    try:
        resolved.relative_to(abs_root)
    except ValueError:
        raise PathTraversalError(
            f"Path traversal detected: '{rel_path}' resolves outside root directory. "
            f"Root: {abs_root}, Resolved: {resolved}"
        ) from None
    return resolved
