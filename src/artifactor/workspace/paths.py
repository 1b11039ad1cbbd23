"""Project-relative path normalization."""

from __future__ import annotations


def normalize_path(raw: str) -> str:
    """Return the canonical project-relative form of *raw*.

    Backslashes become slashes, empty and ``.`` segments are dropped, so
    leading ``/`` or ``./`` and doubled slashes disappear.

    Raises:
        ValueError: If the path is empty or contains a ``..`` segment.
    """
    segments = [s for s in raw.strip().replace("\\", "/").split("/") if s not in ("", ".")]
    if ".." in segments:
        raise ValueError(f"Path '{raw}' must not contain '..' segments")
    if not segments:
        raise ValueError("Path must not be empty")
    return "/".join(segments)
