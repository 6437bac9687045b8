"""Static gallery directory listing."""

from __future__ import annotations

from pathlib import Path

GALLERY_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg"})
GALLERY_URL_PREFIX = "assets/images/gallery"


def gallery_images(directory: Path | str) -> list[str]:
    """Relative URLs of the image files in ``directory``; empty if it is missing."""
    path = Path(directory)
    if not path.is_dir():
        return []
    return [
        f"{GALLERY_URL_PREFIX}/{entry.name}"
        for entry in sorted(path.iterdir())
        if entry.is_file() and entry.suffix.lower() in GALLERY_EXTENSIONS
    ]
