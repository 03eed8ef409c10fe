"""Solid-colour PNGs used as upload fixtures by the photo product flows."""

from __future__ import annotations

import colorsys
import os
from pathlib import Path

from PIL import Image

from shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_IMAGE_COUNT = 21
DEFAULT_IMAGE_SIZE = 500


def default_images_dir() -> Path:
    return Path(os.getenv("TEST_IMAGES_DIR", "data/test-images"))


def ensure_fixture_images(
    directory: str | Path | None = None,
    count: int = DEFAULT_IMAGE_COUNT,
    size: int = DEFAULT_IMAGE_SIZE,
) -> list[Path]:
    """Return `count` PNG paths, creating any that are missing."""
    target = Path(directory) if directory is not None else default_images_dir()
    target.mkdir(parents=True, exist_ok=True)

    paths: list[Path] = []
    created = 0
    for i in range(count):
        path = target / f"test-image-{i + 1:02d}.png"
        if not path.exists():
            r, g, b = colorsys.hsv_to_rgb(i / count, 0.6, 0.9)
            Image.new("RGB", (size, size), (int(r * 255), int(g * 255), int(b * 255))).save(path)
            created += 1
        paths.append(path)

    if created:
        logger.info("fixture_images_created", directory=str(target), created=created)
    return paths
