"""Image optimizer adapters.

The compression engine treats the optimizer as a black box: ``compress``
rewrites the file in place only when it found a strictly smaller encoding and
reports whether it did.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

from PIL import Image


class ImageOptimizer(Protocol):
    def compress(self, path: Path, *, aggressive: bool) -> bool: ...


class PillowOptimizer:
    """Re-encodes images with Pillow's optimizing encoders."""

    def __init__(self, *, jpeg_quality: int = 80, webp_quality: int = 80) -> None:
        self.jpeg_quality = jpeg_quality
        self.webp_quality = webp_quality

    def compress(self, path: Path, *, aggressive: bool) -> bool:
        original = Path(path).read_bytes()
        with Image.open(io.BytesIO(original)) as image:
            image_format = image.format
            options = self._save_options(image, aggressive)
            if options is None:
                return False
            buffer = io.BytesIO()
            image.save(buffer, format=image_format, **options)

        candidate = buffer.getvalue()
        if len(candidate) >= len(original):
            return False
        Path(path).write_bytes(candidate)
        return True

    def _save_options(self, image: Image.Image, aggressive: bool) -> Optional[Dict[str, Any]]:
        image_format = image.format
        options: Dict[str, Any] = {}
        icc_profile = image.info.get("icc_profile")
        if icc_profile:
            options["icc_profile"] = icc_profile

        if image_format == "PNG":
            options.update(optimize=True, compress_level=9)
            return options

        if image_format == "JPEG":
            exif = image.info.get("exif")
            if exif:
                options["exif"] = exif
            if aggressive:
                options.update(quality=self.jpeg_quality, optimize=True, progressive=True)
            else:
                options.update(quality="keep", subsampling="keep", optimize=True)
            return options

        if image_format == "GIF":
            options.update(optimize=True, save_all=bool(getattr(image, "is_animated", False)))
            return options

        if image_format == "WEBP":
            if getattr(image, "is_animated", False):
                return None
            if aggressive:
                options.update(quality=self.webp_quality, method=6)
            else:
                options.update(lossless=True, quality=100, method=6)
            return options

        # Unsupported formats are left untouched.
        return None


__all__ = ["ImageOptimizer", "PillowOptimizer"]
