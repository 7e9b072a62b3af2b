"""Tests for squeezebot.optimizer."""

from __future__ import annotations

import pytest
from PIL import Image

from squeezebot.optimizer import PillowOptimizer


def test_lossless_png_compression_preserves_pixels(repo_builder) -> None:
    path = repo_builder.write_png("logo.png", color=(10, 120, 240))
    before = path.stat().st_size

    assert PillowOptimizer().compress(path, aggressive=False) is True

    assert path.stat().st_size < before
    with Image.open(path) as image:
        assert image.format == "PNG"
        assert image.size == (64, 64)
        assert image.convert("RGB").getpixel((5, 5)) == (10, 120, 240)


def test_second_pass_reports_no_savings(repo_builder) -> None:
    path = repo_builder.write_png("logo.png")
    optimizer = PillowOptimizer()
    optimizer.compress(path, aggressive=False)
    optimized = path.read_bytes()

    assert optimizer.compress(path, aggressive=False) is False
    assert path.read_bytes() == optimized


def test_aggressive_jpeg_compression_shrinks_high_quality_source(repo_builder) -> None:
    path = repo_builder.path() / "photo.jpg"
    image = Image.new("RGB", (128, 128))
    image.putdata([((x * 7) % 256, (y * 3) % 256, (x * y) % 256) for y in range(128) for x in range(128)])
    image.save(path, format="JPEG", quality=100, subsampling=0)
    before = path.stat().st_size

    assert PillowOptimizer(jpeg_quality=60).compress(path, aggressive=True) is True

    assert path.stat().st_size < before
    with Image.open(path) as reopened:
        assert reopened.format == "JPEG"


def test_unsupported_formats_are_left_untouched(repo_builder) -> None:
    path = repo_builder.path() / "bitmap.png"
    Image.new("RGB", (8, 8), (1, 2, 3)).save(path, format="BMP")
    data = path.read_bytes()

    assert PillowOptimizer().compress(path, aggressive=True) is False
    assert path.read_bytes() == data


def test_undecodable_files_raise(repo_builder) -> None:
    path = repo_builder.write_bytes("broken.png", b"garbage")

    with pytest.raises(OSError):
        PillowOptimizer().compress(path, aggressive=False)
