"""Concurrent compression of discovered images."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable, List, Optional

from .logging import get_logger
from .models import CompressionResult
from .optimizer import ImageOptimizer, PillowOptimizer


class CompressionEngine:
    """Fans compression out over a thread pool, one failure domain per file."""

    def __init__(
        self,
        optimizer: ImageOptimizer | None = None,
        *,
        max_workers: Optional[int] = None,
    ) -> None:
        self.optimizer = optimizer or PillowOptimizer()
        self.max_workers = max_workers
        self.logger = get_logger("compression")
        self._lock = threading.Lock()

    def compress(
        self,
        root: Path,
        paths: Iterable[Path],
        *,
        aggressive: bool = False,
    ) -> List[CompressionResult]:
        """Compress ``paths`` and return results for files that shrank, sorted by path."""
        root_path = Path(root)
        candidates = list(paths)
        results: List[CompressionResult] = []
        if not candidates:
            return results

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [
                executor.submit(self._compress_one, root_path, path, aggressive, results)
                for path in candidates
            ]
        for future in futures:
            future.result()

        self.logger.info("Compressed %d of %d images", len(results), len(candidates))
        return sorted(results, key=lambda result: result.path)

    def _compress_one(
        self,
        root: Path,
        path: Path,
        aggressive: bool,
        results: List[CompressionResult],
    ) -> None:
        rel_path = _relative(root, path)
        try:
            size_before = path.stat().st_size
            shrank = self.optimizer.compress(path, aggressive=aggressive)
            size_after = path.stat().st_size
        except Exception as exc:
            self.logger.error("Compression issue with %s: %s", rel_path, exc)
            return

        if not shrank or size_after >= size_before:
            self.logger.debug("No savings for %s", rel_path)
            return

        result = CompressionResult(
            path=rel_path,
            original_path=path,
            size_before=size_before,
            size_after=size_after,
        )
        with self._lock:
            results.append(result)


def _relative(root: Path, path: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return path.as_posix()


__all__ = ["CompressionEngine"]
