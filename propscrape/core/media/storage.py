# propscrape/core/media/storage.py
"""
Durable image storage.

The pipeline only depends on the `ImageStorage` protocol: a record-scoped
namespace is prepared once, then each image is written under a distinct
filename and a stable public reference is returned. `LocalImageStorage`
serves files from a public web root; any object-store backend satisfying
the same protocol can be injected instead.
"""

from __future__ import annotations

import asyncio
import re
import tempfile
from pathlib import Path
from typing import Protocol, runtime_checkable

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


@runtime_checkable
class ImageStorage(Protocol):
    def ensure_namespace(self, namespace: str) -> None: ...

    async def write(self, namespace: str, filename: str, data: bytes, content_type: str | None) -> str: ...


def safe_segment(value: str) -> str:
    """Reduce `value` to a single path segment that cannot escape its parent."""
    seg = _UNSAFE.sub("_", value).strip("._")
    if not seg:
        raise ValueError(f"unusable storage path segment: {value!r}")
    return seg


class LocalImageStorage:
    """Writes `<root>/<namespace>/<filename>` and returns `<prefix>/<namespace>/<filename>`."""

    def __init__(self, root: Path, public_prefix: str = "/uploads/properties") -> None:
        self.root = Path(root)
        self.public_prefix = public_prefix.rstrip("/")

    def namespace_dir(self, namespace: str) -> Path:
        return self.root / safe_segment(namespace)

    def ensure_namespace(self, namespace: str) -> None:
        self.namespace_dir(namespace).mkdir(parents=True, exist_ok=True)

    async def write(self, namespace: str, filename: str, data: bytes, content_type: str | None) -> str:
        ns = safe_segment(namespace)
        name = safe_segment(filename)
        # blocking disk I/O runs in a worker thread
        await asyncio.to_thread(_write_atomic, self.root / ns, name, data)
        return f"{self.public_prefix}/{ns}/{name}"


def _write_atomic(target_dir: Path, name: str, data: bytes) -> None:
    """Temp file + replace; the temp file never outlives a failed write."""
    with tempfile.NamedTemporaryFile(prefix="img_", suffix=".part", delete=False, dir=str(target_dir)) as tf:
        tmp_path = Path(tf.name)
        try:
            tf.write(data)
        except BaseException:
            tf.close()
            tmp_path.unlink(missing_ok=True)
            raise
    try:
        tmp_path.replace(target_dir / name)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
