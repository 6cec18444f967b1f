from __future__ import annotations

from pathlib import Path, PurePosixPath

from ..core.exceptions import StoreError, ValidationError
from .repository import FileStorage


class LocalFileStorage(FileStorage):
    """Bucketed file storage on the local disk, served under ``base_url``."""

    def __init__(self, root: str | Path, base_url: str):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    @staticmethod
    def _safe_parts(bucket: str, path: str) -> tuple[str, ...]:
        if not bucket.strip("/") or not path.strip("/"):
            raise ValidationError("Upload bucket and path are required")
        parts = PurePosixPath(bucket.strip("/"), path.strip("/")).parts
        if any(p in {"", ".", ".."} for p in parts):
            raise ValidationError(f"Invalid upload path: {bucket}/{path}")
        return parts

    def upload(self, bucket: str, path: str, data: bytes) -> str:
        parts = self._safe_parts(bucket, path)
        target = self._root.joinpath(*parts)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise StoreError(f"Upload failed: {e}") from e
        return f"{self._base_url}/{'/'.join(parts)}"

    def delete(self, bucket: str, path: str) -> None:
        target = self._root.joinpath(*self._safe_parts(bucket, path))
        try:
            target.unlink(missing_ok=True)
        except OSError as e:
            raise StoreError(f"Delete failed: {e}") from e
