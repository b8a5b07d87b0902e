# roomy/services/file_store.py
from __future__ import annotations

import hashlib
import hmac
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import BinaryIO, Optional
from urllib.parse import quote, urlencode

from ..config import settings
from ..domain.errors import PayloadTooLarge, RuleViolation

log = logging.getLogger("roomy.files")

_SEGMENT = re.compile(r"^[A-Za-z0-9_-]+$")
_UNSAFE_NAME = re.compile(r"[^A-Za-z0-9._-]+")
CHUNK = 64 * 1024


@dataclass(frozen=True)
class StoredFile:
    key: str
    size: int
    name: str
    content_type: Optional[str]


def clean_folder(folder: Optional[str]) -> str:
    parts = [p for p in (folder or "documents").strip("/").split("/") if p]
    if not parts or any(not _SEGMENT.match(p) for p in parts):
        raise RuleViolation(f"invalid folder: {folder!r}")
    return "/".join(parts)


def clean_filename(name: Optional[str]) -> str:
    base = Path(name or "file").name
    safe = _UNSAFE_NAME.sub("_", base).strip("._") or "file"
    return safe[:120]


class LocalFileStore:
    """
    Blob storage on local disk with HMAC-signed, expiring download links.

    Keys look like "<folder>/<uuid>-<filename>" and are the only durable
    reference; URLs are derived from them on demand.
    """

    def __init__(
        self,
        root: str | Path,
        *,
        secret: str,
        ttl_seconds: int,
        public_base_url: str,
        max_bytes: int,
    ) -> None:
        self.root = Path(root).resolve()
        self.secret = secret.encode()
        self.ttl_seconds = ttl_seconds
        self.public_base_url = public_base_url.rstrip("/")
        self.max_bytes = max_bytes

    def path_for(self, key: str) -> Path:
        p = (self.root / key).resolve()
        if self.root not in p.parents:
            raise RuleViolation(f"invalid file key: {key!r}")
        return p

    def save(self, stream: BinaryIO, *, folder: Optional[str], filename: Optional[str], content_type: Optional[str]) -> StoredFile:
        name = clean_filename(filename)
        key = f"{clean_folder(folder)}/{uuid.uuid4().hex}-{name}"
        dest = self.path_for(key)
        dest.parent.mkdir(parents=True, exist_ok=True)

        size = 0
        try:
            with dest.open("wb") as out:
                while True:
                    chunk = stream.read(CHUNK)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.max_bytes:
                        raise PayloadTooLarge(f"file exceeds {self.max_bytes} bytes")
                    out.write(chunk)
        except Exception:
            dest.unlink(missing_ok=True)
            raise

        log.info("stored file", extra={"entity_type": "file", "entity_id": key})
        return StoredFile(key=key, size=size, name=name, content_type=content_type)

    def exists(self, key: str) -> bool:
        return self.path_for(key).is_file()

    def delete(self, key: str) -> bool:
        p = self.path_for(key)
        if not p.is_file():
            return False
        p.unlink()
        return True

    def discard(self, key: Optional[str]) -> None:
        """Drop the blob behind a removed record; keys outside this store are left alone."""
        if not key:
            return
        try:
            removed = self.delete(key)
        except RuleViolation:
            removed = False
        if not removed:
            log.info("no stored blob for %s", key, extra={"entity_type": "file", "entity_id": key})

    def list(self, folder: Optional[str] = None) -> list[str]:
        base = self.root / clean_folder(folder) if folder else self.root
        if not base.is_dir():
            return []
        return sorted(str(p.relative_to(self.root).as_posix()) for p in base.rglob("*") if p.is_file())

    # ---- signing ----

    def _signature(self, key: str, expires: int) -> str:
        msg = f"{key}:{expires}".encode()
        return hmac.new(self.secret, msg, hashlib.sha256).hexdigest()

    def signed_url(self, key: str, *, now: Optional[datetime] = None) -> tuple[str, datetime]:
        now = now or datetime.now(timezone.utc)
        expires_at = now + timedelta(seconds=self.ttl_seconds)
        expires = int(expires_at.timestamp())
        qs = urlencode({"expires": expires, "signature": self._signature(key, expires)})
        return f"{self.public_base_url}/api/files/raw/{quote(key)}?{qs}", expires_at

    def verify(self, key: str, expires: int, signature: str, *, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        if int(expires) < int(now.timestamp()):
            return False
        return hmac.compare_digest(self._signature(key, int(expires)), signature or "")


_store: Optional[LocalFileStore] = None


def get_file_store() -> LocalFileStore:
    global _store
    if _store is None:
        _store = LocalFileStore(
            settings.upload_dir,
            secret=settings.file_signing_secret,
            ttl_seconds=settings.file_url_ttl_seconds,
            public_base_url=settings.public_base_url,
            max_bytes=settings.max_upload_bytes,
        )
    return _store
