# Filename: filevault/blobstore.py
"""Content-addressed blob storage for ciphertext.

Backends only promise ``put(bytes) -> cid`` and ``get(cid) -> bytes``. The
in-memory backend stands in for the decentralized network during development,
the local backend keeps one file per cid on disk.
"""
import asyncio
import logging
import random
import secrets
from pathlib import Path
from typing import Dict, Optional, Tuple, Type

import aiofiles
from fastapi import Request

from .config import settings

logger = logging.getLogger(__name__)

CID_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


class BlobStoreError(Exception):
    """Transient failure talking to the storage backend."""


class BlobNotFound(BlobStoreError):
    def __init__(self, cid: str):
        self.cid = cid
        super().__init__(f"No blob stored under {cid}")


class BlobStoreUnavailable(BlobStoreError):
    """Raised once the retry budget is spent."""


def make_cid() -> str:
    return "Qm" + "".join(secrets.choice(CID_ALPHABET) for _ in range(44))


class MemoryBlobStore:
    """Dict-backed mock of the storage network with simulated latency."""

    def __init__(self, latency_ms: int = 0, providers: int = 16):
        self.latency = latency_ms / 1000
        self.providers = providers
        self._blobs: Dict[str, bytes] = {}

    async def _delay(self, factor: float = 1.0):
        if self.latency:
            await asyncio.sleep(self.latency * factor)

    async def put(self, data: bytes) -> str:
        # delay first so a call abandoned on timeout stores nothing
        await self._delay()
        cid = make_cid()
        self._blobs[cid] = bytes(data)
        return cid

    async def get(self, cid: str) -> bytes:
        await self._delay(0.8)
        try:
            return self._blobs[cid]
        except KeyError:
            raise BlobNotFound(cid) from None

    async def discard(self, cid: str) -> None:
        self._blobs.pop(cid, None)

    async def status(self) -> dict:
        await self._delay(0.5)
        return {"status": "Connected", "providers": f"{self.providers} active miners"}


class LocalBlobStore:
    """One file per cid under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, cid: str) -> Path:
        if not cid.startswith("Qm") or not all(c in CID_ALPHABET for c in cid[2:]):
            raise BlobNotFound(cid)
        return self.root / cid

    async def put(self, data: bytes) -> str:
        cid = make_cid()
        try:
            async with aiofiles.open(self._path(cid), "wb") as out_file:
                await out_file.write(data)
        except OSError as e:
            raise BlobStoreError(f"could not write blob: {e}") from e
        return cid

    async def get(self, cid: str) -> bytes:
        path = self._path(cid)
        if not path.exists():
            raise BlobNotFound(cid)
        try:
            async with aiofiles.open(path, "rb") as in_file:
                return await in_file.read()
        except OSError as e:
            raise BlobStoreError(f"could not read blob {cid}: {e}") from e

    async def discard(self, cid: str) -> None:
        try:
            path = self._path(cid)
        except BlobNotFound:
            return
        if path.exists():
            path.unlink()

    async def status(self) -> dict:
        return {"status": "Connected", "providers": "local disk"}


class ResilientBlobStore:
    """Bounds every call with a timeout and retries once with backoff.

    BlobNotFound is final and never retried.
    """

    RETRYABLE_EXCEPTIONS: Tuple[Type[BaseException], ...] = (BlobStoreError, asyncio.TimeoutError, ConnectionError)

    def __init__(self, backend, timeout: float = 10.0, backoff: float = 0.5, max_retries: int = 1):
        self.backend = backend
        self.timeout = timeout
        self.backoff = backoff
        self.max_retries = max_retries

    async def _call(self, op: str, *args):
        fn = getattr(self.backend, op)
        for attempt in range(self.max_retries + 1):
            try:
                return await asyncio.wait_for(fn(*args), timeout=self.timeout)
            except BlobNotFound:
                raise
            except self.RETRYABLE_EXCEPTIONS as e:
                if attempt == self.max_retries:
                    logger.error("Blob store %s failed after %d attempts: %r", op, attempt + 1, e)
                    raise BlobStoreUnavailable(f"blob store {op} failed: {e!r}") from e
                delay = self.backoff * (2 ** attempt) + random.uniform(0, self.backoff / 2)
                logger.warning(
                    "Blob store %s failed (attempt %d/%d), retrying in %.2fs: %r",
                    op, attempt + 1, self.max_retries + 1, delay, e,
                )
                await asyncio.sleep(delay)

    async def put(self, data: bytes) -> str:
        return await self._call("put", data)

    async def get(self, cid: str) -> bytes:
        return await self._call("get", cid)

    async def discard(self, cid: str) -> None:
        await self._call("discard", cid)

    async def status(self) -> dict:
        return await self._call("status")


def build_blob_store(backend: Optional[str] = None) -> ResilientBlobStore:
    backend = backend or settings.blob_backend
    if backend == "local":
        inner = LocalBlobStore(settings.storage_path / "blobs")
    elif backend == "memory":
        inner = MemoryBlobStore(latency_ms=settings.blob_latency_ms)
    else:
        raise ValueError(f"Unknown blob backend: {backend}")
    return ResilientBlobStore(
        inner,
        timeout=settings.blob_timeout_seconds,
        backoff=settings.blob_retry_backoff_seconds,
    )


def get_blob_store(request: Request) -> ResilientBlobStore:
    """FastAPI dependency: the store built at startup."""
    return request.app.state.blob_store
