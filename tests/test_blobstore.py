import asyncio

import pytest

from filevault.blobstore import (
    BlobNotFound, BlobStoreError, BlobStoreUnavailable,
    LocalBlobStore, MemoryBlobStore, ResilientBlobStore, make_cid,
)


class FlakyBackend:
    """Fails the first ``failures`` calls to put/get."""

    def __init__(self, failures, exc=BlobStoreError("network hiccup")):
        self.inner = MemoryBlobStore()
        self.failures = failures
        self.exc = exc
        self.calls = 0

    async def _maybe_fail(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc

    async def put(self, data):
        await self._maybe_fail()
        return await self.inner.put(data)

    async def get(self, cid):
        await self._maybe_fail()
        return await self.inner.get(cid)


class SlowBackend:
    def __init__(self):
        self.calls = 0

    async def put(self, data):
        self.calls += 1
        await asyncio.sleep(1)
        return make_cid()


def test_cid_shape():
    cid = make_cid()
    assert cid.startswith("Qm") and len(cid) == 46
    assert cid != make_cid()


def test_memory_store_round_trip():
    store = MemoryBlobStore()

    async def scenario():
        cid = await store.put(b"ciphertext")
        return await store.get(cid)

    assert asyncio.run(scenario()) == b"ciphertext"


def test_memory_store_unknown_cid():
    with pytest.raises(BlobNotFound):
        asyncio.run(MemoryBlobStore().get("QmDoesNotExist"))


def test_memory_store_status():
    status = asyncio.run(MemoryBlobStore(providers=3).status())
    assert status == {"status": "Connected", "providers": "3 active miners"}


def test_local_store_round_trip(tmp_path):
    store = LocalBlobStore(tmp_path / "blobs")

    async def scenario():
        cid = await store.put(b"\x00\x01payload")
        data = await store.get(cid)
        await store.discard(cid)
        return cid, data

    cid, data = asyncio.run(scenario())
    assert data == b"\x00\x01payload"
    assert not (tmp_path / "blobs" / cid).exists()


def test_local_store_rejects_path_like_cids(tmp_path):
    store = LocalBlobStore(tmp_path / "blobs")
    with pytest.raises(BlobNotFound):
        asyncio.run(store.get("../../etc/passwd"))


def test_single_retry_recovers_transient_failure():
    backend = FlakyBackend(failures=1)
    store = ResilientBlobStore(backend, timeout=1, backoff=0)
    cid = asyncio.run(store.put(b"x"))
    assert cid.startswith("Qm")
    assert backend.calls == 2


def test_gives_up_after_one_retry():
    backend = FlakyBackend(failures=5)
    store = ResilientBlobStore(backend, timeout=1, backoff=0)
    with pytest.raises(BlobStoreUnavailable):
        asyncio.run(store.put(b"x"))
    assert backend.calls == 2


def test_timeout_counts_as_transient():
    backend = SlowBackend()
    store = ResilientBlobStore(backend, timeout=0.05, backoff=0)
    with pytest.raises(BlobStoreUnavailable):
        asyncio.run(store.put(b"x"))
    assert backend.calls == 2


def test_abandoned_put_leaves_no_blob_behind():
    backend = MemoryBlobStore(latency_ms=200)
    store = ResilientBlobStore(backend, timeout=0.05, backoff=0)
    with pytest.raises(BlobStoreUnavailable):
        asyncio.run(store.put(b"x"))
    assert backend._blobs == {}


def test_not_found_is_not_retried():
    backend = FlakyBackend(failures=0)
    store = ResilientBlobStore(backend, timeout=1, backoff=0)
    with pytest.raises(BlobNotFound):
        asyncio.run(store.get("QmMissing"))
    assert backend.calls == 1
