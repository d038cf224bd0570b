# Filename: filevault/vault.py
"""Upload, retrieval and deletion of encrypted files.

An upload writes the file row first in a ``pending`` state and only marks it
``encrypted`` once the blob store has accepted the ciphertext, so a failed
store never leaves a row pointing at nothing and a failed confirm never
leaves an unreferenced blob behind.
"""
import logging
import secrets
import time
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from .blobstore import BlobNotFound, BlobStoreError
from .models import File, Transaction
from .repository import VaultRepository
from .schemas import FileCreate, FilePayload
from .stats import adjust

logger = logging.getLogger(__name__)

PREVIEWABLE_PDF = "application/pdf"
# OpenSSL "Salted__" header plus up to one block of AES padding
CIPHER_OVERHEAD = 32


def make_tx_id() -> str:
    return f"tx_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


def is_previewable(mime_type: str) -> bool:
    return mime_type.startswith("image/") or mime_type == PREVIEWABLE_PDF


def ciphertext_limit(size: int) -> int:
    """Longest base64 ciphertext an encrypted file of ``size`` bytes can produce."""
    return 4 * ((size + CIPHER_OVERHEAD + 2) // 3)


async def upload_file(repo: VaultRepository, store, owner_id: int, data: FileCreate) -> File:
    f = repo.create_pending_file(owner_id, data.name, data.size, data.mime_type)
    file_id = f.id

    try:
        cid = await store.put(data.encrypted_data.encode("utf-8"))
    except BlobStoreError:
        logger.exception("Storing ciphertext for file %s failed, dropping pending row", file_id)
        repo.delete_file(file_id)
        raise

    try:
        f = repo.confirm_file(f, cid, data.encryption_key)
    except SQLAlchemyError:
        logger.exception("Confirming upload of file %s failed, discarding blob %s", file_id, cid)
        repo.rollback()
        try:
            await store.discard(cid)
        finally:
            repo.delete_file(file_id)
        raise

    adjust(repo.session, owner_id, uploaded=1, storage_bytes=data.size)
    repo.log_transaction(Transaction(
        tx_id=make_tx_id(),
        cid=cid,
        file_id=f.id,
        actor_id=owner_id,
        type="store",
        status="confirmed",
        details={"fileSize": data.size},
    ))
    logger.info("User %s uploaded file %s (%d bytes) as %s", owner_id, f.id, data.size, cid)
    return f


async def fetch_payload(repo: VaultRepository, store, f: File, actor_id: Optional[int] = None,
                        record: bool = True) -> FilePayload:
    """Read ciphertext and key for ``f``.

    With ``record`` set the retrieval counts as a download of the owner's file
    and lands in the audit log.
    """
    key = repo.get_encryption_key(f.id)
    if key is None or f.cid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File content missing")
    try:
        blob = await store.get(f.cid)
    except BlobNotFound:
        logger.error("Blob %s for file %s is missing from the store", f.cid, f.id)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File content missing")

    if record:
        adjust(repo.session, f.owner_id, downloads=1)
        repo.log_transaction(Transaction(
            tx_id=make_tx_id(),
            cid=f.cid,
            file_id=f.id,
            actor_id=actor_id,
            type="retrieve",
            status="confirmed",
            details={},
        ))

    return FilePayload(
        encrypted_data=blob.decode("utf-8"),
        encryption_key=key,
        name=f.name,
        mime_type=f.mime_type,
    )


def remove_file(repo: VaultRepository, f: File) -> None:
    """Delete ``f`` and everything hanging off it except its transactions.

    Grants removed along with the file count against ``files_shared`` the same
    way an explicit revoke does.
    """
    file_id, owner_id, size = f.id, f.owner_id, f.size
    grants = len(repo.list_file_shares(file_id))
    repo.delete_file(file_id)
    adjust(repo.session, owner_id, uploaded=-1, storage_bytes=-size, shared=-grants)
    logger.info("User %s deleted file %s along with %d grants", owner_id, file_id, grants)
