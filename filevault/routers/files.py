# Filename: filevault/routers/files.py
from fastapi import APIRouter, Depends, HTTPException, status
from typing import List

from ..access import require_access
from ..auth import get_current_user
from ..blobstore import get_blob_store
from ..config import settings
from ..models import File as FileModel, User
from ..repository import VaultRepository, get_repository
from ..schemas import FileCreate, FileOut, FilePayload
from ..utils import get_owned_file
from ..vault import upload_file, fetch_payload, remove_file, is_previewable, ciphertext_limit

router = APIRouter(prefix="/api/files", tags=["files"])


def to_file_out(f: FileModel, owner: str) -> FileOut:
    """Attach the owner's display name at the API boundary."""
    return FileOut(
        id=f.id,
        name=f.name,
        size=f.size,
        mime_type=f.mime_type,
        cid=f.cid,
        owner_id=f.owner_id,
        owner=owner,
        uploaded_at=f.uploaded_at,
        status=f.status,
    )


@router.get("", response_model=List[FileOut])
def list_files(current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return [to_file_out(f, owner) for f, owner in repo.list_user_files(current_user.id)]


# --- Upload ciphertext + register metadata ---
@router.post("", response_model=FileOut, status_code=status.HTTP_201_CREATED)
async def create_file(
    data: FileCreate,
    current_user: User = Depends(get_current_user),
    repo: VaultRepository = Depends(get_repository),
    store=Depends(get_blob_store),
):
    max_bytes = settings.max_upload_size_mb * 1024 * 1024
    if data.size > max_bytes:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File exceeds max_upload_size_mb")
    # the declared size is what gets billed, so the ciphertext must fit it
    if len(data.encrypted_data) > ciphertext_limit(data.size):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Encrypted data is larger than the declared size")

    f = await upload_file(repo, store, current_user.id, data)
    return to_file_out(f, current_user.username)


@router.get("/{file_id}", response_model=FileOut)
def get_file(file_id: int, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    f = require_access(repo, file_id, current_user.id, "read")
    return to_file_out(f, repo.owner_name(f))


@router.get("/{file_id}/download", response_model=FilePayload)
async def download_file(
    file_id: int,
    current_user: User = Depends(get_current_user),
    repo: VaultRepository = Depends(get_repository),
    store=Depends(get_blob_store),
):
    f = require_access(repo, file_id, current_user.id, "download")
    return await fetch_payload(repo, store, f, actor_id=current_user.id)


@router.get("/{file_id}/preview", response_model=FilePayload)
async def preview_file(
    file_id: int,
    current_user: User = Depends(get_current_user),
    repo: VaultRepository = Depends(get_repository),
    store=Depends(get_blob_store),
):
    f = require_access(repo, file_id, current_user.id, "preview")
    # For previews, only images and PDFs
    if not is_previewable(f.mime_type):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File type not supported for preview")
    return await fetch_payload(repo, store, f, actor_id=current_user.id, record=False)


@router.delete("/{file_id}")
def delete_file(file_id: int, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    f = get_owned_file(repo, file_id, current_user.id)
    remove_file(repo, f)
    return {"message": "File deleted successfully"}
