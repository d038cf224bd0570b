# Filename: filevault/routers/sharing.py
from fastapi import APIRouter, Depends, Response, status
from typing import List, Optional

from ..auth import get_current_user
from ..blobstore import get_blob_store
from ..links import issue_link, resolve_link, redeem_link, revoke_link, link_url, is_expired
from ..models import User
from ..repository import VaultRepository, get_repository
from ..schemas import (
    FileOut, FilePayload, FileShareOut, GrantOut,
    ShareByEmail, ShareById, ShareLinkCreate, ShareLinkOut, ShareLinkInfo, RedeemRequest,
)
from ..sharing import create_grant, revoke_grant, list_grants, list_shared_with
from ..utils import get_owned_file
from ..vault import fetch_payload
from .files import to_file_out

# Mounted ahead of the files router so /api/files/shared is not read as a file id
router = APIRouter(prefix="/api/files", tags=["sharing"])
links_router = APIRouter(prefix="/api/share-links", tags=["sharing"])


@router.get("/shared", response_model=List[FileOut])
def shared_with_me(current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return [to_file_out(f, owner) for f, owner in list_shared_with(repo, current_user.id)]


@router.post("/share", response_model=FileShareOut, status_code=status.HTTP_201_CREATED)
def share_by_email(data: ShareByEmail, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return create_grant(repo, data.file_id, current_user.id, str(data.email), data.permission)


@router.post("/share-by-id", response_model=FileShareOut, status_code=status.HTTP_201_CREATED)
def share_by_id(data: ShareById, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return create_grant(repo, data.file_id, current_user.id, data.recipient_id, data.permission)


@router.post("/share-link", response_model=ShareLinkOut, status_code=status.HTTP_201_CREATED)
def create_share_link(data: ShareLinkCreate, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    link, url = issue_link(repo, data.file_id, current_user.id, data.requires_password, data.password)
    return ShareLinkOut(share_link=url, token=link.token, expires_at=link.expires_at)


@router.get("/{file_id}/shares", response_model=List[GrantOut])
def file_grants(file_id: int, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return [
        GrantOut(
            id=share.id,
            file_id=share.file_id,
            user_id=share.user_id,
            permission=share.permission,
            created_at=share.created_at,
            username=username,
        )
        for share, username in list_grants(repo, file_id, current_user.id)
    ]


@router.delete("/{file_id}/shares/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def unshare(file_id: int, user_id: int, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    revoke_grant(repo, file_id, current_user.id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{file_id}/share-links", response_model=List[ShareLinkOut])
def file_share_links(file_id: int, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    f = get_owned_file(repo, file_id, current_user.id)
    return [
        ShareLinkOut(share_link=link_url(link.token), token=link.token, expires_at=link.expires_at)
        for link in repo.list_share_links(f.id)
        if not is_expired(link)
    ]


# --- Bearer link endpoints (no account needed) ---
@links_router.get("/{token}", response_model=ShareLinkInfo)
def share_link_info(token: str, repo: VaultRepository = Depends(get_repository)):
    link, f = resolve_link(repo, token)
    return ShareLinkInfo(
        file_name=f.name,
        size=f.size,
        mime_type=f.mime_type,
        owner=repo.owner_name(f),
        requires_password=link.requires_password,
        expires_at=link.expires_at,
    )


@links_router.post("/{token}/redeem", response_model=FilePayload)
async def redeem_share_link(
    token: str,
    data: Optional[RedeemRequest] = None,
    repo: VaultRepository = Depends(get_repository),
    store=Depends(get_blob_store),
):
    f = redeem_link(repo, token, data.password if data else None)
    return await fetch_payload(repo, store, f)


@links_router.delete("/{token}", status_code=status.HTTP_204_NO_CONTENT)
def delete_share_link(token: str, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    revoke_link(repo, token, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
