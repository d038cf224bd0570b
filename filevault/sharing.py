# Filename: filevault/sharing.py
"""Durable user-to-file grants."""
import logging
from typing import List, Sequence, Tuple, Union

from fastapi import HTTPException, status

from .models import File, FileShare, PERMISSIONS
from .repository import VaultRepository
from .stats import adjust
from .utils import get_owned_file

logger = logging.getLogger(__name__)


def resolve_recipient(repo: VaultRepository, recipient: Union[int, str]):
    """Look a recipient up by numeric id or by email."""
    if isinstance(recipient, int):
        user = repo.get_user(recipient)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient user not found")
    else:
        user = repo.get_user_by_email(recipient)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


def create_grant(repo: VaultRepository, file_id: int, granter_id: int,
                 recipient: Union[int, str], permission: str) -> FileShare:
    """Grant ``recipient`` access to a file owned by ``granter_id``.

    Granting again to the same user updates the permission of the existing
    grant; only the first grant counts towards ``files_shared``.
    """
    if permission not in PERMISSIONS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid permission: {permission}")
    f = get_owned_file(repo, file_id, granter_id)
    user = resolve_recipient(repo, recipient)
    if user.id == f.owner_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot share a file with its owner")

    share = repo.get_share(f.id, user.id)
    if share is not None:
        share.permission = permission
        share = repo.save_share(share)
        logger.info("Updated grant on file %s for user %s to %s", f.id, user.id, permission)
        return share

    share = repo.save_share(FileShare(file_id=f.id, user_id=user.id, permission=permission))
    adjust(repo.session, granter_id, shared=1)
    logger.info("User %s granted %s on file %s to user %s", granter_id, permission, f.id, user.id)
    return share


def revoke_grant(repo: VaultRepository, file_id: int, granter_id: int, user_id: int) -> None:
    f = get_owned_file(repo, file_id, granter_id)
    share = repo.get_share(f.id, user_id)
    if share is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share not found")
    repo.delete_share(share)
    adjust(repo.session, granter_id, shared=-1)
    logger.info("User %s revoked access to file %s from user %s", granter_id, f.id, user_id)


def list_grants(repo: VaultRepository, file_id: int, owner_id: int) -> Sequence[Tuple[FileShare, str]]:
    f = get_owned_file(repo, file_id, owner_id)
    return repo.list_file_shares(f.id)


def list_shared_with(repo: VaultRepository, user_id: int) -> List[Tuple[File, str]]:
    return [(f, owner) for f, owner in repo.list_shared_files(user_id) if f.status != "pending"]
