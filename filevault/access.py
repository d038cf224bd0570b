# Filename: filevault/access.py
"""Who may read, preview or download a file.

Read access is owner-or-shared. The permission stored on a grant narrows
what a grantee may do with the file:

    owner, edit, download -> read, preview, download
    view                  -> read, preview
"""
from typing import Optional

from fastapi import HTTPException, status

from .models import File
from .repository import VaultRepository

OPERATIONS = ("read", "preview", "download")

_ALLOWED = {
    "owner": {"read", "preview", "download"},
    "edit": {"read", "preview", "download"},
    "download": {"read", "preview", "download"},
    "view": {"read", "preview"},
}


def has_access(repo: VaultRepository, file_id: int, user_id: int) -> bool:
    """True when ``user_id`` owns the file or holds any grant on it."""
    f = repo.get_file(file_id)
    if f is None:
        return False
    if f.owner_id == user_id:
        return True
    return repo.get_share(file_id, user_id) is not None


def permission_for(repo: VaultRepository, f: File, user_id: int) -> Optional[str]:
    if f.owner_id == user_id:
        return "owner"
    share = repo.get_share(f.id, user_id)
    return share.permission if share else None


def can_perform(permission: Optional[str], operation: str) -> bool:
    if operation not in OPERATIONS:
        raise ValueError(f"unknown operation: {operation}")
    if permission is None:
        return False
    return operation in _ALLOWED.get(permission, set())


def require_access(repo: VaultRepository, file_id: int, user_id: int, operation: str = "read") -> File:
    """Return the file or raise 404 (missing) / 403 (not permitted)."""
    f = repo.get_file(file_id)
    if f is None or f.status == "pending":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    if not can_perform(permission_for(repo, f, user_id), operation):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return f
