# Filename: filevault/utils.py
from fastapi import HTTPException, status

from .models import File
from .repository import VaultRepository


def ensure_owner(resource_owner_id: int, user_id: int) -> None:
    if resource_owner_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


def get_owned_file(repo: VaultRepository, file_id: int, user_id: int) -> File:
    f = repo.get_file(file_id)
    if f is None or f.status == "pending":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    ensure_owner(f.owner_id, user_id)
    return f
