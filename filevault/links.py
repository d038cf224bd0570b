# Filename: filevault/links.py
"""Expiring bearer links to a single file.

Links stay valid for seven days and may be redeemed any number of times
until then. Every redemption checks expiry and, when the link carries one,
the password. Redeeming grants view access to that one file only; no session
is created.
"""
import logging
import secrets
from datetime import timedelta
from typing import Optional, Tuple

from fastapi import HTTPException, status

from .auth import get_password_hash, verify_password
from .config import settings
from .models import File, ShareLink, utcnow
from .repository import VaultRepository
from .utils import ensure_owner, get_owned_file

logger = logging.getLogger(__name__)

SHARE_LINK_TTL = timedelta(days=7)
TOKEN_BYTES = 16


def make_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def link_url(token: str) -> str:
    return f"{settings.public_base_url.rstrip('/')}/shared/{token}"


def issue_link(repo: VaultRepository, file_id: int, owner_id: int,
               requires_password: bool, password: Optional[str] = None) -> Tuple[ShareLink, str]:
    f = get_owned_file(repo, file_id, owner_id)
    if requires_password and not password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A password is required for this link")

    link = ShareLink(
        file_id=f.id,
        token=make_token(),
        requires_password=requires_password,
        password_hash=get_password_hash(password) if requires_password else None,
        created_by=owner_id,
        expires_at=utcnow() + SHARE_LINK_TTL,
    )
    link = repo.create_share_link(link)
    logger.info("Issued share link for file %s (password=%s)", f.id, requires_password)
    return link, link_url(link.token)


def is_expired(link: ShareLink) -> bool:
    return link.expires_at is not None and link.expires_at <= utcnow()


def resolve_link(repo: VaultRepository, token: str) -> Tuple[ShareLink, File]:
    """Return a live link and its file, or raise 404."""
    link = repo.get_share_link(token)
    if link is None or is_expired(link):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found or expired")
    f = repo.get_file(link.file_id)
    if f is None or f.status == "pending":
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")
    return link, f


def check_link_password(link: ShareLink, password: Optional[str]) -> None:
    if not link.requires_password:
        return
    if not password or not link.password_hash or not verify_password(password, link.password_hash):
        logger.warning("Rejected share link redemption for file %s: bad password", link.file_id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid link password")


def redeem_link(repo: VaultRepository, token: str, password: Optional[str] = None) -> File:
    link, f = resolve_link(repo, token)
    check_link_password(link, password)
    return f


def revoke_link(repo: VaultRepository, token: str, owner_id: int) -> None:
    link = repo.get_share_link(token)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Share link not found")
    f = repo.get_file(link.file_id)
    ensure_owner(f.owner_id if f else link.created_by, owner_id)
    repo.delete_share_link(link)
    logger.info("Revoked share link for file %s", link.file_id)
