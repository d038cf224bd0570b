# Filename: filevault/repository.py
"""Persistence operations over a SQLModel session.

Routes and services receive a ``VaultRepository`` through ``get_repository``
instead of touching a global store.
"""
from typing import List, Optional, Sequence, Tuple

from fastapi import Depends
from sqlalchemy import delete, exists, or_
from sqlmodel import Session, select

from .db import get_session
from .models import User, File, FileKey, FileShare, ShareLink, Transaction


class VaultRepository:
    def __init__(self, session: Session):
        self.session = session

    # --- users ---
    def get_user(self, user_id: int) -> Optional[User]:
        return self.session.get(User, user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.email == email.lower())).first()

    def find_user_conflict(self, username: str, email: str) -> Optional[User]:
        stmt = select(User).where((User.username == username) | (User.email == email.lower()))
        return self.session.exec(stmt).first()

    def create_user(self, username: str, email: str, hashed_password: str) -> User:
        user = User(username=username, email=email.lower(), hashed_password=hashed_password)
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    # --- files ---
    def get_file(self, file_id: int) -> Optional[File]:
        return self.session.get(File, file_id)

    def owner_name(self, file: File) -> str:
        owner = self.session.get(User, file.owner_id)
        return owner.username if owner else "Unknown"

    def list_user_files(self, user_id: int) -> Sequence[Tuple[File, str]]:
        stmt = (
            select(File, User.username)
            .join(User, File.owner_id == User.id)
            .where(File.owner_id == user_id, File.status != "pending")
            .order_by(File.uploaded_at.desc())
        )
        return self.session.exec(stmt).all()

    def create_pending_file(self, owner_id: int, name: str, size: int, mime_type: str) -> File:
        f = File(owner_id=owner_id, name=name, size=size, mime_type=mime_type, status="pending")
        self.session.add(f)
        self.session.commit()
        self.session.refresh(f)
        return f

    def confirm_file(self, f: File, cid: str, encryption_key: str) -> File:
        f.cid = cid
        f.status = "encrypted"
        self.session.add(f)
        self.session.add(FileKey(file_id=f.id, encryption_key=encryption_key))
        self.session.commit()
        self.session.refresh(f)
        return f

    def get_encryption_key(self, file_id: int) -> Optional[str]:
        key = self.session.exec(select(FileKey).where(FileKey.file_id == file_id)).first()
        return key.encryption_key if key else None

    def delete_file(self, file_id: int) -> None:
        """Delete a file with its grants, links and key. Transactions are kept."""
        self.session.exec(delete(FileShare).where(FileShare.file_id == file_id))
        self.session.exec(delete(ShareLink).where(ShareLink.file_id == file_id))
        self.session.exec(delete(FileKey).where(FileKey.file_id == file_id))
        f = self.session.get(File, file_id)
        if f is not None:
            self.session.delete(f)
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    # --- grants ---
    def get_share(self, file_id: int, user_id: int) -> Optional[FileShare]:
        stmt = select(FileShare).where(FileShare.file_id == file_id, FileShare.user_id == user_id)
        return self.session.exec(stmt).first()

    def save_share(self, share: FileShare) -> FileShare:
        self.session.add(share)
        self.session.commit()
        self.session.refresh(share)
        return share

    def delete_share(self, share: FileShare) -> None:
        self.session.delete(share)
        self.session.commit()

    def list_file_shares(self, file_id: int) -> Sequence[Tuple[FileShare, str]]:
        stmt = (
            select(FileShare, User.username)
            .join(User, FileShare.user_id == User.id)
            .where(FileShare.file_id == file_id)
            .order_by(FileShare.created_at)
        )
        return self.session.exec(stmt).all()

    def list_shared_files(self, user_id: int) -> Sequence[Tuple[File, str]]:
        stmt = (
            select(File, User.username)
            .join(FileShare, FileShare.file_id == File.id)
            .join(User, File.owner_id == User.id)
            .where(FileShare.user_id == user_id)
            .order_by(FileShare.created_at.desc())
        )
        return self.session.exec(stmt).all()

    # --- share links ---
    def create_share_link(self, link: ShareLink) -> ShareLink:
        self.session.add(link)
        self.session.commit()
        self.session.refresh(link)
        return link

    def get_share_link(self, token: str) -> Optional[ShareLink]:
        return self.session.exec(select(ShareLink).where(ShareLink.token == token)).first()

    def list_share_links(self, file_id: int) -> List[ShareLink]:
        return list(self.session.exec(select(ShareLink).where(ShareLink.file_id == file_id)).all())

    def delete_share_link(self, link: ShareLink) -> None:
        self.session.delete(link)
        self.session.commit()

    # --- transactions ---
    def log_transaction(self, tx: Transaction) -> Transaction:
        self.session.add(tx)
        self.session.commit()
        self.session.refresh(tx)
        return tx

    def list_user_transactions(self, user_id: int, cid: Optional[str] = None) -> List[Transaction]:
        # a dangling file_id can point at someone else's newer file, so match the cid too
        on_owned_file = exists().where(
            File.id == Transaction.file_id,
            File.cid == Transaction.cid,
            File.owner_id == user_id,
        )
        stmt = select(Transaction).where(or_(Transaction.actor_id == user_id, on_owned_file))
        if cid is not None:
            stmt = stmt.where(Transaction.cid == cid)
        stmt = stmt.order_by(Transaction.timestamp.desc(), Transaction.id.desc())
        return list(self.session.exec(stmt).all())


def get_repository(session: Session = Depends(get_session)) -> VaultRepository:
    return VaultRepository(session)
