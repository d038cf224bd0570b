# Filename: filevault/models.py
from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON, UniqueConstraint
from typing import Optional, List
from datetime import datetime, timezone

PERMISSIONS = ("view", "edit", "download")


def utcnow() -> datetime:
    # naive UTC, matching what SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    email: str = Field(index=True, unique=True)
    hashed_password: str
    created_at: datetime = Field(default_factory=utcnow)

    files: List["File"] = Relationship(back_populates="owner")


class File(SQLModel, table=True):
    __tablename__ = "files"
    # never hand a deleted file's id to a new upload
    __table_args__ = {"sqlite_autoincrement": True}

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    size: int
    mime_type: str
    # content address from the blob store; empty while the upload is pending
    cid: Optional[str] = Field(default=None, index=True, unique=True)
    owner_id: int = Field(foreign_key="users.id", index=True)
    uploaded_at: datetime = Field(default_factory=utcnow)
    status: str = "pending"

    owner: Optional[User] = Relationship(back_populates="files")


class FileKey(SQLModel, table=True):
    """Client-side encryption key, kept apart from the file metadata row."""

    __tablename__ = "file_keys"

    id: Optional[int] = Field(default=None, primary_key=True)
    file_id: int = Field(foreign_key="files.id", unique=True)
    encryption_key: str


class FileShare(SQLModel, table=True):
    __tablename__ = "file_shares"
    __table_args__ = (UniqueConstraint("file_id", "user_id", name="uq_file_shares_file_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    file_id: int = Field(foreign_key="files.id", index=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    permission: str = "view"
    created_at: datetime = Field(default_factory=utcnow)


class ShareLink(SQLModel, table=True):
    __tablename__ = "share_links"

    id: Optional[int] = Field(default=None, primary_key=True)
    file_id: int = Field(foreign_key="files.id", index=True)
    token: str = Field(index=True, unique=True)
    requires_password: bool = False
    password_hash: Optional[str] = None
    created_by: Optional[int] = Field(default=None, foreign_key="users.id")
    expires_at: datetime
    created_at: datetime = Field(default_factory=utcnow)


class Transaction(SQLModel, table=True):
    """Append-only audit log of blob store operations.

    file_id deliberately carries no foreign key: entries outlive the file
    they describe and stay queryable by cid.
    """

    __tablename__ = "transactions"

    id: Optional[int] = Field(default=None, primary_key=True)
    tx_id: str = Field(index=True)
    cid: str = Field(index=True)
    file_id: Optional[int] = Field(default=None, index=True)
    actor_id: Optional[int] = Field(default=None, index=True)
    type: str  # store | retrieve
    status: str
    timestamp: datetime = Field(default_factory=utcnow)
    details: dict = Field(default_factory=dict, sa_column=Column("metadata", JSON))


class Stat(SQLModel, table=True):
    __tablename__ = "stats"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True)
    files_uploaded: int = 0
    files_shared: int = 0
    storage_used: int = 0
    downloads: int = 0
    last_updated: datetime = Field(default_factory=utcnow)
