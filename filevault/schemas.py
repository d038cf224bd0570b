# Filename: filevault/schemas.py
from pydantic import BaseModel, ConfigDict, EmailStr, Field, constr, model_validator
from typing import Optional, Literal, Any, Dict
from datetime import datetime

Permission = Literal["view", "edit", "download"]


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserCreate(BaseModel):
    username: constr(min_length=3, max_length=32)
    email: EmailStr
    password: constr(min_length=6)


class UserOut(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    username: str
    password: str
    remember: bool = False


class FileCreate(BaseModel):
    name: constr(min_length=1, max_length=260)
    size: int = Field(..., ge=0)
    mime_type: str = "application/octet-stream"
    encryption_key: constr(min_length=1)
    encrypted_data: constr(min_length=1)


class FileOut(BaseModel):
    id: int
    name: str
    size: int
    mime_type: str
    cid: Optional[str]
    owner_id: int
    owner: str
    uploaded_at: datetime
    status: str

    model_config = ConfigDict(from_attributes=True)


class FilePayload(BaseModel):
    """Ciphertext plus key, decrypted by the client."""

    encrypted_data: str
    encryption_key: str
    name: str
    mime_type: str


class ShareByEmail(BaseModel):
    file_id: int
    email: EmailStr
    permission: Permission = "view"


class ShareById(BaseModel):
    file_id: int
    recipient_id: int
    permission: Permission = "view"


class FileShareOut(BaseModel):
    id: int
    file_id: int
    user_id: int
    permission: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class GrantOut(FileShareOut):
    username: str


class ShareLinkCreate(BaseModel):
    file_id: int
    requires_password: bool = False
    password: Optional[constr(min_length=1)] = None

    @model_validator(mode="after")
    def password_when_required(self):
        if self.requires_password and not self.password:
            raise ValueError("password is required when requires_password is set")
        return self


class ShareLinkOut(BaseModel):
    share_link: str
    token: str
    expires_at: datetime


class ShareLinkInfo(BaseModel):
    file_name: str
    size: int
    mime_type: str
    owner: str
    requires_password: bool
    expires_at: datetime


class RedeemRequest(BaseModel):
    password: Optional[str] = None


class StatsOut(BaseModel):
    files_uploaded: int
    files_shared: int
    storage_used: str
    storage_used_bytes: int
    downloads: int
    last_updated: datetime


class NetworkStatus(BaseModel):
    status: str
    providers: str


class TransactionOut(BaseModel):
    id: int
    tx_id: str
    cid: str
    file_id: Optional[int]
    type: str
    status: str
    timestamp: datetime
    details: Dict[str, Any]

    model_config = ConfigDict(from_attributes=True)
