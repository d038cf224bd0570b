# Filename: filevault/routers/stats.py
from fastapi import APIRouter, Depends
from typing import List

from ..auth import get_current_user
from ..blobstore import get_blob_store
from ..models import User
from ..repository import VaultRepository, get_repository
from ..schemas import StatsOut, NetworkStatus, TransactionOut
from ..stats import get_stats, format_size

router = APIRouter(prefix="/api", tags=["stats"])


@router.get("/stats", response_model=StatsOut)
def user_stats(current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    stat = get_stats(repo.session, current_user.id)
    return StatsOut(
        files_uploaded=stat.files_uploaded,
        files_shared=stat.files_shared,
        storage_used=format_size(stat.storage_used),
        storage_used_bytes=stat.storage_used,
        downloads=stat.downloads,
        last_updated=stat.last_updated,
    )


@router.get("/blockchain/status", response_model=NetworkStatus)
async def network_status(current_user: User = Depends(get_current_user), store=Depends(get_blob_store)):
    return await store.status()


@router.get("/blockchain/transactions", response_model=List[TransactionOut])
def transactions(current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return repo.list_user_transactions(current_user.id)


@router.get("/blockchain/transactions/{cid}", response_model=List[TransactionOut])
def transactions_for_cid(cid: str, current_user: User = Depends(get_current_user), repo: VaultRepository = Depends(get_repository)):
    return repo.list_user_transactions(current_user.id, cid=cid)
