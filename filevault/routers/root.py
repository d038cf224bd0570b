# Filename: filevault/routers/root.py
from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..config import settings
from ..db import get_session

router = APIRouter(tags=["root"])


@router.get("/")
def root(session: Session = Depends(get_session)):
    """App name, version and database connectivity."""
    try:
        session.exec(text("SELECT 1"))
        database = "connected"
    except SQLAlchemyError as e:
        database = f"error: {e.__class__.__name__}"
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "status": "ok" if database == "connected" else "degraded",
        "database": database,
    }
