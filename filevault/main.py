# Filename: filevault/main.py
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from .routers import auth as auth_router, files as files_router, root as root_router
from .routers import sharing as sharing_router, stats as stats_router
from .blobstore import build_blob_store
from .config import settings
from .db import init_db
from .errors import register_exception_handlers

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("filevault")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup."""
    init_db()
    logger.info("%s %s started (blob backend: %s)", settings.app_name, settings.app_version, settings.blob_backend)
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)
app.state.blob_store = build_blob_store()

origins = ["*"] if settings.cors_allow_origins == "*" else [o.strip() for o in settings.cors_allow_origins.split(",")]
allow_methods = ["*"] if settings.cors_allow_methods == "*" else [m.strip() for m in settings.cors_allow_methods.split(",")]
allow_headers = ["*"] if settings.cors_allow_headers == "*" else [h.strip() for h in settings.cors_allow_headers.split(",")]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=allow_methods,
    allow_headers=allow_headers,
)

register_exception_handlers(app)

app.include_router(auth_router.router)
# sharing first: its static /api/files/... paths must win over /api/files/{file_id}
app.include_router(sharing_router.router)
app.include_router(sharing_router.links_router)
app.include_router(files_router.router)
app.include_router(stats_router.router)
app.include_router(root_router.router)
