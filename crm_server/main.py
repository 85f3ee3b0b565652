from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from .core.database import create_db_and_tables
from .core.errors import http_exception_handler
from .core.settings import settings
from .core.init_db import init_db
# Import models to register them with SQLModel
from .models.ActivityLog import ActivityLog
from .models.AuthSession import AuthSession
from .models.RoleAssignment import RoleAssignment
from .models.RolePermission import RolePermission
from .models.Site import Site
from .models.SuperAdmin import SuperAdmin

from .activity.router import router as activity_router
from .auth.router import router as auth_router
from .permissions.router import router as permissions_router
from .roles.router import router as roles_router
from .sites.router import router as sites_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    init_db()
    logger.info("%s ready", settings.PROJECT_NAME)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)

@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

app.include_router(auth_router, prefix="/api")
app.include_router(permissions_router, prefix="/api")
app.include_router(roles_router, prefix="/api")
app.include_router(sites_router, prefix="/api")
app.include_router(activity_router, prefix="/api")

@app.get("/api/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
