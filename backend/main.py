import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings
from core.exceptions import IPAdminError
from core.group_manager import group_manager
from database.session import get_db_session, init_db
# Router with all /api routes
from api.v1.endpoints import router as api_router


def setup_logging():
    handlers = [logging.StreamHandler()]
    if settings.LOG_FILE:
        handlers.append(logging.FileHandler(settings.LOG_FILE))

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


setup_logging()
logger = logging.getLogger('guac-ip-admin')


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    if settings.DEFAULT_GROUPS:
        db = get_db_session()
        try:
            group_manager.seed_groups(db, settings.DEFAULT_GROUPS)
        finally:
            db.close()
    logger.info(f"Guacamole IP admin {settings.APP_VERSION} started ({settings.ENVIRONMENT})")
    yield


app = FastAPI(title="Guacamole IP Admin", version=settings.APP_VERSION, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(f"{request.method} {request.url.path} {response.status_code} {elapsed_ms:.1f}ms")
    return response


@app.exception_handler(IPAdminError)
async def handle_domain_error(request: Request, exc: IPAdminError):
    logger.warning(f"{exc.message} - {request.url.path} - {request.method}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "error_code": exc.error_code}
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error - {request.url.path} - {request.method}")
    message = str(exc) if settings.ENVIRONMENT == "development" else "Internal Server Error"
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": message, "error_code": "INTERNAL_ERROR"}
    )


app.include_router(api_router, prefix="/api")

@app.get("/health")
def health_check():
    return {
        "status": "ok",
        "timestamp": datetime.now().isoformat(),
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
    }

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=settings.ENVIRONMENT == "development")
