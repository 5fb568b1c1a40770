import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from api.v1.auth.cleanup import token_cleanup_loop
from api.v1.auth.routes import router, application_router, user_router
from core.config import settings
from core.db.base import Base
from core.db.session import engine, SessionLocal
from core.exceptions import AuthServiceException, map_to_http_exception
from core.logging import setup_logging
import models  # noqa: F401  registers tables on Base.metadata

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create tables
    Base.metadata.create_all(bind=engine)

    cleanup_task = asyncio.create_task(
        token_cleanup_loop(SessionLocal, hour=settings.TOKEN_CLEANUP_HOUR)
    )
    logger.info(f"{settings.PROJECT_NAME} started ({settings.ENVIRONMENT})")

    yield

    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    logger.info(f"{settings.PROJECT_NAME} shutting down")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.include_router(router)
app.include_router(application_router)
app.include_router(user_router)


@app.exception_handler(AuthServiceException)
async def auth_exception_handler(request: Request, exc: AuthServiceException):
    http_exc = map_to_http_exception(exc)
    logger.info(f"{request.method} {request.url.path} -> {http_exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=http_exc.status_code,
        content={"detail": http_exc.detail},
        headers=http_exc.headers,
    )


@app.get("/")
def root():
    return {"message": "Service is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
