import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from app.api.api import api_router
from app.core.config import settings
from app.services.what3words_service import what3words_service
from app.utils import logger as _  # noqa: F401 - Import to configure logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    await what3words_service.close()


app = FastAPI(
    lifespan=lifespan,
    title=settings.PROJECT_NAME,
    description=settings.PROJECT_DESCRIPTION,
    version=settings.VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = uuid.uuid4().hex[:8]
    started = time.perf_counter()
    logger.info(
        "[%s] %s %s%s",
        request_id,
        request.method,
        request.url.path,
        f"?{request.url.query}" if request.url.query else "",
    )

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "[%s] Completed %s in %.0fms", request_id, response.status_code, elapsed_ms
    )
    return response


logger.info("Starting %s version v%s", settings.PROJECT_NAME, settings.VERSION)

app.include_router(api_router)


@app.get("/", include_in_schema=False)
def read_root():
    return RedirectResponse(url="/health")
