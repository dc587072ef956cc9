# jobboard/main.py
import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from jobboard.core.config import settings
from jobboard.core.database import init_models
from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.routers import (
    admin_router, auth_router, category_router, contract_router, job_router,
    notification_router, review_router, skill_router, user_router
)
from jobboard.routers.proposal_router import (
    router as proposal_main_router,
    job_proposal_router
)
from jobboard.services.notification_dispatcher import dispatcher


logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.CREATE_TABLES_ON_STARTUP:
        await init_models()

    outbox_task = None
    if settings.NOTIFICATION_DISPATCH_INTERVAL_SECONDS > 0:
        outbox_task = asyncio.create_task(
            dispatcher.run_periodically(settings.NOTIFICATION_DISPATCH_INTERVAL_SECONDS)
        )
    yield
    if outbox_task is not None:
        outbox_task.cancel()
        try:
            await outbox_task
        except asyncio.CancelledError:
            pass


app = FastAPI(title="Freelance Job Board", lifespan=lifespan)

# Allow every origin (restrict in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain errors -> HTTP ---

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(status.HTTP_404_NOT_FOUND, exc.message)


@app.exception_handler(UnauthorizedAccessError)
async def unauthorized_handler(request: Request, exc: UnauthorizedAccessError):
    logger.warning(f"Unauthorized {request.method} {request.url.path}: {exc.message}")
    return _error(status.HTTP_401_UNAUTHORIZED, exc.message)


@app.exception_handler(InvalidOperationError)
async def invalid_operation_handler(request: Request, exc: InvalidOperationError):
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(ArgumentError)
async def argument_error_handler(request: Request, exc: ArgumentError):
    return _error(status.HTTP_400_BAD_REQUEST, exc.message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred")


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    path = request.url.path
    if path != "/" and not path.startswith("/static"):
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
    return response


# --- Uploaded files ---
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/")
def read_root():
    return {"status": "success", "message": "Backend is running!"}


app.include_router(auth_router.router)
app.include_router(user_router.router)
app.include_router(admin_router.router)
app.include_router(category_router.router)
app.include_router(skill_router.router)
app.include_router(job_router.router)
app.include_router(job_proposal_router)
app.include_router(proposal_main_router)
app.include_router(contract_router.router)
app.include_router(review_router.router)
app.include_router(notification_router.router)
