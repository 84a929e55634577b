import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from library_catalog.core.config import settings
from library_catalog.core.exceptions import InternalError
from library_catalog.core.logging import setup_logging, get_logger, request_id_ctx
from library_catalog.db.session import engine
from library_catalog.db.models import Base

logger = get_logger("library_catalog.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    setup_logging()
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    # Create tables (in dev; in prod use migrations)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description=(
        "## Library Catalog API\n\n"
        "REST API for a library catalog:\n\n"
        "- **Books** – catalog search with filters and pagination, soft delete\n"
        "- **Copies** – physical copies with sequential codes and availability\n"
        "- **Members** – member records with soft delete\n"
        "- **Borrowings** – check-out, return and per-copy history\n"
        "- **Authors / Genres** – reference data linked to books\n"
    ),
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Health", "description": "Application health checks"},
        {"name": "Books", "description": "Book catalog management with search and filtering"},
        {"name": "Copies", "description": "Borrowing history of physical copies"},
        {"name": "Members", "description": "Library member records"},
        {"name": "Borrowings", "description": "Borrow and return copies"},
        {"name": "Authors", "description": "Authors that books can be linked to"},
        {"name": "Genres", "description": "Genres that books can be linked to"},
    ],
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request ID and timing middleware
@app.middleware("http")
async def request_middleware(request: Request, call_next):
    req_id = str(uuid.uuid4())[:8]
    request_id_ctx.set(req_id)

    start_time = time.time()
    try:
        response = await call_next(request)
    except Exception:
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=True)
        error = InternalError()
        response = JSONResponse(status_code=error.status_code, content={"detail": error.message})
    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({duration:.3f}s)"
    )

    response.headers["X-Request-ID"] = req_id
    return response


# Health check
@app.get("/health", tags=["Health"], summary="Health check", description="Returns the current health status and API version.")
async def health_check():
    return {"status": "healthy", "version": settings.APP_VERSION}


# Include routers
from library_catalog.api.v1.endpoints.books import router as books_router  # noqa: E402
from library_catalog.api.v1.endpoints.copies import router as copies_router  # noqa: E402
from library_catalog.api.v1.endpoints.members import router as members_router  # noqa: E402
from library_catalog.api.v1.endpoints.borrowings import router as borrowings_router  # noqa: E402
from library_catalog.api.v1.endpoints.authors import router as authors_router  # noqa: E402
from library_catalog.api.v1.endpoints.genres import router as genres_router  # noqa: E402

app.include_router(books_router, prefix="/api/v1")
app.include_router(copies_router, prefix="/api/v1")
app.include_router(members_router, prefix="/api/v1")
app.include_router(borrowings_router, prefix="/api/v1")
app.include_router(authors_router, prefix="/api/v1")
app.include_router(genres_router, prefix="/api/v1")
