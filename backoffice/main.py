"""
Main FastAPI application
"""
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from backoffice.config import get_settings
from backoffice.state import BoardState
from backoffice.store import build_stores
from backoffice.api import customers, projects, tasks, invoices, dashboard, imports, labels
from backoffice.api.deps import get_board
from backoffice.utils.logger import configure_logging

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    stores = await build_stores(settings)
    logger.info(f"Using {settings.STORAGE_BACKEND} storage backend")

    board = BoardState(stores, settings)
    await board.load_all()
    if board.load_errors:
        logger.warning(f"Started with unloaded collections: {', '.join(board.load_errors)}")
    app.state.board = board

    yield

    if stores.engine is not None:
        await stores.engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(customers.router, prefix="/api/customers", tags=["Customers"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/api/tasks", tags=["Tasks"])
app.include_router(invoices.router, prefix="/api/invoices", tags=["Invoices"])
app.include_router(dashboard.router, prefix="/api/dashboard", tags=["Dashboard"])
app.include_router(imports.router, prefix="/api/imports", tags=["Imports"])
app.include_router(labels.router, prefix="/api/labels", tags=["Labels"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check(request: Request):
    """Unhealthy collections are the ones whose last load failed"""
    board = getattr(request.app.state, "board", None)
    load_errors = board.load_errors if board is not None else {}
    return {
        "status": "degraded" if load_errors else "healthy",
        "loadErrors": load_errors,
    }


@app.post("/api/reload")
async def reload_board(board: BoardState = Depends(get_board)):
    """Retry loading every collection from storage"""
    await board.load_all()
    return {"loadErrors": board.load_errors}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backoffice.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
