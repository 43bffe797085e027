# storyworld/main.py
import logging
import time
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles

from . import __version__
from .catalog import catalog_router
from .catalog.schemas import utcnow
from .catalog.store import CatalogRepository
from .config import Settings, configure_logging, load_settings
from .errors import install_error_handlers
from .storage import JsonStore


logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    if not logging.getLogger("storyworld").handlers:
        configure_logging(settings.log_level)
    settings.ensure_directories()

    logger.info("Data dir: %s", settings.data_dir)
    logger.info("Upload dir: %s", settings.upload_dir)

    repository = CatalogRepository(JsonStore(settings.data_dir), seed=settings.seed_sample_data)
    repository.load()

    app = FastAPI(
        title="Kid's Story World API",
        description="Catalogue of children's storybooks with likes, comments, feedback and view counters.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.repository = repository
    app.state.started_at = time.monotonic()

    install_error_handlers(app)
    app.include_router(catalog_router)
    app.mount("/api/static", StaticFiles(directory=str(settings.upload_dir)), name="static")

    @app.get("/")
    def root():
        return {
            "success": True,
            "message": "Welcome to Kid's Story World API!",
            "endpoints": {
                "api": "/api",
                "books": "/api/books",
                "upload": "/api/books (POST)",
                "stats": "/api/stats",
                "health": "/api/health",
            },
        }

    @app.get("/api")
    def api_info():
        return {"success": True, "message": "Kid's Story World API", "version": __version__}

    # 🔹 Quick liveness check
    @app.get("/api/health")
    def health_check(request: Request):
        repo: CatalogRepository = request.app.state.repository
        return {
            "success": True,
            "message": "Server is healthy",
            "timestamp": utcnow().isoformat(),
            "uptime": round(time.monotonic() - request.app.state.started_at, 3),
            "booksCount": len(repo.books),
        }

    return app
