"""
➡️ But : assembler toutes les pièces du puzzle.

create_app() crée l’instance FastAPI et configure :

CORS, logs (loguru) et journal des requêtes

gestion des erreurs → réponses {"error": "..."}

routers REST (/tasks) et WebSocket (/ws), frontend statique optionnel

schéma OpenAPI personnalisé

Le cycle de vie (lifespan) ouvre le TaskStore au démarrage, construit le
TaskBroadcaster et le TaskService sur app.state, puis ferme le store à l'arrêt.

🔹 Avantages :

Pas d'état global : chaque app (et chaque test) a son propre store.

Point unique d’exécution : uvicorn app.main:app --reload (ou python -m app.main).
"""

import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.v1.routers import realtime, tasks
from app.core.config import Settings, settings as default_settings
from app.core.logging import setup_logging
from app.core.openapi import custom_openapi
from app.db.store import TaskStore
from app.features.tasks.broadcast import TaskBroadcaster
from app.features.tasks.services import TaskService


def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # Les HTTPException de Starlette (et non de FastAPI) viennent du routage : route inconnue
        if not isinstance(exc, HTTPException) and exc.status_code in (404, 405):
            logger.info("Route not found: {} {}", request.method, request.url.path)
            return _error(status.HTTP_404_NOT_FOUND, "Route not found")
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.info("Invalid request body on {} {}: {}", request.method, request.url.path, exc.errors())
        return _error(status.HTTP_400_BAD_REQUEST, "Request body must be a JSON object")

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.opt(exception=exc).error("Unhandled error on {} {}", request.method, request.url.path)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    cfg = app_settings or default_settings
    setup_logging(cfg.LOG_LEVEL)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = TaskStore(cfg.DATABASE_URL, echo=bool(cfg.DB_ECHO))
        store.open()
        app.state.task_service = TaskService(
            store, TaskBroadcaster(max_pending=cfg.SUBSCRIBER_QUEUE_SIZE)
        )
        logger.info("{} started (env={})", cfg.APP_NAME, cfg.ENV)
        try:
            yield
        finally:
            store.close()
            logger.info("{} stopped", cfg.APP_NAME)

    app = FastAPI(
        title=cfg.APP_NAME,
        version="0.1.0",
        openapi_tags=[
            {"name": "tasks", "description": "Création, liste, statut et suppression des tâches"},
            {"name": "realtime", "description": "Diffusion des changements (WebSocket)"},
        ],
        lifespan=lifespan,
    )

    # CORS (ajustez selon vos besoins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "{} {} -> {} ({:.1f} ms)",
            request.method, request.url.path, response.status_code, elapsed_ms,
        )
        return response

    _register_error_handlers(app)

    # Routers
    app.include_router(tasks.router, prefix=cfg.API_PREFIX)
    app.include_router(realtime.router)

    @app.get("/health", summary="État du service")
    async def health(request: Request):
        broadcaster = request.app.state.task_service.broadcaster
        return {"status": "ok", "subscribers": broadcaster.subscriber_count}

    # Frontend statique (après les routes : "/" attrape tout le reste)
    if cfg.STATIC_DIR and Path(cfg.STATIC_DIR).is_dir():
        app.mount("/", StaticFiles(directory=cfg.STATIC_DIR, html=True), name="static")

    # Génération du schéma OpenAPI custom (facultatif, mais propre)
    app.openapi = lambda: custom_openapi(app)
    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=(default_settings.ENV == "dev"),
        log_config=None,
    )
