# puntos_api/app.py
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, configure_logging
from .db import ProcedureExecutor
from .error_handler import register_error_handlers
from .routes import auth, users

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, executor: Optional[ProcedureExecutor] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Puntos API")
    app.state.settings = settings
    app.state.executor = executor if executor is not None else ProcedureExecutor(settings)

    # CORS pour le front
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)

    # Routers
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")

    @app.on_event("startup")
    def _startup():
        if not settings.JWT_SECRET:
            logger.warning("⚠️  JWT_SECRET absent : émission et vérification des tokens indisponibles")
        app.state.executor.connect()

    @app.on_event("shutdown")
    def _shutdown():
        app.state.executor.close()

    @app.get("/health")
    def health():
        return {"ok": True, "database": "ready" if app.state.executor.is_ready else "unavailable"}

    return app


app = create_app()
