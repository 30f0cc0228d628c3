"""
Erreurs métier de l'API et leur traduction en réponses HTTP
"""
import inspect
import logging
import time
from functools import wraps
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PoolNotInitialized(RuntimeError):
    """Le pool SQL n'est pas (encore) connecté."""

    def __init__(self, message: str = "Database pool not initialized"):
        super().__init__(message)


class InvalidProcedureCall(ValueError):
    """Appel de procédure mal formé, refusé avant tout aller-retour SQL."""


class TokenConfigurationError(RuntimeError):
    """Aucun secret JWT configuré."""


class BadRequestBody(ValueError):
    pass


class AuthError(Exception):
    status_code = 401
    message = "Unauthorized"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class MissingToken(AuthError):
    status_code = 401
    message = "Missing token"


class InvalidToken(AuthError):
    status_code = 403
    message = "Invalid token"


def error_message(exc: BaseException) -> str:
    """
    Message du driver seul (exc.orig pour les erreurs SQLAlchemy), sans le SQL
    ni les paramètres liés : les mots de passe voyagent en paramètres.
    """
    orig = getattr(exc, "orig", None)
    return str(orig if orig is not None else exc)


def log_failures(func: Callable) -> Callable:
    """
    Log succès/échec avec la durée d'exécution, puis relance l'erreur telle quelle.
    Fonctionne sur les fonctions sync et async.
    """
    @wraps(func)
    async def async_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.error(f"❌ {func.__name__} a échoué après {time.time() - start_time:.2f}s: "
                         f"{type(e).__name__}: {error_message(e)}")
            raise
        logger.info(f"✅ {func.__name__} réussi en {time.time() - start_time:.2f}s")
        return result

    @wraps(func)
    def sync_wrapper(*args, **kwargs):
        start_time = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"❌ {func.__name__} a échoué après {time.time() - start_time:.2f}s: "
                         f"{type(e).__name__}: {error_message(e)}")
            raise
        logger.info(f"✅ {func.__name__} réussi en {time.time() - start_time:.2f}s")
        return result

    if inspect.iscoroutinefunction(func):
        return async_wrapper
    return sync_wrapper


async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
    logger.warning(f"🔒 {request.method} {request.url.path} refusé: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def _bad_body(request: Request, exc: BadRequestBody) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _token_config(request: Request, exc: TokenConfigurationError) -> JSONResponse:
    logger.error(f"❌ {exc}")
    return JSONResponse(status_code=500, content={"error": "Token service not configured"})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AuthError, _auth_error)
    app.add_exception_handler(BadRequestBody, _bad_body)
    app.add_exception_handler(TokenConfigurationError, _token_config)
