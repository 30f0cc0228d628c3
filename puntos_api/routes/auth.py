import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..db import ProcedureExecutor, get_executor
from ..error_handler import error_message
from ..schema import LoginIn, read_body
from ..services.jwt_service import authenticate_token, generate_token
from ..services.user_service import validate_login

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login/")
async def login(
    request: Request,
    executor: ProcedureExecutor = Depends(get_executor),
    settings: Settings = Depends(get_settings),
):
    body = await read_body(request, LoginIn)
    try:
        data = await validate_login(executor, body)
    except Exception as e:
        message = error_message(e)
        logger.error(f"❌ Login refusé pour {body.USER_NAME!r}: {message}")
        return JSONResponse(status_code=401, content={"success": False, "message": message or "Login failed"})

    out: Dict[str, Any] = {"success": True, "data": data}
    # Optionnel : émission du token à la connexion (désactivé par défaut)
    if settings.LOGIN_ISSUES_TOKEN:
        # PyJWT exige un "sub" de type chaîne
        claims: Dict[str, Any] = {"device": body.DEVICE}
        if body.USER_NAME is not None:
            claims["sub"] = str(body.USER_NAME)
        out["token"] = generate_token(claims, settings=settings)
    return out


@router.get("/me")
def me(user: Dict[str, Any] = Depends(authenticate_token)):
    return {"user": user}
