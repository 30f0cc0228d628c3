import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ..db import ProcedureExecutor, get_executor
from ..error_handler import error_message
from ..schema import RegisterIn, read_body
from ..services.user_service import register_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["users"])


@router.post("/res")
async def register(request: Request, executor: ProcedureExecutor = Depends(get_executor)):
    """
    Inscription : les 6 champs du body partent tels quels vers SP_LOGIN_INSERT_USER.
    Pas de validation ici, un champ absent est envoyé à NULL.
    """
    body = await read_body(request, RegisterIn)
    try:
        result = await register_user(executor, body)
    except Exception as e:
        logger.error(f"❌ Inscription échouée: {type(e).__name__}: {error_message(e)}")
        return JSONResponse(status_code=500, content={"error": "Error executing the procedure with parameters"})
    return {"result": result}
