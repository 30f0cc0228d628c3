from __future__ import annotations

import logging
from typing import Any

from ..db import ProcedureExecutor, ProcedureResult
from ..models import SP_LOGIN_INSERT_USER, SP_LOGIN_VALIDATE
from ..schema import LoginIn, RegisterIn

logger = logging.getLogger(__name__)


async def validate_login(executor: ProcedureExecutor, body: LoginIn) -> ProcedureResult:
    """SP_LOGIN_VALIDATE : c'est la procédure qui tranche (erreur SQL = refus)."""
    params = SP_LOGIN_VALIDATE.bind(body.model_dump())
    return await executor.execute_procedure(SP_LOGIN_VALIDATE.name, params)


async def register_user(executor: ProcedureExecutor, body: RegisterIn) -> Any:
    params = SP_LOGIN_INSERT_USER.bind(body.model_dump())
    result = await executor.execute_procedure(SP_LOGIN_INSERT_USER.name, params)
    logger.info(f"📦 Résultat de {SP_LOGIN_INSERT_USER.name}: {len(result) if isinstance(result, list) else 1} élément(s)")
    return result
