# puntos_api/db.py
"""
Exécution des procédures stockées sur un pool de connexions SQLAlchemy.

Le pool est créé explicitement au démarrage (``connect``) et libéré à l'arrêt
(``close``). Tant qu'il n'existe pas, ``execute_procedure`` lève
``PoolNotInitialized``.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from fastapi import Request
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from .config import Settings
from .error_handler import InvalidProcedureCall, PoolNotInitialized, error_message, log_failures
from .models import IDENTIFIER, PROCEDURE_NAME, NamedParameter

logger = logging.getLogger(__name__)

# Colonne unique renvoyée par SQL Server pour SELECT ... FOR JSON,
# découpée sur plusieurs lignes quand le document est long
FOR_JSON_COLUMN = "JSON_F52E2B61-18A1-11d1-B105-00805F49916B"

Row = Dict[str, Any]
ProcedureResult = Union[List[Row], Dict[str, Any], List[Any]]


def build_statement(procedure_name: str, params: Sequence[NamedParameter] = ()) -> Tuple[str, Dict[str, Any]]:
    """
    SET NOCOUNT ON; EXEC <procédure> @P1 = :P1, ... avec chaque paramètre lié par son nom.
    NOCOUNT supprime les compteurs de lignes des INSERT/UPDATE internes : le premier
    résultat renvoyé au driver est alors le SELECT de la procédure.
    """
    if not PROCEDURE_NAME.match(procedure_name or ""):
        raise InvalidProcedureCall(f"Nom de procédure invalide: {procedure_name!r}")

    binds: Dict[str, Any] = {}
    for p in params:
        if not IDENTIFIER.match(p.name):
            raise InvalidProcedureCall(f"Nom de paramètre invalide: {p.name!r}")
        if p.name in binds:
            raise InvalidProcedureCall(f"Paramètre {p.name!r} en double pour {procedure_name}")
        binds[p.name] = p.value

    if not binds:
        return f"SET NOCOUNT ON; EXEC {procedure_name}", binds
    placeholders = ", ".join(f"@{name} = :{name}" for name in binds)
    return f"SET NOCOUNT ON; EXEC {procedure_name} {placeholders}", binds


def _coerce_params(params: Sequence[Any]) -> List[NamedParameter]:
    out: List[NamedParameter] = []
    for p in params:
        if isinstance(p, NamedParameter):
            out.append(p)
            continue
        try:
            out.append(NamedParameter.model_validate(p))
        except ValidationError as e:
            raise InvalidProcedureCall(f"Paramètre invalide {p!r}: {e.errors()[0]['msg']}") from e
    return out


def _decode_json_document(raw: str) -> Optional[Any]:
    stripped = raw.strip()
    if not stripped or stripped[0] not in "{[":
        return None
    try:
        return json.loads(stripped)
    except ValueError:
        return None


def shape_result(columns: Sequence[str], rows: List[Row], parse_json: bool = True) -> ProcedureResult:
    """
    Document JSON décodé si la procédure renvoie une seule colonne JSON
    (FOR JSON ou une cellule unique commençant par { ou [), sinon les lignes brutes.
    """
    if not parse_json or len(columns) != 1 or not rows:
        return rows

    column = columns[0]
    values = [r[column] for r in rows]
    if not all(isinstance(v, str) for v in values):
        return rows

    if column.startswith(FOR_JSON_COLUMN):
        decoded = _decode_json_document("".join(values))
    elif len(values) == 1:
        decoded = _decode_json_document(values[0])
    else:
        decoded = None
    return rows if decoded is None else decoded


class ProcedureExecutor:
    """Pool de connexions partagé + exécution des procédures stockées."""

    def __init__(self, settings: Settings, **engine_options: Any):
        self.settings = settings
        self._engine_options = engine_options
        self._engine: Optional[Engine] = None

    @property
    def is_ready(self) -> bool:
        return self._engine is not None

    def connect(self) -> bool:
        """
        Crée le pool et vérifie une connexion. En cas d'échec on log et le pool
        reste non initialisé : le serveur continue de répondre.
        """
        if self._engine is not None:
            return True

        options = {
            "pool_size": self.settings.DB_POOL_MAX,
            "max_overflow": 0,
            "pool_timeout": self.settings.DB_POOL_TIMEOUT_S,
            "pool_recycle": self.settings.DB_POOL_IDLE_TIMEOUT_S,
            "pool_pre_ping": True,
            # jamais de valeurs liées dans les messages d'erreur
            "hide_parameters": True,
        }
        options.update(self._engine_options)

        engine = None
        try:
            engine = create_engine(self.settings.database_url(), **options)
            with engine.connect():
                pass
        except Exception as e:
            logger.error(f"❌ Erreur connexion à {self.settings.render_database_url()}: {type(e).__name__}: {error_message(e)}")
            if engine is not None:
                engine.dispose()
            return False

        self._engine = engine
        logger.info(f"✅ Pool SQL établi ({self.settings.render_database_url()}, max={self.settings.DB_POOL_MAX})")
        return True

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        logger.info("🔌 Pool SQL fermé")

    def build_statement(self, procedure_name: str, params: Sequence[NamedParameter]) -> Tuple[str, Dict[str, Any]]:
        return build_statement(procedure_name, params)

    def _run(self, sql: str, binds: Dict[str, Any]) -> ProcedureResult:
        engine = self._engine
        if engine is None:
            raise PoolNotInitialized()
        # engine.begin() : commit si tout va bien, rollback sinon
        with engine.begin() as conn:
            result = conn.execute(text(sql), binds)
            if not result.returns_rows:
                return []
            columns = list(result.keys())
            rows = [dict(r._mapping) for r in result]
        return shape_result(columns, rows, parse_json=self.settings.PROCEDURE_JSON_RESULTS)

    @log_failures
    async def execute_procedure(self, procedure_name: str, params: Sequence[Any] = ()) -> ProcedureResult:
        """
        Exécute une procédure stockée avec ses paramètres nommés.
        Les erreurs du driver remontent telles quelles.
        """
        if self._engine is None:
            raise PoolNotInitialized()
        named = _coerce_params(params)
        sql, binds = self.build_statement(procedure_name, named)
        logger.debug(f"EXEC {procedure_name} ({len(binds)} paramètres)")
        return await run_in_threadpool(self._run, sql, binds)


def get_executor(request: Request) -> ProcedureExecutor:
    return request.app.state.executor
