# puntos_api/services/jwt_service.py
from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, Optional, Union

import jwt
from fastapi import Depends, Request

from ..config import Settings, get_settings
from ..error_handler import InvalidToken, MissingToken, TokenConfigurationError

logger = logging.getLogger(__name__)

ExpiresIn = Union[int, float, str, timedelta]

_UNITS = {
    "ms": 0.001, "msec": 0.001, "msecs": 0.001, "millisecond": 0.001, "milliseconds": 0.001,
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
    "y": 31557600, "yr": 31557600, "yrs": 31557600, "year": 31557600, "years": 31557600,
}
_DURATION = re.compile(r"^(-?\d*\.?\d+)\s*([a-z]+)?$", re.IGNORECASE)


def parse_expires_in(value: ExpiresIn) -> timedelta:
    """
    "2h", "30 minutes", "7d" -> durée ; un nombre = secondes ;
    une chaîne sans unité = millisecondes (même grammaire que côté Node).
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Durée d'expiration invalide: {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)
    if isinstance(value, str):
        m = _DURATION.match(value.strip())
        if m:
            amount, unit = float(m.group(1)), (m.group(2) or "ms").lower()
            if unit in _UNITS:
                return timedelta(seconds=amount * _UNITS[unit])
    raise ValueError(f"Durée d'expiration invalide: {value!r}")


def _secret(settings: Settings) -> str:
    if not settings.JWT_SECRET:
        raise TokenConfigurationError("JWT_SECRET n'est pas configuré")
    return settings.JWT_SECRET


def generate_token(
    claims: Mapping[str, Any],
    expires_in: Optional[ExpiresIn] = None,
    settings: Optional[Settings] = None,
) -> str:
    """
    Signe les claims de l'utilisateur (id, email, rôle, ...) avec iat/exp.
    Expiration par défaut : JWT_EXPIRES_IN (2h).
    """
    settings = settings or Settings()
    if not isinstance(claims, Mapping):
        raise ValueError("Les claims doivent être un objet clé/valeur")
    if "exp" in claims:
        raise ValueError('expires_in ne peut pas être utilisé : les claims ont déjà une propriété "exp"')

    now = datetime.now(timezone.utc)
    lifetime = parse_expires_in(settings.JWT_EXPIRES_IN if expires_in is None else expires_in)
    payload = dict(claims)
    payload.setdefault("iat", now)
    payload["exp"] = now + lifetime
    return jwt.encode(payload, _secret(settings), algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, settings: Optional[Settings] = None) -> Dict[str, Any]:
    """Vérifie signature + expiration. Lève une sous-classe de jwt.PyJWTError."""
    settings = settings or Settings()
    return jwt.decode(token, _secret(settings), algorithms=[settings.JWT_ALGORITHM])


def authenticate_token(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Dépendance FastAPI pour protéger une route.
    401 si le header Authorization ne porte pas de token, 403 si le token est refusé.
    """
    auth_header = request.headers.get("authorization")
    parts = auth_header.split(" ") if auth_header else []
    token = parts[1] if len(parts) > 1 else None
    if not token:
        raise MissingToken()

    try:
        user = decode_token(token, settings)
    except jwt.PyJWTError as e:
        logger.info(f"Token refusé: {type(e).__name__}")
        raise InvalidToken() from e

    request.state.user = user
    return user
