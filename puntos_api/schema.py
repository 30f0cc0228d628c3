# puntos_api/schema.py
from __future__ import annotations
import json
from typing import Any, Dict, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .error_handler import BadRequestBody
from .models import Scalar

BodyT = TypeVar("BodyT", bound=BaseModel)


# ---------- Login ----------
class LoginIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    USER_NAME: Scalar = Field(None, description="Identifiant de l'utilisateur")
    USER_PASSWORD: Scalar = None
    DEVICE: Scalar = Field(None, description="Appareil d'où vient la connexion")
    APP_VERSION: Scalar = None


# ---------- Inscription ----------
class RegisterIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    USER_EMAIL: Scalar = None
    USER_NDOC: Scalar = Field(None, description="Numéro de document d'identité")
    USER_NAME: Scalar = None
    USER_PHONE: Scalar = None
    USER_LASTNAME: Scalar = None
    USER_PASSWORD: Scalar = None


# ---------- Lecture du body (JSON ou formulaire) ----------
async def read_body(request: Request, model: Type[BodyT]) -> BodyT:
    """
    Accepte application/json et application/x-www-form-urlencoded.
    Un body absent vaut {} : les champs manquants partent à None.
    """
    content_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    data: Dict[str, Any]

    if content_type in ("application/x-www-form-urlencoded", "multipart/form-data"):
        form = await request.form()
        data = {k: v for k, v in form.items() if isinstance(v, str)}
    else:
        raw = await request.body()
        if not raw.strip():
            data = {}
        else:
            try:
                data = json.loads(raw)
            except ValueError:
                raise BadRequestBody("Malformed JSON body")
            if not isinstance(data, dict):
                raise BadRequestBody("Request body must be a JSON object")

    try:
        return model.model_validate(data)
    except ValidationError as e:
        err = e.errors()[0]
        field_name = ".".join(str(p) for p in err.get("loc", ()))
        raise BadRequestBody(f"Invalid field {field_name}: {err['msg']}")
