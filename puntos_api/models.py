from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field, StrictBool, StrictFloat, StrictInt, StrictStr

from .error_handler import InvalidProcedureCall

# Pas de coercition : un "123" reste une chaîne, un 123 reste un entier
Scalar = Optional[Union[StrictBool, StrictInt, StrictFloat, StrictStr]]

IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Nom éventuellement préfixé par le schéma : dbo.SP_X
PROCEDURE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class NamedParameter(BaseModel):
    name: str = Field(..., pattern=IDENTIFIER.pattern, description="Nom du paramètre déclaré par la procédure")
    value: Scalar = None


@dataclass(frozen=True)
class ProcedureSpec:
    """Liste des paramètres déclarés d'une procédure stockée."""
    name: str
    params: Tuple[str, ...]

    def bind(self, values: Mapping[str, Scalar]) -> List[NamedParameter]:
        """
        Construit les paramètres nommés dans l'ordre déclaré.
        Une valeur absente part en NULL (aucune validation de présence).
        """
        unknown = sorted(set(values) - set(self.params))
        if unknown:
            raise InvalidProcedureCall(f"{self.name}: paramètres inconnus {unknown}")
        return [NamedParameter(name=p, value=values.get(p)) for p in self.params]


SP_LOGIN_VALIDATE = ProcedureSpec(
    "SP_LOGIN_VALIDATE",
    ("USER_NAME", "USER_PASSWORD", "DEVICE", "APP_VERSION"),
)

SP_LOGIN_INSERT_USER = ProcedureSpec(
    "SP_LOGIN_INSERT_USER",
    ("USER_EMAIL", "USER_NDOC", "USER_NAME", "USER_PHONE", "USER_LASTNAME", "USER_PASSWORD"),
)

PROCEDURES: Dict[str, ProcedureSpec] = {
    spec.name: spec for spec in (SP_LOGIN_VALIDATE, SP_LOGIN_INSERT_USER)
}
