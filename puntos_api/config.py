# puntos_api/config.py
from __future__ import annotations
import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv
from fastapi import Request
from sqlalchemy.engine import URL, make_url

# Charger le .env depuis la racine du projet
load_dotenv()


def _env(name: str, default: Optional[str] = None):
    return field(default_factory=lambda: os.getenv(name, default))


def _env_int(name: str, default: int):
    return field(default_factory=lambda: int(os.getenv(name, str(default))))


def _env_float(name: str, default: float):
    return field(default_factory=lambda: float(os.getenv(name, str(default))))


def _env_bool(name: str, default: bool):
    def _read() -> bool:
        raw = os.getenv(name)
        if raw is None:
            return default
        return raw.strip().lower() in {"true", "1", "yes", "y", "t", "on"}
    return field(default_factory=_read)


@dataclass(frozen=True)
class Settings:
    # Serveur HTTP
    HOST: str = _env("HOST", "0.0.0.0")
    PORT: int = _env_int("PORT", 8383)
    CORS_ORIGINS: str = _env("CORS_ORIGINS", "*")
    LOG_LEVEL: str = _env("LOG_LEVEL", "INFO")

    # Base de données : DATABASE_URL prioritaire, sinon construite depuis les DB_*
    DATABASE_URL: Optional[str] = _env("DATABASE_URL")
    DB_DRIVER: str = _env("DB_DRIVER", "mssql+pyodbc")
    DB_HOST: Optional[str] = _env("DB_HOST")
    DB_PORT: Optional[str] = _env("DB_PORT")
    DB_USER: Optional[str] = _env("DB_USER")
    DB_PASSWORD: Optional[str] = _env("DB_PASSWORD")
    DB_NAME: Optional[str] = _env("DB_NAME")
    DB_ODBC_DRIVER: str = _env("DB_ODBC_DRIVER", "ODBC Driver 18 for SQL Server")
    DB_ENCRYPT: bool = _env_bool("DB_ENCRYPT", False)
    DB_TRUST_SERVER_CERTIFICATE: bool = _env_bool("DB_TRUST_SERVER_CERTIFICATE", True)

    # Pool de connexions
    DB_POOL_MAX: int = _env_int("DB_POOL_MAX", 10)
    DB_POOL_MIN: int = _env_int("DB_POOL_MIN", 0)  # le pool s'ouvre à la demande
    DB_POOL_IDLE_TIMEOUT_S: float = _env_float("DB_POOL_IDLE_TIMEOUT_S", 30)
    DB_POOL_TIMEOUT_S: float = _env_float("DB_POOL_TIMEOUT_S", 30)

    # Résultats des procédures stockées
    PROCEDURE_JSON_RESULTS: bool = _env_bool("PROCEDURE_JSON_RESULTS", True)

    # JWT
    JWT_SECRET: Optional[str] = _env("JWT_SECRET")
    JWT_ALGORITHM: str = _env("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_IN: str = _env("JWT_EXPIRES_IN", "2h")
    LOGIN_ISSUES_TOKEN: bool = _env_bool("LOGIN_ISSUES_TOKEN", False)

    def database_url(self) -> URL:
        """URL SQLAlchemy de la base (DATABASE_URL ou composée depuis DB_*)."""
        if self.DATABASE_URL:
            return make_url(self.DATABASE_URL)

        query = {}
        if self.DB_DRIVER.endswith("pyodbc"):
            query = {
                "driver": self.DB_ODBC_DRIVER,
                "Encrypt": "yes" if self.DB_ENCRYPT else "no",
                "TrustServerCertificate": "yes" if self.DB_TRUST_SERVER_CERTIFICATE else "no",
            }
        return URL.create(
            self.DB_DRIVER,
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=int(self.DB_PORT) if self.DB_PORT else None,
            database=self.DB_NAME,
            query=query,
        )

    def render_database_url(self) -> str:
        """Version loggable de l'URL (mot de passe masqué)."""
        return self.database_url().render_as_string(hide_password=True)

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def configure_logging(level: str = "INFO") -> None:
    """Format racine commun à l'API et au CLI (appelé une seule fois)."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level.upper())
        return
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
