import asyncio
import json
from typing import Dict, List, Optional

import typer
import uvicorn

from .config import Settings, configure_logging
from .db import ProcedureExecutor
from .error_handler import TokenConfigurationError, error_message
from .services.jwt_service import generate_token

app = typer.Typer(help="Puntos API : serveur HTTP et outils d'administration")


# --- helpers ---
def _pairs(items: List[str], what: str) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            typer.echo(f"⚠️  {what} invalide (attendu NOM=VALEUR) : {item}")
            raise typer.Exit(code=2)
        out[key] = value
    return out


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Adresse d'écoute (défaut : HOST)"),
    port: Optional[int] = typer.Option(None, help="Port d'écoute (défaut : PORT)"),
    reload: bool = typer.Option(False, help="Rechargement auto (dev)"),
):
    """Lance le serveur HTTP."""
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "puntos_api.app:app",
        host=host or settings.HOST,
        port=port or settings.PORT,
        reload=reload,
        log_level=settings.LOG_LEVEL.lower(),
    )


@app.command()
def token(
    claim: List[str] = typer.Option([], "--claim", "-c", help="Claim NOM=VALEUR (répétable)"),
    expires_in: Optional[str] = typer.Option(None, help="Durée de validité, ex: 2h, 30m, 7d"),
):
    """Signe un token avec les claims donnés."""
    claims = _pairs(claim, "Claim")
    try:
        typer.echo(generate_token(claims, expires_in=expires_in))
    except (TokenConfigurationError, ValueError) as e:
        typer.echo(f"❌ {e}")
        raise typer.Exit(code=1)


@app.command()
def call(
    procedure: str = typer.Argument(..., help="Nom de la procédure stockée"),
    param: List[str] = typer.Option([], "--param", "-p", help="Paramètre NOM=VALEUR (répétable)"),
):
    """Exécute une procédure stockée une fois et affiche le résultat en JSON."""
    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    params = [{"name": k, "value": v} for k, v in _pairs(param, "Paramètre").items()]

    executor = ProcedureExecutor(settings)
    if not executor.connect():
        typer.echo("❌ Connexion à la base impossible")
        raise typer.Exit(code=1)
    try:
        result = asyncio.run(executor.execute_procedure(procedure, params))
    except Exception as e:
        typer.echo(f"❌ {type(e).__name__}: {error_message(e)}")
        raise typer.Exit(code=1)
    finally:
        executor.close()
    typer.echo(json.dumps(result, ensure_ascii=False, indent=2, default=str))


def main():
    app()


if __name__ == "__main__":
    main()
