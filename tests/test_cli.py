from typer.testing import CliRunner

from puntos_api.cli import app
from puntos_api.config import Settings
from puntos_api.services.jwt_service import decode_token

runner = CliRunner()


def test_token_command_prints_a_verifiable_token(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "cli-secret")

    result = runner.invoke(app, ["token", "--claim", "sub=u1", "-c", "role=admin", "--expires-in", "1h"])

    assert result.exit_code == 0
    claims = decode_token(result.stdout.strip(), Settings())
    assert claims["sub"] == "u1"
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == 3600


def test_token_command_rejects_malformed_claims(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "cli-secret")

    result = runner.invoke(app, ["token", "--claim", "sub"])

    assert result.exit_code == 2


def test_token_command_without_secret_fails(monkeypatch):
    monkeypatch.setenv("JWT_SECRET", "")

    result = runner.invoke(app, ["token", "--claim", "sub=u1"])

    assert result.exit_code == 1


def test_call_command_fails_cleanly_without_database(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'nope' / 'x.db'}")

    result = runner.invoke(app, ["call", "SP_LOGIN_VALIDATE", "-p", "USER_NAME=ana"])

    assert result.exit_code == 1
    assert "Connexion" in result.stdout
