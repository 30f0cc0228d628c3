from datetime import timedelta

import jwt
import pytest

from puntos_api.config import Settings
from puntos_api.error_handler import TokenConfigurationError
from puntos_api.services.jwt_service import decode_token, generate_token, parse_expires_in

from .conftest import SECRET


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2h", timedelta(hours=2)),
        ("30 minutes", timedelta(minutes=30)),
        ("7d", timedelta(days=7)),
        ("1.5h", timedelta(minutes=90)),
        ("45s", timedelta(seconds=45)),
        (90, timedelta(seconds=90)),
        ("1500", timedelta(milliseconds=1500)),
        (timedelta(minutes=5), timedelta(minutes=5)),
    ],
)
def test_parse_expires_in(value, expected):
    assert parse_expires_in(value) == expected


@pytest.mark.parametrize("value", ["soon", "2 fortnights", "", True, None])
def test_parse_expires_in_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_expires_in(value)


def test_generated_token_verifies_within_expiry(settings):
    token = generate_token({"sub": "u1"}, settings=settings)

    claims = decode_token(token, settings)

    assert claims["sub"] == "u1"
    # expiration par défaut : 2h
    assert claims["exp"] - claims["iat"] == 7200


def test_token_fails_verification_after_expiry(settings):
    token = generate_token({"sub": "u1"}, expires_in=-1, settings=settings)

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_token(token, settings)


def test_default_expiry_follows_settings():
    settings = Settings(JWT_SECRET=SECRET, JWT_EXPIRES_IN="15m", LOG_LEVEL="WARNING")

    claims = decode_token(generate_token({"sub": "u1"}, settings=settings), settings)

    assert claims["exp"] - claims["iat"] == 900


def test_token_signed_with_another_secret_is_rejected(settings):
    token = generate_token({"sub": "u1"}, settings=Settings(JWT_SECRET="other", LOG_LEVEL="WARNING"))

    with pytest.raises(jwt.InvalidSignatureError):
        decode_token(token, settings)


def test_claims_are_not_mutated(settings):
    claims = {"sub": "u1", "email": "u1@example.com"}

    generate_token(claims, settings=settings)

    assert claims == {"sub": "u1", "email": "u1@example.com"}


def test_claims_with_exp_are_rejected(settings):
    with pytest.raises(ValueError):
        generate_token({"sub": "u1", "exp": 1}, settings=settings)


def test_claims_must_be_a_mapping(settings):
    with pytest.raises(ValueError):
        generate_token(["u1"], settings=settings)


def test_missing_secret_is_a_configuration_error():
    settings = Settings(JWT_SECRET="", LOG_LEVEL="WARNING")

    with pytest.raises(TokenConfigurationError):
        generate_token({"sub": "u1"}, settings=settings)
    with pytest.raises(TokenConfigurationError):
        decode_token("a.b.c", settings)
