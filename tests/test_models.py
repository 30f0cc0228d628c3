import pytest
from pydantic import ValidationError

from puntos_api.error_handler import InvalidProcedureCall
from puntos_api.models import PROCEDURES, SP_LOGIN_INSERT_USER, SP_LOGIN_VALIDATE, NamedParameter, ProcedureSpec


def test_registry_lists_both_procedures():
    assert PROCEDURES == {
        "SP_LOGIN_VALIDATE": SP_LOGIN_VALIDATE,
        "SP_LOGIN_INSERT_USER": SP_LOGIN_INSERT_USER,
    }


def test_bind_follows_declared_order():
    spec = ProcedureSpec("SP_X", ("B", "A"))

    params = spec.bind({"A": 1, "B": "two"})

    assert [(p.name, p.value) for p in params] == [("B", "two"), ("A", 1)]


def test_bind_sends_missing_values_as_none():
    params = SP_LOGIN_VALIDATE.bind({"USER_NAME": "ana"})

    assert [p.value for p in params] == ["ana", None, None, None]


def test_bind_rejects_unknown_parameters():
    with pytest.raises(InvalidProcedureCall):
        SP_LOGIN_VALIDATE.bind({"USER_NAME": "ana", "ROLE": "admin"})


def test_named_parameter_keeps_scalar_types():
    assert NamedParameter(name="USER_NDOC", value="0123").value == "0123"
    assert NamedParameter(name="USER_NDOC", value=123).value == 123
    assert NamedParameter(name="ACTIVE", value=True).value is True
    assert NamedParameter(name="RATE", value=1.5).value == 1.5


@pytest.mark.parametrize("value", [{"a": 1}, [1, 2]])
def test_named_parameter_rejects_non_scalars(value):
    with pytest.raises(ValidationError):
        NamedParameter(name="X", value=value)


@pytest.mark.parametrize("name", ["", "USER NAME", "@USER_NAME", "1ST"])
def test_named_parameter_rejects_non_identifiers(name):
    with pytest.raises(ValidationError):
        NamedParameter(name=name, value=1)
