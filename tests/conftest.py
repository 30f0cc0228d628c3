import pytest
from fastapi.testclient import TestClient

from puntos_api.app import create_app
from puntos_api.config import Settings

SECRET = "secret-de-test"


class FakeExecutor:
    """Remplace ProcedureExecutor : enregistre les appels, renvoie `result` ou lève `error`."""

    def __init__(self, result=None, error=None, handler=None):
        self.result = [{"OK": 1}] if result is None else result
        self.error = error
        self.handler = handler
        self.calls = []
        self.connected = False
        self.closed = False

    @property
    def is_ready(self):
        return self.connected

    def connect(self):
        self.connected = True
        return True

    def close(self):
        self.closed = True
        self.connected = False

    async def execute_procedure(self, procedure_name, params=()):
        params = list(params)
        self.calls.append((procedure_name, params))
        if self.handler is not None:
            return await self.handler(procedure_name, params)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(JWT_SECRET=SECRET, LOG_LEVEL="WARNING", LOGIN_ISSUES_TOKEN=False)


@pytest.fixture
def executor():
    return FakeExecutor()


@pytest.fixture
def app(settings, executor):
    return create_app(settings, executor)


@pytest.fixture
def client(app):
    return TestClient(app)
