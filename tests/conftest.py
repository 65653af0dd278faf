import pytest
from fastapi.testclient import TestClient

from string_analyzer.config import Settings
from string_analyzer.main import create_app
from string_analyzer.storage import MemoryStore, SQLStore


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def sql_store():
    # Each call gets its own private in-memory database
    return SQLStore.from_url("sqlite://")


@pytest.fixture(params=["memory", "database"])
def store(request):
    if request.param == "memory":
        return MemoryStore()
    return SQLStore.from_url("sqlite://")


@pytest.fixture
def client(store):
    app = create_app(store=store, settings=Settings(storage_backend="memory"))
    with TestClient(app) as test_client:
        yield test_client
