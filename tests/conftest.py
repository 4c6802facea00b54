import errno

import pytest
from fastapi.testclient import TestClient

from aroma import json_store
from aroma.config import Settings
from aroma.database import SqlStore
from aroma.json_store import JsonFileStore
from aroma.main import create_app

ADMIN = ("admin", "secret")


@pytest.fixture
def fail_next_fsync(monkeypatch):
    """Calling the returned function makes the next fsync report a full disk."""
    real_fsync = json_store.os.fsync
    armed = []

    def fsync(fd):
        if armed:
            armed.clear()
            raise OSError(errno.ENOSPC, "No space left on device")
        real_fsync(fd)

    monkeypatch.setattr(json_store.os, "fsync", fsync)
    return lambda: armed.append(True)


def make_store(backend, tmp_path):
    if backend == "json":
        store = JsonFileStore(tmp_path / "data.json", compact_threshold=5)
    else:
        store = SqlStore(f"sqlite:///{tmp_path / 'data.sqlite'}")
    store.init()
    return store


@pytest.fixture(params=["sqlite", "json"])
def backend(request):
    return request.param


@pytest.fixture
def store(backend, tmp_path):
    store = make_store(backend, tmp_path)
    yield store
    store.close()


@pytest.fixture
def catalog(store):
    """Two categories and two burgers, matching the order total scenario."""
    burgers = store.create_category({"key": "burgers", "name": "Burgers", "sort_order": 1})
    sides = store.create_category({"key": "sides", "name": "Sides", "sort_order": 2})
    classic = store.create_item({"category_id": burgers.id, "name": "Classic Burger", "price": 8.5, "sort_order": 1})
    veggie = store.create_item({"category_id": burgers.id, "name": "Veggie Burger", "price": 7.0, "sort_order": 2})
    return {"burgers": burgers, "sides": sides, "classic": classic, "veggie": veggie}


@pytest.fixture
def settings(backend, tmp_path):
    return Settings(
        _env_file=None,
        admin_user=ADMIN[0],
        admin_pass=ADMIN[1],
        storage_backend=backend,
        database_url=f"sqlite:///{tmp_path / 'app.sqlite'}",
        data_file=str(tmp_path / "app.json"),
        table_url_base="https://menu.example.com",
        stripe_secret=None,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as client:
        yield client
