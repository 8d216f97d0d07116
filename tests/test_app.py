import random

import pytest

from conftest import FakeClient
from pokeguess.app import EXTENSION_KEY, SessionStore, create_app
from pokeguess.catalog import Catalog
from pokeguess.game import RoundController
from pokeguess.settings import Settings


@pytest.fixture()
def app():
    app = create_app(
        Settings(secret_key="test", max_sessions=5),
        client=FakeClient(),
        rng=random.Random(3),
        background_catalog=False,
    )
    app.config["TESTING"] = True
    return app


def test_frontend_served(app):
    client = app.test_client()
    res = client.get("/")
    assert res.status_code == 200
    assert b"Who's that Pok" in res.data
    res.close()

    res = client.get("/main.js")
    assert res.status_code == 200
    res.close()


def test_sessions_are_isolated(app):
    first = app.test_client()
    second = app.test_client()

    first.post("/api/game/new")
    first.post("/api/game/reveal")
    second.post("/api/game/new")

    assert first.get("/api/game/state").get_json()["outcome"] == "lost"
    assert second.get("/api/game/state").get_json()["outcome"] == "unresolved"
    assert len(app.extensions[EXTENSION_KEY].sessions) == 2


def test_background_catalog_load():
    app = create_app(Settings(secret_key="test"), client=FakeClient())
    catalog = app.extensions[EXTENSION_KEY].catalog
    catalog.start_background_load().join(timeout=5)
    assert catalog.ready is True


def test_session_store_evicts_oldest():
    client = FakeClient()
    catalog = Catalog(client)
    store = SessionStore(lambda: RoundController(client, catalog), max_sessions=2)

    a = store.get("a")
    b = store.get("b")
    assert store.get("a") is a
    store.get("c")

    assert len(store) == 2
    assert store.get("a") is a
    assert store.get("b") is not b
    assert len(store) == 2
