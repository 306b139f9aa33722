import copy
import json
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr

from topic_index.api.dependencies import get_topic_index
from topic_index.main import create_app

from conftest import DNS, HASH_INDEX, MUTEX

ADMIN_KEY = "test-admin-key"


@pytest.fixture
def app(loaded_index):
    application = create_app()
    application.dependency_overrides[get_topic_index] = lambda: loaded_index
    yield application
    application.dependency_overrides = {}


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin():
    with patch("topic_index.api.dependencies.settings.admin_api_key", SecretStr(ADMIN_KEY)):
        yield {"x-admin-key": ADMIN_KEY}


def test_health(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["topics"] == 4


class TestSearchRoutes:

    def test_text_search(self, client):
        resp = client.post("/search", json={"query": "mutex"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert [r["id"] for r in data["results"]] == ["mutex-vs-semaphore", "deadlock-conditions"]
        assert data["results"][0]["title"] == "Mutex vs Semaphore"

    def test_facet_search(self, client):
        resp = client.post("/search", json={"facets": {"tags": ["storage"]}})

        assert resp.status_code == 200
        assert [r["id"] for r in resp.json()["results"]] == ["hash-index"]

    def test_invalid_pagination_is_400(self, client):
        resp = client.post("/search", json={"query": "dns", "page": -1})

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_query"

    def test_page_size_above_limit_is_rejected(self, client):
        resp = client.post("/search", json={"query": "dns", "page_size": 10_000})

        assert resp.status_code == 422

    def test_facet_counts(self, client):
        resp = client.get("/facets/language")

        assert resp.status_code == 200
        assert resp.json() == {"bash": 1, "go": 1, "python": 1}


class TestTopicRoutes:

    def test_get_topic(self, client):
        resp = client.get("/topics/dns-working")

        assert resp.status_code == 200
        data = resp.json()
        assert data["keyPoints"][0] == DNS["keyPoints"][0]
        assert data["category"] == "cn"

    def test_get_unknown_topic_is_404(self, client):
        resp = client.get("/topics/nope")

        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    def test_list_topics(self, client):
        resp = client.get("/topics")

        assert resp.json() == sorted(
            ["deadlock-conditions", "dns-working", "hash-index", "mutex-vs-semaphore"]
        )

    def test_mutations_require_admin_key(self, client):
        assert client.put("/topics", json=MUTEX).status_code == 403
        assert client.delete("/topics/hash-index").status_code == 403

        with patch("topic_index.api.dependencies.settings.admin_api_key", SecretStr(ADMIN_KEY)):
            resp = client.delete("/topics/hash-index", headers={"x-admin-key": "wrong"})
        assert resp.status_code == 403

    def test_put_topic(self, client, admin):
        record = {"id": "cap-theorem", "title": "CAP Theorem", "tags": ["distributed"]}
        resp = client.put("/topics", json=record, headers=admin)

        assert resp.status_code == 200
        assert resp.json()["status"] == "updated"
        assert resp.json()["topic_id"] == "cap-theorem"

        search = client.post("/search", json={"query": "cap theorem"})
        assert [r["id"] for r in search.json()["results"]] == ["cap-theorem"]

    def test_put_invalid_topic_reports_violations(self, client, admin):
        resp = client.put("/topics", json={"id": "Bad Id", "title": "x"}, headers=admin)

        assert resp.status_code == 422
        data = resp.json()
        assert data["error"] == "validation_error"
        assert data["violations"][0]["path"] == "id"
        assert data["violations"][0]["rule"] == "identifier.pattern"

    def test_delete_topic(self, client, admin):
        resp = client.delete("/topics/hash-index", headers=admin)

        assert resp.status_code == 200
        assert resp.json()["status"] == "deleted"
        assert client.get("/topics/hash-index").status_code == 404

        assert client.delete("/topics/hash-index", headers=admin).status_code == 404

    def test_rebuild(self, client, admin):
        payload = {"records": [copy.deepcopy(MUTEX), copy.deepcopy(HASH_INDEX)]}
        resp = client.post("/topics/rebuild", json=payload, params={"key": ADMIN_KEY})

        assert resp.status_code == 200
        assert resp.json()["count"] == 2
        assert client.get("/health").json()["topics"] == 2


def test_internal_error_hides_details(app):
    with patch(
        "topic_index.index.snapshot.IndexSnapshot.put",
        side_effect=RuntimeError("secret internals"),
    ), patch("topic_index.api.dependencies.settings.admin_api_key", SecretStr(ADMIN_KEY)):
        with TestClient(app) as c:
            resp = c.put("/topics", json={"id": "x", "title": "X"}, headers={"x-admin-key": ADMIN_KEY})

    assert resp.status_code == 500
    assert "secret internals" not in resp.text


@pytest.mark.asyncio
async def test_async_client_search(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/search", json={"query": '"domain names"'})

    assert resp.status_code == 200
    assert resp.json()["total"] == 1


def test_startup_loads_records_into_overridden_index(tmp_path, index):
    (tmp_path / "storage.json").write_text(json.dumps([HASH_INDEX]), encoding="utf-8")
    application = create_app()
    application.dependency_overrides[get_topic_index] = lambda: index

    with patch("topic_index.main.settings.records_path", str(tmp_path)):
        with TestClient(application) as c:
            assert c.get("/topics").json() == ["hash-index"]

    assert index.topic_ids() == ["hash-index"]


def test_admin_key_compared_in_constant_time(client):
    with patch("topic_index.api.dependencies.settings.admin_api_key", SecretStr(ADMIN_KEY)), \
            patch("topic_index.api.dependencies.secrets.compare_digest", return_value=False) as digest:
        resp = client.delete("/topics/hash-index", headers={"x-admin-key": ADMIN_KEY})

    assert resp.status_code == 403
    digest.assert_called_once_with(ADMIN_KEY.encode(), ADMIN_KEY.encode())
