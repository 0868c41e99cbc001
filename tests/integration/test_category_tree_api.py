"""
Integration tests for the category tree HTTP API.

Tests run the full FastAPI application (in-memory store) through
TestClient and cover:
- The create -> update -> get -> delete -> get lifecycle
- Status codes, Location, alert and pagination headers
- Error bodies and failure alert headers for invalid identifiers
- Store failure mapping
- Health, readiness and metrics endpoints
- Correlation IDs on unexpected failures and bounded metric labels
"""

import pytest
from fastapi.testclient import TestClient

from resource_api.src.config import Settings
from resource_api.src.errors import StoreError
from resource_api.src.main import create_app
from resource_api.src.models.entity import CategoryTree
from resource_api.src.repositories.memory_store import InMemoryEntityStore


BASE = "/api/category-trees"


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def settings():
    return Settings(
        store_backend="memory",
        client_app_name="icamApi",
        environment="development",
        pagination_default_size=20,
    )


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as test_client:
        yield test_client


def create(client, name):
    response = client.post(BASE, json={"name": name})
    assert response.status_code == 201
    return response.json()


# ============================================================================
# LIFECYCLE
# ============================================================================


class TestCategoryTreeLifecycle:
    """End-to-end CRUD scenario."""

    def test_full_lifecycle(self, client):
        created = client.post(BASE, json={"name": "A"})

        assert created.status_code == 201
        entity_id = created.json()["id"]
        assert entity_id is not None
        assert created.headers["Location"].endswith(f"/category-trees/{entity_id}")

        updated = client.put(BASE, json={"id": entity_id, "name": "B"})
        assert updated.status_code == 200
        assert updated.json()["name"] == "B"

        fetched = client.get(f"{BASE}/{entity_id}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "B"

        deleted = client.delete(f"{BASE}/{entity_id}")
        assert deleted.status_code == 204

        missing = client.get(f"{BASE}/{entity_id}")
        assert missing.status_code == 404
        assert missing.content == b""

    def test_mutation_alert_headers(self, client):
        created = client.post(BASE, json={"name": "A"})
        entity_id = created.json()["id"]

        assert created.headers["X-icamApi-alert"] == (
            f"A new icamApiCategoryTree is created with identifier {entity_id}"
        )
        assert created.headers["X-icamApi-params"] == str(entity_id)

        updated = client.put(BASE, json={"id": entity_id, "name": "B"})
        assert updated.headers["X-icamApi-params"] == str(entity_id)

        deleted = client.delete(f"{BASE}/{entity_id}")
        assert deleted.headers["X-icamApi-alert"] == (
            f"A icamApiCategoryTree is deleted with identifier {entity_id}"
        )

    def test_extra_fields_round_trip(self, client):
        created = client.post(BASE, json={"name": "A", "parentId": 7})

        fetched = client.get(f"{BASE}/{created.json()['id']}")

        assert fetched.json()["parentId"] == 7

    def test_get_never_created_returns_404(self, client):
        response = client.get(f"{BASE}/987654")

        assert response.status_code == 404
        assert response.content == b""

    def test_delete_is_idempotent(self, client):
        entity_id = create(client, "A")["id"]

        assert client.delete(f"{BASE}/{entity_id}").status_code == 204
        assert client.delete(f"{BASE}/{entity_id}").status_code == 204
        assert client.delete(f"{BASE}/424242").status_code == 204

    def test_correlation_id_is_echoed(self, client):
        response = client.get(f"{BASE}/1", headers={"X-Correlation-ID": "abc-123"})

        assert response.headers["X-Correlation-ID"] == "abc-123"


# ============================================================================
# VALIDATION
# ============================================================================


class TestIdentifierValidation:
    """Tests for idexists / idnull rejections."""

    def test_create_with_id_returns_400(self, client):
        response = client.post(BASE, json={"id": 5, "name": "A"})

        assert response.status_code == 400
        body = response.json()
        assert body["entityName"] == "icamApiCategoryTree"
        assert body["errorKey"] == "idexists"
        assert body["message"] == "error.idexists"
        assert response.headers["X-icamApi-error"] == "error.idexists"
        assert response.headers["X-icamApi-params"] == "icamApiCategoryTree"

        # Nothing was persisted
        assert client.get(BASE).headers["X-Total-Count"] == "0"

    def test_update_without_id_returns_400(self, client):
        response = client.put(BASE, json={"name": "A"})

        assert response.status_code == 400
        assert response.json()["errorKey"] == "idnull"
        assert client.get(BASE).headers["X-Total-Count"] == "0"

    def test_non_integer_id_is_a_validation_error(self, client):
        response = client.get(f"{BASE}/not-a-number")

        assert response.status_code == 422


# ============================================================================
# PAGINATION
# ============================================================================


class TestListing:
    """Tests for paged listing."""

    def test_page_size_bounds_results_but_not_total(self, client):
        for i in range(7):
            create(client, f"tree-{i}")

        for size in (1, 3, 7, 50):
            response = client.get(BASE, params={"page": 0, "size": size})

            assert response.status_code == 200
            assert len(response.json()) == min(size, 7)
            assert response.headers["X-Total-Count"] == "7"

    def test_link_header(self, client):
        for i in range(5):
            create(client, f"tree-{i}")

        response = client.get(BASE, params={"page": 1, "size": 2})
        link = response.headers["Link"]

        assert 'page=2&size=2>; rel="next"' in link
        assert 'page=0&size=2>; rel="prev"' in link
        assert 'page=2&size=2>; rel="last"' in link
        assert 'page=0&size=2>; rel="first"' in link

    def test_default_page_size(self, client):
        for i in range(25):
            create(client, f"tree-{i}")

        response = client.get(BASE)

        assert len(response.json()) == 20
        assert response.headers["X-Total-Count"] == "25"

    def test_sort_descending(self, client):
        for name in ["b", "c", "a"]:
            create(client, name)

        response = client.get(BASE, params={"sort": "name,desc"})

        assert [e["name"] for e in response.json()] == ["c", "b", "a"]

    def test_unknown_sort_property_is_ignored(self, client):
        for name in ["b", "a"]:
            create(client, name)

        response = client.get(BASE, params={"sort": "nonexistent,desc"})

        assert response.status_code == 200
        assert [e["name"] for e in response.json()] == ["b", "a"]


# ============================================================================
# FAILURES
# ============================================================================


class BrokenStore(InMemoryEntityStore):
    """Store that fails on every write."""

    async def save(self, entity):
        raise StoreError("connection refused")


class ConflictingStore(InMemoryEntityStore):
    """Store that reports a constraint violation."""

    async def save(self, entity):
        raise StoreError("duplicate key", status_code=409)


class TestStoreFailures:
    """Tests for store failure mapping."""

    def test_store_error_maps_to_500(self, settings):
        app = create_app(settings, stores={"category-trees": BrokenStore(CategoryTree)})

        with TestClient(app) as client:
            response = client.post(BASE, json={"name": "A"})

        assert response.status_code == 500
        assert response.json() == {"detail": "connection refused"}

    def test_store_specific_status_is_kept(self, settings):
        app = create_app(settings, stores={"category-trees": ConflictingStore(CategoryTree)})

        with TestClient(app) as client:
            response = client.put(BASE, json={"id": 1, "name": "A"})

        assert response.status_code == 409


# ============================================================================
# OPERATIONAL ENDPOINTS
# ============================================================================


class TestOperationalEndpoints:
    """Tests for health, readiness and metrics."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_ready_with_memory_store(self, client):
        response = client.get("/ready")

        assert response.status_code == 200
        assert response.json()["checks"] == {"category-trees": "healthy"}

    def test_metrics_expose_entity_operations(self, client):
        create(client, "A")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "entity_operations_total" in response.text
        assert 'operation="create"' in response.text

    def test_metrics_disabled(self):
        app = create_app(Settings(metrics_enabled=False))

        with TestClient(app) as client:
            assert client.get("/metrics").status_code == 404

    def test_two_apps_do_not_share_registries(self, settings):
        first = create_app(settings)
        second = create_app(settings)

        assert first.state.metrics.registry is not second.state.metrics.registry


# ============================================================================
# UNEXPECTED ERRORS
# ============================================================================


class ExplodingStore(InMemoryEntityStore):
    """Store that fails with an unexpected error on lookups."""

    async def find_by_id(self, entity_id):
        raise RuntimeError("socket closed")


class TestUnexpectedErrors:
    """Tests for failures outside the store error taxonomy."""

    @pytest.fixture
    def exploding_client(self, settings):
        app = create_app(settings, stores={"category-trees": ExplodingStore(CategoryTree)})
        with TestClient(app) as test_client:
            yield test_client

    def test_unexpected_error_maps_to_500(self, exploding_client):
        response = exploding_client.get(f"{BASE}/1")

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}

    def test_unexpected_error_keeps_correlation_id(self, exploding_client):
        response = exploding_client.get(f"{BASE}/1", headers={"X-Correlation-ID": "abc"})

        assert response.headers["X-Correlation-ID"] == "abc"

    def test_unexpected_error_generates_correlation_id(self, exploding_client):
        response = exploding_client.get(f"{BASE}/1")

        assert response.headers["X-Correlation-ID"]


# ============================================================================
# MIXED WRITES
# ============================================================================


class TestExplicitIdUpsert:
    """Tests for updates that introduce ids the store has never assigned."""

    def test_create_after_upsert_of_unknown_id_succeeds(self, client):
        upserted = client.put(BASE, json={"id": 3, "name": "imported"})
        assert upserted.status_code == 200

        ids = [create(client, f"tree-{i}")["id"] for i in range(3)]

        assert len(set(ids)) == 3
        assert 3 not in ids
        assert client.get(f"{BASE}/3").json()["name"] == "imported"
        assert client.get(BASE).headers["X-Total-Count"] == "4"


# ============================================================================
# METRIC LABELS
# ============================================================================


def endpoint_labels(app, collector_name):
    collector = getattr(app.state.metrics, collector_name)
    return {
        sample.labels["endpoint"]
        for metric in collector.collect()
        for sample in metric.samples
        if "endpoint" in sample.labels
    }


class TestMetricLabels:
    """Tests that HTTP metric labels stay bounded."""

    @pytest.mark.parametrize(
        "collector_name",
        ["http_requests_in_progress", "http_requests_total", "http_request_duration_seconds"],
    )
    def test_entity_ids_do_not_create_new_series(self, settings, collector_name):
        app = create_app(settings)

        with TestClient(app) as client:
            for i in range(50):
                client.get(f"{BASE}/{i}")

        assert endpoint_labels(app, collector_name) == {"/api/category-trees/{entity_id}"}

    def test_unknown_paths_share_one_label(self, settings):
        app = create_app(settings)

        with TestClient(app) as client:
            for i in range(10):
                assert client.get(f"/nowhere/{i}").status_code == 404

        assert endpoint_labels(app, "http_requests_in_progress") == {"unmatched"}


# ============================================================================
# APPLICATION FACTORY
# ============================================================================


class TestApplicationFactory:
    """Smoke tests for importing and assembling the application."""

    def test_main_module_builds_app_with_resource_routes(self):
        from resource_api.src import main

        app = main.create_app(Settings())
        paths = {route.path for route in app.routes}

        assert {"/api/category-trees", "/api/category-trees/{entity_id}"} <= paths
        assert {"/health", "/ready", "/metrics"} <= paths

    def test_resource_registry_is_exposed_on_app_state(self):
        app = create_app(Settings())

        assert [resource.path for resource in app.state.resources] == ["category-trees"]
