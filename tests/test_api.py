import pytest

from conftest import FakeResponse


def register(client, store_id="S1", url="http://north:3000", **extra):
    body = {"storeId": store_id, "name": f"Store {store_id}", "url": url, **extra}
    return client.post("/api/stores/register", json=body)


class TestMeta:
    def test_health(self, client):
        resp = client.get("/api/health")

        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    def test_smoke(self, client):
        assert client.get("/api/test").json()["success"] is True

    def test_unknown_api_path_lists_endpoints(self, client):
        resp = client.get("/api/nope")

        assert resp.status_code == 404
        body = resp.json()
        assert body["error"] == "API endpoint not found"
        assert "GET /api/products" in body["availableEndpoints"]

    def test_unknown_page(self, client):
        resp = client.get("/somewhere")

        assert resp.status_code == 404
        assert resp.json() == {"error": "Page not found", "path": "/somewhere"}


class TestStoreRoutes:
    def test_register_and_list(self, client, http):
        http.route("GET", "http://north:3000/api/debug", FakeResponse(200, {}))

        resp = register(client)

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["store"]["connectivity"] == "good"
        assert body["totalStores"] == 1

        stores = client.get("/api/stores").json()
        assert [(s["storeId"], s["status"]) for s in stores] == [("S1", "online")]
        assert "connectivity" not in stores[0]

    def test_register_missing_url(self, client):
        resp = client.post("/api/stores/register", json={"storeId": "S1", "name": "North"})

        assert resp.status_code == 400
        assert resp.json()["error"] == "Missing required fields"
        assert "url" in resp.json()["details"]

    def test_register_rejects_non_object(self, client):
        resp = client.post("/api/stores/register", json=["S1"])

        assert resp.status_code == 400
        assert "error" in resp.json()

    def test_status_goes_offline(self, client, clock):
        register(client)
        clock.advance(minutes=11)

        assert client.get("/api/stores").json()[0]["status"] == "offline"
        debug = client.get("/api/debug/stores").json()
        assert debug["totalStores"] == 1
        assert debug["onlineStores"] == 0
        assert debug["stores"][0]["minutesSinceLastSeen"] == 11

    def test_manual_add(self, client, records):
        register(client, phone="555")

        resp = client.post("/api/stores/manual-add", json={"storeId": "S1", "name": "Fixed", "extra": "dropped"})

        assert resp.status_code == 200
        store = resp.json()["store"]
        assert store["name"] == "Fixed"
        assert "phone" not in store
        assert "extra" not in records.load("stores")[0]

    def test_manual_add_requires_name(self, client):
        resp = client.post("/api/stores/manual-add", json={"storeId": "S1"})

        assert resp.status_code == 400


class TestCatalogRoutes:
    @pytest.fixture
    def stores(self, client, http):
        register(client, "A", url="http://a:3000")
        register(client, "B", url="http://b:3000")
        http.route("GET", "http://a:3000/api/products", FakeResponse(200, [{"id": "a1", "name": "Blue Shirt", "category": "Clothing"}]))
        http.route("GET", "http://b:3000/api/products", FakeResponse(502))

    def test_sync_one(self, client, stores):
        resp = client.post("/api/stores/A/sync-products")

        assert resp.status_code == 200
        assert resp.json() == {"success": True, "productsCount": 1, "store": "Store A"}

    def test_sync_one_upstream_failure(self, client, stores):
        resp = client.post("/api/stores/B/sync-products")

        assert resp.status_code == 500
        assert resp.json()["error"].startswith("Failed to sync products")
        assert "502" in resp.json()["details"]

    def test_sync_one_unknown_store(self, client):
        resp = client.post("/api/stores/ghost/sync-products")

        assert resp.status_code == 404
        assert resp.json()["error"] == "Store not found"

    def test_sync_all_then_browse(self, client, stores):
        resp = client.post("/api/stores/sync-all")

        body = resp.json()
        assert resp.status_code == 200
        assert (body["syncedStores"], body["totalProducts"]) == (1, 1)
        assert body["failedStores"][0]["storeId"] == "B"

        assert [p["id"] for p in client.get("/api/products", params={"search": "shirt"}).json()] == ["a1"]
        assert client.get("/api/products", params={"storeId": "B"}).json() == []
        assert client.get("/api/products", params={"category": "all"}).json()[0]["storeId"] == "A"
        assert client.get("/api/categories").json() == ["Clothing"]


class TestOrderRoutes:
    ORDER = {"storeId": "S1", "items": [{"productId": "a1", "quantity": 1}], "customer": {"name": "Lina"}}

    def test_create_forwards_in_background(self, client, http):
        register(client)
        http.route("POST", "http://north:3000/api/orders", FakeResponse(201, {}))

        resp = client.post("/api/orders", json=self.ORDER)

        assert resp.status_code == 201
        order = resp.json()["order"]
        assert order["status"] == "pending"
        assert order["storeName"] == "Store S1"
        assert http.calls_to("POST", "http://north:3000/api/orders")[0][2]["json"] == order

    def test_create_succeeds_when_store_is_down(self, client, records):
        register(client)

        resp = client.post("/api/orders", json=self.ORDER)

        assert resp.status_code == 201
        assert len(records.load("orders")) == 1

    def test_create_validation_and_not_found(self, client, records):
        register(client)

        assert client.post("/api/orders", json={"storeId": "S1"}).status_code == 400
        assert client.post("/api/orders", json={**self.ORDER, "storeId": "ghost"}).status_code == 404
        assert records.load("orders") == []

    def test_update_status_and_list(self, client, clock):
        register(client)
        first = client.post("/api/orders", json=self.ORDER).json()["order"]
        clock.advance(seconds=5)
        second = client.post("/api/orders", json=self.ORDER).json()["order"]

        resp = client.put(f"/api/orders/{first['orderId']}/status", json={"status": "ready", "notes": "bag 4", "storeId": "S1"})

        assert resp.status_code == 200
        assert resp.json()["order"]["status"] == "ready"
        listed = client.get("/api/orders").json()
        assert [o["orderId"] for o in listed] == [second["orderId"], first["orderId"]]
        ready = client.get("/api/orders", params={"status": "ready", "storeId": "S1"}).json()
        assert [o["notes"] for o in ready] == ["bag 4"]

    def test_empty_items_and_numeric_store_id(self, client, records):
        client.post("/api/stores/register", json={"storeId": 7, "name": "Seven", "url": "http://seven:3000"})

        resp = client.post("/api/orders", json={"storeId": 7, "items": [], "customer": {}})

        assert resp.status_code == 201
        assert resp.json()["order"]["storeId"] == "7"
        assert len(records.load("orders")) == 1

    def test_forwarding_can_be_disabled(self, client, http):
        from backend.app.config import HubConfig
        from backend.app.deps import get_config
        from backend.app.main import app

        register(client)
        http.route("POST", "http://north:3000/api/orders", FakeResponse(201, {}))
        app.dependency_overrides[get_config] = lambda: HubConfig(forward_orders=False)

        resp = client.post("/api/orders", json=self.ORDER)

        assert resp.status_code == 201
        assert http.calls_to("POST", "http://north:3000/api/orders") == []

    @pytest.mark.parametrize("status", [0, {}, []])
    def test_status_must_be_a_string(self, client, records, status):
        register(client)
        order = client.post("/api/orders", json=self.ORDER).json()["order"]

        resp = client.put(f"/api/orders/{order['orderId']}/status", json={"status": status})

        assert resp.status_code == 400
        assert records.load("orders")[0]["status"] == "pending"

    def test_update_unknown_order(self, client):
        resp = client.put("/api/orders/MAIN-ORD-0/status", json={"status": "ready"})

        assert resp.status_code == 404
        assert resp.json()["error"] == "Order not found"


def test_unexpected_error_is_500(client, records, monkeypatch):
    def broken(collection):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(records, "load", broken)

    resp = client.get("/api/orders")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error", "details": "disk on fire"}
