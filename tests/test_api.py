"""HTTP contract tests for the JSON API and the rendered pages."""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from duka import create_app
from duka.core.config import AppSettings


@pytest.fixture()
def client(tmp_path):
    # StaticPool keeps one in-memory database visible to every worker thread.
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    settings = AppSettings(DATA_DIR=tmp_path, SEED_CATALOG=False)
    app = create_app(settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client
    engine.dispose()


def _seed_item(client, **fields):
    cat = client.post("/api/categories", json={"name": fields.pop("category", "Beverages")}).json()
    sub = client.post(
        "/api/subcategories",
        json={"category_id": cat["id"], "name": fields.pop("subcategory", "Sodas")},
    ).json()
    payload = {"subcategory_id": sub["id"], "name": fields.pop("name", "Cola")}
    payload.update(fields)
    resp = client.post("/api/items", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()["id"]


def test_health_endpoint(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert resp.headers["X-Request-ID"]


def test_category_create_and_list(client):
    resp = client.post("/api/categories", json={"name": "Stationary"})
    assert resp.status_code == 201
    body = resp.json()
    assert body == {"id": body["id"], "name": "Stationary"}

    client.post("/api/categories", json={"name": "Books"})
    names = [c["name"] for c in client.get("/api/categories").json()]
    assert names == ["Books", "Stationary"]


def test_category_validation_and_conflict(client):
    resp = client.post("/api/categories", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"

    client.post("/api/categories", json={"name": "Books"})
    resp = client.post("/api/categories", json={"name": "Books"})
    assert resp.status_code == 409
    assert resp.json()["code"] == "conflict"


def test_subcategory_endpoints(client):
    books = client.post("/api/categories", json={"name": "Books"}).json()
    flours = client.post("/api/categories", json={"name": "Flours"}).json()
    a4 = client.post("/api/subcategories", json={"category_id": books["id"], "name": "A4"})
    assert a4.status_code == 201
    assert a4.json()["name"] == "A4"
    client.post("/api/subcategories", json={"category_id": flours["id"], "name": "Maize Flour"})

    filtered = client.get("/api/subcategories", params={"category_id": books["id"]}).json()
    assert [s["name"] for s in filtered] == ["A4"]
    assert len(client.get("/api/subcategories").json()) == 2

    one = client.get(f"/api/subcategories/{a4.json()['id']}")
    assert one.status_code == 200
    assert one.json()["category_name"] == "Books"
    assert client.get("/api/subcategories/999").status_code == 404


def test_subcategory_requires_name(client):
    books = client.post("/api/categories", json={"name": "Books"}).json()
    assert client.post("/api/subcategories", json={"category_id": books["id"], "name": " "}).status_code == 400
    assert client.post("/api/subcategories", json={"category_id": books["id"]}).status_code == 400
    assert client.post("/api/subcategories", json={"category_id": 999, "name": "A5"}).status_code == 404


def test_items_list_is_enriched(client):
    item_id = _seed_item(client, bales_count=10, units_per_bale=24, landing_price=40, selling_price=50)

    rows = client.get("/api/items").json()
    assert len(rows) == 1
    row = rows[0]
    assert row["id"] == item_id
    assert row["total_units"] == 240
    assert row["category_name"] == "Beverages"
    assert row["subcategory_name"] == "Sodas"
    assert row["health_status"] == "strong"
    assert row["health_color"] == "blue"
    assert row["health_percentage"] == "100.0"
    assert row["profit_margin"] == "25.0"


def test_item_create_rejects_negative_numbers(client):
    cat = client.post("/api/categories", json={"name": "Beverages"}).json()
    sub = client.post("/api/subcategories", json={"category_id": cat["id"], "name": "Sodas"}).json()
    resp = client.post("/api/items", json={"subcategory_id": sub["id"], "name": "Cola", "bales_count": -1})
    assert resp.status_code == 400
    resp = client.post("/api/items", json={"subcategory_id": sub["id"], "name": "Cola", "unit_price": "cheap"})
    assert resp.status_code == 400


def test_item_update_returns_recomputed_row(client):
    item_id = _seed_item(client, bales_count=2, units_per_bale=10)

    resp = client.put(f"/api/items/{item_id}", json={"total_units": 5})
    assert resp.status_code == 200
    body = resp.json()
    assert body["total_units"] == 5
    assert body["health_status"] == "weak"
    assert body["health_color"] == "orange"
    assert body["health_percentage"] == "25.0"
    assert body["name"] == "Cola"


def test_item_update_errors(client):
    item_id = _seed_item(client)
    assert client.put(f"/api/items/{item_id}", json={}).status_code == 400
    assert client.put(f"/api/items/{item_id}", json={"nickname": "fizz"}).status_code == 400
    assert client.put("/api/items/999", json={"total_units": 3}).status_code == 404


def test_sale_flow(client):
    item_id = _seed_item(client, bales_count=1, units_per_bale=10, unit_price=30)

    resp = client.post("/api/sales", json={"item_id": item_id, "type": "unit", "quantity": 3, "price": 35})
    assert resp.status_code == 201
    receipt = resp.json()
    assert receipt["item_id"] == item_id
    assert receipt["type"] == "unit"
    assert receipt["quantity"] == 3
    assert receipt["price"] == pytest.approx(35.0)
    assert receipt["total_amount"] == pytest.approx(105.0)
    assert receipt["units_deducted"] == 3

    item = client.get(f"/api/items/{item_id}").json()
    assert item["total_units"] == 7

    sale = client.get(f"/api/sales/{receipt['sale_id']}").json()
    assert sale["item_name"] == "Cola"
    assert sale["category_name"] == "Beverages"

    listed = client.get("/api/sales", params={"item_id": item_id}).json()
    assert [s["id"] for s in listed] == [receipt["sale_id"]]
    assert listed[0]["subcategory_name"] == "Sodas"

    raw = client.get(f"/api/sales/item/{item_id}").json()
    assert raw[0]["id"] == receipt["sale_id"]
    assert "item_name" not in raw[0]


def test_sale_insufficient_stock(client):
    item_id = _seed_item(client, bales_count=2, units_per_bale=4, total_units=5)

    resp = client.post("/api/sales", json={"item_id": item_id, "type": "bale", "quantity": 2, "price": 100})
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "insufficient_stock"
    assert body["details"] == {"available": 5, "requested": 8}
    assert client.get(f"/api/items/{item_id}").json()["total_units"] == 5
    assert client.get("/api/sales").json() == []


@pytest.mark.parametrize(
    "payload",
    [
        {"type": "unit", "quantity": 1, "price": 10},
        {"item_id": 1, "type": "crate", "quantity": 1, "price": 10},
        {"item_id": 1, "type": "unit", "quantity": 0, "price": 10},
        {"item_id": 1, "type": "unit", "quantity": "lots", "price": 10},
        {"item_id": 1, "type": "unit", "quantity": 1, "price": -5},
    ],
)
def test_sale_validation_errors(client, payload):
    _seed_item(client, total_units=10)
    resp = client.post("/api/sales", json=payload)
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"


def _post_raw(client, url, body, method="POST"):
    return client.request(method, url, content=body, headers={"Content-Type": "application/json"})


def test_sale_with_overflowing_price_rejected(client):
    item_id = _seed_item(client, total_units=10, unit_price=30)

    body = '{"item_id": %d, "type": "unit", "quantity": 3, "price": 1e309}' % item_id
    resp = _post_raw(client, "/api/sales", body)

    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"
    assert client.get(f"/api/items/{item_id}").json()["total_units"] == 10
    assert client.get("/api/sales").json() == []


def test_item_prices_must_be_finite(client):
    item_id = _seed_item(client, total_units=10, unit_price=30)
    sub_id = client.get(f"/api/items/{item_id}").json()["subcategory_id"]

    body = '{"subcategory_id": %d, "name": "Sprite", "unit_price": 1e309}' % sub_id
    resp = _post_raw(client, "/api/items", body)
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_error"

    resp = _post_raw(client, f"/api/items/{item_id}", '{"selling_price": -1e309}', method="PUT")
    assert resp.status_code == 400

    names = [item["name"] for item in client.get("/api/items").json()]
    assert names == ["Cola"]
    assert client.get(f"/api/items/{item_id}").json()["selling_price"] == 0


def test_sale_missing_item(client):
    resp = client.post("/api/sales", json={"item_id": 999, "type": "unit", "quantity": 1, "price": 10})
    assert resp.status_code == 404
    assert resp.json()["message"] == "Item not found"
    assert client.get("/api/sales/999").status_code == 404


def test_sales_list_limit_validated(client):
    assert client.get("/api/sales", params={"limit": 0}).status_code == 400
    assert client.get("/api/sales", params={"limit": "ten"}).status_code == 400


def test_delete_category_cascades_over_http(client):
    _seed_item(client)
    category_id = client.get("/api/categories").json()[0]["id"]

    resp = client.delete(f"/api/categories/{category_id}")
    assert resp.status_code == 200
    assert client.get("/api/items").json() == []
    assert client.get("/api/subcategories").json() == []
    assert client.delete(f"/api/categories/{category_id}").status_code == 404


def test_delete_blocked_when_sales_exist(client):
    item_id = _seed_item(client, total_units=5)
    client.post("/api/sales", json={"item_id": item_id, "type": "unit", "quantity": 1, "price": 10})
    category_id = client.get("/api/categories").json()[0]["id"]

    resp = client.delete(f"/api/categories/{category_id}")
    assert resp.status_code == 409
    assert len(client.get("/api/items").json()) == 1


def test_pages_render(client):
    item_id = _seed_item(client, name="Fanta Orange", total_units=4, unit_price=50)
    client.post("/api/sales", json={"item_id": item_id, "type": "unit", "quantity": 1, "price": 50})

    index = client.get("/")
    assert index.status_code == 200
    assert "Fanta Orange" in index.text
    assert "KSh 150" in index.text

    audit = client.get("/audit")
    assert audit.status_code == 200
    assert "sell-modal" in audit.text
    assert "Fanta Orange" in audit.text


def test_markup_in_names_is_escaped(client):
    _seed_item(client, name='<img src=x onerror="alert(1)">', total_units=2)

    audit = client.get("/audit")
    assert "<img src=x" not in audit.text
    assert "&lt;img src=x" in audit.text

    # The audit script re-renders both tables from the API on load and after
    # each sale; rows are built from text nodes, never from markup strings.
    script = client.get("/static/script.js")
    assert script.status_code == 200
    assert "tr.innerHTML" not in script.text
    assert "td.textContent = text" in script.text
    assert "refreshSalesTable()" in script.text
