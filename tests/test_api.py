NEW_PRODUCT = {
    "name": "Bamboo Cutting Board",
    "sku": "BC-100",
    "category": "Other",
    "description": "Large bamboo board",
    "location": "Aisle 9",
    "quantity": 8,
    "min_quantity": 15,
    "unit_cost": 10.0,
    "selling_price": 20.0,
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_products_newest_first(client, auth_headers):
    response = client.get("/api/products", headers=auth_headers)
    assert response.status_code == 200
    payload = response.json()
    assert payload["total"] == 6
    assert payload["items"][0]["sku"] == "DL-006"
    assert payload["items"][-1]["sku"] == "WH-001"


def test_list_products_filters_and_pagination(client, auth_headers):
    search = client.get("/api/products", headers=auth_headers, params={"search": "lamp"}).json()
    assert [item["sku"] for item in search["items"]] == ["DL-006"]

    low = client.get("/api/products", headers=auth_headers, params={"status": "Low Stock"}).json()
    assert {item["sku"] for item in low["items"]} == {"GT-002", "DL-006"}

    sports = client.get("/api/products", headers=auth_headers, params={"category": "Sports"}).json()
    assert [item["name"] for item in sports["items"]] == ["Yoga Mat"]

    page = client.get("/api/products", headers=auth_headers, params={"page": 2, "page_size": 4}).json()
    assert page["total"] == 6
    assert len(page["items"]) == 2
    assert page["page"] == 2


def test_create_product_derives_status(client, auth_headers):
    created = client.post(
        "/api/products",
        headers=auth_headers,
        json={**NEW_PRODUCT, "status": "In Stock"},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "Low Stock"
    assert body["location"] == "Aisle 9"

    fetched = client.get(f"/api/products/{body['id']}", headers=auth_headers)
    assert fetched.status_code == 200
    assert fetched.json()["sku"] == "BC-100"


def test_create_rejects_duplicate_sku_and_bad_numbers(client, auth_headers):
    duplicate = client.post("/api/products", headers=auth_headers, json={**NEW_PRODUCT, "sku": "YM-005"})
    assert duplicate.status_code == 409
    assert "YM-005" in duplicate.json()["detail"]

    invalid = client.post("/api/products", headers=auth_headers, json={**NEW_PRODUCT, "unit_cost": 0})
    assert invalid.status_code == 422

    negative = client.post("/api/products", headers=auth_headers, json={**NEW_PRODUCT, "quantity": -1})
    assert negative.status_code == 422


def test_update_recomputes_status(client, auth_headers):
    product_id = client.post("/api/products", headers=auth_headers, json=NEW_PRODUCT).json()["id"]

    restocked = client.put(f"/api/products/{product_id}", headers=auth_headers, json={"quantity": 40})
    assert restocked.status_code == 200
    assert restocked.json()["status"] == "In Stock"

    emptied = client.put(f"/api/products/{product_id}", headers=auth_headers, json={"quantity": 0})
    assert emptied.json()["status"] == "Out of Stock"

    conflict = client.put(f"/api/products/{product_id}", headers=auth_headers, json={"sku": "WH-001"})
    assert conflict.status_code == 409

    missing = client.put("/api/products/9999", headers=auth_headers, json={"quantity": 1})
    assert missing.status_code == 404


def test_delete_is_soft(client, auth_headers):
    product_id = client.post("/api/products", headers=auth_headers, json=NEW_PRODUCT).json()["id"]

    deleted = client.delete(f"/api/products/{product_id}", headers=auth_headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"id": product_id, "is_deleted": True}

    assert client.get(f"/api/products/{product_id}", headers=auth_headers).status_code == 404
    assert client.delete(f"/api/products/{product_id}", headers=auth_headers).status_code == 404
    assert client.get("/api/products", headers=auth_headers).json()["total"] == 6


def test_stats(client, auth_headers):
    stats = client.get("/api/stats", headers=auth_headers).json()
    assert stats == {"total_items": 6, "low_stock": 2, "out_of_stock": 1, "recently_added": 3}

    client.post("/api/products", headers=auth_headers, json=NEW_PRODUCT)
    stats = client.get("/api/stats", headers=auth_headers).json()
    assert stats["total_items"] == 7
    assert stats["low_stock"] == 3
    assert stats["recently_added"] == 4


def test_filter_endpoint(client, auth_headers):
    yoga = client.get("/api/products/filter", headers=auth_headers, params={"q": "yoga"}).json()
    assert [item["sku"] for item in yoga["items"]] == ["YM-005"]

    everything = client.get("/api/products/filter", headers=auth_headers).json()
    assert len(everything["items"]) == 6


def test_unknown_api_path_returns_json_404(client):
    response = client.get("/api/nope")
    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}


def test_quantities_are_bounded_to_the_integer_column(client, auth_headers):
    huge = client.post("/api/products", headers=auth_headers, json={**NEW_PRODUCT, "quantity": 10**20})
    assert huge.status_code == 422

    product_id = client.get("/api/products", headers=auth_headers).json()["items"][0]["id"]
    updated = client.put(
        f"/api/products/{product_id}",
        headers=auth_headers,
        json={"min_quantity": 2**31},
    )
    assert updated.status_code == 422


def test_search_treats_wildcards_literally(client, auth_headers):
    for term in ("_", "%"):
        result = client.get("/api/products", headers=auth_headers, params={"search": term}).json()
        assert result["total"] == 0
        assert result["items"] == []
