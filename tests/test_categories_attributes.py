from .conftest import auth_headers


async def _category(client, headers, name, slug, parent_id=None):
    return await client.post(
        "/api/categories",
        json={"name": name, "slug": slug, "parentId": parent_id},
        headers=headers,
    )


async def test_category_tree_is_returned_with_parent_and_children(client, app):
    headers = await auth_headers(client, app)
    parent = (await _category(client, headers, "Clothing", "clothing")).json()["result"]
    response = await _category(client, headers, "Jackets", "jackets", parent["id"])
    assert response.status_code == 201
    child = response.json()["result"]
    assert child["parent"]["id"] == parent["id"]

    response = await client.get(f"/api/categories/{parent['id']}")
    assert response.status_code == 200
    detail = response.json()["result"]
    assert [item["slug"] for item in detail["children"]] == ["jackets"]
    assert detail["parent"] is None


async def test_category_name_and_slug_must_be_unique(client, app):
    headers = await auth_headers(client, app)
    assert (await _category(client, headers, "Clothing", "clothing")).status_code == 201

    response = await _category(client, headers, "Apparel", "clothing")
    assert response.status_code == 409
    assert response.json()["message"] == "Category with this slug already exists"

    response = await _category(client, headers, "Clothing", "apparel")
    assert response.status_code == 409
    assert response.json()["message"] == "Category with this name already exists"


async def test_category_with_unknown_parent_returns_404(client, app):
    headers = await auth_headers(client, app)
    response = await _category(client, headers, "Jackets", "jackets", "missing-parent")
    assert response.status_code == 404
    assert response.json()["message"] == "Parent category not found"


async def test_update_category(client, app):
    headers = await auth_headers(client, app)
    first = (await _category(client, headers, "Clothing", "clothing")).json()["result"]
    second = (await _category(client, headers, "Outdoor", "outdoor")).json()["result"]

    response = await client.put(
        f"/api/categories/{first['id']}", json={"parentId": first["id"]}, headers=headers
    )
    assert response.status_code == 400

    response = await client.put(
        f"/api/categories/{first['id']}", json={"slug": "outdoor"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.put(
        f"/api/categories/{first['id']}",
        json={"name": "Clothes", "parentId": second["id"]},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()["result"]
    assert updated["name"] == "Clothes"
    assert updated["slug"] == "clothing"
    assert updated["parentId"] == second["id"]

    # An explicit null moves the category back to the top level
    response = await client.put(
        f"/api/categories/{first['id']}", json={"parentId": None}, headers=headers
    )
    assert response.json()["result"]["parentId"] is None


async def test_list_categories_is_paginated(client, app):
    headers = await auth_headers(client, app)
    for name in ("Bags", "Clothing", "Shoes"):
        await _category(client, headers, name, name.lower())

    response = await client.get("/api/categories", params={"page": 2, "limit": 2})
    assert response.status_code == 200
    result = response.json()["result"]
    assert [item["name"] for item in result["data"]] == ["Shoes"]
    assert result["meta"] == {"total": 3, "page": 2, "limit": 2, "totalPages": 2}


async def test_delete_categories(client, app):
    headers = await auth_headers(client, app)
    ids = [
        (await _category(client, headers, name, name.lower())).json()["result"]["id"]
        for name in ("Bags", "Clothing", "Shoes")
    ]

    response = await client.delete(f"/api/categories/{ids[0]}", headers=headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/categories/{ids[0]}")).status_code == 404

    response = await client.request(
        "DELETE", "/api/categories", json={"ids": ids}, headers=headers
    )
    assert response.json()["result"] == {"count": 2}


async def test_category_in_use_cannot_be_deleted(client, app):
    headers = await auth_headers(client, app)
    category = (await _category(client, headers, "Shoes", "shoes")).json()["result"]
    response = await client.post(
        "/api/products",
        json={
            "name": "Runner",
            "description": "A shoe for running fast",
            "slug": "runner",
            "categoryId": category["id"],
            "variants": [{"sku": "RUN-1", "price": 10}],
        },
        headers=headers,
    )
    assert response.status_code == 201

    response = await client.delete(f"/api/categories/{category['id']}", headers=headers)
    assert response.status_code == 409


async def test_attribute_crud(client, app):
    headers = await auth_headers(client, app)
    response = await client.post("/api/attributes", json={"name": "Color"}, headers=headers)
    assert response.status_code == 201
    attribute = response.json()["result"]
    assert attribute["values"] == []

    response = await client.post("/api/attributes", json={"name": "Color"}, headers=headers)
    assert response.status_code == 409
    assert response.json()["message"] == "Attribute already exists"

    await client.post("/api/attributes", json={"name": "Size"}, headers=headers)
    response = await client.put(
        f"/api/attributes/{attribute['id']}", json={"name": "Size"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.put(
        f"/api/attributes/{attribute['id']}", json={"name": "Colour"}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["result"]["name"] == "Colour"

    listing = (await client.get("/api/attributes")).json()["result"]
    assert [item["name"] for item in listing["data"]] == ["Colour", "Size"]

    response = await client.delete(f"/api/attributes/{attribute['id']}", headers=headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/attributes/{attribute['id']}")).status_code == 404


async def test_attribute_values_come_from_product_variants(client, app):
    headers = await auth_headers(client, app)
    category = (await _category(client, headers, "Shoes", "shoes")).json()["result"]
    await client.post(
        "/api/products",
        json={
            "name": "Runner",
            "description": "A shoe for running fast",
            "slug": "runner",
            "categoryId": category["id"],
            "variants": [
                {"sku": "RUN-1", "price": 10, "attributes": [{"name": "Size", "value": "42"}]},
                {"sku": "RUN-2", "price": 10, "attributes": [{"name": "Size", "value": "40"}]},
            ],
        },
        headers=headers,
    )

    listing = (await client.get("/api/attributes")).json()["result"]
    (size,) = listing["data"]
    assert [value["value"] for value in size["values"]] == ["40", "42"]


async def test_catalog_reads_are_public_and_writes_are_not(client, app):
    assert (await client.get("/api/categories")).status_code == 200
    assert (await client.get("/api/attributes")).status_code == 200
    response = await client.post("/api/attributes", json={"name": "Color"})
    assert response.status_code == 401


async def test_category_cannot_move_under_its_own_subcategory(client, app):
    headers = await auth_headers(client, app)
    clothing = (await _category(client, headers, "Clothing", "clothing")).json()["result"]
    jackets = (
        await _category(client, headers, "Jackets", "jackets", clothing["id"])
    ).json()["result"]
    parkas = (await _category(client, headers, "Parkas", "parkas", jackets["id"])).json()["result"]

    for descendant in (jackets, parkas):
        response = await client.put(
            f"/api/categories/{clothing['id']}",
            json={"parentId": descendant["id"]},
            headers=headers,
        )
        assert response.status_code == 400
        assert response.json()["message"] == "A category cannot be moved under its own subcategory"

    detail = (await client.get(f"/api/categories/{clothing['id']}")).json()["result"]
    assert detail["parent"] is None
