from .conftest import auth_headers


async def _product(client, headers, category_id, slug):
    response = await client.post(
        "/api/products",
        json={
            "name": slug.replace("-", " ").title(),
            "description": "A product used in collection tests",
            "slug": slug,
            "categoryId": category_id,
            "variants": [{"sku": f"{slug}-sku", "price": 20}],
        },
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["result"]


async def _catalog(client, app):
    headers = await auth_headers(client, app)
    response = await client.post(
        "/api/categories", json={"name": "Home", "slug": "home"}, headers=headers
    )
    category_id = response.json()["result"]["id"]
    products = [await _product(client, headers, category_id, slug) for slug in ("lamp", "vase")]
    return headers, products


async def test_create_collection(client, app):
    headers = await auth_headers(client, app)
    response = await client.post(
        "/api/collections",
        json={
            "name": "Summer Sale",
            "slug": "summer-sale",
            "description": "Hot deals",
            "imageUrl": "https://cdn.example.com/summer.png",
        },
        headers=headers,
    )
    assert response.status_code == 201
    collection = response.json()["result"]
    assert collection["isActive"] is True
    assert collection["imageUrl"] == "https://cdn.example.com/summer.png"
    assert collection["products"] == []

    response = await client.post(
        "/api/collections", json={"name": "Winter", "slug": "summer-sale"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/collections", json={"name": "Summer Sale", "slug": "other"}, headers=headers
    )
    assert response.status_code == 409


async def test_create_collection_requires_staff(client, app):
    customer = await auth_headers(client, app, role="CUSTOMER")
    response = await client.post(
        "/api/collections", json={"name": "Summer", "slug": "summer"}, headers=customer
    )
    assert response.status_code == 403


async def test_add_products_skips_existing_links(client, app):
    headers, products = await _catalog(client, app)
    collection = (
        await client.post(
            "/api/collections", json={"name": "Living", "slug": "living"}, headers=headers
        )
    ).json()["result"]
    url = f"/api/collections/{collection['id']}/products"

    response = await client.post(
        url, json={"productIds": [products[0]["id"], products[0]["id"]]}, headers=headers
    )
    assert response.status_code == 200
    assert [item["id"] for item in response.json()["result"]["products"]] == [products[0]["id"]]

    response = await client.post(
        url, json={"productIds": [item["id"] for item in products]}, headers=headers
    )
    assert response.status_code == 200
    assert {item["slug"] for item in response.json()["result"]["products"]} == {"lamp", "vase"}

    product = (await client.get(f"/api/products/{products[0]['id']}")).json()["result"]
    assert [item["slug"] for item in product["collections"]] == ["living"]


async def test_add_unknown_product_returns_404(client, app):
    headers, products = await _catalog(client, app)
    collection = (
        await client.post(
            "/api/collections", json={"name": "Living", "slug": "living"}, headers=headers
        )
    ).json()["result"]

    response = await client.post(
        f"/api/collections/{collection['id']}/products",
        json={"productIds": [products[0]["id"], "nope"]},
        headers=headers,
    )
    assert response.status_code == 404
    assert response.json()["errors"] == {"productIds": ["nope"]}

    detail = (await client.get(f"/api/collections/{collection['id']}")).json()["result"]
    assert detail["products"] == []

    response = await client.post(
        "/api/collections/missing/products",
        json={"productIds": [products[0]["id"]]},
        headers=headers,
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Collection not found"


async def test_list_update_and_delete_collection(client, app):
    headers = await auth_headers(client, app)
    for name in ("Spring", "Autumn"):
        await client.post(
            "/api/collections", json={"name": name, "slug": name.lower()}, headers=headers
        )

    listing = (await client.get("/api/collections")).json()["result"]
    assert listing["meta"]["total"] == 2
    assert [item["slug"] for item in listing["data"]] == ["autumn", "spring"]
    autumn_id = listing["data"][0]["id"]

    response = await client.put(
        f"/api/collections/{autumn_id}",
        json={"isActive": False, "name": None, "description": "Leaves"},
        headers=headers,
    )
    assert response.status_code == 200
    updated = response.json()["result"]
    assert updated["isActive"] is False
    assert updated["name"] == "Autumn"
    assert updated["description"] == "Leaves"

    response = await client.put(
        f"/api/collections/{autumn_id}", json={"slug": "spring"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.delete(f"/api/collections/{autumn_id}", headers=headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/collections/{autumn_id}")).status_code == 404


async def test_deleting_collection_keeps_products(client, app):
    headers, products = await _catalog(client, app)
    collection = (
        await client.post(
            "/api/collections", json={"name": "Living", "slug": "living"}, headers=headers
        )
    ).json()["result"]
    await client.post(
        f"/api/collections/{collection['id']}/products",
        json={"productIds": [products[0]["id"]]},
        headers=headers,
    )

    await client.delete(f"/api/collections/{collection['id']}", headers=headers)
    product = (await client.get(f"/api/products/{products[0]['id']}")).json()["result"]
    assert product["collections"] == []
