from sqlalchemy import func, select

from storefront import models

from .conftest import auth_headers


async def _create_category(client, headers, name="Shoes", slug="shoes", parent_id=None):
    response = await client.post(
        "/api/categories",
        json={"name": name, "slug": slug, "parentId": parent_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()["result"]


async def _create_media(app, count: int) -> list[str]:
    async with app.state.database.session_factory() as session:
        records = [
            models.Media(
                file_name=f"image-{index}.png",
                url=f"https://ik.example/image-{index}.png",
                file_type=models.MediaType.IMAGE.value,
                size=100,
                file_id=f"file-{index}",
            )
            for index in range(count)
        ]
        session.add_all(records)
        await session.commit()
        return [record.id for record in records]


def _product_payload(category_id, **overrides):
    payload = {
        "name": "Trail Runner",
        "description": "Lightweight trail running shoe",
        "slug": "trail-runner",
        "categoryId": category_id,
        "variants": [
            {
                "sku": "TR-RED-42",
                "price": 120.0,
                "stock": 5,
                "attributes": [
                    {"name": "Color", "value": "Red"},
                    {"name": "Size", "value": "42"},
                ],
            },
            {
                "sku": "TR-BLUE-43",
                "price": 99.5,
                "stock": 0,
                "attributes": [
                    {"name": "Color", "value": "Blue"},
                    {"name": "Size", "value": "43"},
                ],
            },
        ],
    }
    payload.update(overrides)
    return payload


async def _count(app, model) -> int:
    async with app.state.database.session_factory() as session:
        return await session.scalar(select(func.count()).select_from(model))


async def test_create_product_with_variants_images_and_attributes(client, app):
    headers = await auth_headers(client, app)
    category = await _create_category(client, headers)
    media_ids = await _create_media(app, 2)

    response = await client.post(
        "/api/products",
        json=_product_payload(category["id"], mediaIds=[media_ids[1], media_ids[0]]),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    product = response.json()["result"]

    assert product["category"]["id"] == category["id"]
    assert [image["media"]["id"] for image in product["images"]] == [media_ids[1], media_ids[0]]
    assert [image["displayOrder"] for image in product["images"]] == [0, 1]
    variants = {variant["sku"]: variant for variant in product["variants"]}
    assert variants["TR-RED-42"]["stockQuantity"] == 5
    red = {item["attribute"]["name"]: item["value"] for item in variants["TR-RED-42"]["attributeValues"]}
    assert red == {"Color": "Red", "Size": "42"}

    # Attributes are shared across variants, values are scoped per attribute
    assert await _count(app, models.Attribute) == 2
    assert await _count(app, models.AttributeValue) == 4


async def test_create_product_reuses_existing_attribute_values(client, app):
    headers = await auth_headers(client, app)
    category = await _create_category(client, headers)
    await client.post("/api/products", json=_product_payload(category["id"]), headers=headers)

    second = _product_payload(
        category["id"],
        slug="road-runner",
        variants=[
            {
                "sku": "RR-RED-42",
                "price": 80,
                "attributes": [
                    {"name": "Color", "value": "Red"},
                    {"name": "Color", "value": "Red"},
                ],
            }
        ],
    )
    response = await client.post("/api/products", json=second, headers=headers)
    assert response.status_code == 201
    variant = response.json()["result"]["variants"][0]
    assert len(variant["attributeValues"]) == 1
    assert await _count(app, models.AttributeValue) == 4


async def test_create_product_with_unknown_category_writes_nothing(client, app):
    headers = await auth_headers(client, app)
    response = await client.post(
        "/api/products", json=_product_payload("0" * 32), headers=headers
    )
    assert response.status_code == 404
    assert response.json()["message"] == "Category not found"
    assert await _count(app, models.Product) == 0
    assert await _count(app, models.ProductVariant) == 0


async def test_create_product_with_unknown_media_returns_404(client, app):
    headers = await auth_headers(client, app)
    category = await _create_category(client, headers)
    response = await client.post(
        "/api/products",
        json=_product_payload(category["id"], mediaIds=["missing-media"]),
        headers=headers,
    )
    assert response.status_code == 404
    assert await _count(app, models.Product) == 0


async def test_create_product_duplicate_slug_and_sku_conflict(client, app):
    headers = await auth_headers(client, app)
    category = await _create_category(client, headers)
    assert (
        await client.post("/api/products", json=_product_payload(category["id"]), headers=headers)
    ).status_code == 201

    response = await client.post(
        "/api/products", json=_product_payload(category["id"]), headers=headers
    )
    assert response.status_code == 409

    response = await client.post(
        "/api/products",
        json=_product_payload(category["id"], slug="other-slug"),
        headers=headers,
    )
    assert response.status_code == 409
    assert response.json()["message"] == "SKU already exists"


async def test_create_product_validation(client, app):
    headers = await auth_headers(client, app)
    response = await client.post(
        "/api/products",
        json={"name": "ab", "description": "short", "slug": "x", "categoryId": "c", "variants": []},
        headers=headers,
    )
    assert response.status_code == 400
    errors = response.json()["errors"]
    assert {"name", "description", "slug", "variants"} <= set(errors)


async def test_product_mutations_require_staff(client, app):
    response = await client.post("/api/products", json={})
    assert response.status_code == 401

    customer = await auth_headers(client, app, role=models.UserRole.CUSTOMER.value)
    response = await client.post("/api/products", json={}, headers=customer)
    assert response.status_code == 403

    staff = await auth_headers(client, app, role=models.UserRole.STAFF.value)
    response = await client.post("/api/categories", json={"name": "Bags", "slug": "bags"}, headers=staff)
    assert response.status_code == 201


async def _seed_catalog(client, app):
    headers = await auth_headers(client, app)
    shoes = await _create_category(client, headers)
    hats = await _create_category(client, headers, name="Hats", slug="hats")
    products = [
        ("Alpine Boot", "alpine-boot", shoes["id"], [150.0, 180.0]),
        ("City Sneaker", "city-sneaker", shoes["id"], [60.0]),
        ("Wool Beanie", "wool-beanie", hats["id"], [25.0, 30.0]),
    ]
    for index, (name, slug, category_id, prices) in enumerate(products):
        payload = {
            "name": name,
            "description": f"{name} description text",
            "slug": slug,
            "categoryId": category_id,
            "variants": [
                {"sku": f"{slug}-{position}", "price": price}
                for position, price in enumerate(prices)
            ],
        }
        response = await client.post("/api/products", json=payload, headers=headers)
        assert response.status_code == 201, response.text
    return headers, shoes, hats


async def test_list_products_filters_and_sorts(client, app):
    _, shoes, hats = await _seed_catalog(client, app)

    response = await client.get("/api/products")
    assert response.status_code == 200
    result = response.json()["result"]
    assert result["meta"] == {"total": 3, "page": 1, "limit": 10, "totalPages": 1}
    assert [item["slug"] for item in result["data"]] == [
        "wool-beanie",
        "city-sneaker",
        "alpine-boot",
    ]

    response = await client.get("/api/products", params={"search": "SNEAK"})
    assert [item["slug"] for item in response.json()["result"]["data"]] == ["city-sneaker"]

    response = await client.get("/api/products", params={"categoryId": hats["id"]})
    assert [item["slug"] for item in response.json()["result"]["data"]] == ["wool-beanie"]

    # Any variant inside the range matches
    response = await client.get("/api/products", params={"minPrice": 170, "maxPrice": 200})
    assert [item["slug"] for item in response.json()["result"]["data"]] == ["alpine-boot"]

    response = await client.get("/api/products", params={"sort": "price_asc"})
    assert [item["slug"] for item in response.json()["result"]["data"]] == [
        "wool-beanie",
        "city-sneaker",
        "alpine-boot",
    ]
    response = await client.get("/api/products", params={"sort": "price_desc"})
    assert [item["slug"] for item in response.json()["result"]["data"]][0] == "alpine-boot"

    response = await client.get("/api/products", params={"sort": "oldest", "limit": 2, "page": 2})
    result = response.json()["result"]
    assert [item["slug"] for item in result["data"]] == ["wool-beanie"]
    assert result["meta"]["totalPages"] == 2


async def test_list_products_rejects_inverted_price_range(client):
    response = await client.get("/api/products", params={"minPrice": 50, "maxPrice": 10})
    assert response.status_code == 400
    assert response.json()["message"] == "Validation failed"
    assert response.json()["errors"] == {"maxPrice": "maxPrice must not be below minPrice"}


async def test_get_update_and_delete_product(client, app):
    headers, shoes, hats = await _seed_catalog(client, app)
    listing = (await client.get("/api/products", params={"search": "Alpine"})).json()
    product_id = listing["result"]["data"][0]["id"]

    response = await client.get(f"/api/products/{product_id}")
    assert response.status_code == 200
    assert response.json()["result"]["slug"] == "alpine-boot"

    response = await client.put(
        f"/api/products/{product_id}",
        json={
            "name": "Alpine Boot Pro",
            "categoryId": hats["id"],
            "variants": [{"sku": "alpine-pro", "price": 210}],
        },
        headers=headers,
    )
    assert response.status_code == 200, response.text
    updated = response.json()["result"]
    assert updated["name"] == "Alpine Boot Pro"
    assert updated["category"]["id"] == hats["id"]
    assert [variant["sku"] for variant in updated["variants"]] == ["alpine-pro"]
    assert await _count(app, models.ProductVariant) == 4

    response = await client.put(
        f"/api/products/{product_id}", json={"slug": "city-sneaker"}, headers=headers
    )
    assert response.status_code == 409

    response = await client.delete(f"/api/products/{product_id}", headers=headers)
    assert response.status_code == 200
    assert (await client.get(f"/api/products/{product_id}")).status_code == 404
    assert (await client.delete(f"/api/products/{product_id}", headers=headers)).status_code == 404


async def test_bulk_delete_products_reports_count(client, app):
    headers, _, _ = await _seed_catalog(client, app)
    ids = [item["id"] for item in (await client.get("/api/products")).json()["result"]["data"]]

    response = await client.request(
        "DELETE", "/api/products", json={"ids": ids[:2] + ["unknown"]}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["result"] == {"count": 2}
    assert await _count(app, models.Product) == 1
    assert await _count(app, models.ProductVariant) == 2


async def test_create_product_rejects_repeated_sku(client, app):
    headers = await auth_headers(client, app)
    category = await _create_category(client, headers)
    payload = _product_payload(category["id"])
    payload["variants"][1]["sku"] = "TR-RED-42"

    response = await client.post("/api/products", json=payload, headers=headers)
    assert response.status_code == 400
    assert response.json()["errors"] == {"variants": ["TR-RED-42"]}
    assert await _count(app, models.Product) == 0
