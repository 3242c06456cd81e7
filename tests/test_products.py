import uuid

import pytest

from routers.products.helpers import slugify, stock_status

from factories import (
    SELLER_ID, OTHER_SELLER_ID, CATEGORY_ID,
    INTEL_ID, CABLE_ID, LICENSE_ID, RETIRED_ID, get_inventory,
)


def as_seller(current_user, profile_id=SELLER_ID, role="retailer"):
    current_user.update(role=role, user_id=profile_id, profile_id=uuid.UUID(profile_id))


async def test_lookup_by_id_and_slug_agree(client):
    by_id = await client.get(f"/api/products/{INTEL_ID}")
    by_slug = await client.get("/api/products/intel-i5")
    by_upper_slug = await client.get("/api/products/INTEL-I5")

    assert by_id.status_code == 200
    assert by_id.json() == by_slug.json() == by_upper_slug.json()


async def test_product_detail_derived_fields(client):
    product = (await client.get(f"/api/products/{INTEL_ID}")).json()

    assert product["name"] == "Intel Core i5"
    assert product["primary_image_url"] == "https://cdn.irokart.test/i5.png"
    assert product["product_images"] == [{"image_url": "https://cdn.irokart.test/i5.png", "is_primary": True}]
    assert product["categories"] == {"name": "Processors", "slug": "processors"}
    assert product["stock_quantity"] == 10
    assert product["available_quantity"] == 10
    assert product["stock_status"] == "low_stock"  # At the threshold


async def test_product_without_inventory_reads_as_empty(client):
    product = (await client.get(f"/api/products/{LICENSE_ID}")).json()

    assert product["inventory"] is None
    assert product["available_quantity"] == 0
    assert product["stock_status"] == "out_of_stock"


async def test_unknown_product_404(client):
    assert (await client.get("/api/products/no-such-thing")).status_code == 404
    assert (await client.get(f"/api/products/{uuid.uuid4()}")).status_code == 404


async def test_listing_hides_inactive_unless_asked(client):
    visible = (await client.get("/api/products")).json()["products"]
    everything = (await client.get("/api/products", params={"include_inactive": "true"})).json()["products"]

    assert RETIRED_ID not in {product["id"] for product in visible}
    assert {INTEL_ID, CABLE_ID, LICENSE_ID} <= {product["id"] for product in visible}
    assert RETIRED_ID in {product["id"] for product in everything}


async def test_listing_pagination(client):
    first = (await client.get("/api/products", params={"limit": 2})).json()["products"]
    rest = (await client.get("/api/products", params={"limit": 2, "offset": 2})).json()["products"]

    assert len(first) == 2
    assert len(rest) == 1
    assert not {p["id"] for p in first} & {p["id"] for p in rest}


async def test_soft_deleted_product_still_resolves(client):
    response = await client.delete(f"/api/products/{CABLE_ID}")
    assert response.status_code == 200
    assert response.json() == {"success": True}

    product = (await client.get(f"/api/products/{CABLE_ID}")).json()
    assert product["is_active"] is False
    listed = (await client.get("/api/products")).json()["products"]
    assert CABLE_ID not in {p["id"] for p in listed}


async def test_create_product_with_stock_and_image(client):
    response = await client.post("/api/products", json={
        "name": "Ryzen 7 5800X!!",
        "category_id": CATEGORY_ID,
        "seller_id": SELLER_ID,
        "selling_price": 24999,
        "product_status": "active",
        "image_url": "https://cdn.irokart.test/ryzen.png",
        "stock_quantity": 25,
    })

    assert response.status_code == 201
    product = response.json()
    assert product["slug"] == "ryzen-7-5800x"
    assert product["seller_id"] == SELLER_ID
    assert product["primary_image_url"] == "https://cdn.irokart.test/ryzen.png"
    assert product["stock_status"] == "in_stock"

    found = await client.get("/api/products/ryzen-7-5800x")
    assert found.json()["id"] == product["id"]


async def test_seller_creates_for_themselves(client, current_user):
    as_seller(current_user)

    response = await client.post("/api/products", json={
        "name": "Thermal Paste",
        "seller_id": OTHER_SELLER_ID,
        "selling_price": 350,
    })

    assert response.status_code == 201
    assert response.json()["seller_id"] == SELLER_ID
    assert response.json()["product_status"] == "draft"


async def test_duplicate_slug_rejected(client):
    response = await client.post("/api/products", json={
        "name": "Another i5",
        "slug": "intel-i5",
        "selling_price": 100,
    })

    assert response.status_code == 400
    assert "intel-i5" in response.json()["error"]


async def test_unknown_category_rejected(client):
    response = await client.post("/api/products", json={
        "name": "Mystery box",
        "category_id": str(uuid.uuid4()),
        "selling_price": 100,
    })
    assert response.status_code == 400


async def test_individual_cannot_create(client, current_user):
    current_user["role"] = "individual"

    response = await client.post("/api/products", json={"name": "Nope", "selling_price": 1})

    assert response.status_code == 403


async def test_update_product_fields(client):
    response = await client.patch(f"/api/products/{INTEL_ID}", json={
        "selling_price": 14500,
        "is_featured": True,
        "name": None,
    })

    assert response.status_code == 200
    product = response.json()
    assert product["selling_price"] == 14500.0
    assert product["is_featured"] is True
    assert product["name"] == "Intel Core i5"


async def test_seller_cannot_touch_other_sellers_product(client, current_user):
    as_seller(current_user)

    patch = await client.patch(f"/api/products/{CABLE_ID}", json={"selling_price": 1})
    delete = await client.delete(f"/api/products/{CABLE_ID}")

    assert patch.status_code == 403
    assert delete.status_code == 403


async def test_seller_updates_own_inventory(client, current_user, seeded):
    as_seller(current_user)

    response = await client.patch(f"/api/products/{INTEL_ID}/inventory", json={
        "quantity": 40,
        "low_stock_threshold": 5,
    })

    assert response.status_code == 200
    assert response.json() == {
        "product_id": INTEL_ID,
        "quantity": 40,
        "reserved_quantity": 0,
        "available_quantity": 40,
        "low_stock_threshold": 5,
    }
    inventory = await get_inventory(seeded, INTEL_ID)
    assert inventory.quantity == 40


async def test_inventory_cannot_drop_below_reserved(client):
    await client.post("/api/orders/place", json={
        "profile_id": SELLER_ID,
        "items": [{"product_id": INTEL_ID, "quantity": 4}],
        "payment_info": {"gateway_payment_id": "pay_inventory_1"},
    })

    response = await client.patch(f"/api/products/{INTEL_ID}/inventory", json={"quantity": 3})

    assert response.status_code == 409
    product = (await client.get(f"/api/products/{INTEL_ID}")).json()
    assert product["stock_quantity"] == 10
    assert product["available_quantity"] == 6


async def test_inventory_row_created_when_missing(client):
    response = await client.patch(f"/api/products/{LICENSE_ID}/inventory", json={"quantity": 1000})

    assert response.status_code == 200
    assert response.json()["available_quantity"] == 1000


async def test_active_categories(client):
    response = await client.get("/api/products/categories")

    assert response.status_code == 200
    assert [category["slug"] for category in response.json()] == ["processors"]


@pytest.mark.parametrize("name,slug", [
    ("Intel Core i5", "intel-core-i5"),
    ("  USB-C  Cable (2m) ", "usb-c-cable-2m"),
    ("!!!", "product"),
])
def test_slugify(name, slug):
    assert slugify(name) == slug


def test_stock_status_bands():
    assert stock_status(0, 5, 10) == "out_of_stock"
    assert stock_status(3, 8, 10) == "low_stock"
    assert stock_status(30, 40, 10) == "in_stock"
