from routers.cart.helpers import Cart

from factories import INTEL_ID, CABLE_ID, LICENSE_ID, RETIRED_ID


def test_adding_same_product_accumulates():
    cart = Cart()
    cart.add("p1", 2)
    cart.add("p1", 3)
    cart.add("p2")

    assert cart.quantity_of("p1") == 5
    assert cart.item_count == 6
    assert len(cart) == 2


def test_update_to_zero_removes_line():
    cart = Cart({"p1": 2, "p2": 1})
    cart.update("p1", 0)
    cart.add("p2", -4)

    assert "p1" not in cart
    assert cart.quantity_of("p2") == 1


def test_clear():
    cart = Cart({"p1": 2})
    cart.clear()
    assert cart.item_count == 0
    assert cart.lines() == []


def test_json_round_trip_keeps_order():
    cart = Cart()
    cart.add("b", 1)
    cart.add("a", 2)

    restored = Cart.from_json(cart.to_json())

    assert restored.lines() == [{"product_id": "b", "quantity": 1}, {"product_id": "a", "quantity": 2}]


def test_malformed_storage_gives_empty_cart():
    assert len(Cart.from_json("{not json")) == 0
    assert len(Cart.from_json('{"product_id": "p1"}')) == 0
    assert len(Cart.from_json(None)) == 0

    cart = Cart.from_json('[{"product_id": "p1", "quantity": "2"}, 7, {"product_id": "p2", "quantity": 1}]')
    assert cart.lines() == [{"product_id": "p2", "quantity": 1}]


async def test_validate_reprices_lines(client):
    response = await client.post("/api/cart/validate", json={"items": [
        {"product_id": CABLE_ID, "quantity": 2, "unit_price": 149.0},
        {"product_id": INTEL_ID, "quantity": 1, "unit_price": 15000.0},
    ]})

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["item_count"] == 3
    assert body["subtotal"] == 15398.0
    assert body["shipping_amount"] == 0.0
    assert body["total_amount"] == 15398.0

    cable, intel = body["items"]
    assert cable["unit_price"] == 199.0
    assert cable["total_price"] == 398.0
    assert cable["price_changed"] is True
    assert intel["price_changed"] is False
    assert intel["product_image_url"] == "https://cdn.irokart.test/i5.png"


async def test_validate_flags_problem_lines(client):
    response = await client.post("/api/cart/validate", json={"items": [
        {"product_id": INTEL_ID, "quantity": 12},
        {"product_id": RETIRED_ID, "quantity": 1},
        {"product_id": "not-a-product", "quantity": 1},
        {"product_id": LICENSE_ID, "quantity": 1},
    ]})

    body = response.json()
    assert body["valid"] is False

    lines = {line["product_id"]: line for line in body["items"]}
    assert lines[INTEL_ID]["available"] is False
    assert lines[INTEL_ID]["message"] == "Only 10 of Intel Core i5 left in stock"
    assert lines[RETIRED_ID]["message"] == "Old Chipset is not available"
    assert lines["not-a-product"]["available"] is False
    assert lines[LICENSE_ID]["available"] is True

    # Inactive and unknown lines are left out of the totals
    assert body["subtotal"] == 12 * 15000.0 + 499.0


async def test_validate_empty_cart_is_not_valid(client):
    response = await client.post("/api/cart/validate", json={"items": []})

    body = response.json()
    assert body["valid"] is False
    assert body["total_amount"] == 0.0
