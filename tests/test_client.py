# tests/test_client.py
import pytest
from rich.console import Console

import shop_cli
from sdk.shopclient import StoreAPIError, StoreClient


@pytest.fixture
def sdk(client):
    # the TestClient speaks the same get/post/put/delete dialect as requests
    return StoreClient(base_url="http://testserver", session=client)


def test_sdk_shopping_flow(sdk):
    products = sdk.list_products()
    lamp = [p for p in products if p["name"] == "Desk Lamp"][0]
    assert sdk.get_product(lamp["id"])["price"] == 39.99

    line = sdk.add_to_cart(lamp["id"], 2)
    sdk.update_cart_item(line["id"], 3)
    cart = sdk.view_cart()
    assert cart["total"] == 119.97

    receipt = sdk.checkout(cart["items"], "Jane", "jane@x.com")
    assert receipt["total"] == 119.97
    assert sdk.view_cart()["items"] == []
    assert sdk.list_orders()[0]["orderId"] == receipt["orderId"]
    assert sdk.health()["status"] == "OK"


def test_sdk_raises_with_server_message(sdk):
    with pytest.raises(StoreAPIError) as exc:
        sdk.remove_from_cart("5f0c8b8b8b8b8b8b8b8b8b8b")
    assert exc.value.status_code == 404
    assert exc.value.message == "Cart item not found"

    with pytest.raises(StoreAPIError) as exc:
        sdk.checkout([], "Jane", "jane@x.com")
    assert exc.value.status_code == 400
    assert exc.value.message == "Cart is empty"


def test_validate_checkout_form():
    assert shop_cli.validate_checkout_form("Jane", "jane@x.com") == {}
    assert shop_cli.validate_checkout_form("", "jane@x.com") == {"name": "Name is required"}
    assert shop_cli.validate_checkout_form("Jane", " ") == {"email": "Email is required"}
    assert shop_cli.validate_checkout_form("Jane", "jane.x.com") == {"email": "Email is invalid"}


def test_format_price():
    assert shop_cli.format_price(79.99) == "$79.99"
    assert shop_cli.format_price(None) == "$0.00"
    assert shop_cli.format_price(2) == "$2.00"


def test_resolve_product_and_glyph():
    products = [
        {"id": "a1", "name": "Desk Lamp", "image": "💡"},
        {"id": "b2", "name": "Phone Case", "image": None},
    ]
    assert shop_cli.resolve_product("desk lamp", products)["id"] == "a1"
    assert shop_cli.resolve_product("B2", products)["name"] == "Phone Case"
    assert shop_cli.resolve_product("kettle", products) is None
    assert shop_cli.product_glyph("a1", products) == "💡"
    assert shop_cli.product_glyph("b2", products) == "📦"
    assert shop_cli.product_glyph("zz", products) == "📦"


def test_render_cart_and_receipt():
    console = Console(record=True, width=160)
    cart = {
        "items": [{"id": "1", "name": "Desk Lamp", "price": 39.99, "qty": 2,
                   "product": {"image": "💡"}}],
        "total": 79.98,
    }
    console.print(shop_cli.cart_table(cart))
    console.print(shop_cli.receipt_panel({
        "orderId": "ORD-1700000000000-ABCDEF012",
        "customerName": "Jane", "customerEmail": "jane@x.com",
        "items": cart["items"], "total": 79.98, "timestamp": "2024-01-01T00:00:00Z",
    }))
    out = console.export_text()
    assert "Desk Lamp" in out
    assert "$79.98" in out
    assert "ORD-1700000000000-ABCDEF012" in out
