#!/usr/bin/env python
import os

from sdk.shopclient import StoreClient, StoreAPIError


def main():
    c = StoreClient(base_url=os.getenv("STOREFRONT_API_URL", "http://127.0.0.1:5000"))

    print("Health:", c.health())

    # -----------------------------
    # Catalog
    # -----------------------------
    products = c.list_products()
    print(f"\n{len(products)} products in the catalog")
    for p in products:
        print(f"  {p['image']} {p['name']:<22} ${p['price']:.2f}")

    # -----------------------------
    # Fill the cart
    # -----------------------------
    first, second = products[0], products[1]
    print("\nAdding products to cart...")
    c.add_to_cart(first["id"], 1)
    line = c.add_to_cart(first["id"], 1)
    print(f"  {line['name']} qty is now {line['qty']}")
    c.add_to_cart(second["id"], 1)

    cart = c.view_cart()
    print(f"\nCart: {len(cart['items'])} lines, total ${cart['total']:.2f}")

    # -----------------------------
    # Bad requests come back as StoreAPIError
    # -----------------------------
    try:
        c.update_cart_item(line["id"], 0)
    except StoreAPIError as e:
        print(f"\nRejected update: {e}")

    # -----------------------------
    # Checkout
    # -----------------------------
    receipt = c.checkout(cart["items"], "Jane Doe", "jane@example.com")
    print(f"\nOrder {receipt['orderId']} total ${receipt['total']:.2f}")
    print("Cart after checkout:", c.view_cart())

    print("\nOrder history (newest first):")
    for o in c.list_orders():
        print(f"  {o['orderId']}  {o['customerName']}  ${o['total']:.2f}")


if __name__ == "__main__":
    main()
