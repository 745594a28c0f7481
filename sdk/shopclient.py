# sdk/shopclient.py
from typing import Any, Dict, List, Optional

import requests


class StoreAPIError(Exception):
    """Raised for any non-2xx answer from the storefront API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class StoreClient:
    def __init__(self, base_url: str = "http://127.0.0.1:5000", timeout: int = 10, session=None):
        self.base_url = base_url.rstrip("/")
        # anything with requests' get/post/put/delete surface works here
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _check(self, r) -> Any:
        if r.status_code >= 400:
            try:
                message = r.json().get("error", r.text)
            except ValueError:
                message = r.text
            raise StoreAPIError(r.status_code, message)
        return r.json()

    def health(self) -> Dict[str, Any]:
        r = self.session.get(f"{self.base_url}/health", timeout=self.timeout)
        return self._check(r)

    # Catalog
    def list_products(self) -> List[Dict[str, Any]]:
        r = self.session.get(f"{self.base_url}/api/products", timeout=self.timeout)
        return self._check(r)

    def get_product(self, product_id: str) -> Dict[str, Any]:
        r = self.session.get(f"{self.base_url}/api/products/{product_id}", timeout=self.timeout)
        return self._check(r)

    # Cart
    def add_to_cart(self, product_id: str, qty: int = 1) -> Dict[str, Any]:
        r = self.session.post(f"{self.base_url}/api/cart", json={
            "productId": product_id, "qty": qty
        }, timeout=self.timeout)
        return self._check(r)

    def view_cart(self) -> Dict[str, Any]:
        r = self.session.get(f"{self.base_url}/api/cart", timeout=self.timeout)
        return self._check(r)

    def update_cart_item(self, item_id: str, qty: int) -> Dict[str, Any]:
        r = self.session.put(f"{self.base_url}/api/cart/{item_id}", json={"qty": qty}, timeout=self.timeout)
        return self._check(r)

    def remove_from_cart(self, item_id: str) -> Dict[str, Any]:
        r = self.session.delete(f"{self.base_url}/api/cart/{item_id}", timeout=self.timeout)
        return self._check(r)

    # Checkout
    def checkout(self, cart_items: List[Dict[str, Any]], customer_name: str,
                 customer_email: str) -> Dict[str, Any]:
        r = self.session.post(f"{self.base_url}/api/checkout", json={
            "cartItems": cart_items,
            "customerName": customer_name,
            "customerEmail": customer_email,
        }, timeout=self.timeout)
        return self._check(r)

    def list_orders(self) -> List[Dict[str, Any]]:
        r = self.session.get(f"{self.base_url}/api/orders", timeout=self.timeout)
        return self._check(r)


if __name__ == "__main__":
    import argparse
    import os

    from rich import print

    parser = argparse.ArgumentParser(description="Storefront API client")
    parser.add_argument("--url", default=os.getenv("STOREFRONT_API_URL", "http://127.0.0.1:5000"))
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list-products", help="List all products")

    gp = subparsers.add_parser("get-product", help="Get a product by its ID")
    gp.add_argument("--product-id", required=True, help="ID of the product")

    add = subparsers.add_parser("add-to-cart", help="Add product to cart")
    add.add_argument("--product-id", required=True, help="Product ID")
    add.add_argument("--qty", type=int, default=1, help="Quantity to add")

    subparsers.add_parser("view-cart", help="View cart contents")

    up = subparsers.add_parser("update-cart", help="Set the quantity of a cart line")
    up.add_argument("--item-id", required=True, help="Cart item ID")
    up.add_argument("--qty", type=int, required=True, help="New quantity")

    rm = subparsers.add_parser("remove-from-cart", help="Remove a line from the cart")
    rm.add_argument("--item-id", required=True, help="Cart item ID")

    co = subparsers.add_parser("checkout", help="Check out the current cart")
    co.add_argument("--name", required=True, help="Customer name")
    co.add_argument("--email", required=True, help="Customer email")

    subparsers.add_parser("list-orders", help="List all orders, newest first")

    args = parser.parse_args()
    c = StoreClient(base_url=args.url)

    try:
        if args.command == "list-products":
            print(c.list_products())
        elif args.command == "get-product":
            print(c.get_product(args.product_id))
        elif args.command == "add-to-cart":
            print(c.add_to_cart(args.product_id, args.qty))
        elif args.command == "view-cart":
            print(c.view_cart())
        elif args.command == "update-cart":
            print(c.update_cart_item(args.item_id, args.qty))
        elif args.command == "remove-from-cart":
            print(c.remove_from_cart(args.item_id))
        elif args.command == "checkout":
            cart = c.view_cart()
            print(c.checkout(cart["items"], args.name, args.email))
        elif args.command == "list-orders":
            print(c.list_orders())
    except StoreAPIError as e:
        print(f"[red]{e}[/red]")
        raise SystemExit(1)
