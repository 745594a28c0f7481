# shop_cli.py
import re
import sys
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.text import Text
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.styles import Style as PromptStyle

from sdk.shopclient import StoreClient
from storefront.config import Settings

console = Console()
c: Optional[StoreClient] = None

# Global state for status messages and caching
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []
cart_cache: List[Dict[str, Any]] = []

EMAIL_RE = re.compile(r"\S+@\S+\.\S+")

custom_style = PromptStyle.from_dict({
    'completion-menu.completion': 'bg:#008888 #ffffff',
    'completion-menu.completion.current': 'bg:#00aaaa #000000',
    'scrollbar.background': 'bg:#88aaaa',
    'scrollbar.button': 'bg:#222222',
})


# ---------------------------
# Pure helpers
# ---------------------------
def format_price(value: Any) -> str:
    return f"${float(value or 0):.2f}"


def validate_checkout_form(name: str, email: str) -> Dict[str, str]:
    """Client-side checks before the order is sent. Empty dict means valid."""
    errors = {}
    if not (name or "").strip():
        errors["name"] = "Name is required"
    if not (email or "").strip():
        errors["email"] = "Email is required"
    elif not EMAIL_RE.search(email):
        errors["email"] = "Email is invalid"
    return errors


def product_glyph(product_id: str, products: List[Dict[str, Any]]) -> str:
    for p in products:
        if p.get("id") == product_id:
            return p.get("image") or "📦"
    return "📦"


def resolve_product(term: str, products: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Match a product by id or (case-insensitive) name."""
    term = (term or "").strip().lower()
    for p in products:
        if p.get("id", "").lower() == term or p.get("name", "").lower() == term:
            return p
    return None


# ---------------------------
# Display helpers
# ---------------------------
def products_table(products: List[Dict[str, Any]]) -> Table:
    table = Table(
        title="📦 Our Products",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("", width=3)
    table.add_column("Name", style="bold", width=22)
    table.add_column("Description", width=26)
    table.add_column("Price", justify="right", width=10)
    table.add_column("ID", style="dim", width=12)

    for p in products:
        table.add_row(
            p.get("image") or "📦",
            p.get("name", "N/A"),
            p.get("description") or "",
            format_price(p.get("price")),
            p.get("id", "N/A"),
        )
    return table


def cart_table(cart: Dict[str, Any]) -> Table:
    table = Table(box=box.ROUNDED, header_style="bold blue", show_lines=True)
    table.add_column("#", justify="right", width=3)
    table.add_column("", width=3)
    table.add_column("Product", style="bold", width=24)
    table.add_column("Qty", justify="right", width=5)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Subtotal", justify="right", width=10)

    for n, it in enumerate(cart.get("items", []), start=1):
        product = it.get("product") or {}
        table.add_row(
            str(n),
            product.get("image") or product_glyph(it.get("productId"), product_cache),
            it.get("name", "Unknown"),
            str(it.get("qty", 0)),
            format_price(it.get("price")),
            format_price(float(it.get("price", 0)) * int(it.get("qty", 0))),
        )
    return table


def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]Loading products... none available[/italic yellow]")
        return
    console.print(products_table(products))


def show_cart(cart: Dict[str, Any]):
    title = Text()
    title.append("🛒 Shopping Cart", style="bold")
    title.append(f" - Total: {format_price(cart.get('total', 0))}", style="bold green")

    if not cart.get("items"):
        console.print(Panel("Your cart is empty. Add some products to get started! 🛍️",
                            title=title, style="blue"))
        return
    console.print(Panel(cart_table(cart), title=title, border_style="blue"))


def receipt_panel(receipt: Dict[str, Any]) -> Panel:
    lines = [
        "[green]Order placed successfully![/green]",
        f"Order ID: [bold]{receipt.get('orderId', 'N/A')}[/bold]",
        f"Customer: {receipt.get('customerName', '')} <{receipt.get('customerEmail', '')}>",
        "",
    ]
    for it in receipt.get("items", []):
        lines.append(f"  {it.get('name', '?')} x{it.get('qty', 0)}  "
                     f"{format_price(float(it.get('price', 0)) * int(it.get('qty', 0)))}")
    lines.append("")
    lines.append(f"Total: [bold]{format_price(receipt.get('total'))}[/bold]")
    lines.append(f"[dim]{receipt.get('timestamp', '')}[/dim]")
    return Panel.fit("\n".join(lines), title="✅ Receipt")


def orders_table(orders: List[Dict[str, Any]]) -> Table:
    table = Table(
        title="📋 Orders",
        box=box.ROUNDED,
        header_style="bold yellow",
        title_style="bold yellow",
        show_lines=True
    )
    table.add_column("Order ID", style="dim", width=28)
    table.add_column("Customer", width=24)
    table.add_column("Contents", width=36)
    table.add_column("Total", justify="right", width=10)
    table.add_column("Placed", width=20)

    for order in orders:
        items = order.get("items", [])
        names = [f"{it.get('name', '?')} x{it.get('qty', 1)}" for it in items[:3]]
        contents = ", ".join(names) if names else "No items"
        if len(items) > 3:
            contents += f" +{len(items) - 3} more"
        table.add_row(
            order.get("orderId", "N/A"),
            order.get("customerName", ""),
            contents,
            format_price(order.get("total")),
            str(order.get("timestamp", ""))[:19],
        )
    return table


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) with a spinner. Returns the decoded result, or
    None after printing the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except Exception as e:
        status_message = f"Error: {e}"
        console.print(show_status(f"Error: {e}", False))
        return None


def refresh_cart() -> Optional[Dict[str, Any]]:
    global cart_cache
    cart = try_api(c.view_cart)
    if cart is not None:
        cart_cache = cart.get("items", [])
    return cart


def get_product_completer():
    global product_cache
    if not product_cache:
        product_cache = try_api(c.list_products) or []
    names = [p.get("name", "") for p in product_cache]
    ids = [p.get("id", "") for p in product_cache]
    return WordCompleter([n for n in (names + ids) if n], ignore_case=True, sentence=True)


def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, style=custom_style, default=default)


def pick_cart_line() -> Optional[Dict[str, Any]]:
    cart = refresh_cart()
    if not cart or not cart.get("items"):
        console.print("[italic yellow]Your cart is empty[/italic yellow]")
        return None
    show_cart(cart)
    n = IntPrompt.ask("Line #", default=1)
    if n < 1 or n > len(cart_cache):
        console.print("[red]No such line[/red]")
        return None
    return cart_cache[n - 1]


def create_header():
    header = Table(show_header=False, box=box.ROUNDED)
    header.add_column("left", width=30)
    header.add_column("center", width=40)
    header.add_column("right", width=30)

    now = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    header.add_row(
        "📦 Storefront",
        f"[bold blue]Cart: {sum(int(it.get('qty', 0)) for it in cart_cache)} item(s)[/bold blue]",
        f"[dim]{now}[/dim]"
    )
    return Panel(header, style="bold blue")


# ---------------------------
# Views
# ---------------------------
def add_to_cart_view():
    term = prompt_with_autocomplete("Product name or ID", completer=get_product_completer())
    product = resolve_product(term, product_cache)
    if not product:
        console.print(f"[red]Unknown product '{term}'[/red]")
        return
    qty = IntPrompt.ask("Quantity", default=1)
    if qty < 1:
        console.print("[red]Quantity must be at least 1[/red]")
        return
    if try_api(c.add_to_cart, product["id"], qty,
               success_msg=f"Added {qty} x {product['name']} to cart") is not None:
        refresh_cart()


def update_qty_view():
    line = pick_cart_line()
    if not line:
        return
    raw = Prompt.ask("New quantity (or +/-)", default="+")
    current = int(line.get("qty", 1))
    if raw == "+":
        qty = current + 1
    elif raw == "-":
        qty = current - 1
    else:
        try:
            qty = int(raw)
        except ValueError:
            console.print("[red]Please enter a whole number.[/red]")
            return
    if qty < 1:
        # going below one is a no-op; removal is a separate action
        return
    if try_api(c.update_cart_item, line["id"], qty,
               success_msg=f"{line['name']} quantity set to {qty}") is not None:
        show_cart(refresh_cart() or {})


def remove_view():
    line = pick_cart_line()
    if not line:
        return
    if Confirm.ask(f"Remove {line['name']} from cart?"):
        if try_api(c.remove_from_cart, line["id"], success_msg=f"{line['name']} removed") is not None:
            show_cart(refresh_cart() or {})


def checkout_view():
    cart = refresh_cart()
    if not cart or not cart.get("items"):
        console.print("[italic yellow]Your cart is empty[/italic yellow]")
        return
    show_cart(cart)
    name = Prompt.ask("Full name")
    email = Prompt.ask("Email")
    errors = validate_checkout_form(name, email)
    if errors:
        for msg in errors.values():
            console.print(f"[red]{msg}[/red]")
        return
    receipt = try_api(c.checkout, cart["items"], name.strip(), email.strip())
    if receipt:
        console.print(receipt_panel(receipt))
        refresh_cart()


def orders_view():
    orders = try_api(c.list_orders, success_msg="Orders loaded")
    if orders is None:
        return
    if not orders:
        console.print("[italic yellow]No orders found[/italic yellow]")
    else:
        console.print(orders_table(orders))


# ---------------------------
# Main menu
# ---------------------------
def menu():
    global status_message, product_cache

    console.clear()
    product_cache = try_api(c.list_products) or []
    refresh_cart()
    console.print(create_header())

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        menu_table = Table.grid(padding=(0, 2))
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)
        menu_table.add_column("Key", style="bold cyan", width=4)
        menu_table.add_column("Option", width=30)

        options = [
            ("1", "📦 Browse products", "5", "❌ Remove from cart"),
            ("2", "➕ Add to cart", "6", "✅ Checkout"),
            ("3", "🛒 View cart", "7", "📋 Order history"),
            ("4", "✏️ Change quantity", "q", "👋 Quit"),
        ]
        for row in options:
            menu_table.add_row(*row)

        console.print(Panel(menu_table, title="📋 Menu", border_style="yellow"))

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 8)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                product_cache = products
                show_products(products)
        elif choice == "2":
            add_to_cart_view()
        elif choice == "3":
            cart = refresh_cart()
            if cart is not None:
                show_cart(cart)
        elif choice == "4":
            update_qty_view()
        elif choice == "5":
            remove_view()
        elif choice == "6":
            checkout_view()
        elif choice == "7":
            orders_view()
        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Thanks for shopping! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


def main():
    global c
    c = StoreClient(base_url=Settings.from_env().api_url)
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
