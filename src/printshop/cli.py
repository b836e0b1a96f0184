"""Command-line interface for printshop."""

import argparse
import json
import os
import sys
from pathlib import Path

from . import __version__, settings
from .cart import Cart
from .catalog import ProductCatalog
from .errors import (
    CartItemNotFoundError,
    InvalidQuantityError,
    OrderNotFoundError,
    PrintOptionNotFoundError,
    PrintshopError,
    ProductNotFoundError,
)
from .identity import ROLE_ADMIN, Identity, StaticIdentity, User, require_admin
from .logging_utils import configure_logging
from .models import CartItem, Order, Product, SelectedPrintOptions
from .orders import OrderBook
from .pricing import get_price_breakdown, nearest_quantity
from .storage import JsonFileStore


def get_storage(args: argparse.Namespace) -> JsonFileStore:
    return JsonFileStore(Path(args.data_dir) if args.data_dir else None)


# The local console acts as the shop operator
CLI_OPERATOR = User(id="cli", email="", name="CLI operator", role=ROLE_ADMIN)


def get_identity(args: argparse.Namespace) -> Identity:
    return StaticIdentity(CLI_OPERATOR)


def get_catalog(args: argparse.Namespace) -> ProductCatalog:
    path = args.catalog or settings.CATALOG_PATH
    if path:
        return ProductCatalog.from_file(path)
    return ProductCatalog.default()


def find_product(catalog: ProductCatalog, ref: str) -> Product:
    """Find a product by id or slug."""
    product = catalog.get_product_by_id(ref) or catalog.get_product_by_slug(ref)
    if product is None:
        raise ProductNotFoundError(ref)
    return product


def resolve_item(cart: Cart, item_ref: str) -> CartItem:
    """
    Find a cart item by ID or unique ID prefix.

    Raises:
        CartItemNotFoundError: If nothing or more than one item matches.
    """
    matches = [i for i in cart.items if i.id.startswith(item_ref)]
    if not matches:
        raise CartItemNotFoundError(item_ref)
    if len(matches) > 1:
        raise CartItemNotFoundError(f"{item_ref} (ambiguous, matches {len(matches)} items)")
    return matches[0]


def format_money(amount: float) -> str:
    return f"{amount:,.2f} TL"


def format_cart_item(item: CartItem) -> str:
    opts = item.selected_options
    return (
        f"{item.id[:8]}  {item.product.name} x{opts.quantity} "
        f"[{opts.size_id}/{opts.paper_type_id}/{opts.print_side_id}]  "
        f"{format_money(item.calculated_price)}"
    )


def format_order(order: Order) -> str:
    return (
        f"{order.order_number}  {order.status.value:<10}  "
        f"{len(order.items)} item(s)  {format_money(order.total_amount)}  "
        f"{order.customer_info.full_name}"
    )


def _options_from_args(product: Product, args: argparse.Namespace) -> SelectedPrintOptions:
    """Selected options from flags, defaulting each group to the product's first choice."""
    po = product.print_options
    return SelectedPrintOptions(
        size_id=args.size or (po.sizes[0].id if po.sizes else ""),
        paper_type_id=args.paper or (po.paper_types[0].id if po.paper_types else ""),
        print_side_id=args.side or (po.print_sides[0].id if po.print_sides else ""),
        quantity=args.quantity,
    )


def cmd_products(args: argparse.Namespace) -> int:
    """List catalog products."""
    try:
        catalog = get_catalog(args)
        products = (
            catalog.get_products_by_category(args.category) if args.category else catalog.products
        )

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2, ensure_ascii=False))
            return 0

        if not products:
            print("No products found.")
            return 0

        for p in products:
            print(f"{p.id}  {p.slug:<24} {p.name}  from {format_money(p.base_price)}/pc")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_quote(args: argparse.Namespace) -> int:
    """Show the price breakdown for a product configuration."""
    try:
        product = find_product(get_catalog(args), args.product)
        options = _options_from_args(product, args)
        po = product.print_options
        size = po.find_size(options.size_id)
        paper = po.find_paper_type(options.paper_type_id)
        side = po.find_print_side(options.print_side_id)
        for found, option_id in (
            (size, options.size_id),
            (paper, options.paper_type_id),
            (side, options.print_side_id),
        ):
            if found is None:
                raise PrintOptionNotFoundError(product.id, option_id)

        breakdown = get_price_breakdown(
            product.base_price, size.multiplier, paper.multiplier, side.multiplier,
            options.quantity,
        )

        if args.json:
            print(json.dumps(breakdown.to_dict(), indent=2))
            return 0

        print(f"{product.name} x{breakdown.quantity}")
        print(f"  Size: {size.name} (x{size.multiplier})")
        print(f"  Paper: {paper.name} (x{paper.multiplier})")
        print(f"  Sides: {side.name} (x{side.multiplier})")
        print(f"  Discount: {breakdown.discount_percentage}%")
        print(f"  Unit price: {format_money(breakdown.unit_price)}")
        print(f"  Total: {format_money(breakdown.total_price)}")
        if breakdown.savings:
            print(f"  You save: {format_money(breakdown.savings)}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_list(args: argparse.Namespace) -> int:
    """List cart contents."""
    try:
        cart = Cart.load(get_storage(args))

        if args.json:
            print(json.dumps(cart.to_dict(), indent=2, ensure_ascii=False))
            return 0

        if not cart.get_item_count():
            print("Cart is empty.")
            return 0

        print(f"Cart ({cart.get_item_count()} item(s)):")
        for item in cart.items:
            print(f"  {format_cart_item(item)}")
        print(f"Total: {format_money(cart.get_total_amount())}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_add(args: argparse.Namespace) -> int:
    """Add a product to the cart."""
    try:
        product = find_product(get_catalog(args), args.product)
        cart = Cart.load(get_storage(args))
        item = cart.add_item(product, _options_from_args(product, args))

        print(f"Added cart item: {item.id[:8]}")
        print(f"  {format_cart_item(item)}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_remove(args: argparse.Namespace) -> int:
    """Remove an item from the cart."""
    try:
        cart = Cart.load(get_storage(args))
        item = resolve_item(cart, args.item_id)
        cart.remove_item(item.id)

        print(f"Removed cart item: {item.id[:8]}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_update(args: argparse.Namespace) -> int:
    """Change the quantity of a cart item."""
    try:
        cart = Cart.load(get_storage(args))
        item = resolve_item(cart, args.item_id)

        quantity = args.quantity
        allowed = item.product.print_options.quantities
        if args.snap and allowed:
            quantity = nearest_quantity(quantity, allowed)

        if not cart.update_quantity(item.id, quantity):
            raise InvalidQuantityError(quantity)

        print(f"Updated cart item: {format_cart_item(cart.get_item_by_id(item.id))}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_cart_clear(args: argparse.Namespace) -> int:
    """Empty the cart."""
    try:
        cart = Cart.load(get_storage(args))
        cart.clear_cart()
        print("Cart cleared.")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_list(args: argparse.Namespace) -> int:
    """List the most recent orders."""
    try:
        require_admin(get_identity(args))
        book = OrderBook.load(get_storage(args))
        orders = book.get_recent_orders(args.limit)

        if args.json:
            print(json.dumps([o.to_dict() for o in orders], indent=2, ensure_ascii=False))
            return 0

        if not orders:
            print("No orders found.")
            return 0

        print(f"Orders ({len(orders)} of {book.get_total_orders_count()}):")
        for order in orders:
            print(f"  {format_order(order)}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_orders_status(args: argparse.Namespace) -> int:
    """Set an order's status."""
    try:
        require_admin(get_identity(args))
        book = OrderBook.load(get_storage(args))
        order = book.get_order_by_id(args.order_ref) or book.get_order_by_number(args.order_ref)
        if order is None:
            raise OrderNotFoundError(args.order_ref)

        book.update_order_status(order.id, args.status)
        print(f"Order {order.order_number} is now {order.status.value}")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stats(args: argparse.Namespace) -> int:
    """Show sales statistics."""
    try:
        require_admin(get_identity(args))
        stats = OrderBook.load(get_storage(args)).get_dashboard_stats()

        if args.json:
            print(json.dumps(stats.to_dict(), indent=2, ensure_ascii=False))
            return 0

        print(f"Total orders: {stats.total_orders}")
        print(f"Total revenue: {format_money(stats.total_revenue)}")
        best = stats.best_selling_product
        if best is not None:
            print(f"Best seller: {best.product_name} ({best.quantity} pcs)")
        else:
            print("Best seller: -")
        return 0

    except PrintshopError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    import uvicorn

    print("Starting printshop API server...")
    print(f"API docs: http://{args.host}:{args.port}/docs")
    print()

    if args.data_dir:
        # Also exported so reloader subprocesses see it
        os.environ["PRINTSHOP_DATA_DIR"] = args.data_dir
        settings.DATA_DIR = Path(args.data_dir)
    if args.catalog:
        os.environ["PRINTSHOP_CATALOG"] = args.catalog
        settings.CATALOG_PATH = args.catalog

    uvicorn.run(
        "printshop.api:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=1,  # Single worker; the cart and order book live in process memory
    )
    return 0


def _add_option_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("product", help="Product ID or slug")
    parser.add_argument("--size", "-s", help="Size option ID (default: first)")
    parser.add_argument("--paper", "-p", help="Paper type option ID (default: first)")
    parser.add_argument("--side", help="Print side option ID (default: first)")
    parser.add_argument(
        "--quantity", "-q", type=int, default=100, help="Quantity (default: 100)"
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="printshop",
        description="Price print jobs, manage the cart and report on orders.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument("--data-dir", help="Directory for cart and order documents")
    parser.add_argument("--catalog", help="Catalog JSON file (default: bundled catalog)")
    parser.add_argument(
        "--log-level", default=settings.LOG_LEVEL, help="Logging level (default: INFO)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # products
    products_parser = subparsers.add_parser("products", help="List catalog products")
    products_parser.add_argument("--category", "-c", help="Filter by category")
    products_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # quote
    quote_parser = subparsers.add_parser("quote", help="Price a product configuration")
    _add_option_flags(quote_parser)
    quote_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # cart (subcommand group)
    cart_parser = subparsers.add_parser("cart", help="Manage the shopping cart")
    cart_subparsers = cart_parser.add_subparsers(dest="cart_command")

    cart_list_parser = cart_subparsers.add_parser("list", help="Show cart contents")
    cart_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    cart_add_parser = cart_subparsers.add_parser("add", help="Add a product to the cart")
    _add_option_flags(cart_add_parser)

    cart_remove_parser = cart_subparsers.add_parser("remove", help="Remove a cart item")
    cart_remove_parser.add_argument("item_id", help="Cart item ID (or prefix)")

    cart_update_parser = cart_subparsers.add_parser("update", help="Change item quantity")
    cart_update_parser.add_argument("item_id", help="Cart item ID (or prefix)")
    cart_update_parser.add_argument("quantity", type=int, help="New quantity")
    cart_update_parser.add_argument(
        "--snap", action="store_true",
        help="Snap to the nearest quantity the product offers",
    )

    cart_subparsers.add_parser("clear", help="Empty the cart")

    # orders (subcommand group)
    orders_parser = subparsers.add_parser("orders", help="Inspect and update orders")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")

    orders_list_parser = orders_subparsers.add_parser("list", help="List recent orders")
    orders_list_parser.add_argument(
        "--limit", "-n", type=int, default=10, help="Number of orders (default: 10)"
    )
    orders_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    orders_status_parser = orders_subparsers.add_parser("status", help="Set order status")
    orders_status_parser.add_argument("order_ref", help="Order ID or order number")
    orders_status_parser.add_argument(
        "status", choices=["pending", "processing", "completed", "cancelled"]
    )

    # stats
    stats_parser = subparsers.add_parser("stats", help="Show sales statistics")
    stats_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return 0

    if args.command == "cart":
        cart_commands = {
            "list": cmd_cart_list,
            "add": cmd_cart_add,
            "remove": cmd_cart_remove,
            "update": cmd_cart_update,
            "clear": cmd_cart_clear,
        }
        func = cart_commands.get(getattr(args, "cart_command", None))
        if func is None:
            parser.parse_args(["cart", "--help"])
            return 0
        return func(args)

    if args.command == "orders":
        orders_commands = {
            "list": cmd_orders_list,
            "status": cmd_orders_status,
        }
        func = orders_commands.get(getattr(args, "orders_command", None))
        if func is None:
            parser.parse_args(["orders", "--help"])
            return 0
        return func(args)

    commands = {
        "products": cmd_products,
        "quote": cmd_quote,
        "stats": cmd_stats,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
