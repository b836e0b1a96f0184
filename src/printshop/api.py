"""FastAPI REST API for the printshop cart, checkout and reporting."""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Header, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from . import __version__, settings
from .activity import ActivityLog
from .cart import Cart
from .catalog import ProductCatalog
from .checkout import CustomerInfoForm, place_order
from .errors import (
    AdminRequiredError,
    CartItemNotFoundError,
    CheckoutInProgressError,
    ConcurrentModificationError,
    EmptyCartError,
    InvalidCustomerInfoError,
    InvalidOrderStatusError,
    InvalidQuantityError,
    InvalidSchemaVersionError,
    OrderNotFoundError,
    PrintOptionNotFoundError,
    PrintshopError,
    ProductNotFoundError,
    StorageError,
)
from .identity import Identity, TokenIdentity, require_admin
from .models import CartItem, Order, Product, SelectedPrintOptions
from .orders import OrderBook
from .pricing import get_price_breakdown
from .storage import JsonFileStore, Storage, retry_on_conflict


# --- Pydantic Schemas ---


class SizeOptionSchema(BaseModel):
    id: str
    name: str
    dimensions: str = ""
    multiplier: float


class PaperTypeOptionSchema(BaseModel):
    id: str
    name: str
    description: str = ""
    multiplier: float


class PrintSideOptionSchema(BaseModel):
    id: str
    name: str
    multiplier: float


class PrintOptionsSchema(BaseModel):
    sizes: list[SizeOptionSchema]
    paper_types: list[PaperTypeOptionSchema]
    print_sides: list[PrintSideOptionSchema]
    quantities: list[int]


class ProductSchema(BaseModel):
    id: str
    slug: str
    name: str
    description: str
    short_description: str
    category: str
    base_price: float
    images: list[str]
    print_options: PrintOptionsSchema
    featured: bool
    created_at: str


class ProductListResponse(BaseModel):
    products: list[ProductSchema]
    count: int


class SelectedOptionsSchema(BaseModel):
    size_id: str
    paper_type_id: str
    print_side_id: str
    quantity: int = Field(..., ge=1)


class QuoteRequest(BaseModel):
    product_id: str
    options: SelectedOptionsSchema


class QuoteResponse(BaseModel):
    product_id: str
    base_price: float
    size_multiplier: float
    paper_type_multiplier: float
    print_side_multiplier: float
    quantity: int
    quantity_scale: float
    discount_percentage: int
    unit_price: float
    total_price: float
    savings: float


class CartItemSchema(BaseModel):
    id: str
    product: ProductSchema
    selected_options: SelectedOptionsSchema
    calculated_price: float
    added_at: str


class CartResponse(BaseModel):
    items: list[CartItemSchema]
    item_count: int
    total_amount: float


class AddCartItemRequest(BaseModel):
    product_id: str
    options: SelectedOptionsSchema


class UpdateQuantityRequest(BaseModel):
    # Not constrained here so that rejected updates surface as InvalidQuantityError
    quantity: int


class CustomerInfoSchema(BaseModel):
    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str


class OrderSchema(BaseModel):
    id: str
    order_number: str
    items: list[CartItemSchema]
    customer_info: CustomerInfoSchema
    total_amount: float
    status: str
    created_at: str


class OrderListResponse(BaseModel):
    orders: list[OrderSchema]
    count: int


class OrderStatusUpdateRequest(BaseModel):
    status: str = Field(..., description="pending | processing | completed | cancelled")


class BestSellerSchema(BaseModel):
    product_id: str
    product_name: str
    quantity: int


class DashboardStatsResponse(BaseModel):
    total_orders: int
    total_revenue: float
    best_selling_product: Optional[BestSellerSchema] = None


# --- Application state ---


@dataclass
class ShopState:
    """Handles the endpoints work against."""

    cart: Cart
    orders: OrderBook
    catalog: ProductCatalog
    activity: ActivityLog
    admin_token: str
    checkout_delay: float


def get_state(request: Request) -> ShopState:
    """Shop handles, reloaded so writes by other processes are visible."""
    state: ShopState = request.app.state.shop
    state.cart.refresh()
    state.orders.refresh()
    return state


def get_identity(
    request: Request,
    x_admin_token: Optional[str] = Header(default=None),
) -> Identity:
    return TokenIdentity(x_admin_token, request.app.state.shop.admin_token)


def product_to_schema(product: Product) -> ProductSchema:
    return ProductSchema(**product.to_dict())


def cart_item_to_schema(item: CartItem) -> CartItemSchema:
    return CartItemSchema(**item.to_dict())


def order_to_schema(order: Order) -> OrderSchema:
    return OrderSchema(**order.to_dict())


def cart_to_response(cart: Cart) -> CartResponse:
    items = cart.items
    return CartResponse(
        items=[cart_item_to_schema(i) for i in items],
        item_count=len(items),
        total_amount=cart.get_total_amount(),
    )


def _options_from_schema(options: SelectedOptionsSchema) -> SelectedPrintOptions:
    return SelectedPrintOptions(
        size_id=options.size_id,
        paper_type_id=options.paper_type_id,
        print_side_id=options.print_side_id,
        quantity=options.quantity,
    )


def _require_product(state: ShopState, product_id: str) -> Product:
    product = state.catalog.get_product_by_id(product_id)
    if product is None:
        raise ProductNotFoundError(product_id)
    return product


# Map exception types to HTTP status codes
ERROR_STATUS_CODES: dict[type, int] = {
    ProductNotFoundError: 404,
    CartItemNotFoundError: 404,
    OrderNotFoundError: 404,
    PrintOptionNotFoundError: 400,
    InvalidOrderStatusError: 400,
    InvalidQuantityError: 400,
    EmptyCartError: 400,
    InvalidCustomerInfoError: 422,
    AdminRequiredError: 403,
    CheckoutInProgressError: 409,
    ConcurrentModificationError: 409,
    InvalidSchemaVersionError: 500,
    StorageError: 500,
}


async def printshop_error_handler(request: Request, exc: PrintshopError) -> JSONResponse:
    """Map PrintshopError subclasses to appropriate HTTP responses."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    content = {"detail": str(exc), "error_type": type(exc).__name__}
    if isinstance(exc, InvalidCustomerInfoError):
        content["errors"] = exc.errors
    return JSONResponse(status_code=status_code, content=content)


# --- FastAPI App ---


def create_app(
    storage: Storage | None = None,
    catalog: ProductCatalog | None = None,
    activity: ActivityLog | None = None,
    admin_token: str | None = None,
    checkout_delay: float | None = None,
) -> FastAPI:
    """
    Build the API around explicit cart, order book and catalog handles.

    Defaults come from printshop.settings.
    """
    if activity is None:
        activity = ActivityLog()
    if storage is None:
        storage = JsonFileStore()
    if catalog is None:
        catalog = (
            ProductCatalog.from_file(settings.CATALOG_PATH, activity=activity)
            if settings.CATALOG_PATH
            else ProductCatalog.default(activity=activity)
        )

    app = FastAPI(
        title="printshop API",
        description="Pricing, cart and order API for a print-shop storefront",
        version=__version__,
    )

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.shop = ShopState(
        cart=Cart.load(storage, activity=activity),
        orders=OrderBook.load(storage, activity=activity),
        catalog=catalog,
        activity=activity,
        admin_token=settings.ADMIN_TOKEN if admin_token is None else admin_token,
        checkout_delay=(
            settings.CHECKOUT_DELAY_SECONDS if checkout_delay is None else checkout_delay
        ),
    )
    app.add_exception_handler(PrintshopError, printshop_error_handler)

    _register_routes(app)
    return app


def _register_routes(app: FastAPI) -> None:
    @app.get("/api/health")
    def health_check(state: ShopState = Depends(get_state)):
        """Basic service status."""
        return {
            "status": "ok",
            "product_count": len(state.catalog),
            "cart_items": state.cart.get_item_count(),
            "order_count": state.orders.get_total_orders_count(),
        }

    # --- Catalog Endpoints ---

    @app.get("/api/products", response_model=ProductListResponse)
    def list_products(
        category: Optional[str] = Query(default=None),
        q: Optional[str] = Query(default=None, description="Search text"),
        featured: bool = Query(default=False),
        state: ShopState = Depends(get_state),
    ):
        """List products, optionally filtered by category, search text or featured flag."""
        if q:
            products = state.catalog.search_products(q)
        elif category:
            products = state.catalog.get_products_by_category(category)
        elif featured:
            products = state.catalog.get_featured_products()
        else:
            products = state.catalog.products
        return ProductListResponse(
            products=[product_to_schema(p) for p in products],
            count=len(products),
        )

    @app.get("/api/products/{slug}", response_model=ProductSchema)
    def get_product(slug: str, state: ShopState = Depends(get_state)):
        product = state.catalog.get_product_by_slug(slug)
        if product is None:
            raise ProductNotFoundError(slug)
        return product_to_schema(product)

    @app.post("/api/quote", response_model=QuoteResponse)
    def quote(request: QuoteRequest, state: ShopState = Depends(get_state)):
        """Price a product configuration without touching the cart."""
        product = _require_product(state, request.product_id)
        options = product.print_options
        size = options.find_size(request.options.size_id)
        paper = options.find_paper_type(request.options.paper_type_id)
        side = options.find_print_side(request.options.print_side_id)
        for found, option_id in (
            (size, request.options.size_id),
            (paper, request.options.paper_type_id),
            (side, request.options.print_side_id),
        ):
            if found is None:
                raise PrintOptionNotFoundError(product.id, option_id)

        breakdown = get_price_breakdown(
            product.base_price,
            size.multiplier,
            paper.multiplier,
            side.multiplier,
            request.options.quantity,
        )
        return QuoteResponse(product_id=product.id, **breakdown.to_dict())

    # --- Cart Endpoints ---

    @app.get("/api/cart", response_model=CartResponse)
    def get_cart(state: ShopState = Depends(get_state)):
        return cart_to_response(state.cart)

    @app.post("/api/cart/items", response_model=CartItemSchema, status_code=201)
    def add_cart_item(request: AddCartItemRequest, state: ShopState = Depends(get_state)):
        product = _require_product(state, request.product_id)
        options = _options_from_schema(request.options)
        item = retry_on_conflict(state.cart, lambda: state.cart.add_item(product, options))
        return cart_item_to_schema(item)

    @app.patch("/api/cart/items/{item_id}", response_model=CartItemSchema)
    def update_cart_item(
        item_id: str,
        request: UpdateQuantityRequest,
        state: ShopState = Depends(get_state),
    ):
        if state.cart.get_item_by_id(item_id) is None:
            raise CartItemNotFoundError(item_id)
        if not retry_on_conflict(
            state.cart, lambda: state.cart.update_quantity(item_id, request.quantity)
        ):
            raise InvalidQuantityError(request.quantity)
        return cart_item_to_schema(state.cart.get_item_by_id(item_id))

    @app.delete("/api/cart/items/{item_id}", response_model=CartResponse)
    def remove_cart_item(item_id: str, state: ShopState = Depends(get_state)):
        if not retry_on_conflict(state.cart, lambda: state.cart.remove_item(item_id)):
            raise CartItemNotFoundError(item_id)
        return cart_to_response(state.cart)

    @app.delete("/api/cart", response_model=CartResponse)
    def clear_cart(state: ShopState = Depends(get_state)):
        retry_on_conflict(state.cart, state.cart.clear_cart)
        return cart_to_response(state.cart)

    # --- Checkout / Order Endpoints ---

    @app.post("/api/checkout", response_model=OrderSchema, status_code=201)
    async def checkout(request: CustomerInfoForm, state: ShopState = Depends(get_state)):
        """Place an order from the current cart and clear it."""
        order = await place_order(
            state.cart,
            state.orders,
            request.to_customer_info(),
            delay=state.checkout_delay,
            activity=state.activity,
        )
        return order_to_schema(order)

    @app.get("/api/orders/{order_number}", response_model=OrderSchema)
    def get_order(order_number: str, state: ShopState = Depends(get_state)):
        """Look up an order by the number shown to the customer."""
        order = state.orders.get_order_by_number(order_number)
        if order is None:
            raise OrderNotFoundError(order_number)
        return order_to_schema(order)

    # --- Admin Endpoints ---

    @app.get("/api/admin/stats", response_model=DashboardStatsResponse)
    def dashboard_stats(
        state: ShopState = Depends(get_state),
        identity: Identity = Depends(get_identity),
    ):
        require_admin(identity)
        return DashboardStatsResponse(**state.orders.get_dashboard_stats().to_dict())

    @app.get("/api/admin/orders", response_model=OrderListResponse)
    def list_orders(
        limit: int = Query(default=10, ge=1),
        state: ShopState = Depends(get_state),
        identity: Identity = Depends(get_identity),
    ):
        require_admin(identity)
        orders = state.orders.get_recent_orders(limit)
        return OrderListResponse(
            orders=[order_to_schema(o) for o in orders],
            count=len(orders),
        )

    @app.patch("/api/admin/orders/{order_id}", response_model=OrderSchema)
    def update_order_status(
        order_id: str,
        request: OrderStatusUpdateRequest,
        state: ShopState = Depends(get_state),
        identity: Identity = Depends(get_identity),
    ):
        require_admin(identity)
        if not retry_on_conflict(
            state.orders, lambda: state.orders.update_order_status(order_id, request.status)
        ):
            raise OrderNotFoundError(order_id)
        return order_to_schema(state.orders.get_order_by_id(order_id))
