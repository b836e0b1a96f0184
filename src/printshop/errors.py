"""Custom exceptions for printshop."""


class PrintshopError(Exception):
    """Base exception for all printshop errors."""

    pass


class StorageError(PrintshopError):
    """Raised when a persisted document cannot be read or written."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Storage error for '{key}': {reason}")


class InvalidSchemaVersionError(PrintshopError):
    """Raised when a persisted document has an unsupported schema version."""

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(
            f"Unsupported schema version {found}. This tool supports version {supported}."
        )


class ConcurrentModificationError(PrintshopError):
    """Raised when a document was saved by another writer since it was loaded."""

    def __init__(self, key: str, expected: int, actual: int):
        self.key = key
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Document '{key}' was modified concurrently "
            f"(expected revision {expected}, found {actual})"
        )


class ProductNotFoundError(PrintshopError):
    """Raised when a product id or slug doesn't exist in the catalog."""

    def __init__(self, product_ref: str):
        self.product_ref = product_ref
        super().__init__(f"Product not found: {product_ref}")


class CartItemNotFoundError(PrintshopError):
    """Raised when a cart item id doesn't exist."""

    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"Cart item not found: {item_id}")


class OrderNotFoundError(PrintshopError):
    """Raised when an order id or order number doesn't exist."""

    def __init__(self, order_ref: str):
        self.order_ref = order_ref
        super().__init__(f"Order not found: {order_ref}")


class InvalidOrderStatusError(PrintshopError):
    """Raised when a status value is not one of the known order statuses."""

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Invalid order status: {status}")


class InvalidQuantityError(PrintshopError):
    """Raised when a quantity update is rejected."""

    def __init__(self, quantity: int):
        self.quantity = quantity
        super().__init__(f"Invalid quantity {quantity}: must be >= 1")


class EmptyCartError(PrintshopError):
    """Raised when checking out a cart with no items."""

    def __init__(self):
        super().__init__("Cannot check out an empty cart")


class CheckoutInProgressError(PrintshopError):
    """Raised when a cart is checked out while its previous checkout is still running."""

    def __init__(self):
        super().__init__("A checkout for this cart is already in progress")


class InvalidCustomerInfoError(PrintshopError):
    """Raised when customer contact or shipping data fails validation."""

    def __init__(self, errors: dict[str, str]):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid customer information: {fields}")


class AdminRequiredError(PrintshopError):
    """Raised when a reporting operation is attempted without admin rights."""

    def __init__(self):
        super().__init__("Admin access required")


class PrintOptionNotFoundError(PrintshopError):
    """Raised when a quoted option id is not offered by the product."""

    def __init__(self, product_id: str, option_id: str):
        self.product_id = product_id
        self.option_id = option_id
        super().__init__(f"Print option '{option_id}' not offered for product {product_id}")
