"""Checkout: customer data validation and order placement."""

import asyncio
import re
from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, field_validator

from .activity import ActionType, ActivityLog
from .cart import Cart
from .errors import EmptyCartError, InvalidCustomerInfoError
from .logging_utils import get_logger
from .models import CustomerInfo, Order
from .orders import OrderBook
from .settings import CHECKOUT_DELAY_SECONDS
from .storage import retry_on_conflict

logger = get_logger(__name__)

# Turkish mobile numbers: 05XX XXX XX XX, +90 5XX XXX XX XX
PHONE_RE = re.compile(r"^(\+90|0)?5[0-9]{9}$")
_PHONE_NOISE_RE = re.compile(r"[\s\-()]")


class CustomerInfoForm(BaseModel):
    """Contact and shipping fields as submitted at checkout."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(..., min_length=2)
    last_name: str = Field(..., min_length=2)
    email: EmailStr
    phone: str
    address: str = Field(..., min_length=10)
    city: str = Field(..., min_length=1)
    postal_code: str = Field(..., pattern=r"^[0-9]{5}$")

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if not PHONE_RE.match(_PHONE_NOISE_RE.sub("", value)):
            raise ValueError("Enter a valid phone number (05XX XXX XX XX)")
        return value

    def to_customer_info(self) -> CustomerInfo:
        return CustomerInfo(**self.model_dump())


@dataclass
class ValidationResult:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_customer_info(info: CustomerInfo) -> ValidationResult:
    """Check contact and shipping fields; errors are keyed by field name."""
    try:
        CustomerInfoForm.model_validate(info.to_dict())
    except ValidationError as e:
        return ValidationResult({str(err["loc"][0]): err["msg"] for err in e.errors()})
    return ValidationResult()


async def place_order(
    cart: Cart,
    order_book: OrderBook,
    customer_info: CustomerInfo,
    delay: float | None = None,
    activity: ActivityLog | None = None,
) -> Order:
    """
    Turn the cart's current items into an order, then remove them from the cart.

    The delay stands in for payment processing. It is not a timeout. Items
    added while it runs stay in the cart for the next checkout.

    Raises:
        CheckoutInProgressError: If this cart is already being checked out.
        EmptyCartError: If the cart has no items.
        InvalidCustomerInfoError: If customer_info fails validation.
    """
    with cart.checkout_session():
        items = cart.items
        if not items:
            raise EmptyCartError()

        validation = validate_customer_info(customer_info)
        if not validation.is_valid:
            raise InvalidCustomerInfoError(validation.errors)

        total = sum((i.calculated_price for i in items), 0)
        logger.info("Checkout started: %d items, total %.2f", len(items), total)
        if activity is not None:
            activity.record(ActionType.CHECKOUT_START, cart_total=total, item_count=len(items))

        await asyncio.sleep(CHECKOUT_DELAY_SECONDS if delay is None else delay)

        order = retry_on_conflict(
            order_book, lambda: order_book.create_order(items, customer_info, total)
        )
        ordered_ids = [i.id for i in items]
        retry_on_conflict(cart, lambda: cart.remove_items(ordered_ids))
        return order
