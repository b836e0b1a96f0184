"""Order book and sales reporting."""

import copy
import secrets
import threading
import time
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from .activity import ActionType, ActivityLog
from .errors import InvalidOrderStatusError
from .logging_utils import get_logger
from .models import (
    BestSeller,
    CartItem,
    CustomerInfo,
    DashboardStats,
    Order,
    OrderStatus,
    _generate_id,
    _utc_now,
)
from .settings import ORDERS_KEY
from .storage import Storage

logger = get_logger(__name__)

ORDER_NUMBER_PREFIX = "PS"

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_order_number() -> str:
    """
    Generate a human-readable order number.

    Format: PS-{base36 millisecond timestamp}-{4 random base36 chars}
    """
    timestamp = _to_base36(time.time_ns() // 1_000_000)
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"{ORDER_NUMBER_PREFIX}-{timestamp}-{suffix}"


def parse_status(status: OrderStatus | str) -> OrderStatus:
    """
    Convert a status value to OrderStatus.

    Raises:
        InvalidOrderStatusError: If the value is not a known status.
    """
    if isinstance(status, OrderStatus):
        return status
    try:
        return OrderStatus(status)
    except ValueError:
        raise InvalidOrderStatusError(str(status))


class OrderBook:
    """
    Append-only collection of orders, newest first.

    Only an order's status changes after creation; revenue and counts are
    always computed from the current orders.
    """

    def __init__(
        self,
        orders: Iterable[Order] | None = None,
        storage: Storage | None = None,
        activity: ActivityLog | None = None,
        key: str = ORDERS_KEY,
        revision: int | None = None,
    ):
        self._orders: list[Order] = list(orders or [])
        self._storage = storage
        self._activity = activity
        self._key = key
        self._revision = revision
        self._mutex = threading.RLock()

    @classmethod
    def load(
        cls,
        storage: Storage,
        activity: ActivityLog | None = None,
        key: str = ORDERS_KEY,
    ) -> "OrderBook":
        """Rehydrate the order book from storage (empty if nothing was saved)."""
        data = storage.load(key)
        if data is None:
            return cls(storage=storage, activity=activity, key=key, revision=0)
        return cls(
            orders=[Order.from_dict(o) for o in data.get("orders", [])],
            storage=storage,
            activity=activity,
            key=key,
            revision=data.get("revision", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        with self._mutex:
            return {"orders": [o.to_dict() for o in self._orders]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "OrderBook":
        return cls(orders=[Order.from_dict(o) for o in data.get("orders", [])])

    def refresh(self) -> None:
        """Reload orders and revision from storage."""
        if self._storage is None:
            return
        with self._mutex:
            data = self._storage.load(self._key)
            if data is None:
                self._orders, self._revision = [], 0
            else:
                self._orders = [Order.from_dict(o) for o in data.get("orders", [])]
                self._revision = data.get("revision", 0)

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._mutex:
            before = [(o, o.status) for o in self._orders]
            try:
                yield
                if self._storage is not None:
                    self._revision = self._storage.save(
                        self._key, self.to_dict(), expected_revision=self._revision
                    )
            except Exception:
                self._orders = [o for o, _ in before]
                for order, status in before:
                    order.status = status
                raise

    @property
    def orders(self) -> list[Order]:
        with self._mutex:
            return list(self._orders)

    @property
    def revision(self) -> int | None:
        return self._revision

    # Commands

    def _new_order_number(self) -> str:
        taken = {o.order_number for o in self._orders}
        number = generate_order_number()
        while number in taken:
            number = generate_order_number()
        return number

    def create_order(
        self,
        items: Iterable[CartItem],
        customer_info: CustomerInfo,
        total_amount: float,
    ) -> Order:
        """
        Record a new pending order.

        Items and customer info are copied, so later changes by the caller do
        not reach the order. The caller clears the cart.
        """
        with self._mutex:
            order = Order(
                id=_generate_id(),
                order_number=self._new_order_number(),
                items=copy.deepcopy(list(items)),
                customer_info=copy.deepcopy(customer_info),
                total_amount=total_amount,
                status=OrderStatus.PENDING,
                created_at=_utc_now(),
            )
            with self._mutation():
                self._orders.insert(0, order)

        logger.info(
            "Created order %s (%s) for %.2f", order.order_number, order.id, total_amount
        )
        if self._activity is not None:
            self._activity.record(
                ActionType.CHECKOUT_COMPLETE,
                order_id=order.id,
                order_number=order.order_number,
                total=total_amount,
            )
        return order

    def update_order_status(self, order_id: str, status: OrderStatus | str) -> bool:
        """
        Set an order's status. Any status may follow any other.

        Returns False if no order has that id.

        Raises:
            InvalidOrderStatusError: If status is not a known value.
        """
        new_status = parse_status(status)
        with self._mutex:
            order = self.get_order_by_id(order_id)
            if order is None:
                return False
            with self._mutation():
                order.status = new_status

        logger.info("Order %s status set to %s", order_id, new_status.value)
        return True

    # Queries

    def get_order_by_id(self, order_id: str) -> Order | None:
        with self._mutex:
            return next((o for o in self._orders if o.id == order_id), None)

    def get_order_by_number(self, order_number: str) -> Order | None:
        with self._mutex:
            return next((o for o in self._orders if o.order_number == order_number), None)

    def get_total_revenue(self) -> float:
        with self._mutex:
            return sum((o.total_amount for o in self._orders), 0)

    def get_total_orders_count(self) -> int:
        with self._mutex:
            return len(self._orders)

    def get_best_selling_product(self) -> BestSeller | None:
        """
        Product with the highest quantity summed over every item of every order.

        The name comes from the first item seen for that product. On a tie the
        product seen first wins (newest order first, then item order).
        """
        with self._mutex:
            if not self._orders:
                return None

            totals: dict[str, list[Any]] = {}
            for order in self._orders:
                for item in order.items:
                    product_id = item.product.id
                    if product_id not in totals:
                        totals[product_id] = [item.product.name, 0]
                    totals[product_id][1] += item.selected_options.quantity

        best: BestSeller | None = None
        max_quantity = 0
        for product_id, (name, quantity) in totals.items():
            if quantity > max_quantity:
                max_quantity = quantity
                best = BestSeller(product_id=product_id, product_name=name, quantity=quantity)
        return best

    def get_dashboard_stats(self) -> DashboardStats:
        with self._mutex:
            return DashboardStats(
                total_orders=self.get_total_orders_count(),
                total_revenue=self.get_total_revenue(),
                best_selling_product=self.get_best_selling_product(),
            )

    def get_recent_orders(self, count: int = 10) -> list[Order]:
        """The newest count orders; all of them if there are fewer."""
        if count <= 0:
            return []
        with self._mutex:
            return self._orders[:count]

    def __len__(self) -> int:
        return self.get_total_orders_count()
