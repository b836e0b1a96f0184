"""Shopping cart aggregate."""

import copy
import dataclasses
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator

from .activity import ActionType, ActivityLog
from .errors import CheckoutInProgressError
from .logging_utils import get_logger
from .models import CartItem, Product, SelectedPrintOptions, _generate_id, _utc_now
from .pricing import calculate_price
from .settings import CART_KEY
from .storage import Storage

logger = get_logger(__name__)


def calculate_item_price(product: Product, options: SelectedPrintOptions) -> float:
    """
    Price a product configured with the selected options.

    If any option id is missing from the product's option lists the price
    falls back to base_price * quantity.
    """
    size = product.print_options.find_size(options.size_id)
    paper = product.print_options.find_paper_type(options.paper_type_id)
    side = product.print_options.find_print_side(options.print_side_id)

    if size is None or paper is None or side is None:
        logger.warning(
            "Unresolved print option for product %s (size=%s, paper=%s, side=%s); "
            "using fallback pricing",
            product.id,
            options.size_id,
            options.paper_type_id,
            options.print_side_id,
        )
        return product.base_price * options.quantity

    return calculate_price(
        product.base_price,
        size.multiplier,
        paper.multiplier,
        side.multiplier,
        options.quantity,
    )


class Cart:
    """
    Ordered collection of line items.

    total == sum of item prices and item count == number of items at all
    times. Mutations are serialized with a lock and, when a storage adapter
    is attached, saved after each change.
    """

    def __init__(
        self,
        items: Iterable[CartItem] | None = None,
        storage: Storage | None = None,
        activity: ActivityLog | None = None,
        key: str = CART_KEY,
        revision: int | None = None,
    ):
        self._items: list[CartItem] = list(items or [])
        self._storage = storage
        self._activity = activity
        self._key = key
        self._revision = revision
        self._mutex = threading.RLock()
        self._checking_out = False

    @classmethod
    def load(
        cls,
        storage: Storage,
        activity: ActivityLog | None = None,
        key: str = CART_KEY,
    ) -> "Cart":
        """Rehydrate a cart from storage (empty if nothing was saved)."""
        data = storage.load(key)
        if data is None:
            return cls(storage=storage, activity=activity, key=key, revision=0)
        items = [CartItem.from_dict(i) for i in data.get("items", [])]
        return cls(
            items=items,
            storage=storage,
            activity=activity,
            key=key,
            revision=data.get("revision", 0),
        )

    def to_dict(self) -> dict[str, Any]:
        with self._mutex:
            return {"items": [i.to_dict() for i in self._items]}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Cart":
        return cls(items=[CartItem.from_dict(i) for i in data.get("items", [])])

    def refresh(self) -> None:
        """Reload items and revision from storage, dropping unsaved state."""
        if self._storage is None:
            return
        with self._mutex:
            data = self._storage.load(self._key)
            if data is None:
                self._items, self._revision = [], 0
            else:
                self._items = [CartItem.from_dict(i) for i in data.get("items", [])]
                self._revision = data.get("revision", 0)

    @contextmanager
    def checkout_session(self) -> Iterator[None]:
        """
        Mark the cart as being checked out for the duration of the block.

        Raises:
            CheckoutInProgressError: If another checkout of this cart is running.
        """
        with self._mutex:
            if self._checking_out:
                raise CheckoutInProgressError()
            self._checking_out = True
        try:
            yield
        finally:
            with self._mutex:
                self._checking_out = False

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Run a mutation under the lock and persist it; roll back if saving fails."""
        with self._mutex:
            before = list(self._items)
            try:
                yield
                self._persist()
            except Exception:
                self._items = before
                raise

    def _persist(self) -> None:
        if self._storage is None:
            return
        self._revision = self._storage.save(
            self._key, self.to_dict(), expected_revision=self._revision
        )

    def _record(self, action: ActionType, **data: Any) -> None:
        if self._activity is not None:
            self._activity.record(action, **data)

    @property
    def items(self) -> list[CartItem]:
        with self._mutex:
            return list(self._items)

    @property
    def revision(self) -> int | None:
        return self._revision

    # Commands

    def add_item(self, product: Product, options: SelectedPrintOptions) -> CartItem:
        """Add a new line item. The same product and options may be added twice."""
        snapshot = copy.deepcopy(product)
        item = CartItem(
            id=_generate_id(),
            product=snapshot,
            selected_options=options,
            calculated_price=calculate_item_price(snapshot, options),
            added_at=_utc_now(),
        )

        with self._mutation():
            self._items.append(item)

        logger.info("Added %s x%d to cart as %s", product.id, options.quantity, item.id)
        self._record(ActionType.ADD_TO_CART, product_id=product.id, quantity=options.quantity)
        return item

    def remove_item(self, item_id: str) -> bool:
        """Remove a line item; False if no item has that id."""
        with self._mutex:
            index = self._index_of(item_id)
            if index is None:
                return False
            with self._mutation():
                removed = self._items.pop(index)

        logger.info("Removed %s from cart", item_id)
        self._record(ActionType.REMOVE_FROM_CART, product_id=removed.product.id)
        return True

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        """
        Change the quantity of a line item and reprice it.

        Returns False without changing anything if the item is missing or
        quantity is below 1.
        """
        with self._mutex:
            index = self._index_of(item_id)
            if index is None or quantity < 1:
                return False

            item = self._items[index]
            options = dataclasses.replace(item.selected_options, quantity=quantity)
            updated = dataclasses.replace(
                item,
                selected_options=options,
                calculated_price=calculate_item_price(item.product, options),
            )
            with self._mutation():
                self._items[index] = updated

        logger.info("Updated %s quantity to %d", item_id, quantity)
        self._record(
            ActionType.UPDATE_CART_QUANTITY, product_id=item.product.id, quantity=quantity
        )
        return True

    def remove_items(self, item_ids: Iterable[str]) -> int:
        """Remove every listed item in one save; returns how many were present."""
        wanted = set(item_ids)
        with self._mutex:
            present = [i for i in self._items if i.id in wanted]
            if not present:
                return 0
            with self._mutation():
                self._items = [i for i in self._items if i.id not in wanted]

        logger.info("Removed %d item(s) from cart", len(present))
        return len(present)

    def clear_cart(self) -> None:
        with self._mutation():
            self._items.clear()
        logger.info("Cart cleared")

    # Queries

    def _index_of(self, item_id: str) -> int | None:
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return None

    def get_item_count(self) -> int:
        with self._mutex:
            return len(self._items)

    def get_total_amount(self) -> float:
        with self._mutex:
            return sum((i.calculated_price for i in self._items), 0)

    def get_item_by_id(self, item_id: str) -> CartItem | None:
        with self._mutex:
            index = self._index_of(item_id)
            return self._items[index] if index is not None else None

    def has_item(self, product_id: str, options: SelectedPrintOptions) -> bool:
        """True if a line item has this product and exactly these options."""
        with self._mutex:
            return any(
                i.product.id == product_id and i.selected_options == options
                for i in self._items
            )

    def __len__(self) -> int:
        return self.get_item_count()
