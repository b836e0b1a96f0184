"""Data models for printshop."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
import uuid


def _utc_now() -> str:
    """Return current UTC time as ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _generate_id() -> str:
    """Generate a new opaque ID."""
    return str(uuid.uuid4())


PRODUCT_CATEGORIES = ("kartvizit", "brosur", "afis", "katalog", "ozel-baski")


# Catalog models


@dataclass
class SizeOption:
    """A paper size choice with its price multiplier."""

    id: str
    name: str
    multiplier: float
    dimensions: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "dimensions": self.dimensions,
            "multiplier": self.multiplier,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SizeOption":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            multiplier=data["multiplier"],
            dimensions=data.get("dimensions", ""),
        )


@dataclass
class PaperTypeOption:
    """A paper stock choice with its price multiplier."""

    id: str
    name: str
    multiplier: float
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "multiplier": self.multiplier,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PaperTypeOption":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            multiplier=data["multiplier"],
            description=data.get("description", ""),
        )


@dataclass
class PrintSideOption:
    """Single or double sided printing with its price multiplier."""

    id: str
    name: str
    multiplier: float

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "multiplier": self.multiplier}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrintSideOption":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            multiplier=data["multiplier"],
        )


@dataclass
class PrintOptions:
    """All option groups a product offers, plus its allowed quantities."""

    sizes: list[SizeOption] = field(default_factory=list)
    paper_types: list[PaperTypeOption] = field(default_factory=list)
    print_sides: list[PrintSideOption] = field(default_factory=list)
    quantities: list[int] = field(default_factory=list)

    def find_size(self, size_id: str) -> SizeOption | None:
        return next((s for s in self.sizes if s.id == size_id), None)

    def find_paper_type(self, paper_type_id: str) -> PaperTypeOption | None:
        return next((p for p in self.paper_types if p.id == paper_type_id), None)

    def find_print_side(self, print_side_id: str) -> PrintSideOption | None:
        return next((s for s in self.print_sides if s.id == print_side_id), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sizes": [s.to_dict() for s in self.sizes],
            "paper_types": [p.to_dict() for p in self.paper_types],
            "print_sides": [s.to_dict() for s in self.print_sides],
            "quantities": list(self.quantities),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PrintOptions":
        return cls(
            sizes=[SizeOption.from_dict(s) for s in data.get("sizes", [])],
            paper_types=[PaperTypeOption.from_dict(p) for p in data.get("paper_types", [])],
            print_sides=[PrintSideOption.from_dict(s) for s in data.get("print_sides", [])],
            quantities=list(data.get("quantities", [])),
        )


@dataclass
class Product:
    """A catalog product. Read-only from the point of view of cart and orders."""

    id: str
    slug: str
    name: str
    category: str
    base_price: float
    print_options: PrintOptions
    description: str = ""
    short_description: str = ""
    images: list[str] = field(default_factory=list)
    featured: bool = False
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "category": self.category,
            "base_price": self.base_price,
            "images": list(self.images),
            "print_options": self.print_options.to_dict(),
            "featured": self.featured,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        return cls(
            id=data["id"],
            slug=data["slug"],
            name=data["name"],
            category=data.get("category", ""),
            base_price=data["base_price"],
            print_options=PrintOptions.from_dict(data.get("print_options", {})),
            description=data.get("description", ""),
            short_description=data.get("short_description", ""),
            images=list(data.get("images", [])),
            featured=data.get("featured", False),
            created_at=data.get("created_at", ""),
        )


# Cart models


@dataclass(frozen=True)
class SelectedPrintOptions:
    """One choice from each option group, plus a quantity."""

    size_id: str
    paper_type_id: str
    print_side_id: str
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "size_id": self.size_id,
            "paper_type_id": self.paper_type_id,
            "print_side_id": self.print_side_id,
            "quantity": self.quantity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SelectedPrintOptions":
        return cls(
            size_id=data["size_id"],
            paper_type_id=data["paper_type_id"],
            print_side_id=data["print_side_id"],
            quantity=data["quantity"],
        )


@dataclass(frozen=True)
class CartItem:
    """
    A line item: a product snapshot configured with one set of options.

    calculated_price always matches the price of (product, selected_options);
    a quantity change produces a new CartItem instead of mutating this one.
    """

    id: str
    product: Product
    selected_options: SelectedPrintOptions
    calculated_price: float
    added_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product": self.product.to_dict(),
            "selected_options": self.selected_options.to_dict(),
            "calculated_price": self.calculated_price,
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CartItem":
        return cls(
            id=data["id"],
            product=Product.from_dict(data["product"]),
            selected_options=SelectedPrintOptions.from_dict(data["selected_options"]),
            calculated_price=data["calculated_price"],
            added_at=data.get("added_at", ""),
        )


# Order models


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class CustomerInfo:
    """Customer contact and shipping information captured at checkout."""

    first_name: str
    last_name: str
    email: str
    phone: str
    address: str
    city: str
    postal_code: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self) -> dict[str, Any]:
        return {
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "postal_code": self.postal_code,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CustomerInfo":
        return cls(
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address", ""),
            city=data.get("city", ""),
            postal_code=data.get("postal_code", ""),
        )


@dataclass
class Order:
    """A placed order. Only status changes after creation."""

    id: str
    order_number: str
    items: list[CartItem]
    customer_info: CustomerInfo
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING
    created_at: str = field(default_factory=_utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "order_number": self.order_number,
            "items": [i.to_dict() for i in self.items],
            "customer_info": self.customer_info.to_dict(),
            "total_amount": self.total_amount,
            "status": self.status.value,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Order":
        return cls(
            id=data["id"],
            order_number=data["order_number"],
            items=[CartItem.from_dict(i) for i in data.get("items", [])],
            customer_info=CustomerInfo.from_dict(data.get("customer_info", {})),
            total_amount=data["total_amount"],
            status=OrderStatus(data.get("status", OrderStatus.PENDING.value)),
            created_at=data.get("created_at", ""),
        )


# Reporting models


@dataclass(frozen=True)
class BestSeller:
    """The product with the highest cumulative ordered quantity."""

    product_id: str
    product_name: str
    quantity: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class DashboardStats:
    total_orders: int
    total_revenue: float
    best_selling_product: BestSeller | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_orders": self.total_orders,
            "total_revenue": self.total_revenue,
            "best_selling_product": (
                self.best_selling_product.to_dict()
                if self.best_selling_product is not None
                else None
            ),
        }
