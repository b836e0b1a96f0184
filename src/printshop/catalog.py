"""Product catalog."""

import dataclasses
import json
import re
import threading
from importlib import resources
from pathlib import Path
from typing import Any, Iterable

from .activity import ActionType, ActivityLog
from .errors import StorageError
from .logging_utils import get_logger
from .models import PrintOptions, Product, _generate_id, _utc_now

logger = get_logger(__name__)

_TURKISH_CHARS = str.maketrans(
    {
        "ç": "c", "Ç": "C",
        "ğ": "g", "Ğ": "G",
        "ı": "i", "İ": "I",
        "ö": "o", "Ö": "O",
        "ş": "s", "Ş": "S",
        "ü": "u", "Ü": "U",
    }
)

# Fields update_product() refuses to change
_IMMUTABLE_FIELDS = {"id", "created_at"}


def generate_slug(text: str) -> str:
    """Generate a URL-friendly slug, transliterating Turkish letters."""
    slug = text.translate(_TURKISH_CHARS).lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


class ProductCatalog:
    """In-memory product collection with lookups and admin edits."""

    def __init__(
        self,
        products: Iterable[Product] | None = None,
        activity: ActivityLog | None = None,
    ):
        self._products: list[Product] = list(products or [])
        self._activity = activity
        self._mutex = threading.RLock()

    @classmethod
    def from_dict(cls, data: dict[str, Any], activity: ActivityLog | None = None) -> "ProductCatalog":
        return cls([Product.from_dict(p) for p in data.get("products", [])], activity=activity)

    @classmethod
    def from_file(cls, path: Path | str, activity: ActivityLog | None = None) -> "ProductCatalog":
        """
        Load a catalog JSON file of the form {"products": [...]}.

        Raises:
            StorageError: If the file is missing or not valid JSON.
        """
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise StorageError(str(path), "catalog file not found") from e
        except json.JSONDecodeError as e:
            raise StorageError(str(path), f"corrupt JSON: {e}") from e
        return cls.from_dict(data, activity=activity)

    @classmethod
    def default(cls, activity: ActivityLog | None = None) -> "ProductCatalog":
        """Load the seed catalog shipped with the package."""
        text = resources.files("printshop").joinpath("data/products.json").read_text(
            encoding="utf-8"
        )
        return cls.from_dict(json.loads(text), activity=activity)

    def to_dict(self) -> dict[str, Any]:
        with self._mutex:
            return {"products": [p.to_dict() for p in self._products]}

    @property
    def products(self) -> list[Product]:
        with self._mutex:
            return list(self._products)

    # Queries

    def get_product_by_id(self, product_id: str) -> Product | None:
        with self._mutex:
            return next((p for p in self._products if p.id == product_id), None)

    def get_product_by_slug(self, slug: str) -> Product | None:
        with self._mutex:
            return next((p for p in self._products if p.slug == slug), None)

    def get_products_by_category(self, category: str) -> list[Product]:
        with self._mutex:
            return [p for p in self._products if p.category == category]

    def get_featured_products(self) -> list[Product]:
        with self._mutex:
            return [p for p in self._products if p.featured]

    def search_products(self, query: str) -> list[Product]:
        """Case-insensitive match on name, description and short description."""
        needle = query.lower()
        with self._mutex:
            return [
                p
                for p in self._products
                if needle in p.name.lower()
                or needle in p.description.lower()
                or needle in p.short_description.lower()
            ]

    # Admin commands

    def add_product(
        self,
        name: str,
        category: str,
        base_price: float,
        print_options: PrintOptions,
        description: str = "",
        short_description: str = "",
        images: list[str] | None = None,
        featured: bool = False,
    ) -> Product:
        """Add a product with a generated id and a slug derived from its name."""
        product = Product(
            id=f"prod_{_generate_id()}",
            slug=generate_slug(name),
            name=name,
            category=category,
            base_price=base_price,
            print_options=print_options,
            description=description,
            short_description=short_description,
            images=list(images or []),
            featured=featured,
            created_at=_utc_now(),
        )
        with self._mutex:
            self._products.append(product)

        logger.info("Added product %s (%s)", product.id, product.name)
        if self._activity is not None:
            self._activity.record(
                ActionType.ADMIN_ADD_PRODUCT, product_id=product.id, product_name=product.name
            )
        return product

    def update_product(self, product_id: str, **changes: Any) -> Product | None:
        """
        Apply field changes to a product; None if no product has that id.

        Raises:
            ValueError: If a change names an unknown or immutable field.
        """
        known = {f.name for f in dataclasses.fields(Product)}
        bad = [k for k in changes if k in _IMMUTABLE_FIELDS or k not in known]
        if bad:
            raise ValueError(f"Cannot update product fields: {', '.join(sorted(bad))}")

        with self._mutex:
            product = self.get_product_by_id(product_id)
            if product is None:
                return None
            for name, value in changes.items():
                setattr(product, name, value)
        return product

    def delete_product(self, product_id: str) -> bool:
        with self._mutex:
            product = self.get_product_by_id(product_id)
            if product is None:
                return False
            self._products.remove(product)

        logger.info("Deleted product %s (%s)", product.id, product.name)
        if self._activity is not None:
            self._activity.record(
                ActionType.ADMIN_DELETE_PRODUCT, product_id=product.id, product_name=product.name
            )
        return True

    def __len__(self) -> int:
        return len(self._products)
