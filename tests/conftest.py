"""Pytest fixtures for printshop tests."""

import tempfile
from pathlib import Path

import pytest

from printshop.models import (
    CartItem,
    CustomerInfo,
    PaperTypeOption,
    PrintOptions,
    PrintSideOption,
    Product,
    SelectedPrintOptions,
    SizeOption,
)
from printshop.storage import MemoryStore


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def memory_store():
    return MemoryStore()


def _make_product(
    product_id: str = "prod_card",
    name: str = "Kartvizit",
    base_price: float = 150,
) -> Product:
    """Build a product with two choices per option group."""
    return Product(
        id=product_id,
        slug=product_id.replace("_", "-"),
        name=name,
        category="kartvizit",
        base_price=base_price,
        print_options=PrintOptions(
            sizes=[
                SizeOption(id="s1", name="Standart", multiplier=1.0, dimensions="85x55 mm"),
                SizeOption(id="s2", name="Büyük", multiplier=1.5, dimensions="90x60 mm"),
            ],
            paper_types=[
                PaperTypeOption(id="p1", name="Mat", multiplier=1.0),
                PaperTypeOption(id="p2", name="Parlak", multiplier=1.2),
            ],
            print_sides=[
                PrintSideOption(id="ps1", name="Tek Yüz", multiplier=1.0),
                PrintSideOption(id="ps2", name="Çift Yüz", multiplier=2.0),
            ],
            quantities=[100, 250, 500, 1000],
        ),
        description="Kuşe kağıda kartvizit",
        short_description="Kartvizit",
    )


def _make_options(quantity: int = 100, size_id: str = "s1") -> SelectedPrintOptions:
    return SelectedPrintOptions(
        size_id=size_id, paper_type_id="p1", print_side_id="ps1", quantity=quantity
    )


def _make_item(product: Product, quantity: int, price: float = 0.0) -> CartItem:
    return CartItem(
        id=f"item_{product.id}_{quantity}",
        product=product,
        selected_options=_make_options(quantity),
        calculated_price=price,
        added_at="2024-01-15T10:00:00Z",
    )


@pytest.fixture
def make_product():
    return _make_product


@pytest.fixture
def make_options():
    return _make_options


@pytest.fixture
def make_item():
    return _make_item


@pytest.fixture
def product():
    return _make_product()


@pytest.fixture
def customer():
    return CustomerInfo(
        first_name="Ayşe",
        last_name="Yılmaz",
        email="ayse@example.com",
        phone="0532 123 45 67",
        address="Çiçek Sokak No: 5, Şişli",
        city="İstanbul",
        postal_code="34380",
    )
