"""Tests for checkout validation and order placement."""

import asyncio
import dataclasses

import pytest

from printshop.activity import ActionType, ActivityLog
from printshop.cart import Cart
from pydantic import ValidationError

from printshop.checkout import CustomerInfoForm, place_order, validate_customer_info
from printshop.errors import CheckoutInProgressError, EmptyCartError, InvalidCustomerInfoError
from printshop.orders import OrderBook


class TestValidateCustomerInfo:
    def test_valid(self, customer):
        result = validate_customer_info(customer)

        assert result.is_valid
        assert result.errors == {}

    @pytest.mark.parametrize(
        "phone", ["05321234567", "5321234567", "+905321234567", "+90 (532) 123-45-67"]
    )
    def test_valid_phone_formats(self, customer, phone):
        info = dataclasses.replace(customer, phone=phone)
        assert validate_customer_info(info).is_valid

    @pytest.mark.parametrize("phone", ["0212 123 45 67", "0532 123 45", "abc", "+1 532 123 45 67"])
    def test_invalid_phone(self, customer, phone):
        result = validate_customer_info(dataclasses.replace(customer, phone=phone))
        assert list(result.errors) == ["phone"]

    @pytest.mark.parametrize(
        "field,value",
        [
            ("first_name", ""),
            ("first_name", "A"),
            ("last_name", "  "),
            ("email", "not-an-email"),
            ("email", ""),
            ("phone", ""),
            ("address", "Kısa"),
            ("city", ""),
            ("postal_code", "3438"),
            ("postal_code", "34 380"),
        ],
    )
    def test_invalid_field(self, customer, field, value):
        result = validate_customer_info(dataclasses.replace(customer, **{field: value}))

        assert not result.is_valid
        assert list(result.errors) == [field]

    def test_collects_every_error(self, customer):
        info = dataclasses.replace(customer, first_name="", email="x", postal_code="")

        errors = validate_customer_info(info).errors

        assert set(errors) == {"first_name", "email", "postal_code"}


class TestCustomerInfoForm:
    def test_to_customer_info(self, customer):
        form = CustomerInfoForm(**{**customer.to_dict(), "city": "  İstanbul "})

        info = form.to_customer_info()

        assert info.city == "İstanbul"
        assert info.email == "ayse@example.com"
        assert info.phone == customer.phone

    def test_reports_each_bad_field(self, customer):
        data = {**customer.to_dict(), "email": "ayse-at-example", "address": "Kısa"}

        with pytest.raises(ValidationError) as exc_info:
            CustomerInfoForm(**data)

        assert {e["loc"][0] for e in exc_info.value.errors()} == {"email", "address"}


class TestPlaceOrder:
    def test_places_order_and_clears_cart(self, product, make_options, customer):
        activity = ActivityLog()
        cart = Cart(activity=activity)
        book = OrderBook(activity=activity)
        cart.add_item(product, make_options(100))
        cart.add_item(product, make_options(500))
        total = cart.get_total_amount()
        items = cart.items

        order = asyncio.run(place_order(cart, book, customer, delay=0, activity=activity))

        assert order.total_amount == total
        assert order.items == items
        assert cart.get_item_count() == 0
        assert book.get_order_by_number(order.order_number) is order
        assert activity.by_action(ActionType.CHECKOUT_START)[0].data == {
            "cart_total": total,
            "item_count": 2,
        }
        assert len(activity.by_action(ActionType.CHECKOUT_COMPLETE)) == 1

    def test_empty_cart(self, customer):
        book = OrderBook()

        with pytest.raises(EmptyCartError):
            asyncio.run(place_order(Cart(), book, customer, delay=0))

        assert book.get_total_orders_count() == 0

    def test_invalid_customer_keeps_cart(self, product, make_options, customer):
        cart = Cart()
        book = OrderBook()
        cart.add_item(product, make_options(100))
        customer.email = "broken"

        with pytest.raises(InvalidCustomerInfoError) as exc_info:
            asyncio.run(place_order(cart, book, customer, delay=0))

        assert exc_info.value.errors.keys() == {"email"}
        assert cart.get_item_count() == 1
        assert book.get_total_orders_count() == 0

    def test_persisted_checkout(self, memory_store, product, make_options, customer):
        cart = Cart.load(memory_store)
        book = OrderBook.load(memory_store)
        cart.add_item(product, make_options(250))

        order = asyncio.run(place_order(cart, book, customer, delay=0))

        assert Cart.load(memory_store).get_item_count() == 0
        assert OrderBook.load(memory_store).get_order_by_id(order.id) is not None

    def test_item_added_during_processing_stays_in_cart(self, product, make_options, customer):
        cart = Cart()
        book = OrderBook()
        cart.add_item(product, make_options(100))

        async def checkout_with_late_add():
            task = asyncio.create_task(place_order(cart, book, customer, delay=0.05))
            await asyncio.sleep(0)
            late = cart.add_item(product, make_options(500))
            return await task, late

        order, late = asyncio.run(checkout_with_late_add())

        assert [i.selected_options.quantity for i in order.items] == [100]
        assert order.total_amount == 14250
        assert cart.items == [late]

    def test_overlapping_checkouts_place_one_order(self, product, make_options, customer):
        cart = Cart()
        book = OrderBook()
        cart.add_item(product, make_options(100))

        async def checkout_twice():
            return await asyncio.gather(
                place_order(cart, book, customer, delay=0.01),
                place_order(cart, book, customer, delay=0.01),
                return_exceptions=True,
            )

        results = asyncio.run(checkout_twice())

        assert sum(isinstance(r, CheckoutInProgressError) for r in results) == 1
        assert book.get_total_orders_count() == 1
        assert book.get_total_revenue() == 14250
        assert cart.get_item_count() == 0

    def test_cart_can_check_out_again_afterwards(self, product, make_options, customer):
        cart = Cart()
        book = OrderBook()
        cart.add_item(product, make_options(100))
        asyncio.run(place_order(cart, book, customer, delay=0))

        cart.add_item(product, make_options(250))
        asyncio.run(place_order(cart, book, customer, delay=0))

        assert book.get_total_orders_count() == 2
