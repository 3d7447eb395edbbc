import pytest

from wholesale.models import Order, OrderItem, Product, ProductVariant
from wholesale.services.cart_service import (
    CartLine,
    add_to_cart,
    cart_from_payload,
    merge_line,
    quote_cart,
    remove_line,
    reorder_into_cart,
)
from wholesale.services.fulfillment_service import CartValidationError


def _product(pid, **kwargs):
    variants = kwargs.pop("variants", [])
    fields = {"id": pid, "sku": f"SKU-{pid}", "title": f"P{pid}", "price": 10.0, "unit": "m",
              "moq": 1, "available_qty": 100, "reserved_qty": 0}
    fields.update(kwargs)
    p = Product(**fields)
    p.variants = [ProductVariant(code=c, name=n, stock=s) for c, n, s in variants]
    return p


def test_add_merges_same_product_and_variant():
    p = _product(1, variants=[("A", "Navy", 100), ("B", "Black", 100)])
    cart = add_to_cart([], p, 10, variant_id="A")
    cart = add_to_cart(cart, p, 5, variant_id="A")
    cart = add_to_cart(cart, p, 3, variant_id="B")

    assert len(cart) == 2
    assert cart[0] == CartLine(product_id=1, quantity=15, force_factory=False, variant_id="A")
    assert cart[1].quantity == 3


def test_add_ors_force_factory_flag():
    p = _product(1, factory_moq=1)
    cart = add_to_cart([], p, 10, force_factory=True)
    cart = add_to_cart(cart, p, 10, force_factory=False)
    assert cart[0].force_factory is True
    assert cart[0].quantity == 20


def test_add_rejects_below_moq_and_leaves_cart_untouched():
    p = _product(1, moq=50)
    cart = [CartLine(product_id=1, quantity=60)]
    with pytest.raises(CartValidationError):
        add_to_cart(cart, p, 5)
    assert cart == [CartLine(product_id=1, quantity=60)]


def test_variant_is_dropped_for_plain_products():
    p = _product(1)
    cart = add_to_cart([], p, 5, variant_id="A")
    assert cart[0].variant_id is None


def test_remove_line():
    cart = [CartLine(1, 5), CartLine(2, 5, variant_id="A"), CartLine(2, 5, variant_id="B")]
    assert remove_line(cart, 2, "A") == [CartLine(1, 5), CartLine(2, 5, variant_id="B")]


def test_merge_takes_incoming_flag_when_not_keeping():
    cart = [CartLine(1, 5, force_factory=True)]
    merged = merge_line(cart, CartLine(1, 5, force_factory=False), keep_force_factory=False)
    assert merged == [CartLine(1, 10, force_factory=False)]


def test_reorder_merges_and_skips_missing_products():
    order = Order(items=[
        OrderItem(product_id=1, quantity=20, force_factory=True, variant_id=None),
        OrderItem(product_id=2, quantity=7, force_factory=False, variant_id="A"),
        OrderItem(product_id=99, quantity=3, force_factory=False, variant_id=None),
    ])
    products = {1: _product(1), 2: _product(2, variants=[("A", "Navy", 5)])}
    cart = [CartLine(1, 5, force_factory=False)]

    result = reorder_into_cart(cart, order, products)

    assert result == [
        CartLine(1, 25, force_factory=True),
        CartLine(2, 7, force_factory=False, variant_id="A"),
    ]


def test_quote_uses_live_stock_and_reports_missing_products():
    products = {1: _product(1, available_qty=5)}
    cart = [CartLine(1, 8), CartLine(42, 1)]

    quote = quote_cart(cart, products)

    assert quote["total_amount"] == pytest.approx(79.1)
    assert quote["total_savings"] == pytest.approx(0.9)
    assert quote["lines"][0]["stock_qty"] == 5
    assert quote["lines"][0]["factory_qty"] == 3
    assert quote["unavailable"] == [CartLine(42, 1).to_dict()]


@pytest.mark.parametrize("payload", [
    "nope",
    [{"product_id": "1", "quantity": 1}],
    [{"product_id": 1, "quantity": 0}],
    [{"product_id": 1, "quantity": True}],
])
def test_cart_payload_validation(payload):
    with pytest.raises(CartValidationError):
        cart_from_payload(payload)


def test_quote_ignores_variant_id_on_plain_product():
    products = {1: _product(1, available_qty=5)}
    quote = quote_cart([CartLine(1, 8, variant_id="A")], products)
    assert quote["lines"][0]["stock_qty"] == 5
    assert quote["lines"][0]["factory_qty"] == 3
