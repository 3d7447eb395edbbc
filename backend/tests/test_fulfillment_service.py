"""Stock/factory split and blended pricing."""

import pytest

from wholesale.models import Product, ProductVariant
from wholesale.services.fulfillment_service import (
    CartValidationError,
    blended_total,
    check_cart_line,
    effective_factory_moq,
    resolve,
    sellable_quantity,
)


def _product(**kwargs):
    variants = kwargs.pop("variants", [])
    fields = {"sku": "FAB-1", "title": "Denim", "price": 10.0, "unit": "m", "moq": 1,
              "available_qty": 0, "reserved_qty": 0}
    fields.update(kwargs)
    p = Product(**fields)
    p.variants = [ProductVariant(code=c, name=n, stock=s) for c, n, s in variants]
    return p


class TestResolve:
    def test_partial_stock_is_topped_up_from_factory(self):
        f = resolve(8, 5, False, 10.0)
        assert f.stock_qty == 5
        assert f.factory_qty == 3
        assert f.total_cost == pytest.approx(79.1)
        assert f.savings == pytest.approx(0.9)

    def test_force_factory_ignores_stock(self):
        f = resolve(8, 5, True, 10.0)
        assert f.stock_qty == 0
        assert f.factory_qty == 8
        assert f.total_cost == pytest.approx(77.6)
        assert f.savings == pytest.approx(2.4)

    def test_enough_stock_has_no_savings(self):
        f = resolve(4, 10, False, 10.0)
        assert (f.stock_qty, f.factory_qty) == (4, 0)
        assert f.total_cost == pytest.approx(40.0)
        assert f.savings == pytest.approx(0.0)

    def test_zero_quantity_is_all_zeros(self):
        f = resolve(0, 10, False, 10.0)
        assert f.stock_qty == 0
        assert f.factory_qty == 0
        assert f.total_cost == 0
        assert f.savings == 0

    def test_negative_stock_is_clamped(self):
        f = resolve(3, -7, False, 10.0)
        assert f.stock_qty == 0
        assert f.factory_qty == 3

    def test_custom_discount_rate(self):
        f = resolve(10, 0, False, 10.0, factory_discount_rate=0.1)
        assert f.factory_unit_price == pytest.approx(9.0)
        assert f.total_cost == pytest.approx(90.0)

    @pytest.mark.parametrize("requested", [0, 1, 7, 50, 300])
    @pytest.mark.parametrize("available", [-5, 0, 3, 50, 1000])
    @pytest.mark.parametrize("force", [False, True])
    def test_split_invariants(self, requested, available, force):
        price = 12.5
        f = resolve(requested, available, force, price)
        assert f.stock_qty + f.factory_qty == requested
        if force:
            assert f.stock_qty == 0
        assert f.total_cost == pytest.approx(f.stock_qty * price + f.factory_qty * price * 0.97)
        assert f.savings >= 0

    def test_blended_total_matches_resolve(self):
        f = resolve(120, 100, False, 5.0)
        assert blended_total(f.stock_qty, f.factory_qty, 5.0) == pytest.approx(f.total_cost)


class TestSellableQuantity:
    def test_plain_product_subtracts_reserved(self):
        assert sellable_quantity(_product(available_qty=10, reserved_qty=4)) == 6

    def test_reserved_above_available_is_zero(self):
        assert sellable_quantity(_product(available_qty=2, reserved_qty=5)) == 0

    def test_variant_stock_is_used(self):
        p = _product(available_qty=999, variants=[("A", "Navy", 7), ("B", "Black", 0)])
        assert sellable_quantity(p, "A") == 7
        assert sellable_quantity(p, "B") == 0

    def test_missing_variant_selection_is_zero(self):
        p = _product(available_qty=999, variants=[("A", "Navy", 7)])
        assert sellable_quantity(p) == 0
        assert sellable_quantity(p, "Z") == 0


class TestCheckCartLine:
    def test_below_moq_rejected(self):
        p = _product(moq=50, available_qty=100)
        with pytest.raises(CartValidationError, match="minimum order quantity"):
            check_cart_line(p, 10)

    def test_variant_required(self):
        p = _product(variants=[("A", "Navy", 10)])
        with pytest.raises(CartValidationError, match="variant"):
            check_cart_line(p, 5)

    def test_factory_portion_below_factory_moq_rejected(self):
        p = _product(moq=10, factory_moq=100, available_qty=40)
        with pytest.raises(CartValidationError, match="factory minimum"):
            check_cart_line(p, 60)

    def test_factory_moq_falls_back_to_moq(self):
        p = _product(moq=20, factory_moq=None, available_qty=30)
        assert effective_factory_moq(p) == 20
        with pytest.raises(CartValidationError):
            check_cart_line(p, 40)
        assert check_cart_line(p, 50).factory_qty == 20

    def test_fully_stocked_line_skips_factory_moq(self):
        p = _product(moq=10, factory_moq=500, available_qty=100)
        f = check_cart_line(p, 80)
        assert (f.stock_qty, f.factory_qty) == (80, 0)

    def test_forced_factory_must_meet_factory_moq(self):
        p = _product(moq=10, factory_moq=100, available_qty=1000)
        with pytest.raises(CartValidationError):
            check_cart_line(p, 50, force_factory=True)
        assert check_cart_line(p, 100, force_factory=True).factory_qty == 100
