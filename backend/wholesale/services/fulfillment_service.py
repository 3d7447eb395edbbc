# Overview: Stock/factory split and blended pricing for a single cart or order line.

"""
Fulfillment Resolver

Every line is satisfied from on-hand stock first, and the remainder is
backordered from the factory at a discount. A client may force a line to be
sourced entirely from the factory.

    stock_qty   = 0 if force_factory else min(requested, max(0, available))
    factory_qty = requested - stock_qty
    total_cost  = stock_qty * price + factory_qty * price * (1 - rate)
    savings     = requested * price - total_cost

resolve() is pure. Checkout calls it once per line to build the stored split,
and the cart quote calls it again for live totals; both must agree.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from flask import current_app, has_app_context

from ..validation import ValidationError


FACTORY_DISCOUNT_RATE = 0.03


class CartValidationError(ValidationError):
    """Raised when a line cannot be added to the cart."""


@dataclass(frozen=True)
class Fulfillment:
    stock_qty: int
    factory_qty: int
    unit_price: float
    factory_unit_price: float
    stock_cost: float
    factory_cost: float
    total_cost: float
    savings: float

    @property
    def quantity(self) -> int:
        return self.stock_qty + self.factory_qty

    def to_dict(self) -> dict:
        return asdict(self)


def configured_discount_rate() -> float:
    if has_app_context():
        return float(current_app.config.get("FACTORY_DISCOUNT_RATE", FACTORY_DISCOUNT_RATE))
    return FACTORY_DISCOUNT_RATE


def factory_unit_price(unit_price: float, factory_discount_rate: float = FACTORY_DISCOUNT_RATE) -> float:
    return unit_price * (1 - factory_discount_rate)


def blended_total(
    stock_qty: int,
    factory_qty: int,
    unit_price: float,
    factory_discount_rate: float = FACTORY_DISCOUNT_RATE,
) -> float:
    """Line total for an already-resolved split (used by reports on snapshots)."""
    return (stock_qty * unit_price) + (factory_qty * factory_unit_price(unit_price, factory_discount_rate))


def resolve(
    requested_qty: int,
    available_stock: float,
    force_factory: bool,
    unit_price: float,
    factory_discount_rate: float = FACTORY_DISCOUNT_RATE,
) -> Fulfillment:
    requested = max(0, int(requested_qty or 0))
    available = max(0, available_stock or 0)
    price = float(unit_price or 0.0)

    if force_factory:
        stock_qty = 0
    else:
        stock_qty = int(min(requested, available))
    factory_qty = requested - stock_qty

    f_price = factory_unit_price(price, factory_discount_rate)
    stock_cost = stock_qty * price
    factory_cost = factory_qty * f_price
    total_cost = stock_cost + factory_cost

    return Fulfillment(
        stock_qty=stock_qty,
        factory_qty=factory_qty,
        unit_price=price,
        factory_unit_price=f_price,
        stock_cost=stock_cost,
        factory_cost=factory_cost,
        total_cost=total_cost,
        savings=requested * price - total_cost,
    )


def sellable_quantity(product, variant_id: str | None = None) -> int:
    """
    Quantity that can be sold from stock right now.

    A product with variants has no single stock figure: the selected
    variant's counter is used, and an unselected or unknown variant yields 0.
    """
    if product.has_variants:
        variant = product.find_variant(variant_id)
        if variant is None:
            return 0
        return max(0, variant.stock or 0)
    return max(0, (product.available_qty or 0) - (product.reserved_qty or 0))


def resolve_for_product(
    product,
    quantity: int,
    *,
    force_factory: bool = False,
    variant_id: str | None = None,
    factory_discount_rate: float | None = None,
) -> Fulfillment:
    rate = configured_discount_rate() if factory_discount_rate is None else factory_discount_rate
    return resolve(
        quantity,
        sellable_quantity(product, variant_id),
        force_factory,
        product.price,
        rate,
    )


def line_variant_id(product, variant_id: str | None) -> str | None:
    """The variant a line actually refers to; plain products carry none."""
    return variant_id if product.has_variants else None


def check_line_selection(product, quantity: int, variant_id: str | None = None) -> None:
    """
    MOQ and variant-selection rules for one line.

    Raises CartValidationError when the quantity is not positive or below the
    product MOQ, or when the product has variants and none (or an unknown
    one) is selected.
    """
    if quantity is None or quantity <= 0:
        raise CartValidationError("quantity must be a positive integer")

    if quantity < (product.moq or 0):
        raise CartValidationError(
            f"Quantity {quantity} is below the minimum order quantity of {product.moq} {product.unit}"
        )

    if product.has_variants and product.find_variant(variant_id) is None:
        raise CartValidationError("Select a color/variant before adding this product")


def effective_factory_moq(product) -> int:
    return product.factory_moq or product.moq or 0


def check_cart_line(product, quantity: int, *, force_factory: bool = False, variant_id: str | None = None) -> Fulfillment:
    """
    Validate a line before it enters the cart.

    Raises CartValidationError when:
    - quantity is below the product MOQ
    - the product has variants and none (or an unknown one) is selected
    - a factory portion exists but is below the factory MOQ
    """
    check_line_selection(product, quantity, variant_id)

    fulfillment = resolve_for_product(
        product, quantity, force_factory=force_factory, variant_id=variant_id
    )

    factory_moq = effective_factory_moq(product)
    if fulfillment.factory_qty > 0 and fulfillment.factory_qty < factory_moq:
        raise CartValidationError(
            f"Factory portion of {fulfillment.factory_qty} {product.unit} is below the factory minimum of "
            f"{factory_moq} {product.unit}"
        )

    return fulfillment
