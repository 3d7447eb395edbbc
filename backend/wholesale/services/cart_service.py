# Overview: Cart construction (add, merge, reorder) and live cart quotes.

"""
Cart Service

The cart is client-side state: a list of CartLine values passed in with each
request. Nothing here writes to the database. Lines are keyed by
(product_id, variant_id); adding an existing key merges quantities instead of
duplicating the line.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Mapping

from .fulfillment_service import (
    CartValidationError,
    check_cart_line,
    line_variant_id,
    resolve_for_product,
)


@dataclass(frozen=True)
class CartLine:
    product_id: int
    quantity: int
    force_factory: bool = False
    variant_id: str | None = None

    @property
    def key(self) -> tuple[int, str | None]:
        return (self.product_id, self.variant_id)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "force_factory": self.force_factory,
            "variant_id": self.variant_id,
        }


def line_from_payload(data) -> CartLine:
    if not isinstance(data, dict):
        raise CartValidationError("Cart line must be an object")

    product_id = data.get("product_id")
    quantity = data.get("quantity")
    if not isinstance(product_id, int) or isinstance(product_id, bool):
        raise CartValidationError("product_id must be an integer")
    if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
        raise CartValidationError("quantity must be a positive integer")

    variant_id = data.get("variant_id") or None
    return CartLine(
        product_id=product_id,
        quantity=quantity,
        force_factory=bool(data.get("force_factory", False)),
        variant_id=str(variant_id) if variant_id is not None else None,
    )


def cart_from_payload(items) -> list[CartLine]:
    if items is None:
        return []
    if not isinstance(items, list):
        raise CartValidationError("cart must be a list of lines")
    return [line_from_payload(item) for item in items]


def merge_line(cart: Iterable[CartLine], line: CartLine, *, keep_force_factory: bool = True) -> list[CartLine]:
    """
    Return a new cart with line merged in.

    keep_force_factory=True ORs the flag with the existing line (add-to-cart);
    False takes the incoming flag (reorder).
    """
    merged: list[CartLine] = []
    found = False
    for existing in cart:
        if existing.key == line.key and not found:
            force = (existing.force_factory or line.force_factory) if keep_force_factory else line.force_factory
            merged.append(replace(existing, quantity=existing.quantity + line.quantity, force_factory=force))
            found = True
        else:
            merged.append(existing)
    if not found:
        merged.append(line)
    return merged


def add_to_cart(
    cart: Iterable[CartLine],
    product,
    quantity: int,
    *,
    force_factory: bool = False,
    variant_id: str | None = None,
) -> list[CartLine]:
    """Validate MOQ / variant / factory MOQ, then merge into the cart."""
    check_cart_line(product, quantity, force_factory=force_factory, variant_id=variant_id)
    line = CartLine(
        product_id=product.id,
        quantity=quantity,
        force_factory=force_factory,
        variant_id=line_variant_id(product, variant_id),
    )
    return merge_line(cart, line)


def remove_line(cart: Iterable[CartLine], product_id: int, variant_id: str | None = None) -> list[CartLine]:
    return [line for line in cart if line.key != (product_id, variant_id)]


def reorder_into_cart(cart: Iterable[CartLine], order, products_by_id: Mapping[int, object]) -> list[CartLine]:
    """
    Re-add an order's items to the cart.

    Items whose product no longer exists in the catalog are skipped. This is
    cart construction only; the order is not touched.
    """
    result = list(cart)
    for item in order.items:
        if item.product_id not in products_by_id:
            continue
        result = merge_line(
            result,
            CartLine(
                product_id=item.product_id,
                quantity=item.quantity,
                force_factory=bool(item.force_factory),
                variant_id=item.variant_id,
            ),
            keep_force_factory=False,
        )
    return result


def quote_cart(cart: Iterable[CartLine], products_by_id: Mapping[int, object]) -> dict:
    """Live (unstored) pricing of the cart using the current catalog stock."""
    lines = []
    unavailable = []
    total = 0.0
    savings = 0.0
    for line in cart:
        product = products_by_id.get(line.product_id)
        if product is None:
            unavailable.append(line.to_dict())
            continue
        fulfillment = resolve_for_product(
            product,
            line.quantity,
            force_factory=line.force_factory,
            variant_id=line_variant_id(product, line.variant_id),
        )
        total += fulfillment.total_cost
        savings += fulfillment.savings
        lines.append({**line.to_dict(), "unit": product.unit, **fulfillment.to_dict()})

    return {
        "lines": lines,
        "unavailable": unavailable,
        "total_amount": total,
        "total_savings": savings,
    }
