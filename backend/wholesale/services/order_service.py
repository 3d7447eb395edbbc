# Overview: Service-layer operations for orders; checkout, status lifecycle and reorder.

"""
Order Engine

Lifecycle:
    ORDERED -> CONFIRMED -> PRODUCTION -> TRANSIT -> WAREHOUSE
            -> READY_FOR_DELIVERY -> DELIVERED
    ORDERED -> CANCELLED (client self-service)

Admins may set any status directly (set_order_status); no sequence is
enforced. Stock movements are derived from the previous/new status pair
(see inventory_service). Every mutation is followed by a balance recompute
for the order's client in a separate commit.
"""

from __future__ import annotations

import uuid
from typing import Iterable

from flask import current_app, has_app_context

from ..extensions import db
from ..models import Client, Order, OrderItem, Product
from ..time_utils import utcnow
from .balance_service import sync_balance_safely
from .cart_service import CartLine, reorder_into_cart
from .concurrency import lock_for_update, run_with_retry
from .fulfillment_service import (
    blended_total,
    check_line_selection,
    configured_discount_rate,
    line_variant_id,
    resolve,
    sellable_quantity,
)
from .inventory_service import apply_order_stock_effect


class OrderError(Exception):
    """Raised for order operation errors."""
    pass


# =============================================================================
# ORDER STATUS (CONSTANTS)
# =============================================================================

ORDER_STATUS_ORDERED = "ORDERED"
ORDER_STATUS_CONFIRMED = "CONFIRMED"
ORDER_STATUS_PRODUCTION = "PRODUCTION"
ORDER_STATUS_TRANSIT = "TRANSIT"
ORDER_STATUS_WAREHOUSE = "WAREHOUSE"
ORDER_STATUS_READY_FOR_DELIVERY = "READY_FOR_DELIVERY"
ORDER_STATUS_DELIVERED = "DELIVERED"
ORDER_STATUS_CANCELLED = "CANCELLED"

VALID_ORDER_STATUSES = [
    ORDER_STATUS_ORDERED,
    ORDER_STATUS_CONFIRMED,
    ORDER_STATUS_PRODUCTION,
    ORDER_STATUS_TRANSIT,
    ORDER_STATUS_WAREHOUSE,
    ORDER_STATUS_READY_FOR_DELIVERY,
    ORDER_STATUS_DELIVERED,
    ORDER_STATUS_CANCELLED,
]


def _generate_order_number() -> str:
    while True:
        candidate = f"ORD-{uuid.uuid4().hex[:9].upper()}"
        if not db.session.query(Order.id).filter_by(order_number=candidate).first():
            return candidate


def _default_currency() -> str:
    if has_app_context():
        return current_app.config.get("DEFAULT_CURRENCY", "USD")
    return "USD"


def load_products(product_ids: Iterable[int]) -> dict[int, Product]:
    ids = set(product_ids)
    if not ids:
        return {}
    products = db.session.query(Product).filter(Product.id.in_(ids)).all()
    return {p.id: p for p in products}


def get_order(order_id: int) -> Order:
    order = db.session.query(Order).filter_by(id=order_id).first()
    if order is None:
        raise OrderError(f"Order {order_id} not found")
    return order


def list_orders(client_id: int | None = None, status: str | None = None) -> list[Order]:
    query = db.session.query(Order)
    if client_id is not None:
        query = query.filter_by(client_id=client_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


# =============================================================================
# CHECKOUT
# =============================================================================

def build_order_items(cart: Iterable[CartLine], products_by_id: dict[int, Product]) -> list[OrderItem]:
    """
    Resolve every cart line against current catalog stock and stamp the
    split plus a full product snapshot onto a new OrderItem.

    Lines are re-checked against the product MOQ and variant selection, since
    the cart arrives from the client. A variant id sent for a product without
    variants is dropped so the stored split and later stock moves use the
    same counter.
    """
    rate = configured_discount_rate()
    items = []
    for line in cart:
        product = products_by_id.get(line.product_id)
        if product is None:
            raise OrderError(f"Product {line.product_id} not found")

        variant_id = line_variant_id(product, line.variant_id)
        check_line_selection(product, line.quantity, variant_id)

        fulfillment = resolve(
            line.quantity,
            sellable_quantity(product, variant_id),
            line.force_factory,
            product.price,
            rate,
        )
        items.append(OrderItem(
            product_id=product.id,
            variant_id=variant_id,
            quantity=line.quantity,
            force_factory=line.force_factory,
            stock_qty=fulfillment.stock_qty,
            factory_qty=fulfillment.factory_qty,
            factory_discount_rate=rate,
            product_snapshot=product.to_snapshot(),
        ))
    return items


def order_total(items: Iterable[OrderItem]) -> float:
    return sum(
        blended_total(
            item.stock_qty,
            item.factory_qty,
            item.snapshot.get("price") or 0.0,
            item.factory_discount_rate,
        )
        for item in items
    )


def checkout(client_id: int, cart: Iterable[CartLine]) -> Order | None:
    """
    Turn a cart into an ORDERED order.

    Returns None (no-op) for an empty cart. Inventory is not touched here;
    stock moves only on a later status change.

    Raises:
        CartValidationError: a line is below MOQ or lacks a variant selection
        OrderError: unknown client or product
    """
    cart = list(cart)
    if not cart:
        return None

    def _op():
        client = db.session.query(Client).filter_by(id=client_id).first()
        if client is None:
            raise OrderError(f"Client {client_id} not found")

        products = load_products(line.product_id for line in cart)
        items = build_order_items(cart, products)

        now = utcnow()
        order = Order(
            order_number=_generate_order_number(),
            client_id=client.id,
            telegram_id=client.telegram_id,
            username=client.username,
            client_brand=client.brand,
            client_phone=client.phone,
            status=ORDER_STATUS_ORDERED,
            items=items,
            total_amount=order_total(items),
            paid_amount=0.0,
            currency=_default_currency(),
            created_at=now,
            status_updated_at=now,
        )
        db.session.add(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    sync_balance_safely(order.client_id)
    return order


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================

def set_order_status(order_id: int, new_status: str) -> Order:
    """
    Admin status change. Unrestricted, but stock is committed/released
    according to the previous/new status pair.
    """
    if new_status not in VALID_ORDER_STATUSES:
        raise OrderError(f"Invalid status: {new_status}. Must be one of {VALID_ORDER_STATUSES}")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise OrderError(f"Order {order_id} not found")

        previous_status = order.status
        apply_order_stock_effect(order, previous_status, new_status)

        order.status = new_status
        order.status_updated_at = utcnow()
        db.session.commit()
        return order

    order = run_with_retry(_op)
    sync_balance_safely(order.client_id)
    return order


def cancel_order(order_id: int, client_id: int | None = None) -> bool:
    """
    Client self-service cancellation.

    Only legal while the order is ORDERED (and, when client_id is given,
    owned by that client). Returns False as a no-op otherwise.
    """
    order = db.session.query(Order).filter_by(id=order_id).first()
    if order is None or order.status != ORDER_STATUS_ORDERED:
        return False
    if client_id is not None and order.client_id != client_id:
        return False

    set_order_status(order_id, ORDER_STATUS_CANCELLED)
    return True


# =============================================================================
# REORDER
# =============================================================================

def reorder(order_id: int, cart: Iterable[CartLine]) -> list[CartLine]:
    """Merge a past order's lines into the given cart (order is untouched)."""
    order = get_order(order_id)
    products = load_products(item.product_id for item in order.items)
    return reorder_into_cart(cart, order, products)
