# Overview: Service-layer operations for inventory; encapsulates stock counter mutations.

"""
Inventory Invariants (authoritative)

Counters:
- Products without variants keep available_qty / reserved_qty.
- Products with variants keep one stock counter per variant; a line with a
  variant never touches the product-level counters.
- Counters never go negative. An adjustment that would underflow is clamped
  to zero and logged; it is not an error.

Order-driven movements (computed from the previous/new status pair only):
- ORDERED -> CONFIRMED | PRODUCTION: commit stock (decrement by stock_qty).
- any status other than ORDERED/CANCELLED -> CANCELLED: release stock
  (increment by stock_qty).
- Everything else (including repeating the same status) has no effect.
- factory_qty never touches inventory.
- Checkout itself never moves stock.

Functions here do not commit; the calling service owns the transaction.
"""

from __future__ import annotations

import logging

from ..extensions import db
from ..models import Product
from .concurrency import lock_for_update


logger = logging.getLogger(__name__)

ORDER_STATUS_ORDERED = "ORDERED"
ORDER_STATUS_CANCELLED = "CANCELLED"
STOCK_COMMITTING_STATUSES = frozenset({"CONFIRMED", "PRODUCTION"})

STOCK_COMMIT = -1
STOCK_RELEASE = 1
STOCK_NO_EFFECT = 0


def _clamped(current: int | None, delta: int, label: str, product_id: int) -> int:
    target = (current or 0) + delta
    if target < 0:
        logger.warning(
            "Inventory underflow clamped to 0 for product %s (%s: %s %+d)",
            product_id, label, current, delta,
        )
        return 0
    return target


def adjust_inventory(
    product_id: int,
    qty_delta: int,
    reserve_delta: int = 0,
    variant_id: str | None = None,
) -> Product | None:
    """
    Apply deltas to a product's counters (or to one variant's stock).

    Returns the product, or None when the product (or variant) no longer
    exists; order snapshots may outlive catalog rows.
    """
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        logger.warning("Inventory adjustment skipped: product %s not found", product_id)
        return None

    if variant_id:
        variant = product.find_variant(variant_id)
        if variant is None:
            logger.warning(
                "Inventory adjustment skipped: variant %s not found on product %s",
                variant_id, product_id,
            )
            return None
        variant.stock = _clamped(variant.stock, qty_delta, f"variant {variant_id} stock", product_id)
        return product

    product.available_qty = _clamped(product.available_qty, qty_delta, "available_qty", product_id)
    product.reserved_qty = _clamped(product.reserved_qty, reserve_delta, "reserved_qty", product_id)
    return product


def stock_effect(previous_status: str, new_status: str) -> int:
    """Direction of the stock movement for a status change (see module docstring)."""
    if previous_status == ORDER_STATUS_ORDERED and new_status in STOCK_COMMITTING_STATUSES:
        return STOCK_COMMIT
    if new_status == ORDER_STATUS_CANCELLED and previous_status not in (
        ORDER_STATUS_ORDERED,
        ORDER_STATUS_CANCELLED,
    ):
        return STOCK_RELEASE
    return STOCK_NO_EFFECT


def apply_order_stock_effect(order, previous_status: str, new_status: str) -> int:
    """Commit or release each item's snapshotted stock_qty for a status change."""
    direction = stock_effect(previous_status, new_status)
    if direction == STOCK_NO_EFFECT:
        return direction

    for item in order.items:
        if not item.stock_qty:
            continue
        adjust_inventory(
            item.product_id,
            direction * item.stock_qty,
            0,
            variant_id=item.variant_id,
        )
    return direction
