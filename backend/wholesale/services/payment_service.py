# Overview: Service-layer operations for payments; records proofs against orders.

"""
Payment Ledger

WHY: Wholesale orders are paid in installments (deposit, then balance on
delivery). Each installment is a PaymentProof attached to the order.

DESIGN PRINCIPLES:
- paid_amount is derived: always sum(proof.amount), rewritten after every
  add/edit, never incremented.
- Editing a proof replaces amount and method in place (and the receipt when
  a new one is supplied); the proof keeps its id and timestamp.
- Invalid amounts (non-numeric, NaN, infinite, <= 0) are a silent no-op:
  save_payment returns None and nothing is written.
- Every successful save triggers a balance recompute for the order's client.
"""

from __future__ import annotations

import uuid

from ..extensions import db
from ..models import Order, PaymentProof
from ..validation import parse_amount
from ..time_utils import utcnow
from .balance_service import sync_balance_safely
from .concurrency import lock_for_update, run_with_retry


class PaymentError(Exception):
    """Raised for payment operation errors."""
    pass


# =============================================================================
# PAYMENT METHODS / STATUS (CONSTANTS)
# =============================================================================

METHOD_CASH = "CASH"
METHOD_TRANSFER = "TRANSFER"
METHOD_CARD = "CARD"

VALID_METHODS = [METHOD_CASH, METHOD_TRANSFER, METHOD_CARD]

PROOF_STATUS_APPROVED = "APPROVED"
PROOF_STATUS_PENDING = "PENDING"
PROOF_STATUS_REJECTED = "REJECTED"


def _generate_proof_number() -> str:
    while True:
        candidate = f"PAY-{uuid.uuid4().hex[:10].upper()}"
        if not db.session.query(PaymentProof.id).filter_by(proof_number=candidate).first():
            return candidate


def recompute_paid_amount(order: Order) -> float:
    order.paid_amount = sum(p.amount or 0.0 for p in order.payment_proofs)
    return order.paid_amount


def save_payment(
    order_id: int,
    amount,
    method: str = METHOD_CASH,
    *,
    payment_id: str | None = None,
    file_url: str | None = None,
    file_name: str | None = None,
) -> Order | None:
    """
    Add a payment proof to an order, or edit one in place.

    Args:
        order_id: Order being paid
        amount: Positive finite number (strings are parsed)
        method: CASH, TRANSFER or CARD
        payment_id: proof id to edit; when it matches no proof on the order a
            new proof is appended instead
        file_url / file_name: optional receipt reference

    Returns:
        The updated order, or None when the amount is invalid (no-op)

    Raises:
        PaymentError: unknown order or payment method
    """
    value = parse_amount(amount)
    if value is None or value <= 0:
        return None

    if method not in VALID_METHODS:
        raise PaymentError(f"Invalid payment method: {method}. Must be one of {VALID_METHODS}")

    def _op():
        order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
        if order is None:
            raise PaymentError(f"Order {order_id} not found")

        existing = None
        if payment_id:
            existing = next((p for p in order.payment_proofs if p.proof_number == payment_id), None)

        if existing is not None:
            existing.amount = value
            existing.method = method
            if file_url:
                existing.file_url = file_url
                existing.file_name = file_name
        else:
            order.payment_proofs.append(PaymentProof(
                proof_number=_generate_proof_number(),
                amount=value,
                method=method,
                file_url=file_url,
                file_name=file_name,
                status=PROOF_STATUS_APPROVED,
                timestamp=utcnow(),
            ))

        recompute_paid_amount(order)
        db.session.commit()
        return order

    order = run_with_retry(_op)
    sync_balance_safely(order.client_id)
    return order


def get_payment_summary(order: Order) -> dict:
    total = order.total_amount or 0.0
    paid = order.paid_amount or 0.0
    return {
        "order_id": order.id,
        "order_number": order.order_number,
        "total_amount": total,
        "paid_amount": paid,
        "remaining_amount": total - paid,
        "payment_count": len(order.payment_proofs),
    }
