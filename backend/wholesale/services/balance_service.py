# Overview: Client balance recomputation and chronological statement (ledger) generation.

"""
Client Balance Invariants (authoritative)

- balance = sum(paid_amount) - sum(total_amount) over the client's
  non-cancelled orders. Cancelled orders are excluded from both sums, even
  when payments were recorded against them.
- The balance is never incremented or decremented. It is always recomputed
  from orders, so re-running sync_balance is safe after any failure.
- Order writes and balance writes are separate commits. A failed balance
  write is logged and left for the next recompute (or `flask balances resync`).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable

from ..extensions import db
from ..models import Client, Order
from .concurrency import PersistenceError, lock_for_update, run_with_retry


logger = logging.getLogger(__name__)

ORDER_STATUS_CANCELLED = "CANCELLED"
LEDGER_ALL_CLIENTS = "ALL"

TX_ORDER = "ORDER"
TX_PAYMENT = "PAYMENT"


class BalanceError(Exception):
    """Raised for balance recomputation errors."""
    pass


def active_orders(orders: Iterable[Order], client_id: int | None = None) -> list[Order]:
    return [
        o for o in orders
        if o.status != ORDER_STATUS_CANCELLED and (client_id is None or o.client_id == client_id)
    ]


def compute_balance(client_id: int, orders: Iterable[Order]) -> float:
    client_orders = active_orders(orders, client_id)
    total_order_value = sum(o.total_amount or 0.0 for o in client_orders)
    total_paid = sum(o.paid_amount or 0.0 for o in client_orders)
    return total_paid - total_order_value


def sync_balance(client_id: int, orders: Iterable[Order] | None = None) -> float:
    """
    Recompute and store a client's balance.

    orders: optional in-memory order collection to replay; defaults to the
    client's orders in the database.
    """
    def _op():
        client = lock_for_update(db.session.query(Client).filter_by(id=client_id)).first()
        if client is None:
            raise BalanceError(f"Client {client_id} not found")

        source = orders if orders is not None else db.session.query(Order).filter_by(client_id=client_id).all()
        client.balance = compute_balance(client_id, source)
        db.session.commit()
        return client.balance

    return run_with_retry(_op)


def sync_balance_safely(client_id: int) -> float | None:
    """sync_balance for post-mutation hooks: failures are logged, not raised."""
    try:
        return sync_balance(client_id)
    except (PersistenceError, BalanceError):
        logger.exception("Balance recompute failed for client %s", client_id)
        return None


def resync_all_balances() -> dict[int, float]:
    """Recompute every client's balance from source orders."""
    orders = db.session.query(Order).all()
    results: dict[int, float] = {}
    for client in db.session.query(Client).order_by(Client.id).all():
        results[client.id] = sync_balance(client.id, orders)
    return results


def _order_sort_key(order: Order):
    return (order.created_at or datetime.min, order.id or 0)


def generate_ledger(
    orders: Iterable[Order],
    clients: Iterable[Client],
    target_client_id: int | str = LEDGER_ALL_CLIENTS,
) -> list[dict]:
    """
    Build statement rows for one client (or "ALL").

    One ORDER transaction (amount = -total) per non-cancelled order and one
    PAYMENT transaction (amount = +amount) per payment proof on those orders,
    sorted by timestamp. Same-instant ties keep insertion order: orders by
    (created_at, id), each order followed by its proofs.
    """
    if target_client_id == LEDGER_ALL_CLIENTS:
        relevant_clients = list(clients)
    else:
        relevant_clients = [c for c in clients if c.id == target_client_id]

    orders = sorted(orders, key=_order_sort_key)
    transactions: list[dict] = []

    for client in relevant_clients:
        for order in active_orders(orders, client.id):
            transactions.append({
                "date": order.created_at,
                "type": TX_ORDER,
                "description": f"Order #{order.order_number} ({len(order.items)} items)",
                "amount": -(order.total_amount or 0.0),
                "client_id": client.id,
                "client_name": client.name,
                "order_id": order.order_number,
            })
            for proof in order.payment_proofs:
                transactions.append({
                    "date": proof.timestamp,
                    "type": TX_PAYMENT,
                    "description": f"Payment ({proof.method})",
                    "amount": proof.amount or 0.0,
                    "client_id": client.id,
                    "client_name": client.name,
                    "order_id": order.order_number,
                })

    # Stable sort: ties keep the insertion order built above
    transactions.sort(key=lambda tx: tx["date"] or datetime.min)

    balances: dict[int, float] = {}
    rows = []
    for tx in transactions:
        balances[tx["client_id"]] = balances.get(tx["client_id"], 0.0) + tx["amount"]
        rows.append({
            **tx,
            "debit": abs(tx["amount"]) if tx["type"] == TX_ORDER else 0.0,
            "credit": tx["amount"] if tx["type"] == TX_PAYMENT else 0.0,
            "running_balance": balances[tx["client_id"]],
        })
    return rows


def closing_balances(ledger_rows: Iterable[dict]) -> dict[int, float]:
    """Last running balance per client in a ledger."""
    closing: dict[int, float] = {}
    for row in ledger_rows:
        closing[row["client_id"]] = row["running_balance"]
    return closing
