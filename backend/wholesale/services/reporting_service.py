# Overview: Service-layer reporting; revenue, COGS, profit and supplier breakdowns from order snapshots.

"""
Reporting Aggregator

All figures are derived from order item snapshots, never from the live
catalog, so edits to prices or costs do not rewrite history. Item revenue
reuses the blended stock/factory pricing on the stored split (it does not
re-resolve against current stock).

    item_revenue   = stock_qty * price + factory_qty * price * (1 - rate)
    item_cogs      = (stock_qty + factory_qty) * purchase_price
    item_logistics = (stock_qty + factory_qty) * logistics_cost
    item_profit    = item_revenue - item_cogs - item_logistics
    net_profit     = revenue - total_cogs - total_logistics - sum(expenses)
"""

from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..models import Client, Expense, Order, Product, SearchLog
from ..models.catalog import PRODUCT_TYPE_FABRIC, PRODUCT_TYPE_HARDWARE
from ..models.finance import SEARCH_TYPE_TEXT
from .balance_service import active_orders, generate_ledger, LEDGER_ALL_CLIENTS
from .fulfillment_service import FACTORY_DISCOUNT_RATE, blended_total


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


# =============================================================================
# REPORT TYPES (CONSTANTS)
# =============================================================================

REPORT_SUPPLIER = "SUPPLIER"
REPORT_CLIENTS = "CLIENTS"
REPORT_CLIENT_LEDGER = "CLIENT_LEDGER"
REPORT_SALES_ALL = "SALES_ALL"
REPORT_SALES_FABRIC = "SALES_FABRIC"
REPORT_SALES_HARDWARE = "SALES_HARDWARE"
REPORT_EXPENSES = "EXPENSES"
REPORT_INCOME = "INCOME"
REPORT_INVENTORY = "INVENTORY"
REPORT_SEARCH_LOGS = "SEARCH_LOGS"

REPORT_TYPES = [
    REPORT_SUPPLIER,
    REPORT_CLIENTS,
    REPORT_CLIENT_LEDGER,
    REPORT_SALES_ALL,
    REPORT_SALES_FABRIC,
    REPORT_SALES_HARDWARE,
    REPORT_EXPENSES,
    REPORT_INCOME,
    REPORT_INVENTORY,
    REPORT_SEARCH_LOGS,
]

SALES_REPORT_TYPES = {REPORT_SALES_ALL, REPORT_SALES_FABRIC, REPORT_SALES_HARDWARE, REPORT_INCOME}


def item_metrics(item) -> dict | None:
    """Revenue/cost/profit for one order item, or None without a snapshot."""
    snap = item.product_snapshot
    if not snap:
        return None

    price = snap.get("price") or 0.0
    purchase_price = snap.get("purchase_price") or 0.0
    logistics_cost = snap.get("logistics_cost") or 0.0
    stock_qty = item.stock_qty or 0
    factory_qty = item.factory_qty or 0
    rate = item.factory_discount_rate if item.factory_discount_rate is not None else FACTORY_DISCOUNT_RATE

    total_qty = stock_qty + factory_qty
    revenue = blended_total(stock_qty, factory_qty, price, rate)
    cogs = total_qty * purchase_price
    logistics = total_qty * logistics_cost

    return {
        "price": price,
        "purchase_price": purchase_price,
        "logistics_cost": logistics_cost,
        "qty": total_qty,
        "revenue": revenue,
        "cost": cogs,
        "logistics": logistics,
        "profit": revenue - cogs - logistics,
    }


def supplier_row(order: Order, item) -> dict:
    snap = item.snapshot
    return {
        "supplier_name": snap.get("supplier_name") or "Unknown",
        "supplier_wechat": snap.get("supplier_wechat") or "-",
        "client_brand": order.client_brand,
        "username": order.username,
        "sku": snap.get("sku"),
        "qty": item.factory_qty if (item.factory_qty or 0) > 0 else item.quantity,
        "purchase_price": snap.get("purchase_price") or 0.0,
    }


def dashboard_stats(orders: Iterable[Order], expenses: Iterable[Expense] = ()) -> dict:
    """Aggregate revenue, costs and profit over non-cancelled orders."""
    orders = active_orders(orders)

    revenue = sum(o.total_amount or 0.0 for o in orders)
    avg_check = revenue / len(orders) if orders else 0.0

    total_cogs = 0.0
    total_logistics = 0.0
    fabric_sales = []
    hardware_sales = []
    supplier_report = []

    for order in orders:
        for item in order.items:
            metrics = item_metrics(item)
            if metrics is None:
                continue

            total_cogs += metrics["cost"]
            total_logistics += metrics["logistics"]

            snap = item.snapshot
            row = {
                "date": order.created_at,
                "order_id": order.order_number,
                "sku": snap.get("sku") or "",
                "title": snap.get("title") or "",
                **metrics,
            }
            if snap.get("type") == PRODUCT_TYPE_FABRIC:
                fabric_sales.append(row)
            else:
                hardware_sales.append(row)

            supplier_report.append(supplier_row(order, item))

    total_expenses = sum(e.amount or 0.0 for e in expenses)
    gross_profit = revenue - total_cogs - total_logistics

    return {
        "order_count": len(orders),
        "revenue": revenue,
        "avg_check": avg_check,
        "total_cogs": total_cogs,
        "total_logistics": total_logistics,
        "gross_profit": gross_profit,
        "total_expenses": total_expenses,
        "net_profit": gross_profit - total_expenses,
        "fabric_sales": fabric_sales,
        "hardware_sales": hardware_sales,
        "supplier_report": supplier_report,
    }


def sales_lines(orders: Iterable[Order], report_type: str = REPORT_SALES_ALL) -> list[dict]:
    """
    One row per order item for the sales exports.

    SALES_FABRIC / SALES_HARDWARE keep only items whose snapshot type
    matches. Unknown report types yield no rows.
    """
    if report_type not in SALES_REPORT_TYPES:
        return []

    wanted_type = {
        REPORT_SALES_FABRIC: PRODUCT_TYPE_FABRIC,
        REPORT_SALES_HARDWARE: PRODUCT_TYPE_HARDWARE,
    }.get(report_type)

    rows = []
    for order in orders:
        for item in order.items:
            snap = item.snapshot
            if wanted_type and snap.get("type") != wanted_type:
                continue
            metrics = item_metrics(item) or {
                "price": 0.0, "purchase_price": 0.0, "logistics_cost": 0.0,
                "qty": 0, "revenue": 0.0, "cost": 0.0, "logistics": 0.0, "profit": 0.0,
            }
            rows.append({
                "order": order,
                "item": item,
                "sku": snap.get("sku") or "",
                "title": snap.get("title") or "",
                "unit": snap.get("unit") or "",
                **metrics,
            })
    return rows


# =============================================================================
# DATA COLLECTION FOR EXPORTS
# =============================================================================

def collect_report_data(report_type: str, *, client_target: int | str = LEDGER_ALL_CLIENTS) -> list:
    """
    Load the rows/entities a report type is built from.

    Unknown report types return an empty list.
    """
    if report_type == REPORT_SUPPLIER:
        orders = db.session.query(Order).all()
        expenses = db.session.query(Expense).all()
        return dashboard_stats(orders, expenses)["supplier_report"]
    if report_type == REPORT_CLIENTS:
        return db.session.query(Client).order_by(Client.id).all()
    if report_type == REPORT_CLIENT_LEDGER:
        orders = db.session.query(Order).all()
        clients = db.session.query(Client).order_by(Client.id).all()
        return generate_ledger(orders, clients, client_target)
    if report_type in SALES_REPORT_TYPES:
        return db.session.query(Order).order_by(Order.created_at.desc(), Order.id.desc()).all()
    if report_type == REPORT_EXPENSES:
        return db.session.query(Expense).order_by(Expense.date.desc()).all()
    if report_type == REPORT_INVENTORY:
        return db.session.query(Product).order_by(Product.sku).all()
    if report_type == REPORT_SEARCH_LOGS:
        return (
            db.session.query(SearchLog)
            .filter_by(type=SEARCH_TYPE_TEXT)
            .order_by(SearchLog.timestamp.desc())
            .all()
        )
    return []


def load_dashboard() -> dict:
    orders = db.session.query(Order).all()
    expenses = db.session.query(Expense).all()
    return dashboard_stats(orders, expenses)
