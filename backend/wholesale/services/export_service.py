# Overview: Localized CSV rendering for report exports (headers, number/date formats, quoting).

"""
CSV Export Contract

- Delimiter: "," for English, ";" for every other language.
- Decimal separator: "." for English, "," otherwise; always 2 digits.
  Non-numeric / non-finite values render as zero.
- Dates: MM/DD/YYYY for English, DD.MM.YYYY otherwise; unparseable -> "".
- Quoting: a field is quoted when it contains the delimiter, a double quote
  or a line break; embedded quotes are doubled (csv.QUOTE_MINIMAL).
- Documents are UTF-8 with a BOM so spreadsheet apps pick the encoding.

build_report() only produces header + value rows; writing files or HTTP
responses is left to the caller.
"""

from __future__ import annotations

import csv
import io
import math
from typing import Any, Iterable

from ..time_utils import coerce_datetime, date_stamp
from .reporting_service import (
    REPORT_CLIENT_LEDGER,
    REPORT_CLIENTS,
    REPORT_EXPENSES,
    REPORT_INCOME,
    REPORT_INVENTORY,
    REPORT_SALES_ALL,
    REPORT_SALES_FABRIC,
    REPORT_SALES_HARDWARE,
    REPORT_SEARCH_LOGS,
    REPORT_SUPPLIER,
    REPORT_TYPES,
    SALES_REPORT_TYPES,
    ReportError,
    collect_report_data,
    sales_lines,
)
from .balance_service import LEDGER_ALL_CLIENTS


LANG_RU = "ru"
LANG_EN = "en"
LANG_KY = "ky"
SUPPORTED_LANGS = [LANG_RU, LANG_EN, LANG_KY]

UTF8_BOM = "﻿"

CSV_I18N: dict[str, dict[str, str]] = {
    LANG_RU: {
        "orderId": "№ заказа",
        "date": "Дата",
        "client": "Клиент",
        "brand": "Бренд",
        "status": "Статус",
        "sku": "Артикул",
        "product": "Товар",
        "qty": "Кол-во",
        "unit": "Ед.",
        "price": "Цена продажи",
        "purchasePrice": "Закупка (Cost)",
        "logistics": "Логистика (Unit)",
        "profit": "Прибыль",
        "itemTotal": "Сумма позиции",
        "orderTotal": "Итого заказа",
        "paid": "Оплачено",
        "remaining": "Остаток долга",
        "supplier": "Поставщик",
        "supplierWechat": "WeChat",
        "phone": "Телефон",
        "balance": "Баланс",
        "category": "Категория",
        "title": "Название",
        "amount": "Сумма",
        "revenue": "Выручка",
        "available": "Доступно",
        "reserved": "Резерв",
        "query": "Запрос",
        "results": "Найдено",
        "type": "Тип",
        "description": "Описание",
        "debit": "Дебет (Долг)",
        "credit": "Кредит (Оплата)",
        "running_balance": "Текущий баланс",
        "transaction_type": "Тип операции",
        "status_confirmed": "Подтверждён",
        "status_in_progress": "В процессе",
        "status_delivered": "Доставлен",
        "status_cancelled": "Отменён",
        "status_submitted": "Отправлен",
        "status_draft": "Черновик",
    },
    LANG_EN: {
        "orderId": "Order ID",
        "date": "Date",
        "client": "Client",
        "brand": "Brand",
        "status": "Status",
        "sku": "SKU",
        "product": "Product",
        "qty": "Qty",
        "unit": "Unit",
        "price": "Price",
        "purchasePrice": "Purchase Price (Cost)",
        "logistics": "Logistics (Unit)",
        "profit": "Profit",
        "itemTotal": "Item Total",
        "orderTotal": "Order Total",
        "paid": "Paid",
        "remaining": "Remaining",
        "supplier": "Supplier",
        "supplierWechat": "WeChat",
        "phone": "Phone",
        "balance": "Balance",
        "category": "Category",
        "title": "Title",
        "amount": "Amount",
        "revenue": "Revenue",
        "available": "Available",
        "reserved": "Reserved",
        "query": "Query",
        "results": "Results",
        "type": "Type",
        "description": "Description",
        "debit": "Debit (Debt)",
        "credit": "Credit (Payment)",
        "running_balance": "Running Balance",
        "transaction_type": "Tx Type",
        "status_confirmed": "Confirmed",
        "status_in_progress": "In progress",
        "status_delivered": "Delivered",
        "status_cancelled": "Cancelled",
        "status_submitted": "Submitted",
        "status_draft": "Draft",
    },
    LANG_KY: {
        "orderId": "Заказ №",
        "date": "Күнү",
        "client": "Кардар",
        "brand": "Бренд",
        "status": "Абалы",
        "sku": "Артикул",
        "product": "Товар",
        "qty": "Саны",
        "unit": "Өлч.",
        "price": "Баа",
        "purchasePrice": "Сатып алуу (Cost)",
        "logistics": "Логистика (Unit)",
        "profit": "Пайда",
        "itemTotal": "Позиция суммасы",
        "orderTotal": "Заказдын суммасы",
        "paid": "Төлөндү",
        "remaining": "Калган карыз",
        "supplier": "Поставщик",
        "supplierWechat": "WeChat",
        "phone": "Телефон",
        "balance": "Баланс",
        "category": "Категория",
        "title": "Аты",
        "amount": "Сумма",
        "revenue": "Түшүм",
        "available": "Жеткиликтүү",
        "reserved": "Резерв",
        "query": "Сурам",
        "results": "Табылды",
        "type": "Түрү",
        "description": "Сүрөттөмө",
        "debit": "Дебет (Карыз)",
        "credit": "Кредит (Төлөм)",
        "running_balance": "Учурдагы баланс",
        "transaction_type": "Операция түрү",
        "status_confirmed": "Тастыкталды",
        "status_in_progress": "Процессте",
        "status_delivered": "Жеткирилди",
        "status_cancelled": "Жокко чыгарылды",
        "status_submitted": "Жөнөтүлдү",
        "status_draft": "Каралама",
    },
}


def normalize_lang(lang: str | None) -> str:
    return lang if lang in SUPPORTED_LANGS else LANG_RU


def csv_delimiter(lang: str) -> str:
    return "," if lang == LANG_EN else ";"


def format_number(value: Any, lang: str, digits: int = 2) -> str:
    try:
        n = float(value if value is not None else 0)
    except (TypeError, ValueError):
        n = math.nan
    if not math.isfinite(n):
        n = 0.0
    s = f"{n:.{digits}f}"
    return s if lang == LANG_EN else s.replace(".", ",")


def format_date(value: Any, lang: str) -> str:
    dt = coerce_datetime(value)
    if dt is None:
        return ""
    if lang == LANG_EN:
        return dt.strftime("%m/%d/%Y")
    return dt.strftime("%d.%m.%Y")


def localize_status(status: Any, lang: str) -> str:
    """Map an order/payment status onto the coarse buckets clients understand."""
    t = CSV_I18N[lang]
    s = str(status if status is not None else "").upper()
    if "CANCEL" in s:
        return t["status_cancelled"]
    if "DRAFT" in s:
        return t["status_draft"]
    if any(k in s for k in ("SUBMIT", "CREATED", "PENDING", "ORDERED")):
        return t["status_submitted"]
    if "CONFIRM" in s or "APPROV" in s:
        return t["status_confirmed"]
    if any(k in s for k in ("DELIVERED", "DONE", "COMPLET")):
        return t["status_delivered"]
    if any(k in s for k in ("PROGRESS", "SHIP", "TRANSIT", "FACTORY", "PRODUC", "WAREHOUSE", "READY")):
        return t["status_in_progress"]
    return "" if status is None else str(status)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def build_report(report_type: str, data: Iterable, lang: str) -> tuple[list[str], list[list[str]]]:
    """
    Header and value rows for a report type, localized for lang.

    Returns ([], []) for empty data or unknown report types.
    """
    lang = normalize_lang(lang)
    data = list(data or [])
    if not data:
        return [], []

    t = CSV_I18N[lang]
    num = lambda v: format_number(v, lang)  # noqa: E731

    if report_type == REPORT_SUPPLIER:
        headers = [t["supplier"], t["supplierWechat"], t["brand"], t["sku"], t["qty"], t["client"], t["purchasePrice"]]
        rows = [
            [
                _text(r.get("supplier_name")),
                _text(r.get("supplier_wechat")),
                _text(r.get("client_brand")),
                _text(r.get("sku")),
                _text(r.get("qty")),
                _text(r.get("username")),
                num(r.get("purchase_price")),
            ]
            for r in data
        ]

    elif report_type == REPORT_CLIENTS:
        headers = [t["client"], t["brand"], t["phone"], t["balance"], "Telegram ID"]
        rows = [
            [_text(c.name), _text(c.brand), _text(c.phone), num(c.balance), _text(c.telegram_id)]
            for c in data
        ]

    elif report_type == REPORT_CLIENT_LEDGER:
        headers = [
            t["date"], t["client"], t["transaction_type"], t["description"],
            t["debit"], t["credit"], t["running_balance"], t["orderId"],
        ]
        rows = [
            [
                format_date(tr.get("date"), lang),
                _text(tr.get("client_name")),
                _text(tr.get("type")),
                _text(tr.get("description")),
                num(tr.get("debit")),
                num(tr.get("credit")),
                num(tr.get("running_balance")),
                _text(tr.get("order_id")),
            ]
            for tr in data
        ]

    elif report_type == REPORT_EXPENSES:
        headers = [t["date"], t["title"], t["category"], t["amount"]]
        rows = [
            [format_date(e.date, lang), _text(e.title), _text(e.category), num(e.amount)]
            for e in data
        ]

    elif report_type == REPORT_INVENTORY:
        headers = [t["sku"], t["title"], t["category"], t["price"], t["available"], t["reserved"], t["unit"]]
        rows = [
            [
                _text(p.sku), _text(p.title), _text(p.category), num(p.price),
                _text(p.available_qty), _text(p.reserved_qty), _text(p.unit),
            ]
            for p in data
        ]

    elif report_type == REPORT_SEARCH_LOGS:
        headers = [t["date"], t["client"], t["type"], t["query"], t["results"]]
        rows = [
            [
                format_date(log.timestamp, lang),
                _text(log.client_name),
                _text(log.type),
                log.search_query or "(Photo)",
                _text(log.results_count),
            ]
            for log in data
        ]

    elif report_type in SALES_REPORT_TYPES:
        headers = [
            t["orderId"], t["date"], t["client"], t["brand"], t["status"],
            t["sku"], t["product"], t["qty"], t["unit"], t["price"], t["purchasePrice"],
            t["logistics"], t["profit"], t["itemTotal"], t["orderTotal"], t["paid"], t["remaining"],
        ]
        rows = []
        for line in sales_lines(data, report_type):
            order = line["order"]
            rows.append([
                _text(order.order_number),
                format_date(order.created_at, lang),
                _text(order.username),
                _text(order.client_brand),
                localize_status(order.status, lang),
                _text(line["sku"]),
                _text(line["title"]),
                _text(line["item"].quantity),
                _text(line["unit"]),
                num(line["price"]),
                num(line["purchase_price"]),
                num(line["logistics_cost"]),
                num(line["profit"]),
                num(line["revenue"]),
                num(order.total_amount),
                num(order.paid_amount),
                num(order.remaining_amount),
            ])

    else:
        return [], []

    return headers, rows


def render_csv(headers: list[str], rows: list[list[str]], lang: str) -> str:
    """
    Serialize header + rows with the language's delimiter. Empty in, empty out.

    The writer's terminator is CRLF so QUOTE_MINIMAL quotes fields holding
    either a bare CR or LF; records are then joined with a single LF.
    """
    if not headers:
        return ""
    buffer = io.StringIO()
    writer = csv.writer(
        buffer,
        delimiter=csv_delimiter(normalize_lang(lang)),
        quotechar='"',
        quoting=csv.QUOTE_MINIMAL,
        lineterminator="\r\n",
    )
    records = []
    for row in [headers, *rows]:
        buffer.seek(0)
        buffer.truncate()
        writer.writerow(row)
        records.append(buffer.getvalue()[:-2])
    return "\n".join(records)


def export_filename(name: str) -> str:
    return f"{name}_{date_stamp()}.csv"


def export_document(report_type: str, data: Iterable, lang: str) -> str:
    """Full CSV document (BOM + content), or "" when there is nothing to export."""
    headers, rows = build_report(report_type, data, lang)
    content = render_csv(headers, rows, lang)
    return UTF8_BOM + content if content else ""


EXPORT_NAMES = {
    REPORT_SUPPLIER: "supplier_report",
    REPORT_CLIENTS: "clients_list",
    REPORT_CLIENT_LEDGER: "client_ledger",
    REPORT_SALES_ALL: "sales_all",
    REPORT_SALES_FABRIC: "sales_fabric",
    REPORT_SALES_HARDWARE: "sales_hardware",
    REPORT_EXPENSES: "expenses_report",
    REPORT_INCOME: "income_report",
    REPORT_INVENTORY: "inventory_stock",
    REPORT_SEARCH_LOGS: "search_logs",
}


def export_report(
    report_type: str,
    lang: str,
    client_target: int | str = LEDGER_ALL_CLIENTS,
) -> tuple[str, str]:
    """
    Load and render a report from the database.

    Returns:
        (filename, document); document is "" when there is no data

    Raises:
        ReportError: unknown report type
    """
    if report_type not in REPORT_TYPES:
        raise ReportError(f"Unknown report type: {report_type}")

    name = EXPORT_NAMES[report_type]
    if report_type == REPORT_CLIENT_LEDGER:
        suffix = "all" if client_target == LEDGER_ALL_CLIENTS else str(client_target)
        name = f"{name}_{suffix}"

    data = collect_report_data(report_type, client_target=client_target)
    return export_filename(name), export_document(report_type, data, lang)
