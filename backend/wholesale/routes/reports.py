# Overview: Flask API routes for reports; dashboard stats, client ledger and CSV exports.

# backend/wholesale/routes/reports.py
"""
Reporting API Routes

- GET /api/reports/stats            dashboard aggregates
- GET /api/reports/ledger           statement rows (?client=ALL|<id>)
- GET /api/reports/<type>/csv       localized CSV download (?lang=ru|en|ky)

CSV exports with no data return 204 (nothing to download).
"""

from flask import Blueprint, Response, request, jsonify, current_app

from ..extensions import db
from ..models import Client, Order
from ..services.balance_service import LEDGER_ALL_CLIENTS, closing_balances, generate_ledger
from ..services.export_service import export_report, normalize_lang
from ..services.reporting_service import REPORT_TYPES, ReportError, load_dashboard
from ..time_utils import to_utc_z


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _parse_client_target(raw):
    if raw is None or raw == LEDGER_ALL_CLIENTS:
        return LEDGER_ALL_CLIENTS
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ReportError("client must be ALL or a client id")


def _with_iso_date(row: dict, key: str = "date") -> dict:
    return {**row, key: to_utc_z(row.get(key))}


@reports_bp.get("/stats")
def stats_route():
    try:
        stats = load_dashboard()
        stats["fabric_sales"] = [_with_iso_date(r) for r in stats["fabric_sales"]]
        stats["hardware_sales"] = [_with_iso_date(r) for r in stats["hardware_sales"]]
        return jsonify(stats), 200
    except Exception:
        current_app.logger.exception("Failed to build dashboard stats")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/ledger")
def ledger_route():
    """
    Query params:
    - client: "ALL" (default) or a client id
    """
    try:
        target = _parse_client_target(request.args.get("client"))
        orders = db.session.query(Order).all()
        clients = db.session.query(Client).order_by(Client.id).all()
        rows = generate_ledger(orders, clients, target)

        return jsonify({
            "client": target,
            "transactions": [_with_iso_date(r) for r in rows],
            "closing_balances": {str(k): v for k, v in closing_balances(rows).items()},
        }), 200
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to build ledger")
        return jsonify({"error": "Internal server error"}), 500


@reports_bp.get("/<report_type>/csv")
def export_csv_route(report_type: str):
    """
    Query params:
    - lang: ru | en | ky (default DEFAULT_REPORT_LANG)
    - client: ledger target for CLIENT_LEDGER ("ALL" or a client id)

    Returns:
        200: text/csv attachment (UTF-8 with BOM)
        204: no data for this report
        404: unknown report type
    """
    try:
        lang = normalize_lang(request.args.get("lang") or current_app.config.get("DEFAULT_REPORT_LANG"))
        target = _parse_client_target(request.args.get("client"))
        report_type = report_type.upper()
        if report_type not in REPORT_TYPES:
            return jsonify({"error": f"Unknown report type: {report_type}"}), 404

        filename, document = export_report(report_type, lang, target)
        if not document:
            return Response(status=204)

        return Response(
            document,
            content_type="text/csv; charset=utf-8",
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
            },
        )
    except ReportError as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to export report %s", report_type)
        return jsonify({"error": "Internal server error"}), 500
