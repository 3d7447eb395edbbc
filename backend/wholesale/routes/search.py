# Overview: Flask API routes for catalog text search and visual-match ranking.

from flask import Blueprint, request, jsonify, current_app

from ..models.finance import SEARCH_TYPE_PHOTO, SEARCH_TYPE_TEXT
from ..services import search_service


search_bp = Blueprint("search", __name__, url_prefix="/api/search")


@search_bp.get("")
def text_search_route():
    """
    Query params:
    - q: substring of title or SKU
    - type: FABRIC | HARDWARE (optional)
    - client_id: int (optional, for the search log)
    """
    query = request.args.get("q", "")
    product_type = request.args.get("type")
    client_id = request.args.get("client_id", type=int)

    try:
        products = search_service.text_search(search_service.catalog_products(), query, product_type)
        search_service.log_search(
            client_id=client_id,
            search_type=SEARCH_TYPE_TEXT,
            query=query,
            results_count=len(products),
        )
        return jsonify({
            "items": [p.to_dict(include_internal=False) for p in products],
            "count": len(products),
        }), 200
    except Exception:
        current_app.logger.exception("Text search failed")
        return jsonify({"error": "Internal server error"}), 500


@search_bp.post("/visual")
def visual_search_route():
    """
    Rank catalog products against an image analysis.

    Request body:
    {
        "client_id": 1,
        "analysis": {
            "catalog_type": "FABRIC",
            "tags": ["heavy", "denim"],
            "color": "navy",
            "material": "cotton",
            "pattern": "",
            "texture": "twill",
            "finish": ""
        }
    }
    An absent or null analysis returns the first catalog products.
    """
    data = request.get_json(silent=True) or {}
    analysis = data.get("analysis")
    if analysis is not None and not isinstance(analysis, dict):
        return jsonify({"error": "analysis must be an object"}), 400

    try:
        ids = search_service.rank_similar_products(analysis, search_service.catalog_products())
        search_service.log_search(
            client_id=data.get("client_id"),
            search_type=SEARCH_TYPE_PHOTO,
            results_count=len(ids),
            details=analysis,
        )
        return jsonify({"product_ids": ids, "count": len(ids)}), 200
    except Exception:
        current_app.logger.exception("Visual search failed")
        return jsonify({"error": "Internal server error"}), 500
