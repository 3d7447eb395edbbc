# Overview: Catalog text search, visual-match ranking and search logging.

"""
Search Service

Text search is a case-insensitive substring match on title or SKU,
optionally restricted to one product type.

Visual search ranks products against an attribute analysis produced by an
external image classifier (catalog_type, tags, color, material, pattern,
texture, finish). The classifier itself is not part of this service; only
the scoring is.

Scoring per product (products of another type are excluded):
    +25 term found in SKU
    +15 term found in title
    +10 term found in category
    +5  term found in description
    +10 a "heavy" tag and gsm > 200, or a "light" tag and gsm < 150
    +50 every term found in title, description or SKU
Products scoring below 15 are dropped; at most 12 ids are returned.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..extensions import db
from ..models import Client, Product, SearchLog
from ..models.finance import SEARCH_TYPE_PHOTO, SEARCH_TYPE_TEXT
from ..time_utils import utcnow
from .concurrency import run_with_retry


logger = logging.getLogger(__name__)

MIN_LOGGED_QUERY_LENGTH = 3
MIN_VISUAL_SCORE = 15
MAX_VISUAL_RESULTS = 12
FALLBACK_VISUAL_RESULTS = 4

ANALYSIS_TERM_FIELDS = ("color", "material", "pattern", "texture", "finish")


def text_search(products: Iterable[Product], query: str | None, product_type: str | None = None) -> list[Product]:
    result = list(products)
    if product_type:
        result = [p for p in result if p.type == product_type]

    q = (query or "").strip().lower()
    if q:
        result = [p for p in result if q in (p.title or "").lower() or q in (p.sku or "").lower()]
    return result


def search_terms(analysis: dict) -> list[str]:
    tags = analysis.get("tags") or []
    terms = list(tags) + [analysis.get(field) or "" for field in ANALYSIS_TERM_FIELDS]
    return [str(t).lower() for t in terms if t]


def score_product(product: Product, analysis: dict, terms: list[str]) -> int | None:
    """Relevance score, or None when the product's type does not match."""
    if product.type != analysis.get("catalog_type"):
        return None

    title = (product.title or "").lower()
    category = (product.category or "").lower()
    sku = (product.sku or "").lower()
    description = (product.description or "").lower()

    score = 0
    for term in terms:
        if term in sku:
            score += 25
        if term in title:
            score += 15
        if term in category:
            score += 10
        if term in description:
            score += 5

    tags = [str(t).lower() for t in (analysis.get("tags") or [])]
    gsm = product.gsm or 0
    if any("heavy" in t for t in tags) and gsm > 200:
        score += 10
    if any("light" in t for t in tags) and gsm < 150:
        score += 10

    if all(term in title or term in description or term in sku for term in terms):
        score += 50

    return score


def rank_similar_products(analysis: dict | None, products: Iterable[Product]) -> list[int]:
    """
    Product ids ranked by visual similarity, best first.

    Without an analysis the first four catalog products are returned.
    """
    products = list(products)
    if not analysis:
        return [p.id for p in products[:FALLBACK_VISUAL_RESULTS]]

    terms = search_terms(analysis)
    scored = []
    for product in products:
        score = score_product(product, analysis, terms)
        if score is not None and score >= MIN_VISUAL_SCORE:
            scored.append((score, product.id))

    # sorted() is stable: equal scores keep catalog order
    scored = sorted(scored, key=lambda pair: pair[0], reverse=True)
    return [product_id for _, product_id in scored[:MAX_VISUAL_RESULTS]]


def log_search(
    *,
    client_id: int | None,
    search_type: str,
    query: str | None = None,
    results_count: int = 0,
    details: dict | None = None,
) -> SearchLog | None:
    """
    Record a search for the search-log report.

    Text searches shorter than three characters are not logged.
    """
    if search_type == SEARCH_TYPE_TEXT and len((query or "").strip()) < MIN_LOGGED_QUERY_LENGTH:
        return None
    if search_type not in (SEARCH_TYPE_TEXT, SEARCH_TYPE_PHOTO):
        raise ValueError(f"Invalid search type: {search_type}")

    def _op():
        client = db.session.get(Client, client_id) if isinstance(client_id, int) else None
        entry = SearchLog(
            client_id=client.id if client else None,
            client_name=client.name if client else None,
            type=search_type,
            search_query=(query or "").strip() or None,
            results_count=results_count,
            timestamp=utcnow(),
            details=details,
        )
        db.session.add(entry)
        db.session.commit()
        return entry

    entry = run_with_retry(_op)
    logger.debug("Logged %s search (%d results)", search_type, results_count)
    return entry


def catalog_products(product_type: str | None = None) -> list[Product]:
    query = db.session.query(Product)
    if product_type:
        query = query.filter_by(type=product_type)
    return query.order_by(Product.id).all()
