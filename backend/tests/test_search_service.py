import pytest

from wholesale.models import Product, SearchLog
from wholesale.services.search_service import (
    log_search,
    rank_similar_products,
    score_product,
    search_terms,
    text_search,
)


def _product(pid, **kwargs):
    fields = {"sku": f"SKU-{pid}", "title": "Plain", "type": "FABRIC", "category": None,
              "description": None, "gsm": None}
    fields.update(kwargs)
    return Product(id=pid, **fields)


class TestTextSearch:
    def test_matches_title_or_sku_case_insensitive(self):
        products = [
            _product(1, title="Blue Denim"),
            _product(2, sku="DEN-42"),
            _product(3, title="Linen"),
        ]
        assert [p.id for p in text_search(products, "den")] == [1, 2]

    def test_type_filter_and_blank_query(self):
        products = [_product(1), _product(2, type="HARDWARE")]
        assert [p.id for p in text_search(products, "  ", "HARDWARE")] == [2]
        assert [p.id for p in text_search(products, None)] == [1, 2]


class TestScoring:
    def test_other_type_is_excluded(self):
        product = _product(1, type="HARDWARE", title="red")
        assert score_product(product, {"catalog_type": "FABRIC", "color": "red"}, ["red"]) is None

    def test_field_weights_and_all_terms_bonus(self):
        product = _product(1, sku="RED-1", title="Red twill", category="red goods", description="red")
        # 25 + 15 + 10 + 5 + 50
        assert score_product(product, {"catalog_type": "FABRIC"}, ["red"]) == 105

    def test_missing_term_loses_bonus(self):
        product = _product(1, title="Red twill")
        assert score_product(product, {"catalog_type": "FABRIC"}, ["red", "silk"]) == 15

    def test_weight_tags(self):
        heavy = _product(1, gsm=320)
        light = _product(2, gsm=90)
        analysis = {"catalog_type": "FABRIC", "tags": ["Heavyweight"]}
        terms = search_terms(analysis)
        assert score_product(heavy, analysis, terms) == 10
        assert score_product(light, {"catalog_type": "FABRIC", "tags": ["lightweight"]}, ["zzz"]) == 10

    def test_search_terms_collects_tags_and_attributes(self):
        analysis = {"tags": ["Soft"], "color": "Navy", "material": None, "pattern": "", "finish": "Matte"}
        assert search_terms(analysis) == ["soft", "navy", "matte"]


class TestRanking:
    def test_no_analysis_returns_first_four(self):
        products = [_product(i) for i in range(1, 7)]
        assert rank_similar_products(None, products) == [1, 2, 3, 4]
        assert rank_similar_products({}, products) == [1, 2, 3, 4]

    def test_threshold_and_order(self):
        products = [
            _product(1, title="navy"),
            _product(2, description="navy"),
            _product(3, sku="NAVY-1", title="navy"),
            _product(4, type="HARDWARE", title="navy"),
        ]
        analysis = {"catalog_type": "FABRIC", "color": "navy"}

        # 1 -> 65, 2 -> 55, 3 -> 90, 4 excluded
        assert rank_similar_products(analysis, products) == [3, 1, 2]

    def test_low_scores_are_dropped(self):
        products = [_product(1, title="plain", category="navy things")]
        analysis = {"catalog_type": "FABRIC", "color": "navy", "material": "silk"}
        assert rank_similar_products(analysis, products) == []

    def test_capped_at_twelve_and_stable_for_ties(self):
        products = [_product(i, title="navy") for i in range(1, 20)]
        ranked = rank_similar_products({"catalog_type": "FABRIC", "color": "navy"}, products)
        assert ranked == list(range(1, 13))


class TestLogSearch:
    def test_short_text_queries_are_not_logged(self, db_session):
        assert log_search(client_id=None, search_type="TEXT", query=" ab ") is None
        assert db_session.query(SearchLog).count() == 0

    def test_text_query_logged_with_client(self, db_session, wholesale_client):
        entry = log_search(client_id=wholesale_client.id, search_type="TEXT", query=" denim ", results_count=3)
        assert entry.client_name == wholesale_client.name
        assert entry.search_query == "denim"
        assert entry.results_count == 3

    def test_photo_search_without_query(self, db_session):
        entry = log_search(client_id=None, search_type="PHOTO", results_count=2, details={"color": "red"})
        assert entry.search_query is None
        assert entry.details == {"color": "red"}

    def test_invalid_type(self, db_session):
        with pytest.raises(ValueError):
            log_search(client_id=None, search_type="VOICE", query="something")
