import pytest

from wholesale.services import catalog_service
from wholesale.validation import ConflictError, ValidationError


def test_parse_variants_clamps_negative_stock():
    parsed = catalog_service.parse_variants([{"id": "A", "name": "Navy", "stock": -4}])
    assert parsed == [{"code": "A", "name": "Navy", "color": None, "stock": 0}]


@pytest.mark.parametrize("raw", [
    "A",
    [{"id": "A", "name": "Navy"}, {"id": "A", "name": "Black"}],
    [{"id": "", "name": "Navy"}],
    [{"id": "A", "name": "Navy", "stock": "lots"}],
])
def test_parse_variants_rejects_bad_payloads(raw):
    with pytest.raises(ValidationError):
        catalog_service.parse_variants(raw)


def test_create_rejects_duplicate_sku(db_session):
    catalog_service.create_product(patch={"sku": "S-1", "title": "One", "type": "FABRIC", "price": 1.0})
    with pytest.raises(ConflictError):
        catalog_service.create_product(patch={"sku": "S-1", "title": "Two", "type": "FABRIC", "price": 1.0})


def test_update_keeps_variants_unless_given(make_product):
    product = make_product(variants=[("A", "Navy", 5)])

    updated = catalog_service.update_product(product_id=product.id, patch={"title": "Renamed"})
    assert [v["id"] for v in updated["variants"]] == ["A"]

    updated = catalog_service.update_product(product_id=product.id, patch={}, variants=[])
    assert updated["variants"] == []


def test_update_missing_product(db_session):
    assert catalog_service.update_product(product_id=404, patch={"title": "x"}) is None


def test_clients_cannot_share_telegram_id(make_client):
    make_client(telegram_id="42")
    with pytest.raises(ConflictError):
        catalog_service.create_client(patch={"telegram_id": "42", "name": "Dup"})
