# Overview: Flask API routes for wholesale clients; parses input and returns JSON responses.

from flask import Blueprint, request
from ..services import catalog_service
from ..models import Client
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_client,
    ValidationError,
    ConflictError,
)

# balance is derived from orders and is never client-writable
CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"telegram_id", "username", "name", "brand", "phone", "role"},
    required_on_create={"name"},
)

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
def list_clients():
    items = catalog_service.list_clients()
    return {"items": items, "count": len(items)}


@clients_bp.get("/<int:client_id>")
def get_client(client_id: int):
    client = catalog_service.get_client(client_id)
    if client is None:
        return {"error": "Client not found"}, 404
    return client.to_dict()


@clients_bp.post("")
def create_client_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
        enforce_rules_client(patch)
        created = catalog_service.create_client(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409
    except ValidationError as e:
        return {"error": str(e)}, 400
    return created, 201


@clients_bp.put("/<int:client_id>")
def update_client_route(client_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
        enforce_rules_client(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = catalog_service.update_client(client_id=client_id, patch=patch)
    if updated is None:
        return {"error": "Client not found"}, 404
    return updated
