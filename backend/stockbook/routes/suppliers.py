# Overview: Flask API routes for suppliers.

from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..responses import internal_error, respond, validation_failed
from ..services import supplier_service
from ..validation import ValidationError, json_object, optional_text, require_text


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.post("")
@require_auth
@require_permission("create_suppliers")
def create_supplier_route():
    try:
        data = json_object(request.get_json(silent=True))
        result = supplier_service.create_supplier(
            g.principal,
            name=require_text(data.get("name"), "name"),
            phone=optional_text(data.get("phone"), "phone", max_length=32),
            email=optional_text(data.get("email"), "email"),
        )
        return respond(result, status=201, key="supplier")
    except ValidationError as e:
        return validation_failed(e)
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return internal_error()


@suppliers_bp.get("")
@require_auth
@require_permission("view_suppliers")
def list_suppliers_route():
    return respond(supplier_service.list_suppliers(g.principal), key="suppliers")


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("view_suppliers")
def get_supplier_route(supplier_id: int):
    return respond(supplier_service.get_supplier(g.principal, supplier_id), key="supplier")
