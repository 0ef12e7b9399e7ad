"""Catalog maintenance: verticals, departments and billable services."""

from flask import Blueprint, request, jsonify

from agency_finance.models import catalog
from agency_finance.utils.authz import WRITE_ROLES, require_role
from agency_finance.utils.validators import (
    parse_bool,
    parse_number,
    parse_uuid,
    require_any,
    require_str,
)

settings_bp = Blueprint("settings", __name__)


def _code(body) -> str:
    return require_str(body, "code").upper()


def _catalog_updates(body, extra=()) -> dict:
    updates = {}
    if "code" in body:
        updates["code"] = _code(body)
    if "name" in body:
        updates["name"] = require_str(body, "name")
    if "display_order" in body:
        updates["display_order"] = int(parse_number(body, "display_order", min_value=0))
    if "is_active" in body:
        updates["is_active"] = parse_bool(body, "is_active")
    if "department_id" in extra and "department_id" in body:
        updates["department_id"] = parse_uuid(body, "department_id")
    return require_any(updates)


# ---- verticals ----


@settings_bp.get("/verticals")
@require_role()
def list_verticals():
    return jsonify(catalog.list_verticals())


@settings_bp.post("/verticals")
@require_role(*WRITE_ROLES)
def create_vertical():
    body = request.get_json(force=True, silent=True) or {}
    return jsonify(catalog.create_vertical(_code(body), require_str(body, "name"))), 201


@settings_bp.patch("/verticals/<uuid:vertical_id>")
@require_role(*WRITE_ROLES)
def patch_vertical(vertical_id):
    body = request.get_json(force=True, silent=True) or {}
    updates = _catalog_updates(body)
    updates.pop("display_order", None)
    row = catalog.update_vertical(str(vertical_id), **updates)
    if not row:
        return jsonify({"error": "vertical not found"}), 404
    return jsonify(row)


@settings_bp.delete("/verticals/<uuid:vertical_id>")
@require_role(*WRITE_ROLES)
def delete_vertical(vertical_id):
    if not catalog.delete_vertical(str(vertical_id)):
        return jsonify({"error": "vertical not found"}), 404
    return jsonify({"success": True})


# ---- departments ----


@settings_bp.get("/departments")
@require_role()
def list_departments():
    include_inactive = request.args.get("include_inactive") in ("1", "true")
    return jsonify(catalog.list_departments(include_inactive))


@settings_bp.post("/departments")
@require_role("admin")
def create_department():
    body = request.get_json(force=True, silent=True) or {}
    order = int(parse_number(body, "display_order", default=99, min_value=0))
    return jsonify(catalog.create_department(_code(body), require_str(body, "name"), order)), 201


@settings_bp.patch("/departments/<uuid:department_id>")
@require_role("admin")
def patch_department(department_id):
    body = request.get_json(force=True, silent=True) or {}
    row = catalog.update_department(str(department_id), **_catalog_updates(body))
    if not row:
        return jsonify({"error": "department not found"}), 404
    return jsonify(row)


# ---- services ----


@settings_bp.get("/services")
@require_role()
def list_services():
    include_inactive = request.args.get("include_inactive") in ("1", "true")
    return jsonify(catalog.list_services(include_inactive))


@settings_bp.post("/services")
@require_role(*WRITE_ROLES)
def create_service():
    body = request.get_json(force=True, silent=True) or {}
    order = int(parse_number(body, "display_order", default=99, min_value=0))
    row = catalog.create_service(
        _code(body), require_str(body, "name"), parse_uuid(body, "department_id"), order
    )
    return jsonify(row), 201


@settings_bp.patch("/services/<uuid:service_id>")
@require_role(*WRITE_ROLES)
def patch_service(service_id):
    body = request.get_json(force=True, silent=True) or {}
    row = catalog.update_service(str(service_id), **_catalog_updates(body, extra=("department_id",)))
    if not row:
        return jsonify({"error": "service not found"}), 404
    return jsonify(row)
