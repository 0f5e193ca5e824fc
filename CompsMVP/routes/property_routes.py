# CompsMVP/routes/property_routes.py

from flask import Blueprint, jsonify, request

from CompsMVP.services.comps_service import SubjectNotFoundError
from CompsMVP.services.property_filters import PropertyFilters
from CompsMVP.services.storage import DuplicatePropertyError
from CompsMVP.services.wiring import get_comps_finder, get_integration_service, get_storage


property_bp = Blueprint("properties", __name__, url_prefix="/api/properties")


# =========================================================
# 📋 LIST (local store only)
# =========================================================
@property_bp.route("", methods=["GET"])
@property_bp.route("/", methods=["GET"])
def list_properties():
    rows = get_storage().get_all_properties()
    return jsonify([p.to_dict() for p in rows])


# =========================================================
# 🔍 SEARCH (local + providers)
# =========================================================
@property_bp.route("/search", methods=["GET"])
def search_properties():
    filters = PropertyFilters.from_dict(request.args)
    if filters.is_empty():
        return jsonify({"status": "error", "error": "at_least_one_filter_required"}), 400

    results = get_integration_service().search_properties(filters)
    return jsonify(results)


# =========================================================
# 🧮 COMPARABLES (local store only)
# =========================================================
@property_bp.route("/comps", methods=["POST"])
def find_comps():
    criteria = request.get_json(silent=True) or {}
    try:
        result = get_comps_finder().find_comps(criteria)
    except SubjectNotFoundError:
        return jsonify({"status": "error", "error": "subject_property_not_found"}), 404
    except ValueError as e:
        return jsonify({"status": "error", "error": "subject_property_required", "details": str(e)}), 400
    return jsonify(result)


# =========================================================
# 🏠 DETAILS
# =========================================================
@property_bp.route("/<int:property_id>", methods=["GET"])
def property_details(property_id):
    prop = get_integration_service().get_property_details(property_id)
    if prop is None:
        return jsonify({"status": "error", "error": "property_not_found"}), 404
    return jsonify(prop)


# =========================================================
# ✏️ CREATE / UPDATE
# =========================================================
@property_bp.route("", methods=["POST"])
@property_bp.route("/", methods=["POST"])
def create_property():
    data = request.get_json(silent=True) or {}
    try:
        prop = get_storage().create_property(data)
    except DuplicatePropertyError:
        return jsonify({"status": "error", "error": "property_exists"}), 409
    except ValueError as e:
        return jsonify({"status": "error", "error": "invalid_property", "details": str(e)}), 400
    return jsonify(prop.to_dict()), 201


@property_bp.route("/<int:property_id>", methods=["PUT", "PATCH"])
def update_property(property_id):
    patch = request.get_json(silent=True) or {}
    try:
        prop = get_storage().update_property(property_id, patch)
    except DuplicatePropertyError:
        return jsonify({"status": "error", "error": "property_exists"}), 409
    except ValueError as e:
        return jsonify({"status": "error", "error": "invalid_property", "details": str(e)}), 400
    if prop is None:
        return jsonify({"status": "error", "error": "property_not_found"}), 404
    return jsonify(prop.to_dict())
