# CompsMVP/routes/market_routes.py
from flask import Blueprint, current_app, jsonify, request

from CompsMVP.services.wiring import get_integration_service, get_market_data_cache

market_bp = Blueprint("market", __name__, url_prefix="/api/market-data")


@market_bp.route("", methods=["GET"])
@market_bp.route("/", methods=["GET"])
def market_data():
    city = (request.args.get("city") or "").strip()
    state = (request.args.get("state") or "").strip()
    zip_code = (request.args.get("zipCode") or "").strip() or None

    if not city or not state:
        return jsonify({"status": "error", "error": "city_and_state_required"}), 400

    return jsonify(get_integration_service().get_market_data(city, state, zip_code))


@market_bp.route("/sync", methods=["POST"])
def sync_market_data():
    data = request.get_json(silent=True) or {}
    locations = data.get("locations") or current_app.config.get("MARKET_SYNC_LOCATIONS") or []
    if not isinstance(locations, list):
        return jsonify({"status": "error", "error": "locations_must_be_a_list"}), 400

    summary = get_market_data_cache().sync_market_data(locations)
    return jsonify(summary)
