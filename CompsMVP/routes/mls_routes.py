# CompsMVP/routes/mls_routes.py
from flask import Blueprint, current_app, jsonify, request

from CompsMVP.utils.numbers import parse_int
from CompsMVP.services.wiring import get_integration_service, get_scheduler

mls_bp = Blueprint("mls", __name__, url_prefix="/api/mls")
jobs_bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


@mls_bp.route("/status", methods=["GET"])
def mls_status():
    return jsonify(get_integration_service().mls_status())


@mls_bp.route("/synchronize", methods=["POST"])
def synchronize():
    data = request.get_json(silent=True) or {}
    limit = parse_int(data.get("limit")) or current_app.config.get("MLS_SYNC_LIMIT", 50)
    result = get_integration_service().synchronize_mls_data(limit)
    code = 502 if result["status"] == "error" else 200
    return jsonify(result), code


# =========================================================
# ⏱ BACKGROUND JOBS
# =========================================================
@jobs_bp.route("", methods=["GET"])
@jobs_bp.route("/", methods=["GET"])
def job_status():
    return jsonify(get_scheduler().get_job_status())


@jobs_bp.route("/<name>/stop", methods=["POST"])
def stop_job(name):
    if not get_scheduler().stop_job(name):
        return jsonify({"status": "error", "error": "job_not_found"}), 404
    return jsonify({"status": "ok", "stopped": name})
