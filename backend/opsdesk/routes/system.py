# Overview: Liveness endpoint.

from flask import Blueprint

from ..responses import success


system_bp = Blueprint("system", __name__, url_prefix="/api")


@system_bp.route("/health", methods=["GET"])
def health():
    return success({"status": "ok"})
