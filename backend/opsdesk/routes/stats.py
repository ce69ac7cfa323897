# Overview: Dashboard statistics.

from flask import Blueprint

from ..decorators import require_auth
from ..responses import success
from ..services import stats_service


stats_bp = Blueprint("stats", __name__, url_prefix="/api/stats")


@stats_bp.route("/dashboard", methods=["GET"])
@require_auth
def dashboard():
    return success(stats_service.dashboard())
